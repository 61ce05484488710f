"""Scene image providers.

Providers share one interface and are chosen by configuration
(``SLIDECAST_IMAGE_PROVIDER``). Provider errors are reported on the result
rather than raised, so callers can fall back to a placeholder.
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
import requests
from PIL import Image, ImageDraw

from ..config import config
from ..editor.ffmpeg import HEIGHT, WIDTH
from ..editor.overlays import load_font, wrap_caption
from ..models import Scene, ScriptAnalysis

logger = logging.getLogger(__name__)


@dataclass
class ImageResult:
    """Result of an image generation request."""

    prompt: str
    local_path: Optional[Path] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error_message is None and self.local_path is not None


class ImageProvider(ABC):
    """Produces one still image per request."""

    name: str = "base"

    @abstractmethod
    def generate(self, prompt: str, output_path: Path, title: Optional[str] = None) -> ImageResult:
        """Generate an image for ``prompt`` and save it to ``output_path``."""
        ...


def build_image_prompt(scene: Scene, analysis: Optional[ScriptAnalysis] = None) -> str:
    """Compose a provider prompt from a scene and the script analysis."""
    parts = [scene.description or scene.title or "a scene"]

    if analysis is not None:
        present = [c for c in analysis.characters if c.name in scene.characters]
        if present:
            described = []
            for c in present:
                traits = ", ".join(t for t in (c.appearance, c.clothing) if t)
                described.append(f"{c.name}: {traits}" if traits else c.name)
            parts.append("Characters: " + ". ".join(described))
        if analysis.setting.location:
            parts.append(f"Setting: {analysis.setting.location}")
        if analysis.setting.art_style:
            parts.append(f"Art style: {analysis.setting.art_style}")

    parts.append("consistent character design, detailed, high quality")
    return ". ".join(parts)


class PlaceholderProvider(ImageProvider):
    """Renders a plain title card locally with Pillow."""

    name = "placeholder"
    FONT_SIZE = 64

    def __init__(self, background: str = "#1e1e2e", font_file: Optional[str] = None) -> None:
        self._background = background
        self._font_file = font_file or config.caption_font

    def generate(self, prompt: str, output_path: Path, title: Optional[str] = None) -> ImageResult:
        result = ImageResult(prompt=prompt, created_at=datetime.now(), metadata={"provider": self.name})
        text = wrap_caption(title or prompt, max_chars=40, max_lines=3) or "Scene"

        try:
            font = load_font(self._font_file, self.FONT_SIZE)
            image = Image.new("RGB", (WIDTH, HEIGHT), self._background)
            draw = ImageDraw.Draw(image)
            draw.multiline_text(
                (WIDTH / 2, HEIGHT / 2),
                text,
                font=font,
                fill="white",
                anchor="mm",
                align="center",
            )
            output_path.parent.mkdir(parents=True, exist_ok=True)
            image.save(output_path, format="PNG")
        except (OSError, ValueError) as e:
            logger.error(f"Placeholder rendering failed: {e}")
            result.error_message = str(e)
            return result

        result.local_path = output_path
        return result


class ImagenProvider(ImageProvider):
    """Google Imagen image generation via Vertex AI."""

    name = "imagen"
    DEFAULT_LOCATION = "us-central1"
    DEFAULT_MODEL = "imagen-3.0-generate-001"
    REQUEST_TIMEOUT = 90

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: str = DEFAULT_LOCATION,
        model: Optional[str] = None,
        aspect_ratio: str = "16:9",
    ) -> None:
        """Initialize the Imagen provider.

        Args:
            project_id: Google Cloud project ID.
            location: GCP region for Vertex AI.
            model: Imagen model name.
            aspect_ratio: Image aspect ratio ('1:1', '16:9', '9:16', '4:3', '3:4').
        """
        self._project_id = project_id or config.google_cloud_project
        self._location = location
        self._model = model or self.DEFAULT_MODEL
        self._aspect_ratio = aspect_ratio

        if not self._project_id:
            raise ValueError("GOOGLE_CLOUD_PROJECT not set")

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def model(self) -> str:
        return self._model

    def _access_token(self) -> str:
        scopes = ["https://www.googleapis.com/auth/cloud-platform"]
        credentials, _ = google.auth.default(scopes=scopes)
        credentials.refresh(google.auth.transport.requests.Request())
        return credentials.token

    def generate(self, prompt: str, output_path: Path, title: Optional[str] = None) -> ImageResult:
        result = ImageResult(
            prompt=prompt,
            created_at=datetime.now(),
            metadata={
                "provider": self.name,
                "aspect_ratio": self._aspect_ratio,
                "model": self._model,
            },
        )

        url = (
            f"https://{self._location}-aiplatform.googleapis.com/v1/"
            f"projects/{self._project_id}/locations/{self._location}/"
            f"publishers/google/models/{self._model}:predict"
        )
        request_body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": self._aspect_ratio,
                "negativePrompt": "inconsistent character design, blurry, low quality, watermark",
            },
        }

        try:
            headers = {
                "Authorization": f"Bearer {self._access_token()}",
                "Content-Type": "application/json",
            }

            logger.info(f"Generating image with Imagen: {prompt[:50]}...")
            response = requests.post(url, json=request_body, headers=headers, timeout=self.REQUEST_TIMEOUT)

            if response.status_code != 200:
                error_msg = f"{response.status_code}: {response.text[:500]}"
                logger.error(f"Imagen API error: {error_msg}")
                result.error_message = error_msg
                return result

            predictions = response.json().get("predictions", [])
            if not predictions:
                result.error_message = "No predictions in response"
                return result

            image_data = predictions[0].get("bytesBase64Encoded")
            if not image_data:
                result.error_message = "No image data in response"
                return result

            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "wb") as f:
                f.write(base64.b64decode(image_data))

            result.local_path = output_path
            logger.info(f"Saved image to {output_path}")
            return result

        except (requests.RequestException, google.auth.exceptions.GoogleAuthError, ValueError) as e:
            logger.error(f"Image generation failed: {e}")
            result.error_message = str(e)
            return result


def get_image_provider(name: Optional[str] = None) -> ImageProvider:
    """Build the provider selected by ``name`` or ``config.image_provider``.

    Raises:
        ValueError: If the provider is unknown or misconfigured.
    """
    name = (name or config.image_provider).lower()
    if name == PlaceholderProvider.name:
        return PlaceholderProvider()
    if name == ImagenProvider.name:
        config.validate_imagen_required()
        return ImagenProvider()
    raise ValueError(f"Unknown image provider: {name}. Available: imagen, placeholder")
