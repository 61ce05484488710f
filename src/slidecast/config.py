"""Configuration management."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID (Imagen image provider)"
    )
    elevenlabs_api_key: str = Field(
        default_factory=lambda: os.getenv("ELEVENLABS_API_KEY", ""),
        description="ElevenLabs API key (narration voice provider)"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("SLIDECAST_WORKSPACE", ".")),
        description="Workspace directory"
    )
    output_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SLIDECAST_OUTPUT_DIR", "output/final")),
        description="Directory receiving finished videos"
    )
    temp_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SLIDECAST_TEMP_DIR", "output/temp")),
        description="Shared scratch directory for per-run intermediate files"
    )
    images_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SLIDECAST_IMAGES_DIR", "output/images")),
        description="Directory receiving generated scene images"
    )
    audio_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SLIDECAST_AUDIO_DIR", "output/audio")),
        description="Directory receiving scene narration"
    )

    # Model settings
    default_model: str = Field(
        default_factory=lambda: os.getenv("SLIDECAST_MODEL", "claude-sonnet-4-20250514"),
        description="Default Claude model"
    )
    image_provider: str = Field(
        default_factory=lambda: os.getenv("SLIDECAST_IMAGE_PROVIDER", "placeholder"),
        description="Image provider: 'imagen' or 'placeholder'"
    )
    voice_provider: str = Field(
        default_factory=lambda: os.getenv("SLIDECAST_VOICE_PROVIDER", "silence"),
        description="Narration provider: 'elevenlabs' or 'silence'"
    )
    elevenlabs_voice_id: Optional[str] = Field(
        default_factory=lambda: _optional_env("ELEVENLABS_VOICE_ID"),
        description="ElevenLabs voice. Chosen from the character's voice style if unset"
    )

    # Transcoding
    ffmpeg_binary: Optional[str] = Field(
        default_factory=lambda: _optional_env("FFMPEG_BINARY"),
        description="ffmpeg executable. Defaults to the binary moviepy resolves"
    )
    ffmpeg_timeout: float = Field(
        default_factory=lambda: float(os.getenv("SLIDECAST_FFMPEG_TIMEOUT", "600")),
        description="Upper bound in seconds for any single ffmpeg invocation",
        gt=0,
    )
    caption_font: Optional[str] = Field(
        default_factory=lambda: _optional_env("SLIDECAST_CAPTION_FONT"),
        description="Font file used for burned-in captions"
    )

    class Config:
        """Pydantic config."""
        frozen = False
        validate_default = True

    def resolve_path(self, path: Path) -> Path:
        """Anchor a relative path at the workspace directory."""
        path = Path(path)
        return path if path.is_absolute() else self.workspace / path

    def validate_required(self) -> None:
        """Validate that required credentials are set."""
        if not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")

    def validate_imagen_required(self) -> None:
        """Validate that Imagen / Google Cloud configuration is set.

        Raises:
            ValueError: If the Google Cloud project is missing.
        """
        if not self.google_cloud_project:
            raise ValueError(
                "Missing required Imagen configuration: GOOGLE_CLOUD_PROJECT. "
                "Set the corresponding environment variable."
            )

    def validate_elevenlabs_required(self) -> None:
        """Validate that ElevenLabs credentials are set."""
        if not self.elevenlabs_api_key:
            raise ValueError("ELEVENLABS_API_KEY not set")


# Global config instance
config = Config()
