"""Scene narration providers.

Providers turn narration text into an audio file and are chosen by
configuration (``SLIDECAST_VOICE_PROVIDER``). Like image providers, they
report errors on the result so callers can fall back to silence.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import requests

from ..config import config
from ..editor.clips import silent_audio_source
from ..editor.ffmpeg import FFmpegRunner
from ..errors import TranscodeError
from ..models import Scene, ScriptAnalysis

logger = logging.getLogger(__name__)

NARRATOR_STYLE = "neutral voice"


@dataclass
class VoiceResult:
    """Result of a narration request."""

    text: str
    local_path: Optional[Path] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    metadata: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error_message is None and self.local_path is not None


class VoiceProvider(ABC):
    """Produces one narration file per request."""

    name: str = "base"
    extension: str = ".mp3"

    @abstractmethod
    def generate(self, text: str, output_path: Path, voice_style: Optional[str] = None) -> VoiceResult:
        """Speak ``text`` and save the audio to ``output_path``."""
        ...


def narration_text(scene: Scene) -> str:
    """Text read aloud for a scene: its dialogue, else its description."""
    for text in (scene.dialogue, scene.description):
        if text and text.strip():
            return text.strip()
    return ""


def narration_style(scene: Scene, analysis: Optional[ScriptAnalysis] = None) -> str:
    """Voice style of the first known character in the scene, else the narrator's."""
    if analysis is not None:
        for character in analysis.characters:
            if character.name in scene.characters:
                return character.voice_style
    return NARRATOR_STYLE


class ElevenLabsProvider(VoiceProvider):
    """ElevenLabs text-to-speech."""

    name = "elevenlabs"
    extension = ".mp3"
    API_URL = "https://api.elevenlabs.io/v1/text-to-speech"
    DEFAULT_MODEL = "eleven_multilingual_v2"
    REQUEST_TIMEOUT = 30

    # Stock voices by broad style
    VOICES = {
        "male": "pNInz6obpgDQGcFmaJgB",
        "female": "EXAVITQu4vr4xnSDxMaL",
        "neutral": "21m00Tcm4TlvDq8ikWAM",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice_id: Optional[str] = None,
        model: str = DEFAULT_MODEL,
    ) -> None:
        self._api_key = api_key or config.elevenlabs_api_key
        self._voice_id = voice_id or config.elevenlabs_voice_id
        self._model = model

        if not self._api_key:
            raise ValueError("ELEVENLABS_API_KEY not set")

    def voice_for(self, voice_style: Optional[str]) -> str:
        """Pick a voice id: the configured one, else by the style's gender."""
        if self._voice_id:
            return self._voice_id
        words = set((voice_style or "").lower().replace(",", " ").split())
        if words & {"female", "woman", "girl"}:
            return self.VOICES["female"]
        if words & {"male", "man", "boy"}:
            return self.VOICES["male"]
        return self.VOICES["neutral"]

    def generate(self, text: str, output_path: Path, voice_style: Optional[str] = None) -> VoiceResult:
        voice_id = self.voice_for(voice_style)
        result = VoiceResult(
            text=text,
            created_at=datetime.now(),
            metadata={"provider": self.name, "voice_id": voice_id, "model": self._model},
        )
        if not text.strip():
            result.error_message = "No text to narrate"
            return result

        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self._api_key,
        }
        data = {
            "text": text,
            "model_id": self._model,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
            },
        }

        try:
            logger.info(f"Generating narration with ElevenLabs: {text[:50]}...")
            response = requests.post(
                f"{self.API_URL}/{voice_id}",
                json=data,
                headers=headers,
                timeout=self.REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"Network error calling ElevenLabs API: {e}")
            result.error_message = str(e)
            return result

        if response.status_code != 200:
            error_msg = f"{response.status_code}: {response.text[:500]}"
            logger.error(f"ElevenLabs API error: {error_msg}")
            result.error_message = error_msg
            return result

        if not response.content:
            result.error_message = "Empty audio in response"
            return result

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "wb") as f:
            f.write(response.content)

        result.local_path = output_path
        logger.info(f"Saved narration to {output_path} ({len(response.content)} bytes)")
        return result


class SilenceProvider(VoiceProvider):
    """Writes a silent track paced to the text's reading time."""

    name = "silence"
    extension = ".wav"
    WORDS_PER_SECOND = 2.5
    MIN_DURATION = 3.0

    def __init__(self, runner: Optional[FFmpegRunner] = None) -> None:
        self._runner = runner or FFmpegRunner()

    def duration_for(self, text: str) -> float:
        return max(self.MIN_DURATION, round(len(text.split()) / self.WORDS_PER_SECOND, 2))

    def generate(self, text: str, output_path: Path, voice_style: Optional[str] = None) -> VoiceResult:
        duration = self.duration_for(text)
        result = VoiceResult(
            text=text,
            created_at=datetime.now(),
            metadata={"provider": self.name, "duration": duration},
        )

        output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._runner.run(
                [
                    "-f", "lavfi",
                    "-i", silent_audio_source(duration),
                    "-t", duration,
                    "-c:a", "pcm_s16le",
                    output_path,
                ],
                description=f"silent narration {output_path.name}",
            )
        except TranscodeError as e:
            logger.error(f"Silent narration failed: {e}")
            result.error_message = str(e)
            return result

        result.local_path = output_path
        return result


def get_voice_provider(name: Optional[str] = None) -> VoiceProvider:
    """Build the provider selected by ``name`` or ``config.voice_provider``.

    Raises:
        ValueError: If the provider is unknown or misconfigured.
    """
    name = (name or config.voice_provider).lower()
    if name == SilenceProvider.name:
        return SilenceProvider()
    if name == ElevenLabsProvider.name:
        config.validate_elevenlabs_required()
        return ElevenLabsProvider()
    raise ValueError(f"Unknown voice provider: {name}. Available: elevenlabs, silence")
