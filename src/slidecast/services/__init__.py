"""External service integrations."""

from .anthropic import AnthropicClient
from .images import (
    ImageProvider,
    ImageResult,
    ImagenProvider,
    PlaceholderProvider,
    build_image_prompt,
    get_image_provider,
)
from .voice import (
    ElevenLabsProvider,
    SilenceProvider,
    VoiceProvider,
    VoiceResult,
    get_voice_provider,
    narration_style,
    narration_text,
)

__all__ = [
    "AnthropicClient",
    "ImageProvider",
    "ImageResult",
    "ImagenProvider",
    "PlaceholderProvider",
    "build_image_prompt",
    "get_image_provider",
    "ElevenLabsProvider",
    "SilenceProvider",
    "VoiceProvider",
    "VoiceResult",
    "get_voice_provider",
    "narration_style",
    "narration_text",
]
