"""Assembly run options."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class TransitionKind(str, Enum):
    """Cross-fade styles understood by ffmpeg's xfade filter."""

    FADE = "fade"
    DISSOLVE = "dissolve"
    WIPELEFT = "wipeleft"
    WIPERIGHT = "wiperight"
    SLIDEDOWN = "slidedown"
    SLIDEUP = "slideup"


class RunOptions(BaseModel):
    """Per-run assembly options. Runs share nothing beyond these values."""

    transition: TransitionKind = Field(
        default=TransitionKind.FADE, description="Cross-fade style between scenes"
    )
    transition_duration: float = Field(
        default=0.5, description="Cross-fade length in seconds", gt=0, lt=3
    )
    background_music_path: Optional[str] = Field(
        None, description="Music mixed under narration (no-transition path only)"
    )
    music_volume: float = Field(default=0.2, description="Music volume factor", ge=0, le=1)
    use_transitions: bool = Field(default=False, description="Join scenes with cross-fades")
    caption_style: str = Field(default="caption", description="Caption style preset name")

    class Config:
        """Pydantic config."""
        frozen = False
