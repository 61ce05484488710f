"""Scene data model."""

from typing import List, Optional
from pydantic import BaseModel, Field


class Scene(BaseModel):
    """One narrative beat: a still image, optional narration, and a caption."""

    index: int = Field(..., description="0-based playback position", ge=0)
    title: Optional[str] = Field(None, description="Short scene label")
    description: str = Field(default="", description="Narrative text of the scene")
    dialogue: Optional[str] = Field(None, description="Narration line, preferred as caption")
    characters: List[str] = Field(default_factory=list, description="Names of characters present")
    duration_hint: Optional[float] = Field(
        None, description="Suggested length from segmentation (seconds)", gt=0
    )
    image_path: Optional[str] = Field(None, description="Rendered still image for the scene")
    audio_path: Optional[str] = Field(None, description="Narration audio for the scene")
    duration: Optional[float] = Field(
        None, description="Resolved playback length, set during assembly", gt=0
    )

    class Config:
        """Pydantic config."""
        frozen = False

    @property
    def caption_text(self) -> str:
        """Dialogue if present, else description, else a ``Scene N`` label."""
        for text in (self.dialogue, self.description):
            if text and text.strip():
                return text.strip()
        return f"Scene {self.index + 1}"
