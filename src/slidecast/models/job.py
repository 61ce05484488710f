"""Assembly job state tracking."""

from datetime import datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field


class JobState(str, Enum):
    """Assembly pipeline state."""
    IDLE = "idle"
    PROBING_DURATIONS = "probing_durations"
    BUILDING_CLIPS = "building_clips"
    MERGING = "merging"
    CAPTIONING = "captioning"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED)


class FinalVideo(BaseModel):
    """The finished slideshow file."""

    path: str = Field(..., description="Absolute path of the video file")
    url: str = Field(..., description="Relative reference, e.g. /output/final/<name>.mp4")
    duration: float = Field(..., description="Expected playback length in seconds")
    strategy: str = Field(..., description="'simple' or 'transitions'")


class Job(BaseModel):
    """One assembly run."""

    id: str = Field(..., description="Job identifier")
    state: JobState = Field(default=JobState.IDLE, description="Current state")
    history: List[JobState] = Field(default_factory=lambda: [JobState.IDLE], description="States visited")
    result: Optional[FinalVideo] = Field(None, description="Output once done")
    error: Optional[str] = Field(None, description="Error message once failed")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    class Config:
        """Pydantic config."""
        frozen = False
