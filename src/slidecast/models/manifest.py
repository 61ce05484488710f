"""Manifest data model."""

from typing import List, Optional
from pathlib import Path
from pydantic import BaseModel, Field, field_validator
import yaml

from .analysis import ScriptAnalysis
from .options import RunOptions
from .scene import Scene


class Manifest(BaseModel):
    """Slideshow project manifest: analysis, scenes and assembly options."""

    project_name: str = Field(..., description="Project name")
    analysis: Optional[ScriptAnalysis] = Field(None, description="Script analysis result")
    scenes: List[Scene] = Field(default_factory=list, description="Scenes in playback order")
    options: RunOptions = Field(default_factory=RunOptions, description="Assembly options")

    class Config:
        """Pydantic config."""
        frozen = False

    @field_validator("scenes")
    @classmethod
    def _unique_indices(cls, scenes: List[Scene]) -> List[Scene]:
        indices = [s.index for s in scenes]
        if len(set(indices)) != len(indices):
            raise ValueError(f"Duplicate scene indices: {indices}")
        return scenes

    @classmethod
    def from_yaml(cls, path: Path) -> "Manifest":
        """Load manifest from YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save manifest to YAML file, keeping field order."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json"),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
