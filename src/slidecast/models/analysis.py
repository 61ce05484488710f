"""Script analysis data models."""

from typing import List
from pydantic import BaseModel, Field


class Character(BaseModel):
    """A character extracted from the script."""

    id: int = Field(..., description="1-based character number")
    name: str = Field(..., description="Character name")
    description: str = Field(default="")
    age: str = Field(default="unknown")
    gender: str = Field(default="unknown")
    appearance: str = Field(default="")
    clothing: str = Field(default="")
    personality: str = Field(default="")
    voice_style: str = Field(default="neutral voice")


class Setting(BaseModel):
    """Where and when the story takes place, and how it should look."""

    location: str = ""
    time: str = ""
    mood: str = ""
    art_style: str = ""
    colors: str = ""
    environment: str = ""


class Narrative(BaseModel):
    """Story-level attributes."""

    genre: str = ""
    tone: str = ""
    pacing: str = "medium"
    target_audience: str = ""


class ScriptAnalysis(BaseModel):
    """Structured result of analysing a script."""

    characters: List[Character] = Field(default_factory=list)
    setting: Setting = Field(default_factory=Setting)
    narrative: Narrative = Field(default_factory=Narrative)

    @property
    def character_names(self) -> List[str]:
        return [c.name for c in self.characters]
