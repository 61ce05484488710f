"""Data models for the slideshow generator."""

from .scene import Scene
from .options import RunOptions, TransitionKind
from .analysis import Character, Narrative, ScriptAnalysis, Setting
from .manifest import Manifest
from .job import FinalVideo, Job, JobState

__all__ = [
    "Scene",
    "RunOptions",
    "TransitionKind",
    "Character",
    "Narrative",
    "ScriptAnalysis",
    "Setting",
    "Manifest",
    "FinalVideo",
    "Job",
    "JobState",
]
