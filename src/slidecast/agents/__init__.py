"""AI agents for script analysis and scene planning."""

from .base import BaseAgent
from .analysis import ScriptAnalysisAgent
from .segmenter import SceneSegmenterAgent, SegmentInput

__all__ = ["BaseAgent", "ScriptAnalysisAgent", "SceneSegmenterAgent", "SegmentInput"]
