"""Scene segmentation agent.

Scripts with explicit breaks (blank lines or ``Scene ...`` headings) are split
directly. A script written as one block is split by Claude, or by sentence
heuristics when that fails.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from anthropic import APIError

from ..models import Scene, ScriptAnalysis
from .base import BaseAgent

logger = logging.getLogger(__name__)

MIN_DURATION_HINT = 3
MAX_DURATION_HINT = 10
WORDS_PER_SECOND_HINT = 12
MAX_DESCRIPTION_CHARS = 600
# Shorter single-block scripts stay one scene when Claude is unavailable
MIN_SPLIT_CHARS = 300
MAX_SENTENCES_PER_SCENE = 3
MAX_SCENE_CHARS = 250

_BLOCK_BREAK = re.compile(r"\n\s*\n|^\s*Scene\b[^\n]*\n", re.IGNORECASE | re.MULTILINE)
_SENTENCE = re.compile(r"[^.!?]+(?:[.!?]+|$)")
_LOCATION_CHANGE = re.compile(
    r"\b(arrived|entered|reached|went to|moved to|traveled to|inside|outside)\b", re.IGNORECASE
)
_TIME_CHANGE = re.compile(r"\b(later|meanwhile|next|then|suddenly|after|when)\b", re.IGNORECASE)
_ACTION_CHANGE = re.compile(
    r"\b(found|discovered|saw|met|began|started|escaped|ran)\b", re.IGNORECASE
)

SYSTEM_PROMPT = """You are a film director splitting stories into visual scenes for an illustrated slideshow.

Output valid JSON only, with no additional text or markdown formatting."""


@dataclass
class SegmentInput:
    """Input data for the segmenter."""

    script: str
    analysis: Optional[ScriptAnalysis] = None


def split_blocks(script: str) -> List[str]:
    """Split on blank lines and ``Scene ...`` heading lines."""
    text = script.replace("\r\n", "\n")
    return [b.strip() for b in _BLOCK_BREAK.split(text) if b and b.strip()]


def split_by_sentences(text: str) -> List[str]:
    """Group sentences into scenes, breaking at likely scene changes.

    A scene ends after a sentence that mentions a change of place, time or
    action, after three sentences, or once it grows past 250 characters.
    """
    sentences = [s.strip() for s in _SENTENCE.findall(text) if s.strip()]
    scenes: List[str] = []
    current: List[str] = []

    for sentence in sentences:
        current.append(sentence)
        joined = " ".join(current)
        if (
            _LOCATION_CHANGE.search(sentence)
            or _TIME_CHANGE.search(sentence)
            or _ACTION_CHANGE.search(sentence)
            or len(current) >= MAX_SENTENCES_PER_SCENE
            or len(joined) > MAX_SCENE_CHARS
        ):
            scenes.append(joined)
            current = []

    if current:
        scenes.append(" ".join(current))
    if not scenes and text.strip():
        scenes.append(text.strip())
    return scenes


def infer_duration(text: str) -> int:
    """Suggested scene length in seconds: one per 12 words, within 3 to 10."""
    words = len(text.split())
    return max(MIN_DURATION_HINT, min(MAX_DURATION_HINT, round(words / WORDS_PER_SECOND_HINT)))


def extract_characters(text: str, known_names: Sequence[str]) -> List[str]:
    """Known character names that appear in ``text`` as whole words."""
    present = []
    for name in known_names:
        if not name or name in present:
            continue
        if re.search(rf"(?<!\w){re.escape(name)}(?!\w)", text, re.IGNORECASE):
            present.append(name)
    return present


class SceneSegmenterAgent(BaseAgent[SegmentInput, List[Scene]]):
    """Splits a script into ordered scenes."""

    @property
    def name(self) -> str:
        return "SceneSegmenterAgent"

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def run(self, input_data: SegmentInput) -> List[Scene]:
        """Segment a script.

        Args:
            input_data: The script and, optionally, its analysis for character names.

        Returns:
            Scenes in story order, indexed from 0.

        Raises:
            ValueError: If the script is empty.
        """
        script = input_data.script.strip()
        if not script:
            raise ValueError("Script is empty")

        names = input_data.analysis.character_names if input_data.analysis else []
        blocks = split_blocks(script)

        if len(blocks) <= 1:
            self._logger.info("No scene breaks found, asking Claude to segment the story")
            try:
                blocks = self._segment_with_ai(script, names)
                self._logger.info(f"Claude segmented the story into {len(blocks)} scenes")
            except (APIError, ValueError) as e:
                self._logger.warning(f"AI segmentation failed, using sentence heuristics: {e}")
                blocks = split_by_sentences(script) if len(script) > MIN_SPLIT_CHARS else [script]

        scenes = [
            Scene(
                index=i,
                title=f"Scene {i + 1}",
                description=block[:MAX_DESCRIPTION_CHARS],
                characters=extract_characters(block, names),
                duration_hint=infer_duration(block),
            )
            for i, block in enumerate(blocks)
        ]
        self._logger.info(f"Segmented script into {len(scenes)} scenes")
        return scenes

    def _segment_with_ai(self, script: str, names: Sequence[str]) -> List[str]:
        prompt = "\n".join([
            "Split this story into distinct visual SCENES for a slideshow.",
            "",
            "Story:",
            script,
            "",
            f"Characters: {', '.join(names) or 'Unknown'}",
            "",
            "Rules:",
            "- Each scene is ONE clear visual moment (one location, one action)",
            "- Split when the location or action changes, or significant time passes",
            "- Each scene is 1-3 sentences",
            "",
            'Return a JSON array of strings, e.g. ["Scene 1 text", "Scene 2 text"].',
        ])
        data = self._create_json(prompt, temperature=0.4)
        if isinstance(data, dict):
            data = data.get("scenes", [])
        if not isinstance(data, list):
            raise ValueError("Segmentation response is not a JSON array")

        blocks = [str(item).strip() for item in data if str(item).strip()]
        if not blocks:
            raise ValueError("Segmentation response has no scenes")
        return blocks
