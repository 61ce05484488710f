"""Script analysis agent: characters, setting and narrative."""

import logging
from typing import Any, Dict

from ..models import Character, Narrative, ScriptAnalysis, Setting
from .base import BaseAgent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a story analyst preparing an animation script for illustration.
You extract characters, setting and narrative attributes from scripts.

Output valid JSON only, with no additional text or markdown formatting."""

# camelCase keys models like to return, mapped to ours
_KEY_ALIASES = {
    "voiceStyle": "voice_style",
    "artStyle": "art_style",
    "targetAudience": "target_audience",
}


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in data.items()}


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return _normalize_keys(value) if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class ScriptAnalysisAgent(BaseAgent[str, ScriptAnalysis]):
    """Extracts the cast and look of a story from its script."""

    @property
    def name(self) -> str:
        return "ScriptAnalysisAgent"

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def run(self, input_data: str) -> ScriptAnalysis:
        """Analyze a script.

        Args:
            input_data: Full script text.

        Returns:
            The analysis, with defaults filled in for anything missing.

        Raises:
            ValueError: If the script is empty or the reply is not a JSON object.
        """
        script = input_data.strip()
        if not script:
            raise ValueError("Script is empty")

        self._logger.info(f"Analyzing script ({len(script)} chars)")
        data = self._create_json(self._build_prompt(script), temperature=0.3)
        if not isinstance(data, dict):
            raise ValueError("Analysis response is not a JSON object")

        analysis = self._parse(data)
        self._logger.info(
            f"Script analysis complete: {len(analysis.characters)} characters, "
            f"setting '{analysis.setting.location or 'unknown'}'"
        )
        return analysis

    def _build_prompt(self, script: str) -> str:
        return "\n".join([
            "Analyze this animation script and extract detailed information.",
            "",
            "Script:",
            script,
            "",
            "Provide a JSON object with:",
            "1. characters: array of objects with id (number), name, description, age,",
            "   gender, appearance, clothing, personality, voice_style",
            "2. setting: object with location, time, mood, art_style (e.g. \"Pixar style\",",
            "   \"anime\", \"2D cartoon\"), colors, environment",
            "3. narrative: object with genre, tone, pacing (fast/medium/slow), target_audience",
        ])

    def _parse(self, data: Dict[str, Any]) -> ScriptAnalysis:
        characters = []
        for i, raw in enumerate(data.get("characters") or []):
            if not isinstance(raw, dict):
                continue
            raw = _normalize_keys(raw)
            try:
                char_id = int(raw.get("id") or i + 1)
            except (TypeError, ValueError):
                char_id = i + 1
            characters.append(Character(
                id=char_id,
                name=_text(raw.get("name")) or f"Character {i + 1}",
                description=_text(raw.get("description")),
                age=_text(raw.get("age")) or "unknown",
                gender=_text(raw.get("gender")) or "unknown",
                appearance=_text(raw.get("appearance")),
                clothing=_text(raw.get("clothing")),
                personality=_text(raw.get("personality")),
                voice_style=_text(raw.get("voice_style")) or "neutral voice",
            ))

        setting = _section(data, "setting")
        narrative = _section(data, "narrative")

        return ScriptAnalysis(
            characters=characters,
            setting=Setting(**{f: _text(setting.get(f)) for f in Setting.model_fields}),
            narrative=Narrative(
                genre=_text(narrative.get("genre")),
                tone=_text(narrative.get("tone")),
                pacing=_text(narrative.get("pacing")).lower() or "medium",
                target_audience=_text(narrative.get("target_audience")),
            ),
        )
