"""Base agent abstraction."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from ..config import config
from ..services.anthropic import AnthropicClient

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


def extract_json(response: str) -> str:
    """Extract JSON from a response that may contain markdown or other text."""
    # Fenced code block first
    for fence in ("```json", "```"):
        if fence in response:
            start = response.find(fence) + len(fence)
            end = response.find("```", start)
            if end > start:
                return response[start:end].strip()

    # Otherwise the first balanced object or array, whichever opens first
    candidates = [(response.find(c), c) for c in "{[" if response.find(c) != -1]
    if candidates:
        start, open_char = min(candidates)
        close_char = "}" if open_char == "{" else "]"
        depth = 0
        in_string = False
        escaped = False
        for i, char in enumerate(response[start:], start):
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == open_char:
                depth += 1
            elif char == close_char:
                depth -= 1
                if depth == 0:
                    return response[start:i + 1]

    return response.strip()


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract base class for AI agents.

    Provides shared functionality for agents that use Claude for generation.
    Subclasses must implement the `run` method and define their prompts.
    """

    def __init__(
        self,
        client: Optional[AnthropicClient] = None,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            client: AnthropicClient instance. Created if not provided.
            model: Model to use. Defaults to config.default_model.
        """
        self._model = model or config.default_model
        self._client = client or AnthropicClient(model=self._model)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the agent's name."""
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """Return the system prompt for this agent."""
        ...

    @property
    def model(self) -> str:
        return self._model

    @property
    def client(self) -> AnthropicClient:
        return self._client

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        """Execute the agent's main task."""
        ...

    def _create_message(
        self,
        prompt: str,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        """Create a message using the agent's client and system prompt."""
        self._logger.debug(f"Creating message with prompt length: {len(prompt)}")
        response = self._client.create_message(
            prompt=prompt,
            max_tokens=max_tokens,
            system=self.system_prompt,
            temperature=temperature,
        )
        self._logger.debug(f"Received response of length: {len(response)}")
        return response

    def _create_json(
        self,
        prompt: str,
        max_tokens: int = 4096,
        temperature: float = 0.3,
    ) -> Any:
        """Ask for a JSON reply and parse it.

        Raises:
            ValueError: If the reply does not contain valid JSON.
        """
        response = self._create_message(prompt, max_tokens=max_tokens, temperature=temperature)
        try:
            return json.loads(extract_json(response))
        except json.JSONDecodeError as e:
            self._logger.error(f"Failed to parse JSON: {e}")
            self._logger.debug(f"Raw response: {response}")
            raise ValueError(f"Invalid JSON in response: {e}") from e
