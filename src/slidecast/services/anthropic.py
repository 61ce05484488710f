"""Anthropic Claude API client wrapper."""

import logging
import time
from typing import Optional

from anthropic import (
    Anthropic,
    APIConnectionError,
    APIError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from ..config import config

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (RateLimitError, APIConnectionError, APITimeoutError, InternalServerError)


class AnthropicClient:
    """Client wrapper for Anthropic Claude API with retry logic."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 120.0,
    ) -> None:
        """Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY env var.
            model: Model to use. Defaults to config.default_model.
            max_retries: Maximum number of attempts per request.
            retry_delay: Base delay between retries in seconds (exponential backoff).
            timeout: Per-request timeout in seconds.
        """
        self._api_key = api_key or config.anthropic_api_key
        if not self._api_key:
            raise ValueError(
                "Anthropic API key not provided. Set ANTHROPIC_API_KEY env var."
            )

        self._client = Anthropic(api_key=self._api_key, timeout=timeout, max_retries=0)
        self._model = model or config.default_model
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def create_message(
        self,
        prompt: str,
        max_tokens: int = 4096,
        system: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Send one user prompt and return the text of the reply.

        Args:
            prompt: The user prompt to send.
            max_tokens: Maximum tokens in the response.
            system: Optional system prompt.
            temperature: Sampling temperature (0.0-1.0).

        Returns:
            The concatenated text blocks of Claude's response.

        Raises:
            APIError: If the request fails, or keeps failing after all retries.
        """
        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        for attempt in range(self._max_retries):
            try:
                logger.debug(
                    f"Sending request to Claude (attempt {attempt + 1}/{self._max_retries})"
                )
                response = self._client.messages.create(**kwargs)
                return "".join(
                    block.text for block in response.content if getattr(block, "type", "") == "text"
                )

            except RETRYABLE_ERRORS as e:
                if attempt == self._max_retries - 1:
                    logger.error(f"Giving up after {self._max_retries} attempts: {e}")
                    raise
                delay = self._retry_delay * (2**attempt)
                logger.warning(f"{type(e).__name__}: {e}. Retrying in {delay:.1f}s...")
                time.sleep(delay)

            except APIError as e:
                logger.error(f"API error: {e}")
                raise

        raise RuntimeError("No attempts were made")
