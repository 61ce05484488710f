"""Tests for the Anthropic client wrapper."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from anthropic import APIConnectionError, BadRequestError

from slidecast.services.anthropic import AnthropicClient

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def reply(*texts):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=t) for t in texts])


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr("slidecast.services.anthropic.time.sleep", lambda s: None)
    c = AnthropicClient(api_key="test-key", model="test-model", max_retries=3, retry_delay=0)
    c._client = MagicMock()
    return c


def test_requires_api_key(monkeypatch):
    monkeypatch.setattr("slidecast.services.anthropic.config.anthropic_api_key", "")
    with pytest.raises(ValueError):
        AnthropicClient()


def test_create_message(client):
    """Test text blocks are joined and the system prompt is forwarded."""
    client._client.messages.create.return_value = reply("Hello", " world")

    assert client.create_message("Hi", system="Be brief", temperature=0.2) == "Hello world"
    kwargs = client._client.messages.create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["system"] == "Be brief"
    assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]


def test_retries_connection_errors(client):
    client._client.messages.create.side_effect = [
        APIConnectionError(request=REQUEST),
        reply("ok"),
    ]
    assert client.create_message("Hi") == "ok"
    assert client._client.messages.create.call_count == 2


def test_gives_up_after_max_retries(client):
    client._client.messages.create.side_effect = APIConnectionError(request=REQUEST)
    with pytest.raises(APIConnectionError):
        client.create_message("Hi")
    assert client._client.messages.create.call_count == 3


def test_client_errors_are_not_retried(client):
    """Test a bad request fails on the first attempt."""
    error = BadRequestError(
        "bad request",
        response=httpx.Response(400, request=REQUEST),
        body=None,
    )
    client._client.messages.create.side_effect = error
    with pytest.raises(BadRequestError):
        client.create_message("Hi")
    assert client._client.messages.create.call_count == 1


def test_sdk_retries_disabled(monkeypatch):
    sdk = MagicMock()
    monkeypatch.setattr("slidecast.services.anthropic.Anthropic", sdk)

    AnthropicClient(api_key="test-key", timeout=30.0)

    assert sdk.call_args.kwargs == {"api_key": "test-key", "timeout": 30.0, "max_retries": 0}
