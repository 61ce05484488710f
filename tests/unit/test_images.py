"""Tests for image providers."""

import base64
from unittest.mock import MagicMock, patch

import pytest
import requests
from PIL import Image

from slidecast.models import Character, Scene, ScriptAnalysis, Setting
from slidecast.services.images import (
    ImagenProvider,
    PlaceholderProvider,
    build_image_prompt,
    get_image_provider,
)


@pytest.fixture
def imagen(monkeypatch):
    monkeypatch.setattr(ImagenProvider, "_access_token", lambda self: "token")
    return ImagenProvider(project_id="demo-project")


def test_prompt_includes_scene_cast_and_style():
    """Test prompts describe only the characters present in the scene."""
    analysis = ScriptAnalysis(
        characters=[
            Character(id=1, name="Mia", appearance="freckles", clothing="red scarf"),
            Character(id=2, name="Leo"),
        ],
        setting=Setting(location="harbor town", art_style="watercolor"),
    )
    scene = Scene(index=0, description="Mia lights the lantern", characters=["Mia"])

    prompt = build_image_prompt(scene, analysis)

    assert prompt.startswith("Mia lights the lantern")
    assert "Mia: freckles, red scarf" in prompt
    assert "Leo" not in prompt
    assert "Art style: watercolor" in prompt


def test_prompt_without_analysis():
    prompt = build_image_prompt(Scene(index=0, title="Scene 1"))
    assert prompt.startswith("Scene 1")


def test_placeholder_renders_title_card(tmp_path):
    """Test the placeholder draws the title on a solid full-HD frame."""
    output = tmp_path / "images" / "scene_001.png"
    result = PlaceholderProvider().generate("a prompt", output, title="Scene 1")

    assert result.ok
    assert result.local_path == output
    with Image.open(output) as card:
        assert card.format == "PNG"
        assert card.size == (1920, 1080)
        assert card.getpixel((0, 0)) == (0x1E, 0x1E, 0x2E)
        assert card.getextrema()[0][1] == 255


def test_placeholder_failure_is_reported(tmp_path):
    """Test rendering errors land on the result instead of raising."""
    provider = PlaceholderProvider(font_file=str(tmp_path / "missing.ttf"))
    result = provider.generate("p", tmp_path / "x.png", title="Scene 1")

    assert not result.ok
    assert result.error_message
    assert not (tmp_path / "x.png").exists()


def test_imagen_saves_image(imagen, tmp_path):
    response = MagicMock(status_code=200)
    response.json.return_value = {
        "predictions": [{"bytesBase64Encoded": base64.b64encode(b"png-bytes").decode()}]
    }
    output = tmp_path / "scene.png"

    with patch("slidecast.services.images.requests.post", return_value=response) as post:
        result = imagen.generate("a harbor at dusk", output)

    assert result.ok
    assert output.read_bytes() == b"png-bytes"
    body = post.call_args.kwargs["json"]
    assert body["instances"] == [{"prompt": "a harbor at dusk"}]
    assert body["parameters"]["aspectRatio"] == "16:9"
    assert "demo-project" in post.call_args.args[0]


def test_imagen_http_error(imagen, tmp_path):
    response = MagicMock(status_code=429, text="quota exceeded")
    with patch("slidecast.services.images.requests.post", return_value=response):
        result = imagen.generate("p", tmp_path / "scene.png")

    assert not result.ok
    assert result.error_message.startswith("429")


def test_imagen_network_error(imagen, tmp_path):
    with patch("slidecast.services.images.requests.post", side_effect=requests.ConnectionError("down")):
        result = imagen.generate("p", tmp_path / "scene.png")

    assert "down" in result.error_message


def test_imagen_empty_predictions(imagen, tmp_path):
    response = MagicMock(status_code=200)
    response.json.return_value = {"predictions": []}
    with patch("slidecast.services.images.requests.post", return_value=response):
        result = imagen.generate("p", tmp_path / "scene.png")

    assert result.error_message == "No predictions in response"


def test_imagen_requires_project(monkeypatch):
    monkeypatch.setattr("slidecast.services.images.config.google_cloud_project", "")
    with pytest.raises(ValueError):
        ImagenProvider()


def test_get_image_provider():
    assert isinstance(get_image_provider("placeholder"), PlaceholderProvider)
    with pytest.raises(ValueError):
        get_image_provider("dalle")
