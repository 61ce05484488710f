"""Tests for caption layout and burning."""

from pathlib import Path

import pytest
from PIL import Image

from slidecast.editor.overlays import (
    MAX_LINE_CHARS,
    CaptionWindow,
    build_caption_graph,
    burn_captions,
    caption_windows,
    get_style,
    overlay_filter,
    render_caption_image,
    wrap_caption,
)
from slidecast.errors import CaptionError


def test_short_caption_unchanged():
    """Test captions that fit stay on one line."""
    assert wrap_caption("Hello there") == "Hello there"


def test_long_caption_wraps_and_truncates():
    """Test long text wraps at 100 characters and keeps two lines."""
    text = " ".join(f"word{i:02d}" for i in range(60))
    wrapped = wrap_caption(text)
    lines = wrapped.split("\n")

    assert len(lines) == 2
    assert all(len(line) <= MAX_LINE_CHARS for line in lines)
    assert lines[0].startswith("word00")
    assert "word59" not in wrapped


def test_oversized_word_keeps_own_line():
    """Test a single word longer than the limit is not split."""
    long_word = "x" * 120
    assert wrap_caption(f"{long_word} tail") == f"{long_word}\ntail"


def test_windows_are_adjacent():
    """Test each caption starts where the previous one ends."""
    windows = caption_windows([("a", 3.0), ("b", 5.0), ("c", 4.0)])
    assert [(w.start, w.end) for w in windows] == [(0.0, 3.0), (3.0, 8.0), (8.0, 12.0)]
    assert [w.text for w in windows] == ["a", "b", "c"]


def test_overlay_is_time_gated():
    """Test the enable expression covers a half-open window."""
    rendered = overlay_filter(CaptionWindow("Hi", 3.0, 8.0), get_style("caption")).render()

    assert rendered.startswith("overlay=")
    assert r"enable=gte(t\,3)*lt(t\,8)" in rendered
    assert "x=(W-w)/2" in rendered
    assert "y=H-120" in rendered


def test_caption_graph_chains_overlays():
    """Test each window overlays its own card input on the previous result."""
    windows = caption_windows([("a", 3.0), ("b", 5.0), ("c", 4.0)])
    rendered = build_caption_graph(windows).render()

    chains = rendered.split(";")
    assert len(chains) == 3
    assert chains[0].startswith("[0:v][1:v]overlay=")
    assert chains[1].startswith("[cap1][2:v]overlay=")
    assert chains[2].startswith("[cap2][3:v]overlay=")
    assert chains[2].endswith("[vout]")


def test_no_captions_is_an_error():
    with pytest.raises(ValueError):
        build_caption_graph([])


def test_unknown_style():
    with pytest.raises(ValueError):
        get_style("neon")


def test_caption_card_is_transparent(tmp_path):
    """Test a caption card is an RGBA PNG with clear corners."""
    path = render_caption_image("ok\na much longer second line", tmp_path / "card.png")

    with Image.open(path) as card:
        assert card.format == "PNG"
        assert card.mode == "RGBA"
        assert card.width > card.height > 0
        assert card.getpixel((0, 0))[3] == 0


def test_boxed_card_has_background(tmp_path):
    """Test box styles fill the card behind the text."""
    path = render_caption_image("Hi", tmp_path / "card.png", style=get_style("boxed"))

    with Image.open(path) as card:
        assert card.getpixel((0, 0)) == (0, 0, 0, 0x99)


def test_burn_captions_copies_audio(runner, tmp_path):
    """Test burning re-encodes video, copies audio and forces MP4."""
    output = tmp_path / "final.part.mp4"
    cards = [tmp_path / "cap_0.png", tmp_path / "cap_1.png"]
    burn_captions(
        Path("merged.mp4"), output, caption_windows([("a", 3.0), ("b", 2.0)]), cards, runner=runner
    )

    argv, _ = runner.calls[0]
    assert argv[:6] == ["-i", "merged.mp4", "-i", str(cards[0]), "-i", str(cards[1])]
    assert argv[argv.index("-c:a") + 1] == "copy"
    assert argv[argv.index("-f") + 1] == "mp4"
    assert "[vout]" in argv
    assert "+faststart" in argv
    assert all(card.exists() for card in cards)
    assert output.exists()


def test_card_paths_must_match_windows(runner, tmp_path):
    with pytest.raises(ValueError):
        burn_captions(Path("merged.mp4"), tmp_path / "out.mp4", caption_windows([("a", 3.0)]), [], runner=runner)


def test_bad_font_is_caption_error(runner, tmp_path):
    """Test an unreadable font file fails the caption step."""
    with pytest.raises(CaptionError):
        burn_captions(
            Path("merged.mp4"),
            tmp_path / "out.mp4",
            caption_windows([("a", 3.0)]),
            [tmp_path / "cap.png"],
            font_file=str(tmp_path / "missing.ttf"),
            runner=runner,
        )
    assert runner.calls == []


def test_burn_failure_is_caption_error(failing_runner, tmp_path):
    runner = failing_runner("burn")
    with pytest.raises(CaptionError):
        burn_captions(
            Path("merged.mp4"),
            tmp_path / "out.mp4",
            caption_windows([("a", 3.0)]),
            [tmp_path / "cap.png"],
            runner=runner,
        )
