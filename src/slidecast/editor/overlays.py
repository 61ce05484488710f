"""Burned-in, time-gated captions for assembled slideshows."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from ..errors import CaptionError, RunCancelled, TranscodeError
from .ffmpeg import DELIVERY_VIDEO_ARGS, FASTSTART_ARGS, FFmpegRunner
from .filtergraph import Filter, FilterGraph, format_value

logger = logging.getLogger(__name__)

MAX_LINE_CHARS = 100
MAX_LINES = 2


@dataclass
class CaptionStyle:
    """Configuration for caption styling."""

    font_size: int = 28
    color: str = "white"
    border_width: int = 3
    border_color: str = "black"
    margin_bottom: int = 120
    box_color: Optional[str] = None
    box_padding: int = 10


# Preset styles
STYLES = {
    "caption": CaptionStyle(),
    "subtitle": CaptionStyle(font_size=36, border_width=2, margin_bottom=100),
    "boxed": CaptionStyle(
        border_width=0,
        box_color="#00000099",
    ),
    "minimal": CaptionStyle(font_size=24, border_width=1, margin_bottom=60),
}


@dataclass
class CaptionWindow:
    """Caption text shown during ``[start, end)`` seconds of the final video."""

    text: str
    start: float
    end: float


def get_style(name: str) -> CaptionStyle:
    """Get a caption style by name.

    Raises:
        ValueError: If style not found.
    """
    if name not in STYLES:
        raise ValueError(f"Unknown style: {name}. Available: {list(STYLES.keys())}")
    return STYLES[name]


def wrap_caption(text: str, max_chars: int = MAX_LINE_CHARS, max_lines: int = MAX_LINES) -> str:
    """Greedily pack words into lines of at most ``max_chars``.

    Only the first ``max_lines`` lines are kept; the rest of the text is
    dropped without an ellipsis. A word longer than ``max_chars`` gets a line
    of its own.
    """
    words = text.split()
    lines: List[str] = []
    current = ""

    for word in words:
        if current and len(current) + 1 + len(word) > max_chars:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}" if current else word

    if current:
        lines.append(current)

    return "\n".join(lines[:max_lines])


def caption_windows(entries: Sequence[Tuple[str, float]]) -> List[CaptionWindow]:
    """Lay captions end to end.

    Args:
        entries: ``(caption_text, duration)`` per scene, in playback order.

    Returns:
        One window per scene; windows are adjacent and never overlap.
    """
    windows: List[CaptionWindow] = []
    current_time = 0.0
    for text, duration in entries:
        start = current_time
        current_time += duration
        windows.append(CaptionWindow(text=wrap_caption(text), start=start, end=current_time))
    return windows


def load_font(font_file: Optional[str], size: int) -> ImageFont.FreeTypeFont:
    """Load ``font_file`` at ``size``, or Pillow's bundled font."""
    if font_file:
        return ImageFont.truetype(font_file, size)
    return ImageFont.load_default(size=size)


def render_caption_image(
    text: str,
    output_path: Path,
    style: Optional[CaptionStyle] = None,
    font_file: Optional[str] = None,
) -> Path:
    """Render caption text onto a transparent PNG sized to the text.

    Lines are centered. The stroke and optional background box come from
    ``style``.

    Args:
        text: Caption text, already wrapped.
        output_path: Where to write the PNG.
        style: Caption style. Uses the "caption" preset if None.
        font_file: TrueType/OpenType font. Uses Pillow's default font if None.

    Returns:
        Path to the PNG.
    """
    style = style or STYLES["caption"]
    font = load_font(font_file, style.font_size)
    stroke = style.border_width

    measure = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    left, top, right, bottom = measure.multiline_textbbox(
        (0, 0), text, font=font, align="center", stroke_width=stroke
    )
    pad = style.box_padding if style.box_color else 0
    size = (max(1, right - left + 2 * pad), max(1, bottom - top + 2 * pad))

    image = Image.new("RGBA", size, style.box_color or (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.multiline_text(
        (pad - left, pad - top),
        text,
        font=font,
        fill=style.color,
        align="center",
        stroke_width=stroke,
        stroke_fill=style.border_color if stroke else None,
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(output_path, format="PNG")
    logger.debug(f"Rendered caption card {output_path.name} ({size[0]}x{size[1]})")
    return output_path


def overlay_filter(window: CaptionWindow, style: CaptionStyle) -> Filter:
    """An ``overlay`` stage centering a caption card, active only during ``window``."""
    return Filter(
        "overlay",
        x="(W-w)/2",
        y=f"H-{style.margin_bottom}",
        enable=f"gte(t,{format_value(window.start)})*lt(t,{format_value(window.end)})",
    )


def build_caption_graph(
    windows: Sequence[CaptionWindow],
    style: Optional[CaptionStyle] = None,
) -> FilterGraph:
    """Layer caption card ``i`` (input ``i+1``) over input 0's video.

    The last overlay writes ``[vout]``.
    """
    if not windows:
        raise ValueError("No captions to draw")
    style = style or STYLES["caption"]

    graph = FilterGraph()
    source = "0:v"
    for i, window in enumerate(windows, start=1):
        label = "vout" if i == len(windows) else f"cap{i}"
        graph.add([overlay_filter(window, style)], inputs=[source, f"{i}:v"], outputs=[label])
        source = label
    return graph


def burn_captions(
    video_path: Path,
    output_path: Path,
    windows: Sequence[CaptionWindow],
    image_paths: Sequence[Path],
    style: Optional[CaptionStyle] = None,
    font_file: Optional[str] = None,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> Path:
    """Re-encode ``video_path`` with captions composited into the pixels.

    One caption card per window is rendered to ``image_paths``; the caller owns
    those files. Audio is copied. The output is written as MP4 with fast-start
    regardless of the file extension.

    Raises:
        CaptionError: If a caption card cannot be rendered or ffmpeg fails.
    """
    if len(image_paths) != len(windows):
        raise ValueError(f"Need {len(windows)} caption image paths, got {len(image_paths)}")

    runner = runner or FFmpegRunner()
    style = style or STYLES["caption"]
    graph = build_caption_graph(windows, style)

    try:
        for window, image_path in zip(windows, image_paths):
            render_caption_image(window.text, image_path, style, font_file)
    except OSError as e:
        raise CaptionError(f"Caption rendering failed: {e}") from e

    args: List = ["-i", video_path]
    for image_path in image_paths:
        args += ["-i", image_path]
    args += [
        "-filter_complex", graph.render(),
        "-map", "[vout]",
        "-map", "0:a",
        *DELIVERY_VIDEO_ARGS,
        "-c:a", "copy",
        *FASTSTART_ARGS,
        "-f", "mp4",
        output_path,
    ]

    try:
        runner.run(args, description=f"burn {len(windows)} captions", cancel=cancel)
    except RunCancelled:
        raise
    except TranscodeError as e:
        raise CaptionError(f"Caption rendering failed: {e}") from e

    return output_path
