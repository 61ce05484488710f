"""Still-image scene clips with narration."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..errors import ClipBuildError, MissingAssetError, RunCancelled, TranscodeError
from .ffmpeg import (
    AUDIO_BITRATE,
    AUDIO_CHANNELS,
    AUDIO_RATE,
    FPS,
    HEIGHT,
    WIDTH,
    Arg,
    FFmpegRunner,
)
from .filtergraph import Filter, FilterChain

logger = logging.getLogger(__name__)


@dataclass
class SceneClip:
    """An encoded, run-scoped video segment for exactly one scene."""

    scene_index: int
    path: Path
    duration: float


def letterbox_chain(width: int = WIDTH, height: int = HEIGHT) -> FilterChain:
    """Fit inside ``width``x``height`` keeping aspect ratio, pad centered in black."""
    return FilterChain([
        Filter("scale", width, height, force_original_aspect_ratio="decrease"),
        Filter("pad", width, height, "(ow-iw)/2", "(oh-ih)/2", "black"),
        Filter("setsar", 1),
        Filter("format", "yuv420p"),
    ])


def silent_audio_source(duration: float) -> str:
    """lavfi source description for a silent stereo track."""
    return Filter(
        "anullsrc",
        channel_layout="stereo",
        sample_rate=AUDIO_RATE,
        duration=float(duration),
    ).render()


def scene_clip_args(
    image_path: Path,
    audio_path: Optional[Path],
    duration: float,
    output_path: Path,
) -> List[Arg]:
    """Build the ffmpeg arguments that render one scene clip."""
    args: List[Arg] = [
        "-loop", "1",
        "-framerate", str(FPS),
        "-t", f"{duration:.3f}",
        "-i", image_path,
    ]

    if audio_path is not None:
        args += ["-i", audio_path]
    else:
        args += ["-f", "lavfi", "-i", silent_audio_source(duration)]

    args += [
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-vf", letterbox_chain().render(),
        "-r", str(FPS),
        "-c:v", "libx264",
        "-preset", "veryfast",
        "-crf", "23",
        "-pix_fmt", "yuv420p",
    ]

    if audio_path is not None:
        # Pad short narration with silence; -t below trims long narration
        args += ["-af", FilterChain([Filter("apad")]).render()]

    args += [
        "-c:a", "aac",
        "-b:a", AUDIO_BITRATE,
        "-ar", str(AUDIO_RATE),
        "-ac", str(AUDIO_CHANNELS),
        "-t", f"{duration:.3f}",
        output_path,
    ]
    return args


def build_scene_clip(
    image_path: Optional[Union[str, Path]],
    audio_path: Optional[Union[str, Path]],
    duration: float,
    output_path: Path,
    scene_index: int = 0,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> SceneClip:
    """Render a still image (plus narration, or silence) into a fixed-length clip.

    Args:
        image_path: Scene image. Required.
        audio_path: Narration audio. ``None`` synthesizes silence.
        duration: Exact clip length in seconds; the caller applies the 3s floor.
        output_path: Where to write the clip.
        scene_index: Index of the scene, used in errors and logs.
        runner: Transcoding runner.
        cancel: Cancellation token.

    Returns:
        The SceneClip that was written.

    Raises:
        MissingAssetError: If the image is absent.
        ValueError: If ``duration`` is not positive.
        ClipBuildError: If encoding fails.
    """
    if not image_path:
        raise MissingAssetError(scene_index)
    image = Path(image_path)
    if not image.is_file():
        raise MissingAssetError(scene_index, image)

    if duration <= 0:
        raise ValueError(f"Scene {scene_index}: duration must be positive, got {duration}")

    audio = Path(audio_path) if audio_path else None
    if audio is not None and not audio.is_file():
        logger.warning(f"Scene {scene_index}: audio {audio} missing, using silence")
        audio = None

    runner = runner or FFmpegRunner()
    args = scene_clip_args(image, audio, duration, output_path)

    try:
        runner.run(
            args,
            description=f"scene {scene_index} clip ({duration:.2f}s, {'narrated' if audio else 'silent'})",
            cancel=cancel,
        )
    except RunCancelled:
        raise
    except TranscodeError as e:
        raise ClipBuildError(scene_index, str(e)) from e

    return SceneClip(scene_index=scene_index, path=output_path, duration=duration)
