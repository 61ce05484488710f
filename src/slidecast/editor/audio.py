"""Audio probing and background music mixing."""

import logging
import re
import threading
from pathlib import Path
from typing import Optional

from moviepy import VideoFileClip

from ..errors import MergeError, ProbeFailure, RunCancelled, TranscodeError
from .ffmpeg import AUDIO_BITRATE, AUDIO_RATE, FASTSTART_ARGS, FFmpegRunner
from .filtergraph import Filter, FilterGraph

logger = logging.getLogger(__name__)

DEFAULT_SCENE_DURATION = 5.0
MIN_SCENE_DURATION = 3.0

_DURATION = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def parse_duration(ffmpeg_log: str) -> Optional[float]:
    """Read the container duration from ffmpeg's input banner.

    Returns:
        Seconds, or None if ffmpeg reported no duration (``Duration: N/A``).
    """
    match = _DURATION.search(ffmpeg_log)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def get_audio_duration(
    audio_path: Path,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> float:
    """Get the duration of an audio file.

    The file's first audio stream is stream-copied to the null muxer, so the
    probe is bounded by the runner's timeout and honours ``cancel``.

    Args:
        audio_path: Path to audio file.
        runner: Transcoding runner.
        cancel: Cancellation token.

    Returns:
        Duration in seconds.

    Raises:
        ProbeFailure: If the file is missing, unreadable, has no audio stream,
            reports no duration, or the probe timed out.
        RunCancelled: If ``cancel`` was set.
    """
    if not audio_path.is_file():
        raise ProbeFailure(f"Audio file not found: {audio_path}")

    runner = runner or FFmpegRunner()
    try:
        log = runner.run(
            ["-i", audio_path, "-map", "0:a:0", "-c", "copy", "-f", "null", "-"],
            description=f"probe {audio_path.name}",
            cancel=cancel,
            loglevel="info",
        )
    except RunCancelled:
        raise
    except TranscodeError as e:
        raise ProbeFailure(f"Cannot read {audio_path}: {e}") from e

    duration = parse_duration(log or "")
    if not duration or duration <= 0:
        raise ProbeFailure(f"No usable duration in {audio_path}")
    return duration


def get_video_duration(video_path: Path) -> float:
    """Get the playback duration of a video file in seconds."""
    clip = VideoFileClip(str(video_path))
    try:
        return float(clip.duration)
    finally:
        clip.close()


def probe_duration(
    audio_path: Path,
    default: float = DEFAULT_SCENE_DURATION,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> float:
    """Return the duration of ``audio_path``, or ``default`` if it can't be read.

    A failed or timed-out probe is never fatal to the caller. Cancellation is.
    """
    try:
        return get_audio_duration(audio_path, runner=runner, cancel=cancel)
    except ProbeFailure as e:
        logger.warning(f"Could not probe audio, using default duration {default}s: {e}")
        return default


def resolve_scene_duration(
    audio_path: Optional[Path],
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> float:
    """Playback length for a scene: ``max(3, audio)``, or 5s without audio."""
    if audio_path is None:
        return DEFAULT_SCENE_DURATION

    duration = probe_duration(audio_path, runner=runner, cancel=cancel)
    resolved = max(MIN_SCENE_DURATION, duration)
    if resolved > duration:
        logger.info(
            f"Audio {audio_path.name} is {duration:.2f}s, extending to {resolved:.1f}s minimum"
        )
    return resolved


def build_music_mix_graph(volume: float) -> FilterGraph:
    """Filter graph attenuating input 1 and adding it onto input 0's audio."""
    if not 0.0 <= volume <= 1.0:
        raise ValueError(f"Music volume must be within [0, 1], got {volume}")

    graph = FilterGraph()
    graph.add([Filter("volume", float(volume))], inputs=["1:a"], outputs=["music"])
    graph.add(
        [Filter("amix", inputs=2, duration="shortest", normalize=0)],
        inputs=["0:a", "music"],
        outputs=["aout"],
    )
    return graph


def mix_background_music(
    video_path: Path,
    music_path: Path,
    output_path: Path,
    volume: float = 0.2,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> Path:
    """Overlay a music track under the narration of ``video_path``.

    The mixed audio ends with the shorter of narration and music; the video
    stream is copied untouched.

    Args:
        video_path: Video carrying the narration audio.
        music_path: Background music file.
        output_path: Where to write the mixed video.
        volume: Music volume factor in [0, 1].
        runner: Transcoding runner.
        cancel: Cancellation token.

    Returns:
        Path to the mixed video.

    Raises:
        MergeError: If ffmpeg fails to mix the tracks.
    """
    runner = runner or FFmpegRunner()
    graph = build_music_mix_graph(volume)

    args = [
        "-i", video_path,
        "-i", music_path,
        "-filter_complex", graph.render(),
        "-map", "0:v",
        "-map", "[aout]",
        "-c:v", "copy",
        "-c:a", "aac",
        "-b:a", AUDIO_BITRATE,
        "-ar", str(AUDIO_RATE),
        *FASTSTART_ARGS,
        output_path,
    ]

    try:
        runner.run(args, description=f"mix background music at {volume:.2f}", cancel=cancel)
    except RunCancelled:
        raise
    except TranscodeError as e:
        raise MergeError(f"Background music mix failed: {e}") from e

    return output_path
