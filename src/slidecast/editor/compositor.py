"""Joining scene clips: plain concatenation and cross-fade transitions."""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from ..models.options import TransitionKind
from ..errors import MergeError, RunCancelled, TranscodeError, TransitionError
from .clips import SceneClip
from .ffmpeg import DELIVERY_AUDIO_ARGS, DELIVERY_VIDEO_ARGS, FASTSTART_ARGS, Arg, FFmpegRunner
from .filtergraph import Filter, FilterGraph

logger = logging.getLogger(__name__)


def _quote_concat_path(path: Path) -> str:
    # concat demuxer syntax: single-quoted, embedded quotes as '\''
    return "'" + str(path.resolve()).replace("'", "'\\''") + "'"


def write_concat_list(clip_paths: Sequence[Path], list_path: Path) -> Path:
    """Write a concat demuxer playlist for ``clip_paths``."""
    lines = [f"file {_quote_concat_path(p)}" for p in clip_paths]
    list_path.parent.mkdir(parents=True, exist_ok=True)
    list_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return list_path


def finalize_single_clip(
    clip_path: Path,
    output_path: Path,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> Path:
    """Re-encode one clip with delivery settings and fast-start.

    Raises:
        MergeError: If encoding fails.
    """
    runner = runner or FFmpegRunner()
    args: List[Arg] = [
        "-i", clip_path,
        *DELIVERY_VIDEO_ARGS,
        *DELIVERY_AUDIO_ARGS,
        *FASTSTART_ARGS,
        output_path,
    ]
    try:
        runner.run(args, description="finalize single clip", cancel=cancel)
    except RunCancelled:
        raise
    except TranscodeError as e:
        raise MergeError(f"Finalizing clip failed: {e}") from e
    return output_path


def concat_clips(
    clip_paths: Sequence[Path],
    output_path: Path,
    list_path: Path,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> Path:
    """Concatenate clips without transitions.

    Stream-copies through the concat demuxer; clips built by
    ``build_scene_clip`` share codecs and parameters so this is the normal
    path. If the copy fails, retries once with a full re-encode.

    Args:
        clip_paths: Clips in playback order.
        output_path: Where to write the joined video.
        list_path: Where to write the demuxer playlist (caller cleans up).
        runner: Transcoding runner.
        cancel: Cancellation token.

    Returns:
        Path to the joined video.

    Raises:
        ValueError: If ``clip_paths`` is empty.
        MergeError: If both copy and re-encode fail.
    """
    if not clip_paths:
        raise ValueError("No clips provided")

    for clip_path in clip_paths:
        if not clip_path.exists():
            raise MergeError(f"Clip not found: {clip_path}")

    runner = runner or FFmpegRunner()
    write_concat_list(clip_paths, list_path)
    demux_args: List[Arg] = ["-f", "concat", "-safe", "0", "-i", list_path]

    try:
        runner.run(
            [*demux_args, "-c", "copy", *FASTSTART_ARGS, output_path],
            description=f"concatenate {len(clip_paths)} clips (stream copy)",
            cancel=cancel,
        )
        return output_path
    except RunCancelled:
        raise
    except TranscodeError as e:
        logger.warning(f"Stream-copy concat failed, re-encoding instead: {e}")

    try:
        runner.run(
            [*demux_args, *DELIVERY_VIDEO_ARGS, *DELIVERY_AUDIO_ARGS, *FASTSTART_ARGS, output_path],
            description=f"concatenate {len(clip_paths)} clips (re-encode)",
            cancel=cancel,
        )
    except RunCancelled:
        raise
    except TranscodeError as e:
        raise MergeError(f"Concatenation failed: {e}") from e

    return output_path


def transition_offsets(durations: Sequence[float], transition_duration: float) -> List[float]:
    """Start time of each clip on the output timeline.

    ``offset[0] = 0`` and ``offset[i] = offset[i-1] + duration[i-1] - d``:
    every transition overlaps ``d`` seconds of adjacent clips.
    """
    offsets: List[float] = []
    offset = 0.0
    for i in range(len(durations)):
        if i > 0:
            offset += durations[i - 1] - transition_duration
        offsets.append(round(offset, 6))
    return offsets


def expected_transition_duration(durations: Sequence[float], transition_duration: float) -> float:
    """Total output length: sum of clips minus one overlap per transition."""
    if not durations:
        return 0.0
    return sum(durations) - (len(durations) - 1) * transition_duration


def build_transition_graph(
    durations: Sequence[float],
    transition: TransitionKind = TransitionKind.FADE,
    transition_duration: float = 0.5,
) -> FilterGraph:
    """Chain N-1 pairwise xfades over N inputs, and concatenate their audio.

    Each xfade blends the output of the chain so far with the next raw clip.
    Audio is concatenated unmodified, so it is not cross-faded.

    Raises:
        TransitionError: If there are fewer than two clips or a clip is not
            longer than the transition.
    """
    count = len(durations)
    if count < 2:
        raise TransitionError("Transitions need at least two clips")
    if transition_duration <= 0:
        raise TransitionError(f"Transition duration must be positive, got {transition_duration}")

    for i, duration in enumerate(durations):
        if duration <= transition_duration:
            raise TransitionError(
                f"Clip {i} ({duration:.2f}s) is not longer than the "
                f"{transition_duration:.2f}s transition"
            )

    kind = TransitionKind(transition)
    offsets = transition_offsets(durations, transition_duration)
    graph = FilterGraph()

    current = "0:v"
    for i in range(1, count):
        out_label = "vout" if i == count - 1 else f"v{i}"
        graph.add(
            [Filter(
                "xfade",
                transition=kind.value,
                duration=float(transition_duration),
                offset=float(offsets[i]),
            )],
            inputs=[current, f"{i}:v"],
            outputs=[out_label],
        )
        current = out_label

    graph.add(
        [Filter("concat", n=count, v=0, a=1)],
        inputs=[f"{i}:a" for i in range(count)],
        outputs=["aout"],
    )
    return graph


def merge_with_transitions(
    clips: Sequence[SceneClip],
    output_path: Path,
    transition: TransitionKind = TransitionKind.FADE,
    transition_duration: float = 0.5,
    runner: Optional[FFmpegRunner] = None,
    cancel: Optional[threading.Event] = None,
) -> Path:
    """Join clips with cross-fade transitions into a delivery-ready MP4.

    Output length is ``sum(durations) - (N-1) * transition_duration``; the
    concatenated narration is cut to that length. Each transition makes later
    narration lag its picture by a further ``transition_duration``.

    Raises:
        TransitionError: If the graph is invalid or encoding fails.
    """
    for clip in clips:
        if not clip.path.exists():
            raise TransitionError(f"Clip not found: {clip.path}")

    graph = build_transition_graph(
        [c.duration for c in clips], transition, transition_duration
    )
    runner = runner or FFmpegRunner()

    args: List[Arg] = []
    for clip in clips:
        args += ["-i", clip.path]
    args += [
        "-filter_complex", graph.render(),
        "-map", "[vout]",
        "-map", "[aout]",
        *DELIVERY_VIDEO_ARGS,
        *DELIVERY_AUDIO_ARGS,
        "-shortest",
        *FASTSTART_ARGS,
        "-f", "mp4",
        output_path,
    ]

    try:
        runner.run(
            args,
            description=f"xfade {len(clips)} clips ({TransitionKind(transition).value}, {transition_duration:.2f}s)",
            cancel=cancel,
        )
    except RunCancelled:
        raise
    except TranscodeError as e:
        raise TransitionError(f"Transition merge failed: {e}") from e

    return output_path
