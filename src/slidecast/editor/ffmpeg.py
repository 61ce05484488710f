"""Synchronous ffmpeg invocation with timeout and cancellation."""

import logging
import subprocess
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..config import config
from ..errors import RunCancelled, TranscodeError, TranscodeTimeout

logger = logging.getLogger(__name__)

Arg = Union[str, Path, int, float]

# Frame and stream parameters shared by every intermediate and final file
FPS = 30
WIDTH = 1920
HEIGHT = 1080
AUDIO_BITRATE = "128k"
AUDIO_RATE = 44100
AUDIO_CHANNELS = 2

DELIVERY_VIDEO_ARGS = ["-c:v", "libx264", "-preset", "medium", "-crf", "23", "-pix_fmt", "yuv420p"]
DELIVERY_AUDIO_ARGS = ["-c:a", "aac", "-b:a", AUDIO_BITRATE, "-ar", str(AUDIO_RATE)]
FASTSTART_ARGS = ["-movflags", "+faststart"]


def default_binary() -> str:
    """Return the ffmpeg executable: config override, else moviepy's."""
    if config.ffmpeg_binary:
        return config.ffmpeg_binary
    from moviepy.config import FFMPEG_BINARY

    return FFMPEG_BINARY


class FFmpegRunner:
    """Runs ffmpeg argument vectors as blocking request/response calls.

    Every call is bounded by ``timeout`` seconds and polls an optional
    cancellation event; either condition kills the process.
    """

    def __init__(
        self,
        binary: Optional[str] = None,
        timeout: Optional[float] = None,
        poll_interval: float = 0.5,
    ) -> None:
        self._binary = binary
        self._timeout = timeout if timeout is not None else config.ffmpeg_timeout
        self._poll_interval = poll_interval

    @property
    def binary(self) -> str:
        if self._binary is None:
            self._binary = default_binary()
        return self._binary

    @property
    def timeout(self) -> float:
        return self._timeout

    def build_command(self, args: Sequence[Arg], loglevel: str = "error") -> List[str]:
        return [
            self.binary,
            "-hide_banner",
            "-nostdin",
            "-loglevel", loglevel,
            "-y",
            *[str(a) for a in args],
        ]

    def run(
        self,
        args: Sequence[Arg],
        description: str = "",
        cancel: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        loglevel: str = "error",
    ) -> str:
        """Run ffmpeg with the given arguments.

        Args:
            args: Arguments after the global options (inputs, filters, output).
            description: Human-readable label for logging and errors.
            cancel: Event that aborts the call when set.
            timeout: Per-call override of the configured timeout.
            loglevel: ffmpeg log level; raise it to read stream information.

        Returns:
            Everything ffmpeg wrote to stderr.

        Raises:
            RunCancelled: If ``cancel`` was set before or during the call.
            TranscodeTimeout: If the call ran longer than the timeout.
            TranscodeError: If ffmpeg could not start or exited non-zero.
        """
        if cancel is not None and cancel.is_set():
            raise RunCancelled(f"Cancelled before {description or 'ffmpeg'}")

        cmd = self.build_command(args, loglevel)
        budget = timeout if timeout is not None else self._timeout
        logger.info(f"FFmpeg: {description}")
        logger.debug(f"Command: {' '.join(cmd)}")

        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        except OSError as e:
            raise TranscodeError(f"Could not start ffmpeg ({description}): {e}") from e

        deadline = time.monotonic() + budget
        while True:
            try:
                _, stderr_bytes = proc.communicate(timeout=self._poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.is_set():
                    self._kill(proc)
                    raise RunCancelled(f"Cancelled during {description or 'ffmpeg'}")
                if time.monotonic() >= deadline:
                    self._kill(proc)
                    raise TranscodeTimeout(
                        f"FFmpeg timed out after {budget:.0f}s ({description})"
                    )

        stderr = (stderr_bytes or b"").decode("utf-8", errors="ignore")
        if proc.returncode != 0:
            logger.error(f"FFmpeg stderr: {stderr[-1000:]}")
            raise TranscodeError(
                f"FFmpeg failed ({description}): {stderr[-500:].strip()}",
                returncode=proc.returncode,
                stderr=stderr,
            )
        return stderr

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        proc.kill()
        proc.communicate()
