"""Tests for the ffmpeg runner."""

import subprocess
import threading
from unittest.mock import patch

import pytest

from slidecast.editor.ffmpeg import FFmpegRunner
from slidecast.errors import RunCancelled, TranscodeError, TranscodeTimeout


class FinishedProc:
    """Process that exits immediately."""

    def __init__(self, returncode=0, stderr=b""):
        self.returncode = returncode
        self._stderr = stderr

    def communicate(self, timeout=None):
        return b"", self._stderr

    def kill(self):
        pass


class HangingProc:
    """Process that never exits until killed."""

    def __init__(self, on_poll=None):
        self.returncode = None
        self.killed = False
        self._on_poll = on_poll

    def communicate(self, timeout=None):
        if self.killed:
            return b"", b""
        if self._on_poll:
            self._on_poll()
        raise subprocess.TimeoutExpired("ffmpeg", timeout)

    def kill(self):
        self.killed = True
        self.returncode = -9


@pytest.fixture
def ffmpeg_runner():
    return FFmpegRunner(binary="ffmpeg", timeout=0.05, poll_interval=0.01)


def test_build_command(ffmpeg_runner):
    """Test global options precede the caller's arguments."""
    cmd = ffmpeg_runner.build_command(["-i", "in.png", 30])
    assert cmd == [
        "ffmpeg", "-hide_banner", "-nostdin", "-loglevel", "error", "-y",
        "-i", "in.png", "30",
    ]


def test_successful_run(ffmpeg_runner):
    """Test a zero exit status returns ffmpeg's log."""
    proc = FinishedProc(stderr=b"Duration: 00:00:02.00")
    with patch("slidecast.editor.ffmpeg.subprocess.Popen", return_value=proc) as popen:
        log = ffmpeg_runner.run(["-i", "a.mp4", "b.mp4"], description="copy", loglevel="info")

    assert log == "Duration: 00:00:02.00"
    cmd = popen.call_args[0][0]
    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-loglevel") + 1] == "info"
    assert cmd[-1] == "b.mp4"


def test_nonzero_exit_raises(ffmpeg_runner):
    """Test a failing ffmpeg surfaces its exit code and stderr."""
    proc = FinishedProc(returncode=1, stderr=b"Invalid data found")
    with patch("slidecast.editor.ffmpeg.subprocess.Popen", return_value=proc):
        with pytest.raises(TranscodeError) as exc_info:
            ffmpeg_runner.run(["-i", "bad.mp4", "out.mp4"], description="probe")

    assert exc_info.value.returncode == 1
    assert "Invalid data found" in exc_info.value.stderr
    assert not isinstance(exc_info.value, TranscodeTimeout)


def test_missing_binary_raises(ffmpeg_runner):
    """Test an unstartable binary is reported as a transcode error."""
    with patch("slidecast.editor.ffmpeg.subprocess.Popen", side_effect=FileNotFoundError("ffmpeg")):
        with pytest.raises(TranscodeError):
            ffmpeg_runner.run(["-version"])


def test_timeout_kills_process(ffmpeg_runner):
    """Test a call running past its budget is killed."""
    proc = HangingProc()
    with patch("slidecast.editor.ffmpeg.subprocess.Popen", return_value=proc):
        with pytest.raises(TranscodeTimeout):
            ffmpeg_runner.run(["-i", "slow.mp4", "out.mp4"], description="slow")

    assert proc.killed


def test_cancel_before_start(ffmpeg_runner):
    """Test a set token stops the call before ffmpeg starts."""
    cancel = threading.Event()
    cancel.set()
    with patch("slidecast.editor.ffmpeg.subprocess.Popen") as popen:
        with pytest.raises(RunCancelled):
            ffmpeg_runner.run(["-i", "a.mp4", "b.mp4"], cancel=cancel)

    popen.assert_not_called()


def test_cancel_during_run():
    """Test setting the token mid-call kills the process."""
    cancel = threading.Event()
    proc = HangingProc(on_poll=cancel.set)
    runner = FFmpegRunner(binary="ffmpeg", timeout=60, poll_interval=0.01)

    with patch("slidecast.editor.ffmpeg.subprocess.Popen", return_value=proc):
        with pytest.raises(RunCancelled):
            runner.run(["-i", "a.mp4", "b.mp4"], cancel=cancel)

    assert proc.killed


def test_timeout_defaults_to_config():
    """Test the runner falls back to the configured timeout."""
    from slidecast.config import config

    assert FFmpegRunner(binary="ffmpeg").timeout == config.ffmpeg_timeout
