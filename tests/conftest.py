"""Shared pytest fixtures and configuration."""

from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from slidecast.editor.ffmpeg import FFmpegRunner
from slidecast.errors import RunCancelled, TranscodeError
from slidecast.models import Scene


class FakeRunner(FFmpegRunner):
    """Records every ffmpeg call and creates its output file instead of encoding.

    Calls whose description contains one of ``fail_on`` raise TranscodeError.
    Successful calls return ``log`` as ffmpeg's stderr.
    """

    def __init__(self, fail_on: Tuple[str, ...] = (), log: str = "") -> None:
        super().__init__(binary="ffmpeg", timeout=5)
        self.fail_on = fail_on
        self.log = log
        self.calls: List[Tuple[List[str], str]] = []

    def run(self, args, description="", cancel=None, timeout=None, loglevel="error") -> str:
        if cancel is not None and cancel.is_set():
            raise RunCancelled(f"Cancelled before {description}")

        argv = [str(a) for a in args]
        self.calls.append((argv, description))

        if any(marker in description for marker in self.fail_on):
            raise TranscodeError(f"simulated failure: {description}", returncode=1, stderr="boom")

        if argv[-1] != "-":
            output = Path(argv[-1])
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(b"fake media")
        return self.log

    @property
    def descriptions(self) -> List[str]:
        return [d for _, d in self.calls]

    def args_for(self, marker: str) -> Optional[List[str]]:
        for argv, description in self.calls:
            if marker in description:
                return argv
        return None


@pytest.fixture
def runner():
    """Fake transcoding runner that always succeeds."""
    return FakeRunner()


@pytest.fixture
def failing_runner():
    """Factory for fake runners that fail on calls matching the given markers."""

    def _make(*markers: str) -> FakeRunner:
        return FakeRunner(fail_on=markers)

    return _make


@pytest.fixture
def logging_runner():
    """Factory for fake runners whose calls return the given ffmpeg log."""

    def _make(log: str) -> FakeRunner:
        return FakeRunner(log=log)

    return _make


@pytest.fixture
def image_file(tmp_path):
    """A scene image on disk."""
    path = tmp_path / "assets" / "scene.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x89PNG fake")
    return path


@pytest.fixture
def audio_file(tmp_path):
    """A narration file on disk."""
    path = tmp_path / "assets" / "narration.mp3"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"ID3 fake")
    return path


@pytest.fixture
def make_scenes(tmp_path):
    """Build narrated scenes with image and audio files on disk."""

    def _make(count: int, narrated: bool = True) -> List[Scene]:
        assets = tmp_path / "assets"
        assets.mkdir(parents=True, exist_ok=True)
        scenes = []
        for i in range(count):
            image = assets / f"scene_{i}.png"
            image.write_bytes(b"\x89PNG fake")
            audio = None
            if narrated:
                audio = assets / f"scene_{i}.mp3"
                audio.write_bytes(b"ID3 fake")
            scenes.append(Scene(
                index=i,
                title=f"Scene {i + 1}",
                description=f"Description of scene {i + 1}.",
                dialogue=f"Line {i + 1}",
                image_path=str(image),
                audio_path=str(audio) if audio else None,
            ))
        return scenes

    return _make


@pytest.fixture
def audio_durations(monkeypatch):
    """Make audio probing return queued durations instead of reading files."""
    queue: List[float] = []

    def _fake_duration(path, runner=None, cancel=None):
        return queue.pop(0)

    monkeypatch.setattr("slidecast.editor.audio.get_audio_duration", _fake_duration)
    return queue
