"""Exception hierarchy for slideshow assembly."""

from pathlib import Path
from typing import Optional, Union


class SlidecastError(Exception):
    """Base class for all slidecast errors."""


class TranscodeError(SlidecastError):
    """An ffmpeg invocation exited unsuccessfully."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class TranscodeTimeout(TranscodeError):
    """An ffmpeg invocation exceeded its time budget and was killed."""


class RunCancelled(TranscodeError):
    """A run was cancelled while an ffmpeg invocation was in flight."""


class MissingAssetError(SlidecastError):
    """A required input file (scene image, clip) is absent."""

    def __init__(self, scene_index: int, path: Optional[Union[str, Path]] = None) -> None:
        if path:
            message = f"Scene {scene_index}: required image not found: {path}"
        else:
            message = f"Scene {scene_index}: no image attached"
        super().__init__(message)
        self.scene_index = scene_index
        self.path = path


class ProbeFailure(SlidecastError):
    """Duration of an audio asset could not be read.

    Always recovered with a default duration; never escapes the prober.
    """


class ClipBuildError(SlidecastError):
    """Encoding the clip for one scene failed."""

    def __init__(self, scene_index: int, reason: str = "") -> None:
        message = f"Failed to build clip for scene {scene_index}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.scene_index = scene_index


class MergeError(SlidecastError):
    """Joining scene clips, or mixing music into them, failed."""


class TransitionError(MergeError):
    """The cross-fade filter graph could not be built or encoded."""


class CaptionError(SlidecastError):
    """Burning captions into the merged video failed."""
