"""Scene-to-video assembly pipeline."""

import logging
import os
import threading
import time
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

from .config import config
from .editor.audio import mix_background_music, resolve_scene_duration
from .editor.clips import SceneClip, build_scene_clip
from .editor.compositor import (
    concat_clips,
    expected_transition_duration,
    finalize_single_clip,
    merge_with_transitions,
)
from .editor.ffmpeg import FFmpegRunner
from .editor.overlays import burn_captions, caption_windows, get_style
from .errors import MissingAssetError
from .jobs import JobStore
from .models import FinalVideo, JobState, RunOptions, Scene

logger = logging.getLogger(__name__)

OUTPUT_URL_PREFIX = "/output/final"


def new_run_namespace() -> str:
    """Unique, time-ordered prefix for one run's files."""
    return f"run_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class _Run:
    """Per-invocation bookkeeping: state, job id and the files this run created."""

    def __init__(self, temp_dir: Path, job_store: Optional[JobStore], job_id: Optional[str]) -> None:
        self.namespace = new_run_namespace()
        self.temp_dir = temp_dir
        self.state = JobState.IDLE
        self.created: List[Path] = []
        self._job_store = job_store
        self.job_id = job_id
        if job_store is not None:
            self.job_id = job_store.create(job_id).id

    def temp_path(self, name: str) -> Path:
        path = self.temp_dir / f"{self.namespace}_{name}"
        self.created.append(path)
        return path

    def track(self, path: Path) -> Path:
        self.created.append(path)
        return path

    def keep(self, path: Path) -> None:
        """Stop tracking ``path`` so cleanup leaves it in place."""
        self.created.remove(path)

    def enter(
        self,
        state: JobState,
        result: Optional[FinalVideo] = None,
        error: Optional[str] = None,
    ) -> None:
        logger.info(f"[{self.namespace}] {self.state.value} -> {state.value}")
        self.state = state
        if self._job_store is not None and self.job_id is not None:
            self._job_store.transition(self.job_id, state, result=result, error=error)

    def cleanup(self) -> None:
        """Best-effort removal of exactly the files this run created."""
        for path in self.created:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to clean up {path}: {e}")
        self.created.clear()


class SlideshowPipeline:
    """Turns scenes with images and narration into one captioned video.

    Runs are sequential internally (one ffmpeg process at a time) and
    independent of each other; the same pipeline may serve concurrent runs.
    """

    def __init__(
        self,
        output_dir: Optional[Path] = None,
        temp_dir: Optional[Path] = None,
        runner: Optional[FFmpegRunner] = None,
        job_store: Optional[JobStore] = None,
        font_file: Optional[str] = None,
        url_prefix: str = OUTPUT_URL_PREFIX,
    ) -> None:
        """Initialize the pipeline.

        Args:
            output_dir: Directory receiving finished videos.
            temp_dir: Shared scratch directory; runs namespace their files in it.
            runner: Transcoding runner. Created from config if not provided.
            job_store: Optional store recording each state transition.
            font_file: Caption font. Defaults to config.caption_font.
            url_prefix: Prefix of the relative reference returned to callers.
        """
        self._output_dir = Path(output_dir) if output_dir else config.resolve_path(config.output_dir)
        self._temp_dir = Path(temp_dir) if temp_dir else config.resolve_path(config.temp_dir)
        self._runner = runner or FFmpegRunner()
        self._job_store = job_store
        self._font_file = font_file or config.caption_font
        self._url_prefix = url_prefix.rstrip("/")

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    def run(
        self,
        scenes: Sequence[Scene],
        options: Optional[RunOptions] = None,
        job_id: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> FinalVideo:
        """Assemble ``scenes`` into a single MP4.

        Args:
            scenes: Scenes in playback order. Each needs an image; audio is optional.
            options: Transition and music options.
            job_id: Id to register with the job store.
            cancel: Set to abort the run; the in-flight ffmpeg call is killed.

        Returns:
            The finished video.

        Raises:
            MissingAssetError: If a scene has no image.
            ClipBuildError: If a scene clip fails to encode.
            MergeError: If joining or music mixing fails (TransitionError on
                the transitions path).
            CaptionError: If burning captions fails.
            RunCancelled: If ``cancel`` was set.
        """
        options = options or RunOptions()
        run = _Run(self._temp_dir, self._job_store, job_id)

        try:
            if not scenes:
                raise ValueError("No scenes to assemble")
            self._check_images(scenes)

            self._temp_dir.mkdir(parents=True, exist_ok=True)
            self._output_dir.mkdir(parents=True, exist_ok=True)

            run.enter(JobState.PROBING_DURATIONS)
            self._resolve_durations(scenes, cancel)

            run.enter(JobState.BUILDING_CLIPS)
            clips = self._build_clips(run, scenes, cancel)

            name = f"slideshow_{run.namespace}.mp4"
            final_path = self._output_dir / name
            part_path = run.track(self._output_dir / f"slideshow_{run.namespace}.part.mp4")

            run.enter(JobState.MERGING)
            if options.use_transitions and len(clips) > 1:
                if options.background_music_path:
                    logger.warning("Background music is not supported with transitions; skipping it")
                merge_with_transitions(
                    clips,
                    part_path,
                    transition=options.transition,
                    transition_duration=options.transition_duration,
                    runner=self._runner,
                    cancel=cancel,
                )
                strategy = "transitions"
                duration = expected_transition_duration(
                    [c.duration for c in clips], options.transition_duration
                )
            else:
                merged = self._merge_simple(run, clips, options, cancel)

                run.enter(JobState.CAPTIONING)
                windows = caption_windows([(s.caption_text, s.duration) for s in scenes])
                burn_captions(
                    merged,
                    part_path,
                    windows,
                    [run.temp_path(f"caption_{i}.png") for i in range(len(windows))],
                    style=get_style(options.caption_style),
                    font_file=self._font_file,
                    runner=self._runner,
                    cancel=cancel,
                )
                strategy = "simple"
                duration = sum(c.duration for c in clips)

            os.replace(part_path, run.track(final_path))
            result = FinalVideo(
                path=str(final_path.resolve()),
                url=f"{self._url_prefix}/{name}",
                duration=round(duration, 3),
                strategy=strategy,
            )
            run.enter(JobState.DONE, result=result)
            run.keep(final_path)
            logger.info(f"Slideshow ready: {final_path} ({result.duration:.1f}s, {strategy})")
            return result

        except Exception as e:
            logger.error(f"[{run.namespace}] Run failed in {run.state.value}: {e}")
            try:
                run.enter(JobState.FAILED, error=str(e))
            except Exception as store_error:
                logger.warning(f"Could not record failure for job {run.job_id}: {store_error}")
            raise

        finally:
            run.cleanup()

    def _check_images(self, scenes: Sequence[Scene]) -> None:
        for scene in scenes:
            if not scene.image_path:
                raise MissingAssetError(scene.index)
            if not Path(scene.image_path).is_file():
                raise MissingAssetError(scene.index, scene.image_path)

    def _resolve_durations(self, scenes: Sequence[Scene], cancel: Optional[threading.Event]) -> None:
        for scene in scenes:
            audio = Path(scene.audio_path) if scene.audio_path else None
            scene.duration = resolve_scene_duration(audio, runner=self._runner, cancel=cancel)
            logger.info(
                f"Scene {scene.index + 1}: {scene.duration:.2f}s "
                f"({'narrated' if audio else 'no audio'})"
            )

    def _build_clips(
        self,
        run: _Run,
        scenes: Sequence[Scene],
        cancel: Optional[threading.Event],
    ) -> List[SceneClip]:
        clips: List[SceneClip] = []
        for position, scene in enumerate(scenes):
            logger.info(f"Creating clip {position + 1}/{len(scenes)}")
            clip = build_scene_clip(
                image_path=scene.image_path,
                audio_path=scene.audio_path,
                duration=scene.duration,
                output_path=run.temp_path(f"clip_{position}.mp4"),
                scene_index=scene.index,
                runner=self._runner,
                cancel=cancel,
            )
            clips.append(clip)
        return clips

    def _merge_simple(
        self,
        run: _Run,
        clips: Sequence[SceneClip],
        options: RunOptions,
        cancel: Optional[threading.Event],
    ) -> Path:
        merged = run.temp_path("merged.mp4")
        if len(clips) == 1:
            finalize_single_clip(clips[0].path, merged, runner=self._runner, cancel=cancel)
        else:
            concat_clips(
                [c.path for c in clips],
                merged,
                list_path=run.temp_path("concat.txt"),
                runner=self._runner,
                cancel=cancel,
            )

        music = options.background_music_path
        if not music:
            return merged
        if not Path(music).is_file():
            logger.warning(f"Background music not found, skipping: {music}")
            return merged

        mixed = run.temp_path("mixed.mp4")
        return mix_background_music(
            merged,
            Path(music),
            mixed,
            volume=options.music_volume,
            runner=self._runner,
            cancel=cancel,
        )
