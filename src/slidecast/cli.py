"""CLI entry point for the slideshow generator."""

import logging
import typer
from pathlib import Path
from typing import Optional

from . import __version__
from .config import config
from .models import Manifest, TransitionKind

app = typer.Typer(
    name="slidecast",
    help="Turn a story script into a narrated, captioned slideshow video",
    no_args_is_help=True
)

DEFAULT_MANIFEST = Path("slideshow.yaml")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"slidecast version {__version__}")
        raise typer.Exit()


def _load_manifest(path: Path) -> Manifest:
    try:
        return Manifest.from_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error loading manifest: {e}")
        raise typer.Exit(1)


def _save_manifest(manifest: Manifest, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        manifest.to_yaml(path)
    except Exception as e:
        typer.echo(f"❌ Error saving manifest: {e}")
        raise typer.Exit(1)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Slidecast - Create narrated slideshows from story scripts."""
    pass


@app.command()
def analyze(
    script: Path = typer.Argument(
        ...,
        help="Story script text file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output: Path = typer.Option(
        DEFAULT_MANIFEST,
        "--output",
        "-o",
        help="Output manifest file path"
    ),
    name: Optional[str] = typer.Option(
        None,
        "--name",
        "-n",
        help="Project name (defaults to the script file name)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Analyze a script and split it into scenes using AI."""
    from .agents import SceneSegmenterAgent, ScriptAnalysisAgent, SegmentInput

    setup_logging(verbose)
    typer.echo(f"📖 Analyzing: {script}")

    try:
        config.validate_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    text = script.read_text(encoding="utf-8")

    try:
        analyzer = ScriptAnalysisAgent()
        typer.echo(f"   Using model: {analyzer.model}")
        analysis = analyzer.run(text)
        scenes = SceneSegmenterAgent(client=analyzer.client).run(
            SegmentInput(script=text, analysis=analysis)
        )
    except Exception as e:
        typer.echo(f"❌ Error analyzing script: {e}")
        raise typer.Exit(1)

    manifest = Manifest(
        project_name=name or script.stem,
        analysis=analysis,
        scenes=scenes,
    )
    _save_manifest(manifest, output)
    typer.echo(f"\n✅ Manifest saved: {output}")

    typer.echo(f"\n📋 Summary:")
    typer.echo(f"   Characters: {', '.join(analysis.character_names) or 'none found'}")
    if analysis.setting.location:
        typer.echo(f"   Setting: {analysis.setting.location}")
    typer.echo(f"   Scenes: {len(scenes)}")

    typer.echo(f"\n📽️  Scene breakdown:")
    for scene in scenes:
        preview = scene.description[:70] + "..." if len(scene.description) > 70 else scene.description
        typer.echo(f"   • {scene.title} (~{scene.duration_hint or 0:.0f}s)")
        typer.echo(f"     {preview}")


@app.command()
def images(
    manifest_path: Path = typer.Option(
        DEFAULT_MANIFEST,
        "--manifest",
        "-m",
        help="Path to slideshow manifest",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory for images (defaults to SLIDECAST_IMAGES_DIR)"
    ),
    provider_name: Optional[str] = typer.Option(
        None,
        "--provider",
        "-p",
        help="Image provider: imagen or placeholder (defaults to SLIDECAST_IMAGE_PROVIDER)"
    ),
    skip_existing: bool = typer.Option(
        False,
        "--skip-existing",
        "-k",
        help="Keep scenes whose image already exists"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Generate one image per scene and record it in the manifest.

    Scenes whose generation fails get a placeholder title card instead.
    """
    from .services.images import PlaceholderProvider, build_image_prompt, get_image_provider

    setup_logging(verbose)
    manifest = _load_manifest(manifest_path)
    output_dir = output or config.resolve_path(config.images_dir)

    try:
        provider = get_image_provider(provider_name)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    typer.echo(f"🎨 Generating images for {manifest.project_name} ({provider.name})")
    placeholder = provider if isinstance(provider, PlaceholderProvider) else PlaceholderProvider()
    generated = fallbacks = skipped = 0

    for scene in manifest.scenes:
        if skip_existing and scene.image_path and Path(scene.image_path).is_file():
            skipped += 1
            continue

        image_path = output_dir / f"scene_{scene.index + 1:03d}.png"
        title = scene.title or f"Scene {scene.index + 1}"
        result = provider.generate(build_image_prompt(scene, manifest.analysis), image_path, title=title)

        if not result.ok and provider is not placeholder:
            typer.echo(f"   ⚠️  {title}: {result.error_message}; using placeholder")
            result = placeholder.generate(result.prompt, image_path, title=title)
            fallbacks += 1

        if not result.ok:
            typer.echo(f"   ❌ {title}: {result.error_message}")
            continue

        scene.image_path = str(result.local_path)
        generated += 1
        typer.echo(f"   ✅ {title} → {result.local_path}")

    _save_manifest(manifest, manifest_path)

    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Generated: {generated}")
    typer.echo(f"   Placeholders: {fallbacks}")
    typer.echo(f"   Skipped: {skipped}")

    missing = [s for s in manifest.scenes if not s.image_path]
    if missing:
        typer.echo(f"\n⚠️  {len(missing)} scene(s) still have no image")
        raise typer.Exit(1)
    typer.echo(f"\n✅ Manifest updated: {manifest_path}")


@app.command()
def narrate(
    manifest_path: Path = typer.Option(
        DEFAULT_MANIFEST,
        "--manifest",
        "-m",
        help="Path to slideshow manifest",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory for narration (defaults to SLIDECAST_AUDIO_DIR)"
    ),
    provider_name: Optional[str] = typer.Option(
        None,
        "--provider",
        "-p",
        help="Voice provider: elevenlabs or silence (defaults to SLIDECAST_VOICE_PROVIDER)"
    ),
    skip_existing: bool = typer.Option(
        False,
        "--skip-existing",
        "-k",
        help="Keep scenes whose narration already exists"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Generate narration per scene and record it in the manifest.

    Scenes whose synthesis fails get a silent track of the same reading time.
    """
    from .services.voice import SilenceProvider, get_voice_provider, narration_style, narration_text

    setup_logging(verbose)
    manifest = _load_manifest(manifest_path)
    output_dir = output or config.resolve_path(config.audio_dir)

    try:
        provider = get_voice_provider(provider_name)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    typer.echo(f"🎤 Narrating {manifest.project_name} ({provider.name})")
    silence = provider if isinstance(provider, SilenceProvider) else SilenceProvider()
    generated = fallbacks = skipped = 0

    for scene in manifest.scenes:
        if skip_existing and scene.audio_path and Path(scene.audio_path).is_file():
            skipped += 1
            continue

        title = scene.title or f"Scene {scene.index + 1}"
        text = narration_text(scene)
        stem = f"scene_{scene.index + 1:03d}"
        result = provider.generate(
            text,
            output_dir / f"{stem}{provider.extension}",
            voice_style=narration_style(scene, manifest.analysis),
        )

        if not result.ok and provider is not silence:
            typer.echo(f"   ⚠️  {title}: {result.error_message}; using silence")
            result = silence.generate(text, output_dir / f"{stem}{silence.extension}")
            fallbacks += 1

        if not result.ok:
            typer.echo(f"   ❌ {title}: {result.error_message}")
            continue

        scene.audio_path = str(result.local_path)
        generated += 1
        typer.echo(f"   ✅ {title} → {result.local_path}")

    _save_manifest(manifest, manifest_path)

    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Narrated: {generated}")
    typer.echo(f"   Silent fallbacks: {fallbacks}")
    typer.echo(f"   Skipped: {skipped}")

    missing = [s for s in manifest.scenes if not s.audio_path]
    if missing:
        typer.echo(f"\n⚠️  {len(missing)} scene(s) still have no narration")
        raise typer.Exit(1)
    typer.echo(f"\n✅ Manifest updated: {manifest_path}")


@app.command()
def assemble(
    manifest_path: Path = typer.Option(
        DEFAULT_MANIFEST,
        "--manifest",
        "-m",
        help="Path to slideshow manifest",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for the final video (defaults to SLIDECAST_OUTPUT_DIR)"
    ),
    transitions: Optional[bool] = typer.Option(
        None,
        "--transitions/--no-transitions",
        help="Join scenes with cross-fades (overrides the manifest)"
    ),
    transition: Optional[TransitionKind] = typer.Option(
        None,
        "--transition",
        "-t",
        help="Cross-fade style"
    ),
    transition_duration: Optional[float] = typer.Option(
        None,
        "--transition-duration",
        "-d",
        help="Cross-fade length in seconds",
        min=0.1,
        max=2.9
    ),
    music: Optional[Path] = typer.Option(
        None,
        "--music",
        help="Background music file (ignored with transitions)"
    ),
    music_volume: Optional[float] = typer.Option(
        None,
        "--music-volume",
        help="Background music volume (0-1)",
        min=0.0,
        max=1.0
    ),
    fallback_simple: bool = typer.Option(
        False,
        "--fallback-simple",
        help="If the cross-fade merge fails, retry without transitions"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Assemble scene images and narration into the final slideshow."""
    from .errors import TransitionError
    from .pipeline import SlideshowPipeline

    setup_logging(verbose)
    manifest = _load_manifest(manifest_path)
    typer.echo(f"📼 Assembling {manifest.project_name} ({len(manifest.scenes)} scenes)")

    options = manifest.options.model_copy()
    if transitions is not None:
        options.use_transitions = transitions
    if transition is not None:
        options.transition = transition
    if transition_duration is not None:
        options.transition_duration = transition_duration
    if music is not None:
        options.background_music_path = str(music)
    if music_volume is not None:
        options.music_volume = music_volume

    if options.use_transitions:
        typer.echo(f"   Transitions: {options.transition.value} ({options.transition_duration:.2f}s)")
    if options.background_music_path:
        typer.echo(f"   Music: {options.background_music_path} (volume {options.music_volume:.2f})")

    pipeline = SlideshowPipeline(output_dir=output_dir)

    try:
        try:
            result = pipeline.run(manifest.scenes, options)
        except TransitionError as e:
            if not fallback_simple:
                raise
            typer.echo(f"⚠️  Transitions failed ({e}); retrying without transitions")
            options.use_transitions = False
            result = pipeline.run(manifest.scenes, options)
    except Exception as e:
        typer.echo(f"❌ Error assembling video: {e}")
        raise typer.Exit(1)

    typer.echo(f"✅ Video assembled: {result.path}")
    typer.echo(f"   URL: {result.url}")
    typer.echo(f"   Duration: {result.duration:.1f}s ({result.strategy})")


@app.command()
def status(
    manifest_path: Path = typer.Option(
        DEFAULT_MANIFEST,
        "--manifest",
        "-m",
        help="Path to slideshow manifest",
        exists=False,
        file_okay=True,
        dir_okay=False
    )
) -> None:
    """Show project status."""
    if not manifest_path.exists():
        typer.echo(f"❌ No project found at {manifest_path}")
        typer.echo("   Run 'slidecast analyze <script>' to create a new project")
        raise typer.Exit(1)

    manifest = _load_manifest(manifest_path)
    typer.echo(f"📁 Project: {manifest.project_name}")
    typer.echo(f"   Scenes: {len(manifest.scenes)}")
    if manifest.analysis and manifest.analysis.characters:
        typer.echo(f"   Characters: {', '.join(manifest.analysis.character_names)}")

    options = manifest.options
    typer.echo(f"   Transitions: {options.transition.value if options.use_transitions else 'off'}")
    if options.background_music_path:
        typer.echo(f"   Music: {options.background_music_path}")

    typer.echo("\n📽️  Scenes:")
    for scene in manifest.scenes:
        has_image = bool(scene.image_path) and Path(scene.image_path).is_file()
        has_audio = bool(scene.audio_path) and Path(scene.audio_path).is_file()
        status_icon = "✅" if has_image else "⏳"
        audio_note = "narrated" if has_audio else "silent"
        typer.echo(f"   {status_icon} {scene.title or f'Scene {scene.index + 1}'} ({audio_note})")
        caption = scene.caption_text
        typer.echo(f"      → {caption[:60] + '...' if len(caption) > 60 else caption}")


@app.command()
def probe(
    video: Path = typer.Argument(
        ...,
        help="Video file to inspect",
        exists=True,
        file_okay=True,
        dir_okay=False
    )
) -> None:
    """Print the duration of a video file."""
    from .editor.audio import get_video_duration

    try:
        duration = get_video_duration(video)
    except Exception as e:
        typer.echo(f"❌ Could not read {video}: {e}")
        raise typer.Exit(1)

    typer.echo(f"{video}: {duration:.2f}s")


if __name__ == "__main__":
    app()
