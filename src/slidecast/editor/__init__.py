"""Video editing and assembly module."""

from .ffmpeg import FFmpegRunner
from .filtergraph import Filter, FilterChain, FilterGraph
from .clips import SceneClip, build_scene_clip
from .compositor import (
    concat_clips,
    finalize_single_clip,
    transition_offsets,
    build_transition_graph,
    merge_with_transitions,
)
from .overlays import (
    CaptionStyle,
    CaptionWindow,
    STYLES,
    wrap_caption,
    caption_windows,
    build_caption_graph,
    render_caption_image,
    burn_captions,
    get_style,
)
from .audio import (
    parse_duration,
    get_audio_duration,
    get_video_duration,
    probe_duration,
    resolve_scene_duration,
    mix_background_music,
)

__all__ = [
    # Transcoding boundary
    "FFmpegRunner",
    "Filter",
    "FilterChain",
    "FilterGraph",
    # Clips
    "SceneClip",
    "build_scene_clip",
    # Compositor
    "concat_clips",
    "finalize_single_clip",
    "transition_offsets",
    "build_transition_graph",
    "merge_with_transitions",
    # Overlays
    "CaptionStyle",
    "CaptionWindow",
    "STYLES",
    "wrap_caption",
    "caption_windows",
    "build_caption_graph",
    "render_caption_image",
    "burn_captions",
    "get_style",
    # Audio
    "parse_duration",
    "get_audio_duration",
    "get_video_duration",
    "probe_duration",
    "resolve_scene_duration",
    "mix_background_music",
]
