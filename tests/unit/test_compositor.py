"""Tests for clip concatenation and cross-fade transitions."""

import pytest

from slidecast.editor.clips import SceneClip
from slidecast.editor.compositor import (
    build_transition_graph,
    concat_clips,
    expected_transition_duration,
    finalize_single_clip,
    merge_with_transitions,
    transition_offsets,
    write_concat_list,
)
from slidecast.errors import MergeError, TransitionError
from slidecast.models import TransitionKind


@pytest.fixture
def clip_files(tmp_path):
    paths = []
    for i in range(3):
        path = tmp_path / "temp" / f"clip_{i}.mp4"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"fake")
        paths.append(path)
    return paths


def test_concat_list_quotes_paths(tmp_path):
    """Test playlist entries are absolute and survive apostrophes."""
    clip = tmp_path / "it's.mp4"
    list_path = write_concat_list([clip], tmp_path / "list.txt")

    expected_path = str(clip.resolve()).replace("'", "'\\''")
    assert list_path.read_text(encoding="utf-8") == f"file '{expected_path}'\n"


def test_concat_stream_copy(runner, clip_files, tmp_path):
    """Test matching clips are joined with a single stream copy."""
    output = tmp_path / "merged.mp4"
    concat_clips(clip_files, output, tmp_path / "list.txt", runner=runner)

    assert len(runner.calls) == 1
    argv, _ = runner.calls[0]
    assert argv[:6] == ["-f", "concat", "-safe", "0", "-i", str(tmp_path / "list.txt")]
    assert argv[argv.index("-c") + 1] == "copy"
    assert "+faststart" in argv
    assert output.exists()


def test_concat_falls_back_to_reencode(failing_runner, clip_files, tmp_path):
    """Test a failed copy is retried with a full re-encode."""
    runner = failing_runner("stream copy")
    concat_clips(clip_files, tmp_path / "merged.mp4", tmp_path / "list.txt", runner=runner)

    assert len(runner.calls) == 2
    argv, description = runner.calls[1]
    assert "re-encode" in description
    assert argv[argv.index("-c:v") + 1] == "libx264"


def test_concat_total_failure(failing_runner, clip_files, tmp_path):
    runner = failing_runner("concatenate")
    with pytest.raises(MergeError):
        concat_clips(clip_files, tmp_path / "merged.mp4", tmp_path / "list.txt", runner=runner)


def test_concat_missing_clip(runner, clip_files, tmp_path):
    with pytest.raises(MergeError):
        concat_clips(clip_files + [tmp_path / "gone.mp4"], tmp_path / "m.mp4", tmp_path / "l.txt", runner=runner)
    assert runner.calls == []


def test_concat_needs_clips(runner, tmp_path):
    with pytest.raises(ValueError):
        concat_clips([], tmp_path / "m.mp4", tmp_path / "l.txt", runner=runner)


def test_finalize_single_clip(runner, clip_files, tmp_path):
    """Test a lone clip is re-encoded with delivery settings."""
    output = tmp_path / "merged.mp4"
    finalize_single_clip(clip_files[0], output, runner=runner)

    argv, _ = runner.calls[0]
    assert argv[argv.index("-preset") + 1] == "medium"
    assert argv[argv.index("-c:a") + 1] == "aac"
    assert output.exists()


def test_transition_offsets():
    """Test each clip starts one transition before the previous one ends."""
    assert transition_offsets([4.0, 4.0, 4.0], 0.5) == [0.0, 3.5, 7.0]
    assert transition_offsets([5.0, 3.0, 6.0], 1.0) == [0.0, 4.0, 6.0]


def test_expected_transition_duration():
    """Test output length loses one overlap per transition."""
    assert expected_transition_duration([4.0, 4.0, 4.0], 0.5) == pytest.approx(11.0)
    assert expected_transition_duration([6.0], 0.5) == 6.0


def test_transition_graph():
    """Test xfades chain through intermediate labels and audio is concatenated."""
    graph = build_transition_graph([4.0, 4.0, 4.0], TransitionKind.DISSOLVE, 0.5)
    assert graph.render() == (
        "[0:v][1:v]xfade=transition=dissolve:duration=0.5:offset=3.5[v1];"
        "[v1][2:v]xfade=transition=dissolve:duration=0.5:offset=7[vout];"
        "[0:a][1:a][2:a]concat=n=3:v=0:a=1[aout]"
    )


def test_two_clip_graph_ends_in_vout():
    graph = build_transition_graph([3.0, 3.0], TransitionKind.FADE, 1.0)
    assert graph.chains[0].outputs == ["vout"]
    assert graph.chains[0].inputs == ["0:v", "1:v"]


def test_transition_needs_two_clips():
    with pytest.raises(TransitionError):
        build_transition_graph([4.0], TransitionKind.FADE, 0.5)


def test_transition_longer_than_clip():
    """Test a transition must be shorter than every clip."""
    with pytest.raises(TransitionError):
        build_transition_graph([4.0, 0.5, 4.0], TransitionKind.FADE, 0.5)


def test_merge_with_transitions(runner, clip_files, tmp_path):
    """Test the merge maps graph outputs and trims to the video length."""
    clips = [SceneClip(scene_index=i, path=p, duration=4.0) for i, p in enumerate(clip_files)]
    output = tmp_path / "final.part.mp4"
    merge_with_transitions(clips, output, TransitionKind.WIPELEFT, 0.5, runner=runner)

    argv, _ = runner.calls[0]
    assert argv.count("-i") == 3
    assert "[vout]" in argv and "[aout]" in argv
    assert "-shortest" in argv
    assert argv[argv.index("-f") + 1] == "mp4"
    assert "wipeleft" in argv[argv.index("-filter_complex") + 1]


def test_merge_with_transitions_failure(failing_runner, clip_files, tmp_path):
    runner = failing_runner("xfade")
    clips = [SceneClip(scene_index=i, path=p, duration=4.0) for i, p in enumerate(clip_files)]
    with pytest.raises(TransitionError):
        merge_with_transitions(clips, tmp_path / "out.mp4", runner=runner)
