from __future__ import annotations

import pytest

from rigperf.evaluator import RigPoseEvaluator, UnknownAnimationError
from rigperf.sampler import (
    PlaybackState,
    PoseResolutionError,
    capture_playback,
    restore_playback,
    sample_all_animations,
    sample_animation,
    sample_count,
    sample_times,
)
from rigperf.types import Animation
from rigs import FlakyEvaluator, arm_rig, swing_animation, wave_animation


def _playing(ev: RigPoseEvaluator, name: str, time: float, loop: bool) -> tuple:
    ev.set_animation(0, name, loop)
    ev.set_track_time(0, time)
    ev.apply_and_resolve()
    return _track(ev)


def _track(ev: RigPoseEvaluator) -> tuple:
    entry = ev.get_current_track(0)
    if entry is None:
        return (None, None, None)
    return (entry.animation_name, entry.time, entry.loop)


def _worlds(ev: RigPoseEvaluator) -> list:
    return [b.world for b in ev.skeleton.bones]


def test_sample_times_include_both_endpoints() -> None:
    assert sample_times(1.0, 4.0) == [0.0, 0.25, 0.5, 0.75, 1.0]
    assert sample_times(0.0, 30.0) == [0.0, 0.0]


def test_short_animation_still_gets_two_samples() -> None:
    assert sample_count(0.01, 30.0) == 1
    assert len(sample_times(0.01, 30.0)) == 2


def test_sample_count_rejects_non_positive_rate() -> None:
    with pytest.raises(ValueError):
        sample_count(1.0, 0.0)


def test_observer_sees_every_instant() -> None:
    ev = RigPoseEvaluator(arm_rig(swing_animation()))
    seen = []
    n = sample_animation(ev, swing_animation(), lambda t, sk: seen.append((t, sk.find_bone("upper").rotation)), 10.0)
    assert n == 11
    assert [t for t, _ in seen] == sample_times(1.0, 10.0)
    assert seen[0][1] == pytest.approx(0.0)
    assert seen[-1][1] == pytest.approx(90.0)


def test_previous_playback_is_restored() -> None:
    ev = RigPoseEvaluator(arm_rig(swing_animation(), wave_animation()))
    before = _playing(ev, "swing", 0.37, True)
    worlds = _worlds(ev)

    sample_animation(ev, wave_animation(), lambda t, sk: None)

    assert _track(ev) == before == ("swing", 0.37, True)
    assert _worlds(ev) == worlds


def test_restore_runs_when_observer_raises() -> None:
    ev = RigPoseEvaluator(arm_rig(swing_animation(), wave_animation()))
    before = _playing(ev, "swing", 0.5, False)
    worlds = _worlds(ev)

    def boom(t, sk):
        if t > 0.3:
            raise RuntimeError("observer failed")

    with pytest.raises(RuntimeError, match="observer failed"):
        sample_animation(ev, wave_animation(), boom)

    assert _track(ev) == before
    assert _worlds(ev) == worlds


def test_nothing_playing_restores_setup_pose() -> None:
    ev = RigPoseEvaluator(arm_rig(swing_animation()))
    sample_animation(ev, swing_animation(), lambda t, sk: None)
    assert ev.get_current_track(0) is None
    assert ev.skeleton.find_bone("upper").rotation == 0.0


def test_evaluator_failure_becomes_pose_resolution_error() -> None:
    rig = arm_rig(swing_animation())
    ev = FlakyEvaluator(rig, fail_on="swing")
    with pytest.raises(PoseResolutionError) as info:
        sample_animation(ev, swing_animation(), lambda t, sk: None)
    assert info.value.animation == "swing"
    assert info.value.time == 0.0
    assert isinstance(info.value.__cause__, ValueError)
    assert ev.get_current_track(0) is None


def test_unknown_animation_becomes_pose_resolution_error() -> None:
    ev = RigPoseEvaluator(arm_rig(swing_animation()))
    with pytest.raises(PoseResolutionError) as info:
        sample_animation(ev, Animation("ghost", 1.0), lambda t, sk: None)
    assert isinstance(info.value.__cause__, UnknownAnimationError)


def test_capture_and_restore_playback() -> None:
    ev = RigPoseEvaluator(arm_rig(swing_animation()))
    assert capture_playback(ev) == PlaybackState(animation_name=None, track_time=0.0, loop=False)

    _playing(ev, "swing", 0.25, True)
    state = capture_playback(ev)
    ev.clear_track(0)
    restore_playback(ev, state)
    assert _track(ev) == ("swing", 0.25, True)
    assert ev.skeleton.find_bone("upper").rotation == pytest.approx(22.5)


def test_sample_all_animations_visits_each_animation() -> None:
    rig = arm_rig(swing_animation(), wave_animation())
    ev = RigPoseEvaluator(rig)
    names = []
    total = sample_all_animations(ev, rig, lambda anim, t, sk: names.append(anim.name), 2.0)
    assert total == 6
    assert names == ["swing"] * 3 + ["wave"] * 3


def test_restore_failure_after_clean_pass_is_a_pose_resolution_error() -> None:
    rig = arm_rig(swing_animation(), wave_animation())
    ev = FlakyEvaluator(rig, fail_on="wave")
    ev.set_animation(0, "wave", False)
    ev.set_track_time(0, 0.2)

    with pytest.raises(PoseResolutionError) as info:
        sample_animation(ev, swing_animation(), lambda t, sk: None)
    assert info.value.animation == "swing"
    assert isinstance(info.value.__cause__, ValueError)
    assert _track(ev) == ("wave", 0.2, False)


def test_restore_failure_does_not_mask_observer_error() -> None:
    rig = arm_rig(swing_animation(), wave_animation())
    ev = FlakyEvaluator(rig, fail_on="wave")
    ev.set_animation(0, "wave", False)

    def boom(t, sk):
        raise RuntimeError("observer failed")

    with pytest.raises(RuntimeError, match="observer failed"):
        sample_animation(ev, swing_animation(), boom)
    assert _track(ev) == ("wave", 0.0, False)
