from __future__ import annotations

import dataclasses
import logging

import pytest

from rigperf import AnalysisConfig, analyze, canonicalize_report
from rigperf.evaluator import RigPoseEvaluator
from rigperf.scoring import SCORE_FLOOR
from rigperf.types import Animation, BlendMode, RigData
from rigs import FlakyEvaluator, arm_rig, constrained_rig, glow_rig, reach_animation, swing_animation, wave_animation


def _track(ev: RigPoseEvaluator) -> tuple:
    entry = ev.get_current_track(0)
    return None if entry is None else (entry.animation_name, entry.time, entry.loop)


def test_empty_rig_scores_at_floor() -> None:
    rig = RigData(name="empty", animations=(Animation("idle", 0.0),))
    report = analyze(rig)
    (a,) = report.animations
    assert a.overall_score == SCORE_FLOOR == 40
    assert a.mesh.score == 100.0
    assert a.clipping.score == 100.0
    assert a.blend_modes.score == 100.0
    assert a.constraints.score == 100.0
    assert report.skeleton.metrics.score == 100.0
    assert report.median_score == 40


def test_rig_without_animations() -> None:
    report = analyze(arm_rig())
    assert report.animations == ()
    assert report.failed == ()
    assert report.median_score == SCORE_FLOOR
    assert report.best is None
    assert report.worst is None
    assert report.total_animations == 0


def test_scores_within_bounds() -> None:
    rig = constrained_rig(reach_animation(), Animation("idle", 2.0))
    report = analyze(rig)
    assert len(report.animations) == 2
    for a in report.animations:
        assert 40 <= a.overall_score <= 100
        for score in (a.mesh.score, a.clipping.score, a.blend_modes.score, a.constraints.score):
            assert 0.0 <= score <= 100.0


def test_report_is_deterministic() -> None:
    rig = constrained_rig(reach_animation(), Animation("idle", 2.0))
    first = analyze(rig)
    second = analyze(rig)
    assert first == second
    assert canonicalize_report(first) == canonicalize_report(second)


def test_hidden_deformed_mesh_is_counted() -> None:
    report = analyze(arm_rig(wave_animation(), sleeve_visible=False))
    (a,) = report.animations
    assert "arm:sleeve" in a.active.meshes
    assert a.mesh.active_mesh_count == 1
    assert a.mesh.deformed_mesh_count == 1


def test_turn_taking_additive_slots_peak_at_one() -> None:
    report = analyze(glow_rig())
    (a,) = report.animations
    assert a.blend_modes.active_additive_count == 1
    assert report.stats.animations_with_blend_modes == 1


def test_caller_playback_survives_analysis() -> None:
    rig = arm_rig(swing_animation(), wave_animation())
    ev = RigPoseEvaluator(rig)
    ev.set_animation(0, "swing", True)
    ev.set_track_time(0, 0.61)
    ev.apply_and_resolve()
    worlds = [b.world for b in ev.skeleton.bones]

    analyze(rig, evaluator=ev)

    assert _track(ev) == ("swing", 0.61, True)
    assert [b.world for b in ev.skeleton.bones] == worlds


def test_failed_animation_is_recorded_and_others_continue(caplog) -> None:
    rig = arm_rig(swing_animation(), Animation("broken", 1.0), wave_animation())
    with caplog.at_level(logging.INFO, logger="rigperf"):
        report = analyze(rig, evaluator=FlakyEvaluator(rig, fail_on="broken"))
    assert [a.name for a in report.animations] == ["swing", "wave"]
    assert [f.name for f in report.failed] == ["broken"]
    assert "solver diverged" in report.failed[0].error
    assert report.total_animations == 3
    assert any(r.levelno == logging.ERROR and "broken" in r.getMessage() for r in caplog.records)


def test_config_rates_are_used() -> None:
    rig = glow_rig()
    seen = []

    class CountingEvaluator(RigPoseEvaluator):
        def set_track_time(self, track_index: int, time: float) -> None:
            seen.append(time)
            super().set_track_time(track_index, time)

    analyze(rig, evaluator=CountingEvaluator(rig), config=AnalysisConfig(sample_rate=2.0, blend_sample_rate=4.0))
    # detection pass (3 instants) then blend pass (5 instants)
    assert seen == [0.0, 0.5, 1.0, 0.0, 0.25, 0.5, 0.75, 1.0]


def test_stats_and_ranking() -> None:
    rig = constrained_rig(reach_animation(), Animation("idle", 1.0))
    report = analyze(rig)
    assert report.stats.animations_with_ik == 1
    assert report.stats.animations_with_physics == 2
    assert report.stats.animations_with_clipping == 2
    assert report.total_skins == 1
    ranked = report.sorted_animations
    assert ranked[0] is report.best
    assert ranked[-1] is report.worst
    assert report.best.overall_score >= report.worst.overall_score


class BrokenSolver(RigPoseEvaluator):
    def apply_and_resolve(self) -> None:
        raise ValueError("solver diverged")


def test_solver_failing_everywhere_fails_each_animation(caplog) -> None:
    rig = arm_rig(swing_animation(), wave_animation())
    ev = BrokenSolver(rig)
    with caplog.at_level(logging.ERROR, logger="rigperf"):
        report = analyze(rig, evaluator=ev)
    assert report.animations == ()
    assert [f.name for f in report.failed] == ["swing", "wave"]
    assert report.median_score == 40
    assert ev.get_current_track(0) is None
    assert any("Restoring playback" in r.getMessage() for r in caplog.records)


def test_caller_track_that_breaks_solver_fails_cleanly() -> None:
    rig = arm_rig(swing_animation(), wave_animation(), Animation("broken", 1.0))
    ev = FlakyEvaluator(rig, fail_on="broken")
    ev.set_animation(0, "broken", True)
    ev.set_track_time(0, 0.4)

    report = analyze(rig, evaluator=ev)

    assert report.animations == ()
    assert [f.name for f in report.failed] == ["swing", "wave", "broken"]
    # restoring the caller's track itself fails to resolve; the track is still put back
    assert "solver diverged" in report.failed[0].error
    assert _track(ev) == ("broken", 0.4, True)


def test_report_records_are_read_only() -> None:
    report = analyze(glow_rig())
    (a,) = report.animations
    with pytest.raises(dataclasses.FrozenInstanceError):
        a.active.slots = frozenset()
    with pytest.raises(AttributeError):
        a.active.slots.add("extra")
    with pytest.raises(TypeError):
        report.global_blend_modes.slots_with_non_normal_blend_mode["glow_a"] = BlendMode.NORMAL
    assert a.active.slots == {"glow_a", "glow_b"}
