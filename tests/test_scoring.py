from __future__ import annotations

import math

import pytest

from rigperf.scoring import (
    SCORE_FLOOR,
    ComponentScores,
    blend_mode_score,
    bone_score,
    clipping_score,
    constraint_score,
    ik_impact,
    impact_label,
    mesh_score,
    overall_score,
    path_impact,
    path_mode_complexity,
    physics_impact,
    physics_iteration_factor,
    round_half_up,
    transform_impact,
)
from rigperf.types import RotateMode, SpacingMode


def test_empty_inputs_score_at_ceiling() -> None:
    assert mesh_score(0, 0, 0, 0) == 100.0
    assert clipping_score(0, 0, 0) == 100.0
    assert blend_mode_score(0, 0) == 100.0
    assert bone_score(0, 0) == 100.0
    assert constraint_score(0.0, 0.0, 0.0, 0.0, 0) == 100.0


def test_ideal_bone_count() -> None:
    assert bone_score(30, 0) == 85.0
    assert bone_score(30, 4) == pytest.approx(79.0)


def test_domain_scores_never_negative() -> None:
    assert mesh_score(10_000, 10_000_000, 500, 500) == 0.0
    assert clipping_score(200, 5000, 50) == 0.0
    assert blend_mode_score(400, 100) == 0.0
    assert bone_score(5000, 60) == 0.0


def test_mesh_score_penalties() -> None:
    expected = 100 - math.log2(1 / 15 + 1) * 15 - math.log2(12 / 300 + 1) * 10 - 1.5 - 2.0
    assert mesh_score(1, 12, 1, 1) == pytest.approx(expected)


def test_ik_impact_adds_long_chain_term() -> None:
    assert ik_impact([]) == 0.0
    assert ik_impact([2]) == pytest.approx(20 + math.log2(3) * 10)
    assert ik_impact([3]) == pytest.approx(20 + 20 + math.pow(3, 1.3) * 2)
    assert ik_impact([10] * 20) == 100.0


def test_transform_impact_counts_channels() -> None:
    assert transform_impact([(2, 6)]) == pytest.approx(15 + math.log2(3) * 8 + 30)


def test_path_mode_complexity() -> None:
    assert path_mode_complexity(RotateMode.TANGENT, SpacingMode.LENGTH) == 2
    assert path_mode_complexity(RotateMode.CHAIN, SpacingMode.FIXED) == 3
    assert path_mode_complexity(RotateMode.CHAIN_SCALE, SpacingMode.PROPORTIONAL) == 5
    assert path_impact([(1, RotateMode.TANGENT, SpacingMode.LENGTH)]) == pytest.approx(20 + 10 + 14)


def test_physics_impact() -> None:
    assert physics_iteration_factor(100.0, 1.0) == pytest.approx(4.0)
    assert physics_iteration_factor(50.0, 5.0) == pytest.approx(1.0)
    assert physics_impact([(2, 100.0, 1.0)]) == pytest.approx(80.0)


def test_constraint_score_weights_impacts() -> None:
    assert constraint_score(0.0, 0.0, 0.0, 80.0, 1) == pytest.approx(84.0)
    assert constraint_score(100.0, 100.0, 100.0, 100.0, 4) == pytest.approx(50.0)


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(3.49) == 3


def test_overall_score_bounds() -> None:
    best = ComponentScores(100.0, 100.0, 100.0, 100.0, 100.0)
    worst = ComponentScores(0.0, 0.0, 0.0, 0.0, 0.0)
    assert overall_score(best) == 100
    assert overall_score(worst) == SCORE_FLOOR == 40
    assert overall_score(best, empty_rig=True) == SCORE_FLOOR


def test_overall_score_weighting() -> None:
    scores = ComponentScores(bone_score=80.0, mesh_score=60.0, clipping_score=100.0, blend_mode_score=100.0,
                             constraint_score=40.0)
    # 12 + 15 + 20 + 15 + 10
    assert overall_score(scores) == 72


@pytest.mark.parametrize(
    "score, label",
    [(100, "Minimal"), (85, "Minimal"), (84.9, "Low"), (70, "Low"), (55, "Moderate"), (40, "High"), (39, "Very High")],
)
def test_impact_label(score, label) -> None:
    assert impact_label(score) == label
