# rigperf/scoring.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from .types import RotateMode, SpacingMode


@dataclass(frozen=True)
class PerformanceFactors:
    ideal_bone_count: float = 30.0
    ideal_mesh_count: float = 15.0
    ideal_vertex_count: float = 300.0
    ideal_clipping_count: float = 2.0
    ideal_blend_mode_count: float = 2.0

    bone_depth_factor: float = 1.5
    mesh_deformed_factor: float = 1.5
    mesh_weighted_factor: float = 2.0
    clipping_vertex_factor: float = 5.0
    complex_mask_penalty: float = 10.0
    additive_penalty: float = 2.0
    ik_chain_length_factor: float = 1.3

    # constraint kinds folded into the constraint score
    ik_weight: float = 0.20
    transform_weight: float = 0.15
    path_weight: float = 0.25
    physics_weight: float = 0.40
    constraint_impact_scale: float = 0.5

    # domain scores folded into the overall score
    bone_score_weight: float = 0.15
    mesh_score_weight: float = 0.25
    clipping_score_weight: float = 0.20
    blend_mode_score_weight: float = 0.15
    constraint_score_weight: float = 0.25


FACTORS = PerformanceFactors()

# Overall scores never drop below this, however heavy the rig.
SCORE_FLOOR = 40

COMPLEX_MASK_VERTICES = 4


def clamp_score(x: float) -> float:
    return 0.0 if x < 0.0 else 100.0 if x > 100.0 else x


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


# ---------------------------
# Domain scores
# ---------------------------

def mesh_score(mesh_count: int, total_vertices: float, deformed_count: int, weighted_count: int) -> float:
    f = FACTORS
    score = (
        100.0
        - math.log2(mesh_count / f.ideal_mesh_count + 1) * 15
        - math.log2(total_vertices / f.ideal_vertex_count + 1) * 10
        - deformed_count * f.mesh_deformed_factor
        - weighted_count * f.mesh_weighted_factor
    )
    return clamp_score(score)


def clipping_score(mask_count: int, total_vertices: float, complex_masks: int) -> float:
    f = FACTORS
    score = (
        100.0
        - math.log2(mask_count / f.ideal_clipping_count + 1) * 20
        - math.log2(total_vertices + 1) * f.clipping_vertex_factor
        - complex_masks * f.complex_mask_penalty
    )
    return clamp_score(score)


def blend_mode_score(non_normal_count: int, additive_count: int) -> float:
    f = FACTORS
    score = 100.0 - math.log2(non_normal_count / f.ideal_blend_mode_count + 1) * 20 - additive_count * f.additive_penalty
    return clamp_score(score)


def bone_score(total_bones: int, max_depth: int) -> float:
    f = FACTORS
    score = 100.0 - math.log2(total_bones / f.ideal_bone_count + 1) * 15 - max_depth * f.bone_depth_factor
    return clamp_score(score)


# ---------------------------
# Constraint impacts (0..100, higher is heavier)
# ---------------------------

def ik_impact(chain_lengths: Iterable[int]) -> float:
    chains = list(chain_lengths)
    if not chains:
        return 0.0
    total_bones = sum(chains)
    max_chain = max(chains)
    impact = math.log2(len(chains) + 1) * 20 + math.log2(total_bones + 1) * 10
    if max_chain > 2:
        impact += math.pow(max_chain, FACTORS.ik_chain_length_factor) * 2
    return min(100.0, impact)


def transform_impact(constraints: Iterable[tuple[int, int]]) -> float:
    """
    constraints: (bone_count, affected_channels) per active transform constraint.
    """
    items = list(constraints)
    if not items:
        return 0.0
    total_bones = sum(b for b, _ in items)
    channels = sum(c for _, c in items)
    impact = math.log2(len(items) + 1) * 15 + math.log2(total_bones + 1) * 8 + channels * 5
    return min(100.0, impact)


def path_mode_complexity(rotate_mode: int, spacing_mode: int) -> int:
    if rotate_mode == RotateMode.CHAIN_SCALE:
        c = 3
    elif rotate_mode == RotateMode.CHAIN:
        c = 2
    else:
        c = 1
    c += 2 if spacing_mode == SpacingMode.PROPORTIONAL else 1
    return c


def path_impact(constraints: Iterable[tuple[int, int, int]]) -> float:
    """
    constraints: (bone_count, rotate_mode, spacing_mode) per active path constraint.
    """
    items = list(constraints)
    if not items:
        return 0.0
    total_bones = sum(b for b, _, _ in items)
    modes = sum(path_mode_complexity(r, s) for _, r, s in items)
    impact = math.log2(len(items) + 1) * 20 + math.log2(total_bones + 1) * 10 + modes * 7
    return min(100.0, impact)


def physics_iteration_factor(strength: float, damping: float) -> float:
    return max(1.0, 3.0 - damping) * strength / 50.0


def physics_impact(constraints: Iterable[tuple[int, float, float]]) -> float:
    """
    constraints: (affected_channels, strength, damping) per active physics constraint.
    """
    items = list(constraints)
    if not items:
        return 0.0
    complexity = 0.0
    for channels, strength, damping in items:
        complexity += channels * (1.0 + physics_iteration_factor(strength, damping))
    impact = math.log2(len(items) + 1) * 30 + complexity * 5
    return min(100.0, impact)


def constraint_score(ik: float, transform: float, path: float, physics: float, total_active: int) -> float:
    if total_active <= 0:
        return 100.0
    f = FACTORS
    weighted = ik * f.ik_weight + transform * f.transform_weight + path * f.path_weight + physics * f.physics_weight
    return clamp_score(100.0 - weighted * f.constraint_impact_scale)


# ---------------------------
# Overall
# ---------------------------

@dataclass(frozen=True)
class ComponentScores:
    bone_score: float
    mesh_score: float
    clipping_score: float
    blend_mode_score: float
    constraint_score: float


def overall_score(scores: ComponentScores, *, empty_rig: bool = False) -> int:
    """
    Weighted blend of the five domain scores, rounded half-up and never
    below SCORE_FLOOR. An empty rig has nothing to measure and reports the floor.
    """
    if empty_rig:
        return SCORE_FLOOR
    f = FACTORS
    weighted = (
        scores.bone_score * f.bone_score_weight
        + scores.mesh_score * f.mesh_score_weight
        + scores.clipping_score * f.clipping_score_weight
        + scores.blend_mode_score * f.blend_mode_score_weight
        + scores.constraint_score * f.constraint_score_weight
    )
    return max(SCORE_FLOOR, min(100, round_half_up(weighted)))


def impact_label(score: float) -> str:
    if score >= 85:
        return "Minimal"
    if score >= 70:
        return "Low"
    if score >= 55:
        return "Moderate"
    if score >= 40:
        return "High"
    return "Very High"
