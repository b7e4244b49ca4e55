# rigperf/report.py
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .activity import ActiveComponents
from .analyzers import (
    BlendModeMetrics,
    ClippingMetrics,
    ConstraintMetrics,
    GlobalBlendModeAnalysis,
    GlobalClippingAnalysis,
    GlobalConstraintAnalysis,
    GlobalMeshAnalysis,
    MeshMetrics,
    SkeletonAnalysis,
)
from .scoring import SCORE_FLOOR, impact_label

HIGH_VERTEX_ANIMATION = 500
POOR_SCORE = 55.0


@dataclass(frozen=True)
class AnimationAnalysis:
    name: str
    duration: float
    overall_score: int
    mesh: MeshMetrics
    clipping: ClippingMetrics
    blend_modes: BlendModeMetrics
    constraints: ConstraintMetrics
    active: ActiveComponents

    @property
    def impact(self) -> str:
        return impact_label(self.overall_score)


@dataclass(frozen=True)
class AnimationFailure:
    name: str
    error: str


@dataclass(frozen=True)
class AnalysisStats:
    animations_with_physics: int = 0
    animations_with_clipping: int = 0
    animations_with_blend_modes: int = 0
    animations_with_ik: int = 0
    animations_with_transform: int = 0
    animations_with_path: int = 0
    high_vertex_animations: int = 0
    poor_performing_animations: int = 0


@dataclass(frozen=True)
class AnalysisReport:
    rig_name: str
    total_animations: int
    total_skins: int
    skeleton: SkeletonAnalysis
    animations: tuple[AnimationAnalysis, ...]
    failed: tuple[AnimationFailure, ...]
    global_mesh: GlobalMeshAnalysis
    global_clipping: GlobalClippingAnalysis
    global_blend_modes: GlobalBlendModeAnalysis
    global_constraints: GlobalConstraintAnalysis
    median_score: int
    best: Optional[AnimationAnalysis]
    worst: Optional[AnimationAnalysis]
    stats: AnalysisStats

    @property
    def sorted_animations(self) -> tuple[AnimationAnalysis, ...]:
        return rank_analyses(self.animations)


def median_score(scores: Sequence[int]) -> int:
    """
    scores[n // 2] of the ascending list: the upper median for even n.
    """
    if not scores:
        return SCORE_FLOOR
    ordered = sorted(scores)
    return ordered[len(ordered) // 2]


def rank_analyses(analyses: Sequence[AnimationAnalysis]) -> tuple[AnimationAnalysis, ...]:
    # stable: ties keep rig order
    return tuple(sorted(analyses, key=lambda a: -a.overall_score))


def best_and_worst(analyses: Sequence[AnimationAnalysis]) -> tuple[Optional[AnimationAnalysis], Optional[AnimationAnalysis]]:
    ranked = rank_analyses(analyses)
    if not ranked:
        return None, None
    return ranked[0], ranked[-1]


def compute_stats(
    analyses: Sequence[AnimationAnalysis],
    *,
    high_vertex_threshold: int = HIGH_VERTEX_ANIMATION,
    poor_score_threshold: float = POOR_SCORE,
) -> AnalysisStats:
    return AnalysisStats(
        animations_with_physics=sum(1 for a in analyses if a.active.has_physics),
        animations_with_clipping=sum(1 for a in analyses if a.active.has_clipping),
        animations_with_blend_modes=sum(1 for a in analyses if a.active.has_blend_modes),
        animations_with_ik=sum(1 for a in analyses if a.active.has_ik),
        animations_with_transform=sum(1 for a in analyses if a.active.has_transform),
        animations_with_path=sum(1 for a in analyses if a.active.has_path),
        high_vertex_animations=sum(1 for a in analyses if a.mesh.total_vertices > high_vertex_threshold),
        poor_performing_animations=sum(1 for a in analyses if a.overall_score < poor_score_threshold),
    )


def _animation_ref(a: Optional[AnimationAnalysis]) -> Optional[dict[str, Any]]:
    if a is None:
        return None
    return {"name": a.name, "score": a.overall_score}


def export_report(report: AnalysisReport) -> dict[str, Any]:
    """
    JSON-serializable summary of a report.
    """
    sk = report.skeleton.metrics
    return {
        "skeleton": {
            "name": report.rig_name,
            "bones": sk.total_bones,
            "root_bones": sk.root_bones,
            "max_depth": sk.max_depth,
            "score": sk.score,
            "total_animations": report.total_animations,
            "total_skins": report.total_skins,
        },
        "performance": {
            "median_score": report.median_score,
            "best_animation": _animation_ref(report.best),
            "worst_animation": _animation_ref(report.worst),
        },
        "statistics": {
            "animations_with_physics": report.stats.animations_with_physics,
            "animations_with_clipping": report.stats.animations_with_clipping,
            "animations_with_blend_modes": report.stats.animations_with_blend_modes,
            "animations_with_ik": report.stats.animations_with_ik,
            "animations_with_transform": report.stats.animations_with_transform,
            "animations_with_path": report.stats.animations_with_path,
            "high_vertex_animations": report.stats.high_vertex_animations,
            "poor_performing_animations": report.stats.poor_performing_animations,
        },
        "animations": [
            {
                "name": a.name,
                "duration": a.duration,
                "score": a.overall_score,
                "impact": a.impact,
                "metrics": {
                    "mesh": {
                        "count": a.mesh.active_mesh_count,
                        "vertices": a.mesh.total_vertices,
                        "deformed": a.mesh.deformed_mesh_count,
                        "weighted": a.mesh.weighted_mesh_count,
                        "score": a.mesh.score,
                    },
                    "clipping": {
                        "masks": a.clipping.active_mask_count,
                        "vertices": a.clipping.total_vertices,
                        "complex": a.clipping.complex_masks,
                        "score": a.clipping.score,
                    },
                    "blend_mode": {
                        "non_normal": a.blend_modes.active_non_normal_count,
                        "additive": a.blend_modes.active_additive_count,
                        "multiply": a.blend_modes.active_multiply_count,
                        "score": a.blend_modes.score,
                    },
                    "constraints": {
                        "physics": a.constraints.active_physics_count,
                        "ik": a.constraints.active_ik_count,
                        "transform": a.constraints.active_transform_count,
                        "path": a.constraints.active_path_count,
                        "total": a.constraints.total_active_constraints,
                        "score": a.constraints.score,
                    },
                },
                "active": a.active.to_dict(),
            }
            for a in report.animations
        ],
        "failed": [{"name": f.name, "error": f.error} for f in report.failed],
    }


def canonicalize_report(report: AnalysisReport) -> tuple[str, str]:
    """
    Returns (canonical_json, sha1_hex) deterministically.
    """
    canonical_json = json.dumps(export_report(report), ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    sha1_hex = hashlib.sha1(canonical_json.encode("utf-8")).hexdigest()
    return canonical_json, sha1_hex
