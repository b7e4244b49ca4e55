# rigperf/analyzer.py
from __future__ import annotations

import logging
from typing import Optional

from .activity import detect_active_components
from .analyzers import (
    SkeletonAnalysis,
    analyze_blend_modes,
    analyze_clipping,
    analyze_constraints,
    analyze_global_blend_modes,
    analyze_global_clipping,
    analyze_global_constraints,
    analyze_global_meshes,
    analyze_meshes,
    analyze_skeleton,
)
from .config import AnalysisConfig
from .evaluator import PoseEvaluator, RigPoseEvaluator
from .logs import setup_logger
from .report import (
    AnalysisReport,
    AnimationAnalysis,
    AnimationFailure,
    best_and_worst,
    compute_stats,
    median_score,
)
from .sampler import PoseResolutionError
from .scoring import ComponentScores, overall_score
from .types import Animation, RigData

logger = logging.getLogger(__name__)


def analyze_animation(
    evaluator: PoseEvaluator,
    rig: RigData,
    animation: Animation,
    skeleton: SkeletonAnalysis,
    config: Optional[AnalysisConfig] = None,
) -> AnimationAnalysis:
    """
    Detection, the five domain analyzers and the overall score for one
    animation. Raises PoseResolutionError if the evaluator fails.
    """
    cfg = config or AnalysisConfig()
    active = detect_active_components(evaluator, rig, animation, cfg.sample_rate)

    mesh = analyze_meshes(rig, animation, active)
    clipping = analyze_clipping(rig, active)
    blend = analyze_blend_modes(evaluator, animation, active, cfg.blend_sample_rate)
    constraints = analyze_constraints(rig, active)

    scores = ComponentScores(
        bone_score=skeleton.metrics.score,
        mesh_score=mesh.score,
        clipping_score=clipping.score,
        blend_mode_score=blend.score,
        constraint_score=constraints.score,
    )
    return AnimationAnalysis(
        name=animation.name,
        duration=animation.duration,
        overall_score=overall_score(scores, empty_rig=rig.is_empty),
        mesh=mesh,
        clipping=clipping,
        blend_modes=blend,
        constraints=constraints,
        active=active.freeze(),
    )


def analyze(
    rig: RigData,
    evaluator: Optional[PoseEvaluator] = None,
    config: Optional[AnalysisConfig] = None,
) -> AnalysisReport:
    cfg = config or AnalysisConfig()
    if cfg.log_path is not None:
        setup_logger(cfg.log_path)
    if evaluator is None:
        evaluator = RigPoseEvaluator(rig)

    logger.info("Analyzing rig %r: %d animations, %d bones, %d slots",
                rig.name, len(rig.animations), len(rig.bones), len(rig.slots))

    skeleton = analyze_skeleton(rig)

    analyses: list[AnimationAnalysis] = []
    failed: list[AnimationFailure] = []
    for anim in rig.animations:
        try:
            result = analyze_animation(evaluator, rig, anim, skeleton, cfg)
        except PoseResolutionError as e:
            logger.error("Animation %r failed: %s", anim.name, e)
            failed.append(AnimationFailure(name=anim.name, error=str(e)))
            continue
        logger.info("Animation %r: score=%d", anim.name, result.overall_score)
        analyses.append(result)

    best, worst = best_and_worst(analyses)
    report = AnalysisReport(
        rig_name=rig.name,
        total_animations=len(rig.animations),
        total_skins=len(rig.skins),
        skeleton=skeleton,
        animations=tuple(analyses),
        failed=tuple(failed),
        global_mesh=analyze_global_meshes(rig),
        global_clipping=analyze_global_clipping(rig),
        global_blend_modes=analyze_global_blend_modes(rig),
        global_constraints=analyze_global_constraints(rig),
        median_score=median_score([a.overall_score for a in analyses]),
        best=best,
        worst=worst,
        stats=compute_stats(
            analyses,
            high_vertex_threshold=cfg.high_vertex_threshold,
            poor_score_threshold=cfg.poor_score_threshold,
        ),
    )
    logger.info("Finished rig %r: median=%d, failed=%d", rig.name, report.median_score, len(failed))
    return report
