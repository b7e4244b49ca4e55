# rigperf/analyzers/blend_modes.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from ..activity import ActiveComponentSet
from ..evaluator import PoseEvaluator, Skeleton
from ..sampler import sample_animation
from ..scoring import blend_mode_score
from ..types import Animation, BlendMode, RigData

logger = logging.getLogger(__name__)

BLEND_SAMPLE_RATE = 60.0


@dataclass(frozen=True)
class BlendModeMetrics:
    active_non_normal_count: int
    active_additive_count: int
    active_multiply_count: int
    score: float


@dataclass(frozen=True)
class GlobalBlendModeAnalysis:
    blend_mode_counts: Mapping[BlendMode, int]
    slots_with_non_normal_blend_mode: Mapping[str, BlendMode]
    metrics: BlendModeMetrics


@dataclass
class _PeakCounter:
    slots: frozenset[str]
    non_normal: int = 0
    additive: int = 0
    multiply: int = 0
    frames: int = 0

    def __call__(self, time: float, skeleton: Skeleton) -> None:
        non_normal = additive = multiply = 0
        for slot in skeleton.slots:
            if slot.data.name not in self.slots:
                continue
            if slot.alpha == 0.0 or slot.attachment is None:
                continue
            mode = slot.blend_mode
            if mode == BlendMode.NORMAL:
                continue
            non_normal += 1
            if mode == BlendMode.ADDITIVE:
                additive += 1
            elif mode == BlendMode.MULTIPLY:
                multiply += 1
        self.non_normal = max(self.non_normal, non_normal)
        self.additive = max(self.additive, additive)
        self.multiply = max(self.multiply, multiply)
        self.frames += 1


def analyze_blend_modes(
    evaluator: PoseEvaluator,
    animation: Animation,
    active: ActiveComponentSet,
    sample_rate: float = BLEND_SAMPLE_RATE,
) -> BlendModeMetrics:
    """
    Peak number of simultaneously visible non-normal slots in any one frame,
    from a dedicated pass at `sample_rate`. Only slots in the active set count.
    """
    counter = _PeakCounter(slots=frozenset(active.slots))
    sample_animation(evaluator, animation, counter, sample_rate)
    logger.debug(
        "Blend modes for %r over %d frames: peak non-normal=%d additive=%d multiply=%d",
        animation.name, counter.frames, counter.non_normal, counter.additive, counter.multiply,
    )
    return BlendModeMetrics(
        active_non_normal_count=counter.non_normal,
        active_additive_count=counter.additive,
        active_multiply_count=counter.multiply,
        score=blend_mode_score(counter.non_normal, counter.additive),
    )


def analyze_global_blend_modes(rig: RigData) -> GlobalBlendModeAnalysis:
    counts: dict[BlendMode, int] = {mode: 0 for mode in BlendMode}
    non_normal: dict[str, BlendMode] = {}
    for slot in rig.slots:
        counts[slot.blend_mode] += 1
        if slot.blend_mode != BlendMode.NORMAL:
            non_normal[slot.name] = slot.blend_mode

    additive = sum(1 for m in non_normal.values() if m == BlendMode.ADDITIVE)
    multiply = sum(1 for m in non_normal.values() if m == BlendMode.MULTIPLY)
    metrics = BlendModeMetrics(
        active_non_normal_count=len(non_normal),
        active_additive_count=additive,
        active_multiply_count=multiply,
        score=blend_mode_score(len(non_normal), additive),
    )
    return GlobalBlendModeAnalysis(
        blend_mode_counts=MappingProxyType(counts),
        slots_with_non_normal_blend_mode=MappingProxyType(non_normal),
        metrics=metrics,
    )
