# rigperf/analyzers/clipping.py
from __future__ import annotations

from dataclasses import dataclass

from ..activity import ActiveComponentSet, split_attachment_id
from ..scoring import COMPLEX_MASK_VERTICES, clipping_score
from ..types import ClippingAttachment, RigData


@dataclass(frozen=True)
class ClippingMetrics:
    active_mask_count: int
    total_vertices: int
    complex_masks: int
    score: float


@dataclass(frozen=True)
class ClippingMaskInfo:
    slot_name: str
    vertex_count: int


@dataclass(frozen=True)
class GlobalClippingAnalysis:
    masks: tuple[ClippingMaskInfo, ...]
    metrics: ClippingMetrics


def _metrics(masks: list[ClippingMaskInfo]) -> ClippingMetrics:
    total = sum(m.vertex_count for m in masks)
    complex_masks = sum(1 for m in masks if m.vertex_count > COMPLEX_MASK_VERTICES)
    return ClippingMetrics(
        active_mask_count=len(masks),
        total_vertices=total,
        complex_masks=complex_masks,
        score=clipping_score(len(masks), total, complex_masks),
    )


def analyze_clipping(rig: RigData, active: ActiveComponentSet) -> ClippingMetrics:
    masks: list[ClippingMaskInfo] = []
    for clip_id in sorted(active.clipping):
        slot_name, att_name = split_attachment_id(clip_id)
        att = rig.get_attachment(slot_name, att_name)
        if isinstance(att, ClippingAttachment):
            masks.append(ClippingMaskInfo(slot_name=slot_name, vertex_count=att.vertex_count))
    return _metrics(masks)


def analyze_global_clipping(rig: RigData) -> GlobalClippingAnalysis:
    masks: list[ClippingMaskInfo] = []
    for slot in rig.slots:
        if not slot.attachment:
            continue
        att = rig.get_attachment(slot.name, slot.attachment)
        if isinstance(att, ClippingAttachment):
            masks.append(ClippingMaskInfo(slot_name=slot.name, vertex_count=att.vertex_count))
    return GlobalClippingAnalysis(masks=tuple(masks), metrics=_metrics(masks))
