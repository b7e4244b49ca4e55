# rigperf/analyzers/mesh.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..activity import ActiveComponentSet, attachment_id, deformed_mesh_ids, split_attachment_id
from ..scoring import mesh_score
from ..types import Animation, MeshAttachment, RigData

logger = logging.getLogger(__name__)

HIGH_VERTEX_MESH = 50
COMPLEX_MESH_VERTICES = 20


@dataclass(frozen=True)
class MeshMetrics:
    active_mesh_count: int
    total_vertices: int
    weighted_mesh_count: int
    deformed_mesh_count: int
    avg_vertices_per_mesh: float
    high_vertex_meshes: int
    complex_meshes: int
    score: float


@dataclass(frozen=True)
class MeshInfo:
    slot_name: str
    attachment: str
    vertices: int
    bone_weights: int
    has_parent_mesh: bool
    is_deformed: bool


@dataclass(frozen=True)
class GlobalMeshAnalysis:
    meshes: tuple[MeshInfo, ...]
    metrics: MeshMetrics


def _metrics(infos: list[MeshInfo]) -> MeshMetrics:
    count = len(infos)
    total = sum(m.vertices for m in infos)
    weighted = sum(1 for m in infos if m.bone_weights > 0)
    deformed = sum(1 for m in infos if m.is_deformed)
    return MeshMetrics(
        active_mesh_count=count,
        total_vertices=total,
        weighted_mesh_count=weighted,
        deformed_mesh_count=deformed,
        avg_vertices_per_mesh=(total / count) if count > 0 else 0.0,
        high_vertex_meshes=sum(1 for m in infos if m.vertices > HIGH_VERTEX_MESH),
        complex_meshes=sum(
            1 for m in infos if m.vertices > COMPLEX_MESH_VERTICES and (m.is_deformed or m.bone_weights > 0)
        ),
        score=mesh_score(count, total, deformed, weighted),
    )


def analyze_meshes(rig: RigData, animation: Animation, active: ActiveComponentSet) -> MeshMetrics:
    deformed = deformed_mesh_ids(animation, rig)

    infos: list[MeshInfo] = []
    for mesh_id in sorted(active.meshes):
        slot_name, att_name = split_attachment_id(mesh_id)
        att = rig.get_attachment(slot_name, att_name)
        if not isinstance(att, MeshAttachment):
            logger.debug("Animation %r: mesh %r not found in rig skins; skipped", animation.name, mesh_id)
            continue
        infos.append(
            MeshInfo(
                slot_name=slot_name,
                attachment=att.name,
                vertices=att.vertex_count,
                bone_weights=len(att.bones),
                has_parent_mesh=att.parent_mesh is not None,
                is_deformed=mesh_id in deformed,
            )
        )
    return _metrics(infos)


def analyze_global_meshes(rig: RigData) -> GlobalMeshAnalysis:
    """
    Every mesh bound in the setup pose, flagged deformed when any animation
    carries a deform timeline for it. Sorted by vertex count, largest first.
    """
    deformed: set[str] = set()
    for anim in rig.animations:
        deformed |= deformed_mesh_ids(anim, rig)

    infos: list[MeshInfo] = []
    for slot in rig.slots:
        if not slot.attachment:
            continue
        att = rig.get_attachment(slot.name, slot.attachment)
        if not isinstance(att, MeshAttachment):
            continue
        infos.append(
            MeshInfo(
                slot_name=slot.name,
                attachment=att.name,
                vertices=att.vertex_count,
                bone_weights=len(att.bones),
                has_parent_mesh=att.parent_mesh is not None,
                is_deformed=attachment_id(slot.name, att.name) in deformed,
            )
        )

    infos.sort(key=lambda m: -m.vertices)
    return GlobalMeshAnalysis(meshes=tuple(infos), metrics=_metrics(infos))
