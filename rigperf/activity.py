# rigperf/activity.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Iterable

from .evaluator import Bone, PoseEvaluator, Skeleton
from .sampler import DEFAULT_SAMPLE_RATE, sample_animation
from .types import (
    PATH_TIMELINES,
    Animation,
    BlendMode,
    ClippingAttachment,
    DeformTimeline,
    IkConstraintTimeline,
    MeshAttachment,
    PhysicsConstraintTimeline,
    RigData,
    TransformConstraintTimeline,
)

logger = logging.getLogger(__name__)


def attachment_id(slot_name: str, attachment_name: str) -> str:
    return f"{slot_name}:{attachment_name}"


def split_attachment_id(component_id: str) -> tuple[str, str]:
    # attachment names may contain ':'; slot names are split at the first one
    slot_name, _, attachment_name = component_id.partition(":")
    return slot_name, attachment_name


class _ComponentFlags:
    slots: AbstractSet[str]
    meshes: AbstractSet[str]
    clipping: AbstractSet[str]
    bones: AbstractSet[str]
    ik: AbstractSet[str]
    transform: AbstractSet[str]
    path: AbstractSet[str]
    physics: AbstractSet[str]
    has_blend_modes: bool

    @property
    def has_clipping(self) -> bool:
        return bool(self.clipping)

    @property
    def has_ik(self) -> bool:
        return bool(self.ik)

    @property
    def has_transform(self) -> bool:
        return bool(self.transform)

    @property
    def has_path(self) -> bool:
        return bool(self.path)

    @property
    def has_physics(self) -> bool:
        return bool(self.physics)

    @property
    def constraint_count(self) -> int:
        return len(self.ik) + len(self.transform) + len(self.path) + len(self.physics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slots": sorted(self.slots),
            "meshes": sorted(self.meshes),
            "clipping": sorted(self.clipping),
            "bones": sorted(self.bones),
            "constraints": {
                "ik": sorted(self.ik),
                "transform": sorted(self.transform),
                "path": sorted(self.path),
                "physics": sorted(self.physics),
            },
            "has_clipping": self.has_clipping,
            "has_blend_modes": self.has_blend_modes,
            "has_ik": self.has_ik,
            "has_transform": self.has_transform,
            "has_path": self.has_path,
            "has_physics": self.has_physics,
        }


@dataclass(frozen=True)
class ActiveComponents(_ComponentFlags):
    """
    Immutable snapshot of an ActiveComponentSet, as stored in reports.
    """

    slots: frozenset[str] = frozenset()
    meshes: frozenset[str] = frozenset()
    clipping: frozenset[str] = frozenset()
    bones: frozenset[str] = frozenset()
    ik: frozenset[str] = frozenset()
    transform: frozenset[str] = frozenset()
    path: frozenset[str] = frozenset()
    physics: frozenset[str] = frozenset()
    has_blend_modes: bool = False


@dataclass
class ActiveComponentSet(_ComponentFlags):
    """
    Everything that could matter while one animation plays: the union over
    all sampled poses plus every entity its timelines drive. Members are
    only ever added.
    """

    slots: set[str] = field(default_factory=set)
    meshes: set[str] = field(default_factory=set)  # "slot:attachment"
    clipping: set[str] = field(default_factory=set)  # "slot:attachment"
    bones: set[str] = field(default_factory=set)
    ik: set[str] = field(default_factory=set)
    transform: set[str] = field(default_factory=set)
    path: set[str] = field(default_factory=set)
    physics: set[str] = field(default_factory=set)
    has_blend_modes: bool = False

    def add_bone_chain(self, bone: Bone | None) -> None:
        while bone is not None:
            self.bones.add(bone.data.name)
            bone = bone.parent

    def add_bones(self, bones: Iterable[Bone]) -> None:
        for b in bones:
            self.bones.add(b.data.name)

    def update(self, other: ActiveComponentSet) -> None:
        self.slots |= other.slots
        self.meshes |= other.meshes
        self.clipping |= other.clipping
        self.bones |= other.bones
        self.ik |= other.ik
        self.transform |= other.transform
        self.path |= other.path
        self.physics |= other.physics
        self.has_blend_modes = self.has_blend_modes or other.has_blend_modes

    def freeze(self) -> ActiveComponents:
        return ActiveComponents(
            slots=frozenset(self.slots),
            meshes=frozenset(self.meshes),
            clipping=frozenset(self.clipping),
            bones=frozenset(self.bones),
            ik=frozenset(self.ik),
            transform=frozenset(self.transform),
            path=frozenset(self.path),
            physics=frozenset(self.physics),
            has_blend_modes=self.has_blend_modes,
        )


def scan_frame(skeleton: Skeleton, active: ActiveComponentSet) -> None:
    """
    Dynamic pass over one resolved pose.
    """
    for slot in skeleton.slots:
        # invisible: fully transparent or nothing attached
        if slot.alpha == 0.0:
            continue
        att = slot.attachment
        if att is None:
            continue

        name = slot.data.name
        active.slots.add(name)
        if isinstance(att, MeshAttachment):
            active.meshes.add(attachment_id(name, att.name))
        elif isinstance(att, ClippingAttachment):
            active.clipping.add(attachment_id(name, att.name))

        if slot.blend_mode != BlendMode.NORMAL:
            active.has_blend_modes = True

        active.add_bone_chain(slot.bone)

    for ik in skeleton.ik_constraints:
        if ik.active and ik.mix > 0.0:
            active.ik.add(ik.data.name)
            active.add_bones(ik.bones)

    for tc in skeleton.transform_constraints:
        if tc.active and any(m > 0.0 for m in tc.mixes):
            active.transform.add(tc.data.name)
            active.add_bones(tc.bones)

    for pc in skeleton.path_constraints:
        if pc.active and (pc.mix_rotate > 0.0 or pc.mix_x > 0.0 or pc.mix_y > 0.0):
            active.path.add(pc.data.name)
            active.add_bones(pc.bones)

    for ph in skeleton.physics_constraints:
        if ph.active and ph.mix > 0.0:
            active.physics.add(ph.data.name)
            active.add_bones(ph.bones)


def _constraint_name(group: tuple, index: int, kind: str, animation: str) -> str | None:
    if 0 <= index < len(group):
        return group[index].name
    logger.warning("Animation %r: %s timeline references missing constraint index %d; ignored", animation, kind, index)
    return None


def scan_timelines(animation: Animation, rig: RigData, active: ActiveComponentSet) -> None:
    """
    Static pass: anything a constraint or deform timeline drives counts as
    active, even when no sampled pose showed it.
    """
    for tl in animation.timelines:
        if isinstance(tl, IkConstraintTimeline):
            name = _constraint_name(rig.ik_constraints, tl.constraint_index, "IK", animation.name)
            if name is not None:
                active.ik.add(name)
        elif isinstance(tl, TransformConstraintTimeline):
            name = _constraint_name(rig.transform_constraints, tl.constraint_index, "transform", animation.name)
            if name is not None:
                active.transform.add(name)
        elif isinstance(tl, PATH_TIMELINES):
            name = _constraint_name(rig.path_constraints, tl.constraint_index, "path", animation.name)
            if name is not None:
                active.path.add(name)
        elif isinstance(tl, PhysicsConstraintTimeline):
            name = _constraint_name(rig.physics_constraints, tl.constraint_index, "physics", animation.name)
            if name is not None:
                active.physics.add(name)
        elif isinstance(tl, DeformTimeline):
            if not 0 <= tl.slot_index < len(rig.slots):
                logger.warning("Animation %r: deform timeline references missing slot index %d; ignored",
                               animation.name, tl.slot_index)
                continue
            slot_name = rig.slots[tl.slot_index].name
            att = rig.get_attachment(slot_name, tl.attachment)
            if att is None:
                logger.warning("Animation %r: deform timeline references unknown attachment %r on slot %r; ignored",
                               animation.name, tl.attachment, slot_name)
                continue
            active.slots.add(slot_name)
            if isinstance(att, MeshAttachment):
                active.meshes.add(attachment_id(slot_name, att.name))


def deformed_mesh_ids(animation: Animation, rig: RigData) -> set[str]:
    out: set[str] = set()
    for tl in animation.timelines:
        if not isinstance(tl, DeformTimeline) or not 0 <= tl.slot_index < len(rig.slots):
            continue
        slot_name = rig.slots[tl.slot_index].name
        if isinstance(rig.get_attachment(slot_name, tl.attachment), MeshAttachment):
            out.add(attachment_id(slot_name, tl.attachment))
    return out


def detect_active_components(
    evaluator: PoseEvaluator,
    rig: RigData,
    animation: Animation,
    sample_rate: float = DEFAULT_SAMPLE_RATE,
) -> ActiveComponentSet:
    active = ActiveComponentSet()
    sample_animation(evaluator, animation, lambda t, skeleton: scan_frame(skeleton, active), sample_rate)
    scan_timelines(animation, rig, active)
    logger.debug(
        "Completed analysis of %r: found %d active slots, %d meshes, %d constraints",
        animation.name, len(active.slots), len(active.meshes), active.constraint_count,
    )
    return active
