# rigperf/evaluator.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from .keyframes import sample_linear, sample_stepped
from .types import (
    Affine,
    AlphaTimeline,
    Animation,
    Attachment,
    AttachmentTimeline,
    BlendMode,
    BoneData,
    BoneRotateTimeline,
    BoneTranslateTimeline,
    IkConstraintData,
    IkConstraintTimeline,
    PathConstraintData,
    PathConstraintMixTimeline,
    PathConstraintPositionTimeline,
    PathConstraintSpacingTimeline,
    PhysicsConstraintData,
    PhysicsConstraintTimeline,
    RigData,
    Skin,
    SlotData,
    TransformConstraintData,
    TransformConstraintTimeline,
)

logger = logging.getLogger(__name__)


class UnknownAnimationError(KeyError):
    pass


# ---------------------------
# 2D affine helpers (a, b, c, d, tx, ty); column-vector convention
# ---------------------------

IDENTITY: Affine = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


def affine_local(x: float, y: float, rotation_deg: float, sx: float, sy: float) -> Affine:
    r = math.radians(rotation_deg)
    cos_r = math.cos(r)
    sin_r = math.sin(r)
    return (cos_r * sx, -sin_r * sy, sin_r * sx, cos_r * sy, float(x), float(y))


def affine_mul(A: Affine, B: Affine) -> Affine:
    # C = A * B
    a0, b0, c0, d0, x0, y0 = A
    a1, b1, c1, d1, x1, y1 = B
    return (
        a0 * a1 + b0 * c1,
        a0 * b1 + b0 * d1,
        c0 * a1 + d0 * c1,
        c0 * b1 + d0 * d1,
        a0 * x1 + b0 * y1 + x0,
        c0 * x1 + d0 * y1 + y0,
    )


# ---------------------------
# Live pose objects
# ---------------------------

class Bone:
    def __init__(self, data: BoneData, index: int) -> None:
        self.data = data
        self.index = index
        self.parent: Optional[Bone] = None
        self.children: List[Bone] = []
        self.world: Affine = IDENTITY
        self.set_to_setup_pose()

    def set_to_setup_pose(self) -> None:
        self.x = self.data.x
        self.y = self.data.y
        self.rotation = self.data.rotation
        self.scale_x = self.data.scale_x
        self.scale_y = self.data.scale_y

    @property
    def world_x(self) -> float:
        return self.world[4]

    @property
    def world_y(self) -> float:
        return self.world[5]


class Slot:
    def __init__(self, data: SlotData, index: int, bone: Bone) -> None:
        self.data = data
        self.index = index
        self.bone = bone
        self.attachment: Optional[Attachment] = None
        self.alpha = data.alpha

    @property
    def blend_mode(self) -> BlendMode:
        return self.data.blend_mode


class IkConstraint:
    def __init__(self, data: IkConstraintData, bones: List[Bone], target: Optional[Bone], active: bool) -> None:
        self.data = data
        self.bones = bones
        self.target = target
        self.active = active
        self.mix = data.mix

    def set_to_setup_pose(self) -> None:
        self.mix = self.data.mix


class TransformConstraint:
    def __init__(self, data: TransformConstraintData, bones: List[Bone], target: Optional[Bone], active: bool) -> None:
        self.data = data
        self.bones = bones
        self.target = target
        self.active = active
        self.set_to_setup_pose()

    def set_to_setup_pose(self) -> None:
        (self.mix_rotate, self.mix_x, self.mix_y,
         self.mix_scale_x, self.mix_scale_y, self.mix_shear_y) = self.data.mixes

    @property
    def mixes(self) -> tuple[float, float, float, float, float, float]:
        return (self.mix_rotate, self.mix_x, self.mix_y, self.mix_scale_x, self.mix_scale_y, self.mix_shear_y)


class PathConstraint:
    def __init__(self, data: PathConstraintData, bones: List[Bone], target: Optional[Slot], active: bool) -> None:
        self.data = data
        self.bones = bones
        self.target = target
        self.active = active
        self.set_to_setup_pose()

    def set_to_setup_pose(self) -> None:
        self.mix_rotate = self.data.mix_rotate
        self.mix_x = self.data.mix_x
        self.mix_y = self.data.mix_y
        self.position = self.data.position
        self.spacing = self.data.spacing


class PhysicsConstraint:
    def __init__(self, data: PhysicsConstraintData, bone: Optional[Bone], active: bool) -> None:
        self.data = data
        self.bone = bone
        self.active = active
        self.mix = data.mix

    @property
    def bones(self) -> List[Bone]:
        return [self.bone] if self.bone is not None else []

    def set_to_setup_pose(self) -> None:
        self.mix = self.data.mix


class Skeleton:
    """
    Mutable pose built from RigData. Bones, slots and constraints keep the
    rig's declaration order, so timeline indices address them directly.
    """

    def __init__(self, rig: RigData, skin: Optional[Skin] = None) -> None:
        self.rig = rig
        self.skin = skin if skin is not None else (rig.skins[0] if rig.skins else None)

        self.bones: List[Bone] = [Bone(b, i) for i, b in enumerate(rig.bones)]
        self._bones_by_name: Dict[str, Bone] = {b.data.name: b for b in self.bones}
        for b in self.bones:
            if b.data.parent is None:
                continue
            parent = self._bones_by_name.get(b.data.parent)
            if parent is None or parent is b:
                logger.warning("Bone %r references unknown parent %r; treating as root", b.data.name, b.data.parent)
                continue
            b.parent = parent
            parent.children.append(b)

        self.slots: List[Slot] = []
        for i, sd in enumerate(rig.slots):
            bone = self._bones_by_name.get(sd.bone)
            if bone is None:
                logger.warning("Slot %r references unknown bone %r; skipped", sd.name, sd.bone)
                continue
            self.slots.append(Slot(sd, i, bone))
        self._slots_by_index: Dict[int, Slot] = {s.index: s for s in self.slots}

        self.ik_constraints = [
            IkConstraint(d, self._bone_list(d.bones), self._bones_by_name.get(d.target), self._is_active(d.name, d.skin_required))
            for d in rig.ik_constraints
        ]
        self.transform_constraints = [
            TransformConstraint(d, self._bone_list(d.bones), self._bones_by_name.get(d.target), self._is_active(d.name, d.skin_required))
            for d in rig.transform_constraints
        ]
        self.path_constraints = [
            PathConstraint(d, self._bone_list(d.bones), self.find_slot(d.target), self._is_active(d.name, d.skin_required))
            for d in rig.path_constraints
        ]
        self.physics_constraints = [
            PhysicsConstraint(d, self._bones_by_name.get(d.bone), self._is_active(d.name, d.skin_required))
            for d in rig.physics_constraints
        ]

        self.set_to_setup_pose()
        self.update_world_transform()

    def _bone_list(self, names: tuple[str, ...]) -> List[Bone]:
        return [self._bones_by_name[n] for n in names if n in self._bones_by_name]

    def _is_active(self, name: str, skin_required: bool) -> bool:
        if not skin_required:
            return True
        return self.skin is not None and name in self.skin.constraints

    def find_bone(self, name: str) -> Optional[Bone]:
        return self._bones_by_name.get(name)

    def find_slot(self, name: str) -> Optional[Slot]:
        for s in self.slots:
            if s.data.name == name:
                return s
        return None

    def slot_at(self, index: int) -> Optional[Slot]:
        return self._slots_by_index.get(index)

    def get_attachment(self, slot: Slot, name: str) -> Optional[Attachment]:
        if self.skin is not None:
            att = self.skin.get_attachment(slot.data.name, name)
            if att is not None:
                return att
        return self.rig.get_attachment(slot.data.name, name)

    def set_to_setup_pose(self) -> None:
        for b in self.bones:
            b.set_to_setup_pose()
        for s in self.slots:
            s.alpha = s.data.alpha
            s.attachment = self.get_attachment(s, s.data.attachment) if s.data.attachment else None
        for group in (self.ik_constraints, self.transform_constraints, self.path_constraints, self.physics_constraints):
            for c in group:
                c.set_to_setup_pose()

    def update_world_transform(self) -> None:
        """
        World = ParentWorld * Local, resolved for every bone regardless of ordering.
        """
        done: set[int] = set()

        def compute_world(bone: Bone, stack: set[int]) -> Affine:
            if bone.index in done:
                return bone.world
            local = affine_local(bone.x, bone.y, bone.rotation, bone.scale_x, bone.scale_y)
            if bone.parent is None or bone.index in stack:
                # cycle guard; treat as root
                world = local
            else:
                stack.add(bone.index)
                world = affine_mul(compute_world(bone.parent, stack), local)
                stack.discard(bone.index)
            bone.world = world
            done.add(bone.index)
            return world

        for b in self.bones:
            compute_world(b, set())


# ---------------------------
# Evaluator boundary
# ---------------------------

@dataclass
class TrackEntry:
    animation_name: str
    time: float
    loop: bool


class PoseEvaluator(Protocol):
    skeleton: Skeleton

    def set_animation(self, track_index: int, animation_name: str, loop: bool) -> None: ...

    def set_track_time(self, track_index: int, time: float) -> None: ...

    def get_current_track(self, track_index: int) -> Optional[TrackEntry]: ...

    def clear_track(self, track_index: int) -> None: ...

    def apply_and_resolve(self) -> None: ...


class RigPoseEvaluator:
    """
    Deterministic keyframe evaluator over RigData.

    Applies bone, slot and constraint-mix timelines of every set track onto
    the setup pose, then resolves world transforms. Constraint outputs are
    not solved; only their mix values are driven.
    """

    def __init__(self, rig: RigData, skin: Optional[Skin] = None) -> None:
        self.rig = rig
        self.skeleton = Skeleton(rig, skin)
        self._tracks: Dict[int, TrackEntry] = {}

    def set_animation(self, track_index: int, animation_name: str, loop: bool) -> None:
        if self.rig.find_animation(animation_name) is None:
            raise UnknownAnimationError(animation_name)
        self._tracks[track_index] = TrackEntry(animation_name=animation_name, time=0.0, loop=bool(loop))

    def set_track_time(self, track_index: int, time: float) -> None:
        entry = self._tracks.get(track_index)
        if entry is not None:
            entry.time = float(time)

    def get_current_track(self, track_index: int) -> Optional[TrackEntry]:
        return self._tracks.get(track_index)

    def clear_track(self, track_index: int) -> None:
        self._tracks.pop(track_index, None)

    def apply_and_resolve(self) -> None:
        sk = self.skeleton
        sk.set_to_setup_pose()
        for track_index in sorted(self._tracks):
            entry = self._tracks[track_index]
            anim = self.rig.find_animation(entry.animation_name)
            if anim is None:
                continue
            t = entry.time
            if entry.loop and anim.duration > 0.0:
                t = math.fmod(t, anim.duration)
            self._apply_animation(anim, t)
        sk.update_world_transform()

    def _apply_animation(self, anim: Animation, t: float) -> None:
        sk = self.skeleton
        for tl in anim.timelines:
            if isinstance(tl, BoneRotateTimeline):
                if 0 <= tl.bone_index < len(sk.bones):
                    bone = sk.bones[tl.bone_index]
                    bone.rotation = bone.data.rotation + float(sample_linear(tl.frames, t, 0.0))
            elif isinstance(tl, BoneTranslateTimeline):
                if 0 <= tl.bone_index < len(sk.bones):
                    bone = sk.bones[tl.bone_index]
                    dx, dy = sample_linear(tl.frames, t, (0.0, 0.0))
                    bone.x = bone.data.x + dx
                    bone.y = bone.data.y + dy
            elif isinstance(tl, AttachmentTimeline):
                slot = sk.slot_at(tl.slot_index)
                if slot is not None and tl.frames and t >= tl.frames[0].time:
                    name = sample_stepped(tl.frames, t)
                    slot.attachment = sk.get_attachment(slot, name) if name else None
            elif isinstance(tl, AlphaTimeline):
                slot = sk.slot_at(tl.slot_index)
                if slot is not None:
                    slot.alpha = float(sample_linear(tl.frames, t, slot.data.alpha))
            elif isinstance(tl, IkConstraintTimeline):
                if 0 <= tl.constraint_index < len(sk.ik_constraints):
                    c = sk.ik_constraints[tl.constraint_index]
                    c.mix = float(sample_linear(tl.frames, t, c.data.mix))
            elif isinstance(tl, TransformConstraintTimeline):
                if 0 <= tl.constraint_index < len(sk.transform_constraints):
                    c = sk.transform_constraints[tl.constraint_index]
                    (c.mix_rotate, c.mix_x, c.mix_y,
                     c.mix_scale_x, c.mix_scale_y, c.mix_shear_y) = sample_linear(tl.frames, t, c.data.mixes)
            elif isinstance(tl, PathConstraintMixTimeline):
                if 0 <= tl.constraint_index < len(sk.path_constraints):
                    c = sk.path_constraints[tl.constraint_index]
                    setup = (c.data.mix_rotate, c.data.mix_x, c.data.mix_y)
                    c.mix_rotate, c.mix_x, c.mix_y = sample_linear(tl.frames, t, setup)
            elif isinstance(tl, PathConstraintPositionTimeline):
                if 0 <= tl.constraint_index < len(sk.path_constraints):
                    c = sk.path_constraints[tl.constraint_index]
                    c.position = float(sample_linear(tl.frames, t, c.data.position))
            elif isinstance(tl, PathConstraintSpacingTimeline):
                if 0 <= tl.constraint_index < len(sk.path_constraints):
                    c = sk.path_constraints[tl.constraint_index]
                    c.spacing = float(sample_linear(tl.frames, t, c.data.spacing))
            elif isinstance(tl, PhysicsConstraintTimeline):
                if 0 <= tl.constraint_index < len(sk.physics_constraints):
                    c = sk.physics_constraints[tl.constraint_index]
                    c.mix = float(sample_linear(tl.frames, t, c.data.mix))
            # deform offsets do not change visibility or influence; nothing to apply
