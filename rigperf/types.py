# rigperf/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional, Union


Affine = tuple[float, float, float, float, float, float]  # (a, b, c, d, world_x, world_y)


class BlendMode(IntEnum):
    NORMAL = 0
    ADDITIVE = 1
    MULTIPLY = 2
    SCREEN = 3


class PositionMode(IntEnum):
    FIXED = 0
    PERCENT = 1


class SpacingMode(IntEnum):
    LENGTH = 0
    FIXED = 1
    PERCENT = 2
    PROPORTIONAL = 3


class RotateMode(IntEnum):
    TANGENT = 0
    CHAIN = 1
    CHAIN_SCALE = 2


# ---------------------------
# Skeleton setup data
# ---------------------------

@dataclass(frozen=True)
class BoneData:
    name: str
    parent: Optional[str] = None
    length: float = 0.0
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0  # degrees
    scale_x: float = 1.0
    scale_y: float = 1.0


@dataclass(frozen=True)
class SlotData:
    name: str
    bone: str
    attachment: Optional[str] = None  # setup-pose attachment name
    blend_mode: BlendMode = BlendMode.NORMAL
    alpha: float = 1.0


# ---------------------------
# Attachments (closed variant family)
# ---------------------------

@dataclass(frozen=True)
class RegionAttachment:
    name: str

    @property
    def vertex_count(self) -> int:
        return 4


@dataclass(frozen=True)
class MeshAttachment:
    name: str
    vertex_count: int
    bones: tuple[int, ...] = ()  # flattened weight table; empty when unweighted
    parent_mesh: Optional[str] = None

    @property
    def is_weighted(self) -> bool:
        return len(self.bones) > 0


@dataclass(frozen=True)
class ClippingAttachment:
    name: str
    vertex_count: int
    end_slot: Optional[str] = None


@dataclass(frozen=True)
class BoundingBoxAttachment:
    name: str
    vertex_count: int


@dataclass(frozen=True)
class PathAttachment:
    name: str
    vertex_count: int
    closed: bool = False


Attachment = Union[
    RegionAttachment,
    MeshAttachment,
    ClippingAttachment,
    BoundingBoxAttachment,
    PathAttachment,
]


@dataclass(frozen=True)
class Skin:
    name: str
    # slot name -> attachment name -> attachment
    attachments: dict[str, dict[str, Attachment]] = field(default_factory=dict)
    constraints: frozenset[str] = frozenset()

    def get_attachment(self, slot_name: str, attachment_name: str) -> Optional[Attachment]:
        return self.attachments.get(slot_name, {}).get(attachment_name)


# ---------------------------
# Constraints (closed variant family)
# ---------------------------

@dataclass(frozen=True)
class IkConstraintData:
    name: str
    bones: tuple[str, ...]
    target: str
    mix: float = 1.0
    softness: float = 0.0
    bend_direction: int = 1
    compress: bool = False
    stretch: bool = False
    skin_required: bool = False


@dataclass(frozen=True)
class TransformConstraintData:
    name: str
    bones: tuple[str, ...]
    target: str
    mix_rotate: float = 1.0
    mix_x: float = 1.0
    mix_y: float = 1.0
    mix_scale_x: float = 1.0
    mix_scale_y: float = 1.0
    mix_shear_y: float = 1.0
    local: bool = False
    relative: bool = False
    skin_required: bool = False

    @property
    def mixes(self) -> tuple[float, float, float, float, float, float]:
        return (self.mix_rotate, self.mix_x, self.mix_y, self.mix_scale_x, self.mix_scale_y, self.mix_shear_y)


@dataclass(frozen=True)
class PathConstraintData:
    name: str
    bones: tuple[str, ...]
    target: str  # slot name holding the path attachment
    position_mode: PositionMode = PositionMode.PERCENT
    spacing_mode: SpacingMode = SpacingMode.LENGTH
    rotate_mode: RotateMode = RotateMode.TANGENT
    offset_rotation: float = 0.0
    position: float = 0.0
    spacing: float = 0.0
    mix_rotate: float = 1.0
    mix_x: float = 1.0
    mix_y: float = 1.0
    skin_required: bool = False


@dataclass(frozen=True)
class PhysicsConstraintData:
    name: str
    bone: str
    # per-channel influence; > 0 means the channel is simulated
    x: float = 0.0
    y: float = 0.0
    rotate: float = 0.0
    scale_x: float = 0.0
    shear_x: float = 0.0
    inertia: float = 1.0
    strength: float = 100.0
    damping: float = 1.0
    mass_inverse: float = 1.0
    wind: float = 0.0
    gravity: float = 0.0
    mix: float = 1.0
    skin_required: bool = False


ConstraintData = Union[IkConstraintData, TransformConstraintData, PathConstraintData, PhysicsConstraintData]


# ---------------------------
# Timelines
# ---------------------------

@dataclass(frozen=True)
class Keyframe:
    time: float  # seconds
    value: Any


@dataclass(frozen=True)
class BoneRotateTimeline:
    bone_index: int
    frames: tuple[Keyframe, ...]


@dataclass(frozen=True)
class BoneTranslateTimeline:
    bone_index: int
    frames: tuple[Keyframe, ...]  # value = (x, y)


@dataclass(frozen=True)
class AttachmentTimeline:
    slot_index: int
    frames: tuple[Keyframe, ...]  # value = attachment name or None; stepped


@dataclass(frozen=True)
class AlphaTimeline:
    slot_index: int
    frames: tuple[Keyframe, ...]  # value = alpha in [0, 1]


@dataclass(frozen=True)
class DeformTimeline:
    slot_index: int
    attachment: str
    frames: tuple[Keyframe, ...]


@dataclass(frozen=True)
class IkConstraintTimeline:
    constraint_index: int
    frames: tuple[Keyframe, ...]  # value = mix


@dataclass(frozen=True)
class TransformConstraintTimeline:
    constraint_index: int
    frames: tuple[Keyframe, ...]  # value = (rotate, x, y, scale_x, scale_y, shear_y)


@dataclass(frozen=True)
class PathConstraintMixTimeline:
    constraint_index: int
    frames: tuple[Keyframe, ...]  # value = (rotate, x, y)


@dataclass(frozen=True)
class PathConstraintPositionTimeline:
    constraint_index: int
    frames: tuple[Keyframe, ...]


@dataclass(frozen=True)
class PathConstraintSpacingTimeline:
    constraint_index: int
    frames: tuple[Keyframe, ...]


@dataclass(frozen=True)
class PhysicsConstraintTimeline:
    constraint_index: int
    frames: tuple[Keyframe, ...]  # value = mix


Timeline = Union[
    BoneRotateTimeline,
    BoneTranslateTimeline,
    AttachmentTimeline,
    AlphaTimeline,
    DeformTimeline,
    IkConstraintTimeline,
    TransformConstraintTimeline,
    PathConstraintMixTimeline,
    PathConstraintPositionTimeline,
    PathConstraintSpacingTimeline,
    PhysicsConstraintTimeline,
]

PATH_TIMELINES = (PathConstraintMixTimeline, PathConstraintPositionTimeline, PathConstraintSpacingTimeline)


@dataclass(frozen=True)
class Animation:
    name: str
    duration: float
    timelines: tuple[Timeline, ...] = ()


@dataclass(frozen=True)
class RigData:
    name: str = ""
    bones: tuple[BoneData, ...] = ()
    slots: tuple[SlotData, ...] = ()
    skins: tuple[Skin, ...] = ()
    ik_constraints: tuple[IkConstraintData, ...] = ()
    transform_constraints: tuple[TransformConstraintData, ...] = ()
    path_constraints: tuple[PathConstraintData, ...] = ()
    physics_constraints: tuple[PhysicsConstraintData, ...] = ()
    animations: tuple[Animation, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.bones and not self.slots

    def find_animation(self, name: str) -> Optional[Animation]:
        for a in self.animations:
            if a.name == name:
                return a
        return None

    def slot_index(self, name: str) -> int:
        for i, s in enumerate(self.slots):
            if s.name == name:
                return i
        return -1

    def get_attachment(self, slot_name: str, attachment_name: str) -> Optional[Attachment]:
        """
        Look up an attachment by slot and name, default skin first.
        """
        for skin in self.skins:
            att = skin.get_attachment(slot_name, attachment_name)
            if att is not None:
                return att
        return None
