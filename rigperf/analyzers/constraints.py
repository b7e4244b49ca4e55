# rigperf/analyzers/constraints.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..activity import ActiveComponentSet
from ..scoring import (
    constraint_score,
    ik_impact,
    path_impact,
    physics_impact,
    transform_impact,
)
from ..types import (
    IkConstraintData,
    PathConstraintData,
    PhysicsConstraintData,
    RigData,
    Skin,
    TransformConstraintData,
)

DEFAULT_PHYSICS_STRENGTH = 100.0
DEFAULT_PHYSICS_DAMPING = 1.0


@dataclass(frozen=True)
class ConstraintMetrics:
    active_ik_count: int
    active_transform_count: int
    active_path_count: int
    active_physics_count: int
    total_active_constraints: int
    ik_impact: float
    transform_impact: float
    path_impact: float
    physics_impact: float
    score: float


@dataclass(frozen=True)
class IkConstraintInfo:
    name: str
    target: str
    bones: tuple[str, ...]
    mix: float
    softness: float
    bend_direction: int
    compress: bool
    stretch: bool
    is_active: bool


@dataclass(frozen=True)
class TransformConstraintInfo:
    name: str
    target: str
    bones: tuple[str, ...]
    mix_rotate: float
    mix_x: float
    mix_y: float
    mix_scale_x: float
    mix_scale_y: float
    mix_shear_y: float
    affected_channels: int
    is_active: bool
    is_local: bool
    is_relative: bool


@dataclass(frozen=True)
class PathConstraintInfo:
    name: str
    target: str
    bones: tuple[str, ...]
    mix_rotate: float
    mix_x: float
    mix_y: float
    position: float
    spacing: float
    position_mode: int
    spacing_mode: int
    rotate_mode: int
    offset_rotation: float
    is_active: bool


@dataclass(frozen=True)
class PhysicsConstraintInfo:
    name: str
    bone: str
    inertia: float
    strength: float
    damping: float
    mass_inverse: float
    wind: float
    gravity: float
    mix: float
    affects_x: bool
    affects_y: bool
    affects_rotation: bool
    affects_scale: bool
    affects_shear: bool
    is_active: bool

    @property
    def affected_channels(self) -> int:
        return sum((self.affects_x, self.affects_y, self.affects_rotation, self.affects_scale, self.affects_shear))


@dataclass(frozen=True)
class GlobalConstraintAnalysis:
    ik_constraints: tuple[IkConstraintInfo, ...]
    transform_constraints: tuple[TransformConstraintInfo, ...]
    path_constraints: tuple[PathConstraintInfo, ...]
    physics_constraints: tuple[PhysicsConstraintInfo, ...]
    metrics: ConstraintMetrics


def transform_channels(c: TransformConstraintData) -> int:
    return sum(1 for m in c.mixes if m > 0.0)


def physics_channels(c: PhysicsConstraintData) -> int:
    return sum(1 for v in (c.x, c.y, c.rotate, c.scale_x, c.shear_x) if v > 0.0)


def _physics_tuning(c: PhysicsConstraintData) -> tuple[int, float, float]:
    # zero strength or damping means "unset"
    strength = c.strength or DEFAULT_PHYSICS_STRENGTH
    damping = c.damping or DEFAULT_PHYSICS_DAMPING
    return (physics_channels(c), strength, damping)


def _metrics(
    ik: list[IkConstraintData],
    transform: list[TransformConstraintData],
    path: list[PathConstraintData],
    physics: list[PhysicsConstraintData],
) -> ConstraintMetrics:
    ik_i = ik_impact(len(c.bones) for c in ik)
    tr_i = transform_impact((len(c.bones), transform_channels(c)) for c in transform)
    pa_i = path_impact((len(c.bones), int(c.rotate_mode), int(c.spacing_mode)) for c in path)
    ph_i = physics_impact(_physics_tuning(c) for c in physics)
    total = len(ik) + len(transform) + len(path) + len(physics)
    return ConstraintMetrics(
        active_ik_count=len(ik),
        active_transform_count=len(transform),
        active_path_count=len(path),
        active_physics_count=len(physics),
        total_active_constraints=total,
        ik_impact=ik_i,
        transform_impact=tr_i,
        path_impact=pa_i,
        physics_impact=ph_i,
        score=constraint_score(ik_i, tr_i, pa_i, ph_i, total),
    )


def analyze_constraints(rig: RigData, active: ActiveComponentSet) -> ConstraintMetrics:
    """
    Structural cost of the constraints active in one animation, taken from
    setup data so the result depends only on (rig, active set).
    """
    return _metrics(
        [c for c in rig.ik_constraints if c.name in active.ik],
        [c for c in rig.transform_constraints if c.name in active.transform],
        [c for c in rig.path_constraints if c.name in active.path],
        [c for c in rig.physics_constraints if c.name in active.physics],
    )


def _skin_active(skin: Optional[Skin], name: str, skin_required: bool) -> bool:
    if not skin_required:
        return True
    return skin is not None and name in skin.constraints


def analyze_global_constraints(rig: RigData) -> GlobalConstraintAnalysis:
    skin = rig.skins[0] if rig.skins else None

    ik = tuple(
        IkConstraintInfo(
            name=c.name,
            target=c.target,
            bones=c.bones,
            mix=c.mix,
            softness=c.softness,
            bend_direction=c.bend_direction,
            compress=c.compress,
            stretch=c.stretch,
            is_active=_skin_active(skin, c.name, c.skin_required),
        )
        for c in rig.ik_constraints
    )
    transform = tuple(
        TransformConstraintInfo(
            name=c.name,
            target=c.target,
            bones=c.bones,
            mix_rotate=c.mix_rotate,
            mix_x=c.mix_x,
            mix_y=c.mix_y,
            mix_scale_x=c.mix_scale_x,
            mix_scale_y=c.mix_scale_y,
            mix_shear_y=c.mix_shear_y,
            affected_channels=transform_channels(c),
            is_active=_skin_active(skin, c.name, c.skin_required),
            is_local=c.local,
            is_relative=c.relative,
        )
        for c in rig.transform_constraints
    )
    path = tuple(
        PathConstraintInfo(
            name=c.name,
            target=c.target,
            bones=c.bones,
            mix_rotate=c.mix_rotate,
            mix_x=c.mix_x,
            mix_y=c.mix_y,
            position=c.position,
            spacing=c.spacing,
            position_mode=int(c.position_mode),
            spacing_mode=int(c.spacing_mode),
            rotate_mode=int(c.rotate_mode),
            offset_rotation=c.offset_rotation,
            is_active=_skin_active(skin, c.name, c.skin_required),
        )
        for c in rig.path_constraints
    )
    physics = tuple(
        PhysicsConstraintInfo(
            name=c.name,
            bone=c.bone,
            inertia=c.inertia,
            strength=c.strength,
            damping=c.damping,
            mass_inverse=c.mass_inverse,
            wind=c.wind,
            gravity=c.gravity,
            mix=c.mix,
            affects_x=c.x > 0.0,
            affects_y=c.y > 0.0,
            affects_rotation=c.rotate > 0.0,
            affects_scale=c.scale_x > 0.0,
            affects_shear=c.shear_x > 0.0,
            is_active=_skin_active(skin, c.name, c.skin_required),
        )
        for c in rig.physics_constraints
    )

    metrics = _metrics(
        list(rig.ik_constraints),
        list(rig.transform_constraints),
        list(rig.path_constraints),
        list(rig.physics_constraints),
    )
    return GlobalConstraintAnalysis(
        ik_constraints=ik,
        transform_constraints=transform,
        path_constraints=path,
        physics_constraints=physics,
        metrics=metrics,
    )
