# rigperf/analyzers/skeleton.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..scoring import bone_score
from ..types import BoneData, RigData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoneNode:
    name: str
    x: float
    y: float
    children: tuple[BoneNode, ...] = ()


@dataclass(frozen=True)
class SkeletonMetrics:
    total_bones: int
    root_bones: int
    max_depth: int
    score: float


@dataclass(frozen=True)
class SkeletonAnalysis:
    bone_tree: tuple[BoneNode, ...]
    metrics: SkeletonMetrics


def _children_by_parent(bones: tuple[BoneData, ...]) -> tuple[list[BoneData], dict[str, list[BoneData]]]:
    names = {b.name for b in bones}
    roots: list[BoneData] = []
    children: dict[str, list[BoneData]] = {}
    for b in bones:
        if b.parent is None or b.parent not in names or b.parent == b.name:
            roots.append(b)
        else:
            children.setdefault(b.parent, []).append(b)
    return roots, children


def build_bone_tree(rig: RigData) -> tuple[BoneNode, ...]:
    roots, children = _children_by_parent(rig.bones)

    def build(bone: BoneData, seen: frozenset[str]) -> BoneNode:
        # forest + cycle-safe
        kids = [c for c in children.get(bone.name, []) if c.name not in seen]
        return BoneNode(
            name=bone.name,
            x=round(bone.x, 2),
            y=round(bone.y, 2),
            children=tuple(build(c, seen | {c.name}) for c in kids),
        )

    return tuple(build(r, frozenset({r.name})) for r in roots)


def tree_depth(nodes: tuple[BoneNode, ...], depth: int = 0) -> int:
    """
    Deepest edge count below the given level; roots sit at depth 0.
    """
    best = depth if nodes else 0
    for n in nodes:
        if n.children:
            best = max(best, tree_depth(n.children, depth + 1))
    return best


def analyze_skeleton(rig: RigData) -> SkeletonAnalysis:
    tree = build_bone_tree(rig)
    max_depth = tree_depth(tree)
    total = len(rig.bones)
    if total and not tree:
        logger.warning("Rig %r: bone hierarchy has no root", rig.name)
    metrics = SkeletonMetrics(
        total_bones=total,
        root_bones=len(tree),
        max_depth=max_depth,
        score=bone_score(total, max_depth),
    )
    return SkeletonAnalysis(bone_tree=tree, metrics=metrics)
