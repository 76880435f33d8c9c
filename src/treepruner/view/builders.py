"""
Tree View Builders
==================
Two interchangeable strategies that turn the tree model plus the prune set
into a `SceneNode` hierarchy:

    SkeletonBuilder: point markers at every structural joint (debug view).
    SolidBuilder: a cylinder (or a template mesh) per segment and an
        icosahedron per leaf.

Both perform the same walk; they only differ in the primitives they create.

Pivot convention:
    Every segment has its pivot at its base. The first surviving segment of a
    branch sits at the incoming attachment point, each following one at the
    top of the previous one (local y = segment length). Leaves and child
    pivots sit at the top of the last surviving segment.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from typing import Container, Optional

import numpy as np
import pyvista as pv

from treepruner.config import (
    SEGMENTS_PER_BRANCH, BARK_COLOR, FOLIAGE_COLOR, TEMPLATE_COLOR, SKELETON_JOINT_COLOR, SKELETON_LEAF_COLOR
)
from treepruner.model.tree import BranchNode, NodeKind, SegmentNode, TreeModel
from treepruner.view.scene import RenderStyle, SceneNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BranchDimensions:
    """Geometric parameters of a branch; a function of its level only."""
    length: float
    radius: float
    leaf_radius: float

    @property
    def segment_length(self) -> float:
        return self.length / SEGMENTS_PER_BRANCH

    @staticmethod
    def for_level(level: int) -> BranchDimensions:
        return BranchDimensions(
            length=4.0 - level * 0.6,
            radius=0.2 - level * 0.035,
            leaf_radius=1.5 - level * 0.2,
        )


class TreeViewBuilder(ABC):
    """Shared recursive walk. Subclasses provide the primitives."""

    def build(self, parent: SceneNode, branch: BranchNode, pruned: Container[int]) -> None:
        """Attach the visible part of `branch` (and its children) below `parent`."""
        if branch.id in pruned:
            return

        dims = BranchDimensions.for_level(branch.level)
        self.add_base_marker(parent, branch, dims)

        current = parent
        survived = False
        for segment in branch.segments:
            if segment.id in pruned:
                continue
            node = self.make_segment(segment, dims)
            node.position[1] = dims.segment_length if survived else 0.0
            current.add(node)
            current = node
            survived = True

        # Nothing left to hang a leaf or children from
        if not survived:
            return

        if branch.leaf is not None and branch.leaf.id not in pruned:
            leaf = self.make_leaf(branch, dims)
            leaf.position[1] = dims.segment_length
            current.add(leaf)

        for child in branch.children:
            if child.id in pruned:
                continue
            pivot = SceneNode(name=f"pivot-{child.id}")
            pivot.position[1] = dims.segment_length
            pivot.rotation[0] = child.rotation.x
            pivot.rotation[2] = child.rotation.z
            current.add(pivot)
            self.build(pivot, child, pruned)

    def add_base_marker(self, parent: SceneNode, branch: BranchNode, dims: BranchDimensions) -> None:
        """Optional marker at the branch's attachment point."""

    @abstractmethod
    def make_segment(self, segment: SegmentNode, dims: BranchDimensions) -> SceneNode:
        ...

    @abstractmethod
    def make_leaf(self, branch: BranchNode, dims: BranchDimensions) -> SceneNode:
        ...


class SkeletonBuilder(TreeViewBuilder):
    """Lightweight point markers; not pickable."""

    joint_size: float = 8.0
    leaf_size: float = 14.0

    @staticmethod
    def _point() -> pv.PolyData:
        return pv.PolyData(np.zeros((1, 3), dtype=np.float64))

    def add_base_marker(self, parent: SceneNode, branch: BranchNode, dims: BranchDimensions) -> None:
        parent.add(SceneNode(
            name=f"base-{branch.id}",
            mesh=self._point(),
            color=SKELETON_JOINT_COLOR,
            style=RenderStyle.POINTS,
            point_size=self.joint_size,
        ))

    def make_segment(self, segment: SegmentNode, dims: BranchDimensions) -> SceneNode:
        # The joint marker sits at the top of the segment
        node = SceneNode(name=f"segment-{segment.id}", node_id=segment.id, kind=NodeKind.SEGMENT)
        joint = SceneNode(
            name=f"joint-{segment.id}",
            mesh=self._point(),
            color=SKELETON_JOINT_COLOR,
            style=RenderStyle.POINTS,
            point_size=self.joint_size,
        )
        joint.position[1] = dims.segment_length
        node.add(joint)
        return node

    def make_leaf(self, branch: BranchNode, dims: BranchDimensions) -> SceneNode:
        return SceneNode(
            name=f"leaf-{branch.leaf.id}",
            node_id=branch.leaf.id,
            kind=NodeKind.LEAF,
            mesh=self._point(),
            color=SKELETON_LEAF_COLOR,
            style=RenderStyle.POINTS,
            point_size=self.leaf_size,
        )


class SolidBuilder(TreeViewBuilder):
    """
    Cylinders and icosahedra, pickable.

    Args:
        template: Optional normalized mesh (height 1, pivot at its base) used
            instead of the default cylinder for every segment.
    """

    def __init__(self, template: Optional[pv.PolyData] = None) -> None:
        self.template = template

    def make_segment(self, segment: SegmentNode, dims: BranchDimensions) -> SceneNode:
        length = dims.segment_length
        if self.template is not None:
            mesh = self.template.copy()
            mesh.points = np.asarray(self.template.points) * np.array([dims.radius * 2, length, dims.radius * 2])
            color = TEMPLATE_COLOR
        else:
            mesh = pv.Cylinder(
                center=(0.0, length / 2, 0.0),
                direction=(0.0, 1.0, 0.0),
                radius=dims.radius,
                height=length,
                resolution=16,
            )
            color = BARK_COLOR

        return SceneNode(
            name=f"segment-{segment.id}",
            node_id=segment.id,
            kind=NodeKind.SEGMENT,
            mesh=mesh,
            color=color,
            pickable=True,
        )

    def make_leaf(self, branch: BranchNode, dims: BranchDimensions) -> SceneNode:
        return SceneNode(
            name=f"leaf-{branch.leaf.id}",
            node_id=branch.leaf.id,
            kind=NodeKind.LEAF,
            mesh=pv.Icosahedron(radius=dims.leaf_radius),
            color=FOLIAGE_COLOR,
            pickable=True,
        )


def build_tree_view(
    tree: TreeModel,
    pruned: Container[int],
    skeleton: bool = False,
    template: Optional[pv.PolyData] = None,
) -> SceneNode:
    """Build a fresh hierarchy rooted at a node named "tree"."""
    builder: TreeViewBuilder = SkeletonBuilder() if skeleton else SolidBuilder(template)
    root = SceneNode(name="tree")
    builder.build(root, tree.root, pruned)
    logger.debug(f"Built {'skeleton' if skeleton else 'solid'} view with {sum(1 for _ in root.traverse())} nodes.")
    return root
