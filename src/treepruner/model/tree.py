"""
Tree Model (Data Structures & Generation)
=========================================
This module defines the procedural tree and the recursive generator that
builds it from a seed.

Why is this file needed?
------------------------
1. Determinism: The tree is never persisted. It is regenerated from the seed,
   so the generator must consume the random stream in a fixed order.
2. Addressing: Every branch, segment and leaf gets a unique integer id in
   pre-order. Saved prune sets refer to these ids.

Random stream order (canonical):
    For each branch: draw the child count, then for each child generate the
    child's entire subtree first and only afterwards draw its two rotation
    angles (x, then z).

Classes:
    NodeKind: Enum tagging branches, segments and leaves.
    BranchNode, SegmentNode, LeafNode: Immutable tree nodes.
    TreeModel: The generated tree plus an id index.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Callable, Iterator, Optional

from treepruner.config import (
    SEGMENTS_PER_BRANCH, LEAF_MIN_LEVEL, MAX_LEVEL, MIN_CHILDREN, CHILD_COUNT_SPREAD, ROTATION_SPREAD
)
from treepruner.model.rng import SeededRandom

logger = logging.getLogger(__name__)


class NodeKind(StrEnum):
    BRANCH = "branch"
    SEGMENT = "segment"
    LEAF = "leaf"


@dataclass(frozen=True)
class Rotation:
    """Pivot rotation of a child branch (radians around X and Z)."""
    x: float
    z: float


@dataclass(frozen=True)
class SegmentNode:
    id: int
    level: int
    segment_index: int


@dataclass(frozen=True)
class LeafNode:
    id: int


@dataclass(frozen=True)
class BranchNode:
    id: int
    level: int
    segments: tuple[SegmentNode, ...]
    leaf: Optional[LeafNode] = None
    children: tuple[BranchNode, ...] = ()
    rotation: Optional[Rotation] = None

    def iter_ids(self) -> Iterator[int]:
        """Yield the ids owned directly by this branch (not its children)."""
        yield self.id
        for segment in self.segments:
            yield segment.id
        if self.leaf is not None:
            yield self.leaf.id

    def iter_subtree(self) -> Iterator[BranchNode]:
        """Pre-order walk over this branch and all descendants."""
        yield self
        for child in self.children:
            yield from child.iter_subtree()


@dataclass(frozen=True)
class NodeRef:
    """Result of an id lookup: what the id is and which branch owns it."""
    kind: NodeKind
    branch: BranchNode
    segment: Optional[SegmentNode] = None


class TreeModel:
    """
    A generated tree. Immutable after construction.

    Attributes:
        seed: The seed the tree was generated from.
        root: The trunk (level 0, id 0).
        node_count: Final value of the id counter, i.e. ids are 0..node_count-1.
    """

    def __init__(self, seed: int, root: BranchNode, node_count: int) -> None:
        self.seed = seed
        self.root = root
        self.node_count = node_count
        self._index: dict[int, NodeRef] = {}
        for branch in root.iter_subtree():
            self._index[branch.id] = NodeRef(NodeKind.BRANCH, branch)
            for segment in branch.segments:
                self._index[segment.id] = NodeRef(NodeKind.SEGMENT, branch, segment)
            if branch.leaf is not None:
                self._index[branch.leaf.id] = NodeRef(NodeKind.LEAF, branch)

    def find(self, node_id: int) -> Optional[NodeRef]:
        return self._index.get(node_id)

    def iter_branches(self) -> Iterator[BranchNode]:
        return self.root.iter_subtree()

    def all_ids(self) -> set[int]:
        return set(self._index)

    @staticmethod
    def subtree_ids(branch: BranchNode) -> set[int]:
        """All ids of the branch, its segments, its leaf and every descendant."""
        return {node_id for node in branch.iter_subtree() for node_id in node.iter_ids()}

    def __repr__(self) -> str:
        return f"TreeModel(seed={self.seed}, node_count={self.node_count})"


def generate_tree(seed: int) -> TreeModel:
    """Generate the tree for a seed. Same seed -> same ids, levels, rotations."""
    random = SeededRandom(seed)
    counter = 0

    def next_id() -> int:
        nonlocal counter
        node_id = counter
        counter += 1
        return node_id

    root = _generate_branch(0, random, next_id)
    logger.debug(f"Generated tree for seed {seed}: {counter} nodes.")
    return TreeModel(seed=seed, root=root, node_count=counter)


def _generate_branch(level: int, random: SeededRandom, next_id: Callable[[], int]) -> Optional[BranchNode]:
    if level > MAX_LEVEL:
        return None

    branch_id = next_id()
    segments = tuple(SegmentNode(id=next_id(), level=level, segment_index=i) for i in range(SEGMENTS_PER_BRANCH))
    leaf = LeafNode(id=next_id()) if level >= LEAF_MIN_LEVEL else None

    branch_count = math.floor(random.next() * CHILD_COUNT_SPREAD) + MIN_CHILDREN
    children: list[BranchNode] = []
    for _ in range(branch_count):
        child = _generate_branch(level + 1, random, next_id)
        if child is None:
            continue
        # Drawn after the child's subtree (see module docstring)
        rotation = Rotation(
            x=(random.next() - 0.5) * math.pi * ROTATION_SPREAD,
            z=(random.next() - 0.5) * math.pi * ROTATION_SPREAD,
        )
        children.append(replace(child, rotation=rotation))

    return BranchNode(
        id=branch_id,
        level=level,
        segments=segments,
        leaf=leaf,
        children=tuple(children),
    )
