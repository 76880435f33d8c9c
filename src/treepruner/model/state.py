"""
Tree Session (Data Model)
=========================
This module defines the central data structure for the running application.

Why is this file needed?
------------------------
1. State Management: It holds the current seed, the generated tree and the
   prune set in one place. The window owns exactly one session and passes it
   to the components that need it.
2. Persistence: `TreeState` (seed + pruned ids) is the only thing that gets
   serialized. The tree itself is always regenerated from the seed.
3. Decoupling: Views read from this object; user actions write to it.

Classes:
    TreeState: Immutable persistable state.
    PruneOutcome: Result of a prune request.
    TreeSession: The main container class.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Iterable, Optional

from treepruner.config import DEFAULT_SEED
from treepruner.model.codec import encode
from treepruner.model.pruning import PruneSet
from treepruner.model.tree import NodeKind, TreeModel, generate_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeState:
    seed: int = DEFAULT_SEED
    pruned_ids: frozenset[int] = frozenset()

    def encode(self) -> str:
        return encode(self.seed, self.pruned_ids)


class PruneOutcome(StrEnum):
    PRUNED = "pruned"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"
    ALREADY_PRUNED = "already_pruned"


@dataclass
class TreeSession:
    """
    Holds the tree that is currently on screen.
    Pass this instance to the window and the widgets.
    """
    seed: int = DEFAULT_SEED
    tree: Optional[TreeModel] = None
    pruned: PruneSet = field(default_factory=PruneSet)
    filepath: Optional[str] = None

    def generate(self, seed: int, pruned_ids: Optional[Iterable[int]] = None) -> TreeModel:
        """Generate a fresh tree, starting from an empty or restored prune set."""
        self.seed = int(seed)
        self.tree = generate_tree(self.seed)
        self.pruned = PruneSet(pruned_ids)
        logger.info(f"Generated tree: seed {self.seed}, {self.tree.node_count} nodes, {len(self.pruned)} pruned.")
        return self.tree

    def restore(self, state: TreeState) -> TreeModel:
        return self.generate(state.seed, state.pruned_ids)

    def prune(self, node_id: int) -> PruneOutcome:
        """Prune the node with the given id, cascading to everything above it."""
        if self.tree is None:
            return PruneOutcome.NOT_FOUND

        ref = self.tree.find(node_id)
        if ref is None:
            logger.warning(f"Prune requested for unknown node id {node_id}.")
            return PruneOutcome.NOT_FOUND

        if node_id in self.pruned:
            return PruneOutcome.ALREADY_PRUNED

        if ref.kind == NodeKind.LEAF:
            accepted = self.pruned.prune_leaf(node_id)
        elif ref.kind == NodeKind.SEGMENT:
            accepted = self.pruned.prune_from_segment(ref.branch, ref.segment.segment_index)
        else:
            accepted = self.pruned.prune_from_segment(ref.branch, 0)

        if not accepted:
            return PruneOutcome.REJECTED

        logger.info(f"Pruned {ref.kind} {node_id}; {len(self.pruned)} ids pruned in total.")
        return PruneOutcome.PRUNED

    def to_state(self) -> TreeState:
        return TreeState(seed=self.seed, pruned_ids=self.pruned.ids)

    def state_string(self) -> str:
        return self.to_state().encode()
        logger.info("Tree session has been reset.")
