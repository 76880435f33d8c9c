"""
Prune Set
=========
The set of removed node ids and the cascade rules for adding to it.

A child branch hangs from the top of its parent's last surviving segment, so
cutting a segment takes everything built on top of it. The cascade adds all of
those ids explicitly: the prune set alone decides what is visible, the view
never has to re-walk geometry to find disconnected parts.

Ids are only ever added. The set lives as long as the tree it belongs to.
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from treepruner.model.tree import BranchNode, TreeModel

logger = logging.getLogger(__name__)


class PruneSet:
    """Monotonically growing set of pruned node ids."""

    def __init__(self, ids: Optional[Iterable[int]] = None) -> None:
        self._ids: set[int] = set(ids) if ids is not None else set()

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self._ids)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._ids))

    def __repr__(self) -> str:
        return f"PruneSet({sorted(self._ids)})"

    # ------------------------------------------------------------------
    # Cascade operations
    # ------------------------------------------------------------------

    def prune_leaf(self, leaf_id: int) -> bool:
        self._ids.add(leaf_id)
        return True

    def prune_from_segment(self, branch: BranchNode, segment_index: int) -> bool:
        """
        Prune a branch from the given segment upward.

        Adds the segments from `segment_index` to the last one, the branch id
        itself when cutting at the base, the leaf, and the full subtree of
        every child.

        Returns:
            False if the cut targets the trunk base (level 0, segment 0). The
            set is left untouched in that case.

        Raises:
            IndexError: If `segment_index` is not a segment of the branch.
        """
        if not 0 <= segment_index < len(branch.segments):
            raise IndexError(
                f"Segment index {segment_index} out of range for branch {branch.id} "
                f"with {len(branch.segments)} segments."
            )

        if branch.level == 0 and segment_index == 0:
            logger.info("Prune rejected: the trunk base is protected.")
            return False

        for segment in branch.segments[segment_index:]:
            self._ids.add(segment.id)
        if segment_index == 0:
            self._ids.add(branch.id)
        if branch.leaf is not None:
            self._ids.add(branch.leaf.id)
        for child in branch.children:
            self.prune_subtree(child)

        logger.debug(f"Pruned branch {branch.id} from segment {segment_index}; {len(self._ids)} ids pruned.")
        return True

    def prune_subtree(self, branch: BranchNode) -> None:
        """Add every id of `branch` and all of its descendants."""
        self._ids.update(TreeModel.subtree_ids(branch))
