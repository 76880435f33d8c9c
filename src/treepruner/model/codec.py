"""
State Codec
===========
Compact string form of the tree state: "<seed>_p<comma-joined pruned ids>".

Examples:
    >>> encode(12345, {7, 3})
    '12345_p3,7'
    >>> decode("12345_p")
    (12345, frozenset())
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional
from urllib.parse import parse_qs

from treepruner.config import DEFAULT_SEED, STATE_MARKER, STATE_QUERY_KEY

logger = logging.getLogger(__name__)


class TreeStateError(ValueError):
    """Raised when a persisted tree state (string or file) is malformed."""


def encode(seed: int, pruned_ids: Iterable[int]) -> str:
    ids = ",".join(str(node_id) for node_id in sorted(set(pruned_ids)))
    return f"{seed}{STATE_MARKER}{ids}"


def parse(text: str) -> tuple[int, frozenset[int]]:
    """
    Strictly parse a state string.

    Raises:
        TreeStateError: If the seed is missing or not an integer, or any id is
            not a non-negative integer.
    """
    seed_part, _, ids_part = text.strip().partition(STATE_MARKER)
    try:
        seed = int(seed_part)
    except ValueError as e:
        raise TreeStateError(f"Invalid seed in state '{text}'.") from e

    ids: set[int] = set()
    if ids_part:
        for token in ids_part.split(","):
            try:
                node_id = int(token)
            except ValueError as e:
                raise TreeStateError(f"Invalid pruned id '{token}' in state '{text}'.") from e
            if node_id < 0:
                raise TreeStateError(f"Negative pruned id {node_id} in state '{text}'.")
            ids.add(node_id)

    return seed, frozenset(ids)


def decode(text: Optional[str]) -> tuple[int, frozenset[int]]:
    """Parse a state string, falling back to the default seed and no prunes."""
    if not text:
        return DEFAULT_SEED, frozenset()
    try:
        return parse(text)
    except TreeStateError as e:
        logger.warning(f"{e} Falling back to seed {DEFAULT_SEED}.")
        return DEFAULT_SEED, frozenset()


def state_query(seed: int, pruned_ids: Iterable[int]) -> str:
    return f"{STATE_QUERY_KEY}={encode(seed, pruned_ids)}"


def state_from_query(query: str) -> Optional[str]:
    """Extract the raw state parameter from a query string like '?state=...'."""
    _, _, query = query.rpartition("?")
    values = parse_qs(query).get(STATE_QUERY_KEY)
    return values[0] if values else None
