"""
Seeded Random Stream
====================
Deterministic, non-cryptographic pseudo-random numbers (Mulberry32).

The tree shape is a pure function of this stream, so the output must be
identical bit-for-bit for the same seed and call sequence on every platform.
"""
from __future__ import annotations

_MASK_32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit integer multiplication (low 32 bits of the product)."""
    return (a * b) & _MASK_32


class SeededRandom:
    """Mulberry32 generator over a 32-bit state."""

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & _MASK_32

    def next(self) -> float:
        """Return the next float in [0, 1)."""
        self._state = (self._state + _INCREMENT) & _MASK_32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = (t ^ ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK_32)) & _MASK_32
        return ((t ^ (t >> 14)) & _MASK_32) / _TWO_POW_32
