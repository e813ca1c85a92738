from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

_MULTIPLIER = 9301
_INCREMENT = 49297
_MODULUS = 233280


class SeededRandom:
    """Linear congruential generator used for every random decision in a match.

    The recurrence is kept bit-compatible with replays recorded by earlier
    clients: identical seeds and call sequences give identical matches.
    Not suitable for anything security related.
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)

    def next(self) -> float:
        self.seed = (self.seed * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self.seed / _MODULUS

    def next_int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi] (inclusive)."""
        return math.floor(self.next() * (hi - lo + 1)) + lo

    def next_float(self, lo: float, hi: float) -> float:
        return self.next() * (hi - lo) + lo

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy (Fisher-Yates, walking down from the end)."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("choice from empty sequence")
        return items[self.next_int(0, len(items) - 1)]
