"""
rng.py
======
Deterministic pseudo-random numbers for case generation.

A Park-Miller "minimal standard" Lehmer generator: tiny, portable, and
fully determined by its integer seed, so a case can be regenerated exactly
from the seed it reports. Not suitable for anything security related.

Each generation owns its own SeededRandom; there is no module-level stream.
"""

from __future__ import annotations

import math
from typing import List, Sequence, TypeVar

T = TypeVar("T")

MODULUS    = 2147483647  # 2**31 - 1
MULTIPLIER = 16807


class SeededRandom:
    """
    Lehmer generator producing floats in [0, 1).

    The seed is reduced with a truncating remainder (sign follows the seed)
    and shifted into the valid state range [1, MODULUS - 1].
    """

    def __init__(self, seed: int) -> None:
        self.seed  = seed
        state = abs(seed) % MODULUS
        if seed < 0:
            state = -state
        if state <= 0:
            state += MODULUS - 1
        self._state = state

    def random(self) -> float:
        self._state = (self._state * MULTIPLIER) % MODULUS
        return (self._state - 1) / (MODULUS - 1)

    __call__ = random

    def index(self, length: int) -> int:
        """Uniform index into a sequence of `length` items."""
        return math.floor(self.random() * length)

    def choice(self, items: Sequence[T]):
        """Pick one element, or None from an empty sequence."""
        if not items:
            return None
        return items[self.index(len(items))]

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """
        Return a Fisher-Yates shuffled copy of `items`.

        Walks from the last position down to 1, drawing one number per step,
        so a sequence of n items consumes exactly n - 1 draws.
        """
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = math.floor(self.random() * (i + 1))
            result[i], result[j] = result[j], result[i]
        return result
