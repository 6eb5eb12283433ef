"""
Seedable random source shared by every stochastic decision of a generation run.
"""

from __future__ import annotations

import logging
import random
from typing import MutableSequence, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DungeonRandom:
    """
    Thin wrapper around a private random.Random instance.

    Integer draws follow half-open ranges: below(n) is in [0, n) and
    between(a, b) is in [a, b). An empty range (n == 0, or a == b) yields its
    lower bound instead of failing, so a room already at its minimum size can
    still be "drawn".
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)
        if seed is None:
            logger.debug("DungeonRandom: non-deterministic seed")
        else:
            logger.debug("DungeonRandom: seed=%d", seed)

    def below(self, n: int) -> int:
        if n < 0:
            raise ValueError(f"below() needs a non-negative bound, got {n}")
        if n == 0:
            return 0
        return self._rng.randrange(n)

    def between(self, low: int, high: int) -> int:
        if high < low:
            raise ValueError(f"between() got an inverted range [{low}, {high})")
        if high == low:
            return low
        return self._rng.randrange(low, high)

    def fraction(self) -> float:
        return self._rng.random()

    def shuffle(self, items: MutableSequence[T]) -> None:
        self._rng.shuffle(items)

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("choice() received an empty sequence")
        return items[self.below(len(items))]
