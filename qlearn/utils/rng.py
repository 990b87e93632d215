"""Random number generation utilities for the Q-learning agent."""

import numpy as np
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """Seeded random number generator for reproducible results.

    Each instance owns its own numpy ``Generator``; nothing touches the
    process-wide random state. Seed once at construction and share the
    instance instead of reseeding.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return float(self._generator.random())

    def randint(self, a: int, b: int) -> int:
        """Generate random integer in [a, b]."""
        return int(self._generator.integers(a, b + 1))

    def choice(self, seq: Sequence[T]) -> T:
        """Choose random element from a non-empty sequence."""
        if len(seq) == 0:
            raise IndexError("Cannot choose from an empty sequence")
        # Generator.choice would coerce elements to numpy scalars
        return seq[self.randint(0, len(seq) - 1)]
