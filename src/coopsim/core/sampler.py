"""
WeightedSampler: draw integer tokens with probability proportional to weight.

Tokens are laid end to end on [0, total_weight): a token added with weight w
at offset t owns [t, t + w). Sampling draws u ~ U[0, total) and returns the
owner of u via a floor lookup on the sorted offsets (O(log n)).

Lifecycle:
    add(...) repeatedly → seal() → sample(...) repeatedly
"""

from __future__ import annotations
from bisect import bisect_right

import numpy as np

from coopsim.core.config import EPSILON
from coopsim.core.errors import EmptyDistributionError


class WeightedSampler:
    """Reservoir of weighted tokens; sample-only once sealed."""

    def __init__(self, epsilon: float = EPSILON):
        self.epsilon = epsilon
        self._offsets: list[float] = []  # Start of each token's interval (increasing)
        self._tokens: list[int] = []
        self._total = 0.0
        self._sealed = False

    @property
    def total_weight(self) -> float:
        return self._total

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __len__(self) -> int:
        return len(self._tokens)

    def add(self, token: int, weight: float) -> bool:
        """
        Add a token with the given weight.

        Weights below epsilon are ignored. Repeated tokens are legal: each
        add gives the token another disjoint interval.

        Returns:
            True if the token was recorded
        """
        if self._sealed:
            raise RuntimeError("Attempted to modify a sampler after it was sealed")

        if weight < self.epsilon:
            return False

        self._offsets.append(self._total)
        self._tokens.append(token)
        self._total += weight
        return True

    def seal(self) -> None:
        """
        Stop accepting tokens and allow sampling.

        Raises:
            EmptyDistributionError: no token was ever added
        """
        self._sealed = True
        if not self._tokens:
            raise EmptyDistributionError("No tokens were added before sealing")

    def sample(self, rng: np.random.Generator) -> int:
        """Draw one token, with probability weight / total_weight."""
        if not self._sealed:
            raise RuntimeError("Attempted to sample a sampler before it was sealed")
        if not self._tokens:
            raise EmptyDistributionError("Cannot sample from an empty sampler")

        u = rng.random() * self._total
        return self._tokens[bisect_right(self._offsets, u) - 1]
