"""A diagonal normal distribution over batches of actions."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

_LOG_SQRT_2PI = math.log(math.sqrt(2.0 * math.pi))
_ENTROPY_CONST = 0.5 + 0.5 * math.log(2.0 * math.pi)


class NormalDistribution:
    """Element-wise normal distribution with the given mean and standard deviation."""

    def __init__(self, mean, std, rng: Optional[np.random.Generator] = None) -> None:
        self.mean = np.asarray(mean, dtype=np.float64)
        self.std = np.asarray(std, dtype=np.float64)
        self.rng = rng if rng is not None else np.random.default_rng()

    def sample(self) -> np.ndarray:
        """Draw one sample for every element of the mean."""
        eps = self.rng.standard_normal(self.mean.shape)
        return self.mean + self.std * eps

    def log_prob(self, action) -> np.ndarray:
        """Return the element-wise log density of ``action``."""
        action = np.asarray(action, dtype=np.float64)
        var = self.std**2
        return -((action - self.mean) ** 2) / (2.0 * var) - np.log(self.std) - _LOG_SQRT_2PI

    def entropy(self) -> np.ndarray:
        """Return the element-wise differential entropy."""
        return np.log(self.std) + _ENTROPY_CONST