"""Storage for per-step rollout data and its stacking into batches."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass
class RolloutBufferBatch:
    """Rollout data stacked along a leading step axis."""

    obs: np.ndarray
    actions: np.ndarray
    rewards: np.ndarray
    not_dones: np.ndarray
    log_probs: np.ndarray
    values: np.ndarray


@dataclass
class RolloutBuffer:
    """Accumulates one entry per environment step."""

    obs: list[np.ndarray] = field(default_factory=list)
    actions: list[np.ndarray] = field(default_factory=list)
    rewards: list[np.ndarray] = field(default_factory=list)
    not_dones: list[np.ndarray] = field(default_factory=list)
    log_probs: list[np.ndarray] = field(default_factory=list)
    values: list[np.ndarray] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.obs)

    def add(self, obs, action, reward, not_done, log_prob, value) -> None:
        """Record one step; the arrays are copied."""
        self.obs.append(np.array(obs, dtype=np.float64))
        self.actions.append(np.array(action, dtype=np.float64))
        self.rewards.append(np.array(reward, dtype=np.float64))
        self.not_dones.append(np.array(not_done, dtype=np.float64))
        self.log_probs.append(np.array(log_prob, dtype=np.float64))
        self.values.append(np.array(value, dtype=np.float64))

    def clear(self) -> None:
        """Drop every recorded step."""
        for entries in (
            self.obs,
            self.actions,
            self.rewards,
            self.not_dones,
            self.log_probs,
            self.values,
        ):
            entries.clear()

    def generate_batch(self) -> RolloutBufferBatch:
        """Stack every recorded step into one batch."""
        if not self.obs:
            raise ValueError("cannot build a batch from an empty rollout buffer")
        return RolloutBufferBatch(
            obs=np.stack(self.obs),
            actions=np.stack(self.actions),
            rewards=np.stack(self.rewards),
            not_dones=np.stack(self.not_dones),
            log_probs=np.stack(self.log_probs),
            values=np.stack(self.values),
        )