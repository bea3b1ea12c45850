"""PPO advantage estimation, batch preparation and the clipped-objective update."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import PPOTrainingConfig
from .model import Agent
from .rollout_buffer import RolloutBufferBatch
from .utils import tensor_std

logger = logging.getLogger(__name__)


def create_artifact_dir(artifact_dir) -> None:
    """Remove ``artifact_dir`` if present and create it again, empty.

    Filesystem errors are ignored.
    """
    with contextlib.suppress(OSError):
        shutil.rmtree(artifact_dir)
    with contextlib.suppress(OSError):
        os.makedirs(artifact_dir, exist_ok=True)


@dataclass
class TrainingBatch:
    """Flattened rollout data ready for minibatch updates."""

    obs: np.ndarray
    actions: np.ndarray
    log_probs: np.ndarray
    advantages: np.ndarray
    returns: np.ndarray
    values: np.ndarray

    def __len__(self) -> int:
        return self.obs.shape[0]


def get_gae(values, rewards, not_dones, gamma: float, lam: float):
    """Return ``(returns, advantages)``, each of shape ``(n, 1)``.

    The inputs are read as flat row-major sequences of ``n`` elements and the
    recursion runs backwards over them; the value after the last element is 0.
    """
    reward_flat = np.asarray(rewards, dtype=np.float64).ravel()
    not_done_flat = np.asarray(not_dones, dtype=np.float64).ravel()
    value_flat = np.asarray(values, dtype=np.float64).ravel()
    n = reward_flat.size
    if not_done_flat.size != n or value_flat.size != n:
        raise ValueError(
            "values, rewards and not_dones must hold the same number of elements, "
            f"got {value_flat.size}, {n} and {not_done_flat.size}"
        )
    next_values = np.append(value_flat[1:], 0.0)

    returns: list[float] = []
    advantages: list[float] = []
    running_return = 0.0
    running_advantage = 0.0
    for reward, not_done, value, next_value in zip(
        reward_flat[::-1], not_done_flat[::-1], value_flat[::-1], next_values[::-1]
    ):
        running_return = reward + gamma * running_return * not_done
        running_advantage = (
            reward
            - value
            + gamma * not_done * (next_value + lam * running_advantage)
        )
        returns.append(running_return)
        advantages.append(running_advantage)

    returns.reverse()
    advantages.reverse()
    return (
        np.array(returns, dtype=np.float64).reshape(n, 1),
        np.array(advantages, dtype=np.float64).reshape(n, 1),
    )


def generate_train_batch(
    rollout_batch: RolloutBufferBatch, config: PPOTrainingConfig
) -> TrainingBatch:
    """Compute returns and advantages and flatten the rollout into one batch."""
    values = np.asarray(rollout_batch.values, dtype=np.float64)
    returns, advantages = get_gae(
        values,
        rollout_batch.rewards,
        rollout_batch.not_dones,
        config.gamma,
        config.gae_lambda,
    )

    if config.norm_adv:
        flat = advantages.ravel()
        advantages = ((flat - flat.mean()) / (tensor_std(flat) + 1e-8)).reshape(
            advantages.shape
        )

    return TrainingBatch(
        obs=np.asarray(rollout_batch.obs, dtype=np.float64).reshape(-1, config.obs_dim),
        actions=np.asarray(rollout_batch.actions, dtype=np.float64).reshape(
            -1, config.action_dim
        ),
        log_probs=np.asarray(rollout_batch.log_probs, dtype=np.float64).ravel(),
        advantages=advantages.ravel(),
        returns=returns.ravel(),
        values=values.ravel(),
    )


@dataclass
class Adam:
    """Adam optimiser updating an agent's parameters in place."""

    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-5
    step_count: int = field(default=0, init=False)
    _moments: dict = field(default_factory=dict, init=False, repr=False)

    def step(self, lr: float, model: Agent, grads) -> Agent:
        """Apply one update from ``grads``, keyed like ``model.parameters()``."""
        params = model.parameters()
        unknown = set(grads) - set(params)
        if unknown:
            raise KeyError(f"gradients for unknown parameters: {sorted(unknown)}")
        self.step_count += 1
        t = self.step_count
        correction1 = 1.0 - self.beta1**t
        correction2 = 1.0 - self.beta2**t
        for name, grad in grads.items():
            param = params[name]
            grad = np.asarray(grad, dtype=np.float64)
            if grad.shape != param.shape:
                raise ValueError(
                    f"gradient for {name} has shape {grad.shape}, "
                    f"expected {param.shape}"
                )
            first, second = self._moments.get(
                name, (np.zeros_like(param), np.zeros_like(param))
            )
            first = self.beta1 * first + (1.0 - self.beta1) * grad
            second = self.beta2 * second + (1.0 - self.beta2) * grad**2
            self._moments[name] = (first, second)
            param -= lr * (first / correction1) / (
                np.sqrt(second / correction2) + self.epsilon
            )
        return model


def _minibatch_gradients(
    model: Agent, batch: TrainingBatch, idx: np.ndarray, config: PPOTrainingConfig
):
    """Return the parameter gradients of the PPO loss and the approximate KL."""
    obs = batch.obs[idx]
    actions = batch.actions[idx]
    m = idx.size
    clip = config.clip_coef

    _, new_log_probs, _, new_values = model.get_action_and_value(obs, actions)
    log_ratio = new_log_probs - batch.log_probs[idx]
    ratio = np.exp(log_ratio)
    approx_kl = float(np.mean((ratio - 1.0) - log_ratio))

    advantages = batch.advantages[idx]
    low, high = 1.0 - clip, 1.0 + clip
    pg_unclipped = -advantages * ratio
    pg_clipped = -advantages * np.clip(ratio, low, high)
    inside = (ratio >= low) & (ratio <= high)
    grad_ratio = np.where(
        pg_unclipped >= pg_clipped, -advantages, -advantages * inside
    ) / m
    grad_log_prob = grad_ratio * ratio

    grad_entropy = np.full(m, -config.ent_coef / m)

    values = new_values.reshape(-1)
    returns = batch.returns[idx]
    if config.clip_vloss:
        old_values = batch.values[idx]
        delta = values - old_values
        v_clipped = old_values + np.clip(delta, -clip, clip)
        loss_unclipped = (values - returns) ** 2
        loss_clipped = (v_clipped - returns) ** 2
        within = np.abs(delta) <= clip
        grad_value = np.where(
            loss_unclipped >= loss_clipped,
            values - returns,
            (v_clipped - returns) * within,
        )
    else:
        grad_value = values - returns
    grad_value = grad_value * config.vf_coef / m

    grads = model.gradients(obs, actions, grad_log_prob, grad_entropy, grad_value)
    return grads, approx_kl


def train_step(
    model: Agent,
    optimizer: Adam,
    train_batch: TrainingBatch,
    config: PPOTrainingConfig,
    rng: Optional[np.random.Generator] = None,
) -> Agent:
    """Run the PPO update epochs over ``train_batch`` and return the model.

    Each epoch shuffles the first ``batch_size`` rows and steps the optimiser
    once per minibatch. Epochs stop early once the approximate KL of the last
    minibatch exceeds ``target_kl``.
    """
    if config.mini_batch_size <= 0:
        raise ValueError("mini_batch_size must be positive")
    if config.batch_size > len(train_batch):
        raise ValueError(
            f"batch_size {config.batch_size} exceeds the {len(train_batch)} rows "
            "of the training batch"
        )
    rng = rng if rng is not None else np.random.default_rng()
    indices = np.arange(config.batch_size)

    for epoch in range(config.update_epochs):
        logger.debug("Epoch: %d", epoch)
        rng.shuffle(indices)
        approx_kl = 0.0
        for start in range(0, config.batch_size, config.mini_batch_size):
            minibatch = indices[start : start + config.mini_batch_size]
            grads, approx_kl = _minibatch_gradients(
                model, train_batch, minibatch, config
            )
            model = optimizer.step(config.lr, model, grads)

        if config.target_kl is not None and approx_kl > config.target_kl:
            break

    return model