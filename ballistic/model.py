"""Actor-critic networks for continuous-action PPO."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .distribution import NormalDistribution

SQRT_2 = math.sqrt(2.0)


def _resolve_rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


@dataclass
class Linear:
    """Fully connected layer computing ``x @ weight + bias``."""

    weight: np.ndarray
    bias: np.ndarray

    @property
    def in_features(self) -> int:
        return self.weight.shape[0]

    @property
    def out_features(self) -> int:
        return self.weight.shape[1]

    def forward(self, x) -> np.ndarray:
        """Apply the layer to a batch of rows."""
        return np.asarray(x, dtype=np.float64) @ self.weight + self.bias

    def backward(self, x, grad_out) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return the gradients with respect to the input, weight and bias."""
        x = np.asarray(x, dtype=np.float64)
        grad_out = np.asarray(grad_out, dtype=np.float64)
        grad_x = grad_out @ self.weight.T
        grad_weight = x.T @ grad_out
        grad_bias = grad_out.sum(axis=0)
        return grad_x, grad_weight, grad_bias


def layer_init(
    in_features: int,
    out_features: int,
    gain: float,
    rng: Optional[np.random.Generator] = None,
) -> Linear:
    """Create a layer whose weight and bias are Xavier-uniform with ``gain``."""
    if in_features <= 0 or out_features <= 0:
        raise ValueError(
            f"layer dimensions must be positive, got {in_features}x{out_features}"
        )
    rng = _resolve_rng(rng)
    bound = gain * math.sqrt(6.0 / (in_features + out_features))
    weight = rng.uniform(-bound, bound, size=(in_features, out_features))
    bias = rng.uniform(-bound, bound, size=out_features)
    return Linear(weight=weight, bias=bias)


@dataclass
class _TanhMLP:
    """Three linear layers with tanh between them."""

    linear1: Linear
    linear2: Linear
    linear3: Linear

    def _as_batch(self, x) -> np.ndarray:
        batch = np.asarray(x, dtype=np.float64)
        if batch.ndim != 2:
            raise ValueError(f"expected a 2-D batch, got shape {batch.shape}")
        if batch.shape[1] != self.linear1.in_features:
            raise ValueError(
                f"expected {self.linear1.in_features} features, got {batch.shape[1]}"
            )
        return batch

    def _activations(self, x) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        x = self._as_batch(x)
        h1 = np.tanh(self.linear1.forward(x))
        h2 = np.tanh(self.linear2.forward(h1))
        return x, h1, h2, self.linear3.forward(h2)

    def _backward(self, x, grad_out) -> dict[str, np.ndarray]:
        x, h1, h2, _ = self._activations(x)
        grad_h2, grad_w3, grad_b3 = self.linear3.backward(h2, grad_out)
        grad_z2 = grad_h2 * (1.0 - h2**2)
        grad_h1, grad_w2, grad_b2 = self.linear2.backward(h1, grad_z2)
        grad_z1 = grad_h1 * (1.0 - h1**2)
        _, grad_w1, grad_b1 = self.linear1.backward(x, grad_z1)
        return {
            "linear1.weight": grad_w1,
            "linear1.bias": grad_b1,
            "linear2.weight": grad_w2,
            "linear2.bias": grad_b2,
            "linear3.weight": grad_w3,
            "linear3.bias": grad_b3,
        }

    def _parameters(self) -> dict[str, np.ndarray]:
        return {
            "linear1.weight": self.linear1.weight,
            "linear1.bias": self.linear1.bias,
            "linear2.weight": self.linear2.weight,
            "linear2.bias": self.linear2.bias,
            "linear3.weight": self.linear3.weight,
            "linear3.bias": self.linear3.bias,
        }


@dataclass
class Critic(_TanhMLP):
    """Value network producing one value per observation."""

    def forward(self, x) -> np.ndarray:
        """Return the values of a batch of observations, shape ``(batch, 1)``."""
        return self._activations(x)[3]


@dataclass
class CriticConfig:
    """Dimensions of a critic network."""

    obs_dim: int
    hidden_dim: int = 64

    def init(self, rng: Optional[np.random.Generator] = None) -> Critic:
        """Build a freshly initialised critic."""
        rng = _resolve_rng(rng)
        return Critic(
            linear1=layer_init(self.obs_dim, self.hidden_dim, SQRT_2, rng),
            linear2=layer_init(self.hidden_dim, self.hidden_dim, SQRT_2, rng),
            linear3=layer_init(self.hidden_dim, 1, 1.0, rng),
        )


@dataclass
class Actor(_TanhMLP):
    """Policy network producing action means, with a learned log standard deviation."""

    log_std: np.ndarray

    def forward(self, x) -> np.ndarray:
        """Return the action means for a batch of observations."""
        return self._activations(x)[3]

    def _parameters(self) -> dict[str, np.ndarray]:
        params = super()._parameters()
        params["log_std"] = self.log_std
        return params


@dataclass
class ActorConfig:
    """Dimensions of an actor network."""

    obs_dim: int
    action_dim: int
    hidden_dim: int = 64

    def init(self, rng: Optional[np.random.Generator] = None) -> Actor:
        """Build a freshly initialised actor with a zero log standard deviation."""
        rng = _resolve_rng(rng)
        return Actor(
            linear1=layer_init(self.obs_dim, self.hidden_dim, SQRT_2, rng),
            linear2=layer_init(self.hidden_dim, self.hidden_dim, SQRT_2, rng),
            linear3=layer_init(self.hidden_dim, self.action_dim, 0.01, rng),
            log_std=np.zeros((1, self.action_dim), dtype=np.float64),
        )


@dataclass
class Agent:
    """An actor and a critic sharing the same observations."""

    actor: Actor
    critic: Critic

    def get_value(self, x) -> np.ndarray:
        """Return the critic's values, shape ``(batch, 1)``."""
        return self.critic.forward(x)

    def _distribution(
        self, x, rng: Optional[np.random.Generator]
    ) -> NormalDistribution:
        mean = self.actor.forward(x)
        std = np.exp(np.broadcast_to(self.actor.log_std, mean.shape))
        return NormalDistribution(mean, std, rng)

    def get_action_and_value(
        self,
        x,
        action=None,
        rng: Optional[np.random.Generator] = None,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Return the action, its summed log-density, the summed entropy and the value.

        When ``action`` is None one is sampled from the policy.
        """
        dist = self._distribution(x, rng)
        if action is None:
            action = dist.sample()
        else:
            action = np.asarray(action, dtype=np.float64)
            if action.shape != dist.mean.shape:
                raise ValueError(
                    f"expected actions of shape {dist.mean.shape}, got {action.shape}"
                )
        log_prob = dist.log_prob(action).sum(axis=1)
        entropy = dist.entropy().sum(axis=1)
        value = self.critic.forward(x)
        return action, log_prob, entropy, value

    def parameters(self) -> dict[str, np.ndarray]:
        """Return every trainable array by name; the arrays are the live ones."""
        params = {f"actor.{k}": v for k, v in self.actor._parameters().items()}
        params.update({f"critic.{k}": v for k, v in self.critic._parameters().items()})
        return params

    def gradients(
        self, x, action, grad_log_prob, grad_entropy, grad_value
    ) -> dict[str, np.ndarray]:
        """Back-propagate upstream gradients of the outputs to every parameter.

        The result is the gradient of
        ``sum(grad_log_prob * log_prob) + sum(grad_entropy * entropy)
        + sum(grad_value * value)``, keyed like :meth:`parameters`.
        """
        _, _, _, mean = self.actor._activations(x)
        n = mean.shape[0]
        action = np.asarray(action, dtype=np.float64)
        if action.shape != mean.shape:
            raise ValueError(
                f"expected actions of shape {mean.shape}, got {action.shape}"
            )
        g_log_prob = _per_sample(grad_log_prob, n)
        g_entropy = _per_sample(grad_entropy, n)
        g_value = _per_sample(grad_value, n)

        std = np.exp(np.broadcast_to(self.actor.log_std, mean.shape))
        z = (action - mean) / std
        grad_mean = g_log_prob * z / std
        grad_log_std = (g_log_prob * (z**2 - 1.0) + g_entropy).sum(
            axis=0, keepdims=True
        )

        actor_grads = self.actor._backward(x, grad_mean)
        actor_grads["log_std"] = grad_log_std
        critic_grads = self.critic._backward(x, g_value)

        grads = {f"actor.{k}": v for k, v in actor_grads.items()}
        grads.update({f"critic.{k}": v for k, v in critic_grads.items()})
        return grads


def _per_sample(grad, n: int) -> np.ndarray:
    arr = np.asarray(grad, dtype=np.float64)
    if arr.shape not in ((n,), (n, 1)):
        raise ValueError(f"expected a gradient of shape ({n},), got {arr.shape}")
    return arr.reshape(n, 1)


@dataclass
class AgentConfig:
    """Dimensions of an actor-critic agent."""

    obs_dim: int
    action_dim: int
    actor_hidden_dim: int = 64
    critic_hidden_dim: int = 64

    def init(self, rng: Optional[np.random.Generator] = None) -> Agent:
        """Build a freshly initialised agent."""
        rng = _resolve_rng(rng)
        actor = ActorConfig(
            obs_dim=self.obs_dim,
            action_dim=self.action_dim,
            hidden_dim=self.actor_hidden_dim,
        ).init(rng)
        critic = CriticConfig(
            obs_dim=self.obs_dim, hidden_dim=self.critic_hidden_dim
        ).init(rng)
        return Agent(actor=actor, critic=critic)