"""Hyper-parameters for PPO training."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PPOTrainingConfig:
    """Settings that control one PPO update."""

    gamma: float
    gae_lambda: float
    obs_dim: int
    action_dim: int
    batch_size: int
    mini_batch_size: int
    update_epochs: int
    clip_coef: float
    clip_vloss: bool
    ent_coef: float
    vf_coef: float
    target_kl: Optional[float]
    norm_adv: bool
    max_grad_norm: float
    lr: float