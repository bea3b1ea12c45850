# ballistic

A small Proximal Policy Optimization (PPO) toolkit built on NumPy. It has a
Gaussian actor-critic agent with hand-written gradients, a rollout buffer,
generalized advantage estimation, and a clipped-objective training step with
an Adam optimizer.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Overview

- `ballistic.config.PPOTrainingConfig`: a frozen dataclass of hyperparameters.
  It holds `gamma`, `gae_lambda`, `obs_dim`, `action_dim`, `batch_size`,
  `mini_batch_size`, `update_epochs`, `clip_coef`, `clip_vloss`, `ent_coef`,
  `vf_coef`, an optional `target_kl`, `norm_adv`, `max_grad_norm` and `lr`.
- `ballistic.model`: `AgentConfig(obs_dim, action_dim, ...).init(rng)` builds
  an `Agent` from an `Actor` and a `Critic`. Both are two-hidden-layer tanh
  networks of `Linear` layers, created by `layer_init` with Xavier-uniform
  weights and biases. The actor also has a learned `log_std`, which starts at
  zero. The agent offers these methods:
  - `get_value` returns the critic's values.
  - `get_action_and_value` returns the action (sampled when none is given),
    its summed log-density, the summed entropy and the value.
  - `parameters` returns the live parameter arrays by name.
  - `gradients` back-propagates upstream gradients to every parameter.
- `ballistic.distribution.NormalDistribution`: an element-wise Gaussian with
  `sample`, `log_prob` and `entropy`.
- `ballistic.rollout_buffer.RolloutBuffer`: records one step at a time with
  `add(obs, action, reward, not_done, log_prob, value)`. `clear` empties it.
  `generate_batch` stacks the steps into a `RolloutBufferBatch`, and raises
  `ValueError` when the buffer is empty.
- `ballistic.training`:
  - `get_gae(values, rewards, not_dones, gamma, lam)` returns returns and
    advantages, each of shape `(n, 1)`.
  - `generate_train_batch` computes them and flattens a rollout into a
    `TrainingBatch`. With `norm_adv`, it also normalizes the advantages.
  - `train_step` runs `update_epochs` epochs over the first `batch_size` rows,
    which are shuffled each epoch. It steps an `Adam` optimizer once per
    minibatch. It stops early when the approximate KL of an epoch's last
    minibatch exceeds `target_kl`. Each epoch number is logged at debug level
    on the `ballistic.training` logger.
  - `create_artifact_dir` removes a directory and creates it again, empty,
    ignoring filesystem errors.
- `ballistic.utils`:
  - `FloatTensorView` gives flat, row-major indexed access to a copy of an
    array through `get`, `set`, `get_slice`, `set_slice` (ranges inclusive of
    both ends) and `to_tensor`.
  - `calculate_index`, `flat_to_tensor` and `tensor_std` (the unbiased
    standard deviation) are helpers.

## Example

```python
import numpy as np

from ballistic.config import PPOTrainingConfig
from ballistic.model import AgentConfig
from ballistic.rollout_buffer import RolloutBuffer
from ballistic.training import Adam, generate_train_batch, train_step

rng = np.random.default_rng(0)
config = PPOTrainingConfig(
    gamma=0.99, gae_lambda=0.95, obs_dim=4, action_dim=2,
    batch_size=32, mini_batch_size=8, update_epochs=4,
    clip_coef=0.2, clip_vloss=True, ent_coef=0.0, vf_coef=0.5,
    target_kl=None, norm_adv=True, max_grad_norm=0.5, lr=3e-4,
)
agent = AgentConfig(obs_dim=4, action_dim=2).init(rng)

buffer = RolloutBuffer()
for _ in range(32):
    obs = rng.standard_normal((1, 4))
    action, log_prob, _, value = agent.get_action_and_value(obs, None, rng)
    buffer.add(obs, action, np.array([1.0]), np.array([1.0]),
               log_prob, value.reshape(-1))

batch = generate_train_batch(buffer.generate_batch(), config)
agent = train_step(agent, Adam(), batch, config, rng)
```

## What it does not do

- There is no environment or simulator. Rollout data must come from your own
  code.
- There is no command-line program.
- Trained models cannot be saved or loaded. `create_artifact_dir` only
  prepares an empty directory.
- `max_grad_norm` is stored in the configuration, but `train_step` does not
  clip gradients.