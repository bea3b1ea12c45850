import numpy as np
import pytest

from ballistic.rollout_buffer import RolloutBuffer


def _fill(buffer, steps, envs=2, obs_dim=3, action_dim=2, seed=0):
    rng = np.random.default_rng(seed)
    records = []
    for _ in range(steps):
        record = (
            rng.normal(size=(envs, obs_dim)),
            rng.normal(size=(envs, action_dim)),
            rng.normal(size=envs),
            np.ones(envs),
            rng.normal(size=envs),
            rng.normal(size=envs),
        )
        buffer.add(*record)
        records.append(record)
    return records


def test_generate_batch_shapes():
    buffer = RolloutBuffer()
    _fill(buffer, steps=5)
    batch = buffer.generate_batch()
    assert batch.obs.shape == (5, 2, 3)
    assert batch.actions.shape == (5, 2, 2)
    assert batch.rewards.shape == (5, 2)
    assert batch.not_dones.shape == (5, 2)
    assert batch.log_probs.shape == (5, 2)
    assert batch.values.shape == (5, 2)


def test_generate_batch_preserves_step_order():
    buffer = RolloutBuffer()
    records = _fill(buffer, steps=4)
    batch = buffer.generate_batch()
    for step, (obs, action, reward, not_done, log_prob, value) in enumerate(records):
        assert np.array_equal(batch.obs[step], obs)
        assert np.array_equal(batch.actions[step], action)
        assert np.array_equal(batch.rewards[step], reward)
        assert np.array_equal(batch.not_dones[step], not_done)
        assert np.array_equal(batch.log_probs[step], log_prob)
        assert np.array_equal(batch.values[step], value)


def test_add_copies_inputs():
    buffer = RolloutBuffer()
    obs = np.zeros((1, 2))
    buffer.add(obs, np.zeros((1, 1)), [0.0], [1.0], [0.0], [0.0])
    obs[0, 0] = 9.0
    assert buffer.generate_batch().obs[0, 0, 0] == 0.0


def test_clear_empties_buffer():
    buffer = RolloutBuffer()
    _fill(buffer, steps=3)
    assert len(buffer) == 3
    buffer.clear()
    assert len(buffer) == 0
    assert buffer.rewards == []
    with pytest.raises(ValueError):
        buffer.generate_batch()


def test_empty_buffer_cannot_batch():
    with pytest.raises(ValueError):
        RolloutBuffer().generate_batch()


def test_mismatched_step_shapes_raise():
    buffer = RolloutBuffer()
    buffer.add(np.zeros((2, 3)), np.zeros((2, 1)), np.zeros(2), np.ones(2), np.zeros(2), np.zeros(2))
    buffer.add(np.zeros((3, 3)), np.zeros((3, 1)), np.zeros(3), np.ones(3), np.zeros(3), np.zeros(3))
    with pytest.raises(ValueError):
        buffer.generate_batch()