import numpy as np
import pytest

from lattice_gas import ConfigurationError
from lattice_gas.random_walk import (
    ensemble_msd_1d,
    positions_at_time_2d,
    summarize_positions,
    walk_1d,
    walk_2d,
)
from lattice_gas.rng import PCG32, SeedGenerator, make_stream


def test_walk_1d_unit_steps_follow_stream():
    positions = walk_1d(50, make_stream(3, 4))
    steps = np.diff(np.concatenate(([0], positions)))
    assert set(np.abs(steps).tolist()) == {1}

    rng = PCG32.seeded(3, 4)
    expected = []
    x = 0
    for _ in range(50):
        x += 1 if rng.random() > 0.5 else -1
        expected.append(x)
    assert positions.tolist() == expected


def test_walk_2d_moves_one_axis_per_step():
    traj = walk_2d(100, make_stream(7, 9))
    assert traj.shape == (100, 2)
    steps = np.diff(np.vstack(([0, 0], traj)), axis=0)
    assert np.all(np.abs(steps).sum(axis=1) == 1)


def test_ensemble_msd_1d_grows_linearly():
    msd = ensemble_msd_1d(2000, 200)
    assert msd.shape == (200,)
    assert msd[0] == 1.0
    assert abs(msd[-1] - 200) < 20


def test_ensemble_is_reproducible():
    a = ensemble_msd_1d(20, 30, SeedGenerator(1, 2))
    b = ensemble_msd_1d(20, 30, SeedGenerator(1, 2))
    np.testing.assert_array_equal(a, b)


def test_positions_at_time_2d_variance():
    t = 100
    positions = positions_at_time_2d(2000, t)
    assert positions.shape == (2000, 2)
    # parity: x + y has the parity of t
    assert np.all((positions.sum(axis=1) - t) % 2 == 0)

    summary = summarize_positions(positions)
    assert summary.num_runs == 2000
    assert abs(summary.mean_x) < 1.0
    assert abs(summary.mean_y) < 1.0
    assert summary.var_x + summary.var_y == pytest.approx(t, rel=0.1)


def test_summarize_positions_validation():
    with pytest.raises(ValueError):
        summarize_positions(np.zeros((5, 3)))
    with pytest.raises(ValueError):
        summarize_positions(np.zeros((1, 2)))

    summary = summarize_positions(np.array([[1, 0], [-1, 2]]))
    assert summary.mean_x == 0.0
    assert summary.var_x == 2.0
    assert summary.var_y == 2.0


def test_invalid_counts():
    with pytest.raises(ConfigurationError):
        ensemble_msd_1d(0, 10)
    with pytest.raises(ConfigurationError):
        positions_at_time_2d(10, 0)
