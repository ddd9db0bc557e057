"""
Non-interacting random walks on the 1D and 2D integer lattices.

These are the zero-density reference for the lattice gas: a free walker
taking one unit step per time unit has <x^2(t)> = t in 1D and
<r^2(t)> = t in 2D, i.e. D = 1/4 with the 2D normalization <r^2> = 4 D t.
Each run draws from its own PCG32 stream seeded from a SeedGenerator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from numba import njit

from .errors import ConfigurationError
from .lattice import allocate
from .rng import SeedGenerator, pcg32_uniform


@njit(cache=True)
def walk_1d(num_steps: int, rng_state: np.ndarray) -> np.ndarray:
    """Positions after each of ``num_steps`` unit steps (right when u > 0.5)."""
    positions = np.zeros(num_steps, dtype=np.int64)
    x = 0
    for i in range(num_steps):
        if pcg32_uniform(rng_state) > 0.5:
            x += 1
        else:
            x -= 1
        positions[i] = x
    return positions


@njit(cache=True)
def walk_2d(num_steps: int, rng_state: np.ndarray) -> np.ndarray:
    """(num_steps, 2) trajectory; one draw per step picks +x, -x, +y or -y."""
    trajectory = np.zeros((num_steps, 2), dtype=np.int64)
    x = 0
    y = 0
    for i in range(num_steps):
        r = pcg32_uniform(rng_state)
        if r < 0.25:
            x += 1
        elif r < 0.5:
            x -= 1
        elif r < 0.75:
            y += 1
        else:
            y -= 1
        trajectory[i, 0] = x
        trajectory[i, 1] = y
    return trajectory


def _check_positive(**counts: int) -> None:
    for name, value in counts.items():
        if value <= 0:
            raise ConfigurationError(f"{name} must be positive, got {value}")


def ensemble_msd_1d(
    num_runs: int, num_steps: int, seeds: Optional[SeedGenerator] = None
) -> np.ndarray:
    """<x^2> after step ``i`` (index i holds time i + 1), averaged over runs."""
    _check_positive(num_runs=num_runs, num_steps=num_steps)
    seeds = seeds or SeedGenerator()
    total = allocate(num_steps, np.float64, "x2_sum")
    for _ in range(num_runs):
        positions = walk_1d(num_steps, seeds.stream()).astype(np.float64)
        total += positions * positions
    return total / num_runs


def positions_at_time_2d(
    num_runs: int, t_target: int, seeds: Optional[SeedGenerator] = None
) -> np.ndarray:
    """(num_runs, 2) positions of independent walkers after ``t_target`` steps."""
    _check_positive(num_runs=num_runs, t_target=t_target)
    seeds = seeds or SeedGenerator()
    out = allocate((num_runs, 2), np.int64, "positions_at_target")
    for run in range(num_runs):
        out[run] = walk_2d(t_target, seeds.stream())[-1]
    return out


@dataclass
class WalkSummary:
    num_runs: int
    mean_x: float
    mean_y: float
    var_x: float
    var_y: float


def summarize_positions(positions: np.ndarray) -> WalkSummary:
    """Mean and sample variance (n - 1 denominator) per axis."""
    pos = np.asarray(positions, dtype=np.float64)
    if pos.ndim != 2 or pos.shape[1] != 2:
        raise ValueError(f"Expected positions of shape (N, 2), got {pos.shape}")
    if pos.shape[0] < 2:
        raise ValueError("Need at least two runs for a sample variance")
    mean = pos.mean(axis=0)
    var = pos.var(axis=0, ddof=1)
    return WalkSummary(
        num_runs=int(pos.shape[0]),
        mean_x=float(mean[0]),
        mean_y=float(mean[1]),
        var_x=float(var[0]),
        var_y=float(var[1]),
    )


__all__ = [
    "WalkSummary",
    "ensemble_msd_1d",
    "positions_at_time_2d",
    "summarize_positions",
    "walk_1d",
    "walk_2d",
]
