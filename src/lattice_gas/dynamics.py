"""
Exclusion-process dynamics.

One sweep is ``N`` hop attempts, ``N`` being the realized particle count, and
defines one unit of Monte Carlo time regardless of how many attempts are
rejected. Every attempt draws, in this order, a particle index uniformly in
``[0, N)`` and then one of the four lattice directions. A hop onto an
occupied site is rejected and leaves the state untouched; a hop onto an
empty site moves the particle, wraps its lattice position through the
neighbor tables and shifts its unwrapped position by one unit.

The kernels work on the raw arrays of a ``LatticeState`` so they can be
compiled with Numba.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from .lattice import EMPTY, LatticeState, mean_squared_displacement
from .rng import pcg32_uniform

# Hop directions, in the order they are indexed by the direction draw
PLUS_X = 0
MINUS_X = 1
PLUS_Y = 2
MINUS_Y = 3
NUM_DIRECTIONS = 4


@njit(cache=True)
def attempt_hop(
    p: int,
    direction: int,
    site: np.ndarray,
    position: np.ndarray,
    true_position: np.ndarray,
    plus_neighbor: np.ndarray,
    minus_neighbor: np.ndarray,
) -> bool:
    """Try to move particle ``p`` one site along ``direction``."""
    x = position[p, 0]
    y = position[p, 1]
    nx = x
    ny = y
    if direction == PLUS_X:
        nx = plus_neighbor[x]
    elif direction == MINUS_X:
        nx = minus_neighbor[x]
    elif direction == PLUS_Y:
        ny = plus_neighbor[y]
    else:
        ny = minus_neighbor[y]

    if site[nx, ny] != EMPTY:
        return False

    site[nx, ny] = p
    site[x, y] = EMPTY
    position[p, 0] = nx
    position[p, 1] = ny

    # unwrapped coordinates never wrap
    if direction == PLUS_X:
        true_position[p, 0] += 1
    elif direction == MINUS_X:
        true_position[p, 0] -= 1
    elif direction == PLUS_Y:
        true_position[p, 1] += 1
    else:
        true_position[p, 1] -= 1
    return True


@njit(cache=True)
def sweep(
    site: np.ndarray,
    position: np.ndarray,
    true_position: np.ndarray,
    plus_neighbor: np.ndarray,
    minus_neighbor: np.ndarray,
    n: int,
    rng_state: np.ndarray,
) -> int:
    """Perform exactly ``n`` hop attempts. Returns the number accepted."""
    accepted = 0
    for _ in range(n):
        p = int(pcg32_uniform(rng_state) * n)
        direction = int(NUM_DIRECTIONS * pcg32_uniform(rng_state))
        if attempt_hop(
            p, direction, site, position, true_position, plus_neighbor, minus_neighbor
        ):
            accepted += 1
    return accepted


@njit(cache=True)
def run_sample(
    site: np.ndarray,
    position: np.ndarray,
    origin: np.ndarray,
    true_position: np.ndarray,
    plus_neighbor: np.ndarray,
    minus_neighbor: np.ndarray,
    n: int,
    num_sweeps: int,
    measurement_period: int,
    rng_state: np.ndarray,
    msd_out: np.ndarray,
) -> int:
    """
    Run ``num_sweeps`` sweeps of an already populated lattice.

    After sweep ``s`` (counting from 1) with ``s % measurement_period == 0``
    the mean squared displacement is stored in ``msd_out[s // period - 1]``.
    Returns the total number of accepted hops.
    """
    accepted = 0
    for s in range(1, num_sweeps + 1):
        accepted += sweep(
            site, position, true_position, plus_neighbor, minus_neighbor, n, rng_state
        )
        if s % measurement_period == 0:
            msd_out[s // measurement_period - 1] = mean_squared_displacement(
                origin, true_position, n
            )
    return accepted


def sweep_state(state: LatticeState, rng_state: np.ndarray) -> int:
    """Run one sweep on a ``LatticeState``."""
    return sweep(
        state.site,
        state.position,
        state.true_position,
        state.plus_neighbor,
        state.minus_neighbor,
        state.n_particles,
        rng_state,
    )


def hop(state: LatticeState, particle: int, direction: int) -> bool:
    """Attempt a single hop with an explicit particle and direction."""
    if not 0 <= particle < state.n_particles:
        raise IndexError(f"Particle {particle} out of range (N={state.n_particles})")
    if not 0 <= direction < NUM_DIRECTIONS:
        raise ValueError(f"Unknown hop direction: {direction}")
    return attempt_hop(
        particle,
        direction,
        state.site,
        state.position,
        state.true_position,
        state.plus_neighbor,
        state.minus_neighbor,
    )


__all__ = [
    "MINUS_X",
    "MINUS_Y",
    "NUM_DIRECTIONS",
    "PLUS_X",
    "PLUS_Y",
    "attempt_hop",
    "hop",
    "run_sample",
    "sweep",
    "sweep_state",
]
