from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np
from numba import njit

from .errors import AllocationError, ConfigurationError, InvariantError
from .rng import pcg32_uniform

EMPTY = -1  # occupancy marker of a free site
DIM = 2


def allocate(shape, dtype, name: str, fill=None) -> np.ndarray:
    """Obtain a zeroed (or filled) array, naming it if the request fails."""
    shape = tuple(int(s) for s in np.atleast_1d(shape))
    nbytes = math.prod(shape) * np.dtype(dtype).itemsize
    try:
        if fill is None:
            return np.zeros(shape, dtype=dtype)
        return np.full(shape, fill, dtype=dtype)
    except (MemoryError, ValueError) as exc:
        raise AllocationError(name, nbytes) from exc


def build_neighbor_table(side: int) -> Tuple[np.ndarray, np.ndarray]:
    """Periodic successor/predecessor lookup tables for coordinates in [0, side)."""
    plus = allocate(side, np.int64, "plus_neighbor")
    minus = allocate(side, np.int64, "minus_neighbor")
    plus[:] = np.arange(1, side + 1)
    minus[:] = np.arange(-1, side - 1)
    plus[side - 1] = 0
    minus[0] = side - 1
    plus.flags.writeable = False
    minus.flags.writeable = False
    return plus, minus


@njit(cache=True)
def populate_kernel(
    site: np.ndarray,
    position: np.ndarray,
    origin: np.ndarray,
    true_position: np.ndarray,
    density: float,
    rng_state: np.ndarray,
) -> int:
    """
    Empty the lattice, then visit every site in row-major order and place a
    new particle there with probability ``density``. Returns the realized
    particle count.
    """
    side = site.shape[0]
    for x in range(side):
        for y in range(side):
            site[x, y] = EMPTY

    n = 0
    for x in range(side):
        for y in range(side):
            if pcg32_uniform(rng_state) < density:
                site[x, y] = n
                position[n, 0] = x
                position[n, 1] = y
                origin[n, 0] = x
                origin[n, 1] = y
                true_position[n, 0] = x
                true_position[n, 1] = y
                n += 1
    return n


@njit(cache=True)
def mean_squared_displacement(
    origin: np.ndarray, true_position: np.ndarray, n: int
) -> float:
    """Average squared distance between unwrapped and initial positions."""
    if n == 0:
        return 0.0
    total = 0.0
    for p in range(n):
        for mu in range(DIM):
            dl = float(true_position[p, mu] - origin[p, mu])
            total += dl * dl
    return total / n


class LatticeState:
    """
    Simulation context for one sample.

    Owns the periodic ``side x side`` occupancy map and the particle
    registry (wrapped, initial and unwrapped coordinates). ``site[x, y]``
    holds the index of the occupying particle or ``EMPTY``; particle rows
    ``[0, n_particles)`` of the coordinate arrays are live.

    Used as a context manager the storage is dropped on exit, whatever the
    exit path.
    """

    def __init__(self, side: int) -> None:
        if side <= 0:
            raise ConfigurationError(f"Lattice side must be positive, got {side}")
        self.side = int(side)
        self.volume = self.side * self.side

        self.site = allocate((self.side, self.side), np.int64, "particle_of_site", fill=EMPTY)
        self.position = allocate((self.volume, DIM), np.int64, "position_of_particle")
        self.origin = allocate((self.volume, DIM), np.int64, "zero_position_of_particle")
        self.true_position = allocate((self.volume, DIM), np.int64, "true_position_of_particle")
        self.plus_neighbor, self.minus_neighbor = build_neighbor_table(self.side)
        self.n_particles = 0

    def __enter__(self) -> "LatticeState":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release()
        return False

    def release(self) -> None:
        self.site = None
        self.position = None
        self.origin = None
        self.true_position = None
        self.plus_neighbor = None
        self.minus_neighbor = None
        self.n_particles = 0

    @property
    def released(self) -> bool:
        return self.site is None

    # ------------------------------------------------------------------ sites
    def clear(self) -> None:
        self.site.fill(EMPTY)
        self.n_particles = 0

    def place(self, x: int, y: int, particle: int) -> None:
        self.site[x, y] = particle

    def vacate(self, x: int, y: int) -> None:
        self.site[x, y] = EMPTY

    def occupant(self, x: int, y: int) -> Optional[int]:
        p = int(self.site[x, y])
        return None if p == EMPTY else p

    # -------------------------------------------------------------- particles
    def add_particle(self, x: int, y: int) -> int:
        """Register a new particle at an empty site and return its index."""
        if self.occupant(x, y) is not None:
            raise InvariantError(f"Site ({x}, {y}) is already occupied")
        p = self.n_particles
        self.place(x, y, p)
        self.position[p] = (x, y)
        self.origin[p] = (x, y)
        self.true_position[p] = (x, y)
        self.n_particles += 1
        return p

    def populate(self, density: float, rng_state: np.ndarray) -> int:
        self.n_particles = populate_kernel(
            self.site,
            self.position,
            self.origin,
            self.true_position,
            float(density),
            rng_state,
        )
        return self.n_particles

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.site != EMPTY))

    @property
    def realized_density(self) -> float:
        return self.n_particles / self.volume

    def live_positions(self) -> np.ndarray:
        return self.position[: self.n_particles]

    def displacements(self) -> np.ndarray:
        """(N, 2) signed displacement of every particle since placement."""
        n = self.n_particles
        return self.true_position[:n] - self.origin[:n]

    def mean_squared_displacement(self) -> float:
        return mean_squared_displacement(self.origin, self.true_position, self.n_particles)

    def validate(self) -> None:
        """
        Check occupancy, exclusion and coordinate consistency.

        Raises InvariantError describing the first violation found.
        """
        n = self.n_particles
        occupied = self.site != EMPTY
        count = int(np.count_nonzero(occupied))
        if count != n:
            raise InvariantError(f"{count} occupied sites for {n} particles")
        if n == 0:
            return

        ids = self.site[occupied]
        if ids.min() < 0 or ids.max() >= n:
            raise InvariantError(
                f"Site holds invalid particle index (range {ids.min()}..{ids.max()}, N={n})"
            )
        if np.unique(ids).size != n:
            raise InvariantError("A particle occupies more than one site")

        xs, ys = np.nonzero(occupied)
        pos = self.position[ids]
        if not (np.array_equal(pos[:, 0], xs) and np.array_equal(pos[:, 1], ys)):
            raise InvariantError("Particle position disagrees with the occupancy map")

        live = self.position[:n]
        if live.min() < 0 or live.max() >= self.side:
            raise InvariantError("Wrapped position outside the lattice")
        if not np.array_equal(np.mod(self.true_position[:n], self.side), live):
            raise InvariantError("Unwrapped position is not congruent to the wrapped position")


__all__ = [
    "DIM",
    "EMPTY",
    "LatticeState",
    "allocate",
    "build_neighbor_table",
    "mean_squared_displacement",
    "populate_kernel",
]
