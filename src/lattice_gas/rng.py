"""
PCG32 random source (XSH-RR 64/32, M.E. O'Neill, pcg-random.org).

Two renditions of the same generator are provided:

- ``PCG32``: a small pure-Python dataclass used for seeding and seed
  derivation, where speed does not matter.
- ``pcg32_next_u32`` / ``pcg32_uniform``: Numba kernels operating on a
  two-element ``uint64`` array ``[state, inc]``. Every hot loop in the
  package threads one of these arrays through and advances it in place.

Both produce bit-identical streams, so a state exported with
``PCG32.to_array`` continues exactly where the Python object stopped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numba import njit

MASK32 = (1 << 32) - 1
MASK64 = (1 << 64) - 1
PCG_MULTIPLIER = 6364136223846793005

# Seed pair of the seed generator used when none is given
DEFAULT_SEED_STATE = 12345
DEFAULT_SEED_SEQUENCE = 67890

###############################################################################
# Numba-side constants (uint64 throughout to keep the arithmetic unsigned)
###############################################################################

_MULT = np.uint64(PCG_MULTIPLIER)
_ONE = np.uint64(1)
_MASK32 = np.uint64(MASK32)
_SHIFT_18 = np.uint64(18)
_SHIFT_27 = np.uint64(27)
_SHIFT_59 = np.uint64(59)
_WIDTH = np.uint64(32)
_ROT_MASK = np.uint64(31)
_INV_2_32 = 1.0 / 4294967296.0


@dataclass
class PCG32:
    state: int = 0x853C49E6748FEA9B
    inc: int = 0xDA3E39CB94B95BDB

    @classmethod
    def seeded(cls, initstate: int, initseq: int) -> "PCG32":
        """Standard PCG seeding: select the stream, then mix in the state."""
        rng = cls(state=0, inc=((initseq << 1) | 1) & MASK64)
        rng.next_u32()
        rng.state = (rng.state + initstate) & MASK64
        rng.next_u32()
        return rng

    @classmethod
    def from_array(cls, rng_state: np.ndarray) -> "PCG32":
        return cls(state=int(rng_state[0]), inc=int(rng_state[1]))

    def next_u32(self) -> int:
        oldstate = self.state
        self.state = (oldstate * PCG_MULTIPLIER + (self.inc | 1)) & MASK64
        xorshifted = (((oldstate >> 18) ^ oldstate) >> 27) & MASK32
        rot = oldstate >> 59
        return ((xorshifted >> rot) | (xorshifted << ((-rot) & 31))) & MASK32

    def random(self) -> float:
        return self.next_u32() / 2**32

    def randint(self, a: int, b: int) -> int:
        # inclusive a..b
        span = b - a + 1
        return a + int(self.random() * span)

    def skip(self, n: int) -> None:
        for _ in range(n):
            self.next_u32()

    def to_array(self) -> np.ndarray:
        """Export the state for use by the Numba kernels."""
        return np.array([self.state, self.inc], dtype=np.uint64)


def make_stream(initstate: int, initseq: int) -> np.ndarray:
    """Return a seeded kernel state array for the seed pair."""
    return PCG32.seeded(initstate, initseq).to_array()


class SeedGenerator:
    """
    Derives stream seeds from a single seed pair.

    Each call to ``next_seed`` returns the next 32-bit output of a PCG32
    seeded with ``(seed_state, seed_sequence)``; two consecutive outputs
    form the seed pair of one simulation stream.
    """

    def __init__(
        self,
        seed_state: int = DEFAULT_SEED_STATE,
        seed_sequence: int = DEFAULT_SEED_SEQUENCE,
    ) -> None:
        self._rng = PCG32.seeded(seed_state, seed_sequence)

    def next_seed(self) -> int:
        return self._rng.next_u32()

    def next_pair(self) -> Tuple[int, int]:
        seed1 = self.next_seed()
        seed2 = self.next_seed()
        return seed1, seed2

    def stream(self) -> np.ndarray:
        """Seed a fresh kernel stream from the next seed pair."""
        return make_stream(*self.next_pair())


###############################################################################
# Numba kernels
###############################################################################


@njit(cache=True)
def pcg32_next_u32(rng_state: np.ndarray) -> np.uint64:
    oldstate = rng_state[0]
    rng_state[0] = oldstate * _MULT + (rng_state[1] | _ONE)
    xorshifted = (((oldstate >> _SHIFT_18) ^ oldstate) >> _SHIFT_27) & _MASK32
    rot = oldstate >> _SHIFT_59
    return ((xorshifted >> rot) | (xorshifted << ((_WIDTH - rot) & _ROT_MASK))) & _MASK32


@njit(cache=True)
def pcg32_uniform(rng_state: np.ndarray) -> float:
    """Uniform deviate in [0, 1)."""
    return pcg32_next_u32(rng_state) * _INV_2_32


@njit(cache=True)
def pcg32_fill(rng_state: np.ndarray, out: np.ndarray) -> None:
    for i in range(out.shape[0]):
        out[i] = pcg32_uniform(rng_state)


__all__ = [
    "DEFAULT_SEED_SEQUENCE",
    "DEFAULT_SEED_STATE",
    "PCG32",
    "SeedGenerator",
    "make_stream",
    "pcg32_fill",
    "pcg32_next_u32",
    "pcg32_uniform",
]
