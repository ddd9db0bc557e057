"""
Lattice Gas Diffusion - exclusion-process Monte Carlo on a periodic 2D lattice

This package estimates the diffusion coefficient D(rho, t) of hard-core
particles hopping on an L x L torus:
- LatticeState: occupancy map and particle registry of one sample
- dynamics: Numba sweep kernels for the exclusion process
- DiffusionSampler: multi-sample driver producing a DiffusionEstimate
- random_walk: free 1D/2D walkers, the zero-density reference
"""

from .errors import (
    AllocationError,
    ConfigurationError,
    InvariantError,
    LatticeGasError,
    OutputError,
)
from .estimator import DiffusionEstimate, DiffusionFit, MeasurementSeries, fit_diffusion_coefficient
from .lattice import EMPTY, LatticeState, build_neighbor_table
from .rng import PCG32, SeedGenerator, make_stream
from .sampler import DiffusionConfig, DiffusionSampler, run_diffusion
from . import dynamics, random_walk, utils

__all__ = [
    # Simulation
    "DiffusionConfig",
    "DiffusionSampler",
    "LatticeState",
    "run_diffusion",
    # Estimation
    "DiffusionEstimate",
    "DiffusionFit",
    "MeasurementSeries",
    "fit_diffusion_coefficient",
    # Random source
    "PCG32",
    "SeedGenerator",
    "make_stream",
    # Lattice helpers
    "EMPTY",
    "build_neighbor_table",
    # Errors
    "AllocationError",
    "ConfigurationError",
    "InvariantError",
    "LatticeGasError",
    "OutputError",
    # Modules
    "dynamics",
    "random_walk",
    "utils",
]
