"""
Monte Carlo sampler for the 2D lattice gas diffusion coefficient.

Each sample places particles at random with the target density, runs the
exclusion dynamics for ``num_sweeps`` sweeps and records the mean squared
displacement at ``num_measurements`` evenly spaced checkpoints. The
measurement series is averaged over ``num_samples`` independent samples into
D(t) = <dr^2>(t) / 4t with standard errors.

Randomness comes from PCG32 streams derived from a single seed pair:

- shared stream (default): one stream consumed by all samples in order;
- independent streams: sample ``k`` draws from its own stream, seeded by the
  ``k``-th seed pair. Samples then share no state and may run in a process
  pool; their rows are merged in sample order so the estimate does not
  depend on the number of jobs.
"""

from __future__ import annotations

import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np

from . import utils
from .dynamics import run_sample, sweep_state
from .errors import ConfigurationError
from .estimator import DiffusionEstimate, MeasurementSeries
from .lattice import LatticeState, allocate
from .rng import DEFAULT_SEED_SEQUENCE, DEFAULT_SEED_STATE, SeedGenerator, make_stream


@dataclass
class DiffusionConfig:
    """Run parameters of a diffusion measurement."""

    side: int = 80
    density: float = 0.5
    num_sweeps: int = 2000
    num_measurements: int = 100
    num_samples: int = 50
    seed_state: int = DEFAULT_SEED_STATE
    seed_sequence: int = DEFAULT_SEED_SEQUENCE
    independent_streams: bool = False
    jobs: int = 1
    check_invariants: bool = False
    verbose: bool = True

    @property
    def measurement_period(self) -> int:
        return self.num_sweeps // self.num_measurements

    def validate(self) -> None:
        for name in ("side", "num_sweeps", "num_measurements", "num_samples", "jobs"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        for name in ("seed_state", "seed_sequence"):
            value = getattr(self, name)
            if not isinstance(value, (int, np.integer)) or value < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.density, (int, float, np.floating)) or not 0.0 < self.density < 1.0:
            raise ConfigurationError(f"density must lie in (0, 1), got {self.density!r}")
        if self.num_sweeps % self.num_measurements != 0:
            raise ConfigurationError(
                f"num_sweeps ({self.num_sweeps}) is not a multiple of "
                f"num_measurements ({self.num_measurements})"
            )
        if self.jobs > 1 and not self.independent_streams:
            raise ConfigurationError("Parallel jobs require independent_streams")

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "DiffusionConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise ConfigurationError(f"Unknown parameters: {', '.join(unknown)}")
        return cls(**params)

    @classmethod
    def from_file(cls, path: str | Path) -> "DiffusionConfig":
        return cls.from_dict(utils.load_params(path))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SampleOutcome:
    particles: int
    msd: np.ndarray
    accepted: int


def simulate_sample(
    config: DiffusionConfig, state: LatticeState, rng_state: np.ndarray
) -> SampleOutcome:
    """Populate ``state`` and run one sample, drawing from ``rng_state``."""
    n = state.populate(config.density, rng_state)
    period = config.measurement_period
    msd = allocate(config.num_measurements, np.float64, "delta_r2_sample")

    if not config.check_invariants:
        accepted = run_sample(
            state.site,
            state.position,
            state.origin,
            state.true_position,
            state.plus_neighbor,
            state.minus_neighbor,
            n,
            config.num_sweeps,
            period,
            rng_state,
            msd,
        )
        return SampleOutcome(particles=n, msd=msd, accepted=int(accepted))

    # Slow path: check the lattice after placement and after every sweep
    state.validate()
    accepted = 0
    for s in range(1, config.num_sweeps + 1):
        accepted += sweep_state(state, rng_state)
        state.validate()
        if s % period == 0:
            msd[s // period - 1] = state.mean_squared_displacement()
    return SampleOutcome(particles=n, msd=msd, accepted=accepted)


def run_independent_sample(
    config: DiffusionConfig, seed_pair: Tuple[int, int]
) -> SampleOutcome:
    """
    Run one sample on its own lattice and stream.

    Module level so it can be pickled by ProcessPoolExecutor.
    """
    with LatticeState(config.side) as state:
        return simulate_sample(config, state, make_stream(*seed_pair))


class DiffusionSampler:
    """
    The Manager Class.

    Responsibilities:
    1. Validate the configuration before any work starts.
    2. Own the lattice context and the random streams.
    3. Drive the Numba kernels sample by sample and aggregate the results.
    """

    def __init__(self, config: DiffusionConfig | None = None) -> None:
        self.config = config or DiffusionConfig()
        self.config.validate()
        self.seeds = SeedGenerator(self.config.seed_state, self.config.seed_sequence)

        # Observables placeholders
        self.series: Optional[MeasurementSeries] = None
        self.particle_counts: Optional[np.ndarray] = None
        self.stream_seeds: List[Tuple[int, int]] = []

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    # ---------------------------------------------------------------- samples
    def _shared_samples(self) -> Iterator[SampleOutcome]:
        seed_pair = self.seeds.next_pair()
        self.stream_seeds = [seed_pair]
        rng_state = make_stream(*seed_pair)
        with LatticeState(self.config.side) as state:
            for _ in range(self.config.num_samples):
                yield simulate_sample(self.config, state, rng_state)

    def _independent_samples(self) -> Iterator[SampleOutcome]:
        cfg = self.config
        self.stream_seeds = [self.seeds.next_pair() for _ in range(cfg.num_samples)]
        if cfg.jobs == 1:
            for seed_pair in self.stream_seeds:
                yield run_independent_sample(cfg, seed_pair)
            return

        with ProcessPoolExecutor(max_workers=cfg.jobs) as executor:
            # map preserves submission order, which keeps the sums reproducible
            yield from executor.map(
                run_independent_sample,
                [cfg] * cfg.num_samples,
                self.stream_seeds,
            )

    # ------------------------------------------------------------------ public
    def run(self) -> DiffusionEstimate:
        """Run every sample and return the finalized estimate."""
        cfg = self.config
        self.series = MeasurementSeries(cfg.num_measurements, cfg.measurement_period)
        self.particle_counts = allocate(cfg.num_samples, np.int64, "particle_counts")
        accepted = 0
        attempted = 0
        empty_samples = 0

        self._log(
            f"Running lattice gas: L={cfg.side}, rho={cfg.density}, "
            f"N~{round(cfg.density * cfg.side * cfg.side)}, sweeps={cfg.num_sweeps}, "
            f"measurements={cfg.num_measurements}, samples={cfg.num_samples}"
        )
        start_time = time.time()

        samples = self._independent_samples() if cfg.independent_streams else self._shared_samples()
        for k, outcome in enumerate(samples):
            self.series.accumulate(outcome.msd)
            self.particle_counts[k] = outcome.particles
            accepted += outcome.accepted
            attempted += outcome.particles * cfg.num_sweeps
            if outcome.particles == 0:
                empty_samples += 1
                self._log(f"  Warning: sample {k} realized no particles")

        elapsed_time = time.time() - start_time
        estimate = self.series.finalize()
        estimate.meta.update(
            {
                "side": cfg.side,
                "density": cfg.density,
                "num_sweeps": cfg.num_sweeps,
                "num_measurements": cfg.num_measurements,
                "measurement_period": cfg.measurement_period,
                "num_samples": cfg.num_samples,
                "seed_state": cfg.seed_state,
                "seed_sequence": cfg.seed_sequence,
                "independent_streams": cfg.independent_streams,
                "stream_seeds": [list(pair) for pair in self.stream_seeds],
                "particle_counts": self.particle_counts.tolist(),
                "mean_particles": float(self.particle_counts.mean()),
                "realized_density": float(self.particle_counts.mean()) / (cfg.side * cfg.side),
                "empty_samples": empty_samples,
                "acceptance_ratio": accepted / attempted if attempted else 0.0,
                "elapsed_seconds": elapsed_time,
            }
        )

        self._log(
            f"Finished {cfg.num_samples} samples in {elapsed_time:.2f} s: "
            f"<N>={estimate.meta['mean_particles']:.1f}, "
            f"acceptance={estimate.meta['acceptance_ratio']:.3f}, "
            f"D(t={int(estimate.sweeps[-1])})={estimate.diffusion[-1]:.6f} "
            f"+/- {estimate.diffusion_error[-1]:.6f}"
        )
        return estimate


def run_diffusion(config: DiffusionConfig | None = None, **overrides: Any) -> DiffusionEstimate:
    """Convenience wrapper: build a sampler and run it."""
    params = (config or DiffusionConfig()).to_dict()
    params.update(overrides)
    return DiffusionSampler(DiffusionConfig.from_dict(params)).run()


__all__ = [
    "DiffusionConfig",
    "DiffusionSampler",
    "SampleOutcome",
    "run_diffusion",
    "run_independent_sample",
    "simulate_sample",
]
