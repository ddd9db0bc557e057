from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Tuple

import numpy as np
from scipy.stats import linregress

from .errors import ConfigurationError
from .lattice import allocate


@dataclass
class DiffusionEstimate:
    """Per-checkpoint estimates of <dr^2>(t) and D(t) with standard errors."""

    sweeps: np.ndarray
    msd_mean: np.ndarray
    diffusion: np.ndarray
    msd_error: np.ndarray
    diffusion_error: np.ndarray
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def num_checkpoints(self) -> int:
        return int(self.sweeps.shape[0])

    def rows(self) -> Iterator[Tuple[int, float, float, float, float]]:
        for m in range(self.num_checkpoints):
            yield (
                int(self.sweeps[m]),
                float(self.msd_mean[m]),
                float(self.diffusion[m]),
                float(self.msd_error[m]),
                float(self.diffusion_error[m]),
            )


class MeasurementSeries:
    """
    Running sums of the mean squared displacement at each checkpoint.

    Checkpoint ``m`` sits at sweep ``(m + 1) * period``. Each sample
    contributes one row of ``num_checkpoints`` values through
    ``accumulate``; ``finalize`` turns the sums into a DiffusionEstimate.
    """

    def __init__(self, num_checkpoints: int, period: int) -> None:
        if num_checkpoints <= 0 or period <= 0:
            raise ConfigurationError(
                f"Need positive checkpoint count and period, got {num_checkpoints}, {period}"
            )
        self.num_checkpoints = int(num_checkpoints)
        self.period = int(period)
        self.sum_msd = allocate(self.num_checkpoints, np.float64, "average_delta_r2")
        self.sum_msd_sq = allocate(self.num_checkpoints, np.float64, "error_delta_r2")
        self.num_samples = 0

    @property
    def sweeps(self) -> np.ndarray:
        return self.period * np.arange(1, self.num_checkpoints + 1, dtype=np.int64)

    def accumulate(self, msd_row: np.ndarray) -> None:
        row = np.asarray(msd_row, dtype=np.float64)
        if row.shape != (self.num_checkpoints,):
            raise ValueError(
                f"Expected {self.num_checkpoints} checkpoint values, got shape {row.shape}"
            )
        self.sum_msd += row
        self.sum_msd_sq += row * row
        self.num_samples += 1

    def merge(self, other: "MeasurementSeries") -> None:
        """Add the partial sums of another series over the same checkpoints."""
        if (other.num_checkpoints, other.period) != (self.num_checkpoints, self.period):
            raise ValueError("Cannot merge measurement series with different checkpoints")
        self.sum_msd += other.sum_msd
        self.sum_msd_sq += other.sum_msd_sq
        self.num_samples += other.num_samples

    def finalize(self) -> DiffusionEstimate:
        if self.num_samples == 0:
            raise ConfigurationError("No samples were accumulated")
        n = float(self.num_samples)
        mean = self.sum_msd / n
        variance = self.sum_msd_sq / n - mean * mean
        # round-off can push the variance of identical samples below zero
        msd_error = np.sqrt(np.where(variance > 0.0, variance, 0.0) / n)

        t = self.sweeps.astype(np.float64)
        return DiffusionEstimate(
            sweeps=self.sweeps,
            msd_mean=mean,
            diffusion=mean / (4.0 * t),
            msd_error=msd_error,
            diffusion_error=msd_error / (4.0 * t),
            meta={"num_samples": self.num_samples},
        )


@dataclass
class DiffusionFit:
    slope: float
    intercept: float
    diffusion: float
    diffusion_error: float
    r_squared: float


def fit_diffusion_coefficient(
    estimate: DiffusionEstimate, start_fraction: float = 0.5
) -> DiffusionFit:
    """
    Long-time diffusion coefficient from a linear fit <dr^2> = 4 D t + c.

    Only checkpoints from ``start_fraction`` of the run onwards are used,
    leaving out the early transient.
    """
    if not 0.0 <= start_fraction < 1.0:
        raise ValueError(f"start_fraction must lie in [0, 1), got {start_fraction}")
    start = int(estimate.num_checkpoints * start_fraction)
    t = np.asarray(estimate.sweeps[start:], dtype=np.float64)
    msd = np.asarray(estimate.msd_mean[start:], dtype=np.float64)
    if t.size < 3:
        raise ValueError("Too few checkpoints for a linear fit.")

    slope, intercept, r_value, p_value, std_err = linregress(t, msd)
    return DiffusionFit(
        slope=float(slope),
        intercept=float(intercept),
        diffusion=float(slope) / 4.0,
        diffusion_error=float(std_err) / 4.0,
        r_squared=float(r_value) ** 2,
    )


__all__ = [
    "DiffusionEstimate",
    "DiffusionFit",
    "MeasurementSeries",
    "fit_diffusion_coefficient",
]
