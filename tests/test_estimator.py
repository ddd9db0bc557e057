import numpy as np
import pytest

from lattice_gas import ConfigurationError
from lattice_gas.estimator import MeasurementSeries, fit_diffusion_coefficient


def test_finalize_formulas():
    series = MeasurementSeries(num_checkpoints=2, period=5)
    series.accumulate([1.0, 4.0])
    series.accumulate([3.0, 8.0])
    est = series.finalize()

    assert est.sweeps.tolist() == [5, 10]
    assert est.msd_mean.tolist() == pytest.approx([2.0, 6.0])
    # population variance [1, 4] -> stderr sqrt(var / 2)
    assert est.msd_error.tolist() == pytest.approx([np.sqrt(0.5), np.sqrt(2.0)])
    assert est.diffusion.tolist() == pytest.approx([2.0 / 20.0, 6.0 / 40.0])
    assert est.diffusion_error.tolist() == pytest.approx([np.sqrt(0.5) / 20.0, np.sqrt(2.0) / 40.0])
    assert est.meta["num_samples"] == 2
    assert est.num_checkpoints == 2


def test_identical_samples_have_no_error():
    series = MeasurementSeries(num_checkpoints=3, period=1)
    for _ in range(7):
        series.accumulate([0.1, 0.3, 0.7])
    est = series.finalize()
    assert np.all(est.msd_error >= 0.0)
    assert np.all(est.msd_error < 1e-7)
    assert np.all(np.isfinite(est.diffusion_error))


def test_merge_matches_sequential_accumulation():
    rows = np.random.default_rng(0).uniform(0.0, 10.0, size=(6, 4))
    whole = MeasurementSeries(4, 2)
    left = MeasurementSeries(4, 2)
    right = MeasurementSeries(4, 2)
    for i, row in enumerate(rows):
        whole.accumulate(row)
        (left if i < 3 else right).accumulate(row)
    left.merge(right)

    a, b = whole.finalize(), left.finalize()
    assert left.num_samples == 6
    assert np.allclose(a.msd_mean, b.msd_mean)
    assert np.allclose(a.msd_error, b.msd_error)


def test_series_argument_checks():
    with pytest.raises(ConfigurationError):
        MeasurementSeries(0, 5)
    series = MeasurementSeries(3, 5)
    with pytest.raises(ValueError):
        series.accumulate([1.0, 2.0])
    with pytest.raises(ConfigurationError):
        series.finalize()
    with pytest.raises(ValueError):
        series.merge(MeasurementSeries(3, 4))


def test_rows_yield_plain_values():
    series = MeasurementSeries(2, 10)
    series.accumulate([4.0, 8.0])
    rows = list(series.finalize().rows())
    assert rows == [(10, 4.0, 0.1, 0.0, 0.0), (20, 8.0, 0.1, 0.0, 0.0)]


def test_fit_recovers_linear_growth():
    series = MeasurementSeries(20, 10)
    t = series.sweeps.astype(float)
    series.accumulate(4.0 * 0.2 * t + 3.0)
    fit = fit_diffusion_coefficient(series.finalize(), start_fraction=0.25)
    assert fit.diffusion == pytest.approx(0.2)
    assert fit.intercept == pytest.approx(3.0)
    assert fit.r_squared == pytest.approx(1.0)


def test_fit_argument_checks():
    series = MeasurementSeries(4, 10)
    series.accumulate([1.0, 2.0, 3.0, 4.0])
    est = series.finalize()
    with pytest.raises(ValueError):
        fit_diffusion_coefficient(est, start_fraction=1.0)
    with pytest.raises(ValueError):
        fit_diffusion_coefficient(est, start_fraction=0.5)
