import json

import numpy as np
import pytest

from lattice_gas import DiffusionConfig, OutputError
from lattice_gas.estimator import DiffusionEstimate
from lattice_gas.utils import (
    format_table,
    load_estimate,
    load_params,
    read_table,
    save_estimate,
    write_table,
)


def make_estimate():
    return DiffusionEstimate(
        sweeps=np.array([10, 20]),
        msd_mean=np.array([8.0, 15.5]),
        diffusion=np.array([0.2, 0.19375]),
        msd_error=np.array([0.5, 0.25]),
        diffusion_error=np.array([0.0125, 0.003125]),
        meta={"side": 10, "density": 0.5, "num_sweeps": 20, "num_samples": 4},
    )


def test_format_table():
    text = format_table(make_estimate())
    lines = text.splitlines()
    assert lines[0] == "# L = 10  rho_input = 0.500  num_sweeps = 20    num_samples = 4"
    assert lines[1].startswith("# sweep")
    assert lines[2] == "10 8.000000000000 0.200000000000 0.500000000000 0.012500000000"
    assert lines[3] == "20 15.500000000000 0.193750000000 0.250000000000 0.003125000000"
    assert text.endswith("\n")


def test_write_and_read_table(tmp_path):
    path = write_table(tmp_path / "nested" / "out.dat", make_estimate())
    assert path.exists()

    est = read_table(path)
    assert est.sweeps.tolist() == [10, 20]
    assert est.msd_mean.tolist() == pytest.approx([8.0, 15.5])
    assert est.diffusion_error.tolist() == pytest.approx([0.0125, 0.003125])
    assert est.meta == {"side": 10, "density": 0.5, "num_sweeps": 20, "num_samples": 4}


def test_unwritable_destination(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    with pytest.raises(OutputError) as info:
        write_table(blocker / "out.dat", make_estimate())
    assert isinstance(info.value, OSError)
    assert "not_a_dir" in str(info.value)


def test_save_and_load_estimate(tmp_path):
    path = tmp_path / "est.npz"
    save_estimate(path, make_estimate())
    est = load_estimate(path)
    assert est.sweeps.tolist() == [10, 20]
    assert est.diffusion.tolist() == pytest.approx([0.2, 0.19375])
    assert est.meta["side"] == 10

    with pytest.raises(FileExistsError):
        save_estimate(path, make_estimate(), overwrite=False)


def test_load_params_json_and_toml(tmp_path):
    json_path = tmp_path / "run.json"
    json_path.write_text(json.dumps({"side": 12, "density": 0.3}))
    toml_path = tmp_path / "run.toml"
    toml_path.write_text("side = 12\ndensity = 0.3\n")

    assert load_params(json_path) == {"side": 12, "density": 0.3}
    assert load_params(toml_path) == {"side": 12, "density": 0.3}

    yaml_path = tmp_path / "run.yaml"
    yaml_path.write_text("side: 12\n")
    with pytest.raises(ValueError):
        load_params(yaml_path)


def test_config_from_file(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(json.dumps({"side": 12, "density": 0.3, "num_sweeps": 50, "num_measurements": 5}))
    config = DiffusionConfig.from_file(path)
    assert config.side == 12
    assert config.measurement_period == 10
    assert config.num_samples == DiffusionConfig().num_samples
