import json

import numpy as np

import run_diffusion
from lattice_gas.utils import read_table


def test_success_writes_table(tmp_path, capsys):
    out = tmp_path / "D_L10.dat"
    code = run_diffusion.main(["10", "0.5", "100", "10", "3", str(out), "--quiet"])
    assert code == 0
    assert capsys.readouterr().out == ""

    lines = out.read_text().splitlines()
    assert lines[0] == "# L = 10  rho_input = 0.500  num_sweeps = 100    num_samples = 3"
    assert len(lines) == 12

    est = read_table(out)
    assert est.sweeps.tolist() == list(range(10, 101, 10))
    assert np.all(est.msd_mean > 0.0)


def test_non_dividing_period_exits_with_usage(tmp_path, capsys):
    out = tmp_path / "bad.dat"
    code = run_diffusion.main(["10", "0.5", "105", "10", "3", str(out), "--quiet"])
    assert code == 2
    assert not out.exists()
    err = capsys.readouterr().err
    assert err.startswith("usage:")
    assert "ERROR:" in err


def test_missing_arguments(tmp_path, capsys):
    assert run_diffusion.main(["10", "0.5"]) == 2
    assert run_diffusion.main(["10", "0.5", "100", "10", "3"]) == 2
    assert "No output file" in capsys.readouterr().err


def test_jobs_without_independent_streams_is_rejected(tmp_path):
    out = tmp_path / "x.dat"
    code = run_diffusion.main(["10", "0.5", "20", "2", "2", str(out), "--jobs", "2", "--quiet"])
    assert code == 2
    assert not out.exists()


def test_unwritable_output(tmp_path, capsys):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    code = run_diffusion.main(["8", "0.3", "20", "2", "1", str(blocker / "out.dat"), "--quiet"])
    assert code == 1
    assert "Cannot write" in capsys.readouterr().err


def test_config_file_with_output_option(tmp_path):
    params = tmp_path / "params.json"
    params.write_text(
        json.dumps(
            {"side": 8, "density": 0.4, "num_sweeps": 20, "num_measurements": 4, "num_samples": 2}
        )
    )
    out = tmp_path / "cfg.dat"
    npz = tmp_path / "cfg.npz"
    code = run_diffusion.main(
        ["--config", str(params), "-o", str(out), "--npz", str(npz), "--quiet"]
    )
    assert code == 0
    est = read_table(out)
    assert est.sweeps.tolist() == [5, 10, 15, 20]
    assert est.meta["side"] == 8
    assert npz.exists()


def test_verbose_summary(tmp_path, capsys):
    out = tmp_path / "v.dat"
    assert run_diffusion.main(["8", "0.3", "20", "2", "1", str(out)]) == 0
    stdout = capsys.readouterr().out
    assert "Running lattice gas" in stdout
    assert "Output saved to" in stdout
