# src/lattice_gas/utils.py
from __future__ import annotations

import json
import os
import re
import time
import tomllib
from pathlib import Path
from typing import Any, Dict

import numpy as np

from .errors import OutputError
from .estimator import DiffusionEstimate

ROW_FORMAT = "%d %.12f %.12f %.12f %.12f"
COLUMNS_HEADER = "# sweep   deltaR2_mean      D_t_mean        err_deltaR2     err_D_t"
_HEADER_RE = re.compile(
    r"#\s*L\s*=\s*(?P<side>\d+)\s+rho_input\s*=\s*(?P<density>[-+0-9.eE]+)"
    r"\s+num_sweeps\s*=\s*(?P<num_sweeps>\d+)\s+num_samples\s*=\s*(?P<num_samples>\d+)"
)
_ARRAY_KEYS = ("sweeps", "msd_mean", "diffusion", "msd_error", "diffusion_error")


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def format_table(estimate: DiffusionEstimate) -> str:
    """Render the checkpoint table: a two line header, then one row per checkpoint."""
    meta = estimate.meta
    lines = [
        "# L = %d  rho_input = %.3f  num_sweeps = %d    num_samples = %d"
        % (meta["side"], meta["density"], meta["num_sweeps"], meta["num_samples"]),
        COLUMNS_HEADER,
    ]
    lines.extend(ROW_FORMAT % row for row in estimate.rows())
    return "\n".join(lines) + "\n"


def write_table(path: str | os.PathLike[str], estimate: DiffusionEstimate) -> Path:
    """Write the checkpoint table, creating parent directories as needed."""
    path = Path(path)
    text = format_table(estimate)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as fh:
            fh.write(text)
    except OSError as exc:
        raise OutputError(f"Cannot write output table to {path}: {exc}") from exc
    return path


def read_table(path: str | os.PathLike[str]) -> DiffusionEstimate:
    """Load a table written by ``write_table``."""
    meta: Dict[str, Any] = {}
    with open(path) as fh:
        for line in fh:
            if not line.startswith("#"):
                break
            match = _HEADER_RE.match(line)
            if match:
                meta = {
                    "side": int(match["side"]),
                    "density": float(match["density"]),
                    "num_sweeps": int(match["num_sweeps"]),
                    "num_samples": int(match["num_samples"]),
                }

    data = np.loadtxt(path, comments="#", ndmin=2)
    if data.shape[1] != 5:
        raise ValueError(f"Expected 5 columns in {path}, got {data.shape[1]}")
    return DiffusionEstimate(
        sweeps=data[:, 0].astype(np.int64),
        msd_mean=data[:, 1],
        diffusion=data[:, 2],
        msd_error=data[:, 3],
        diffusion_error=data[:, 4],
        meta=meta,
    )


def save_estimate(
    path: str | os.PathLike[str], estimate: DiffusionEstimate, *, overwrite: bool = True
) -> None:
    """Serialize a DiffusionEstimate to a compressed .npz archive."""
    path = Path(path)
    if not overwrite and path.exists():
        raise FileExistsError(f"{path} already exists")
    out: Dict[str, Any] = {key: np.asarray(getattr(estimate, key)) for key in _ARRAY_KEYS}
    out["meta"] = dict(estimate.meta)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(path, **out)
    except OSError as exc:
        raise OutputError(f"Cannot write {path}: {exc}") from exc


def load_estimate(path: str | os.PathLike[str]) -> DiffusionEstimate:
    data = np.load(path, allow_pickle=True)
    meta: Dict[str, Any] = {}
    if "meta" in data:
        meta_raw = data["meta"]
        meta = meta_raw.item() if hasattr(meta_raw, "item") else dict(meta_raw)
    arrays = {key: data[key] for key in _ARRAY_KEYS}
    return DiffusionEstimate(meta=meta, **arrays)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
