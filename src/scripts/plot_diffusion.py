"""
Diffusion Coefficient Plotter.

Plots D(t) with error bars and <dr^2>(t) for one or more output tables and
prints the long-time diffusion coefficient from a linear fit of <dr^2>(t).
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import matplotlib.pyplot as plt

SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from lattice_gas import fit_diffusion_coefficient, utils  # type: ignore[import]


def label_for(estimate, path: Path) -> str:
    meta = estimate.meta
    if "side" in meta and "density" in meta:
        return f"L={meta['side']}, $\\rho$={meta['density']:.1f}"
    return path.stem


def render(paths: list[Path], output_path: Path | None, start_fraction: float) -> None:
    fig, (ax_d, ax_msd) = plt.subplots(1, 2, figsize=(13, 5))

    for path in paths:
        estimate = utils.read_table(path)
        label = label_for(estimate, path)
        fit = fit_diffusion_coefficient(estimate, start_fraction=start_fraction)
        print(
            f"{path.name}: D_fit = {fit.diffusion:.6f} +/- {fit.diffusion_error:.6f} "
            f"(R^2 = {fit.r_squared:.4f}), D(t_max) = {estimate.diffusion[-1]:.6f}"
        )

        ax_d.errorbar(
            estimate.sweeps,
            estimate.diffusion,
            yerr=estimate.diffusion_error,
            fmt="o",
            markersize=2,
            capsize=1.5,
            label=label,
        )
        line = ax_msd.plot(estimate.sweeps, estimate.msd_mean, "o", markersize=2, label=label)[0]
        t_fit = estimate.sweeps[int(estimate.num_checkpoints * start_fraction):]
        ax_msd.plot(
            t_fit,
            fit.slope * t_fit + fit.intercept,
            "-",
            color=line.get_color(),
            alpha=0.7,
        )

    ax_d.set_xlabel("t (sweeps)")
    ax_d.set_ylabel("D(t)")
    ax_d.set_title("Diffusion coefficient $D(t) = \\langle \\Delta r^2 \\rangle / 4t$")
    ax_d.legend(fontsize=8)

    ax_msd.set_xlabel("t (sweeps)")
    ax_msd.set_ylabel("$\\langle \\Delta r^2 \\rangle$")
    ax_msd.set_title("Mean squared displacement")
    ax_msd.legend(fontsize=8)

    fig.tight_layout()
    if output_path:
        plt.savefig(output_path, dpi=200, bbox_inches="tight")
        print(f"Saved to {output_path}")
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(description="Plot D(t) and <dr^2>(t) from output tables")
    parser.add_argument("files", nargs="+", help="Input .dat tables")
    parser.add_argument("--out", default=None, help="Output image (default: next to the first table)")
    parser.add_argument(
        "--fit-start",
        type=float,
        default=0.5,
        help="Fraction of the run skipped before the linear fit (default: 0.5)",
    )
    args = parser.parse_args()

    paths = [Path(f) for f in args.files]
    if args.out is None:
        out_path = paths[0].parent / (paths[0].stem + "_diffusion.png")
    else:
        out_path = Path(args.out)

    render(paths, out_path, args.fit_start)


if __name__ == "__main__":
    main()
