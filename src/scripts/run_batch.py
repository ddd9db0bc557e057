#!/usr/bin/env python3
"""
Batch Lattice Gas Runner

Runs the diffusion measurement over a grid of densities and lattice sizes in
parallel, one output table per configuration, plus a JSON manifest.
Defaults reproduce the standard data set: L=80 with rho=0.1..0.9, and
rho=0.6 with L=20, 40, 80 (2000 sweeps, 100 measurements, 50 samples).
"""

import argparse
import json
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List

# Add package source to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from lattice_gas import DiffusionConfig, DiffusionSampler, fit_diffusion_coefficient, utils

DEFAULT_DENSITIES = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)
DEFAULT_SIZE_SCAN_DENSITY = 0.6
DEFAULT_SIZES = (20, 40, 80)


def run_single_configuration(
    side: int,
    density: float,
    num_sweeps: int,
    num_measurements: int,
    num_samples: int,
    output_path: str,
) -> Dict[str, Any]:
    """
    Run one configuration and save its table.

    Module level so ProcessPoolExecutor can pickle it.
    """
    config = DiffusionConfig(
        side=side,
        density=density,
        num_sweeps=num_sweeps,
        num_measurements=num_measurements,
        num_samples=num_samples,
        verbose=False,
    )
    estimate = DiffusionSampler(config).run()
    utils.write_table(output_path, estimate)
    fit = fit_diffusion_coefficient(estimate)

    return {
        "output_path": output_path,
        "side": side,
        "density": density,
        "mean_particles": estimate.meta["mean_particles"],
        "acceptance_ratio": estimate.meta["acceptance_ratio"],
        "diffusion_final": float(estimate.diffusion[-1]),
        "diffusion_fit": fit.diffusion,
        "success": True,
    }


def build_tasks(args: argparse.Namespace, batch_dir: Path) -> List[tuple]:
    configurations = [(args.side, rho) for rho in args.densities]
    configurations += [(side, args.size_scan_density) for side in args.sizes]

    tasks = []
    seen = set()
    for side, rho in configurations:
        if (side, rho) in seen:
            continue
        seen.add((side, rho))
        output_path = str(batch_dir / f"out_rho{rho}_L{side}.dat")
        tasks.append(
            (side, rho, args.sweeps, args.measurements, args.samples, output_path)
        )
    return tasks


def main():
    parser = argparse.ArgumentParser(
        description="Run the lattice gas diffusion measurement over densities and sizes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--side", type=int, default=80, help="Lattice side for the density scan (default: 80)")
    parser.add_argument(
        "--densities",
        type=float,
        nargs="*",
        default=list(DEFAULT_DENSITIES),
        help="Densities of the density scan (default: 0.1 .. 0.9)",
    )
    parser.add_argument(
        "--sizes",
        type=int,
        nargs="*",
        default=list(DEFAULT_SIZES),
        help="Lattice sides of the size scan (default: 20 40 80)",
    )
    parser.add_argument(
        "--size-scan-density",
        type=float,
        default=DEFAULT_SIZE_SCAN_DENSITY,
        help="Density of the size scan (default: 0.6)",
    )
    parser.add_argument("--sweeps", type=int, default=2000, help="Sweeps per sample (default: 2000)")
    parser.add_argument("--measurements", type=int, default=100, help="Checkpoints per sample (default: 100)")
    parser.add_argument("--samples", type=int, default=50, help="Samples per configuration (default: 50)")
    parser.add_argument("--jobs", type=int, default=1, help="Number of parallel processes (default: 1)")
    parser.add_argument("--out-dir", type=str, default="results", help="Base output directory (default: results)")

    args = parser.parse_args()

    timestamp = utils.now_str()
    batch_dir = Path(args.out_dir) / "batches" / f"diffusion_S{args.samples}_T{args.sweeps}_{timestamp}"
    batch_dir.mkdir(parents=True, exist_ok=True)

    tasks = build_tasks(args, batch_dir)
    manifest = {
        "side": args.side,
        "densities": args.densities,
        "sizes": args.sizes,
        "size_scan_density": args.size_scan_density,
        "num_sweeps": args.sweeps,
        "num_measurements": args.measurements,
        "num_samples": args.samples,
        "jobs": args.jobs,
        "timestamp": timestamp,
    }
    manifest_path = batch_dir / "manifest.json"
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    print(f"Batch started:")
    print(f"  Configurations: {len(tasks)}")
    print(f"  Sweeps x samples: {args.sweeps} x {args.samples}")
    print(f"  Parallel jobs: {args.jobs}")
    print(f"  Output directory: {batch_dir}")
    print()

    start_time = time.time()
    results = []
    failed = []

    with ProcessPoolExecutor(max_workers=args.jobs) as executor:
        future_to_task = {
            executor.submit(run_single_configuration, *task): task
            for task in tasks
        }

        completed = 0
        for future in as_completed(future_to_task):
            completed += 1
            task = future_to_task[future]
            try:
                result = future.result()
                results.append(result)
                print(
                    f"  [{completed}/{len(tasks)}] L={result['side']} rho={result['density']}: "
                    f"D_fit={result['diffusion_fit']:.5f}"
                )
            except Exception as e:
                failed.append({"task": list(task), "error": str(e)})
                print(f"  [{completed}/{len(tasks)}] FAILED: L={task[0]} rho={task[1]} - {e}")

    elapsed_time = time.time() - start_time

    manifest["results"] = {
        "total": len(tasks),
        "successful": len(results),
        "failed": len(failed),
        "elapsed_seconds": elapsed_time,
    }
    manifest["runs"] = sorted(results, key=lambda r: (r["side"], r["density"]))
    if failed:
        manifest["failures"] = failed

    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    print()
    print("=" * 60)
    print("Batch completed!")
    print(f"  Successful: {len(results)}/{len(tasks)}")
    print(f"  Failed: {len(failed)}/{len(tasks)}")
    print(f"  Total time: {elapsed_time:.2f} seconds")
    print(f"  Manifest: {manifest_path}")
    print("=" * 60)

    return 0 if len(failed) == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
