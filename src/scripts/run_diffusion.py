#!/usr/bin/env python3
"""
Lattice Gas Diffusion Coefficient Runner

Usage:
    run_diffusion.py L rho num_sweeps num_measurements num_samples output.dat

Writes one row per checkpoint: sweep, <dr^2>, D(t), err <dr^2>, err D(t).
"""

import argparse
import sys
import time
from pathlib import Path

# Add package source to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from lattice_gas import ConfigurationError, DiffusionConfig, DiffusionSampler, OutputError, utils

POSITIONALS = ("side", "density", "num_sweeps", "num_measurements", "num_samples")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Estimate the diffusion coefficient of a 2D lattice gas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "L = lattice size\n"
            "rho = probability to have a particle in a site, must be in (0,1)\n"
            "num_sweeps = normalized clock: 1 sweep is 1 unit of time\n"
            "num_measurements = checkpoints per run, must divide num_sweeps\n"
            "num_samples = independent random placements averaged over"
        ),
    )
    parser.add_argument("side", metavar="L", type=int, nargs="?", help="lattice side length")
    parser.add_argument("density", metavar="rho", type=float, nargs="?", help="target density")
    parser.add_argument("num_sweeps", type=int, nargs="?", help="sweeps per sample")
    parser.add_argument("num_measurements", type=int, nargs="?", help="checkpoints per sample")
    parser.add_argument("num_samples", type=int, nargs="?", help="number of samples")
    parser.add_argument("out", nargs="?", help="output table (.dat)")
    parser.add_argument("-o", "--output", dest="output", default=None, help="output table, alternative to the positional")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON/TOML parameter file; positional values override it",
    )
    parser.add_argument("--seed-state", type=int, default=None, help="seed generator state (default: 12345)")
    parser.add_argument("--seed-seq", type=int, default=None, help="seed generator sequence (default: 67890)")
    parser.add_argument(
        "--independent-streams",
        action="store_true",
        help="give every sample its own random stream",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="parallel processes (requires --independent-streams)",
    )
    parser.add_argument(
        "--check-invariants",
        action="store_true",
        help="validate the lattice after every sweep (slow)",
    )
    parser.add_argument("--npz", type=str, default=None, help="also save the estimate as .npz")
    parser.add_argument("--quiet", action="store_true", help="suppress progress output")
    return parser


def config_from_args(args: argparse.Namespace) -> DiffusionConfig:
    params = utils.load_params(args.config) if args.config else {}
    given = {name: getattr(args, name) for name in POSITIONALS if getattr(args, name) is not None}
    if not args.config and len(given) != len(POSITIONALS):
        raise ConfigurationError(
            "Expected L rho num_sweeps num_measurements num_samples output "
            "(or --config FILE)"
        )
    params.update(given)
    if args.seed_state is not None:
        params["seed_state"] = args.seed_state
    if args.seed_seq is not None:
        params["seed_sequence"] = args.seed_seq
    if args.independent_streams:
        params["independent_streams"] = True
    if args.jobs is not None:
        params["jobs"] = args.jobs
    if args.check_invariants:
        params["check_invariants"] = True
    params["verbose"] = not args.quiet
    return DiffusionConfig.from_dict(params)


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        args.out = args.out or args.output
        if args.out is None:
            raise ConfigurationError("No output file given")
        config = config_from_args(args)
        sampler = DiffusionSampler(config)
    except ConfigurationError as exc:
        parser.print_usage(sys.stderr)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    start_time = time.time()
    estimate = sampler.run()
    elapsed_time = time.time() - start_time

    try:
        utils.write_table(args.out, estimate)
        if args.npz:
            utils.save_estimate(args.npz, estimate)
    except OutputError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if config.verbose:
        print(f"\nSimulation completed in {elapsed_time:.2f} seconds")
        print(f"   Mean particles: {estimate.meta['mean_particles']:.1f}")
        print(f"   Output saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
