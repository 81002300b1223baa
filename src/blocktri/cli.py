# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

"""Command-line interface for steady-state runs of the coupled model."""

import argparse
import logging
import os

from blocktri.driver import run_to_steady_state
from blocktri.io import save_run


def configure_logging(outdir, run_name, level=logging.INFO):
    """Set up file + console logging on the 'blocktri' logger.

    A file handler left by an earlier call is closed and replaced, so
    repeated runs in one process each log to their own file exactly once.

    Args:
        outdir: directory for the log file.
        run_name: used in the log filename.
        level: logging level for both handlers.

    Returns:
        the configured logger.
    """
    os.makedirs(outdir, exist_ok=True)
    logger = logging.getLogger("blocktri")
    logger.setLevel(level)

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    # One log file per logger: drop the handler from any previous run
    for h in logger.handlers[:]:
        if isinstance(h, logging.FileHandler):
            logger.removeHandler(h)
            h.close()

    log_path = os.path.join(outdir, f"{run_name}.log")
    fh = logging.FileHandler(log_path)
    fh.setLevel(level)
    fh.setFormatter(fmt)
    logger.addHandler(fh)

    # Console handler (only if none already exists)
    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in logger.handlers):
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(fmt)
        logger.addHandler(ch)

    return logger


def build_params(args):
    return dict(
        N=args.N,
        length=args.length,
        gamma=args.gamma,
        diffusivity=args.diffusivity,
        coupling=args.coupling,
        source=args.source,
        bc_type=args.bc,
        bc_bottom=args.bc_bottom,
        bc_top=args.bc_top,
        dt=args.dt,
        tol=args.tol,
        max_steps=args.max_steps,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="blocktri-run",
        description="March three coupled reaction-diffusion fields to steady state.",
    )
    parser.add_argument(
        "-N", type=int, default=64,
        help="Number of control volumes (default: 64)",
    )
    parser.add_argument(
        "--length", type=float, default=1.0,
        help="Domain length (default: 1.0)",
    )
    parser.add_argument(
        "--gamma", type=float, default=0.0,
        help="Grid stretching parameter, 0 for uniform (default: 0.0)",
    )
    parser.add_argument(
        "--diffusivity", nargs=3, type=float, default=[1.0, 1.0, 1.0],
        help="Diffusivity of each field (default: 1 1 1)",
    )
    parser.add_argument(
        "--coupling", nargs=9, type=float, default=[0.0] * 9,
        help="Row-major 3x3 reaction matrix K (default: zeros)",
    )
    parser.add_argument(
        "--source", nargs=3, type=float, default=[0.0, 0.0, 0.0],
        help="Constant source per field (default: 0 0 0)",
    )
    parser.add_argument(
        "--bc", type=str, default="dirichlet",
        choices=["dirichlet", "neumann_top"],
        help="Boundary condition type (default: dirichlet)",
    )
    parser.add_argument(
        "--bc-bottom", nargs=3, type=float, default=[1.0, 0.0, 0.0],
        help="Field values at z=0 (default: 1 0 0)",
    )
    parser.add_argument(
        "--bc-top", nargs=3, type=float, default=[0.0, 0.0, 0.0],
        help="Field values at z=length, dirichlet only (default: 0 0 0)",
    )
    parser.add_argument(
        "--dt", type=float, default=1e-2,
        help="Time step (default: 0.01)",
    )
    parser.add_argument(
        "--tol", type=float, default=1e-8,
        help="Stop when the max absolute change per step drops below this (default: 1e-8)",
    )
    parser.add_argument(
        "--max-steps", type=int, default=10000,
        help="Step limit (default: 10000)",
    )
    parser.add_argument(
        "--name", type=str, default="run",
        help="Run name for the output files (default: run)",
    )
    parser.add_argument(
        "--outdir", type=str, default="results",
        help="Output directory (default: results/)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log every progress message",
    )

    args = parser.parse_args(argv)

    configure_logging(args.outdir, args.name,
                      level=logging.DEBUG if args.verbose else logging.INFO)
    params = build_params(args)

    print(f"Grid: N={args.N}, length={args.length}, gamma={args.gamma}")
    print(f"dt={args.dt}, tol={args.tol}, max steps={args.max_steps}, bc={args.bc}")
    print()

    result = run_to_steady_state(params)

    out_path = os.path.join(args.outdir, f"{args.name}.json")
    save_run(result, out_path)

    print(f"{'converged':>10} {'steps':>8} {'max_change':>12} {'resid_L2':>12} {'resid_Linf':>12}")
    print(
        f"{str(result['converged']):>10} {result['n_steps']:>8d} "
        f"{result['max_change']:>12.3e} {result['residual_l2']:>12.3e} "
        f"{result['residual_linf']:>12.3e}"
    )
    print(f"\nResult saved to {out_path}")
    return 0 if result["converged"] else 1
