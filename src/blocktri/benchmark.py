# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

"""Benchmarking utilities for the tridiagonal solvers.

Times the scalar and block Thomas solves against a dense LAPACK solve of
the same system, plus one model step.
"""

import time
import numpy as np


def _make_block_system(N=128, b=3, seed=0):
    """Random diagonally dominant block system and rhs."""
    from blocktri.solvers.block_tridiagonal import BlockTridiagonalMatrix
    rng = np.random.default_rng(seed)
    lower = rng.uniform(-1, 1, (N, b, b))
    upper = rng.uniform(-1, 1, (N, b, b))
    diag = rng.uniform(-1, 1, (N, b, b)) + 4.0 * b * np.eye(b)
    rhs = rng.uniform(-1, 1, (N, b))
    return BlockTridiagonalMatrix.from_blocks(lower, diag, upper), rhs


def _time_fn(fn, args=(), kwargs=None, n_warmup=3, n_iter=100, setup=None):
    """Time a function over n_iter calls, returning median and stats.

    ``setup`` (if given) is called before every call, outside the timed
    region, and its return value is used as the positional args.
    """
    kwargs = kwargs or {}
    for _ in range(n_warmup):
        fn(*(setup() if setup else args), **kwargs)
    times = []
    for _ in range(n_iter):
        call_args = setup() if setup else args
        t0 = time.perf_counter_ns()
        fn(*call_args, **kwargs)
        t1 = time.perf_counter_ns()
        times.append((t1 - t0) * 1e-6)  # ms
    times = np.array(times)
    return {
        "median_ms": float(np.median(times)),
        "mean_ms": float(np.mean(times)),
        "std_ms": float(np.std(times)),
        "min_ms": float(np.min(times)),
        "max_ms": float(np.max(times)),
        "n_iter": n_iter,
    }


def bench_thomas_solve(N=128, n_iter=500):
    """Benchmark thomas_solve."""
    from blocktri.solvers.tridiagonal import thomas_solve
    a = np.random.randn(N)
    b = np.random.randn(N) + 5.0  # diag dominant
    c = np.random.randn(N)
    d = np.random.randn(N)
    return _time_fn(thomas_solve, args=(a, b, c, d), n_iter=n_iter)


def bench_block_solve(N=128, n_iter=500):
    """Benchmark solve_block_tridiagonal with 3x3 blocks."""
    from blocktri.solvers.block_tridiagonal import solve_block_tridiagonal
    matrix, rhs = _make_block_system(N)
    return _time_fn(
        solve_block_tridiagonal,
        setup=lambda: (matrix.data.copy(), rhs.copy()),
        n_iter=n_iter,
    )


def bench_dense_solve(N=128, n_iter=100):
    """Benchmark np.linalg.solve on the dense form of the same block system."""
    matrix, rhs = _make_block_system(N)
    A = matrix.to_dense()
    return _time_fn(np.linalg.solve, args=(A, rhs.reshape(-1)), n_iter=n_iter)


def bench_model_step(N=128, n_iter=200):
    """Benchmark one CoupledReactionDiffusion.step() call."""
    from blocktri.models.reaction_diffusion import CoupledReactionDiffusion
    params = dict(N=N, coupling=[[-1.0, 0.5, 0.0], [0.5, -1.0, 0.5], [0.0, 0.5, -1.0]],
                  bc_bottom=[1.0, 0.0, 0.0])
    model = CoupledReactionDiffusion(params)
    u = model.get_initial_condition()

    def one_step():
        model.step(u, 0.0)

    return _time_fn(one_step, n_iter=n_iter)


def run_all_benchmarks(N=128, verbose=True):
    """Run all micro benchmarks. Returns dict of results."""
    results = {}

    benches = [
        ("thomas_solve", bench_thomas_solve),
        ("block_solve", bench_block_solve),
        ("dense_solve", bench_dense_solve),
        ("model_step", bench_model_step),
    ]

    for name, fn in benches:
        if verbose:
            print(f"  {name}...", end="", flush=True)
        r = fn(N=N)
        results[name] = r
        if verbose:
            print(f" {r['median_ms']:.3f} ms (median, n={r['n_iter']})")

    return results


def compare_results(before, after):
    """Print a comparison table of two benchmark result sets."""
    print(f"\n{'Benchmark':<22} {'Before':>10} {'After':>10} {'Speedup':>10}")
    print("-" * 55)
    for key in before:
        b = before[key]["median_ms"]
        a = after[key]["median_ms"]
        speedup = b / a if a > 0 else float("inf")
        print(f"{key:<22} {b:>8.3f}ms {a:>8.3f}ms {speedup:>9.1f}x")


if __name__ == "__main__":
    print("=" * 55)
    print("blocktri Benchmarks")
    print("=" * 55)
    print()

    print("Micro-benchmarks (N=128):")
    run_all_benchmarks(N=128)
