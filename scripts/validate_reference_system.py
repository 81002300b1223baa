#!/usr/bin/env python
"""Solve the fixed 3x3-block reference system and report the residual A x - b.

Every row carries the same blocks:

    Diag  = [[1, 2, 3], [4, 5, 6], [7, 8, 0]]
    Lower = Diag - 2*I
    Upper = Diag - 3*I

with Lower[0] = Upper[N-1] = 0 and rhs[i] = (2i+1, 2i+2, 2i+3). The
residual is evaluated against a copy of the matrix taken before the solve,
since the solve consumes the band storage.
"""

import argparse
import os
import sys

import numpy as np

# Allow running without pip install -e .
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from blocktri.solvers.block_tridiagonal import (
    BlockTridiagonalMatrix, solve_block_tridiagonal,
)

BASE = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 0.0]])


def reference_system(n_rows):
    diag = np.repeat(BASE[None], n_rows, axis=0)
    lower = diag - 2.0 * np.eye(3)
    upper = diag - 3.0 * np.eye(3)
    rhs = np.array([[2 * i + 1, 2 * i + 2, 2 * i + 3] for i in range(n_rows)], dtype=float)
    return BlockTridiagonalMatrix.from_blocks(lower, diag, upper), rhs


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("-N", type=int, default=20, help="Block rows (default: 20)")
    parser.add_argument("--tol", type=float, default=1e-8,
                        help="Max relative residual to pass (default: 1e-8)")
    args = parser.parse_args(argv)

    matrix, rhs = reference_system(args.N)
    snapshot = matrix.copy()
    x = rhs.copy()
    solve_block_tridiagonal(matrix, x)

    print("Solution")
    print("=" * 60)
    for i, row in enumerate(x):
        print(f"{i:3d} {row[0]:15.10f} {row[1]:15.10f} {row[2]:15.10f}")

    residual = snapshot.matvec(x) - rhs
    print("\nResidual A x - b")
    print("=" * 60)
    for i, row in enumerate(residual):
        print(f"{i:3d} {row[0]:15.6g} {row[1]:15.6g} {row[2]:15.6g}")

    rel = np.abs(residual).max() / np.abs(rhs).max()
    status = "PASS" if rel < args.tol else "FAIL"
    print(f"\n{status}: max relative residual {rel:.3e} (tol {args.tol:g})")
    sys.exit(0 if rel < args.tol else 1)


if __name__ == "__main__":
    main()
