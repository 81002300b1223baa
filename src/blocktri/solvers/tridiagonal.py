# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

import math
import operator

import numpy as np
from numba import njit

from blocktri.errors import InvalidDimensions, SingularBlock


@njit(cache=True, error_model="numpy")
def thomas_kernel(lower, diag, upper, rhs, n, check_singular):
    """In-place scalar Thomas algorithm over the first n rows.

    Returns -1 on success or the index of a zero/non-finite pivot.
    """
    for i in range(n - 1):
        if check_singular and (diag[i] == 0.0 or not math.isfinite(diag[i])):
            return i
        upper[i] /= diag[i]
        rhs[i] /= diag[i]
        diag[i + 1] -= upper[i] * lower[i + 1]
        rhs[i + 1] -= lower[i + 1] * rhs[i]
    if check_singular and (diag[n - 1] == 0.0 or not math.isfinite(diag[n - 1])):
        return n - 1
    rhs[n - 1] /= diag[n - 1]

    for i in range(n - 2, -1, -1):
        rhs[i] -= rhs[i + 1] * upper[i]
    return -1


def solve_scalar_tridiagonal(lower, diag, upper, rhs, n=None, check_singular=True):
    """Solve a scalar tridiagonal system in place.

    Args:
        lower: sub-diagonal, lower[0] is never read.
        diag: main diagonal, overwritten.
        upper: super-diagonal, upper[n-1] is never read. Overwritten.
        rhs: right-hand side, overwritten with the solution.
        n: number of equations. When omitted, all four arrays must have
            the same length.
        check_singular: raise SingularBlock on a zero pivot instead of
            propagating inf/nan.
    """
    arrays = (lower, diag, upper, rhs)
    if not all(isinstance(a, np.ndarray) and a.dtype == np.float64 for a in arrays):
        raise TypeError("lower, diag, upper and rhs must be float64 numpy arrays")
    if any(a.ndim != 1 for a in arrays):
        raise InvalidDimensions("tridiagonal bands must be one-dimensional")
    if n is None:
        if len({a.shape[0] for a in arrays}) != 1:
            raise InvalidDimensions(
                f"band lengths {[a.shape[0] for a in arrays]} differ; "
                "pass n to solve a leading sub-system"
            )
        n = rhs.shape[0]
    try:
        n = operator.index(n)
    except TypeError:
        raise InvalidDimensions(f"n must be an integer, got {n!r}") from None
    if n < 1:
        raise InvalidDimensions(f"n must be >= 1, got {n}")
    if min(a.shape[0] for a in arrays) < n:
        raise InvalidDimensions(
            f"n={n} exceeds band lengths {[a.shape[0] for a in arrays]}"
        )

    bad = thomas_kernel(lower, diag, upper, rhs, n, check_singular)
    if bad >= 0:
        raise SingularBlock(bad, float(diag[bad]))


def thomas_solve(a, b, c, d):
    """Solve tridiagonal system Ax = d using the Thomas algorithm.

    Args:
        a: lower diagonal, length N. a[0] is unused.
        b: main diagonal, length N.
        c: upper diagonal, length N. c[-1] is unused.
        d: right-hand side, length N.

    Returns:
        x: solution, length N. The inputs are left untouched.
    """
    lower = np.array(a, dtype=np.float64)
    diag = np.array(b, dtype=np.float64)
    upper = np.array(c, dtype=np.float64)
    x = np.array(d, dtype=np.float64)
    solve_scalar_tridiagonal(lower, diag, upper, x)
    return x
