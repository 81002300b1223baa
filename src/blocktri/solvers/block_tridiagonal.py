# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

"""Block-tridiagonal direct solver (block Thomas algorithm).

Band storage is a float64 array of shape (N, 3, b, b):

    data[j, 0]  Lower[j], couples row j to row j-1 (unused at j=0)
    data[j, 1]  Diag[j]
    data[j, 2]  Upper[j], couples row j to row j+1 (unused at j=N-1)

The right-hand side is an (N, b) array and is overwritten with the
solution. The band storage is consumed by the solve.
"""

import math
import operator

import numpy as np
from numba import njit

from blocktri.errors import InvalidDimensions, SingularBlock
from blocktri.solvers.block_algebra import (
    adjugate_inverse, axpy_matrix, axpy_vec, determinant, multiply,
    multiply_vec,
)

LOWER, DIAG, UPPER = 0, 1, 2


class BlockTridiagonalMatrix:
    """Block-tridiagonal coefficient matrix stored as (N, 3, b, b) bands.

    Attributes:
        data: band array, shape (N, 3, b, b).
    """

    def __init__(self, n_rows, block_size=3):
        if n_rows < 1:
            raise InvalidDimensions(f"n_rows must be >= 1, got {n_rows}")
        if block_size < 1:
            raise InvalidDimensions(f"block_size must be >= 1, got {block_size}")
        self.data = np.zeros((n_rows, 3, block_size, block_size))

    @classmethod
    def from_array(cls, data):
        """Wrap an existing (N, 3, b, b) float64 array without copying."""
        data = np.asarray(data)
        _check_band_shape(data)
        obj = cls.__new__(cls)
        obj.data = data
        return obj

    @classmethod
    def from_blocks(cls, lower, diag, upper):
        """Build from per-row blocks, each array-like of shape (N, b, b).

        Lower[0] and Upper[N-1] are zeroed.
        """
        diag = np.asarray(diag, dtype=float)
        lower = np.asarray(lower, dtype=float)
        upper = np.asarray(upper, dtype=float)
        if diag.ndim != 3 or lower.shape != diag.shape or upper.shape != diag.shape:
            raise InvalidDimensions(
                f"lower/diag/upper must share shape (N, b, b), got "
                f"{lower.shape}, {diag.shape}, {upper.shape}"
            )
        obj = cls(diag.shape[0], diag.shape[1])
        obj.data[:, LOWER] = lower
        obj.data[:, DIAG] = diag
        obj.data[:, UPPER] = upper
        obj.clear_boundaries()
        return obj

    @property
    def n_rows(self):
        return self.data.shape[0]

    @property
    def block_size(self):
        return self.data.shape[2]

    @property
    def lower(self):
        return self.data[:, LOWER]

    @property
    def diag(self):
        return self.data[:, DIAG]

    @property
    def upper(self):
        return self.data[:, UPPER]

    def clear_boundaries(self):
        """Zero the two blocks that fall outside the matrix."""
        self.data[0, LOWER] = 0.0
        self.data[-1, UPPER] = 0.0

    def copy(self):
        return BlockTridiagonalMatrix.from_array(self.data.copy())

    def to_dense(self):
        """Assemble the full (N*b, N*b) matrix."""
        N, b = self.n_rows, self.block_size
        A = np.zeros((N * b, N * b))
        for j in range(N):
            rows = slice(j * b, (j + 1) * b)
            A[rows, j * b:(j + 1) * b] = self.diag[j]
            if j > 0:
                A[rows, (j - 1) * b:j * b] = self.lower[j]
            if j < N - 1:
                A[rows, (j + 1) * b:(j + 2) * b] = self.upper[j]
        return A

    def matvec(self, x):
        """Block product A @ x for x of shape (N, b).

        Row j is Lower[j] x[j-1] + Diag[j] x[j] + Upper[j] x[j+1], with the
        out-of-range neighbour omitted on the boundary rows.
        """
        x = np.asarray(x, dtype=float)
        out = np.einsum("jrc,jc->jr", self.diag, x)
        out[1:] += np.einsum("jrc,jc->jr", self.lower[1:], x[:-1])
        out[:-1] += np.einsum("jrc,jc->jr", self.upper[:-1], x[1:])
        return out

    def solve(self, rhs, check_singular=True):
        """Solve A x = rhs without touching this matrix or rhs."""
        x = np.array(rhs, dtype=float)
        solve_block_tridiagonal(self.copy(), x, check_singular=check_singular)
        return x


def _check_band_shape(data):
    if data.ndim != 4 or data.shape[1] != 3 or data.shape[2] != data.shape[3]:
        raise InvalidDimensions(
            f"band storage must have shape (N, 3, b, b), got {data.shape}"
        )


@njit(cache=True, error_model="numpy")
def block_thomas_kernel(data, rhs, n_rows, check_singular):
    """Forward elimination and back substitution over the first n_rows rows.

    Returns -1 on success, or the row whose diagonal block was singular
    when check_singular is set (the buffers are then partially processed).
    """
    for j in range(n_rows - 1):
        det = determinant(data[j, DIAG])
        if check_singular and (det == 0.0 or not math.isfinite(det)):
            return j
        inv = adjugate_inverse(data[j, DIAG], det)

        # Normalise row j by its diagonal block before eliminating row j+1.
        data[j, UPPER] = multiply(inv, data[j, UPPER])
        rhs[j] = multiply_vec(inv, rhs[j])

        sub = data[j + 1, LOWER]
        data[j + 1, DIAG] = axpy_matrix(data[j + 1, DIAG], multiply(sub, data[j, UPPER]), -1.0)
        rhs[j + 1] = axpy_vec(rhs[j + 1], multiply_vec(sub, rhs[j]), -1.0)

    last = n_rows - 1
    det = determinant(data[last, DIAG])
    if check_singular and (det == 0.0 or not math.isfinite(det)):
        return last
    rhs[last] = multiply_vec(adjugate_inverse(data[last, DIAG], det), rhs[last])

    for j in range(n_rows - 2, -1, -1):
        rhs[j] = axpy_vec(rhs[j], multiply_vec(data[j, UPPER], rhs[j + 1]), -1.0)

    return -1


def solve_block_tridiagonal(band_matrix, rhs, n_rows=None, check_singular=True):
    """Solve a block-tridiagonal system in place.

    Args:
        band_matrix: BlockTridiagonalMatrix or (N, 3, b, b) float64 array.
            Its Diag/Upper blocks are overwritten during elimination.
        rhs: right-hand side, float64 array of shape (N, b). Overwritten
            with the solution.
        n_rows: number of block rows to solve. When omitted, the band
            matrix and rhs must hold the same number of rows.
        check_singular: raise SingularBlock on a zero or non-finite
            diagonal determinant. When False, such a block silently fills
            the solution with inf/nan.

    Raises:
        InvalidDimensions: inconsistent shapes, band/rhs row counts that
            differ with n_rows omitted, or a non-integer or < 1 n_rows.
        SingularBlock: a diagonal block could not be inverted.
        TypeError: buffers are not float64 numpy arrays.
    """
    if isinstance(band_matrix, BlockTridiagonalMatrix):
        data = band_matrix.data
    else:
        data = band_matrix
    if not isinstance(data, np.ndarray) or not isinstance(rhs, np.ndarray):
        raise TypeError("band matrix and rhs must be numpy arrays")
    if data.dtype != np.float64 or rhs.dtype != np.float64:
        raise TypeError(
            f"in-place solve needs float64 buffers, got {data.dtype} and {rhs.dtype}"
        )

    _check_band_shape(data)
    b = data.shape[2]
    if rhs.ndim != 2 or rhs.shape[1] != b:
        raise InvalidDimensions(f"rhs must have shape (N, {b}), got {rhs.shape}")
    if n_rows is None:
        if data.shape[0] != rhs.shape[0]:
            raise InvalidDimensions(
                f"band matrix has {data.shape[0]} rows but rhs has {rhs.shape[0]}; "
                "pass n_rows to solve a leading sub-system"
            )
        n_rows = rhs.shape[0]
    try:
        n_rows = operator.index(n_rows)
    except TypeError:
        raise InvalidDimensions(f"n_rows must be an integer, got {n_rows!r}") from None
    if n_rows < 1:
        raise InvalidDimensions(f"n_rows must be >= 1, got {n_rows}")
    if n_rows > data.shape[0] or n_rows > rhs.shape[0]:
        raise InvalidDimensions(
            f"n_rows={n_rows} exceeds storage (band rows={data.shape[0]}, "
            f"rhs rows={rhs.shape[0]})"
        )

    bad_row = block_thomas_kernel(data, rhs, n_rows, check_singular)
    if bad_row >= 0:
        raise SingularBlock(bad_row, float(determinant(data[bad_row, DIAG])))
