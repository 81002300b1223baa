# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

"""Small dense block operations used by the block Thomas solver.

Blocks are (b, b) float64 arrays and block vectors are (b,) arrays. Every
operation writes into a freshly allocated result, so a caller may safely
store the result back over one of the inputs.

Sums are accumulated left to right over the inner index, which keeps the
rounding identical to the hand-unrolled 3x3 formulas.
"""

import numpy as np
from numba import njit


@njit(cache=True)
def multiply(A, B):
    """Matrix product C = A @ B."""
    n = A.shape[0]
    m = B.shape[1]
    C = np.empty((n, m))
    for r in range(n):
        for c in range(m):
            s = 0.0
            for k in range(A.shape[1]):
                s += A[r, k] * B[k, c]
            C[r, c] = s
    return C


@njit(cache=True)
def multiply_vec(A, v):
    """Matrix-vector product r = A @ v."""
    n = A.shape[0]
    out = np.empty(n)
    for r in range(n):
        s = 0.0
        for k in range(A.shape[1]):
            s += A[r, k] * v[k]
        out[r] = s
    return out


@njit(cache=True)
def axpy_matrix(A, B, factor):
    """C = A + factor * B, elementwise."""
    C = np.empty(A.shape)
    for r in range(A.shape[0]):
        for c in range(A.shape[1]):
            C[r, c] = A[r, c] + factor * B[r, c]
    return C


@njit(cache=True)
def axpy_vec(a, b, factor):
    """c = a + factor * b."""
    c = np.empty(a.shape[0])
    for i in range(a.shape[0]):
        c[i] = a[i] + factor * b[i]
    return c


@njit(cache=True)
def copy_block(source):
    """Deep copy of a block or block vector."""
    return source.copy()


@njit(cache=True)
def _minor(M, row, col):
    n = M.shape[0]
    out = np.empty((n - 1, n - 1))
    ri = 0
    for r in range(n):
        if r == row:
            continue
        ci = 0
        for c in range(n):
            if c == col:
                continue
            out[ri, ci] = M[r, c]
            ci += 1
        ri += 1
    return out


@njit(cache=True)
def _leibniz_determinant(M):
    # Sum over permutations in Heap's order; every step is one swap, so the
    # sign alternates.
    n = M.shape[0]
    perm = np.arange(n)
    count = np.zeros(n, dtype=np.int64)
    sign = 1.0
    term = 1.0
    for r in range(n):
        term *= M[r, perm[r]]
    det = term
    i = 1
    while i < n:
        if count[i] < i:
            k = 0 if i % 2 == 0 else count[i]
            tmp = perm[k]
            perm[k] = perm[i]
            perm[i] = tmp
            sign = -sign
            term = 1.0
            for r in range(n):
                term *= M[r, perm[r]]
            det += sign * term
            count[i] += 1
            i = 1
        else:
            count[i] = 0
            i += 1
    return det


@njit(cache=True)
def determinant(M):
    """Determinant by cofactor expansion.

    Closed forms for b <= 3 (rule of Sarrus for 3x3); larger blocks use the
    fully expanded sum over permutations.
    """
    n = M.shape[0]
    if n == 1:
        return M[0, 0]
    if n == 2:
        return M[0, 0] * M[1, 1] - M[0, 1] * M[1, 0]
    if n == 3:
        return (M[0, 0] * M[1, 1] * M[2, 2]
                + M[0, 1] * M[1, 2] * M[2, 0]
                + M[0, 2] * M[1, 0] * M[2, 1]
                - M[0, 2] * M[1, 1] * M[2, 0]
                - M[0, 1] * M[1, 0] * M[2, 2]
                - M[0, 0] * M[1, 2] * M[2, 1])
    return _leibniz_determinant(M)


@njit(cache=True, error_model="numpy")
def adjugate_inverse(M, det):
    """Inverse of M given its determinant: adj(M) / det.

    A zero determinant gives inf/nan entries rather than an exception.
    """
    n = M.shape[0]
    inv = np.empty((n, n))
    det_inv = 1.0 / det
    if n == 1:
        inv[0, 0] = det_inv
        return inv
    for r in range(n):
        for c in range(n):
            cof = determinant(_minor(M, r, c))
            # adjugate is the transposed cofactor matrix
            if (r + c) % 2 == 0:
                inv[c, r] = det_inv * cof
            else:
                inv[c, r] = -(det_inv * cof)
    return inv


@njit(cache=True, error_model="numpy")
def invert(M):
    """Closed-form inverse via the adjugate. No singularity check."""
    return adjugate_inverse(M, determinant(M))
