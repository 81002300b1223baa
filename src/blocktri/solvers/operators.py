# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT


import numpy as np
from numba import njit

from blocktri.solvers.block_tridiagonal import (
    BlockTridiagonalMatrix, DIAG, LOWER, UPPER,
)


@njit(cache=True)
def diffusion_operator_bands(nu, z, N):
    """Build tridiagonal bands for L such that L @ f = d/dz[nu(z) d/dz f].

    Returns (lower, diag, upper) arrays of length N, with boundary rows = 0.
    Conservative finite-volume form on the non-uniform grid:
        (L f)_i = (1/dz_c_i) * [nu_{i+1/2}/h_p * (f_{i+1}-f_i)
                                - nu_{i-1/2}/h_m * (f_i-f_{i-1})]
    with dz_c the control volume width (h_m + h_p)/2.
    """
    lower = np.zeros(N)
    diag = np.zeros(N)
    upper = np.zeros(N)

    for i in range(1, N - 1):
        h_m = z[i] - z[i - 1]
        h_p = z[i + 1] - z[i]
        dz_c = 0.5 * (h_m + h_p)

        nu_half_m = 0.5 * (nu[i] + nu[i - 1])
        nu_half_p = 0.5 * (nu[i] + nu[i + 1])

        lower[i] = nu_half_m / (h_m * dz_c)
        diag[i] = -(nu_half_m / h_m + nu_half_p / h_p) / dz_c
        upper[i] = nu_half_p / (h_p * dz_c)

    return lower, diag, upper


def block_diffusion_operator(diffusivity, grid, coupling=None):
    """Block operator A with (A u)_k = d/dz[D_k(z) du_k/dz] + (K u)_k.

    Args:
        diffusivity: shape (b,) constant per field, or (N, b) per node.
        grid: ControlVolumeGrid.
        coupling: optional (b, b) matrix K, added to every interior
            diagonal block.

    Returns:
        BlockTridiagonalMatrix with zero boundary rows (caller sets BCs).
    """
    N = grid.N
    D = np.asarray(diffusivity, dtype=float)
    if D.ndim == 1:
        D = np.broadcast_to(D, (N, D.shape[0]))
    if D.ndim != 2 or D.shape[0] != N:
        raise ValueError(f"diffusivity must have shape (b,) or ({N}, b), got {D.shape}")
    b = D.shape[1]

    op = BlockTridiagonalMatrix(N, b)
    for k in range(b):
        lo, di, up = diffusion_operator_bands(np.ascontiguousarray(D[:, k]), grid.z, N)
        op.data[:, LOWER, k, k] = lo
        op.data[:, DIAG, k, k] = di
        op.data[:, UPPER, k, k] = up

    if coupling is not None:
        K = np.asarray(coupling, dtype=float)
        if K.shape != (b, b):
            raise ValueError(f"coupling must have shape ({b}, {b}), got {K.shape}")
        op.data[1:-1, DIAG] += K

    return op
