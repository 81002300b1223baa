# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

import numpy as np
import pytest
from blocktri.errors import InvalidDimensions, SingularBlock
from blocktri.solvers.block_algebra import invert
from blocktri.solvers.block_tridiagonal import (
    BlockTridiagonalMatrix, solve_block_tridiagonal,
)
from blocktri.solvers.tridiagonal import solve_scalar_tridiagonal


def _random_system(N, b=3, seed=42):
    """Diagonally dominant random blocks and rhs."""
    rng = np.random.default_rng(seed)
    lower = rng.uniform(-1, 1, (N, b, b))
    upper = rng.uniform(-1, 1, (N, b, b))
    diag = rng.uniform(-1, 1, (N, b, b)) + 4.0 * b * np.eye(b)
    rhs = rng.uniform(-10, 10, (N, b))
    return BlockTridiagonalMatrix.from_blocks(lower, diag, upper), rhs


@pytest.mark.parametrize("N,b", [(2, 3), (20, 3), (50, 3), (10, 1), (10, 2), (8, 4)])
def test_residual_against_snapshot(N, b):
    """A x reproduces rhs row by row, using a pre-solve copy of A."""
    A, rhs = _random_system(N, b)
    snapshot = A.copy()
    x = rhs.copy()
    solve_block_tridiagonal(A, x)

    recon = snapshot.matvec(x)
    assert np.allclose(recon, rhs, rtol=1e-9, atol=1e-9)


def test_matches_dense_solve():
    A, rhs = _random_system(30)
    x_ref = np.linalg.solve(A.to_dense(), rhs.reshape(-1)).reshape(rhs.shape)
    x = rhs.copy()
    solve_block_tridiagonal(A.copy(), x)
    assert np.allclose(x, x_ref, rtol=1e-10, atol=1e-12)


def test_identity_blocks_return_rhs():
    N = 10
    A = BlockTridiagonalMatrix(N, 3)
    A.diag[:] = np.eye(3)
    rhs = np.arange(N * 3, dtype=float).reshape(N, 3) - 7.0
    x = rhs.copy()
    solve_block_tridiagonal(A, x)
    assert np.array_equal(x, rhs)


def test_single_row():
    rng = np.random.default_rng(3)
    A = BlockTridiagonalMatrix(1, 3)
    A.diag[0] = rng.uniform(-1, 1, (3, 3)) + 3.0 * np.eye(3)
    r = rng.uniform(-1, 1, (1, 3))
    expected = invert(A.diag[0]) @ r[0]
    x = r.copy()
    solve_block_tridiagonal(A, x, n_rows=1)
    assert np.allclose(x[0], expected, rtol=1e-12, atol=1e-14)


def test_two_row_closed_form():
    """x1 = (I - L U)^-1 (r1 - L r0), x0 = r0 - U x1 for unit diagonal blocks."""
    rng = np.random.default_rng(4)
    U = rng.uniform(-0.5, 0.5, (3, 3))
    L = rng.uniform(-0.5, 0.5, (3, 3))
    r0 = rng.uniform(-1, 1, 3)
    r1 = rng.uniform(-1, 1, 3)

    A = BlockTridiagonalMatrix(2, 3)
    A.diag[:] = np.eye(3)
    A.upper[0] = U
    A.lower[1] = L
    x = np.array([r0, r1])
    solve_block_tridiagonal(A, x)

    x1 = np.linalg.solve(np.eye(3) - L @ U, r1 - L @ r0)
    x0 = r0 - U @ x1
    assert np.allclose(x[1], x1, rtol=1e-10, atol=1e-12)
    assert np.allclose(x[0], x0, rtol=1e-10, atol=1e-12)


def test_block_size_one_matches_scalar_solver():
    rng = np.random.default_rng(5)
    N = 40
    a = rng.uniform(-1, 1, N)
    b = rng.uniform(3, 5, N)
    c = rng.uniform(-1, 1, N)
    d = rng.uniform(-10, 10, N)

    A = BlockTridiagonalMatrix.from_blocks(
        a.reshape(N, 1, 1), b.reshape(N, 1, 1), c.reshape(N, 1, 1)
    )
    x_block = d.reshape(N, 1).copy()
    solve_block_tridiagonal(A, x_block)

    x_scalar = d.copy()
    solve_scalar_tridiagonal(a.copy(), b.copy(), c.copy(), x_scalar)

    assert np.allclose(x_block[:, 0], x_scalar, rtol=1e-10, atol=1e-12)


def test_boundary_blocks_never_read():
    """Lower[0] and Upper[N-1] may hold garbage without affecting the result."""
    A, rhs = _random_system(12)
    x_ref = A.solve(rhs)

    A.lower[0] = np.nan
    A.upper[-1] = np.nan
    x = rhs.copy()
    solve_block_tridiagonal(A, x)
    assert np.array_equal(x, x_ref)


def test_band_matrix_is_consumed_but_lower_kept():
    A, rhs = _random_system(6)
    before = A.data.copy()
    solve_block_tridiagonal(A, rhs.copy())

    assert np.array_equal(A.lower, before[:, 0])
    assert np.array_equal(A.diag[0], before[0, 1])
    assert np.array_equal(A.upper[-1], before[-1, 2])
    assert not np.array_equal(A.upper[:-1], before[:-1, 2])


def test_solve_method_leaves_inputs_untouched():
    A, rhs = _random_system(8)
    data_orig, rhs_orig = A.data.copy(), rhs.copy()
    x = A.solve(rhs)
    assert np.array_equal(A.data, data_orig)
    assert np.array_equal(rhs, rhs_orig)
    assert np.allclose(A.matvec(x), rhs, rtol=1e-9, atol=1e-9)


def test_raw_array_input():
    A, rhs = _random_system(5)
    x = rhs.copy()
    solve_block_tridiagonal(A.copy().data, x)
    assert np.allclose(x, A.solve(rhs), rtol=1e-14)


def test_partial_row_count_solves_leading_subsystem():
    A, rhs = _random_system(5)
    sub = BlockTridiagonalMatrix.from_array(A.data[:3].copy())
    sub.clear_boundaries()
    expected = sub.solve(rhs[:3])

    x = rhs.copy()
    solve_block_tridiagonal(A, x, n_rows=3)
    assert np.allclose(x[:3], expected, rtol=1e-14)
    assert np.array_equal(x[3:], rhs[3:])


def test_to_dense_agrees_with_matvec():
    A, rhs = _random_system(7)
    assert np.allclose(A.to_dense() @ rhs.reshape(-1), A.matvec(rhs).reshape(-1))


def test_singular_diagonal_block_reports_row():
    N = 4
    A = BlockTridiagonalMatrix(N, 3)
    A.diag[:] = np.eye(3)
    A.diag[2] = 0.0
    with pytest.raises(SingularBlock) as excinfo:
        solve_block_tridiagonal(A, np.ones((N, 3)))
    assert excinfo.value.row == 2


def test_singular_last_row():
    A = BlockTridiagonalMatrix(3, 3)
    A.diag[:2] = np.eye(3)
    with pytest.raises(SingularBlock) as excinfo:
        solve_block_tridiagonal(A, np.ones((3, 3)))
    assert excinfo.value.row == 2


def test_singular_unchecked_propagates_non_finite():
    A = BlockTridiagonalMatrix(3, 3)
    A.diag[:] = np.eye(3)
    A.diag[1] = 0.0
    x = np.ones((3, 3))
    solve_block_tridiagonal(A, x, check_singular=False)
    assert not np.all(np.isfinite(x))


def test_singular_block_is_arithmetic_error():
    assert issubclass(SingularBlock, ArithmeticError)
    assert issubclass(InvalidDimensions, ValueError)
