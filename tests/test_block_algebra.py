# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

import numpy as np
import pytest
from blocktri.solvers.block_algebra import (
    multiply, multiply_vec, axpy_matrix, axpy_vec, copy_block,
    determinant, invert,
)


def _well_conditioned(b, seed):
    rng = np.random.default_rng(seed)
    return rng.uniform(-1, 1, (b, b)) + 2.0 * b * np.eye(b)


def test_multiply_matches_numpy():
    rng = np.random.default_rng(0)
    A = rng.uniform(-1, 1, (3, 3))
    B = rng.uniform(-1, 1, (3, 3))
    assert np.allclose(multiply(A, B), A @ B, rtol=1e-13, atol=1e-14)


def test_multiply_vec_matches_numpy():
    rng = np.random.default_rng(1)
    A = rng.uniform(-1, 1, (3, 3))
    v = rng.uniform(-1, 1, 3)
    assert np.allclose(multiply_vec(A, v), A @ v, rtol=1e-13, atol=1e-14)


def test_multiply_vec_accumulates_left_to_right():
    """3x3 result is bit-identical to the unrolled a0*v0 + a1*v1 + a2*v2."""
    rng = np.random.default_rng(2)
    A = rng.uniform(-1, 1, (3, 3))
    v = rng.uniform(-1, 1, 3)
    r = multiply_vec(A, v)
    for i in range(3):
        assert r[i] == A[i, 0] * v[0] + A[i, 1] * v[1] + A[i, 2] * v[2]


def test_axpy():
    A = np.arange(9.0).reshape(3, 3)
    B = np.ones((3, 3))
    assert np.array_equal(axpy_matrix(A, B, -1.0), A - 1.0)
    a = np.array([1.0, 2.0, 3.0])
    assert np.array_equal(axpy_vec(a, a, 2.0), 3.0 * a)


def test_results_do_not_alias_inputs():
    A = _well_conditioned(3, 3)
    A_orig = A.copy()
    C = axpy_matrix(A, A, 1.0)
    C[0, 0] = 1e9
    assert np.array_equal(A, A_orig)


def test_copy_block_is_deep():
    A = np.eye(3)
    B = copy_block(A)
    B[1, 1] = 5.0
    assert A[1, 1] == 1.0
    v = np.zeros(3)
    w = copy_block(v)
    w[0] = 1.0
    assert v[0] == 0.0


def test_determinant_sarrus():
    M = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 0.0]])
    assert determinant(M) == 27.0


@pytest.mark.parametrize("b", [1, 2, 3, 4, 5])
def test_determinant_matches_numpy(b):
    M = _well_conditioned(b, 10 + b)
    assert np.isclose(determinant(M), np.linalg.det(M), rtol=1e-12)


def test_invert_times_matrix_is_identity():
    for seed in range(5):
        M = _well_conditioned(3, seed)
        assert np.allclose(multiply(M, invert(M)), np.eye(3), atol=1e-13)


def test_double_inversion_returns_original():
    M = _well_conditioned(3, 7)
    assert np.allclose(invert(invert(M)), M, rtol=1e-12, atol=1e-14)


@pytest.mark.parametrize("b", [1, 2, 4])
def test_invert_other_block_sizes(b):
    M = _well_conditioned(b, 20 + b)
    assert np.allclose(invert(M), np.linalg.inv(M), rtol=1e-11, atol=1e-14)


def test_invert_singular_gives_non_finite():
    """No check is made: a zero determinant yields inf/nan, not an exception."""
    M = np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [0.0, 0.0, 1.0]])
    assert determinant(M) == 0.0
    inv = invert(M)
    assert not np.all(np.isfinite(inv))
