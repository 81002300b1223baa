# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

"""Exceptions raised by the tridiagonal solvers."""


class BlockSolverError(Exception):
    """Base class for solver failures."""


class InvalidDimensions(BlockSolverError, ValueError):
    """Band storage, right-hand side and row count do not fit together."""


class SingularBlock(BlockSolverError, ArithmeticError):
    """A diagonal block had a zero or non-finite determinant at inversion.

    Attributes:
        row: block row whose diagonal block could not be inverted.
    """

    def __init__(self, row, det=None):
        self.row = row
        self.det = det
        msg = f"diagonal block at row {row} is singular"
        if det is not None:
            msg += f" (det={det!r})"
        super().__init__(msg)
