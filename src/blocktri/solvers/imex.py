# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT


import numpy as np

from blocktri.solvers.block_tridiagonal import (
    DIAG, LOWER, UPPER, solve_block_tridiagonal,
)

BC_TYPES = ("dirichlet", "neumann_top")


def apply_boundary_rows(matrix, bc_type):
    """Overwrite the first and last block rows with boundary equations.

    - ``"dirichlet"``: u[0] and u[-1] are prescribed.
    - ``"neumann_top"``: u[0] prescribed; u[-1] - u[-2] = 0 at the top.
    """
    if bc_type not in BC_TYPES:
        raise ValueError(f"Unknown bc_type: {bc_type!r}")
    eye = np.eye(matrix.block_size)
    data = matrix.data

    data[0, LOWER] = 0.0
    data[0, DIAG] = eye
    data[0, UPPER] = 0.0

    # First-order zero-gradient row keeps the block-tridiagonal structure.
    data[-1, LOWER] = -eye if bc_type == "neumann_top" else 0.0
    data[-1, DIAG] = eye
    data[-1, UPPER] = 0.0
    return matrix


def boundary_rhs_values(bc_type, bc_values, block_size):
    """Right-hand side entries for the bottom and top boundary rows."""
    bottom = np.broadcast_to(np.asarray(bc_values[0], dtype=float), (block_size,))
    if bc_type == "neumann_top":
        top = np.zeros(block_size)
    else:
        top = np.broadcast_to(np.asarray(bc_values[1], dtype=float), (block_size,))
    return bottom, top


class BlockIMEXEuler:
    """IMEX Euler integrator for coupled fields on a block-tridiagonal operator.

    Treats the block operator A implicitly via a block Thomas solve and
    any other right-hand-side terms explicitly:

        (I - dt*A) u^{n+1} = u^n + dt * f(u^n, t^n)

    Parameters
    ----------
    operator : BlockTridiagonalMatrix
        Spatial operator, e.g. from ``block_diffusion_operator``. Its
        boundary rows are replaced by the boundary conditions.
    dt : float
        Time step size.
    explicit_rhs : callable(u, t) -> array, optional
        Explicit right-hand side, shape (N, b). ``None`` for none.
    bc_type : str
        ``"dirichlet"`` or ``"neumann_top"`` (see ``apply_boundary_rows``).
    bc_values : tuple
        ``(bottom, top)``, each a scalar or a length-b vector. ``top`` is
        ignored for ``"neumann_top"``.
    """

    def __init__(self, operator, dt, explicit_rhs=None, bc_type="dirichlet",
                 bc_values=(0.0, 0.0)):
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        self.dt = dt
        self.f = explicit_rhs
        self.bc_type = bc_type
        self.bc_values = bc_values
        self.block_size = operator.block_size

        M = operator.copy()
        M.data *= -dt
        M.data[:, DIAG] += np.eye(self.block_size)
        self._matrix = apply_boundary_rows(M, bc_type)
        self._bottom, self._top = boundary_rhs_values(bc_type, bc_values, self.block_size)

    @property
    def matrix(self):
        """The assembled (I - dt*A) system with boundary rows."""
        return self._matrix

    def step(self, u, t):
        """Advance solution by one time step.

        Parameters
        ----------
        u : ndarray, shape (N, b)
        t : float

        Returns
        -------
        u_new : ndarray, shape (N, b)
        """
        if self.f is not None:
            rhs = u + self.dt * self.f(u, t)
        else:
            rhs = np.array(u, dtype=float)

        rhs[0] = self._bottom
        rhs[-1] = self._top

        # The solve consumes its band storage, so hand it a copy.
        solve_block_tridiagonal(self._matrix.copy(), rhs)
        return rhs
