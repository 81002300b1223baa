# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

import numpy as np

from blocktri.grid import ControlVolumeGrid
from blocktri.solvers.block_tridiagonal import solve_block_tridiagonal
from blocktri.solvers.imex import (
    BC_TYPES, BlockIMEXEuler, apply_boundary_rows, boundary_rhs_values,
)
from blocktri.solvers.operators import block_diffusion_operator

N_FIELDS = 3


class CoupledReactionDiffusion:
    """Three linearly coupled scalar fields on a 1D control-volume chain.

        u_t = d/dz[D(z) du/dz] + K u + s

    u has shape (N, 3). D holds one diffusivity per field, K is a 3x3
    reaction matrix and s a constant source. Diffusion and reaction are
    both implicit, so every step is one block-tridiagonal solve with
    3x3 blocks; the source is explicit.

    Boundary conditions: ``"dirichlet"`` (u = bc_bottom at z=0,
    u = bc_top at z=length) or ``"neumann_top"`` (zero gradient at the top).
    """

    def __init__(self, params):
        diffusivity = np.asarray(params.get("diffusivity", (1.0, 1.0, 1.0)), dtype=float)
        if diffusivity.shape != (N_FIELDS,):
            raise ValueError(f"diffusivity needs {N_FIELDS} values, got {diffusivity.shape}")
        if np.any(diffusivity <= 0):
            raise ValueError(f"diffusivity must be positive, got {diffusivity.tolist()}")
        coupling = np.asarray(
            params.get("coupling", np.zeros((N_FIELDS, N_FIELDS))), dtype=float
        ).reshape(-1)
        if coupling.size != N_FIELDS * N_FIELDS:
            raise ValueError(f"coupling needs {N_FIELDS * N_FIELDS} values, got {coupling.size}")
        source = np.asarray(params.get("source", np.zeros(N_FIELDS)), dtype=float)
        if source.shape != (N_FIELDS,):
            raise ValueError(f"source needs {N_FIELDS} values, got {source.shape}")
        bc_type = params.get("bc_type", "dirichlet")
        if bc_type not in BC_TYPES:
            raise ValueError(f"Unknown bc_type: {bc_type!r}")
        dt = params.get("dt", 1e-2)
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")

        self.params = params
        self.diffusivity = diffusivity
        self.coupling = coupling.reshape(N_FIELDS, N_FIELDS)
        self.source = source
        self.bc_type = bc_type
        self.bc_values = (
            params.get("bc_bottom", np.zeros(N_FIELDS)),
            params.get("bc_top", np.zeros(N_FIELDS)),
        )
        self.dt = dt

        self.grid = ControlVolumeGrid(
            N=params.get("N", 64),
            length=params.get("length", 1.0),
            gamma=params.get("gamma", 0.0),
        )
        self.operator = block_diffusion_operator(self.diffusivity, self.grid, self.coupling)
        self.stepper = BlockIMEXEuler(
            self.operator, dt,
            explicit_rhs=self.explicit_rhs,
            bc_type=bc_type,
            bc_values=self.bc_values,
        )

    def explicit_rhs(self, u, t):
        return np.broadcast_to(self.source, u.shape)

    def get_initial_condition(self):
        """Zero interior with the boundary values imposed."""
        bottom, top = boundary_rhs_values(self.bc_type, self.bc_values, N_FIELDS)
        u = np.zeros((self.grid.N, N_FIELDS))
        u[0] = bottom
        if self.bc_type == "dirichlet":
            u[-1] = top
        else:
            u[-1] = u[-2]
        return u

    def step(self, u, t):
        """Advance one IMEX Euler timestep. Returns the new (N, 3) state."""
        return self.stepper.step(u, t)

    def steady_residual(self, u):
        """A u + s on the interior nodes, shape (N-2, 3)."""
        return self.operator.matvec(u)[1:-1] + self.source

    def solve_steady(self):
        """Solve A u = -s with the boundary rows in one block solve."""
        matrix = apply_boundary_rows(self.operator.copy(), self.bc_type)
        bottom, top = boundary_rhs_values(self.bc_type, self.bc_values, N_FIELDS)
        rhs = np.tile(-self.source, (self.grid.N, 1))
        rhs[0] = bottom
        rhs[-1] = top
        solve_block_tridiagonal(matrix, rhs)
        return rhs
