# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

import numpy as np


class ControlVolumeGrid:
    """1D chain of control volumes on [0, length].

    Nodes are placed with optional tanh clustering towards z=0:
        z(xi) = length * [1 - tanh(gamma * (1 - xi)) / tanh(gamma)]
    and gamma = 0 gives a uniform grid.

    Each node owns the control volume between the midpoints to its
    neighbours; the two end nodes own half cells.

    Attributes:
        N: number of nodes
        length: domain length
        gamma: stretching parameter
        z: node positions, shape (N,)
        h: node spacings z[i+1] - z[i], shape (N-1,)
        faces: control-volume faces, shape (N+1,)
        dz_c: control-volume widths, shape (N,); sums to length
    """

    def __init__(self, N, length, gamma=0.0):
        if N < 3:
            raise ValueError(f"N must be >= 3 (need at least one interior node), got {N}")
        if length <= 0:
            raise ValueError(f"length must be positive, got {length}")
        if gamma < 0:
            raise ValueError(f"gamma must be non-negative, got {gamma}")

        self.N = N
        self.length = length
        self.gamma = gamma

        xi = np.linspace(0.0, 1.0, N)
        if gamma == 0.0:
            self.z = length * xi
        else:
            self.z = length * (1.0 - np.tanh(gamma * (1.0 - xi)) / np.tanh(gamma))
        self.z[0] = 0.0
        self.z[-1] = length

        self.h = np.diff(self.z)
        self.faces = np.concatenate(([0.0], 0.5 * (self.z[1:] + self.z[:-1]), [length]))
        self.dz_c = np.diff(self.faces)
