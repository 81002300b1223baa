# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

"""Error norms for convergence checks on solved fields.

Each reduction runs over every entry of the array it is given; pass
``interior(field)`` to leave out boundary/ghost cells.
"""

import numpy as np


def interior(field):
    """View of ``field`` without the first and last cell along every axis."""
    field = np.asarray(field)
    return field[(slice(1, -1),) * field.ndim]


def pointwise_error(numerical, exact):
    """Signed error exact - numerical."""
    return np.asarray(exact, dtype=float) - np.asarray(numerical, dtype=float)


def l1_norm(error):
    """Mean absolute error."""
    error = np.asarray(error, dtype=float)
    return float(np.sum(np.abs(error)) / error.size)


def l2_norm(error):
    """Root-mean-square error."""
    error = np.asarray(error, dtype=float)
    return float(np.sqrt(np.sum(error**2) / error.size))


def linf_norm(error):
    """Largest absolute error."""
    return float(np.max(np.abs(np.asarray(error, dtype=float))))


def max_change(prev, curr):
    """Largest absolute change between two iterates.

    Always non-negative, so it can be compared directly against a
    convergence tolerance.
    """
    return linf_norm(np.asarray(prev, dtype=float) - np.asarray(curr, dtype=float))
