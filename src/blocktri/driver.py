# Copyright (c) 2026 Shmuel Link
# SPDX-License-Identifier: MIT

# src/blocktri/driver.py
import logging
import numpy as np
from blocktri.models.reaction_diffusion import CoupledReactionDiffusion
from blocktri.norms import l1_norm, l2_norm, linf_norm, max_change

logger = logging.getLogger(__name__)

PARAM_KEYS = (
    "N", "length", "gamma", "diffusivity", "coupling", "source",
    "bc_type", "bc_bottom", "bc_top", "dt", "tol", "max_steps",
)


def run_to_steady_state(params):
    """March a CoupledReactionDiffusion model until it stops changing.

    Args:
        params: model params plus ``tol`` (max absolute change per step,
            default 1e-8) and ``max_steps`` (default 10000).

    Returns:
        dict with params, convergence info, steady-residual norms and the
        final profiles.
    """
    tol = params.get("tol", 1e-8)
    max_steps = params.get("max_steps", 10000)
    if tol <= 0:
        raise ValueError(f"tol must be positive, got {tol}")
    if max_steps < 1:
        raise ValueError(f"max_steps must be >= 1, got {max_steps}")

    model = CoupledReactionDiffusion(params)
    u = model.get_initial_condition()
    log_interval = max(1, max_steps // 10)

    logger.info("Marching N=%d dt=%g to tol=%g (max %d steps)",
                model.grid.N, model.dt, tol, max_steps)

    t = 0.0
    change = np.inf
    converged = False
    n_steps = 0
    for n_steps in range(1, max_steps + 1):
        u_new = model.step(u, t)
        t += model.dt
        change = max_change(u, u_new)
        u = u_new
        if not np.isfinite(change):
            logger.warning("Non-finite update at step %d, stopping", n_steps)
            break
        if n_steps % log_interval == 0:
            logger.debug("step %d: t=%g max_change=%.3e", n_steps, t, change)
        if change < tol:
            converged = True
            break

    residual = model.steady_residual(u)
    result = {
        "params": {k: params[k] for k in PARAM_KEYS if k in params},
        "converged": converged,
        "n_steps": n_steps,
        "t_final": t,
        "max_change": float(change),
        "residual_l1": l1_norm(residual),
        "residual_l2": l2_norm(residual),
        "residual_linf": linf_norm(residual),
        "profiles": {
            "z": model.grid.z.tolist(),
            "u": u.tolist(),
        },
    }
    logger.info("Finished after %d steps: converged=%s max_change=%.3e residual_linf=%.3e",
                n_steps, converged, change, result["residual_linf"])
    return result
