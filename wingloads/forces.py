"""
Unsteady Force Module

Computes aerodynamic force on each lifting-surface panel from two
consecutive state snapshots:
- Quasi-steady term: rho * Gamma * (V_eff x dl)  (Kutta-Joukowski)
- Unsteady term: rho * dGamma/dt * A * n  (rate of change of circulation)

V_eff is the freestream sampled at the control point plus the induced and
kinematic velocities already stored in the snapshot; the wake solve itself
belongs to the solver.

On the first step there is no previous snapshot and the unsteady term is
exactly zero.
"""

import numpy as np
from typing import Optional

from .state import StateSnapshot, PanelForces
from .environment import FreestreamField


class PanelCountMismatchError(ValueError):
    """Current and previous snapshots have different panel counts."""


def effective_velocity(
    snapshot: StateSnapshot,
    freestream: FreestreamField
) -> np.ndarray:
    """
    Local effective velocity at each control point.

    Args:
        snapshot: Current state
        freestream: Freestream field (position, time) -> velocity

    Returns:
        Velocity per panel (n, 3), m/s
    """
    geom = snapshot.geometry
    v_inf = np.empty((geom.n_panels, 3))
    for i, cp in enumerate(geom.control_point):
        v = np.asarray(freestream(cp, snapshot.time), dtype=np.float64).reshape(-1)
        if v.shape != (3,):
            raise ValueError(f"Freestream must return a 3-vector, got shape {v.shape}")
        v_inf[i] = v

    return v_inf + geom.induced_velocity + geom.kinematic_velocity


def steady_forces(
    snapshot: StateSnapshot,
    freestream: FreestreamField,
    density: float
) -> np.ndarray:
    """
    Quasi-steady force on each panel.

    F_i = rho * Gamma_i * (V_eff_i x dl_i)

    Returns:
        Force per panel (n, 3), N
    """
    V_eff = effective_velocity(snapshot, freestream)
    gamma = snapshot.circulation
    return density * gamma[:, None] * np.cross(V_eff, snapshot.geometry.bound_vector)


def unsteady_forces(
    current: StateSnapshot,
    previous: Optional[StateSnapshot],
    dt: float,
    density: float
) -> np.ndarray:
    """
    Force from the rate of change of circulation.

    F_i = rho * (Gamma_i - Gamma_i_prev) / dt * A_i * n_i

    Area and normal are taken from the current snapshot.

    Returns:
        Force per panel (n, 3), N; all zeros when previous is None
    """
    n = current.n_panels
    if previous is None:
        return np.zeros((n, 3))

    if previous.n_panels != n:
        raise PanelCountMismatchError(
            f"Panel count changed between steps: previous={previous.n_panels}, current={n}"
        )
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")

    geom = current.geometry
    dgamma_dt = (current.circulation - previous.circulation) / dt
    return density * (dgamma_dt * geom.area)[:, None] * geom.normal


def evaluate(
    current: StateSnapshot,
    previous: Optional[StateSnapshot],
    freestream: FreestreamField,
    dt: float,
    density: float
) -> PanelForces:
    """
    Total aerodynamic force on each panel.

    Args:
        current: State at this timestep
        previous: State at the previous timestep, None on the first step
        freestream: Freestream field (position, time) -> velocity
        dt: Timestep between previous and current (s)
        density: Air density (kg/m³)

    Returns:
        PanelForces with steady, unsteady and total terms

    Raises:
        PanelCountMismatchError: if the snapshots have different panel counts
    """
    if density <= 0:
        raise ValueError(f"density must be positive, got {density}")

    # Shape check first, before sampling the freestream
    F_unsteady = unsteady_forces(current, previous, dt, density)
    F_steady = steady_forces(current, freestream, density)

    return PanelForces(
        steady=F_steady,
        unsteady=F_unsteady,
        span_width=current.geometry.span_width,
        time=current.time
    )
