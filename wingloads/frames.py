"""
Reference Directions and Force Decomposition

This module resolves force vectors into named components along a set of
reference directions:
- Primary direction d1 (e.g. lift)
- Secondary direction d2 (e.g. drag)
- Side direction d3 = normalize(d1 x d2)

The directions need not be orthogonal. Components are found with an exact
3x3 linear solve of M @ [primary, secondary, side] = F with M = [d1 | d2 | d3],
so this is the single place where "lift/drag/side" are defined.

Convention: all vectors are expressed in the same (body/reference) frame as
the panel geometry they were computed from.
"""

import numpy as np
from typing import Tuple
from dataclasses import dataclass


# Minimum |det([d1 | d2 | d3])| on unit directions
BASIS_DET_TOL = 1e-9


class DegenerateBasisError(ValueError):
    """Reference directions do not form an invertible basis."""


def normalize(v: np.ndarray) -> np.ndarray:
    """
    Return v scaled to unit length.

    Raises:
        ValueError: if v has (numerically) zero length
    """
    v = np.asarray(v, dtype=np.float64)
    norm = np.linalg.norm(v)
    if norm < 1e-14:
        raise ValueError(f"Cannot normalize zero-length vector {v}")
    return v / norm


@dataclass(frozen=True, eq=False)
class DirectionBasis:
    """
    Reference directions used to name force components.

    d1 and d2 are kept as given (not normalized) so that
    primary*d1 + secondary*d2 + side*d3 reproduces the decomposed vector.
    d3 is always unit length.
    """
    d1: np.ndarray
    d2: np.ndarray

    def __post_init__(self):
        d1 = np.asarray(self.d1, dtype=np.float64).reshape(-1)
        d2 = np.asarray(self.d2, dtype=np.float64).reshape(-1)
        if d1.shape != (3,) or d2.shape != (3,):
            raise ValueError(f"Directions must be 3-vectors, got {d1.shape} and {d2.shape}")

        n1 = np.linalg.norm(d1)
        n2 = np.linalg.norm(d2)
        if n1 < 1e-14 or n2 < 1e-14:
            raise DegenerateBasisError(
                f"Zero-length reference direction: d1={d1.tolist()}, d2={d2.tolist()}"
            )

        cross = np.cross(d1, d2)
        cross_norm = np.linalg.norm(cross)
        # Unit copies make the determinant check independent of scale;
        # for unit d1, d2 and d3 = unit(d1 x d2), det = |d1 x d2| = sin(angle)
        det_unit = cross_norm / (n1 * n2)
        if det_unit < BASIS_DET_TOL:
            raise DegenerateBasisError(
                f"Reference directions are parallel (|det|={det_unit:.3e} < {BASIS_DET_TOL:.0e}): "
                f"d1={d1.tolist()}, d2={d2.tolist()}"
            )

        d1.setflags(write=False)
        d2.setflags(write=False)
        d3 = cross / cross_norm
        d3.setflags(write=False)
        object.__setattr__(self, 'd1', d1)
        object.__setattr__(self, 'd2', d2)
        object.__setattr__(self, '_d3', d3)

    @property
    def d3(self) -> np.ndarray:
        """Side direction, normalize(d1 x d2)."""
        return self._d3

    @property
    def matrix(self) -> np.ndarray:
        """Column matrix M = [d1 | d2 | d3]."""
        return np.column_stack([self.d1, self.d2, self.d3])

    @property
    def det(self) -> float:
        """Determinant of M."""
        return float(np.linalg.det(self.matrix))

    def decompose(self, force: np.ndarray) -> Tuple[float, float, float]:
        """Components of a single 3-vector along (d1, d2, d3)."""
        force = np.asarray(force, dtype=np.float64).reshape(-1)
        if force.shape != (3,):
            raise ValueError(f"Force must be a 3-vector, got shape {force.shape}")
        primary, secondary, side = np.linalg.solve(self.matrix, force)
        return float(primary), float(secondary), float(side)

    def decompose_many(self, forces: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Components of each row of an (n, 3) array.

        Returns:
            (primary, secondary, side), each of shape (n,)
        """
        forces = np.asarray(forces, dtype=np.float64)
        if forces.ndim != 2 or forces.shape[1] != 3:
            raise ValueError(f"Forces must have shape (n, 3), got {forces.shape}")
        components = np.linalg.solve(self.matrix, forces.T)
        return components[0], components[1], components[2]

    def compose(self, primary: float, secondary: float, side: float) -> np.ndarray:
        """Inverse of decompose: primary*d1 + secondary*d2 + side*d3."""
        return primary * self.d1 + secondary * self.d2 + side * self.d3


def decompose(
    force: np.ndarray,
    d1: np.ndarray,
    d2: np.ndarray
) -> Tuple[float, float, float]:
    """
    Resolve a force into components along d1, d2 and d3 = normalize(d1 x d2).

    Args:
        force: Force vector (3,)
        d1: Primary direction (e.g. lift)
        d2: Secondary direction (e.g. drag)

    Returns:
        (primary, secondary, side)

    Raises:
        DegenerateBasisError: if d1 and d2 are parallel or either is zero
    """
    return DirectionBasis(d1, d2).decompose(force)


def decompose_many(
    forces: np.ndarray,
    d1: np.ndarray,
    d2: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Row-wise decompose() for an (n, 3) array of forces."""
    return DirectionBasis(d1, d2).decompose_many(forces)


def lift_drag_directions(alpha: float, beta: float = 0.0) -> Tuple[np.ndarray, np.ndarray]:
    """
    Lift and drag directions for a freestream at angle of attack and sideslip.

    The freestream is V [cos(a)cos(b), sin(b), sin(a)cos(b)] (x aft, z up).
    Drag is along the freestream; lift is normal to it in the x-z plane.

    Args:
        alpha: Angle of attack (rad)
        beta: Sideslip angle (rad)

    Returns:
        (lift_direction, drag_direction), both unit vectors
    """
    ca, sa = np.cos(alpha), np.sin(alpha)
    cb, sb = np.cos(beta), np.sin(beta)

    drag_dir = np.array([ca*cb, sb, sa*cb])
    lift_dir = np.array([-sa, 0.0, ca])
    return lift_dir, drag_dir


def as_basis(basis) -> DirectionBasis:
    """Accept a DirectionBasis or a (d1, d2) pair."""
    if isinstance(basis, DirectionBasis):
        return basis
    d1, d2 = basis
    return DirectionBasis(d1, d2)
