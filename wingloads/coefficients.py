"""
Coefficient Aggregation

Normalizes panel forces into dimensionless coefficients:
- Integrated CL, CD, CS from the total force
- Spanwise distributions Cl/CL and Cd/CD from force per unit span

Lift, drag and side components are always obtained through a
DirectionBasis, so non-orthogonal reference directions are handled the
same way everywhere.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .frames import DirectionBasis, as_basis
from .state import PanelForces


# Integrated load below this fraction of |F_total| counts as zero
ZERO_LOAD_TOL = 1e-12


class ZeroReferenceLoadError(ArithmeticError):
    """Normalization requested against a zero integrated load."""


@dataclass(frozen=True, eq=False)
class CoefficientSample:
    """
    One timestep of integrated coefficients and spanwise distributions.

    Samples are immutable and their arrays read-only, so history handed
    out by the monitor cannot be rewritten by callers.
    """

    time: float

    # Integrated coefficients
    CL: float
    CD: float
    CS: float = 0.0

    # Integrated loads along d1, d2, d3 (N)
    lift: float = 0.0
    drag: float = 0.0
    side: float = 0.0

    # Spanwise station 2y/b of each panel
    span_positions: Optional[np.ndarray] = None

    # Normalized distributions, None when skipped for this step
    ClCL: Optional[np.ndarray] = None
    CdCD: Optional[np.ndarray] = None

    def __post_init__(self):
        for name in ('time', 'CL', 'CD', 'CS', 'lift', 'drag', 'side'):
            object.__setattr__(self, name, float(getattr(self, name)))
        for name in ('span_positions', 'ClCL', 'CdCD'):
            values = getattr(self, name)
            if values is not None:
                arr = np.array(values, dtype=np.float64, copy=True)
                arr.setflags(write=False)
                object.__setattr__(self, name, arr)

    @property
    def has_distribution(self) -> bool:
        return self.ClCL is not None and self.CdCD is not None

    def to_dict(self) -> dict:
        """Flat record for tabulation/export."""
        return {
            'time': self.time,
            'CL': self.CL,
            'CD': self.CD,
            'CS': self.CS,
            'lift_N': self.lift,
            'drag_N': self.drag,
            'side_N': self.side,
        }


def integrated_coefficients(
    total_force: np.ndarray,
    basis: DirectionBasis,
    dynamic_pressure: float,
    reference_area: float
) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
    """
    Integrated loads and coefficients from a total force vector.

    Returns:
        ((L, D, S), (CL, CD, CS))
    """
    basis = as_basis(basis)
    if dynamic_pressure <= 0:
        raise ValueError(f"dynamic_pressure must be positive, got {dynamic_pressure}")
    if reference_area <= 0:
        raise ValueError(f"reference_area must be positive, got {reference_area}")

    L, D, S = basis.decompose(total_force)
    qS = dynamic_pressure * reference_area
    return (L, D, S), (L / qS, D / qS, S / qS)


def normalized_distribution(
    force_per_span: np.ndarray,
    basis: DirectionBasis,
    lift: float,
    drag: float,
    span: float,
    force_scale: float
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Spanwise Cl/CL and Cd/CD.

    Cl/CL_i = l_i / (|L| / b), Cd/CD_i = d_i / (|D| / b) with the signed
    per-span components l_i, d_i, so a panel whose drag points against d2
    gets a negative Cd/CD.

    Args:
        force_per_span: Force per unit span of each panel (n, 3)
        basis: Reference directions
        lift: Integrated load along d1 (N)
        drag: Integrated load along d2 (N)
        span: Reference span b (m)
        force_scale: Magnitude of the total force, for the zero-load check

    Raises:
        ZeroReferenceLoadError: if |L| or |D| is zero
    """
    basis = as_basis(basis)
    if span <= 0:
        raise ValueError(f"span must be positive, got {span}")

    threshold = ZERO_LOAD_TOL * force_scale
    if force_scale == 0 or abs(lift) <= threshold:
        raise ZeroReferenceLoadError(f"Cannot normalize lift distribution: L = {lift:.3e} N")
    if abs(drag) <= threshold:
        raise ZeroReferenceLoadError(f"Cannot normalize drag distribution: D = {drag:.3e} N")

    l, d, _ = basis.decompose_many(force_per_span)
    ClCL = l / (abs(lift) / span)
    CdCD = d / (abs(drag) / span)
    return ClCL, CdCD


def aggregate(
    forces: Union[PanelForces, np.ndarray],
    basis: DirectionBasis,
    dynamic_pressure: float,
    reference_area: float,
    span: float,
    time: Optional[float] = None,
    span_width: Optional[np.ndarray] = None,
    span_positions: Optional[np.ndarray] = None,
    distribution: bool = True
) -> CoefficientSample:
    """
    Coefficients for one timestep.

    Args:
        forces: PanelForces, or an (n, 3) array of panel forces
        basis: Reference directions (d1 = lift, d2 = drag)
        dynamic_pressure: Reference dynamic pressure (Pa)
        reference_area: Reference area S (m²)
        span: Reference span b (m)
        time: Sample time (s); defaults to forces.time
        span_width: Panel widths for a raw array (defaults to ones,
            i.e. the array already holds force per unit span)
        span_positions: Spanwise station 2y/b of each panel
        distribution: Also compute Cl/CL and Cd/CD

    Returns:
        CoefficientSample

    Raises:
        ZeroReferenceLoadError: if distribution is requested and the
            integrated lift or drag is zero
    """
    basis = as_basis(basis)

    if isinstance(forces, PanelForces):
        total = forces.total_force
        per_span = forces.per_unit_span
        if time is None:
            time = forces.time
    else:
        panel_forces = np.asarray(forces, dtype=np.float64)
        if panel_forces.ndim != 2 or panel_forces.shape[1] != 3:
            raise ValueError(f"forces must have shape (n, 3), got {panel_forces.shape}")
        widths = np.ones(len(panel_forces)) if span_width is None else np.asarray(span_width, dtype=np.float64)
        total = panel_forces.sum(axis=0)
        per_span = panel_forces / widths[:, None]

    (L, D, S), (CL, CD, CS) = integrated_coefficients(
        total, basis, dynamic_pressure, reference_area
    )

    ClCL = CdCD = None
    if distribution:
        ClCL, CdCD = normalized_distribution(
            per_span, basis, L, D, span, float(np.linalg.norm(total))
        )

    return CoefficientSample(
        time=0.0 if time is None else float(time),
        CL=CL,
        CD=CD,
        CS=CS,
        lift=L,
        drag=D,
        side=S,
        span_positions=None if span_positions is None else np.asarray(span_positions, dtype=np.float64),
        ClCL=ClCL,
        CdCD=CdCD
    )
