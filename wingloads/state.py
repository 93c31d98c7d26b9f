"""
Lifting-Surface State Representation

A StateSnapshot captures one timestep of the lifting-surface solution:
- Circulation (n): bound-vortex strength per spanwise panel, root to tip
- Geometry (n x 3): bound-vortex segment, control point, normal per panel
- Time (s)

Snapshots are deep copies of the solver's live arrays and are read-only,
so the previous step can be retained without aliasing solver memory.

PanelForces holds the per-panel force vectors derived from a snapshot.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional


def _frozen_array(values, shape: tuple, name: str) -> np.ndarray:
    """Copy values into a read-only float array of the given shape."""
    arr = np.array(values, dtype=np.float64, copy=True)
    if arr.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class PanelGeometry:
    """
    Per-panel geometry needed for force evaluation.

    All vectors are in the body/reference frame at capture time, SI units.
    """

    # Bound-vortex segment vector, A -> B (m)
    bound_vector: np.ndarray

    # Control point position (m)
    control_point: np.ndarray

    # Unit panel normal
    normal: np.ndarray

    # Panel planform area (m²)
    area: np.ndarray

    # Spanwise width used for force per unit span (m); defaults to |bound_vector|
    span_width: Optional[np.ndarray] = None

    # Induced velocity at the control point from the wake solve (m/s)
    induced_velocity: Optional[np.ndarray] = None

    # Velocity of the air relative to the moving surface (m/s)
    kinematic_velocity: Optional[np.ndarray] = None

    def __post_init__(self):
        bound = np.asarray(self.bound_vector, dtype=np.float64)
        if bound.ndim != 2 or bound.shape[1] != 3:
            raise ValueError(f"bound_vector must have shape (n, 3), got {bound.shape}")
        n = bound.shape[0]

        def vectors(values, name):
            if values is None:
                values = np.zeros((n, 3))
            return _frozen_array(values, (n, 3), name)

        def scalars(values, name):
            return _frozen_array(values, (n,), name)

        normal = vectors(self.normal, 'normal')
        norms = np.linalg.norm(normal, axis=1)
        if np.any(norms < 1e-12):
            raise ValueError("normal contains zero-length vectors")
        normal = _frozen_array(normal / norms[:, None], (n, 3), 'normal')

        span_width = self.span_width
        if span_width is None:
            span_width = np.linalg.norm(bound, axis=1)
        span_width = scalars(span_width, 'span_width')
        if np.any(span_width <= 0):
            raise ValueError("span_width must be positive for every panel")

        object.__setattr__(self, 'bound_vector', vectors(bound, 'bound_vector'))
        object.__setattr__(self, 'control_point', vectors(self.control_point, 'control_point'))
        object.__setattr__(self, 'normal', normal)
        object.__setattr__(self, 'area', scalars(self.area, 'area'))
        object.__setattr__(self, 'span_width', span_width)
        object.__setattr__(self, 'induced_velocity', vectors(self.induced_velocity, 'induced_velocity'))
        object.__setattr__(self, 'kinematic_velocity', vectors(self.kinematic_velocity, 'kinematic_velocity'))

    @property
    def n_panels(self) -> int:
        """Number of spanwise panels."""
        return self.bound_vector.shape[0]

    def __len__(self) -> int:
        return self.n_panels


@dataclass(frozen=True, eq=False)
class StateSnapshot:
    """
    Immutable capture of one timestep's circulation and geometry.

    Invariant: len(circulation) == geometry.n_panels.
    """

    # Bound-vortex strength per panel, root to tip (m²/s)
    circulation: np.ndarray

    geometry: PanelGeometry

    # Simulation time at capture (s)
    time: float = 0.0

    def __post_init__(self):
        gamma = np.array(self.circulation, dtype=np.float64, copy=True).reshape(-1)
        if gamma.shape[0] != self.geometry.n_panels:
            raise ValueError(
                f"circulation has {gamma.shape[0]} entries but geometry has "
                f"{self.geometry.n_panels} panels"
            )
        gamma.setflags(write=False)
        object.__setattr__(self, 'circulation', gamma)
        object.__setattr__(self, 'time', float(self.time))

    @classmethod
    def capture(
        cls,
        circulation: np.ndarray,
        bound_vector: np.ndarray,
        control_point: np.ndarray,
        normal: np.ndarray,
        area: np.ndarray,
        time: float,
        span_width: Optional[np.ndarray] = None,
        induced_velocity: Optional[np.ndarray] = None,
        kinematic_velocity: Optional[np.ndarray] = None
    ) -> 'StateSnapshot':
        """
        Create a snapshot from live solver arrays.

        Every array is copied, so the solver may keep mutating its own
        buffers after this returns.

        Args:
            circulation: Bound-vortex strength per panel (n,)
            bound_vector: Bound-vortex segment per panel (n, 3)
            control_point: Control point per panel (n, 3)
            normal: Panel normal (n, 3), normalized on capture
            area: Panel area (n,)
            time: Simulation time (s)
            span_width: Spanwise panel width (n,), optional
            induced_velocity: Wake-induced velocity at control points (n, 3), optional
            kinematic_velocity: Surface-motion velocity at control points (n, 3), optional

        Returns:
            StateSnapshot instance
        """
        geometry = PanelGeometry(
            bound_vector=bound_vector,
            control_point=control_point,
            normal=normal,
            area=area,
            span_width=span_width,
            induced_velocity=induced_velocity,
            kinematic_velocity=kinematic_velocity
        )
        return cls(circulation=circulation, geometry=geometry, time=time)

    @property
    def n_panels(self) -> int:
        """Number of spanwise panels."""
        return self.geometry.n_panels

    def span_positions(self, span: float, axis: int = 1) -> np.ndarray:
        """
        Nondimensional spanwise station 2y/b of each control point.

        Args:
            span: Reference span b (m)
            axis: Index of the spanwise coordinate (default y)
        """
        if span <= 0:
            raise ValueError(f"span must be positive, got {span}")
        return 2 * self.geometry.control_point[:, axis] / span


@dataclass(eq=False)
class PanelForces:
    """
    Aerodynamic force on each panel, SI units (N).

    Forces are in the same frame as the snapshot geometry.
    """

    # Quasi-steady Kutta-Joukowski term (n, 3)
    steady: np.ndarray

    # Rate-of-change-of-circulation term (n, 3)
    unsteady: np.ndarray

    # Spanwise width of each panel (n,)
    span_width: np.ndarray

    time: float = 0.0
    frame: str = "body"

    # Total per-panel force, steady + unsteady (n, 3)
    total: np.ndarray = field(init=False)

    def __post_init__(self):
        self.steady = np.asarray(self.steady, dtype=np.float64)
        self.unsteady = np.asarray(self.unsteady, dtype=np.float64)
        self.span_width = np.asarray(self.span_width, dtype=np.float64)
        if self.steady.shape != self.unsteady.shape:
            raise ValueError(
                f"steady and unsteady shapes differ: {self.steady.shape} vs {self.unsteady.shape}"
            )
        self.total = self.steady + self.unsteady

    @property
    def n_panels(self) -> int:
        return self.total.shape[0]

    def __len__(self) -> int:
        return self.n_panels

    @property
    def total_force(self) -> np.ndarray:
        """Vector sum over all panels (3,)."""
        return self.total.sum(axis=0)

    @property
    def per_unit_span(self) -> np.ndarray:
        """Force per unit span of each panel (n, 3), N/m."""
        return self.total / self.span_width[:, None]
