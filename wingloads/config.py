"""
Monitor and Scenario Configuration

Defines the parameters of a load-monitoring run:
- Reference directions and reference dimensions (MonitorConfig)
- Flow conditions, wing planform and run length of a test case (ScenarioConfig)

Both can be loaded from and saved to YAML so cases are data-driven.
"""

import numpy as np
import yaml
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from .environment import dynamic_pressure, isa_density


@dataclass
class MonitorConfig:
    """Reference quantities used to turn forces into coefficients."""

    # Reference directions (primary = lift, secondary = drag)
    lift_direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    drag_direction: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))

    # Air density (kg/m³)
    density: float = 1.225

    # Reference speed (m/s); used for dynamic pressure unless q_ref is set
    reference_speed: float = 1.0
    q_ref: Optional[float] = None

    # Reference dimensions
    reference_area: float = 1.0   # S (m²)
    span: float = 1.0             # b (m)

    # Index of the spanwise coordinate of the control points
    span_axis: int = 1

    # Relative CL tolerance used by finalize() when none is given
    tolerance: float = 0.025

    # Print a diagnostic line every step
    verbose: bool = False

    def __post_init__(self):
        self.lift_direction = np.asarray(self.lift_direction, dtype=np.float64)
        self.drag_direction = np.asarray(self.drag_direction, dtype=np.float64)
        if self.density <= 0:
            raise ValueError(f"density must be positive, got {self.density}")
        if self.reference_area <= 0 or self.span <= 0:
            raise ValueError("reference_area and span must be positive")
        if self.span_axis not in (0, 1, 2):
            raise ValueError(f"span_axis must be 0, 1 or 2, got {self.span_axis}")
        if self.q_ref is not None and self.q_ref <= 0:
            raise ValueError(f"q_ref must be positive, got {self.q_ref}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")

    @property
    def dynamic_pressure(self) -> float:
        """Reference dynamic pressure (Pa)."""
        if self.q_ref is not None:
            return self.q_ref
        return dynamic_pressure(self.density, self.reference_speed)

    @classmethod
    def from_yaml(cls, filepath: str) -> 'MonitorConfig':
        """Load monitor configuration from YAML file."""
        with open(filepath, 'r') as f:
            data = yaml.safe_load(f)

        return cls._from_dict(data or {})

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> 'MonitorConfig':
        """Create config from dictionary."""
        density = data.get('density')
        if density is None and 'altitude' in data:
            density = isa_density(data['altitude'])

        return cls(
            lift_direction=data.get('lift_direction', [0.0, 0.0, 1.0]),
            drag_direction=data.get('drag_direction', [1.0, 0.0, 0.0]),
            density=density if density is not None else 1.225,
            reference_speed=data.get('reference_speed', 1.0),
            q_ref=data.get('q_ref'),
            reference_area=data.get('reference_area', 1.0),
            span=data.get('span', 1.0),
            span_axis=data.get('span_axis', 1),
            tolerance=data.get('tolerance', 0.025),
            verbose=data.get('verbose', False)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            'lift_direction': self.lift_direction.tolist(),
            'drag_direction': self.drag_direction.tolist(),
            'density': float(self.density),
            'reference_speed': float(self.reference_speed),
            'q_ref': self.q_ref,
            'reference_area': float(self.reference_area),
            'span': float(self.span),
            'span_axis': self.span_axis,
            'tolerance': float(self.tolerance),
            'verbose': self.verbose,
        }

    def save_yaml(self, filepath: str):
        """Save configuration to YAML file."""
        with open(filepath, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


@dataclass
class ScenarioConfig:
    """
    Isolated planar wing test case.

    Defaults reproduce Bertin's 45° swept wing (Bertin, Aerodynamics for
    Engineers, Example 7.2) at the Weber & Brebner (1958) test conditions.
    """

    name: str = "Bertin's wing"

    # Experimental conditions
    speed: float = 163 * 0.3048       # V∞ (m/s)
    density: float = 9.093 / 10**1    # ρ (kg/m³)
    alpha_deg: float = 4.2            # angle of attack (deg)

    # Planform
    span: float = 98 * 0.0254         # b (m)
    aspect_ratio: float = 5.0
    taper_ratio: float = 1.0
    sweep_deg: float = 45.0           # quarter-chord sweep (deg)

    # Discretization
    n_panels: int = 4 * 2**4

    # Run length: time to travel two spans, split into nsteps
    nsteps: int = 200
    wake_spans: float = 2.0

    # Validation tolerance on CL (relative)
    tolerance: float = 0.025

    # Start-up time constant of the circulation, in convective times c/V∞
    ramp_chords: float = 1.0

    # Section lift-slope factor κ = a0 / (2π)
    section_lift_factor: float = 0.95

    def __post_init__(self):
        if self.n_panels < 2:
            raise ValueError(f"n_panels must be at least 2, got {self.n_panels}")
        if self.nsteps < 1:
            raise ValueError(f"nsteps must be at least 1, got {self.nsteps}")
        if self.speed <= 0 or self.density <= 0 or self.span <= 0 or self.aspect_ratio <= 0:
            raise ValueError("speed, density, span and aspect_ratio must be positive")
        if not 0 < self.taper_ratio <= 1:
            raise ValueError(f"taper_ratio must be in (0, 1], got {self.taper_ratio}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")
        if self.wake_spans <= 0:
            raise ValueError(f"wake_spans must be positive, got {self.wake_spans}")

    @property
    def alpha(self) -> float:
        """Angle of attack (rad)."""
        return np.deg2rad(self.alpha_deg)

    @property
    def reference_area(self) -> float:
        """S = b²/AR (m²)."""
        return self.span**2 / self.aspect_ratio

    @property
    def mean_chord(self) -> float:
        """S / b (m)."""
        return self.reference_area / self.span

    @property
    def q_inf(self) -> float:
        """Freestream dynamic pressure (Pa)."""
        return dynamic_pressure(self.density, self.speed)

    @property
    def total_time(self) -> float:
        """Simulated time (s)."""
        return self.wake_spans * self.span / self.speed

    @property
    def dt(self) -> float:
        """Timestep (s)."""
        return self.total_time / self.nsteps

    @classmethod
    def from_yaml(cls, filepath: str) -> 'ScenarioConfig':
        """Load scenario from YAML file."""
        with open(filepath, 'r') as f:
            data = yaml.safe_load(f)

        return cls(**(data or {}))

    def to_dict(self) -> Dict[str, Any]:
        """Convert scenario to dictionary for serialization."""
        return {
            'name': self.name,
            'speed': float(self.speed),
            'density': float(self.density),
            'alpha_deg': float(self.alpha_deg),
            'span': float(self.span),
            'aspect_ratio': float(self.aspect_ratio),
            'taper_ratio': float(self.taper_ratio),
            'sweep_deg': float(self.sweep_deg),
            'n_panels': self.n_panels,
            'nsteps': self.nsteps,
            'wake_spans': float(self.wake_spans),
            'tolerance': float(self.tolerance),
            'ramp_chords': float(self.ramp_chords),
            'section_lift_factor': float(self.section_lift_factor),
        }

    def save_yaml(self, filepath: str):
        """Save scenario to YAML file."""
        with open(filepath, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)
