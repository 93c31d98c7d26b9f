"""
Environment Model

Provides the freestream velocity field and flow reference quantities:
- Freestream: uniform velocity plus an optional discrete 1-cosine gust,
  callable as (position, time) -> velocity
- Dynamic pressure
- Air density from the International Standard Atmosphere (ISA 1976)
  troposphere, for cases specified by altitude
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Callable


# ISA Constants at sea level
ISA_T0 = 288.15      # Temperature (K)
ISA_P0 = 101325.0    # Pressure (Pa)
ISA_G0 = 9.80665     # Standard gravity (m/s²)
ISA_R = 287.05       # Specific gas constant for air (J/(kg·K))

# Lapse rate in troposphere (K/m)
ISA_LAPSE_RATE = 0.0065

# Tropopause altitude (m)
ISA_TROPOPAUSE = 11000.0


FreestreamField = Callable[[np.ndarray, float], np.ndarray]


def isa_density(altitude: float) -> float:
    """
    Air density from the ISA 1976 troposphere model.

    Args:
        altitude: Geometric altitude above sea level (m), 0 to 11 km

    Returns:
        Density (kg/m³)
    """
    if altitude < 0.0 or altitude > ISA_TROPOPAUSE:
        raise ValueError(f"altitude must be within [0, {ISA_TROPOPAUSE:.0f}] m, got {altitude}")

    T = ISA_T0 - ISA_LAPSE_RATE * altitude
    P = ISA_P0 * (T / ISA_T0) ** (ISA_G0 / (ISA_LAPSE_RATE * ISA_R))
    return P / (ISA_R * T)


def dynamic_pressure(density: float, speed: float) -> float:
    """Reference dynamic pressure 0.5*rho*V² (Pa)."""
    if density <= 0:
        raise ValueError(f"density must be positive, got {density}")
    return 0.5 * density * speed**2


@dataclass
class Freestream:
    """
    Freestream velocity field.

    Steady uniform velocity plus an optional discrete gust with a
    1-cosine time profile. Evaluation has no side effects, so the field can
    be queried any number of times per step.
    """

    # Uniform velocity (m/s)
    velocity: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))

    # Peak gust velocity (m/s) and its time window (s)
    gust_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    gust_start: float = 0.0
    gust_duration: float = 0.0

    def __post_init__(self):
        self.velocity = np.asarray(self.velocity, dtype=np.float64)
        self.gust_velocity = np.asarray(self.gust_velocity, dtype=np.float64)
        if self.velocity.shape != (3,) or self.gust_velocity.shape != (3,):
            raise ValueError("velocity and gust_velocity must be 3-vectors")
        if self.gust_duration < 0:
            raise ValueError(f"gust_duration must be non-negative, got {self.gust_duration}")

    @classmethod
    def from_angles(cls, speed: float, alpha: float, beta: float = 0.0) -> 'Freestream':
        """
        Uniform freestream at angle of attack and sideslip.

        Args:
            speed: Freestream magnitude (m/s)
            alpha: Angle of attack (rad)
            beta: Sideslip angle (rad)
        """
        ca, sa = np.cos(alpha), np.sin(alpha)
        cb, sb = np.cos(beta), np.sin(beta)
        return cls(velocity=speed * np.array([ca*cb, sb, sa*cb]))

    @property
    def speed(self) -> float:
        """Magnitude of the uniform part (m/s)."""
        return float(np.linalg.norm(self.velocity))

    def __call__(self, position: np.ndarray, time: float) -> np.ndarray:
        """
        Velocity at a point and time.

        Args:
            position: Point in the reference frame (m), unused by a uniform field
            time: Simulation time (s)

        Returns:
            Velocity (m/s)
        """
        v = self.velocity.copy()

        if self.gust_duration > 0:
            elapsed = time - self.gust_start
            if 0.0 <= elapsed <= self.gust_duration:
                gust_fraction = 0.5 * (1 - np.cos(2 * np.pi * elapsed / self.gust_duration))
                v += self.gust_velocity * gust_fraction

        return v
