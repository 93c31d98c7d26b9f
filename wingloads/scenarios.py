"""
Validation Scenarios

Reference test case for the load monitor: Bertin's planar 45° swept wing
(Bertin, Aerodynamics for Engineers, Example 7.2) validated against the
low-speed tests of Weber & Brebner (1958), Tables 3 and 4.

The lattice/particle solver is not part of this package. To drive the
monitor end to end, EllipticWingProvider stands in for it with a
prescribed lifting-line solution:
- Elliptic circulation sized by the Helmbold/Anderson swept-wing lift slope
- Uniform induced downwash w = Γ0 / (2b), which yields CDi = CL²/(π AR)
- Start-up from half the steady circulation, relaxing exponentially,
  so the unsteady term is exercised during the first convective times

The case runs in two frames. The fixed-wing case holds the wing still in a
uniform freestream at angle of attack. The kinematic case pitches the wing
by alpha and flies it at -V∞ x through still air, so the relative flow
reaches the panels only through their kinematic velocity. Its freestream
is the impulsive start V∞ x at t = 0 and vanishes afterwards.
"""

import numpy as np
from typing import Callable, Optional, Tuple

from .config import MonitorConfig, ScenarioConfig
from .environment import Freestream
from .frames import lift_drag_directions
from .state import StateSnapshot
from .monitor import ValidationMonitor
from .validation import ReferenceData, ValidationResult, format_results_table


# Weber & Brebner (1958), Table 3: spanwise stations 2y/b
WEBER_2YB = np.array([0.0, 0.041, 0.082, 0.163, 0.245, 0.367, 0.510, 0.653, 0.898, 0.949])

# Sectional lift and drag coefficients at alpha = 4.2°
WEBER_CL_SECTION = np.array([0.235, 0.241, 0.248, 0.253, 0.251, 0.251, 0.251, 0.246, 0.192, 0.171])
WEBER_CD_SECTION = np.array([0.059, 0.025, 0.016, 0.009, 0.007, 0.006, 0.006, 0.004, -0.002, -0.007])

# Table 4: integrated coefficients
WEBER_CL = 0.238
WEBER_CD = 0.005

# Residual still-air velocity after the impulsive start (m/s)
STILL_AIR = 1e-12


def weber_reference() -> ReferenceData:
    """Weber & Brebner swept-wing reference data (CL, CD, Cl/CL, Cd/CD)."""
    return ReferenceData.from_sectional(
        WEBER_2YB,
        WEBER_CL_SECTION,
        WEBER_CD_SECTION,
        CL=WEBER_CL,
        CD=WEBER_CD,
        name="Weber & Brebner 45° swept wing",
        source="Weber and Brebner (1958), Low-speed tests on 45-deg swept-back wings, part I, Tables 3-4"
    )


def swept_wing_lift_slope(
    aspect_ratio: float,
    sweep_half_chord: float,
    section_lift_factor: float = 1.0,
    mach: float = 0.0
) -> float:
    """
    Finite swept-wing lift-curve slope (per rad), Helmbold/DATCOM form.

    a = 2π AR / (2 + sqrt(AR² β² / κ² (1 + tan²Λc/2 / β²) + 4))

    Args:
        aspect_ratio: AR
        sweep_half_chord: Half-chord sweep (rad)
        section_lift_factor: κ = a0 / (2π)
        mach: Freestream Mach number
    """
    beta_sq = 1.0 - mach**2
    if beta_sq <= 0:
        raise ValueError(f"Formula is only valid for subsonic Mach, got {mach}")
    tan_sq = np.tan(sweep_half_chord)**2
    kappa = section_lift_factor
    return (2 * np.pi * aspect_ratio) / (
        2 + np.sqrt(aspect_ratio**2 * beta_sq / kappa**2 * (1 + tan_sq / beta_sq) + 4)
    )


def pitch_matrix(theta: float) -> np.ndarray:
    """Nose-up rotation about y by theta (rad), x aft and z up."""
    c, s = np.cos(theta), np.sin(theta)
    return np.array([
        [c, 0.0, s],
        [0.0, 1.0, 0.0],
        [-s, 0.0, c]
    ])


def impulsive_freestream(speed: float) -> Callable[[np.ndarray, float], np.ndarray]:
    """V∞ x at t = 0 and still air afterwards."""
    def field(position: np.ndarray, time: float) -> np.ndarray:
        if time == 0:
            return np.array([speed, 0.0, 0.0])
        return np.full(3, STILL_AIR)
    return field


def _elliptic_integral(eta: np.ndarray) -> np.ndarray:
    """Antiderivative of sqrt(1 - η²)."""
    eta = np.clip(eta, -1.0, 1.0)
    return 0.5 * (eta * np.sqrt(1 - eta**2) + np.arcsin(eta))


class EllipticWingProvider:
    """
    Prescribed-loading stand-in for the lifting-surface solver.

    Panels are uniform in span, bound vortices lie on the swept
    quarter-chord line and control points at three-quarter chord, in a
    frame with x aft, y to starboard and z up. Each call to snapshot(t)
    builds a fresh StateSnapshot.

    With kinematic=True the geometry is pitched nose-up by alpha and every
    panel carries a kinematic velocity of V∞ x, the air velocity seen by a
    wing flying at -V∞ x. Lift and drag then lie along z and x.
    """

    def __init__(self, config: ScenarioConfig, kinematic: bool = False):
        self.config = config
        self.kinematic = kinematic
        cfg = config
        b = cfg.span
        n = cfg.n_panels

        # Spanwise edges and planform
        y_edges = np.linspace(-b/2, b/2, n + 1)
        y_mid = 0.5 * (y_edges[:-1] + y_edges[1:])
        self.span_width = np.diff(y_edges)

        c_root = 2 * cfg.reference_area / (b * (1 + cfg.taper_ratio))
        self.chord = c_root * (1 - (1 - cfg.taper_ratio) * np.abs(2 * y_mid / b))

        tan_sweep = np.tan(np.deg2rad(cfg.sweep_deg))
        x_edges = np.abs(y_edges) * tan_sweep

        self.bound_vector = np.column_stack([
            np.diff(x_edges),
            self.span_width,
            np.zeros(n)
        ])
        self.control_point = np.column_stack([
            0.5 * (x_edges[:-1] + x_edges[1:]) + 0.5 * self.chord,
            y_mid,
            np.zeros(n)
        ])
        self.normal = np.tile([0.0, 0.0, 1.0], (n, 1))
        self.area = self.chord * self.span_width

        self.kinematic_velocity = None
        if kinematic:
            pitch = pitch_matrix(cfg.alpha)
            self.bound_vector = self.bound_vector @ pitch.T
            self.control_point = self.control_point @ pitch.T
            self.normal = self.normal @ pitch.T
            self.kinematic_velocity = np.tile([cfg.speed, 0.0, 0.0], (n, 1))

        # Steady loading
        sweep_half_chord = np.arctan(
            tan_sweep - (4 / cfg.aspect_ratio) * 0.25 * (1 - cfg.taper_ratio) / (1 + cfg.taper_ratio)
        )
        self.lift_slope = swept_wing_lift_slope(
            cfg.aspect_ratio, sweep_half_chord, cfg.section_lift_factor
        )
        self.CL_target = self.lift_slope * cfg.alpha
        self.gamma0 = 2 * self.CL_target * cfg.speed * cfg.reference_area / (np.pi * b)

        # Panel-averaged elliptic shape
        eta = 2 * y_edges / b
        self.shape = np.diff(_elliptic_integral(eta)) / np.diff(eta)

        self.lift_direction, self.drag_direction = lift_drag_directions(
            0.0 if kinematic else cfg.alpha
        )
        self.tau = cfg.ramp_chords * cfg.mean_chord / cfg.speed

    def ramp(self, time: float) -> float:
        """Fraction of the steady circulation reached at time t."""
        return 1.0 - 0.5 * np.exp(-time / self.tau)

    def snapshot(self, time: float) -> StateSnapshot:
        """Lifting-surface state at time t."""
        gamma0 = self.gamma0 * self.ramp(time)
        downwash = gamma0 / (2 * self.config.span)
        induced = np.tile(-downwash * self.lift_direction, (self.config.n_panels, 1))

        return StateSnapshot.capture(
            circulation=gamma0 * self.shape,
            bound_vector=self.bound_vector,
            control_point=self.control_point,
            normal=self.normal,
            area=self.area,
            time=time,
            span_width=self.span_width,
            induced_velocity=induced,
            kinematic_velocity=self.kinematic_velocity
        )


def monitor_config_for(
    config: ScenarioConfig,
    verbose: bool = False,
    kinematic: bool = False
) -> MonitorConfig:
    """Monitor reference quantities for a scenario (stability axes, q∞, S, b, tolerance)."""
    # A pitched wing flying along -x sees the relative wind along +x
    lift_dir, drag_dir = lift_drag_directions(0.0 if kinematic else config.alpha)
    return MonitorConfig(
        lift_direction=lift_dir,
        drag_direction=drag_dir,
        density=config.density,
        reference_speed=config.speed,
        reference_area=config.reference_area,
        span=config.span,
        span_axis=1,
        tolerance=config.tolerance,
        verbose=verbose
    )


def run_monitor(
    provider: EllipticWingProvider,
    monitor: ValidationMonitor,
    nsteps: int,
    dt: float,
    first_step: int = 0
) -> int:
    """
    Outer driver loop: one monitor step per timestep, t = first_step*dt, ..., nsteps*dt.

    Args:
        provider: Source of StateSnapshots
        monitor: Monitor to drive
        nsteps: Index of the last timestep
        dt: Timestep (s)
        first_step: Index of the first monitored timestep; the kinematic
            case starts at 1 so the impulsive start is not monitored

    Returns:
        Number of steps taken
    """
    steps = 0
    for k in range(first_step, nsteps + 1):
        t = k * dt
        steps += 1
        if not monitor.step(provider.snapshot(t), t, dt):
            break
    return steps


def run_bertin_case(
    config: Optional[ScenarioConfig] = None,
    tolerance: Optional[float] = None,
    reference: Optional[ReferenceData] = None,
    verbose: bool = True,
    verbose_steps: bool = False,
    v_lvl: int = 1,
    kinematic: bool = False
) -> Tuple[ValidationResult, ValidationMonitor]:
    """
    Run the swept-wing validation case end to end.

    Args:
        config: Scenario (defaults to Bertin's wing)
        tolerance: Relative CL tolerance, defaults to config.tolerance
        reference: Reference data, defaults to weber_reference()
        verbose: Print progress and the results table
        verbose_steps: Print a diagnostic line every step
        v_lvl: Indentation level of printed output
        kinematic: Fly the pitched wing through still air instead of
            holding it in a uniform freestream

    Returns:
        (ValidationResult, ValidationMonitor)
    """
    config = config or ScenarioConfig()
    tolerance = config.tolerance if tolerance is None else tolerance
    t = "\t" * (v_lvl + 1)

    if verbose:
        print("\t" * v_lvl + f"Running {config.name} test...")
        print(t + "Generating geometry...")

    provider = EllipticWingProvider(config, kinematic=kinematic)
    if kinematic:
        freestream = impulsive_freestream(config.speed)
    else:
        freestream = Freestream.from_angles(config.speed, config.alpha)
    reference = reference if reference is not None else weber_reference()
    monitor = ValidationMonitor(
        monitor_config_for(config, verbose=verbose_steps, kinematic=kinematic),
        freestream,
        reference=reference
    )

    if verbose:
        print(t + f"Panels:\t\t\t{config.n_panels}")
        print(t + f"Time step translation:\t{round(config.speed * config.dt / config.span, 3)}*b")
        print(t + f"Lift slope:\t\t{provider.lift_slope:.4f} /rad")
        print(t + "Running simulation...")

    run_monitor(provider, monitor, config.nsteps, config.dt, first_step=1 if kinematic else 0)

    if verbose:
        print(t + "Postprocessing...")

    result = monitor.finalize(reference, tolerance)

    if verbose:
        print(format_results_table(result, indent=t))

    return result, monitor


def run_bertin_kinematic_case(
    config: Optional[ScenarioConfig] = None,
    tolerance: Optional[float] = None,
    reference: Optional[ReferenceData] = None,
    verbose: bool = True,
    verbose_steps: bool = False,
    v_lvl: int = 1
) -> Tuple[ValidationResult, ValidationMonitor]:
    """
    Swept-wing case with the wing moving through still air.

    The wing is pitched by alpha and translates at -V∞ x. The monitor
    skips the impulsive start at t = 0, so the first monitored step has
    no unsteady term. Defaults to 150 timesteps.

    Returns:
        (ValidationResult, ValidationMonitor)
    """
    config = config or ScenarioConfig(nsteps=150)
    return run_bertin_case(
        config,
        tolerance=tolerance,
        reference=reference,
        verbose=verbose,
        verbose_steps=verbose_steps,
        v_lvl=v_lvl,
        kinematic=True
    )
