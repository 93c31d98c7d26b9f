"""
Wing Loads Monitor

Unsteady force decomposition and validation monitoring for lifting-surface
simulations: per-panel Kutta-Joukowski and unsteady forces, lift/drag
decomposition in arbitrary reference directions, spanwise coefficient
distributions, and a pass/fail check against experimental data.
"""

__version__ = "0.1.0"

# Core monitoring modules
from .frames import DirectionBasis, DegenerateBasisError, decompose, lift_drag_directions
from .state import PanelGeometry, StateSnapshot, PanelForces
from .environment import Freestream, isa_density, dynamic_pressure
from .forces import PanelCountMismatchError, effective_velocity, steady_forces, unsteady_forces, evaluate
from .coefficients import CoefficientSample, ZeroReferenceLoadError, aggregate
from .config import MonitorConfig, ScenarioConfig
from .monitor import ValidationMonitor, MonitorState, InvalidStateError

# Validation modules
from .validation import (
    ReferenceData,
    ValidationMetrics,
    ValidationResult,
    compute_metrics,
    compare_coefficients,
    compare_distribution,
    format_results_table,
    generate_validation_report
)

from .data_import import (
    load_reference_csv,
    load_reference_yaml
)

from .data_export import (
    export_history_csv,
    export_distribution_csv,
    export_json
)

from .scenarios import (
    EllipticWingProvider,
    weber_reference,
    run_monitor,
    run_bertin_case,
    run_bertin_kinematic_case
)
