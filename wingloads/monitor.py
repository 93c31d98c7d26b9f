"""
Validation Monitor

Stateful per-timestep load monitor driven by an outer solver loop:
- Retains exactly one previous StateSnapshot for the unsteady term
- Evaluates panel forces and coefficients every step
- Accumulates an append-only CoefficientSample history
- Produces a pass/fail verdict against reference data on finalize()

State machine: UNINITIALIZED -> RUNNING -> FINALIZED (terminal).
"""

import numpy as np
import pandas as pd
import warnings
from typing import Optional, List, Tuple, Union, Mapping
from enum import Enum, auto

from .config import MonitorConfig
from .environment import FreestreamField
from .frames import DirectionBasis
from .state import StateSnapshot, PanelForces
from .forces import evaluate
from .coefficients import CoefficientSample, ZeroReferenceLoadError, aggregate
from .validation import (
    ReferenceData,
    ValidationMetrics,
    ValidationResult,
    compare_coefficients,
    compare_distribution
)


class InvalidStateError(RuntimeError):
    """Monitor method called in a state that does not allow it."""


class MonitorState(Enum):
    """Lifecycle of a ValidationMonitor."""
    UNINITIALIZED = auto()
    RUNNING = auto()
    FINALIZED = auto()


class ValidationMonitor:
    """
    Per-timestep load monitor.

    The outer loop calls step() once per timestep and finalize() once at
    the end. The monitor never asks the loop to stop: step() always
    returns True. Not reentrant; one writer per instance.

    Snapshots passed to step() are retained by reference until the next
    step, so callers must pass snapshots they will not mutate
    (StateSnapshot.capture() copies solver arrays).
    """

    def __init__(
        self,
        config: MonitorConfig,
        freestream: FreestreamField,
        reference: Optional[ReferenceData] = None
    ):
        self.config = config
        self.freestream = freestream
        self.reference = reference
        self.basis = DirectionBasis(config.lift_direction, config.drag_direction)

        self._state = MonitorState.UNINITIALIZED
        self._previous: Optional[StateSnapshot] = None
        self._history: List[CoefficientSample] = []

        # Per-step distribution metrics against the reference, if any
        self._distribution_history: List[dict] = []

        # Latest panel forces (for inspection/plotting)
        self.last_forces: Optional[PanelForces] = None

        self._last_time: Optional[float] = None
        self._warned_zero_load = False

    def reset(self):
        """Return to UNINITIALIZED and drop all retained state and history."""
        self._state = MonitorState.UNINITIALIZED
        self._previous = None
        self._history = []
        self._distribution_history = []
        self.last_forces = None
        self._last_time = None
        self._warned_zero_load = False

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def previous(self) -> Optional[StateSnapshot]:
        """Snapshot retained for the next step's unsteady term."""
        return self._previous

    @property
    def history(self) -> Tuple[CoefficientSample, ...]:
        """Coefficient samples in call order (read-only view)."""
        return tuple(self._history)

    @property
    def distribution_history(self) -> Tuple[dict, ...]:
        """Per-step {'time', 'ClCL', 'CdCD'} ValidationMetrics, when a reference is attached."""
        return tuple(self._distribution_history)

    def step(self, current: StateSnapshot, sim_time: float, dt: float) -> bool:
        """
        Advance the monitor by one timestep.

        Everything is computed before any state is touched, so a step that
        raises leaves the retained snapshot and history unchanged.

        Args:
            current: State at this timestep
            sim_time: Simulation time (s), non-decreasing across calls
            dt: Time since the previous step (s)

        Returns:
            True (continue); termination belongs to the outer loop

        Raises:
            InvalidStateError: if called after finalize()
            PanelCountMismatchError: if the panel count changed
        """
        if self._state is MonitorState.FINALIZED:
            raise InvalidStateError("step() called after finalize()")

        if self._last_time is not None and sim_time < self._last_time:
            warnings.warn(
                f"Simulation time went backwards: {sim_time} < {self._last_time}",
                RuntimeWarning
            )

        cfg = self.config
        previous = self._previous if self._state is MonitorState.RUNNING else None

        forces = evaluate(current, previous, self.freestream, dt, cfg.density)
        sample = self._aggregate(forces, current, sim_time)
        dist_metrics = self._compare_distributions(sample)

        # === COMMIT ===
        self._history.append(sample)
        if dist_metrics is not None:
            self._distribution_history.append(dist_metrics)
        self._previous = current
        self.last_forces = forces
        self._last_time = sim_time
        self._state = MonitorState.RUNNING

        if cfg.verbose:
            print(self.get_diagnostic_string())

        return True

    def _aggregate(
        self,
        forces: PanelForces,
        current: StateSnapshot,
        sim_time: float
    ) -> CoefficientSample:
        """Coefficients for this step, skipping distributions on a zero integrated load."""
        cfg = self.config
        kwargs = dict(
            basis=self.basis,
            dynamic_pressure=cfg.dynamic_pressure,
            reference_area=cfg.reference_area,
            span=cfg.span,
            time=sim_time,
            span_positions=current.span_positions(cfg.span, cfg.span_axis)
        )

        try:
            return aggregate(forces, **kwargs)
        except ZeroReferenceLoadError as e:
            if not self._warned_zero_load:
                warnings.warn(
                    f"Skipping spanwise distributions at t={sim_time}: {e}",
                    RuntimeWarning
                )
                self._warned_zero_load = True
            return aggregate(forces, distribution=False, **kwargs)

    def _compare_distributions(self, sample: CoefficientSample) -> Optional[dict]:
        """Distribution metrics for this step against the attached reference."""
        ref = self.reference
        if ref is None or not sample.has_distribution:
            return None

        record = {'time': sample.time}
        try:
            if ref.has_lift_distribution:
                record['ClCL'] = compare_distribution(sample, ref, 'ClCL')
            if ref.has_drag_distribution:
                record['CdCD'] = compare_distribution(sample, ref, 'CdCD')
        except ValueError as e:
            warnings.warn(f"Distribution comparison skipped at t={sample.time}: {e}", RuntimeWarning)
            return None
        return record

    def finalize(
        self,
        reference: Optional[Union[ReferenceData, Mapping[str, float]]] = None,
        tolerance: Optional[float] = None
    ) -> ValidationResult:
        """
        Compare the converged (last) sample with reference values.

        passed = |CL - CL_ref| / CL_ref < tolerance; the drag error is
        reported but never gates the verdict.

        Args:
            reference: ReferenceData or {'CL': .., 'CD': ..};
                defaults to the reference given at construction
            tolerance: Relative tolerance, defaults to config.tolerance

        Returns:
            ValidationResult

        Raises:
            InvalidStateError: before any step, or if already finalized
        """
        if self._state is MonitorState.FINALIZED:
            raise InvalidStateError("finalize() called twice")
        if self._state is MonitorState.UNINITIALIZED or not self._history:
            raise InvalidStateError("finalize() called before any step()")

        if reference is None:
            reference = self.reference
        if reference is None:
            raise ValueError("No reference data given to finalize() or at construction")

        if tolerance is None:
            tolerance = self.config.tolerance

        result = compare_coefficients(self._history[-1], reference, tolerance)

        self._state = MonitorState.FINALIZED
        return result

    def history_dataframe(self) -> pd.DataFrame:
        """Integrated coefficient history, one row per step."""
        return pd.DataFrame(
            [s.to_dict() for s in self._history],
            columns=['time', 'CL', 'CD', 'CS', 'lift_N', 'drag_N', 'side_N']
        )

    def get_diagnostic_string(self) -> str:
        """Formatted one-line summary of the latest step."""
        if not self._history:
            return f"[{self._state.name}] no samples"

        s = self._history[-1]
        status = ""
        if self._distribution_history and self._distribution_history[-1]['time'] == s.time:
            metrics: ValidationMetrics = self._distribution_history[-1].get('ClCL')
            if metrics is not None:
                status = f" | Cl/CL RMSE={metrics.rmse:.4f}"

        unsteady = 0.0
        if self.last_forces is not None:
            unsteady = float(np.linalg.norm(self.last_forces.unsteady.sum(axis=0)))

        return (
            f"step {len(self._history):4d} | "
            f"t={s.time:.5f}s | "
            f"CL={s.CL:.5f} CD={s.CD:.6f} CS={s.CS:.2e} | "
            f"|F_unsteady|={unsteady:.3e}N"
            f"{status}"
        )
