"""
Validation Module

Compares monitored loads against reference (experimental) data.

Supports validation of:
- Integrated coefficients (CL, CD) against a relative tolerance
- Spanwise load distributions (Cl/CL, Cd/CD vs 2y/b) via error metrics

The lift error gates the verdict; the drag error is reported for
information only.
"""

import numpy as np
import warnings
from typing import Dict, Optional, Union, Mapping
from dataclasses import dataclass, field

from .coefficients import CoefficientSample


@dataclass
class ReferenceData:
    """
    Reference loads for a validation case.

    Distributions are optional; integrated CL and CD are required.
    """

    CL: float
    CD: float

    # Spanwise lift distribution: stations 2y/b and Cl/CL
    lift_positions: Optional[np.ndarray] = None
    ClCL: Optional[np.ndarray] = None

    # Spanwise drag distribution: stations 2y/b and Cd/CD
    drag_positions: Optional[np.ndarray] = None
    CdCD: Optional[np.ndarray] = None

    name: str = "reference"
    source: str = "unknown"

    def __post_init__(self):
        """Validate and convert to numpy arrays."""
        self.CL = float(self.CL)
        self.CD = float(self.CD)
        if self.CL == 0.0:
            raise ValueError("Reference CL must be non-zero")

        for pos_name, val_name in (('lift_positions', 'ClCL'), ('drag_positions', 'CdCD')):
            pos = getattr(self, pos_name)
            val = getattr(self, val_name)
            if (pos is None) != (val is None):
                raise ValueError(f"{pos_name} and {val_name} must be given together")
            if pos is None:
                continue
            pos = np.asarray(pos, dtype=np.float64)
            val = np.asarray(val, dtype=np.float64)
            if pos.shape != val.shape or pos.ndim != 1:
                raise ValueError(f"{pos_name} and {val_name} must be 1-D arrays of equal length")
            setattr(self, pos_name, pos)
            setattr(self, val_name, val)

    @classmethod
    def from_sectional(
        cls,
        positions: np.ndarray,
        Cl: np.ndarray,
        Cd: np.ndarray,
        CL: float,
        CD: float,
        **kwargs
    ) -> 'ReferenceData':
        """Build from sectional Cl, Cd tables, normalizing by CL and CD."""
        positions = np.asarray(positions, dtype=np.float64)
        return cls(
            CL=CL,
            CD=CD,
            lift_positions=positions,
            ClCL=np.asarray(Cl, dtype=np.float64) / CL,
            drag_positions=positions.copy(),
            CdCD=np.asarray(Cd, dtype=np.float64) / CD,
            **kwargs
        )

    @property
    def has_lift_distribution(self) -> bool:
        return self.ClCL is not None

    @property
    def has_drag_distribution(self) -> bool:
        return self.CdCD is not None


@dataclass
class ValidationMetrics:
    """Statistical metrics for validation comparison."""

    # Error metrics
    rmse: float  # Root Mean Square Error
    mae: float   # Mean Absolute Error
    max_error: float  # Maximum absolute error

    # Statistical measures
    correlation: float  # Pearson correlation coefficient
    r_squared: float   # R² coefficient of determination

    # Bias
    mean_bias: float  # Mean (sim - real)

    # Sample info
    n_points: int

    def __str__(self) -> str:
        return (
            f"Validation Metrics (n={self.n_points}):\n"
            f"  RMSE:        {self.rmse:.6f}\n"
            f"  MAE:         {self.mae:.6f}\n"
            f"  Max Error:   {self.max_error:.6f}\n"
            f"  Correlation: {self.correlation:.4f}\n"
            f"  R²:          {self.r_squared:.4f}\n"
            f"  Mean Bias:   {self.mean_bias:.6f}"
        )


@dataclass
class ValidationResult:
    """Final comparison of converged coefficients against reference."""

    passed: bool
    measured: Dict[str, float]
    reference: Dict[str, float]
    relative_error: Dict[str, float]
    tolerance: float

    # Drag check, informational only
    drag_passed: bool = False

    # Time of the sample used as converged (s)
    time: float = 0.0

    # Optional distribution metrics of the converged sample
    distribution_metrics: Dict[str, ValidationMetrics] = field(default_factory=dict)

    def __str__(self) -> str:
        return format_results_table(self)


def relative_error(measured: float, reference: float) -> float:
    """|measured - reference| / |reference|; inf for a zero reference unless both are zero."""
    if reference == 0.0:
        return 0.0 if measured == 0.0 else float('inf')
    return abs(measured - reference) / abs(reference)


def compute_metrics(real: np.ndarray, sim: np.ndarray) -> ValidationMetrics:
    """
    Compute validation metrics between reference and simulated data.

    Args:
        real: Reference (measured) values
        sim: Simulated values

    Returns:
        ValidationMetrics object
    """
    real = np.asarray(real, dtype=np.float64)
    sim = np.asarray(sim, dtype=np.float64)

    # Ensure arrays are same length
    if len(real) != len(sim):
        raise ValueError(f"Array length mismatch: real={len(real)}, sim={len(sim)}")

    # Remove any NaN/inf values
    valid_mask = np.isfinite(real) & np.isfinite(sim)
    real = real[valid_mask]
    sim = sim[valid_mask]

    if len(real) == 0:
        raise ValueError("No valid data points after filtering NaN/inf")

    errors = sim - real

    rmse = np.sqrt(np.mean(errors**2))
    mae = np.mean(np.abs(errors))
    max_error = np.max(np.abs(errors))
    mean_bias = np.mean(errors)

    if np.std(real) > 1e-10 and np.std(sim) > 1e-10:
        correlation = np.corrcoef(real, sim)[0, 1]

        ss_res = np.sum(errors**2)
        ss_tot = np.sum((real - np.mean(real))**2)
        r_squared = 1 - (ss_res / ss_tot) if ss_tot > 1e-10 else 0.0
    else:
        # Constant data - perfect if equal, else terrible
        correlation = 1.0 if rmse < 1e-10 else 0.0
        r_squared = correlation

    return ValidationMetrics(
        rmse=float(rmse),
        mae=float(mae),
        max_error=float(max_error),
        correlation=float(correlation),
        r_squared=float(r_squared),
        mean_bias=float(mean_bias),
        n_points=len(real)
    )


def compare_distribution(
    sample: CoefficientSample,
    reference: ReferenceData,
    quantity: str = 'ClCL'
) -> ValidationMetrics:
    """
    Compare a simulated spanwise distribution with reference stations.

    The simulated distribution is interpolated at the reference 2y/b
    stations that fall inside the simulated range.

    Args:
        sample: Sample with span_positions and distributions
        reference: Reference data
        quantity: 'ClCL' or 'CdCD'

    Returns:
        ValidationMetrics
    """
    from scipy.interpolate import interp1d

    if quantity == 'ClCL':
        ref_pos, ref_val = reference.lift_positions, reference.ClCL
    elif quantity == 'CdCD':
        ref_pos, ref_val = reference.drag_positions, reference.CdCD
    else:
        raise ValueError(f"Unknown distribution: {quantity}")

    if ref_pos is None:
        raise ValueError(f"Reference data has no {quantity} distribution")

    sim_val = getattr(sample, quantity)
    if sim_val is None or sample.span_positions is None:
        raise ValueError(f"Sample at t={sample.time:.4f}s has no {quantity} distribution")

    # Reference tables are given on the half span 0 <= 2y/b <= 1;
    # mirrored panels of a full-span wing are averaged per station
    sim_pos, inverse = np.unique(np.round(np.abs(sample.span_positions), 12), return_inverse=True)
    sim_val = np.bincount(inverse, weights=sim_val) / np.bincount(inverse)
    if len(sim_pos) < 2:
        raise ValueError("Need at least two distinct simulated stations to interpolate")

    overlap_mask = (ref_pos >= sim_pos.min()) & (ref_pos <= sim_pos.max())
    if np.sum(overlap_mask) < 2:
        raise ValueError(
            f"Insufficient overlap in 2y/b. Reference: [{ref_pos.min():.3f}, {ref_pos.max():.3f}], "
            f"Sim: [{sim_pos.min():.3f}, {sim_pos.max():.3f}]"
        )

    interp_func = interp1d(sim_pos, sim_val, bounds_error=False, fill_value='extrapolate')
    return compute_metrics(ref_val[overlap_mask], interp_func(ref_pos[overlap_mask]))


def compare_coefficients(
    sample: CoefficientSample,
    reference: Union[ReferenceData, Mapping[str, float]],
    tolerance: float
) -> ValidationResult:
    """
    Verdict for a converged sample.

    passed = |CL - CL_ref| / |CL_ref| < tolerance. The drag error is
    computed and reported but does not affect passed.

    Args:
        sample: Converged coefficient sample
        reference: ReferenceData or mapping with 'CL' and 'CD'
        tolerance: Relative tolerance (e.g. 0.025)

    Returns:
        ValidationResult
    """
    if tolerance <= 0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")

    if isinstance(reference, ReferenceData):
        ref = {'CL': reference.CL, 'CD': reference.CD}
    else:
        ref = {'CL': float(reference['CL']), 'CD': float(reference['CD'])}

    measured = {'CL': sample.CL, 'CD': sample.CD}
    errors = {
        'CL': relative_error(measured['CL'], ref['CL']),
        'CD': relative_error(measured['CD'], ref['CD']),
    }

    metrics = {}
    if isinstance(reference, ReferenceData) and sample.has_distribution:
        for quantity, available in (('ClCL', reference.has_lift_distribution),
                                    ('CdCD', reference.has_drag_distribution)):
            if not available:
                continue
            try:
                metrics[quantity] = compare_distribution(sample, reference, quantity)
            except ValueError as e:
                warnings.warn(f"Could not compare {quantity} distribution: {e}")

    return ValidationResult(
        passed=bool(errors['CL'] < tolerance),
        measured=measured,
        reference=ref,
        relative_error=errors,
        tolerance=tolerance,
        drag_passed=bool(errors['CD'] < tolerance),
        time=sample.time,
        distribution_metrics=metrics
    )


def format_results_table(result: ValidationResult, indent: str = "") -> str:
    """
    Results table: PARAMETER / Experimental / Simulation / Error %.
    """
    lines = [
        f"{indent}{'PARAMETER':>10s}\t{'Experimental':<11s}\t{'Simulation':<11s}\t{'Error %':<11s}"
    ]
    for name in ('CL', 'CD'):
        lines.append(
            f"{indent}{name:>10s}\t{result.reference[name]:11.5e}\t"
            f"{result.measured[name]:11.5e}\t{100*result.relative_error[name]:11.5e}"
        )
    lines.append(f"{indent}TEST RESULT:\t{result.passed}")
    return "\n".join(lines)


def generate_validation_report(
    result: ValidationResult,
    case_name: str = "",
    output_file: Optional[str] = None
) -> str:
    """
    Generate a text validation report.

    Args:
        result: Validation result
        case_name: Case title for the header
        output_file: Optional path to save report

    Returns:
        Report string
    """
    report_lines = [
        "="*70,
        "LOADS VALIDATION REPORT",
        "="*70,
        ""
    ]

    if case_name:
        report_lines.append(f"Case: {case_name}")
    report_lines.extend([
        f"Converged sample time: {result.time:.6f} s",
        f"Tolerance: {100*result.tolerance:.2f} %",
        "",
        format_results_table(result),
        "",
        f"Drag check (informational): {'PASS' if result.drag_passed else 'FAIL'}",
        ""
    ])

    for name, metrics in result.distribution_metrics.items():
        report_lines.extend([
            f"--- {name} distribution ---",
            str(metrics),
            ""
        ])

    report_lines.extend([
        "="*70,
        f"Overall Status: {'✓ PASS' if result.passed else '✗ FAIL'}",
        ""
    ])

    report = "\n".join(report_lines)

    if output_file:
        with open(output_file, 'w') as f:
            f.write(report)
        print(f"Report saved to {output_file}")

    return report
