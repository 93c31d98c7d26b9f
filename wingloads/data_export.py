"""
Data Export Module

Export monitor data in standardized formats for analysis:
- Coefficient history CSV with metadata header
- Spanwise distribution CSV of a single sample
- JSON with configuration, verdict and history
"""

import numpy as np
import pandas as pd
import json
from typing import Dict, List, Optional, Any
from datetime import datetime

from .coefficients import CoefficientSample
from .validation import ValidationResult


def export_history_csv(
    history: List[CoefficientSample],
    filename: str,
    metadata: Optional[Dict[str, Any]] = None
) -> None:
    """
    Export the integrated coefficient history, one row per step.

    Columns: time_s, CL, CD, CS, lift_N, drag_N, side_N

    Args:
        history: Monitor history
        filename: Output filename
        metadata: Optional metadata dictionary for header
    """
    if not history:
        raise ValueError("History is empty")

    df = pd.DataFrame([s.to_dict() for s in history]).rename(columns={'time': 'time_s'})

    with open(filename, 'w') as f:
        f.write("# Load Monitor Coefficient History\n")
        f.write(f"# Generated: {datetime.now().isoformat()}\n")

        if metadata:
            for key, value in metadata.items():
                f.write(f"# {key}: {value}\n")

        f.write("#\n")
        f.write("# Units:\n")
        f.write("#   Time: seconds (s)\n")
        f.write("#   Forces: Newtons (N)\n")
        f.write("#   Coefficients: dimensionless\n")
        f.write("#\n")

        df.to_csv(f, index=False)

    print(f"Exported {len(df)} records to {filename}")


def export_distribution_csv(
    sample: CoefficientSample,
    filename: str,
    metadata: Optional[Dict[str, Any]] = None
) -> None:
    """
    Export the spanwise distribution of one sample, sorted by 2y/b.

    Args:
        sample: Coefficient sample with distributions
        filename: Output filename
        metadata: Optional metadata
    """
    if not sample.has_distribution or sample.span_positions is None:
        raise ValueError(f"Sample at t={sample.time} has no spanwise distribution")

    df = pd.DataFrame({
        '2y/b': sample.span_positions,
        'Cl/CL': sample.ClCL,
        'Cd/CD': sample.CdCD
    }).sort_values('2y/b')

    with open(filename, 'w') as f:
        f.write("# Spanwise Load Distribution\n")
        f.write(f"# time: {sample.time}\n")
        f.write(f"# CL: {sample.CL}\n")
        f.write(f"# CD: {sample.CD}\n")

        if metadata:
            for key, value in metadata.items():
                f.write(f"# {key}: {value}\n")

        f.write("#\n")

        df.to_csv(f, index=False)

    print(f"Exported distribution ({len(df)} panels) to {filename}")


def export_json(
    history: List[CoefficientSample],
    filename: str,
    result: Optional[ValidationResult] = None,
    metadata: Optional[Dict] = None
) -> None:
    """
    Export to JSON for further processing.

    Args:
        history: Monitor history
        filename: Output filename
        result: Final verdict, if available
        metadata: Optional metadata (e.g. configuration dictionaries)
    """
    output = {
        'metadata': metadata or {},
        'generated': datetime.now().isoformat(),
        'n_points': len(history),
        'result': None,
        'data': [s.to_dict() for s in history]
    }

    if result is not None:
        output['result'] = {
            'passed': result.passed,
            'drag_passed': result.drag_passed,
            'tolerance': result.tolerance,
            'time': result.time,
            'measured': result.measured,
            'reference': result.reference,
            'relative_error': result.relative_error,
        }

    with open(filename, 'w') as f:
        json.dump(output, f, indent=2, default=lambda x: x.tolist() if isinstance(x, np.ndarray) else float(x) if isinstance(x, np.floating) else str(x))

    print(f"Exported {len(history)} records to {filename}")
