"""
Data Import Module

Loads reference (experimental) load data for validation:
- CSV tables of spanwise stations with sectional or normalized coefficients
- YAML case files with integrated and tabulated values

Normalizes both to a ReferenceData container.
"""

import numpy as np
import pandas as pd
import yaml
from pathlib import Path
from typing import Optional, Dict, Any

from .validation import ReferenceData


def _find_column(columns, *candidates) -> Optional[str]:
    """First column matching one of the candidate names (case-insensitive)."""
    lookup = {col.strip().lower(): col for col in columns}
    for name in candidates:
        if name.lower() in lookup:
            return lookup[name.lower()]
    return None


def _read_header_values(filepath: str) -> Dict[str, str]:
    """'# key: value' metadata from leading comment lines."""
    values = {}
    with open(filepath, 'r') as f:
        for line in f:
            if not line.startswith('#'):
                break
            if ':' in line:
                key, value = line[1:].split(':', 1)
                values[key.strip().lower()] = value.strip()
    return values


def load_reference_csv(
    filepath: str,
    CL: Optional[float] = None,
    CD: Optional[float] = None,
    name: Optional[str] = None
) -> ReferenceData:
    """
    Load a spanwise reference table from CSV.

    Expected format:
    # name: Weber & Brebner
    # CL: 0.238
    # CD: 0.005
    2y/b,Cl,Cd
    0.0,0.235,0.059
    ...

    Columns may hold sectional values (Cl, Cd), normalized ones
    (Cl/CL, Cd/CD), or both; normalized columns take precedence.

    Args:
        filepath: Path to CSV file
        CL: Integrated lift coefficient (overrides the header)
        CD: Integrated drag coefficient (overrides the header)
        name: Case name (overrides the header)

    Returns:
        ReferenceData object
    """
    path = Path(filepath)
    header = _read_header_values(filepath)

    if CL is None and 'cl' in header:
        CL = float(header['cl'])
    if CD is None and 'cd' in header:
        CD = float(header['cd'])
    if CL is None or CD is None:
        raise ValueError(f"Integrated CL and CD must be given in the header or as arguments: {path.name}")

    df = pd.read_csv(filepath, comment='#')
    df.columns = [str(col).strip() for col in df.columns]

    pos_col = _find_column(df.columns, '2y/b', 'eta', 'span_position', '2yb')
    if pos_col is None:
        raise ValueError(f"Could not find span station column. Available: {df.columns.tolist()}")
    positions = df[pos_col].values

    ClCL_col = _find_column(df.columns, 'Cl/CL', 'ClCL')
    Cl_col = _find_column(df.columns, 'Cl')
    CdCD_col = _find_column(df.columns, 'Cd/CD', 'CdCD')
    Cd_col = _find_column(df.columns, 'Cd')

    if ClCL_col is not None:
        ClCL = df[ClCL_col].values
    elif Cl_col is not None:
        ClCL = df[Cl_col].values / CL
    else:
        ClCL = None

    if CdCD_col is not None:
        CdCD = df[CdCD_col].values
    elif Cd_col is not None:
        if CD == 0:
            raise ValueError("Cannot normalize a Cd column by CD = 0")
        CdCD = df[Cd_col].values / CD
    else:
        CdCD = None

    return ReferenceData(
        CL=CL,
        CD=CD,
        lift_positions=positions if ClCL is not None else None,
        ClCL=ClCL,
        drag_positions=positions.copy() if CdCD is not None else None,
        CdCD=CdCD,
        name=name or header.get('name', path.stem),
        source=f"Loaded from {path.name}"
    )


def load_reference_yaml(filepath: str) -> ReferenceData:
    """
    Load reference data from a YAML case file.

    Expected keys: CL, CD, and optionally name, source, and either
    sectional tables (positions, Cl, Cd) or normalized ones
    (lift_positions, ClCL, drag_positions, CdCD).

    Args:
        filepath: Path to YAML file

    Returns:
        ReferenceData object
    """
    with open(filepath, 'r') as f:
        data: Dict[str, Any] = yaml.safe_load(f) or {}

    missing = [key for key in ('CL', 'CD') if key not in data]
    if missing:
        raise ValueError(f"Missing required keys: {missing}. Available: {list(data)}")

    meta = {
        'name': data.get('name', Path(filepath).stem),
        'source': data.get('source', 'YAML'),
    }

    if 'positions' in data:
        positions = np.asarray(data['positions'], dtype=np.float64)
        CL, CD = float(data['CL']), float(data['CD'])
        return ReferenceData(
            CL=CL,
            CD=CD,
            lift_positions=positions if 'Cl' in data else None,
            ClCL=np.asarray(data['Cl']) / CL if 'Cl' in data else None,
            drag_positions=positions.copy() if 'Cd' in data else None,
            CdCD=np.asarray(data['Cd']) / CD if 'Cd' in data else None,
            **meta
        )

    return ReferenceData(
        CL=data['CL'],
        CD=data['CD'],
        lift_positions=data.get('lift_positions'),
        ClCL=data.get('ClCL'),
        drag_positions=data.get('drag_positions'),
        CdCD=data.get('CdCD'),
        **meta
    )
