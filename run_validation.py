#!/usr/bin/env python3
"""
Quick validation script for the load monitor.

Run this to verify the force decomposition and monitor reproduce the
swept-wing reference case.
"""

import sys
import os

# Add wingloads to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from wingloads.config import ScenarioConfig
from wingloads.scenarios import run_bertin_case, run_bertin_kinematic_case


if __name__ == "__main__":
    print("Wing Loads Monitor")
    print("Swept-Wing Validation Case")
    print()

    fixed, _ = run_bertin_case(ScenarioConfig(), verbose=True)
    print()
    kinematic, _ = run_bertin_kinematic_case(verbose=True)

    sys.exit(0 if fixed.passed and kinematic.passed else 1)
