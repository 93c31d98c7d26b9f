#!/usr/bin/env python3
"""
Quick Validation Example

Demonstrates the load-monitor workflow in minimal code: a solver loop
hands the monitor one StateSnapshot per timestep, then asks for a verdict.
The prescribed elliptic wing stands in for a real lifting-surface solver,
and a 1-cosine vertical gust shows the monitor tracking unsteady loads.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
from wingloads import (
    ScenarioConfig,
    EllipticWingProvider,
    Freestream,
    ValidationMonitor,
    weber_reference,
    run_monitor,
    generate_validation_report,
    export_history_csv,
    export_distribution_csv
)
from wingloads.scenarios import monitor_config_for


def main():
    print("="*70)
    print("QUICK VALIDATION EXAMPLE")
    print("="*70)

    # Step 1: Scenario
    print("\n[1/4] Setting up Bertin's swept wing...")
    config = ScenarioConfig.from_yaml(str(Path(__file__).parent / "bertin_wing.yaml"))
    provider = EllipticWingProvider(config)
    print(f"  Panels:     {config.n_panels}")
    print(f"  Timestep:   {config.dt*1e3:.3f} ms ({config.nsteps} steps)")
    print(f"  Lift slope: {provider.lift_slope:.4f} /rad")

    # Step 2: Freestream with a gust halfway through the run
    print("\n[2/4] Adding a vertical gust...")
    steady = Freestream.from_angles(config.speed, config.alpha)
    gusty = Freestream(
        velocity=steady.velocity,
        gust_velocity=np.array([0.0, 0.0, 1.0]),
        gust_start=0.25 * config.total_time,
        gust_duration=0.25 * config.total_time
    )

    # Step 3: Run both monitors
    print("\n[3/4] Running monitors...")
    reference = weber_reference()
    monitors = {}
    for name, freestream in [('steady', steady), ('gust', gusty)]:
        monitor = ValidationMonitor(monitor_config_for(config), freestream, reference=reference)
        run_monitor(provider, monitor, config.nsteps, config.dt)
        monitors[name] = monitor

    CL_steady = np.array([s.CL for s in monitors['steady'].history])
    CL_gust = np.array([s.CL for s in monitors['gust'].history])
    print(f"  Peak gust increment dCL: {np.max(CL_gust - CL_steady):+.5f}")

    result = monitors['steady'].finalize(reference, config.tolerance)
    print()
    print(generate_validation_report(result, case_name=config.name))

    # Step 4: Export and plot
    print("[4/4] Exporting data...")
    output_dir = Path(__file__).parent / "validation_output"
    output_dir.mkdir(exist_ok=True)

    history = list(monitors['steady'].history)
    export_history_csv(history, str(output_dir / "steady_history.csv"), metadata={'case': config.name})
    export_distribution_csv(history[-1], str(output_dir / "steady_distribution.csv"))

    try:
        import matplotlib
        matplotlib.use('Agg')  # Non-interactive backend

        from wingloads.plotting import create_monitor_plots
        create_monitor_plots(monitors['steady'], str(output_dir), prefix="steady")
        create_monitor_plots(monitors['gust'], str(output_dir), prefix="gust")
    except ImportError:
        print("  (matplotlib not available - skipping plots)")

    print(f"\nOverall: {'✓ SUCCESS' if result.passed else '✗ NEEDS WORK'}")
    print()


if __name__ == "__main__":
    main()
