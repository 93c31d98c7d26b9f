"""
Main Entry Point

Run the swept-wing load-monitor validation case from the command line.
"""

import argparse
import sys
from pathlib import Path

from .config import ScenarioConfig
from .data_export import export_history_csv, export_json
from .data_import import load_reference_csv, load_reference_yaml
from .scenarios import run_bertin_case, run_bertin_kinematic_case
from .validation import generate_validation_report


def load_reference(filepath: str):
    """Reference data from a .csv or .yaml/.yml file."""
    suffix = Path(filepath).suffix.lower()
    if suffix == '.csv':
        return load_reference_csv(filepath)
    if suffix in ('.yaml', '.yml'):
        return load_reference_yaml(filepath)
    raise ValueError(f"Unsupported reference file type: {suffix}")


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Unsteady wing-load monitor: swept-wing validation case")

    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Path to scenario configuration YAML'
    )
    parser.add_argument(
        '--reference', '-r',
        type=str,
        help='Reference data file (.csv or .yaml); defaults to Weber & Brebner'
    )
    parser.add_argument(
        '--nsteps', '-n',
        type=int,
        help='Number of timesteps (overrides config)'
    )
    parser.add_argument(
        '--tol',
        type=float,
        help='Relative CL tolerance (overrides config)'
    )
    parser.add_argument(
        '--kinematic', '-k',
        action='store_true',
        help='Fly the pitched wing through still air instead of holding it in a freestream'
    )
    parser.add_argument(
        '--plot', '-p',
        action='store_true',
        help='Generate monitor plots'
    )
    parser.add_argument(
        '--save-path',
        type=str,
        default='.',
        help='Directory for plots and the coefficient history CSV'
    )
    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Output JSON file with configuration, verdict and history'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress progress output'
    )

    args = parser.parse_args(argv)
    verbose = not args.quiet

    if args.config:
        config = ScenarioConfig.from_yaml(args.config)
        if verbose:
            print(f"Loaded scenario: {config.name}")
    elif args.kinematic:
        config = ScenarioConfig(nsteps=150)
    else:
        config = ScenarioConfig()

    # Rebuild so overrides go through the same validation as the file
    overrides = {}
    if args.nsteps is not None:
        overrides['nsteps'] = args.nsteps
    if args.tol is not None:
        overrides['tolerance'] = args.tol
    if overrides:
        config = ScenarioConfig(**{**config.to_dict(), **overrides})

    reference = load_reference(args.reference) if args.reference else None

    run_case = run_bertin_kinematic_case if args.kinematic else run_bertin_case
    result, monitor = run_case(config, reference=reference, verbose=verbose)

    if args.plot:
        # matplotlib is only loaded when plotting
        from .plotting import create_monitor_plots
        create_monitor_plots(monitor, args.save_path)
        export_history_csv(
            list(monitor.history),
            str(Path(args.save_path) / "monitor_history.csv"),
            metadata={'case': config.name, 'nsteps': config.nsteps}
        )

    if args.output:
        export_json(
            list(monitor.history),
            args.output,
            result=result,
            metadata={
                'scenario': config.to_dict(),
                'monitor': monitor.config.to_dict()
            }
        )

    if verbose:
        print(generate_validation_report(result, case_name=config.name))

    return 0 if result.passed else 1


if __name__ == "__main__":
    sys.exit(main())
