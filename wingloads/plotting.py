"""
Plotting Module

Generate standard load-monitor plots:
- Spanwise Cl/CL and Cd/CD vs 2y/b, one curve per step, with reference stations
- CL and CD time histories with reference lines
- Circulation and effective velocity along the span

Uses matplotlib with aerospace-standard formatting.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, List
from pathlib import Path

from .coefficients import CoefficientSample
from .forces import effective_velocity
from .monitor import ValidationMonitor
from .state import StateSnapshot
from .validation import ReferenceData


# Aerospace standard plot styling
PLOT_STYLE = {
    'figure.figsize': (10, 6),
    'figure.dpi': 100,
    'font.size': 10,
    'axes.labelsize': 11,
    'axes.titlesize': 12,
    'legend.fontsize': 9,
    'xtick.labelsize': 9,
    'ytick.labelsize': 9,
    'lines.linewidth': 1.5,
    'lines.markersize': 6,
    'grid.alpha': 0.3
}


def setup_plot_style():
    """Apply aerospace-standard plot styling."""
    plt.style.use('seaborn-v0_8-darkgrid' if 'seaborn-v0_8-darkgrid' in plt.style.available else 'default')
    plt.rcParams.update(PLOT_STYLE)


def _step_color(i: int, n: int) -> tuple:
    """Blue for the first step through red for the last."""
    aux = i / max(n - 1, 1)
    return (aux, 0, 1 - aux)


def plot_distribution_history(
    history: List[CoefficientSample],
    reference: Optional[ReferenceData] = None,
    quantity: str = 'ClCL',
    ax: Optional[plt.Axes] = None,
    every: int = 1
) -> plt.Axes:
    """
    Plot a spanwise distribution for every sampled step.

    Args:
        history: Monitor history
        reference: Reference stations to overlay
        quantity: 'ClCL' or 'CdCD'
        ax: Existing axes (creates new if None)
        every: Plot one step out of this many (the last is always plotted)

    Returns:
        Matplotlib axes object
    """
    if quantity not in ('ClCL', 'CdCD'):
        raise ValueError(f"Unknown distribution: {quantity}")

    if ax is None:
        fig, ax = plt.subplots()

    samples = [s for s in history if getattr(s, quantity) is not None]
    n = len(samples)
    for i, s in enumerate(samples):
        if i % every and i != n - 1:
            continue
        order = np.argsort(s.span_positions)
        ax.plot(s.span_positions[order], getattr(s, quantity)[order],
                '-', color=_step_color(i, n), alpha=0.5, linewidth=1)

    if reference is not None:
        if quantity == 'ClCL' and reference.has_lift_distribution:
            ax.plot(reference.lift_positions, reference.ClCL, 'ok', label='Experimental')
        elif quantity == 'CdCD' and reference.has_drag_distribution:
            ax.plot(reference.drag_positions, reference.CdCD, 'ok', label='Experimental')

    ax.set_xlabel(r'$\frac{2y}{b}$')
    ax.set_ylabel(r'$\frac{Cl}{CL}$' if quantity == 'ClCL' else r'$\frac{Cd}{CD}$')
    ax.set_title('Spanwise lift distribution' if quantity == 'ClCL' else 'Spanwise drag distribution')
    ax.set_xlim([0, 1])
    if reference is not None:
        ax.legend(loc='best')
    ax.grid(True, alpha=0.3)

    return ax


def plot_coefficient_history(
    history: List[CoefficientSample],
    reference: Optional[ReferenceData] = None,
    coefficient: str = 'CL',
    ax: Optional[plt.Axes] = None
) -> plt.Axes:
    """
    Plot an integrated coefficient against simulation time.

    Args:
        history: Monitor history
        reference: Reference value drawn as a dotted line
        coefficient: 'CL', 'CD' or 'CS'
        ax: Existing axes (creates new if None)

    Returns:
        Matplotlib axes object
    """
    if coefficient not in ('CL', 'CD', 'CS'):
        raise ValueError(f"Unknown coefficient: {coefficient}")

    if ax is None:
        fig, ax = plt.subplots()

    time = np.array([s.time for s in history])
    values = np.array([getattr(s, coefficient) for s in history])
    n = len(history)

    ax.plot(time, values, '-', color='gray', linewidth=0.8)
    for i in range(n):
        ax.plot(time[i], values[i], 'o', color=_step_color(i, n), alpha=0.5, markersize=4)

    if reference is not None and coefficient in ('CL', 'CD'):
        ref_value = getattr(reference, coefficient)
        ax.plot([time.min(), time.max()], [ref_value, ref_value], ':k', label='Experimental')
        ax.legend(loc='best')

    ax.set_xlabel('Simulation time (s)')
    ax.set_ylabel(f'${coefficient[0]}_{coefficient[1]}$')
    ax.set_title(f'{coefficient} history')
    ax.grid(True, alpha=0.3)

    return ax


def plot_monitor_summary(
    monitor: ValidationMonitor,
    reference: Optional[ReferenceData] = None,
    title: str = "Load Monitor",
    every: int = 1,
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    2x2 summary: Cl/CL, Cd/CD distributions and CL, CD histories.

    Args:
        monitor: Monitor after (or during) a run
        reference: Reference data, defaults to the monitor's
        title: Figure title
        every: Distribution stride
        save_path: Optional path to save figure

    Returns:
        Matplotlib figure
    """
    setup_plot_style()

    reference = reference if reference is not None else monitor.reference
    history = list(monitor.history)

    fig, axes = plt.subplots(2, 2, figsize=(12, 8))
    axes = axes.flatten()

    plot_distribution_history(history, reference, 'ClCL', ax=axes[0], every=every)
    plot_distribution_history(history, reference, 'CdCD', ax=axes[1], every=every)
    plot_coefficient_history(history, reference, 'CL', ax=axes[2])
    plot_coefficient_history(history, reference, 'CD', ax=axes[3])

    fig.suptitle(title)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved plot to {save_path}")

    return fig


def plot_circulation(
    snapshot: StateSnapshot,
    freestream,
    span: float,
    span_axis: int = 1,
    save_path: Optional[str] = None,
    reference_speed: Optional[float] = None
) -> plt.Figure:
    """
    Circulation and |V_eff|/|V∞| along the span.

    Args:
        snapshot: State to plot
        freestream: Freestream field used by the monitor
        span: Reference span b (m)
        span_axis: Spanwise coordinate index
        save_path: Optional save path
        reference_speed: Normalizing speed (m/s); defaults to the local
            freestream magnitude, which is zero for a wing in still air

    Returns:
        Figure
    """
    setup_plot_style()

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    y = snapshot.span_positions(span, span_axis)
    order = np.argsort(y)

    v_eff = effective_velocity(snapshot, freestream)
    if reference_speed is None:
        v_inf = np.array([freestream(cp, snapshot.time) for cp in snapshot.geometry.control_point])
        v_ref = np.linalg.norm(v_inf, axis=1)
    else:
        v_ref = reference_speed
    ratio = np.linalg.norm(v_eff, axis=1) / v_ref

    axes[0].plot(y[order], snapshot.circulation[order], 'o-', color='black', markersize=3)
    axes[0].set_xlabel(r'$\frac{2y}{b}$')
    axes[0].set_ylabel(r'$\Gamma$ (m²/s)')
    axes[0].set_title('Circulation')
    axes[0].grid(True, alpha=0.3)

    axes[1].plot(y[order], ratio[order], 's--', color='red', markersize=3)
    axes[1].axhline(1, color='gray', linestyle=':', linewidth=1)
    axes[1].set_xlabel(r'$\frac{2y}{b}$')
    axes[1].set_ylabel(r'$|V_{eff}| / |V_\infty|$')
    axes[1].set_title('Effective velocity')
    axes[1].grid(True, alpha=0.3)

    fig.suptitle(f't = {snapshot.time:.5f} s')
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def create_monitor_plots(
    monitor: ValidationMonitor,
    output_dir: str,
    prefix: str = "monitor",
    reference: Optional[ReferenceData] = None
) -> None:
    """
    Generate the complete set of monitor plots and save to directory.

    Args:
        monitor: Monitor after a run
        output_dir: Output directory
        prefix: Filename prefix
        reference: Reference data, defaults to the monitor's
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    fig = plot_monitor_summary(monitor, reference)
    fig.savefig(output_path / f"{prefix}_summary.png", dpi=150, bbox_inches='tight')
    plt.close(fig)

    if monitor.previous is not None:
        cfg = monitor.config
        fig = plot_circulation(
            monitor.previous, monitor.freestream, cfg.span, cfg.span_axis,
            reference_speed=cfg.reference_speed
        )
        fig.savefig(output_path / f"{prefix}_circulation.png", dpi=150, bbox_inches='tight')
        plt.close(fig)

    print(f"\nMonitor plots saved to: {output_path}")
