"""
Tests for the swept-wing validation scenario.

These run the prescribed-loading wing through the monitor and check the
result against lifting-line theory and the Weber & Brebner data.
"""

import numpy as np
import pytest
from wingloads.config import ScenarioConfig
from wingloads.environment import Freestream
from wingloads.monitor import ValidationMonitor, MonitorState
from wingloads.scenarios import (
    EllipticWingProvider,
    weber_reference,
    swept_wing_lift_slope,
    monitor_config_for,
    run_monitor,
    run_bertin_case,
    run_bertin_kinematic_case,
    impulsive_freestream,
    pitch_matrix,
    WEBER_2YB
)


@pytest.fixture
def config():
    return ScenarioConfig()


@pytest.fixture
def provider(config):
    return EllipticWingProvider(config)


class TestWeberReference:
    """Tests for the experimental reference."""

    def test_values(self):
        ref = weber_reference()
        assert ref.CL == 0.238
        assert ref.CD == 0.005
        np.testing.assert_array_almost_equal(ref.lift_positions, WEBER_2YB)
        assert ref.ClCL[0] == pytest.approx(0.235 / 0.238)
        # Negative sectional drag near the tip
        assert ref.CdCD[-1] < 0


class TestLiftSlope:
    """Tests for the swept-wing lift-curve slope."""

    def test_high_aspect_ratio_unswept(self):
        """Tends to 2*pi*kappa as AR grows."""
        a = swept_wing_lift_slope(1e4, 0.0, section_lift_factor=1.0)
        assert a == pytest.approx(2 * np.pi, rel=1e-3)

    def test_sweep_reduces_slope(self):
        assert swept_wing_lift_slope(5.0, np.deg2rad(45.0)) < swept_wing_lift_slope(5.0, 0.0)

    def test_supersonic_rejected(self):
        with pytest.raises(ValueError):
            swept_wing_lift_slope(5.0, 0.0, mach=1.2)


class TestEllipticWingProvider:
    """Tests for the prescribed-loading wing."""

    def test_geometry(self, provider, config):
        snap = provider.snapshot(0.0)
        assert snap.n_panels == config.n_panels
        assert provider.area.sum() == pytest.approx(config.reference_area)
        assert provider.span_width.sum() == pytest.approx(config.span)
        # Swept back: tip control points are aft of the root
        assert snap.geometry.control_point[0, 0] > snap.geometry.control_point[config.n_panels // 2, 0]

    def test_symmetric_loading(self, provider):
        gamma = provider.snapshot(1.0).circulation
        np.testing.assert_array_almost_equal(gamma, gamma[::-1])
        assert np.argmax(gamma) in (len(gamma) // 2 - 1, len(gamma) // 2)

    def test_start_up_ramp(self, provider):
        """Circulation starts at half its steady value and grows."""
        g0 = provider.snapshot(0.0).circulation
        g1 = provider.snapshot(provider.tau).circulation
        assert provider.ramp(0.0) == pytest.approx(0.5)
        assert np.all(g1 > g0)
        assert provider.ramp(50 * provider.tau) == pytest.approx(1.0)

    def test_snapshots_are_independent(self, provider):
        a = provider.snapshot(0.0)
        b = provider.snapshot(1.0)
        assert not np.shares_memory(a.circulation, b.circulation)

    def test_fixed_wing_has_no_kinematic_velocity(self, provider):
        assert np.all(provider.snapshot(0.5).geometry.kinematic_velocity == 0.0)

    def test_kinematic_geometry(self, config):
        """Pitched nose-up by alpha with the relative wind carried by the panels."""
        moving = EllipticWingProvider(config, kinematic=True)
        snap = moving.snapshot(0.01)

        np.testing.assert_array_almost_equal(
            snap.geometry.normal[0], [np.sin(config.alpha), 0.0, np.cos(config.alpha)]
        )
        np.testing.assert_array_almost_equal(
            snap.geometry.kinematic_velocity, np.tile([config.speed, 0.0, 0.0], (config.n_panels, 1))
        )
        np.testing.assert_array_almost_equal(moving.lift_direction, [0.0, 0.0, 1.0])
        np.testing.assert_array_almost_equal(moving.drag_direction, [1.0, 0.0, 0.0])
        # Aft points move down
        assert np.all(snap.geometry.control_point[:, 2] < 0)

    def test_pitch_matrix_aligns_freestream(self, config):
        """Pitching by alpha maps the fixed-wing freestream onto +x."""
        v = Freestream.from_angles(1.0, config.alpha).velocity
        np.testing.assert_array_almost_equal(pitch_matrix(config.alpha) @ v, [1.0, 0.0, 0.0])

    def test_impulsive_freestream(self, config):
        field = impulsive_freestream(config.speed)
        np.testing.assert_array_almost_equal(field(np.zeros(3), 0.0), [config.speed, 0.0, 0.0])
        assert np.linalg.norm(field(np.zeros(3), 1e-3)) < 1e-10


class TestMonitorRun:
    """Tests for driving the monitor with the prescribed wing."""

    @pytest.fixture
    def short_run(self, config, provider):
        monitor = ValidationMonitor(
            monitor_config_for(config),
            Freestream.from_angles(config.speed, config.alpha),
            reference=weber_reference()
        )
        steps = run_monitor(provider, monitor, 20, config.dt)
        return monitor, steps

    def test_step_count(self, short_run):
        monitor, steps = short_run
        assert steps == 21
        assert len(monitor.history) == 21
        assert monitor.state is MonitorState.RUNNING

    def test_unsteady_term_during_start_up(self, short_run):
        """Growing circulation gives a positive unsteady lift contribution."""
        monitor, _ = short_run
        unsteady = monitor.last_forces.unsteady
        assert np.all(unsteady[:, 2] > 0)

    def test_lift_grows_during_start_up(self, short_run):
        monitor, _ = short_run
        CL = [s.CL for s in monitor.history]
        assert CL[-1] > CL[0]

    def test_distribution_metrics_recorded(self, short_run):
        monitor, _ = short_run
        assert len(monitor.distribution_history) == len(monitor.history)
        assert 'ClCL' in monitor.distribution_history[-1]

    def test_first_step_offset(self, config):
        monitor = ValidationMonitor(
            monitor_config_for(config, kinematic=True),
            impulsive_freestream(config.speed)
        )
        provider = EllipticWingProvider(config, kinematic=True)
        steps = run_monitor(provider, monitor, 10, config.dt, first_step=1)

        assert steps == 10
        assert monitor.history[0].time == pytest.approx(config.dt)


class TestBertinCase:
    """Full validation case."""

    @pytest.fixture(scope="class")
    def case(self):
        return run_bertin_case(verbose=False)

    def test_passes(self, case):
        result, _ = case
        assert result.passed
        assert result.relative_error['CL'] < 0.025

    def test_lift_slope_estimate(self, case):
        result, _ = case
        assert result.measured['CL'] == pytest.approx(0.2372, abs=1e-3)

    def test_induced_drag(self, case):
        """Elliptic loading gives CDi = CL^2 / (pi AR)."""
        result, _ = case
        CL = result.measured['CL']
        assert result.measured['CD'] == pytest.approx(CL**2 / (np.pi * 5.0), rel=1e-3)

    def test_history_length(self, case):
        _, monitor = case
        assert len(monitor.history) == ScenarioConfig().nsteps + 1
        assert monitor.state is MonitorState.FINALIZED

    def test_converged(self, case):
        """Last two samples agree once the start-up has decayed."""
        _, monitor = case
        h = monitor.history
        assert abs(h[-1].CL - h[-2].CL) < 1e-5

    def test_lift_distribution_follows_experiment(self, case):
        """Elliptic loading is peakier than the swept wing but has the same trend."""
        result, _ = case
        metrics = result.distribution_metrics["ClCL"]
        assert metrics.n_points == 9
        assert metrics.correlation > 0.8
        assert metrics.rmse < 0.3

    def test_zero_side_force(self, case):
        _, monitor = case
        assert abs(monitor.history[-1].CS) < 1e-10

    def test_tight_tolerance_fails(self):
        result, _ = run_bertin_case(ScenarioConfig(nsteps=20), tolerance=1e-4, verbose=False)
        assert not result.passed

    def test_verbose_output(self, capsys):
        run_bertin_case(ScenarioConfig(nsteps=10), verbose=True)
        out = capsys.readouterr().out
        assert "Running Bertin's wing test..." in out
        assert "TEST RESULT:" in out


class TestBertinKinematicCase:
    """Pitched wing flying through still air."""

    @pytest.fixture(scope="class")
    def cases(self):
        config = ScenarioConfig(nsteps=150)
        moving = run_bertin_kinematic_case(verbose=False)
        fixed = run_bertin_case(config, verbose=False)
        return moving, fixed

    def test_passes(self, cases):
        (result, _), _ = cases
        assert result.passed
        assert result.relative_error['CL'] < 0.025

    def test_same_loads_as_fixed_wing(self, cases):
        """The moving frame is a rotation of the fixed one, so the verdicts agree."""
        (moving, _), (fixed, _) = cases
        assert moving.passed == fixed.passed
        assert moving.measured['CL'] == pytest.approx(fixed.measured['CL'], rel=1e-9)
        assert moving.measured['CD'] == pytest.approx(fixed.measured['CD'], rel=1e-6)

    def test_impulsive_start_not_monitored(self, cases):
        (_, monitor), _ = cases
        assert len(monitor.history) == 150
        assert monitor.history[0].time == pytest.approx(ScenarioConfig(nsteps=150).dt)

    def test_loads_carried_by_kinematic_velocity(self, cases):
        """Still air contributes nothing; the relative wind is all kinematic."""
        (_, monitor), _ = cases
        geom = monitor.previous.geometry
        assert np.all(geom.kinematic_velocity[:, 0] > 0)
        assert monitor.history[-1].CL > 0.2

    def test_unsteady_term_on_pitched_normal(self, cases):
        """The start-up transient acts along the tilted normal, with a drag part."""
        (_, monitor), _ = cases
        unsteady = monitor.last_forces.unsteady
        assert np.all(unsteady[:, 0] > 0)
        assert np.all(unsteady[:, 2] > 0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
