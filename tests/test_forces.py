"""
Tests for state snapshots and per-panel force evaluation.

These verify the quasi-steady Kutta-Joukowski term, the unsteady
rate-of-change-of-circulation term, and snapshot isolation from the
solver's live arrays.
"""

import numpy as np
import pytest
from wingloads.state import StateSnapshot, PanelForces
from wingloads.environment import Freestream, isa_density, dynamic_pressure
from wingloads.forces import (
    PanelCountMismatchError,
    effective_velocity,
    steady_forces,
    unsteady_forces,
    evaluate
)


def make_wing(circulation, time=0.0, n=None, induced=None):
    """Straight wing of n unit-span panels along +y, normals +z."""
    circulation = np.atleast_1d(np.asarray(circulation, dtype=float))
    n = len(circulation) if n is None else n
    y = np.arange(n) - (n - 1) / 2
    return StateSnapshot.capture(
        circulation=circulation,
        bound_vector=np.tile([0.0, 1.0, 0.0], (n, 1)),
        control_point=np.column_stack([np.full(n, 0.5), y, np.zeros(n)]),
        normal=np.tile([0.0, 0.0, 1.0], (n, 1)),
        area=np.full(n, 2.0),
        time=time,
        induced_velocity=induced
    )


class TestStateSnapshot:
    """Tests for StateSnapshot capture."""

    def test_capture_copies_arrays(self):
        """Mutating the solver buffer after capture does not change the snapshot."""
        gamma = np.array([1.0, 2.0])
        bound = np.tile([0.0, 1.0, 0.0], (2, 1))
        snap = StateSnapshot.capture(
            circulation=gamma,
            bound_vector=bound,
            control_point=np.zeros((2, 3)),
            normal=np.tile([0.0, 0.0, 1.0], (2, 1)),
            area=np.ones(2),
            time=0.1
        )
        gamma[0] = 99.0
        bound[0, 1] = 99.0

        np.testing.assert_array_almost_equal(snap.circulation, [1.0, 2.0])
        np.testing.assert_array_almost_equal(snap.geometry.bound_vector[0], [0.0, 1.0, 0.0])

    def test_snapshot_is_read_only(self):
        snap = make_wing([1.0, 2.0])
        with pytest.raises(ValueError):
            snap.circulation[0] = 5.0

    def test_length_mismatch_rejected(self):
        """Circulation and geometry must have the same panel count."""
        with pytest.raises(ValueError):
            StateSnapshot.capture(
                circulation=[1.0, 2.0, 3.0],
                bound_vector=np.tile([0.0, 1.0, 0.0], (2, 1)),
                control_point=np.zeros((2, 3)),
                normal=np.tile([0.0, 0.0, 1.0], (2, 1)),
                area=np.ones(2),
                time=0.0
            )

    def test_normals_normalized(self):
        snap = StateSnapshot.capture(
            circulation=[1.0],
            bound_vector=[[0.0, 1.0, 0.0]],
            control_point=[[0.0, 0.0, 0.0]],
            normal=[[0.0, 0.0, 5.0]],
            area=[1.0],
            time=0.0
        )
        np.testing.assert_array_almost_equal(snap.geometry.normal, [[0.0, 0.0, 1.0]])

    def test_span_width_defaults_to_bound_length(self):
        snap = StateSnapshot.capture(
            circulation=[1.0],
            bound_vector=[[0.3, 0.4, 0.0]],
            control_point=[[0.0, 0.0, 0.0]],
            normal=[[0.0, 0.0, 1.0]],
            area=[1.0],
            time=0.0
        )
        np.testing.assert_array_almost_equal(snap.geometry.span_width, [0.5])

    def test_span_positions(self):
        snap = make_wing([1.0, 1.0, 1.0, 1.0])
        np.testing.assert_array_almost_equal(snap.span_positions(4.0), [-0.75, -0.25, 0.25, 0.75])


class TestSteadyForces:
    """Tests for the quasi-steady Kutta-Joukowski term."""

    def test_single_panel(self):
        """rho * Gamma * (V x dl) for V = [10,0,0], dl = [0,1,0]."""
        snap = make_wing([1.0])
        F = steady_forces(snap, Freestream(velocity=[10.0, 0.0, 0.0]), density=1.0)
        np.testing.assert_array_almost_equal(F, [[0.0, 0.0, 10.0]])

    def test_scales_with_density_and_circulation(self):
        snap = make_wing([2.0, -1.0])
        F = steady_forces(snap, Freestream(velocity=[10.0, 0.0, 0.0]), density=1.225)
        np.testing.assert_array_almost_equal(F[:, 2], [1.225 * 2.0 * 10.0, -1.225 * 10.0])

    def test_induced_velocity_tilts_force(self):
        """Downwash adds a drag (+x) component to the panel force."""
        induced = np.array([[0.0, 0.0, -1.0]])
        snap = make_wing([1.0], induced=induced)
        F = steady_forces(snap, Freestream(velocity=[10.0, 0.0, 0.0]), density=1.0)
        np.testing.assert_array_almost_equal(F, [[1.0, 0.0, 10.0]])

    def test_effective_velocity_samples_field_per_point(self):
        """The freestream is evaluated at each control point and time."""
        calls = []

        def field(position, time):
            calls.append((position.copy(), time))
            return np.array([10.0 + position[1], 0.0, 0.0])

        snap = make_wing([1.0, 1.0], time=0.3)
        V = effective_velocity(snap, field)

        assert len(calls) == 2
        assert all(t == 0.3 for _, t in calls)
        np.testing.assert_array_almost_equal(V[:, 0], [9.5, 10.5])

    def test_kinematic_velocity_carries_load_in_still_air(self):
        """A surface moving at -x through still air sees +x relative flow."""
        snap = StateSnapshot.capture(
            circulation=[1.0],
            bound_vector=[[0.0, 1.0, 0.0]],
            control_point=[[0.0, 0.0, 0.0]],
            normal=[[0.0, 0.0, 1.0]],
            area=[1.0],
            time=0.1,
            kinematic_velocity=[[10.0, 0.0, 0.0]],
            induced_velocity=[[0.0, 0.0, -1.0]]
        )
        still = Freestream(velocity=[0.0, 0.0, 0.0])

        np.testing.assert_array_almost_equal(effective_velocity(snap, still), [[10.0, 0.0, -1.0]])
        F = steady_forces(snap, still, density=1.0)
        np.testing.assert_array_almost_equal(F, [[1.0, 0.0, 10.0]])

    def test_bad_freestream_shape(self):
        snap = make_wing([1.0])
        with pytest.raises(ValueError):
            effective_velocity(snap, lambda p, t: np.zeros(2))


class TestUnsteadyForces:
    """Tests for the rate-of-change-of-circulation term."""

    def test_zero_on_first_step(self):
        """Without a previous snapshot the unsteady term is exactly zero."""
        snap = make_wing([1.0, 2.0])
        F = unsteady_forces(snap, None, dt=0.01, density=1.0)
        assert np.all(F == 0.0)

        forces = evaluate(snap, None, Freestream(velocity=[10.0, 0.0, 0.0]), dt=0.01, density=1.0)
        np.testing.assert_array_equal(forces.total, forces.steady)

    def test_value(self):
        """rho * dGamma/dt * A * n."""
        prev = make_wing([1.0, 1.0], time=0.0)
        curr = make_wing([1.5, 0.5], time=0.1)
        F = unsteady_forces(curr, prev, dt=0.1, density=2.0)
        # area = 2, normal = +z
        np.testing.assert_array_almost_equal(F, [[0, 0, 2.0 * 5.0 * 2.0], [0, 0, -2.0 * 5.0 * 2.0]])

    def test_constant_circulation_has_no_unsteady_term(self):
        prev = make_wing([1.0])
        curr = make_wing([1.0], time=0.01)
        F = unsteady_forces(curr, prev, dt=0.01, density=1.0)
        np.testing.assert_array_almost_equal(F, [[0.0, 0.0, 0.0]])

    def test_panel_count_mismatch(self):
        prev = make_wing([1.0, 1.0])
        curr = make_wing([1.0, 1.0, 1.0])
        with pytest.raises(PanelCountMismatchError):
            evaluate(curr, prev, Freestream(), dt=0.01, density=1.0)

    def test_non_positive_dt(self):
        prev = make_wing([1.0])
        curr = make_wing([2.0])
        with pytest.raises(ValueError):
            unsteady_forces(curr, prev, dt=0.0, density=1.0)


class TestEvaluate:
    """Tests for combined force evaluation."""

    def test_total_is_sum_of_terms(self):
        prev = make_wing([1.0, 1.0])
        curr = make_wing([2.0, 1.0], time=0.5)
        forces = evaluate(curr, prev, Freestream(velocity=[10.0, 0.0, 0.0]), dt=0.5, density=1.0)

        assert isinstance(forces, PanelForces)
        assert forces.n_panels == 2
        assert forces.time == 0.5
        np.testing.assert_array_almost_equal(forces.total, forces.steady + forces.unsteady)
        np.testing.assert_array_almost_equal(forces.total_force, forces.total.sum(axis=0))

    def test_per_unit_span(self):
        snap = StateSnapshot.capture(
            circulation=[1.0],
            bound_vector=[[0.0, 0.5, 0.0]],
            control_point=[[0.0, 0.0, 0.0]],
            normal=[[0.0, 0.0, 1.0]],
            area=[0.5],
            time=0.0
        )
        forces = evaluate(snap, None, Freestream(velocity=[10.0, 0.0, 0.0]), dt=0.01, density=1.0)
        np.testing.assert_array_almost_equal(forces.per_unit_span, [[0.0, 0.0, 10.0]])

    def test_non_positive_density(self):
        with pytest.raises(ValueError):
            evaluate(make_wing([1.0]), None, Freestream(), dt=0.01, density=0.0)


class TestEnvironment:
    """Tests for freestream and reference quantities."""

    def test_sea_level_density(self):
        assert abs(isa_density(0.0) - 1.225) < 1e-3

    def test_density_decreases_with_altitude(self):
        assert isa_density(3000.0) < isa_density(1000.0)

    def test_density_out_of_range(self):
        with pytest.raises(ValueError):
            isa_density(20000.0)

    def test_dynamic_pressure(self):
        assert abs(dynamic_pressure(1.0, 10.0) - 50.0) < 1e-12

    def test_from_angles(self):
        fs = Freestream.from_angles(10.0, np.deg2rad(30.0))
        np.testing.assert_array_almost_equal(fs(np.zeros(3), 0.0), [10 * np.cos(np.pi/6), 0.0, 5.0])
        assert abs(fs.speed - 10.0) < 1e-12

    def test_gust_profile(self):
        """1-cosine gust peaks at mid-duration and vanishes outside its window."""
        fs = Freestream(
            velocity=[10.0, 0.0, 0.0],
            gust_velocity=[0.0, 0.0, 2.0],
            gust_start=1.0,
            gust_duration=2.0
        )
        np.testing.assert_array_almost_equal(fs(np.zeros(3), 0.5), [10.0, 0.0, 0.0])
        np.testing.assert_array_almost_equal(fs(np.zeros(3), 2.0), [10.0, 0.0, 2.0])
        np.testing.assert_array_almost_equal(fs(np.zeros(3), 4.0), [10.0, 0.0, 0.0])

    def test_field_has_no_side_effects(self):
        fs = Freestream(velocity=[10.0, 0.0, 0.0])
        v = fs(np.zeros(3), 0.0)
        v[0] = 0.0
        np.testing.assert_array_almost_equal(fs(np.zeros(3), 0.0), [10.0, 0.0, 0.0])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
