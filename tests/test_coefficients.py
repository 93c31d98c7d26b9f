"""
Tests for coefficient aggregation.

These verify integrated coefficients, spanwise normalization and the
handling of zero integrated loads.
"""

import numpy as np
import pytest
from wingloads.frames import DirectionBasis
from wingloads.state import PanelForces
from wingloads.coefficients import (
    CoefficientSample,
    ZeroReferenceLoadError,
    integrated_coefficients,
    normalized_distribution,
    aggregate
)


@pytest.fixture
def basis():
    """Lift along +z, drag along +x."""
    return DirectionBasis([0.0, 0.0, 1.0], [1.0, 0.0, 0.0])


class TestIntegratedCoefficients:
    """Tests for CL, CD, CS."""

    def test_coefficients(self, basis):
        (L, D, S), (CL, CD, CS) = integrated_coefficients(
            np.array([2.0, 1.0, 10.0]), basis, dynamic_pressure=5.0, reference_area=2.0
        )
        assert (L, D, S) == pytest.approx((10.0, 2.0, 1.0))
        assert (CL, CD, CS) == pytest.approx((1.0, 0.2, 0.1))

    def test_accepts_direction_pair(self):
        (L, D, _), _ = integrated_coefficients(
            np.array([2.0, 0.0, 10.0]), ([0, 0, 1.0], [1.0, 0, 0]), 1.0, 1.0
        )
        assert L == pytest.approx(10.0)
        assert D == pytest.approx(2.0)

    def test_invalid_reference_values(self, basis):
        with pytest.raises(ValueError):
            integrated_coefficients(np.ones(3), basis, dynamic_pressure=0.0, reference_area=1.0)
        with pytest.raises(ValueError):
            integrated_coefficients(np.ones(3), basis, dynamic_pressure=1.0, reference_area=-1.0)


class TestNormalizedDistribution:
    """Tests for Cl/CL and Cd/CD."""

    def test_uniform_loading_is_one(self, basis):
        """Uniform loading over the span gives Cl/CL = 1 everywhere."""
        per_span = np.tile([0.5, 0.0, 2.0], (4, 1))
        ClCL, CdCD = normalized_distribution(per_span, basis, lift=8.0, drag=2.0, span=4.0, force_scale=8.25)
        np.testing.assert_array_almost_equal(ClCL, np.ones(4))
        np.testing.assert_array_almost_equal(CdCD, np.ones(4))

    def test_sign_preservation(self, basis):
        """A panel whose drag points against d2 gets a negative Cd/CD."""
        forces = np.array([
            [1.0, 0.0, 5.0],
            [-0.5, 0.0, 5.0],
            [1.0, 0.0, 5.0],
        ])
        sample = aggregate(forces, basis, dynamic_pressure=1.0, reference_area=1.0, span=3.0)

        assert sample.CdCD[1] < 0
        assert sample.CdCD[0] > 0
        assert np.all(sample.ClCL > 0)

    def test_zero_lift_raises(self, basis):
        per_span = np.array([[1.0, 0.0, 0.0]])
        with pytest.raises(ZeroReferenceLoadError):
            normalized_distribution(per_span, basis, lift=0.0, drag=1.0, span=1.0, force_scale=1.0)

    def test_zero_drag_raises(self, basis):
        per_span = np.array([[0.0, 0.0, 10.0]])
        with pytest.raises(ZeroReferenceLoadError):
            normalized_distribution(per_span, basis, lift=10.0, drag=0.0, span=1.0, force_scale=10.0)

    def test_zero_load_is_arithmetic_error(self, basis):
        with pytest.raises(ArithmeticError):
            aggregate(np.zeros((2, 3)), basis, 1.0, 1.0, 1.0)


class TestAggregate:
    """Tests for the per-step aggregation."""

    def test_panel_forces_input(self, basis):
        forces = PanelForces(
            steady=np.array([[0.1, 0.0, 4.0], [0.1, 0.0, 6.0]]),
            unsteady=np.array([[0.0, 0.0, 1.0], [0.0, 0.0, -1.0]]),
            span_width=np.array([0.5, 0.5]),
            time=0.25
        )
        sample = aggregate(forces, basis, dynamic_pressure=2.0, reference_area=5.0, span=1.0)

        assert isinstance(sample, CoefficientSample)
        assert sample.time == 0.25
        assert sample.lift == pytest.approx(10.0)
        assert sample.drag == pytest.approx(0.2)
        assert sample.CL == pytest.approx(1.0)
        assert sample.CD == pytest.approx(0.02)
        # Per-span lift 10 N/m on each panel, |L|/b = 10 N/m
        np.testing.assert_array_almost_equal(sample.ClCL, [1.0, 1.0])

    def test_distribution_can_be_skipped(self, basis):
        sample = aggregate(
            np.array([[0.0, 0.0, 10.0]]), basis, 1.0, 1.0, 1.0, time=1.0, distribution=False
        )
        assert sample.CL == pytest.approx(10.0)
        assert not sample.has_distribution

    def test_non_orthogonal_basis(self):
        """Coefficients follow the skewed decomposition, not projections."""
        d2 = np.array([1.0, 0.0, 1.0]) / np.sqrt(2.0)
        skewed = DirectionBasis([0.0, 0.0, 1.0], d2)
        sample = aggregate(
            np.array([[1.0, 0.0, 1.0]]), skewed, 1.0, 1.0, 1.0, distribution=False
        )
        assert sample.CL == pytest.approx(0.0, abs=1e-12)
        assert sample.CD == pytest.approx(np.sqrt(2.0))

    def test_bad_shape(self, basis):
        with pytest.raises(ValueError):
            aggregate(np.ones((3, 2)), basis, 1.0, 1.0, 1.0)

    def test_to_dict(self, basis):
        sample = aggregate(np.array([[1.0, 0.0, 10.0]]), basis, 1.0, 1.0, 1.0, time=0.5)
        record = sample.to_dict()
        assert record['time'] == 0.5
        assert record['lift_N'] == pytest.approx(10.0)
        assert set(record) == {'time', 'CL', 'CD', 'CS', 'lift_N', 'drag_N', 'side_N'}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
