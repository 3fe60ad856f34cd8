#!/usr/bin/env python3
"""
Tests for DistortionCoefficients and IntrinsicParameters.

Run with: python -m pytest tests/test_camera_parameters.py -v
"""

import os
import sys
from dataclasses import FrozenInstanceError

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from projection_check.camera_parameters import DistortionCoefficients, IntrinsicParameters


class TestDistortionCoefficients:
    """OpenCV-ordered distortion coefficients."""

    def test_defaults_are_zero(self):
        d = DistortionCoefficients()
        assert d.is_zero()
        assert np.array_equal(d.to_array(), np.zeros(5))

    def test_array_order_is_k1_k2_p1_p2_k3(self):
        d = DistortionCoefficients(k1=0.1, k2=0.2, p1=0.3, p2=0.4, k3=0.5)
        assert d.to_array().tolist() == [0.1, 0.2, 0.3, 0.4, 0.5]

    def test_from_array_matches_to_array(self):
        coeffs = np.array([-0.25, 0.05, 0.001, -0.002, 0.3])
        d = DistortionCoefficients.from_array(coeffs)
        assert d.k1 == -0.25
        assert d.p2 == -0.002
        assert np.array_equal(d.to_array(), coeffs)

    def test_from_array_accepts_column_vector(self):
        d = DistortionCoefficients.from_array(np.array([[0.1], [0.0], [0.0], [0.0], [0.0]]))
        assert d.k1 == 0.1

    @pytest.mark.parametrize("n", [0, 4, 8])
    def test_from_array_wrong_length(self, n):
        with pytest.raises(ValueError, match="Expected 5"):
            DistortionCoefficients.from_array(np.zeros(n))

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError, match="NaN or Infinity"):
            DistortionCoefficients(k3=float("inf"))

    def test_small_coefficient_is_not_zero(self):
        assert not DistortionCoefficients(p1=1e-300).is_zero()


class TestIntrinsicParameters:
    """Pinhole intrinsics and the camera matrix."""

    def test_camera_matrix_layout(self):
        intr = IntrinsicParameters(fx=1.5, fy=0.7, cx=-200.0, cy=350.0, skew=0.01)
        expected = np.array([
            [1.5, 0.01, -200.0],
            [0.0, 0.7, 350.0],
            [0.0, 0.0, 1.0],
        ])
        assert np.array_equal(intr.camera_matrix, expected)

    def test_camera_matrix_is_read_only(self):
        K = IntrinsicParameters(fx=1.0, fy=1.0, cx=0.0, cy=0.0).camera_matrix
        with pytest.raises(ValueError):
            K[0, 0] = 2.0

    def test_default_skew_and_distortion(self):
        intr = IntrinsicParameters(fx=1.0, fy=1.0, cx=0.0, cy=0.0)
        assert intr.skew == 0.0
        assert intr.distortion.is_zero()

    def test_frozen(self):
        intr = IntrinsicParameters(fx=1.0, fy=1.0, cx=0.0, cy=0.0)
        with pytest.raises(FrozenInstanceError):
            intr.fx = 2.0  # type: ignore[misc]

    @pytest.mark.parametrize("field_name", ["fx", "fy"])
    @pytest.mark.parametrize("value", [0.0, -1.0])
    def test_focal_length_must_be_positive(self, field_name, value):
        kwargs = {"fx": 1.0, "fy": 1.0, "cx": 0.0, "cy": 0.0, field_name: value}
        with pytest.raises(ValueError, match=f"{field_name} must be positive"):
            IntrinsicParameters(**kwargs)

    @pytest.mark.parametrize("field_name", ["fx", "fy", "cx", "cy", "skew"])
    def test_non_finite_rejected(self, field_name):
        kwargs = {"fx": 1.0, "fy": 1.0, "cx": 0.0, "cy": 0.0, "skew": 0.0, field_name: float("nan")}
        with pytest.raises(ValueError, match="must be finite"):
            IntrinsicParameters(**kwargs)

    def test_from_camera_matrix_round_trip(self):
        dist = DistortionCoefficients(k1=-0.1)
        intr = IntrinsicParameters(fx=1.2, fy=1.9, cx=10.0, cy=-20.0, skew=0.0, distortion=dist)

        rebuilt = IntrinsicParameters.from_camera_matrix(intr.camera_matrix, dist)

        assert rebuilt == intr

    def test_from_camera_matrix_rejects_wrong_shape(self):
        with pytest.raises(ValueError, match=r"\(3, 3\)"):
            IntrinsicParameters.from_camera_matrix(np.eye(4))

    def test_from_camera_matrix_rejects_lower_entries(self):
        K = np.eye(3)
        K[2, 0] = 0.5
        with pytest.raises(ValueError, match="upper triangular"):
            IntrinsicParameters.from_camera_matrix(K)

    def test_from_camera_matrix_rejects_unnormalized(self):
        K = np.eye(3) * 2.0
        with pytest.raises(ValueError, match=r"K\[2, 2\]"):
            IntrinsicParameters.from_camera_matrix(K)
