"""Immutable intrinsic camera parameter dataclasses.

This module provides frozen dataclasses for the pinhole intrinsics and the
lens distortion coefficients, so sampled cameras can be passed between the
projection model, the reference oracle and the reporter without mutation
concerns.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from projection_check.types import PixelsFloat, Unitless


# OpenCV coefficient order
_OPENCV_ORDER = ("k1", "k2", "p1", "p2", "k3")


@dataclass(frozen=True)
class DistortionCoefficients:
    """Brown-Conrady lens distortion in OpenCV's five-coefficient layout.

    k1, k2 and k3 scale the r^2, r^4 and r^6 radial terms; p1 and p2 are the
    decentering (tangential) terms. All zero means an ideal pinhole lens.
    """

    k1: Unitless = Unitless(0.0)
    k2: Unitless = Unitless(0.0)
    p1: Unitless = Unitless(0.0)
    p2: Unitless = Unitless(0.0)
    k3: Unitless = Unitless(0.0)

    def __post_init__(self) -> None:
        for name in _OPENCV_ORDER:
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"distortion {name} contains NaN or Infinity values")

    def to_array(self) -> np.ndarray:
        """``[k1, k2, p1, p2, k3]`` as float64, ready for ``cv2.projectPoints``."""
        return np.array([getattr(self, name) for name in _OPENCV_ORDER], dtype=np.float64)

    def is_zero(self) -> bool:
        return all(getattr(self, name) == 0.0 for name in _OPENCV_ORDER)

    @classmethod
    def from_array(cls, coeffs: np.ndarray) -> DistortionCoefficients:
        """Build from any array holding ``[k1, k2, p1, p2, k3]``.

        Raises:
            ValueError: Unless exactly five values are given.
        """
        values = np.asarray(coeffs, dtype=np.float64).ravel()
        if values.size != len(_OPENCV_ORDER):
            raise ValueError(f"Expected 5 distortion coefficients, got {values.size}")
        return cls(**{name: Unitless(float(v)) for name, v in zip(_OPENCV_ORDER, values)})


@dataclass(frozen=True)
class IntrinsicParameters:
    """Pinhole intrinsics plus lens distortion.

    The camera matrix is

        K = [[fx, skew, cx],
             [ 0,   fy, cy],
             [ 0,    0,  1]]

    Attributes:
        fx: Focal length along u, in pixels. Must be positive.
        fy: Focal length along v, in pixels. Must be positive.
        cx: Principal point u coordinate.
        cy: Principal point v coordinate.
        skew: Axis skew; the sampler always uses 0.0.
        distortion: Radial/tangential distortion coefficients.
    """

    fx: PixelsFloat
    fy: PixelsFloat
    cx: PixelsFloat
    cy: PixelsFloat
    skew: float = 0.0
    distortion: DistortionCoefficients = field(default_factory=DistortionCoefficients)

    def __post_init__(self) -> None:
        """Validate intrinsic parameters."""
        for name in ("fx", "fy", "cx", "cy", "skew"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)}")
        if self.fx <= 0:
            raise ValueError(f"fx must be positive, got {self.fx}")
        if self.fy <= 0:
            raise ValueError(f"fy must be positive, got {self.fy}")

    @property
    def camera_matrix(self) -> np.ndarray:
        """Get the 3x3 camera matrix K.

        Returns:
            Read-only upper-triangular matrix with K[2, 2] == 1.
        """
        K = np.array([
            [self.fx, self.skew, self.cx],
            [0.0, self.fy, self.cy],
            [0.0, 0.0, 1.0],
        ], dtype=np.float64)
        K.flags.writeable = False
        return K

    @classmethod
    def from_camera_matrix(
        cls,
        K: np.ndarray,
        distortion: DistortionCoefficients | None = None,
    ) -> IntrinsicParameters:
        """Create from a 3x3 camera matrix.

        Args:
            K: Upper-triangular camera matrix with unit bottom-right entry.
            distortion: Optional distortion coefficients (zero if omitted).

        Returns:
            New IntrinsicParameters instance.

        Raises:
            ValueError: If K is not 3x3, not upper triangular, or K[2, 2] != 1.
        """
        K = np.asarray(K, dtype=np.float64)
        if K.shape != (3, 3):
            raise ValueError(f"K must be (3, 3), got shape {K.shape}")
        if not np.all(np.isfinite(K)):
            raise ValueError("K contains NaN or Infinity values")
        if K[1, 0] != 0.0 or K[2, 0] != 0.0 or K[2, 1] != 0.0:
            raise ValueError(f"K must be upper triangular, got\n{K}")
        if K[2, 2] != 1.0:
            raise ValueError(f"K[2, 2] must be 1, got {K[2, 2]}")

        return cls(
            fx=PixelsFloat(float(K[0, 0])),
            fy=PixelsFloat(float(K[1, 1])),
            cx=PixelsFloat(float(K[0, 2])),
            cy=PixelsFloat(float(K[1, 2])),
            skew=float(K[0, 1]),
            distortion=distortion if distortion is not None else DistortionCoefficients(),
        )
