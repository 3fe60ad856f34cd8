"""
Randomized scenario sampler.

Draws one camera pose, one set of intrinsics with distortion, and a set of
world points per iteration. Every draw is uniform on a half-open interval
[low, high) and comes from a single numpy Generator that the caller owns and
passes in, so the entropy consumed by a run is explicit.

Draw order per scenario:
    translation x, y, z -> roll, pitch, yaw -> fx, fy, cx, cy
    -> k1, k2, k3, p1, p2 -> world points (row by row)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np

from projection_check.camera_parameters import DistortionCoefficients, IntrinsicParameters
from projection_check.errors import HarnessError
from projection_check.pose import ExtrinsicParameters, Pose
from projection_check.types import PixelsFloat, Radians, Unitless

logger = logging.getLogger(__name__)

# Maximum draws per world point when a minimum camera depth is enforced
MAX_DEPTH_ATTEMPTS = 1000


@dataclass(frozen=True)
class ValueRange:
    """Half-open sampling interval [low, high)."""

    low: float
    high: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.low) and math.isfinite(self.high)):
            raise ValueError(f"Range bounds must be finite, got [{self.low}, {self.high})")
        if self.low >= self.high:
            raise ValueError(f"Range low ({self.low}) must be below high ({self.high})")

    def sample(self, rng: np.random.Generator, size: int | tuple[int, ...] | None = None):
        return rng.uniform(self.low, self.high, size)

    def to_list(self) -> list[float]:
        return [self.low, self.high]


@dataclass(frozen=True)
class SamplingBounds:
    """Sampling domains for every randomized parameter.

    Attributes:
        world_coordinate: Per-axis range of world point coordinates.
        translation: Per-axis range of the camera translation.
        euler_angle: Range of roll, pitch and yaw in radians.
        focal_length: Range of fx and fy (lower bound must be positive).
        principal_point: Range of cx and cy.
        distortion: Range of k1, k2, k3, p1 and p2.
    """

    world_coordinate: ValueRange = field(default_factory=lambda: ValueRange(-10.0, 10.0))
    translation: ValueRange = field(default_factory=lambda: ValueRange(-0.1, 0.1))
    euler_angle: ValueRange = field(default_factory=lambda: ValueRange(0.0, 2.0 * math.pi))
    focal_length: ValueRange = field(default_factory=lambda: ValueRange(0.1, 2.0))
    principal_point: ValueRange = field(default_factory=lambda: ValueRange(-1000.0, 1000.0))
    distortion: ValueRange = field(default_factory=lambda: ValueRange(-0.5, 0.5))

    def __post_init__(self) -> None:
        if self.focal_length.low <= 0:
            raise ValueError(
                f"focal_length lower bound must be positive, got {self.focal_length.low}"
            )

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return (
            "world_coordinate",
            "translation",
            "euler_angle",
            "focal_length",
            "principal_point",
            "distortion",
        )


class Scenario(NamedTuple):
    """One randomized differential-test input."""

    pose: Pose
    extrinsics: ExtrinsicParameters
    intrinsics: IntrinsicParameters
    world_points: np.ndarray


class ScenarioSampler:
    """Draws randomized scenarios from a shared generator.

    Args:
        rng: Random source shared across the whole run.
        bounds: Sampling domains.
        n_points: World points per scenario.
        min_depth: If positive, world points whose camera-frame |z| falls
            below this are redrawn. 0 disables the guard.
    """

    def __init__(
        self,
        rng: np.random.Generator,
        bounds: SamplingBounds | None = None,
        n_points: int = 1,
        min_depth: float = 0.0,
    ):
        if n_points < 1:
            raise ValueError(f"n_points must be at least 1, got {n_points}")
        if min_depth < 0:
            raise ValueError(f"min_depth must be non-negative, got {min_depth}")

        self.rng = rng
        self.bounds = bounds if bounds is not None else SamplingBounds()
        self.n_points = n_points
        self.min_depth = min_depth

    def sample_pose(self) -> Pose:
        translation = self.bounds.translation.sample(self.rng, 3)
        roll, pitch, yaw = (Radians(float(a)) for a in self.bounds.euler_angle.sample(self.rng, 3))
        return Pose.from_euler_angles(translation, roll, pitch, yaw)

    def sample_intrinsics(self) -> IntrinsicParameters:
        fx, fy = self.bounds.focal_length.sample(self.rng, 2)
        cx, cy = self.bounds.principal_point.sample(self.rng, 2)
        k1, k2, k3, p1, p2 = self.bounds.distortion.sample(self.rng, 5)

        distortion = DistortionCoefficients(
            k1=Unitless(float(k1)),
            k2=Unitless(float(k2)),
            p1=Unitless(float(p1)),
            p2=Unitless(float(p2)),
            k3=Unitless(float(k3)),
        )
        return IntrinsicParameters(
            fx=PixelsFloat(float(fx)),
            fy=PixelsFloat(float(fy)),
            cx=PixelsFloat(float(cx)),
            cy=PixelsFloat(float(cy)),
            skew=0.0,
            distortion=distortion,
        )

    def sample_world_points(self, extrinsics: ExtrinsicParameters) -> np.ndarray:
        """Draw an (n_points, 3) array of world points.

        The extrinsics are only consulted when the depth guard is enabled.

        Raises:
            HarnessError: If a point with |z_cam| >= min_depth cannot be found
                within MAX_DEPTH_ATTEMPTS draws.
        """
        if self.min_depth <= 0:
            return self.bounds.world_coordinate.sample(self.rng, (self.n_points, 3))

        points = np.empty((self.n_points, 3), dtype=np.float64)
        for i in range(self.n_points):
            for attempt in range(MAX_DEPTH_ATTEMPTS):
                candidate = self.bounds.world_coordinate.sample(self.rng, (1, 3))
                if abs(extrinsics.world_to_camera(candidate)[0, 2]) >= self.min_depth:
                    points[i] = candidate[0]
                    if attempt:
                        logger.debug(f"World point {i} redrawn {attempt} time(s) for min_depth")
                    break
            else:
                raise HarnessError(
                    f"Could not sample a world point with camera depth >= {self.min_depth} "
                    f"in {MAX_DEPTH_ATTEMPTS} attempts"
                )
        return points

    def sample(self) -> Scenario:
        """Draw one complete scenario."""
        pose = self.sample_pose()
        extrinsics = ExtrinsicParameters.from_pose(pose)
        intrinsics = self.sample_intrinsics()
        world_points = self.sample_world_points(extrinsics)
        world_points.flags.writeable = False
        return Scenario(pose, extrinsics, intrinsics, world_points)
