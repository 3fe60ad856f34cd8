"""
Reference projection oracle backed by OpenCV.

The projection model in projection_check.projection is checked against
cv2.projectPoints, an independent implementation of the same pinhole +
distortion pipeline. This module only owns the marshalling at the boundary:

    ExtrinsicParameters -> (rvec, tvec)      Rodrigues vector, world-to-camera
    world points (N, 3) -> objectPoints      float64 (N, 1, 3)
    IntrinsicParameters -> cameraMatrix      float64 (3, 3)
                        -> distCoeffs        float64 (5,) [k1, k2, p1, p2, k3]
    imagePoints (N, 1, 2) -> pixels          float64 (N, 2)

Any failure at one of these steps raises OracleConversionError naming the
step. These are contract violations, not transient conditions, and are never
retried.
"""

import logging
from abc import ABC, abstractmethod

import cv2
import numpy as np

from projection_check.camera_parameters import IntrinsicParameters
from projection_check.errors import OracleConversionError
from projection_check.pose import ExtrinsicParameters

logger = logging.getLogger(__name__)


class ProjectionOracle(ABC):
    """Independent projection pipeline the model is compared against."""

    @abstractmethod
    def project(
        self,
        extrinsics: ExtrinsicParameters,
        intrinsics: IntrinsicParameters,
        world_points: np.ndarray,
    ) -> np.ndarray:
        """
        Project world points to pixels.

        Args:
            extrinsics: World-to-camera transform.
            intrinsics: Camera intrinsics and distortion.
            world_points: (N, 3) world points.

        Returns:
            (N, 2) pixel coordinates in the same order as world_points.

        Raises:
            OracleConversionError: If inputs or outputs cannot be marshalled.
        """
        pass


def pose_to_rvec_tvec(extrinsics: ExtrinsicParameters) -> tuple[np.ndarray, np.ndarray]:
    """Convert extrinsics to OpenCV's (rvec, tvec), each (3, 1) float64."""
    try:
        R = np.array(extrinsics.rotation_matrix, dtype=np.float64)
        rvec, _ = cv2.Rodrigues(R)
        tvec = np.array(extrinsics.translation, dtype=np.float64).reshape(3, 1)
    except (cv2.error, ValueError) as e:
        raise OracleConversionError("pose", str(e)) from e

    if rvec.shape != (3, 1) or not np.all(np.isfinite(rvec)):
        raise OracleConversionError("pose", f"invalid Rodrigues vector {rvec.ravel()}")
    return rvec, tvec


def to_object_points(world_points: np.ndarray) -> np.ndarray:
    """Convert (N, 3) world points to OpenCV objectPoints (N, 1, 3)."""
    pts = np.asarray(world_points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 3 or pts.shape[0] == 0:
        raise OracleConversionError(
            "object_points", f"expected non-empty (N, 3) array, got shape {pts.shape}"
        )
    return np.array(pts.reshape(-1, 1, 3))


def to_camera_matrix(intrinsics: IntrinsicParameters) -> np.ndarray:
    """Convert intrinsics to a writable, contiguous (3, 3) camera matrix."""
    K = np.array(intrinsics.camera_matrix, dtype=np.float64)
    if K.shape != (3, 3) or not np.all(np.isfinite(K)):
        raise OracleConversionError("camera_matrix", f"invalid camera matrix\n{K}")
    return K


def to_distortion_vector(intrinsics: IntrinsicParameters) -> np.ndarray:
    """Convert distortion coefficients to OpenCV's (5,) [k1, k2, p1, p2, k3]."""
    dist = np.array(intrinsics.distortion.to_array(), dtype=np.float64)
    if dist.shape != (5,):
        raise OracleConversionError(
            "distortion", f"expected 5 coefficients, got shape {dist.shape}"
        )
    return dist


def from_image_points(image_points: np.ndarray, n_points: int) -> np.ndarray:
    """Convert OpenCV imagePoints (N, 1, 2) back to (N, 2) pixels."""
    pts = np.asarray(image_points, dtype=np.float64)
    if pts.size != 2 * n_points:
        raise OracleConversionError(
            "image_points",
            f"expected {n_points} points, got array of shape {pts.shape}",
        )
    return pts.reshape(n_points, 2)


class OpenCVOracle(ProjectionOracle):
    """Reference oracle calling ``cv2.projectPoints``."""

    def project(
        self,
        extrinsics: ExtrinsicParameters,
        intrinsics: IntrinsicParameters,
        world_points: np.ndarray,
    ) -> np.ndarray:
        rvec, tvec = pose_to_rvec_tvec(extrinsics)
        object_points = to_object_points(world_points)
        K = to_camera_matrix(intrinsics)
        dist = to_distortion_vector(intrinsics)

        try:
            image_points, _jacobian = cv2.projectPoints(object_points, rvec, tvec, K, dist)
        except cv2.error as e:
            logger.error(f"cv2.projectPoints rejected inputs: {e}")
            raise OracleConversionError("project_points", str(e)) from e

        return from_image_points(image_points, object_points.shape[0])
