"""
Pinhole projection model with radial/tangential lens distortion.

Maps world points to pixel coordinates in four steps:

    1. World -> camera:   X_cam = R @ X_world + t   (inverse of the camera pose)
    2. Perspective divide: (x, y) = (X_cam / Z_cam, Y_cam / Z_cam)
    3. Distortion (OpenCV convention, coefficients [k1, k2, p1, p2, k3]):
         r2     = x^2 + y^2
         radial = 1 + k1*r2 + k2*r2^2 + k3*r2^3
         x'     = x*radial + 2*p1*x*y + p2*(r2 + 2*x^2)
         y'     = y*radial + p1*(r2 + 2*y^2) + 2*p2*x*y
    4. Intrinsics:        u = fx*x' + skew*y' + cx,   v = fy*y' + cy

Every function here is pure and deterministic. A camera-frame depth of zero is
an unhandled singularity: numpy propagates inf/nan (with a RuntimeWarning)
rather than the model special-casing it.
"""

import numpy as np

from projection_check.camera_parameters import DistortionCoefficients, IntrinsicParameters
from projection_check.pose import ExtrinsicParameters


def _check_columns(points: np.ndarray, n_cols: int, name: str) -> np.ndarray:
    arr = np.asarray(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != n_cols:
        raise ValueError(f"{name} must have shape (N, {n_cols}), got shape {arr.shape}")
    return arr


def normalize(camera_points: np.ndarray) -> np.ndarray:
    """
    Perspective divide of camera-frame points.

    Args:
        camera_points: (N, 3) camera-frame points.

    Returns:
        (N, 2) normalized image coordinates (x/z, y/z).
    """
    pts = _check_columns(camera_points, 3, "camera_points")
    return pts[:, :2] / pts[:, 2:3]


def distort(normalized: np.ndarray, distortion: DistortionCoefficients) -> np.ndarray:
    """
    Apply radial and tangential distortion to normalized coordinates.

    With all coefficients zero this is the identity. At the principal point
    (x = y = 0) the output is (0, 0) whatever the coefficients.

    Args:
        normalized: (N, 2) normalized image coordinates.
        distortion: Distortion coefficients.

    Returns:
        (N, 2) distorted normalized coordinates.
    """
    xy = _check_columns(normalized, 2, "normalized")
    x = xy[:, 0]
    y = xy[:, 1]
    k1, k2, p1, p2, k3 = distortion.to_array()

    r2 = x * x + y * y
    radial = 1.0 + k1 * r2 + k2 * r2 * r2 + k3 * r2 * r2 * r2

    x_d = x * radial + 2.0 * p1 * x * y + p2 * (r2 + 2.0 * x * x)
    y_d = y * radial + p1 * (r2 + 2.0 * y * y) + 2.0 * p2 * x * y

    return np.stack([x_d, y_d], axis=1)


def to_pixels(distorted: np.ndarray, intrinsics: IntrinsicParameters) -> np.ndarray:
    """
    Apply the camera matrix to distorted normalized coordinates.

    Args:
        distorted: (N, 2) distorted normalized coordinates.
        intrinsics: Camera intrinsics.

    Returns:
        (N, 2) pixel coordinates (u, v).
    """
    xy = _check_columns(distorted, 2, "distorted")
    u = intrinsics.fx * xy[:, 0] + intrinsics.skew * xy[:, 1] + intrinsics.cx
    v = intrinsics.fy * xy[:, 1] + intrinsics.cy
    return np.stack([u, v], axis=1)


def camera_to_pixel(camera_points: np.ndarray, intrinsics: IntrinsicParameters) -> np.ndarray:
    """Project camera-frame points to pixels (steps 2-4)."""
    return to_pixels(distort(normalize(camera_points), intrinsics.distortion), intrinsics)


def project_points(
    extrinsics: ExtrinsicParameters,
    intrinsics: IntrinsicParameters,
    world_points: np.ndarray,
) -> np.ndarray:
    """
    Project world points to pixel coordinates (steps 1-4).

    Args:
        extrinsics: World-to-camera transform.
        intrinsics: Camera intrinsics and distortion.
        world_points: (N, 3) world points.

    Returns:
        (N, 2) pixel coordinates, index-aligned with world_points.
    """
    return camera_to_pixel(extrinsics.world_to_camera(world_points), intrinsics)
