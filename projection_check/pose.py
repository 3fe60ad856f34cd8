"""Rigid-body pose and extrinsic parameters.

Frozen dataclasses for the camera pose and its world-to-camera view.

Coordinate System Conventions:
    World Frame (Right-Handed):
      - Arbitrary origin; sampled world points live here.

    Camera Frame (Right-Handed, standard computer vision):
      - Origin: Camera optical center
      - X-axis: Right (in image)
      - Y-axis: Down (in image)
      - Z-axis: Forward (along optical axis, into the scene)

    Rotation convention:
      R = Rz(yaw) @ Ry(pitch) @ Rx(roll)

A Pose is the camera-to-world transform (where the camera sits and how it is
oriented in the world). ExtrinsicParameters expose its inverse, the
world-to-camera transform used for projection.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from projection_check.types import Radians

# Tolerance on |q| - 1 for a quaternion to count as a unit quaternion
UNIT_NORM_TOLERANCE = 1e-9

# |R[2, 0]| above this is treated as gimbal lock during Euler decomposition
GIMBAL_LOCK_THRESHOLD = 1.0 - 1e-12


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


def _as_points(points: np.ndarray) -> np.ndarray:
    """Validate and return an (N, 3) float64 view of ``points``."""
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"points must have shape (N, 3), got shape {pts.shape}")
    return pts


@dataclass(frozen=True)
class UnitQuaternion:
    """Rotation stored as a unit quaternion ``w + xi + yj + zk``.

    Attributes:
        w: Scalar part.
        x: First vector component.
        y: Second vector component.
        z: Third vector component.
    """

    w: float
    x: float
    y: float
    z: float

    def __post_init__(self) -> None:
        """Validate that the quaternion is finite and has unit norm."""
        components = (self.w, self.x, self.y, self.z)
        if not all(math.isfinite(c) for c in components):
            raise ValueError(f"Quaternion contains NaN or Infinity values: {components}")
        norm = math.sqrt(sum(c * c for c in components))
        if abs(norm - 1.0) > UNIT_NORM_TOLERANCE:
            raise ValueError(f"Quaternion must have unit norm, got |q| = {norm}")

    @classmethod
    def identity(cls) -> UnitQuaternion:
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_euler_angles(cls, roll: Radians, pitch: Radians, yaw: Radians) -> UnitQuaternion:
        """Build the rotation ``Rz(yaw) @ Ry(pitch) @ Rx(roll)``.

        Args:
            roll: Rotation about X in radians.
            pitch: Rotation about Y in radians.
            yaw: Rotation about Z in radians.

        Returns:
            Unit quaternion for the composed rotation.
        """
        sr, cr = math.sin(roll * 0.5), math.cos(roll * 0.5)
        sp, cp = math.sin(pitch * 0.5), math.cos(pitch * 0.5)
        sy, cy = math.sin(yaw * 0.5), math.cos(yaw * 0.5)

        w = cr * cp * cy + sr * sp * sy
        x = sr * cp * cy - cr * sp * sy
        y = cr * sp * cy + sr * cp * sy
        z = cr * cp * sy - sr * sp * cy

        # Renormalize away the rounding of the trig products
        norm = math.sqrt(w * w + x * x + y * y + z * z)
        return cls(w / norm, x / norm, y / norm, z / norm)

    def conjugate(self) -> UnitQuaternion:
        """Inverse rotation (the conjugate of a unit quaternion)."""
        return UnitQuaternion(self.w, -self.x, -self.y, -self.z)

    def to_array(self) -> np.ndarray:
        """Components as ``[w, x, y, z]``."""
        return np.array([self.w, self.x, self.y, self.z], dtype=np.float64)

    def to_rotation_matrix(self) -> np.ndarray:
        """Convert to a proper orthonormal 3x3 rotation matrix."""
        w, x, y, z = self.w, self.x, self.y, self.z
        return np.array([
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - z * w), 2.0 * (x * z + y * w)],
            [2.0 * (x * y + z * w), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - x * w)],
            [2.0 * (x * z - y * w), 2.0 * (y * z + x * w), 1.0 - 2.0 * (x * x + y * y)],
        ], dtype=np.float64)

    def euler_angles(self) -> tuple[Radians, Radians, Radians]:
        """Decompose into ``(roll, pitch, yaw)`` in radians.

        The triple rebuilds the same rotation through ``from_euler_angles``
        but need not equal the triple the rotation was built from: pitch is
        returned in [-pi/2, pi/2], and at gimbal lock (pitch = +-pi/2) yaw is
        pinned to 0 with the whole remaining rotation folded into roll.
        """
        R = self.to_rotation_matrix()
        r20 = R[2, 0]

        if abs(r20) < GIMBAL_LOCK_THRESHOLD:
            roll = math.atan2(R[2, 1], R[2, 2])
            pitch = -math.asin(r20)
            yaw = math.atan2(R[1, 0], R[0, 0])
        elif r20 < 0.0:
            # pitch = +pi/2
            roll = math.atan2(R[0, 1], R[0, 2])
            pitch = math.pi / 2.0
            yaw = 0.0
        else:
            # pitch = -pi/2
            roll = math.atan2(-R[0, 1], -R[0, 2])
            pitch = -math.pi / 2.0
            yaw = 0.0

        return Radians(roll), Radians(pitch), Radians(yaw)


@dataclass(frozen=True)
class Pose:
    """Immutable rigid-body transform (camera-to-world).

    Attributes:
        rotation: Orientation of the camera in the world frame.
        translation: Camera center [X, Y, Z] in the world frame (immutable copy).
    """

    rotation: UnitQuaternion

    # Translation (stored as bytes for hashability, accessed via property)
    _translation_data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        """Validate the translation vector."""
        t = np.frombuffer(self._translation_data, dtype=np.float64)
        if t.shape != (3,):
            raise ValueError(f"translation must have 3 elements [X, Y, Z], got {t.size}")
        if not np.all(np.isfinite(t)):
            raise ValueError("translation contains NaN or Infinity values")

    @property
    def translation(self) -> np.ndarray:
        """Get the translation [X, Y, Z].

        Returns:
            Immutable copy of the translation vector.
        """
        return _readonly(np.frombuffer(self._translation_data, dtype=np.float64).copy())

    @property
    def rotation_matrix(self) -> np.ndarray:
        """3x3 rotation matrix of this pose."""
        return _readonly(self.rotation.to_rotation_matrix())

    @classmethod
    def create(cls, translation: np.ndarray, rotation: UnitQuaternion) -> Pose:
        """Create a Pose from a numpy translation vector.

        Args:
            translation: Translation [X, Y, Z].
            rotation: Unit quaternion rotation.

        Returns:
            New Pose instance.

        Raises:
            ValueError: If the translation is malformed or not finite.
        """
        t_bytes = np.asarray(translation, dtype=np.float64).reshape(-1).tobytes()
        return cls(rotation=rotation, _translation_data=t_bytes)

    @classmethod
    def from_euler_angles(
        cls,
        translation: np.ndarray,
        roll: Radians,
        pitch: Radians,
        yaw: Radians,
    ) -> Pose:
        return cls.create(translation, UnitQuaternion.from_euler_angles(roll, pitch, yaw))

    @classmethod
    def identity(cls) -> Pose:
        return cls.create(np.zeros(3), UnitQuaternion.identity())

    def inverse(self) -> Pose:
        """Return the inverse transform: rotation R^T, translation -R^T t."""
        inv_rotation = self.rotation.conjugate()
        inv_translation = -(inv_rotation.to_rotation_matrix() @ self.translation)
        return Pose.create(inv_translation, inv_rotation)

    def transform_points(self, points: np.ndarray) -> np.ndarray:
        """Apply ``R @ p + t`` to every row of an (N, 3) array."""
        pts = _as_points(points)
        return pts @ self.rotation.to_rotation_matrix().T + self.translation


@dataclass(frozen=True)
class ExtrinsicParameters:
    """World-to-camera view of a camera Pose.

    Attributes:
        pose: The camera pose (camera-to-world) these extrinsics derive from.
    """

    pose: Pose

    @classmethod
    def from_pose(cls, pose: Pose) -> ExtrinsicParameters:
        return cls(pose=pose)

    @property
    def camera_to_world(self) -> Pose:
        return self.pose

    @property
    def world_to_camera_pose(self) -> Pose:
        return self.pose.inverse()

    @property
    def rotation(self) -> UnitQuaternion:
        """World-to-camera rotation."""
        return self.pose.rotation.conjugate()

    @property
    def rotation_matrix(self) -> np.ndarray:
        """World-to-camera 3x3 rotation matrix R."""
        return _readonly(self.rotation.to_rotation_matrix())

    @property
    def translation(self) -> np.ndarray:
        """World-to-camera translation t (so that X_cam = R @ X_world + t)."""
        return self.world_to_camera_pose.translation

    @property
    def camera_center(self) -> np.ndarray:
        """Camera optical center in world coordinates."""
        return self.pose.translation

    @property
    def matrix(self) -> np.ndarray:
        """3x4 world-to-camera matrix ``[R | t]``."""
        w2c = self.world_to_camera_pose
        Rt = np.hstack([w2c.rotation.to_rotation_matrix(), w2c.translation.reshape(3, 1)])
        return _readonly(Rt)

    def euler_angles(self) -> tuple[Radians, Radians, Radians]:
        """``(roll, pitch, yaw)`` of the world-to-camera rotation, in radians."""
        return self.rotation.euler_angles()

    def world_to_camera(self, points: np.ndarray) -> np.ndarray:
        """Transform (N, 3) world points into the camera frame.

        Args:
            points: World points, one per row.

        Returns:
            Camera-frame points, one per row, same order.
        """
        return self.world_to_camera_pose.transform_points(points)
