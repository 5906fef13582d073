"""
Pose value type and rotation helpers.

Quaternions use the scipy scalar-last convention (x, y, z, w).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

Vector3 = Tuple[float, float, float]
Quaternion = Tuple[float, float, float, float]

IDENTITY_QUATERNION: Quaternion = (0.0, 0.0, 0.0, 1.0)


def _as_vector(values: Sequence[float], expected_len: int, name: str) -> Tuple[float, ...]:
    if len(values) != expected_len:
        raise ValueError(f"{name}: expected length {expected_len}, got {len(values)}")
    return tuple(float(v) for v in values)


def yaw_quaternion(angle: float) -> Quaternion:
    """Quaternion for a rotation of `angle` radians about the world Z axis."""
    quat = Rotation.from_euler("z", angle).as_quat()
    return (float(quat[0]), float(quat[1]), float(quat[2]), float(quat[3]))


@dataclass(frozen=True)
class Pose:
    """Position in meters plus a unit orientation quaternion."""

    position: Vector3 = (0.0, 0.0, 0.0)
    orientation: Quaternion = IDENTITY_QUATERNION

    def __post_init__(self):
        position = _as_vector(self.position, 3, "position")
        quat = np.asarray(_as_vector(self.orientation, 4, "orientation"), dtype=float)
        norm = float(np.linalg.norm(quat))
        if norm < 1e-9:
            raise ValueError("orientation quaternion must be non-zero")
        quat = quat / norm
        object.__setattr__(self, "position", position)
        object.__setattr__(self, "orientation", tuple(float(q) for q in quat))

    @classmethod
    def from_xyz_yaw(cls, x: float, y: float, z: float, yaw: float = 0.0) -> "Pose":
        return cls(position=(x, y, z), orientation=yaw_quaternion(yaw))

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def z(self) -> float:
        return self.position[2]

    def rotation(self) -> Rotation:
        return Rotation.from_quat(self.orientation)

    def yaw(self) -> float:
        """Heading about world Z in radians, wrapped to [-pi, pi]."""
        return float(self.rotation().as_euler("zyx")[0])

    def translated(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "Pose":
        """Copy of this pose shifted in the world frame; orientation unchanged."""
        x, y, z = self.position
        return Pose(position=(x + dx, y + dy, z + dz), orientation=self.orientation)

    def with_orientation(self, orientation: Quaternion) -> "Pose":
        return Pose(position=self.position, orientation=orientation)

    def distance_to(self, other: "Pose") -> float:
        return float(np.linalg.norm(np.subtract(self.position, other.position)))

    def is_close(self, other: "Pose", tol: float = 1e-6, angle_tol: float = 1e-6) -> bool:
        """Equal position and equivalent orientation (q and -q match)."""
        if self.distance_to(other) > tol:
            return False
        relative = self.rotation().inv() * other.rotation()
        return float(relative.magnitude()) <= angle_tol

    def to_dict(self) -> Dict[str, Any]:
        return {"position": list(self.position), "orientation": list(self.orientation)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pose":
        if "yaw" in data or "orientation" not in data:
            position = data.get("position") or [data.get("x", 0.0), data.get("y", 0.0), data.get("z", 0.0)]
            return cls.from_xyz_yaw(*position, yaw=math.radians(float(data.get("yaw", 0.0))))
        return cls(position=tuple(data["position"]), orientation=tuple(data["orientation"]))
