"""Vectors, quaternions, rigid transforms and a buffer of frame transforms."""

from __future__ import annotations

import math
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Vector3:
    """A three-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector3:
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3) -> Vector3:
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def norm(self) -> float:
        return math.sqrt(self.dot(self))


@dataclass
class Twist:
    """Linear and angular velocity command."""

    linear: Vector3 = field(default_factory=Vector3)
    angular: Vector3 = field(default_factory=Vector3)


@dataclass(frozen=True)
class Quaternion:
    """A rotation quaternion; the default is the identity rotation."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def from_axis_angle(cls, axis: Vector3, angle: float) -> Quaternion:
        length = axis.norm()
        if length == 0.0:
            raise ValueError("rotation axis must not be zero")
        half = angle / 2.0
        scale = math.sin(half) / length
        return cls(axis.x * scale, axis.y * scale, axis.z * scale, math.cos(half))

    def multiply(self, other: Quaternion) -> Quaternion:
        """Hamilton product ``self * other``."""
        return Quaternion(
            x=self.w * other.x + self.x * other.w + self.y * other.z - self.z * other.y,
            y=self.w * other.y - self.x * other.z + self.y * other.w + self.z * other.x,
            z=self.w * other.z + self.x * other.y - self.y * other.x + self.z * other.w,
            w=self.w * other.w - self.x * other.x - self.y * other.y - self.z * other.z,
        )

    __mul__ = multiply

    def conjugate(self) -> Quaternion:
        return Quaternion(-self.x, -self.y, -self.z, self.w)

    def rotate(self, vector: Vector3) -> Vector3:
        """Rotate a vector by this (unit) quaternion."""
        axis = Vector3(self.x, self.y, self.z)
        t = 2.0 * axis.cross(vector)
        return vector + self.w * t + axis.cross(t)

    def angle(self) -> float:
        """Rotation angle in radians, in the range [0, 2*pi]."""
        return 2.0 * math.acos(max(-1.0, min(1.0, self.w)))


@dataclass(frozen=True)
class Transform:
    """A rigid transform: rotation followed by translation."""

    translation: Vector3 = field(default_factory=Vector3)
    rotation: Quaternion = field(default_factory=Quaternion)

    def compose(self, other: Transform) -> Transform:
        """Return ``self * other``: apply ``other`` first, then ``self``."""
        return Transform(
            translation=self.translation + self.rotation.rotate(other.translation),
            rotation=self.rotation.multiply(other.rotation),
        )

    def inverse(self) -> Transform:
        inverse_rotation = self.rotation.conjugate()
        return Transform(
            translation=-inverse_rotation.rotate(self.translation),
            rotation=inverse_rotation,
        )


@dataclass
class TransformStamped:
    """Pose of ``child_frame_id`` expressed in ``frame_id`` at ``stamp`` seconds."""

    frame_id: str
    child_frame_id: str
    transform: Transform = field(default_factory=Transform)
    stamp: float = 0.0


class TransformError(LookupError):
    """Raised when a transform between two frames cannot be resolved."""


class TransformBuffer:
    """Holds the latest transform of each frame relative to its parent."""

    def __init__(self) -> None:
        self._parents: dict[str, TransformStamped] = {}

    def set_transform(self, transform: TransformStamped) -> None:
        if transform.frame_id == transform.child_frame_id:
            raise TransformError(
                f"transform from frame {transform.frame_id!r} to itself is not allowed"
            )
        self._parents[transform.child_frame_id] = transform

    def _known(self, frame: str) -> bool:
        return frame in self._parents or any(
            ts.frame_id == frame for ts in self._parents.values()
        )

    def _ancestry(self, frame: str) -> list[str]:
        frames = [frame]
        while frames[-1] in self._parents:
            parent = self._parents[frames[-1]].frame_id
            if parent in frames:
                raise TransformError(f"loop detected in frame tree at {parent!r}")
            frames.append(parent)
        return frames

    def _to_ancestor(self, frame: str, ancestor: str) -> tuple[Transform, list[float]]:
        result = Transform()
        stamps = []
        current = frame
        while current != ancestor:
            link = self._parents[current]
            result = link.transform.compose(result)
            stamps.append(link.stamp)
            current = link.frame_id
        return result, stamps

    def _resolve(self, target_frame: str, source_frame: str) -> TransformStamped:
        for frame in (target_frame, source_frame):
            if not self._known(frame):
                raise TransformError(f"frame {frame!r} does not exist")
        source_chain = self._ancestry(source_frame)
        target_set = set(self._ancestry(target_frame))
        common = next((frame for frame in source_chain if frame in target_set), None)
        if common is None:
            raise TransformError(
                f"frames {target_frame!r} and {source_frame!r} are not connected"
            )
        source_tf, source_stamps = self._to_ancestor(source_frame, common)
        target_tf, target_stamps = self._to_ancestor(target_frame, common)
        stamps = source_stamps + target_stamps
        return TransformStamped(
            frame_id=target_frame,
            child_frame_id=source_frame,
            transform=target_tf.inverse().compose(source_tf),
            stamp=min(stamps) if stamps else 0.0,
        )

    def can_transform(self, target_frame: str, source_frame: str) -> bool:
        try:
            self._resolve(target_frame, source_frame)
        except TransformError:
            return False
        return True

    def lookup_transform(self, target_frame: str, source_frame: str) -> TransformStamped:
        """Latest pose of ``source_frame`` expressed in ``target_frame``."""
        return self._resolve(target_frame, source_frame)