"""Message types for 2D and 3D object detections."""

from __future__ import annotations

from dataclasses import dataclass, field

from robot_behaviors.geometry import Vector3


@dataclass
class Header:
    """Timestamp in seconds and coordinate frame of a message."""

    stamp: float = 0.0
    frame_id: str = ""


@dataclass
class ObjectHypothesis:
    """A class label with its confidence score."""

    class_id: str = ""
    score: float = 0.0


@dataclass
class BoundingBox2D:
    """Axis-aligned box in pixel coordinates, given by its centre and size."""

    center_x: float = 0.0
    center_y: float = 0.0
    size_x: float = 0.0
    size_y: float = 0.0


@dataclass
class Detection2D:
    header: Header = field(default_factory=Header)
    bbox: BoundingBox2D = field(default_factory=BoundingBox2D)
    results: list[ObjectHypothesis] = field(default_factory=list)


@dataclass
class Detection2DArray:
    header: Header = field(default_factory=Header)
    detections: list[Detection2D] = field(default_factory=list)


@dataclass
class Detection3D:
    """A detection located by the 3D position of its centre."""

    header: Header = field(default_factory=Header)
    center: Vector3 = field(default_factory=Vector3)
    results: list[ObjectHypothesis] = field(default_factory=list)


@dataclass
class Detection3DArray:
    header: Header = field(default_factory=Header)
    detections: list[Detection3D] = field(default_factory=list)