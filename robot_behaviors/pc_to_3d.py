"""Locate 2D detections in 3D using an organised point cloud."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field, replace

import numpy as np

from robot_behaviors.detections import Detection2DArray, Detection3D, Detection3DArray, Header
from robot_behaviors.geometry import Vector3

logger = logging.getLogger(__name__)


@dataclass
class PointCloud:
    """XYZ points stored row by row, ``width`` points per row."""

    points: np.ndarray
    width: int
    height: int
    header: Header = field(default_factory=Header)

    def __post_init__(self) -> None:
        self.points = np.asarray(self.points, dtype=np.float32).reshape(-1, 3)
        if len(self.points) != self.width * self.height:
            raise ValueError("point count does not match width * height")

    def at(self, column: int, row: int) -> Vector3:
        """Point at image position ``(column, row)`` of an organised cloud."""
        if self.height <= 1:
            raise ValueError("cannot use 2D indexing with an unorganized point cloud")
        index = row * self.width + column
        if not 0 <= index < len(self.points):
            raise IndexError(f"point index {index} is out of range")
        x, y, z = self.points[index]
        return Vector3(float(x), float(y), float(z))


class DetectionTo3DfromPCNode:
    """Takes the cloud point under each detection centre as its 3D position."""

    def __init__(
        self,
        publish: Callable[[Detection3DArray], None] | None = None,
        has_subscribers: Callable[[], bool] = lambda: True,
    ) -> None:
        self._publish = publish or (lambda detections: None)
        self._has_subscribers = has_subscribers

    def callback_sync(
        self, cloud: PointCloud, detections: Detection2DArray
    ) -> Detection3DArray | None:
        """Return the published 3D detections, or None when nothing was published."""
        if not self._has_subscribers():
            return None

        result = Detection3DArray(header=replace(detections.header))
        for detection in detections.detections:
            center = cloud.at(int(detection.bbox.center_x), int(detection.bbox.center_y))
            if math.isnan(center.x) or math.isinf(center.x):
                continue
            result.detections.append(
                Detection3D(
                    header=replace(detections.header),
                    center=center,
                    results=[replace(hypothesis) for hypothesis in detection.results],
                )
            )

        if not result.detections:
            return None
        self._publish(result)
        return result