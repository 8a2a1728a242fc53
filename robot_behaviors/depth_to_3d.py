"""Locate 2D detections in 3D using a depth image and the camera model."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field, replace

import numpy as np

from robot_behaviors.camera_model import CameraInfo, PinholeCameraModel
from robot_behaviors.detections import Detection2DArray, Detection3D, Detection3DArray, Header

logger = logging.getLogger(__name__)

SUPPORTED_ENCODINGS = ("16UC1", "32FC1")
MILLIMETRES_TO_METRES = 0.001


@dataclass
class DepthImage:
    """A single-channel depth image: millimetres for 16UC1, metres for 32FC1."""

    data: np.ndarray
    encoding: str = "32FC1"
    header: Header = field(default_factory=Header)

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data)
        if self.data.ndim != 2:
            raise ValueError("depth image must be two-dimensional")

    def depth_at(self, x: float, y: float) -> float:
        """Depth in metres at the pixel nearest to ``(x, y)``."""
        if self.encoding not in SUPPORTED_ENCODINGS:
            raise ValueError(f"encoding {self.encoding!r} carries no depth")
        col, row = round(x), round(y)
        height, width = self.data.shape
        if not (0 <= row < height and 0 <= col < width):
            raise IndexError(f"pixel ({col}, {row}) is outside the image")
        value = float(self.data[row, col])
        if self.encoding == "16UC1":
            return value * MILLIMETRES_TO_METRES
        return value


class DetectionTo3DfromDepthNode:
    """Projects detection centres through the camera model to their measured depth."""

    def __init__(
        self,
        publish: Callable[[Detection3DArray], None] | None = None,
        has_subscribers: Callable[[], bool] = lambda: True,
    ) -> None:
        self._publish = publish or (lambda detections: None)
        self._has_subscribers = has_subscribers
        self.model: PinholeCameraModel | None = None

    def callback_info(self, info: CameraInfo) -> None:
        """Take the first calibration received; later ones are ignored."""
        if self.model is not None:
            return
        logger.info("Camera info received")
        self.model = PinholeCameraModel(info)

    def callback_sync(
        self, image: DepthImage, detections: Detection2DArray
    ) -> Detection3DArray | None:
        """Return the published 3D detections, or None when nothing was published."""
        if self.model is None:
            logger.warning("Camera Model not yet available")
            return None
        if image.encoding not in SUPPORTED_ENCODINGS:
            logger.error("The image type has not depth info")
            return None
        if not self._has_subscribers():
            return None

        result = Detection3DArray(header=replace(detections.header))
        for detection in detections.detections:
            u, v = detection.bbox.center_x, detection.bbox.center_y
            try:
                depth = image.depth_at(u, v)
            except IndexError as error:
                logger.warning("Skipping detection: %s", error)
                continue
            if math.isnan(depth):
                continue

            ray = self.model.project_pixel_to_3d_ray(*self.model.rectify_point(u, v))
            point = (ray / ray.z) * depth
            result.detections.append(
                Detection3D(
                    header=replace(detections.header),
                    center=point,
                    results=[replace(hypothesis) for hypothesis in detection.results],
                )
            )

        if not result.detections:
            return None
        self._publish(result)
        return result