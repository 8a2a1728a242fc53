"""Turn 3D person detections into an odom -> target transform."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from robot_behaviors.detections import Detection3DArray
from robot_behaviors.geometry import (
    Transform,
    TransformBuffer,
    TransformStamped,
    Vector3,
)

logger = logging.getLogger(__name__)

TARGET_CLASS = "person"
ODOM_FRAME = "odom"
BASE_FRAME = "base_footprint"
TARGET_FRAME = "target"


class DetectionTfPublisher:
    """Locates the last detected person and broadcasts its pose in the odom frame."""

    def __init__(
        self,
        buffer: TransformBuffer,
        send_transform: Callable[[TransformStamped], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.buffer = buffer
        self._send_transform = send_transform or (lambda transform: None)
        self._clock = clock

    def publish_odom2target(self, bf2target: TransformStamped) -> TransformStamped | None:
        """Chain odom -> base_footprint with ``bf2target`` and broadcast the result.

        Returns the broadcast transform, or None when odom -> base_footprint is unknown.
        """
        try:
            odom2bf = self.buffer.lookup_transform(ODOM_FRAME, BASE_FRAME)
        except Exception as error:  # noqa: BLE001 - any lookup failure is reported alike
            logger.warning("Error in TF %s -> %s [%s]", ODOM_FRAME, BASE_FRAME, error)
            return None

        odom2target = TransformStamped(
            frame_id=ODOM_FRAME,
            child_frame_id=TARGET_FRAME,
            transform=odom2bf.transform.compose(bf2target.transform),
            stamp=self._clock(),
        )
        self._send_transform(odom2target)

        translation = odom2target.transform.translation
        logger.debug(
            "target at: x = %f, y = %f, z = %f", translation.x, translation.y, translation.z
        )
        return odom2target

    def detection_callback(self, detections: Detection3DArray) -> TransformStamped | None:
        """Publish the target transform for the last person among ``detections``."""
        position: Vector3 | None = None
        for detection in detections.detections:
            if detection.results and detection.results[0].class_id == TARGET_CLASS:
                position = detection.center

        if position is None:
            return None

        # Camera optical axes (z forward, x right, y down) to base axes.
        bf2target = TransformStamped(
            frame_id=BASE_FRAME,
            child_frame_id=TARGET_FRAME,
            transform=Transform(translation=Vector3(position.z, -position.x, position.y)),
            stamp=self._clock(),
        )
        return self.publish_odom2target(bf2target)