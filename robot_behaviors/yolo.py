"""Convert YOLO detections into generic 2D detection messages."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from robot_behaviors.detections import (
    BoundingBox2D,
    Detection2D,
    Detection2DArray,
    Header,
    ObjectHypothesis,
)

logger = logging.getLogger(__name__)


@dataclass
class YoloDetection:
    """One object found by the YOLO detector."""

    class_name: str = ""
    score: float = 0.0
    bbox: BoundingBox2D = field(default_factory=BoundingBox2D)


@dataclass
class YoloDetectionArray:
    header: Header = field(default_factory=Header)
    detections: list[YoloDetection] = field(default_factory=list)


class YoloDetectionNode:
    """Republishes every YOLO detection as a Detection2D with one hypothesis."""

    def __init__(self, publish: Callable[[Detection2DArray], None] | None = None) -> None:
        self._publish = publish or (lambda detections: None)

    def detection_callback(self, msg: YoloDetectionArray) -> Detection2DArray:
        converted = Detection2DArray(
            header=replace(msg.header),
            detections=[
                Detection2D(
                    header=replace(msg.header),
                    bbox=replace(detection.bbox),
                    results=[
                        ObjectHypothesis(class_id=detection.class_name, score=detection.score)
                    ],
                )
                for detection in msg.detections
            ],
        )
        self._publish(converted)
        return converted