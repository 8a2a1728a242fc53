"""Report the nearest laser return and a repulsive vector away from it."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from robot_behaviors.geometry import Vector3

logger = logging.getLogger(__name__)

OBSTACLE_THRESHOLD = 0.5
REPULSION_GAIN = 0.1


@dataclass
class LaserScan:
    """Range readings taken at ``angle_min + i * angle_increment`` radians."""

    ranges: Sequence[float]
    angle_min: float = 0.0
    angle_increment: float = 0.0


def _normalize(angle: float) -> float:
    while angle > math.pi:
        angle -= 2.0 * math.pi
    while angle < -math.pi:
        angle += 2.0 * math.pi
    return angle


class ObstacleDetectorNode:
    """Publishes an obstacle flag and a repulsive vector for every scan."""

    def __init__(
        self,
        publish_obstacle: Callable[[bool], None] | None = None,
        publish_vector: Callable[[Vector3], None] | None = None,
        min_distance: float = 0.5,
    ) -> None:
        self._publish_obstacle = publish_obstacle or (lambda flag: None)
        self._publish_vector = publish_vector or (lambda vector: None)
        self.min_distance = float(min_distance)
        logger.info("ObstacleDetectorNode set to %f m", self.min_distance)

    def laser_callback(self, scan: LaserScan) -> tuple[bool, Vector3]:
        """Return the obstacle flag and repulsive vector that were published."""
        if not scan.ranges:
            raise ValueError("scan holds no ranges")
        min_idx, distance_min = min(enumerate(scan.ranges), key=lambda item: item[1])
        distance_min = float(distance_min)

        angle = scan.angle_min + scan.angle_increment * min_idx
        obstacle = distance_min > OBSTACLE_THRESHOLD
        if obstacle:
            angle = _normalize(angle)
            logger.info(
                "Obstacle in (%.2f, %.2f)", distance_min, angle * 180.0 / math.pi
            )
        self._publish_obstacle(obstacle)

        try:
            strength = REPULSION_GAIN / distance_min**2
        except ZeroDivisionError:
            strength = math.inf
        intensity = 0.0 if math.isnan(strength) else min(0.0, strength)

        angle = angle + math.pi if angle < 0 else angle - math.pi
        vector = Vector3(
            -math.cos(angle) * intensity,
            -math.sin(angle) * intensity,
            0.0,
        )
        self._publish_vector(vector)
        return obstacle, vector