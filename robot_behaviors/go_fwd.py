"""Drive forward a set distance, turn around, then stop."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import IntEnum

from robot_behaviors.geometry import Twist, TransformBuffer, Vector3

logger = logging.getLogger(__name__)

FORWARD_SPEED = 0.3
TURN_SPEED = 0.3
TARGET_DISTANCE = 5.0
TARGET_ANGLE = 3.14
CONTROL_PERIOD = 0.05


class _Phase(IntEnum):
    DRIVING = 0
    TURNING = 1
    STOPPING = 2
    DONE = 3


class GoFwdNode:
    """Uses the odom -> base_footprint transform to sequence its motion."""

    def __init__(
        self,
        buffer: TransformBuffer,
        publish: Callable[[Twist], None] | None = None,
        shutdown: Callable[[], None] | None = None,
    ) -> None:
        self.buffer = buffer
        self._publish = publish or (lambda twist: None)
        self._shutdown = shutdown or (lambda: None)
        self.state = int(_Phase.DRIVING)
        self.shutdown_requested = False
        logger.info("Fwd")

    def control_cycle(self) -> Twist | None:
        """Run one step; returns the published twist, or None without a transform."""
        if not self.buffer.can_transform("odom", "base_footprint"):
            logger.warning("Error in TF odom -> base_footprint")
            return None

        pose = self.buffer.lookup_transform("odom", "base_footprint").transform
        x = pose.translation.x
        angle = pose.rotation.angle()
        logger.info("X: %f, Angle: %f", x, angle)

        if self.state == _Phase.DRIVING:
            twist = Twist(linear=Vector3(x=FORWARD_SPEED))
        elif self.state == _Phase.TURNING:
            twist = Twist(angular=Vector3(z=TURN_SPEED))
        else:
            twist = Twist()
            if self.state != _Phase.STOPPING:
                self.shutdown_requested = True
                self._shutdown()

        self._publish(twist)

        if self.state == _Phase.DRIVING and x > TARGET_DISTANCE:
            logger.info("Turning")
            self.state = int(_Phase.TURNING)
        elif self.state == _Phase.TURNING and angle > TARGET_ANGLE:
            logger.info("Stopping")
            self.state = int(_Phase.STOPPING)
        elif self.state == _Phase.STOPPING:
            self.state = int(_Phase.DONE)
        return twist