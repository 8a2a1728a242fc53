"""Follow a target by combining attractive and repulsive vectors."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from enum import Enum

from robot_behaviors.geometry import Twist, Vector3

logger = logging.getLogger(__name__)

SEARCH_TURN_SPEED = 0.3
MAX_LINEAR = 0.2
LINEAR_GAIN = 0.2
MAX_ANGULAR = 0.3
CONTROL_PERIOD = 0.02


class FollowState(Enum):
    SEARCHING = "BUSCAR"
    FOLLOWING = "SEGUIR"


class CenterNode:
    """Turns in place until a target appears, then steers toward it."""

    def __init__(self, publish: Callable[[Twist], None] | None = None) -> None:
        self._publish = publish or (lambda twist: None)
        self.state = FollowState.FOLLOWING
        self.attractive = Vector3()
        self.repulsive = Vector3()
        self.resultant = Vector3()

    def attractive_callback(self, vector: Vector3) -> None:
        self.attractive = vector
        logger.info("Received attractive vector: [%f, %f, %f]", vector.x, vector.y, vector.z)

    def repulsive_callback(self, vector: Vector3) -> None:
        self.repulsive = vector
        logger.info("Received repulsive vector: [%f, %f, %f]", vector.x, vector.y, vector.z)

    def go_state(self, new_state: FollowState) -> None:
        self.state = FollowState(new_state)
        logger.info("State changed to: %s", self.state.value)

    def _has_target(self) -> bool:
        return self.attractive.x != 0.0 or self.attractive.y != 0.0

    def control_cycle(self) -> Twist:
        twist = Twist()
        if self.state is FollowState.SEARCHING:
            if self._has_target():
                self.go_state(FollowState.FOLLOWING)
            else:
                twist = Twist(angular=Vector3(z=SEARCH_TURN_SPEED))
        elif self._has_target():
            self.resultant = Vector3(
                self.attractive.x + self.repulsive.x,
                self.attractive.y + self.repulsive.y,
            )
            magnitude = math.hypot(self.resultant.x, self.resultant.y)
            if self.resultant.x < 0.0:
                magnitude = -magnitude
            angle = math.atan2(self.resultant.y, self.resultant.x)
            twist = Twist(
                linear=Vector3(x=min(magnitude * LINEAR_GAIN, MAX_LINEAR)),
                angular=Vector3(z=max(-MAX_ANGULAR, min(-angle, MAX_ANGULAR))),
            )
        else:
            self.go_state(FollowState.SEARCHING)

        self._publish(twist)
        logger.info(
            "Publishing velocity: linear.x: %f, angular.z: %f", twist.linear.x, twist.angular.z
        )
        return twist