"""Drive forward until the bumper is pressed or a time limit passes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import IntEnum

from robot_behaviors.geometry import Twist, Vector3

logger = logging.getLogger(__name__)

CRUISE_SPEED = 0.1
DRIVE_TIMEOUT = 5.0
CONTROL_PERIOD = 0.05


class BumperState(IntEnum):
    RELEASED = 0
    PRESSED = 1


class BumperNode:
    """Publishes a forward velocity while the bumper is free and time remains."""

    def __init__(
        self,
        publish: Callable[[Twist], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._publish = publish or (lambda twist: None)
        self._clock = clock
        self.bump_pressed = False
        self.init_time = clock()

    def bumper_callback(self, state: int) -> None:
        self.bump_pressed = state == BumperState.PRESSED

    def control_cycle(self) -> Twist:
        elapsed = self._clock() - self.init_time
        logger.info(
            "Bumper state: %s, Time elapsed: %f seconds",
            "PRESSED" if self.bump_pressed else "RELEASED",
            elapsed,
        )
        if self.bump_pressed or elapsed > DRIVE_TIMEOUT:
            twist = Twist()
        else:
            twist = Twist(linear=Vector3(x=CRUISE_SPEED))
        self._publish(twist)
        return twist