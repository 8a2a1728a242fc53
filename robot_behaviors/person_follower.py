"""Follow a person published as the ``target`` frame, searching when it is lost."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Mapping
from enum import IntEnum

from robot_behaviors.geometry import Twist, TransformBuffer, Vector3
from robot_behaviors.pid import PIDController

logger = logging.getLogger(__name__)

CONTROL_PERIOD = 0.1
TARGET_TIMEOUT = 1.0
DISTANCE_DEADBAND = 0.15
ROTATION_GAIN = 1.5

DEFAULT_PARAMETERS: dict[str, float] = {
    "min_lin": -0.3,
    "max_lin": 0.3,
    "min_rot": -0.8,
    "max_rot": 0.8,
    "limit_distance": 1.0,
}


class FollowerState(IntEnum):
    FOLLOWING = 0
    SEARCHING = 1


class Side(IntEnum):
    LEFT = 0
    RIGHT = 1


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


class _FollowerCore:
    """Follow/search behaviour shared by the plain and lifecycle followers."""

    def __init__(self, buffer: TransformBuffer, clock: Callable[[], float]) -> None:
        self.buffer = buffer
        self._clock = clock
        self.vlin_pid = PIDController(0.0, 1.0, 0.0, 0.7)
        self.vrot_pid = PIDController(0.0, 1.0, 0.3, 1.0)
        self.state = FollowerState.SEARCHING
        self.side = Side.RIGHT
        self._apply_parameters(None)

    def _apply_parameters(self, overrides: Mapping[str, float] | None) -> None:
        overrides = dict(overrides or {})
        unknown = set(overrides) - set(DEFAULT_PARAMETERS)
        if unknown:
            raise ValueError(f"unknown parameters: {', '.join(sorted(unknown))}")
        params = {**DEFAULT_PARAMETERS, **overrides}
        self.min_lin = float(params["min_lin"])
        self.max_lin = float(params["max_lin"])
        self.min_rot = float(params["min_rot"])
        self.max_rot = float(params["max_rot"])
        self.limit_distance = float(params["limit_distance"])
        logger.info(
            "min lin = %f, max lin = %f, min rot = %f, max rot = %f",
            self.min_lin,
            self.max_lin,
            self.min_rot,
            self.max_rot,
        )

    def _emit(self, twist: Twist) -> None:
        raise NotImplementedError

    def follow(self) -> Twist | None:
        """Steer toward the target; returns the command, or None without a transform."""
        if not self.buffer.can_transform("base_footprint", "target"):
            logger.warning("Error in TF base_footprint -> target")
            return None

        origin = self.buffer.lookup_transform("base_footprint", "target").transform.translation
        dist = math.hypot(origin.x, origin.y)
        angle = math.atan2(origin.y, origin.x)

        if angle > 0:
            self.side = Side.LEFT
        elif angle < 0:
            self.side = Side.RIGHT

        dist_limited = dist - self.limit_distance
        if abs(dist_limited) <= DISTANCE_DEADBAND:
            dist_limited = 0.0

        vel_lin = _clamp(self.vrot_pid.get_output(dist_limited), self.min_lin, self.max_lin)
        vel_rot = _clamp(
            self.vlin_pid.get_output(angle) * ROTATION_GAIN, self.min_rot, self.max_rot
        )
        logger.info(
            "target at %.2f m; angle = %.2f rad; vel_lin = %.2f m/s; vel_rot = %.2f rad/s",
            dist,
            angle,
            vel_lin,
            vel_rot,
        )

        twist = Twist(linear=Vector3(x=vel_lin), angular=Vector3(z=vel_rot))
        self._emit(twist)
        return twist

    def search(self) -> Twist:
        """Turn in place toward the side the target was last seen on."""
        logger.info("Searching...")
        turn = self.min_rot if self.side == Side.LEFT else self.max_rot
        twist = Twist(angular=Vector3(z=turn))
        self._emit(twist)
        return twist

    def check_following(self) -> bool:
        """True while odom -> target exists and is no older than the timeout."""
        if not self.buffer.can_transform("odom", "target"):
            logger.warning("Error in TF odom -> target")
            return False
        odom2target = self.buffer.lookup_transform("odom", "target")
        return self._clock() - odom2target.stamp <= TARGET_TIMEOUT

    def state_machine(self) -> FollowerState:
        """Run one control step and return the resulting state."""
        if self.state == FollowerState.FOLLOWING:
            self.follow()
            if not self.check_following():
                self.state = FollowerState.SEARCHING
        elif self.state == FollowerState.SEARCHING:
            self.search()
            if self.check_following():
                self.state = FollowerState.FOLLOWING
        return self.state


class PersonFollowerNode(_FollowerCore):
    """Follower that is configured and running from construction."""

    def __init__(
        self,
        buffer: TransformBuffer,
        publish: Callable[[Twist], None] | None = None,
        clock: Callable[[], float] = time.time,
        parameters: Mapping[str, float] | None = None,
    ) -> None:
        super().__init__(buffer, clock)
        self._publish = publish or (lambda twist: None)
        if parameters:
            self._apply_parameters(parameters)
        self.side = Side.RIGHT
        self.state = FollowerState.SEARCHING
        self.timer_period = CONTROL_PERIOD

    def _emit(self, twist: Twist) -> None:
        self._publish(twist)

    def state_machine(self) -> FollowerState:
        return super().state_machine()

    def check_following(self) -> bool:
        return super().check_following()

    def follow(self) -> Twist | None:
        return super().follow()

    def search(self) -> Twist:
        return super().search()