"""Person follower driven through configure/activate/deactivate transitions."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from enum import Enum

from robot_behaviors.geometry import Twist, TransformBuffer
from robot_behaviors.person_follower import (
    CONTROL_PERIOD,
    FollowerState,
    Side,
    _FollowerCore,
)

logger = logging.getLogger(__name__)


class CallbackReturn(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


class PersonFollowerNodeLC(_FollowerCore):
    """Follower whose publisher and timer exist only between transitions.

    Messages published while the node is not active are dropped.
    """

    def __init__(
        self,
        buffer: TransformBuffer,
        publish: Callable[[Twist], None] | None = None,
        clock: Callable[[], float] = time.time,
        parameters: Mapping[str, float] | None = None,
    ) -> None:
        super().__init__(buffer, clock)
        self._publish = publish or (lambda twist: None)
        self._parameters = dict(parameters or {})
        self.configured = False
        self.publisher_active = False
        self.timer_period: float | None = None

    @property
    def timer_active(self) -> bool:
        return self.timer_period is not None

    def _require_configured(self) -> None:
        if not self.configured:
            raise RuntimeError("node is not configured")

    def _emit(self, twist: Twist) -> None:
        self._require_configured()
        if self.publisher_active:
            self._publish(twist)
        else:
            logger.warning("Publisher is inactive; message dropped")

    def on_configure(self, previous_state: object) -> CallbackReturn:
        logger.info("Configuring...")
        self._apply_parameters(self._parameters)
        self.configured = True
        self.side = Side.RIGHT
        self.state = FollowerState.SEARCHING
        return CallbackReturn.SUCCESS

    def on_activate(self, previous_state: object) -> CallbackReturn:
        logger.info("Activating...")
        self._require_configured()
        self.timer_period = CONTROL_PERIOD
        self.publisher_active = True
        return CallbackReturn.SUCCESS

    def on_deactivate(self, previous_state: object) -> CallbackReturn:
        logger.info("Deactivating...")
        self._require_configured()
        self.timer_period = None
        self.publisher_active = False
        return CallbackReturn.SUCCESS

    def on_cleanup(self, previous_state: object) -> CallbackReturn:
        logger.info("Cleaning Up...")
        return CallbackReturn.SUCCESS

    def on_shutdown(self, previous_state: object) -> CallbackReturn:
        logger.info("Shutting Down...")
        return CallbackReturn.SUCCESS

    def on_error(self, previous_state: object) -> CallbackReturn:
        logger.info("Error State")
        return CallbackReturn.SUCCESS

    def state_machine(self) -> FollowerState:
        self._require_configured()
        return super().state_machine()

    def check_following(self) -> bool:
        return super().check_following()

    def follow(self) -> Twist | None:
        return super().follow()

    def search(self) -> Twist:
        return super().search()