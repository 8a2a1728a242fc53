"""A bounded PID controller with a decaying integral term."""

from __future__ import annotations

import math


class PIDController:
    """Maps a reference onto an output range and applies PID gains."""

    def __init__(
        self, min_ref: float, max_ref: float, min_output: float, max_output: float
    ) -> None:
        self.min_ref = min_ref
        self.max_ref = max_ref
        self.min_output = min_output
        self.max_output = max_output
        self._prev_error = 0.0
        self._int_error = 0.0
        self.kp = 0.41
        self.ki = 0.06
        self.kd = 0.53

    def set_pid(self, kp: float, ki: float, kd: float) -> None:
        self.kp = kp
        self.ki = ki
        self.kd = kd

    def get_output(self, new_reference: float) -> float:
        ref = new_reference
        direction = math.copysign(1.0, ref) if ref != 0.0 else 0.0

        if abs(ref) < self.min_ref:
            output = 0.0
        elif abs(ref) > self.max_ref:
            output = direction * self.max_output
        else:
            output = direction * self.min_output + ref * (self.max_output - self.min_output)

        self._int_error = (self._int_error + output) * 2.0 / 3.0

        deriv_error = output - self._prev_error
        self._prev_error = output

        output = self.kp * output + self.ki * self._int_error + self.kd * deriv_error
        return max(-self.max_output, min(output, self.max_output))