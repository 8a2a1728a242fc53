"""Pinhole camera calibration and pixel rectification."""

from __future__ import annotations

import math
from dataclasses import dataclass

from robot_behaviors.geometry import Vector3

_IDENTITY3 = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)
_RADIAL_MODELS = ("", "plumb_bob", "rational_polynomial")
_FISHEYE_MODEL = "equidistant"
_UNDISTORT_ITERATIONS = 5
_FISHEYE_ITERATIONS = 10
_FISHEYE_EPS = 1e-8


@dataclass(frozen=True)
class CameraInfo:
    """Calibration of a camera: intrinsics ``k``, distortion ``d``,
    rectification ``r`` and projection ``p``, all row-major."""

    k: tuple[float, ...]
    p: tuple[float, ...] = ()
    d: tuple[float, ...] = ()
    r: tuple[float, ...] = _IDENTITY3
    distortion_model: str = ""
    width: int = 0
    height: int = 0
    frame_id: str = ""

    def __post_init__(self) -> None:
        k = tuple(float(value) for value in self.k)
        r = tuple(float(value) for value in self.r)
        p = tuple(float(value) for value in self.p)
        if len(k) != 9:
            raise ValueError("k must hold 9 values")
        if len(r) != 9:
            raise ValueError("r must hold 9 values")
        if not p:
            p = (k[0], k[1], k[2], 0.0, k[3], k[4], k[5], 0.0, k[6], k[7], k[8], 0.0)
        if len(p) != 12:
            raise ValueError("p must hold 12 values")
        object.__setattr__(self, "k", k)
        object.__setattr__(self, "r", r)
        object.__setattr__(self, "p", p)
        object.__setattr__(self, "d", tuple(float(value) for value in self.d))


def _mat_vec(m: tuple[float, ...], v: tuple[float, float, float]) -> tuple[float, float, float]:
    return (
        m[0] * v[0] + m[1] * v[1] + m[2] * v[2],
        m[3] * v[0] + m[4] * v[1] + m[5] * v[2],
        m[6] * v[0] + m[7] * v[1] + m[8] * v[2],
    )


class PinholeCameraModel:
    """Maps raw pixels to rectified pixels and rectified pixels to viewing rays."""

    def __init__(self, info: CameraInfo) -> None:
        k, p = info.k, info.p
        if k[0] == 0.0 or k[4] == 0.0 or p[0] == 0.0 or p[5] == 0.0:
            raise ValueError("camera is not calibrated")
        model = info.distortion_model
        if model in _RADIAL_MODELS:
            size = 8
        elif model == _FISHEYE_MODEL:
            size = 4
        else:
            raise ValueError(f"unsupported distortion model {model!r}")
        if len(info.d) > size:
            raise ValueError(f"{model or 'default'} model takes at most {size} coefficients")
        self.info = info
        self._coeffs = info.d + (0.0,) * (size - len(info.d))
        self._projection = (p[0], p[1], p[2], p[4], p[5], p[6], p[8], p[9], p[10])

    @property
    def fx(self) -> float:
        return self.info.p[0]

    @property
    def fy(self) -> float:
        return self.info.p[5]

    @property
    def cx(self) -> float:
        return self.info.p[2]

    @property
    def cy(self) -> float:
        return self.info.p[6]

    @property
    def tx(self) -> float:
        return self.info.p[3]

    @property
    def ty(self) -> float:
        return self.info.p[7]

    def _undistort_radial(self, x0: float, y0: float) -> tuple[float, float]:
        k1, k2, p1, p2, k3, k4, k5, k6 = self._coeffs
        x, y = x0, y0
        for _ in range(_UNDISTORT_ITERATIONS):
            r2 = x * x + y * y
            icdist = (1 + ((k6 * r2 + k5) * r2 + k4) * r2) / (
                1 + ((k3 * r2 + k2) * r2 + k1) * r2
            )
            if icdist < 0:
                return x0, y0
            delta_x = 2 * p1 * x * y + p2 * (r2 + 2 * x * x)
            delta_y = p1 * (r2 + 2 * y * y) + 2 * p2 * x * y
            x = (x0 - delta_x) * icdist
            y = (y0 - delta_y) * icdist
        return x, y

    def _undistort_fisheye(self, x0: float, y0: float) -> tuple[float, float]:
        k1, k2, k3, k4 = self._coeffs
        theta_d = min(max(-math.pi / 2, math.hypot(x0, y0)), math.pi / 2)
        if theta_d <= _FISHEYE_EPS:
            return x0, y0
        theta = theta_d
        for _ in range(_FISHEYE_ITERATIONS):
            t2 = theta * theta
            t4, t6, t8 = t2 * t2, t2 * t2 * t2, t2 * t2 * t2 * t2
            fix = (theta * (1 + k1 * t2 + k2 * t4 + k3 * t6 + k4 * t8) - theta_d) / (
                1 + 3 * k1 * t2 + 5 * k2 * t4 + 7 * k3 * t6 + 9 * k4 * t8
            )
            theta -= fix
            if abs(fix) < _FISHEYE_EPS:
                break
        scale = math.tan(theta) / theta_d
        return x0 * scale, y0 * scale

    def rectify_point(self, u: float, v: float) -> tuple[float, float]:
        """Remove lens distortion from a raw pixel, returning the rectified pixel."""
        k = self.info.k
        x = (u - k[2]) / k[0]
        y = (v - k[5]) / k[4]
        if self.info.distortion_model == _FISHEYE_MODEL:
            x, y = self._undistort_fisheye(x, y)
        else:
            x, y = self._undistort_radial(x, y)
        rotated = _mat_vec(self.info.r, (x, y, 1.0))
        px, py, pw = _mat_vec(self._projection, rotated)
        return px / pw, py / pw

    def project_pixel_to_3d_ray(self, u: float, v: float) -> Vector3:
        """Ray through a rectified pixel, scaled so that its z is 1."""
        return Vector3(
            (u - self.cx - self.tx) / self.fx,
            (v - self.cy - self.ty) / self.fy,
            1.0,
        )