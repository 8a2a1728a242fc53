"""Colour-threshold detection of a target in BGR camera images."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import IntEnum

import numpy as np
from scipy import ndimage

from robot_behaviors.camera_model import CameraInfo, PinholeCameraModel
from robot_behaviors.detections import BoundingBox2D, Detection2D, Detection2DArray, Header
from robot_behaviors.geometry import Vector3

logger = logging.getLogger(__name__)

H_MAX_VAL = 360 // 2
S_MAX_VAL = 255
V_MAX_VAL = 255
_MOMENT_EPS = 0.000001

DEFAULT_PARAMETERS: dict[str, int] = {
    "min_h": 0,
    "min_s": 0,
    "min_v": 0,
    "max_h": H_MAX_VAL,
    "max_s": S_MAX_VAL,
    "max_v": V_MAX_VAL,
    "kernel_size": 3,
    "kernel_shape": 0,
}


class KernelShape(IntEnum):
    RECT = 0
    ELLIPSE = 1
    CROSS = 2


@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle; an empty one has zero width or height."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0


@dataclass
class BgrImage:
    """An 8-bit, three-channel image in BGR channel order."""

    data: np.ndarray
    header: Header = field(default_factory=Header)

    def __post_init__(self) -> None:
        data = np.asarray(self.data)
        if data.ndim != 3 or data.shape[2] != 3:
            raise ValueError("image must have shape (height, width, 3)")
        if data.dtype != np.uint8:
            raise ValueError("image must hold 8-bit values")
        self.data = data


def bgr_to_hsv(image: np.ndarray) -> np.ndarray:
    """Convert an 8-bit BGR image to HSV with hue in [0, 180) and S, V in [0, 255]."""
    data = np.asarray(image)
    if data.ndim != 3 or data.shape[-1] != 3:
        raise ValueError("image must have shape (height, width, 3)")
    pixels = data.astype(np.float64)
    b, g, r = pixels[..., 0], pixels[..., 1], pixels[..., 2]
    value = pixels.max(axis=-1)
    diff = value - pixels.min(axis=-1)

    with np.errstate(divide="ignore", invalid="ignore"):
        saturation = np.where(value > 0, diff * 255.0 / value, 0.0)
        hue = np.select(
            [diff == 0, value == r, value == g],
            [
                np.zeros_like(value),
                60.0 * (g - b) / diff,
                120.0 + 60.0 * (b - r) / diff,
            ],
            default=240.0 + 60.0 * (r - g) / diff,
        )
    hue = np.where(hue < 0, hue + 360.0, hue)
    hue = np.rint(hue / 2.0) % H_MAX_VAL

    return np.stack(
        [hue, np.rint(saturation), value], axis=-1
    ).astype(np.uint8)


def in_range(image: np.ndarray, lower: Sequence[float], upper: Sequence[float]) -> np.ndarray:
    """Mask (0 or 255) of the pixels whose every channel lies within the bounds."""
    data = np.asarray(image)
    low = np.asarray(lower, dtype=np.float64)
    high = np.asarray(upper, dtype=np.float64)
    if low.shape != (data.shape[-1],) or high.shape != (data.shape[-1],):
        raise ValueError("bounds must give one value per channel")
    inside = np.all((data >= low) & (data <= high), axis=-1)
    return inside.astype(np.uint8) * 255


def structuring_element(shape: KernelShape | int, size: int) -> np.ndarray:
    """A square ``size`` x ``size`` morphology kernel of the given shape."""
    shape = KernelShape(shape)
    if size < 1:
        raise ValueError("kernel size must be positive")
    anchor = size // 2
    if shape is KernelShape.RECT:
        return np.ones((size, size), dtype=np.uint8)
    if shape is KernelShape.CROSS:
        kernel = np.zeros((size, size), dtype=np.uint8)
        kernel[anchor, :] = 1
        kernel[:, anchor] = 1
        return kernel

    radius = anchor
    inv_r2 = 1.0 / (radius * radius) if radius else 0.0
    dy = np.arange(size) - radius
    half_widths = np.rint(
        anchor * np.sqrt(np.clip((radius * radius - dy * dy) * inv_r2, 0.0, None))
    )
    columns = np.arange(size)
    kernel = np.abs(columns[np.newaxis, :] - anchor) <= half_widths[:, np.newaxis]
    return kernel.astype(np.uint8)


def bounding_rect(mask: np.ndarray) -> Rect:
    """Smallest rectangle holding every non-zero pixel of ``mask``."""
    rows, cols = np.nonzero(np.asarray(mask))
    if rows.size == 0:
        return Rect()
    x, y = int(cols.min()), int(rows.min())
    return Rect(x, y, int(cols.max()) - x + 1, int(rows.max()) - y + 1)


class HSVFilterNode:
    """Thresholds images in HSV space and reports the direction of the blob found.

    The thresholds ``lower`` and ``upper`` may be changed between frames.
    """

    def __init__(
        self,
        publish_detection: Callable[[Detection2DArray], None] | None = None,
        publish_vector: Callable[[Vector3], None] | None = None,
        has_subscribers: Callable[[], bool] = lambda: True,
        parameters: Mapping[str, int] | None = None,
        show: Callable[[np.ndarray, Rect], None] | None = None,
    ) -> None:
        overrides = dict(parameters or {})
        unknown = set(overrides) - set(DEFAULT_PARAMETERS)
        if unknown:
            raise ValueError(f"unknown parameters: {', '.join(sorted(unknown))}")
        params = {**DEFAULT_PARAMETERS, **overrides}

        self._publish_detection = publish_detection or (lambda detections: None)
        self._publish_vector = publish_vector or (lambda vector: None)
        self._has_subscribers = has_subscribers
        self._show = show
        self.model: PinholeCameraModel | None = None

        maxima = (H_MAX_VAL, S_MAX_VAL, V_MAX_VAL)
        self.lower = tuple(
            max(0, min(int(params[name]), top))
            for name, top in zip(("min_h", "min_s", "min_v"), maxima)
        )
        self.upper = tuple(
            max(0, min(int(params[name]), top))
            for name, top in zip(("max_h", "max_s", "max_v"), maxima)
        )
        self.kernel_size = int(params["kernel_size"])
        if self.kernel_size % 2 == 0:
            self.kernel_size += 1
        self.kernel_shape = int(params["kernel_shape"])

    def camera_info_callback(self, info: CameraInfo) -> None:
        """Take the first calibration received; it does not change afterwards."""
        if self.model is None:
            self.model = PinholeCameraModel(info)

    def _kernel(self) -> np.ndarray:
        try:
            shape = KernelShape(self.kernel_shape)
        except ValueError:
            logger.warning("Invalid kernel_shape value. Defaulting to MORPH_RECT.")
            shape = KernelShape.RECT
        return structuring_element(shape, self.kernel_size)

    def filter_image(
        self, image: np.ndarray, h: int, s: int, v: int, H: int, S: int, V: int
    ) -> np.ndarray:
        """Mask of the pixels within the HSV bounds, cleaned by erosion then dilation."""
        mask = in_range(bgr_to_hsv(image), (h, s, v), (H, S, V)) > 0
        kernel = self._kernel().astype(bool)
        mask = ndimage.binary_erosion(mask, structure=kernel, border_value=1)
        mask = ndimage.binary_dilation(mask, structure=kernel, border_value=0)
        return mask.astype(np.uint8) * 255

    def get_detected_center(self, filtered: np.ndarray) -> tuple[float, float]:
        """Centroid (x, y) of the non-zero pixels, or (0, 0) when there are none."""
        rows, cols = np.nonzero(np.asarray(filtered))
        m00 = float(rows.size)
        if m00 < _MOMENT_EPS:
            return 0.0, 0.0
        return float(cols.sum()) / m00, float(rows.sum()) / m00

    def get_detected_angles(
        self, center: tuple[float, float], model: PinholeCameraModel
    ) -> tuple[float, float]:
        """Yaw and pitch in radians of the ray through the pixel ``center``."""
        ray = model.project_pixel_to_3d_ray(*model.rectify_point(*center))
        ray = ray / ray.z
        return math.atan2(ray.x, ray.z), math.atan2(ray.y, ray.z)

    def publish_detection(
        self, image: BgrImage, point: tuple[float, float], bbx: Rect
    ) -> Detection2DArray | None:
        """Publish one detection, or return None when nobody listens."""
        if not self._has_subscribers():
            return None
        detection = Detection2D(
            header=replace(image.header),
            bbox=BoundingBox2D(
                center_x=point[0] + bbx.width // 2,
                center_y=point[1] + bbx.height // 2,
                size_x=bbx.width,
                size_y=bbx.height,
            ),
        )
        detections = Detection2DArray(header=replace(image.header), detections=[detection])
        self._publish_detection(detections)
        return detections

    def _show_filtered(self, image: np.ndarray, mask: np.ndarray) -> None:
        if self._show is None:
            return
        masked = np.where(mask[..., np.newaxis] > 0, image, 0).astype(np.uint8)
        self._show(masked, bounding_rect(mask))

    def image_callback(self, image: BgrImage) -> Vector3 | None:
        """Process one frame; returns the attractive vector published, if any."""
        if self.model is None:
            logger.warning("Camera info not received yet")
            return None

        data = image.data.copy()
        mask = self.filter_image(data, *self.lower, *self.upper)
        self._show_filtered(data, mask)

        bbx = bounding_rect(mask)
        if bbx.width == 0 or bbx.height == 0:
            logger.warning("Object not detected")
            vector = Vector3()
            self._publish_vector(vector)
            return vector

        point = self.get_detected_center(mask)

        vector = None
        if self.model.info.distortion_model != "":
            yaw, pitch = self.get_detected_angles(point, self.model)
            vector = Vector3(math.cos(yaw), math.sin(yaw), 0.0)
            self._publish_vector(vector)
            logger.info(
                "Center at pos = (%f, %f) angle = [%f, %f]", point[0], point[1], yaw, pitch
            )
        self.publish_detection(image, point, bbx)
        return vector