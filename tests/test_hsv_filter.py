import math

import numpy as np
import pytest

from robot_behaviors.camera_model import CameraInfo
from robot_behaviors.detections import Header
from robot_behaviors.hsv_filter import (
    BgrImage,
    HSVFilterNode,
    KernelShape,
    Rect,
    bgr_to_hsv,
    bounding_rect,
    in_range,
    structuring_element,
)

RED_BOUNDS = {"min_h": 0, "min_s": 100, "min_v": 100, "max_h": 10, "max_s": 255, "max_v": 255}


def _pixel(b, g, r):
    return np.array([[[b, g, r]]], dtype=np.uint8)


def _red_square_image():
    data = np.zeros((20, 20, 3), dtype=np.uint8)
    data[8:13, 8:13] = (0, 0, 255)
    return BgrImage(data, header=Header(stamp=2.5, frame_id="cam"))


def _info(model="plumb_bob"):
    return CameraInfo(k=(100.0, 0.0, 10.0, 0.0, 100.0, 10.0, 0.0, 0.0, 1.0), distortion_model=model)


def test_red_maps_to_hue_zero_full_saturation_and_value():
    assert bgr_to_hsv(_pixel(0, 0, 255))[0, 0].tolist() == [0, 255, 255]


def test_green_hue():
    assert bgr_to_hsv(_pixel(0, 255, 0))[0, 0, 0] == 60


def test_black_has_no_saturation():
    assert bgr_to_hsv(_pixel(0, 0, 0))[0, 0].tolist() == [0, 0, 0]


def test_hue_stays_below_180():
    rng = np.random.default_rng(3)
    image = rng.integers(0, 256, size=(16, 16, 3), dtype=np.uint8)
    hsv = bgr_to_hsv(image)
    assert hsv[..., 0].max() < 180
    assert np.array_equal(hsv[..., 2], image.max(axis=-1))


def test_bgr_to_hsv_rejects_single_channel():
    with pytest.raises(ValueError):
        bgr_to_hsv(np.zeros((4, 4), dtype=np.uint8))


def test_in_range_marks_inside_pixels():
    image = np.array([[[5, 5, 5], [50, 5, 5]]], dtype=np.uint8)
    mask = in_range(image, (0, 0, 0), (10, 10, 10))
    assert mask.tolist() == [[255, 0]]


def test_in_range_rejects_wrong_bound_length():
    with pytest.raises(ValueError):
        in_range(np.zeros((2, 2, 3), dtype=np.uint8), (0, 0), (1, 1))


def test_rect_kernel_is_all_ones():
    kernel = structuring_element(KernelShape.RECT, 5)
    assert kernel.shape == (5, 5)
    assert kernel.all()


def test_cross_kernel():
    kernel = structuring_element(KernelShape.CROSS, 5)
    assert kernel.sum() == 2 * 5 - 1
    assert kernel[2].all() and kernel[:, 2].all()
    assert kernel[0, 0] == 0


def test_ellipse_kernel_is_symmetric_and_inside_rect():
    kernel = structuring_element(KernelShape.ELLIPSE, 7)
    assert np.array_equal(kernel, kernel[::-1])
    assert np.array_equal(kernel, kernel[:, ::-1])
    assert kernel[3].all()
    assert kernel.sum() < 7 * 7


def test_size_one_kernel_is_single_pixel():
    for shape in KernelShape:
        assert structuring_element(shape, 1).tolist() == [[1]]


def test_structuring_element_rejects_bad_shape():
    with pytest.raises(ValueError):
        structuring_element(7, 3)


def test_bounding_rect_of_points():
    mask = np.zeros((10, 10), dtype=np.uint8)
    mask[2, 3] = 255
    mask[6, 8] = 255
    assert bounding_rect(mask) == Rect(3, 2, 8 - 3 + 1, 6 - 2 + 1)


def test_bounding_rect_of_empty_mask():
    assert bounding_rect(np.zeros((5, 5), dtype=np.uint8)) == Rect()


def test_even_kernel_size_made_odd():
    node = HSVFilterNode(parameters={"kernel_size": 4})
    assert node.kernel_size == 5


def test_unknown_parameter_rejected():
    with pytest.raises(ValueError):
        HSVFilterNode(parameters={"colour": 1})


def test_thresholds_clamped_to_trackbar_range():
    node = HSVFilterNode(parameters={"max_h": 300})
    assert node.upper[0] == 180


def test_filter_image_keeps_square_after_open():
    node = HSVFilterNode(parameters={**RED_BOUNDS, "kernel_size": 3})
    mask = node.filter_image(_red_square_image().data, *node.lower, *node.upper)
    assert bounding_rect(mask) == Rect(8, 8, 5, 5)


def test_filter_image_removes_speck():
    node = HSVFilterNode(parameters={**RED_BOUNDS, "kernel_size": 3})
    data = np.zeros((10, 10, 3), dtype=np.uint8)
    data[4, 4] = (0, 0, 255)
    mask = node.filter_image(data, *node.lower, *node.upper)
    assert not mask.any()


def test_invalid_kernel_shape_falls_back_to_rect():
    image = _red_square_image().data
    rect_node = HSVFilterNode(parameters={**RED_BOUNDS, "kernel_shape": 0})
    bad_node = HSVFilterNode(parameters={**RED_BOUNDS, "kernel_shape": 9})
    expected = rect_node.filter_image(image, *rect_node.lower, *rect_node.upper)
    got = bad_node.filter_image(image, *bad_node.lower, *bad_node.upper)
    assert np.array_equal(got, expected)


def test_detected_center_of_empty_mask():
    node = HSVFilterNode()
    assert node.get_detected_center(np.zeros((4, 4), dtype=np.uint8)) == (0.0, 0.0)


def test_detected_center_of_square():
    node = HSVFilterNode()
    mask = np.zeros((20, 20), dtype=np.uint8)
    mask[8:13, 8:13] = 255
    assert node.get_detected_center(mask) == pytest.approx((10.0, 10.0))


def test_image_callback_without_model_publishes_nothing():
    vectors = []
    node = HSVFilterNode(publish_vector=vectors.append, parameters=RED_BOUNDS)
    assert node.image_callback(_red_square_image()) is None
    assert vectors == []


def test_image_callback_centred_target_points_ahead():
    vectors, detections = [], []
    node = HSVFilterNode(
        publish_detection=detections.append,
        publish_vector=vectors.append,
        parameters=RED_BOUNDS,
    )
    node.camera_info_callback(_info())
    vector = node.image_callback(_red_square_image())
    assert vector.x == pytest.approx(1.0)
    assert vector.y == pytest.approx(0.0)
    assert vectors == [vector]
    bbox = detections[0].detections[0].bbox
    assert (bbox.size_x, bbox.size_y) == (5, 5)
    assert bbox.center_x == pytest.approx(10.0 + 5 // 2)
    assert detections[0].header.frame_id == "cam"


def test_vector_is_unit_length_for_off_centre_target():
    vectors = []
    node = HSVFilterNode(publish_vector=vectors.append, parameters=RED_BOUNDS)
    node.camera_info_callback(_info())
    data = np.zeros((20, 20, 3), dtype=np.uint8)
    data[2:7, 13:18] = (0, 0, 255)
    vector = node.image_callback(BgrImage(data))
    assert math.hypot(vector.x, vector.y) == pytest.approx(1.0)
    assert vector.y > 0


def test_image_callback_without_target_publishes_zero_vector():
    vectors = []
    node = HSVFilterNode(publish_vector=vectors.append, parameters=RED_BOUNDS)
    node.camera_info_callback(_info())
    vector = node.image_callback(BgrImage(np.zeros((10, 10, 3), dtype=np.uint8)))
    assert (vector.x, vector.y, vector.z) == (0.0, 0.0, 0.0)
    assert vectors == [vector]


def test_empty_distortion_model_publishes_only_detection():
    vectors, detections = [], []
    node = HSVFilterNode(
        publish_detection=detections.append,
        publish_vector=vectors.append,
        parameters=RED_BOUNDS,
    )
    node.camera_info_callback(_info(model=""))
    assert node.image_callback(_red_square_image()) is None
    assert vectors == []
    assert len(detections) == 1


def test_no_detection_without_subscribers():
    detections = []
    node = HSVFilterNode(publish_detection=detections.append, has_subscribers=lambda: False)
    assert node.publish_detection(_red_square_image(), (1.0, 2.0), Rect(0, 0, 4, 4)) is None
    assert detections == []


def test_first_camera_info_is_kept():
    node = HSVFilterNode()
    first = _info()
    node.camera_info_callback(first)
    node.camera_info_callback(_info(model=""))
    assert node.model.info is first


def test_show_receives_masked_image():
    shown = []
    node = HSVFilterNode(parameters=RED_BOUNDS, show=lambda image, rect: shown.append(rect))
    node.camera_info_callback(_info())
    node.image_callback(_red_square_image())
    assert shown == [Rect(8, 8, 5, 5)]


def test_bgr_image_rejects_float_data():
    with pytest.raises(ValueError):
        BgrImage(np.zeros((2, 2, 3), dtype=np.float32))