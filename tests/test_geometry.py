import math

import pytest

from robot_behaviors.geometry import (
    Quaternion,
    Transform,
    TransformBuffer,
    TransformError,
    TransformStamped,
    Vector3,
)


def _vec(v):
    return (v.x, v.y, v.z)


def _quat(q):
    return (q.x, q.y, q.z, q.w)


def _vec_close(a, b):
    return _vec(a) == pytest.approx(_vec(b), abs=1e-9)


def _quat_close(a, b):
    same = _quat(a) == pytest.approx(_quat(b), abs=1e-9)
    opposite = _quat(a) == pytest.approx((-b.x, -b.y, -b.z, -b.w), abs=1e-9)
    return same or opposite


def _tf_close(a, b):
    return _vec_close(a.translation, b.translation) and _quat_close(a.rotation, b.rotation)


def _yaw(angle):
    return Quaternion.from_axis_angle(Vector3(0.0, 0.0, 1.0), angle)


def test_vector_add_sub_round_trip():
    a = Vector3(1.5, -2.0, 0.25)
    b = Vector3(-3.0, 4.0, 7.0)
    assert (a + b) - b == a
    assert -(-a) == a


def test_cross_is_orthogonal():
    a = Vector3(1.0, 2.0, 3.0)
    b = Vector3(-2.0, 0.5, 4.0)
    c = a.cross(b)
    assert c.dot(a) == pytest.approx(0.0)
    assert c.dot(b) == pytest.approx(0.0)


def test_identity_quaternion_is_neutral():
    q = _yaw(0.7)
    assert q.multiply(Quaternion()) == q
    assert Quaternion().multiply(q) == q


def test_conjugate_inverts_rotation():
    q = Quaternion.from_axis_angle(Vector3(1.0, 1.0, 0.0), 1.2)
    product = q.multiply(q.conjugate())
    assert _quat_close(product, Quaternion())
    assert abs(product.w) == pytest.approx(1.0)


def test_quarter_turn_about_z():
    rotated = _yaw(math.pi / 2).rotate(Vector3(1.0, 0.0, 0.0))
    assert _vec(rotated) == pytest.approx((0.0, 1.0, 0.0), abs=1e-9)


@pytest.mark.parametrize("angle", [0.3, 1.0, 2.5, 3.1])
def test_rotation_preserves_length(angle):
    v = Vector3(0.4, -1.2, 2.0)
    q = Quaternion.from_axis_angle(Vector3(0.2, 0.3, 1.0), angle)
    assert q.rotate(v).norm() == pytest.approx(v.norm())


@pytest.mark.parametrize("angle", [0.0, 0.5, 1.5, 3.0, 3.2, 5.0])
def test_angle_matches_axis_angle(angle):
    assert _yaw(angle).angle() == pytest.approx(angle)


def test_zero_axis_rejected():
    with pytest.raises(ValueError):
        Quaternion.from_axis_angle(Vector3(), 1.0)


def test_compose_with_inverse_is_identity():
    t = Transform(Vector3(1.0, -2.0, 0.5), _yaw(0.8))
    forward = t.compose(t.inverse())
    backward = t.inverse().compose(t)
    assert _vec(forward.translation) == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)
    assert abs(forward.rotation.w) == pytest.approx(1.0)
    assert _vec(backward.translation) == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)
    assert abs(backward.rotation.w) == pytest.approx(1.0)


def test_compose_pure_translations_adds():
    a = Vector3(1.0, 2.0, 0.0)
    b = Vector3(-0.5, 4.0, 1.0)
    result = Transform(translation=a).compose(Transform(translation=b))
    assert _vec(result.translation) == pytest.approx((0.5, 6.0, 1.0), abs=1e-9)


def _chain_buffer():
    buffer = TransformBuffer()
    odom2bf = Transform(Vector3(1.0, 0.5, 0.0), _yaw(math.pi / 3))
    bf2target = Transform(Vector3(2.0, -1.0, 0.0), _yaw(-0.4))
    buffer.set_transform(TransformStamped("odom", "base_footprint", odom2bf, stamp=10.0))
    buffer.set_transform(TransformStamped("base_footprint", "target", bf2target, stamp=7.0))
    return buffer, odom2bf, bf2target


def test_lookup_composes_chain():
    buffer, odom2bf, bf2target = _chain_buffer()
    result = buffer.lookup_transform("odom", "target")
    assert result.frame_id == "odom"
    assert result.child_frame_id == "target"
    assert _tf_close(result.transform, odom2bf.compose(bf2target))
    assert result.stamp == 7.0


def test_reverse_lookup_is_inverse():
    buffer, _, _ = _chain_buffer()
    forward = buffer.lookup_transform("odom", "target").transform
    backward = buffer.lookup_transform("target", "odom").transform
    assert _tf_close(backward, forward.inverse())
    round_trip = forward.compose(backward)
    assert _vec(round_trip.translation) == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)


def test_sibling_frames_resolve_through_parent():
    buffer, _, bf2target = _chain_buffer()
    camera = Transform(Vector3(0.1, 0.0, 0.3), _yaw(0.2))
    buffer.set_transform(TransformStamped("base_footprint", "camera", camera, stamp=9.0))
    result = buffer.lookup_transform("camera", "target").transform
    assert _tf_close(result, camera.inverse().compose(bf2target))
    assert result.rotation.angle() == pytest.approx(0.6)


def test_unknown_frame():
    buffer, _, _ = _chain_buffer()
    assert not buffer.can_transform("odom", "map")
    with pytest.raises(TransformError):
        buffer.lookup_transform("odom", "map")


def test_disconnected_trees():
    buffer, _, _ = _chain_buffer()
    buffer.set_transform(TransformStamped("map", "landmark", Transform()))
    assert buffer.can_transform("odom", "target")
    assert not buffer.can_transform("odom", "landmark")


def test_same_frame_is_identity():
    buffer, _, _ = _chain_buffer()
    result = buffer.lookup_transform("target", "target")
    assert _vec(result.transform.translation) == pytest.approx((0.0, 0.0, 0.0), abs=1e-9)
    assert result.transform.rotation.angle() == pytest.approx(0.0, abs=1e-9)


def test_self_transform_rejected():
    with pytest.raises(TransformError):
        TransformBuffer().set_transform(TransformStamped("odom", "odom", Transform()))


def test_newer_transform_replaces_older():
    buffer, _, _ = _chain_buffer()
    updated = Transform(Vector3(4.0, 0.0, 0.0))
    buffer.set_transform(TransformStamped("odom", "base_footprint", updated, stamp=20.0))
    result = buffer.lookup_transform("odom", "base_footprint").transform
    assert _vec(result.translation) == pytest.approx((4.0, 0.0, 0.0), abs=1e-9)
    assert result.rotation.angle() == pytest.approx(0.0, abs=1e-9)