# robot_behaviors

Reactive behaviours, controllers and perception helpers for a
differential-drive mobile robot. Every behaviour is a plain Python object:
you feed it messages through its callback methods, call its control-cycle
method at the rate you choose, and it hands its output to the callables you
pass in (`publish`, `send_transform`, ...) as well as returning it. This
makes each behaviour easy to drive from a simulator, a middleware bridge or
a test.

## Modules

| Module | Contents |
| --- | --- |
| `robot_behaviors.geometry` | `Vector3`, `Twist`, `Quaternion`, `Transform`, `TransformStamped`, `TransformBuffer` and `TransformError`. |
| `robot_behaviors.detections` | Message dataclasses: `Header`, `ObjectHypothesis`, `BoundingBox2D`, `Detection2D`, `Detection2DArray`, `Detection3D`, `Detection3DArray`. |
| `robot_behaviors.pid` | `PIDController`. |
| `robot_behaviors.bumper` | `BumperNode` and `BumperState`. |
| `robot_behaviors.follow_ball` | `CenterNode` and `FollowState`. |
| `robot_behaviors.go_fwd` | `GoFwdNode`. |
| `robot_behaviors.detection_tf` | `DetectionTfPublisher`. |
| `robot_behaviors.person_follower` | `PersonFollowerNode`, `FollowerState`, `Side`. |
| `robot_behaviors.person_follower_lc` | `PersonFollowerNodeLC` and `CallbackReturn`. |
| `robot_behaviors.yolo` | `YoloDetection`, `YoloDetectionArray`, `YoloDetectionNode`. |
| `robot_behaviors.camera_model` | `CameraInfo` and `PinholeCameraModel`. |
| `robot_behaviors.depth_to_3d` | `DepthImage` and `DetectionTo3DfromDepthNode`. |
| `robot_behaviors.pc_to_3d` | `PointCloud` and `DetectionTo3DfromPCNode`. |
| `robot_behaviors.hsv_filter` | `HSVFilterNode`, `KernelShape`, `Rect`, `BgrImage` and the helpers `bgr_to_hsv`, `in_range`, `structuring_element`, `bounding_rect`. |
| `robot_behaviors.obstacle_detector` | `LaserScan` and `ObstacleDetectorNode`. |

## Geometry and transforms

`Vector3`, `Quaternion` and `Transform` are immutable. `Quaternion` supports
`multiply` (also `*`), `conjugate`, `rotate` and `angle`; `Transform`
supports `compose` (apply the argument first, then `self`) and `inverse`.

`TransformBuffer` keeps, for every child frame, the latest
`TransformStamped` linking it to its parent. `lookup_transform(target,
source)` walks the frame tree through the common ancestor and returns the
pose of `source` in `target`, stamped with the oldest stamp on the chain.
Unknown or unconnected frames, a frame linked to itself, or a loop raise
`TransformError`; `can_transform` returns `False` in those cases.

```python
from robot_behaviors.geometry import Transform, TransformBuffer, TransformStamped, Vector3

buffer = TransformBuffer()
buffer.set_transform(
    TransformStamped("odom", "base_footprint", Transform(Vector3(2.0, 0.0, 0.0)), stamp=10.0)
)
pose = buffer.lookup_transform("base_footprint", "odom")
print(pose.transform.translation)   # Vector3(x=-2.0, y=0.0, z=0.0)
```

## PID controller

```python
from robot_behaviors.pid import PIDController

pid = PIDController(0.0, 1.0, 0.3, 1.0)   # min_ref, max_ref, min_output, max_output
pid.set_pid(0.41, 0.06, 0.53)             # these are also the default gains

for error in (0.8, 0.5, 0.2, 0.0):
    print(pid.get_output(error))
```

A reference whose magnitude is below `min_ref` contributes nothing, one
above `max_ref` saturates at `max_output`, and in between it is mapped to
`sign * min_output + ref * (max_output - min_output)`. The integral term
decays by a factor of 2/3 each call, and the result is clamped to
`[-max_output, max_output]`.

## Behaviours

- **`BumperNode`** — `bumper_callback(state)` records whether the bumper is
  `BumperState.PRESSED`. `control_cycle()` returns a 0.1 m/s forward `Twist`,
  or a zero `Twist` once the bumper is pressed or more than five seconds
  have passed since construction (measured with the `clock` callable).
- **`CenterNode`** — takes attractive and repulsive vectors through
  `attractive_callback` / `repulsive_callback`. It starts in
  `FollowState.FOLLOWING`. While following it steers along the sum of the
  two vectors (linear speed at most 0.2, angular speed clamped to ±0.3);
  with no attractive vector it switches to `FollowState.SEARCHING` and turns
  in place at 0.3 rad/s until one appears.
- **`GoFwdNode`** — reads `odom -> base_footprint` from a `TransformBuffer`.
  It drives forward at 0.3 m/s until x exceeds 5 m, turns at 0.3 rad/s until
  the rotation angle exceeds 3.14 rad, publishes a stop, and on the cycle
  after that sets `shutdown_requested` and calls its `shutdown` callable.
  Without the transform, `control_cycle()` returns `None`.
- **`DetectionTfPublisher`** — `detection_callback` takes the last
  detection whose first hypothesis is `"person"`, converts its centre from
  camera axes to base axes, chains it with `odom -> base_footprint` and
  passes the resulting `odom -> target` transform to `send_transform`.
- **`PersonFollowerNode`** — each `state_machine()` call either follows the
  `target` frame (two PID controllers, a ±0.15 m dead band around
  `limit_distance`) or searches by turning toward the side the target was
  last seen on. It follows while `odom -> target` exists and is at most one
  second old. Parameters `min_lin`, `max_lin`, `min_rot`, `max_rot` and
  `limit_distance` default to -0.3, 0.3, -0.8, 0.8 and 1.0; unknown names
  raise `ValueError`.
- **`PersonFollowerNodeLC`** — the same behaviour with lifecycle hooks
  `on_configure`, `on_activate`, `on_deactivate`, `on_cleanup`,
  `on_shutdown` and `on_error`, each returning `CallbackReturn.SUCCESS`.
  Parameters are applied on configure; `state_machine()` before configure
  raises `RuntimeError`, and commands produced while not active are dropped.

```python
from robot_behaviors.detection_tf import DetectionTfPublisher
from robot_behaviors.geometry import TransformBuffer
from robot_behaviors.person_follower import PersonFollowerNode

buffer = TransformBuffer()
detector = DetectionTfPublisher(buffer, send_transform=buffer.set_transform)
follower = PersonFollowerNode(buffer, publish=print, parameters={"limit_distance": 1.2})
```

## Perception

- **`YoloDetectionNode`** turns each `YoloDetection` into a `Detection2D`
  with one `ObjectHypothesis` carrying the class name and score.
- **`PinholeCameraModel`** is built from a `CameraInfo`. It supports the
  `""`, `"plumb_bob"`, `"rational_polynomial"` and `"equidistant"`
  distortion models and raises `ValueError` for others or for an
  uncalibrated camera. `rectify_point(u, v)` removes lens distortion and
  `project_pixel_to_3d_ray(u, v)` returns a ray with z = 1.
- **`DetectionTo3DfromDepthNode`** keeps the first calibration passed to
  `callback_info`. `callback_sync(image, detections)` reads the depth under
  each detection centre from a `DepthImage` (`16UC1` in millimetres or
  `32FC1` in metres), skips centres outside the image or with NaN depth, and
  scales the camera ray by that depth.
- **`DetectionTo3DfromPCNode`** takes the point of an organised `PointCloud`
  under each detection centre, skipping points whose x is NaN or infinite.

Both 3D nodes publish and return a `Detection3DArray` only when
`has_subscribers()` is true and at least one detection survives; otherwise
they return `None`.

- **`HSVFilterNode`** converts a `BgrImage` to HSV, keeps the pixels within
  `lower`/`upper`, erodes then dilates the mask with a `KernelShape`
  kernel, and finds the blob's bounding box and centroid. With no blob it
  publishes a zero `Vector3`; otherwise, if the camera's distortion model is
  not empty, it publishes the unit vector `(cos yaw, sin yaw, 0)` toward the
  blob, and it publishes a `Detection2DArray` when `has_subscribers()` is
  true. Parameters are `min_h`, `min_s`, `min_v`, `max_h`, `max_s`, `max_v`
  (hue up to 180, the others up to 255), `kernel_size` (default 3, an even
  size is increased by one) and `kernel_shape` (an unknown value falls back
  to a rectangle). An optional `show` callable receives the masked image and
  bounding box of each frame.
- **`ObstacleDetectorNode`** finds the smallest range in a `LaserScan`. It
  publishes `True` as the obstacle flag when that range is greater than
  0.5 m, and a vector pointing opposite the nearest return scaled by
  `min(0, 0.1 / d**2)`, which is zero for any positive range. An empty scan
  raises `ValueError`.

## What this package does not do

There is no message transport, no executable command and no image window:
wiring the callbacks to a robot, a simulator or a display, and calling the
control cycles on a timer, is left to the caller.

## Running the tests

Install the package with its `test` extra and run `pytest` from the project
root.