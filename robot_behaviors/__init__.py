"""Reactive behaviours, PID control, transforms and perception helpers for a mobile robot."""

__version__ = "0.1.0"

__all__ = [
    "geometry",
    "detections",
    "pid",
    "bumper",
    "follow_ball",
    "go_fwd",
    "detection_tf",
    "person_follower",
    "person_follower_lc",
    "yolo",
    "camera_model",
    "depth_to_3d",
    "pc_to_3d",
    "hsv_filter",
    "obstacle_detector",
]