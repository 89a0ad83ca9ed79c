from __future__ import annotations

import math

from shared.types import Pose2D, Twist2D


def predict_pose(pose: Pose2D, twist: Twist2D, lookahead_time: float) -> Pose2D:
    """Second-order (midpoint) forward integration of a body-frame twist.

    The body velocity is rotated by the heading halfway through the interval,
    which removes most of the curvature bias of a plain Euler step.
    """
    t = lookahead_time
    yaw_mid = pose.yaw + twist.wz * t / 2.0
    c, s = math.cos(yaw_mid), math.sin(yaw_mid)
    x = pose.x + (c * twist.vx - s * twist.vy) * t
    y = pose.y + (s * twist.vx + c * twist.vy) * t
    return Pose2D(x, y, pose.yaw + twist.wz * t)


def dynamic_lookahead(base_dist: float, vel_x: float, lookahead_time: float) -> float:
    """Distance grown with forward speed; reversing does not shrink it."""
    return base_dist + max(vel_x, 0.0) * lookahead_time
