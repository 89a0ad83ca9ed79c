from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

# Frames & units: x forward / y left in body frames, meters, seconds, radians.
# Yaw is always wrapped to (-pi, pi].


def wrap_angle(a: float) -> float:
    """Wrap an angle to (-pi, pi]."""
    a = math.fmod(a + math.pi, 2.0 * math.pi)
    if a <= 0.0:
        a += 2.0 * math.pi
    return a - math.pi


def shortest_angular_distance(from_a: float, to_a: float) -> float:
    return wrap_angle(to_a - from_a)


@dataclass(frozen=True)
class Pose2D:
    x: float
    y: float
    yaw: float = 0.0  # rad

    def __post_init__(self) -> None:
        object.__setattr__(self, "yaw", wrap_angle(self.yaw))

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def transform_point(self, px: float, py: float) -> Tuple[float, float]:
        """Map a point given in this pose's body frame into the parent frame."""
        c, s = math.cos(self.yaw), math.sin(self.yaw)
        return self.x + c * px - s * py, self.y + s * px + c * py

    def inverse_transform_point(self, px: float, py: float) -> Tuple[float, float]:
        """Express a parent-frame point in this pose's body frame."""
        dx, dy = px - self.x, py - self.y
        c, s = math.cos(self.yaw), math.sin(self.yaw)
        return c * dx + s * dy, -s * dx + c * dy

    def distance_to(self, other: "Pose2D") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True)
class Twist2D:
    vx: float = 0.0  # body-frame forward velocity [m/s]
    vy: float = 0.0  # body-frame lateral velocity [m/s]
    wz: float = 0.0  # yaw rate [rad/s]

    def as_tuple(self) -> Tuple[float, float, float]:
        return self.vx, self.vy, self.wz


@dataclass(frozen=True)
class Transform2D:
    """Rigid 2D transform taking coordinates of a source frame into a target frame."""

    x: float = 0.0
    y: float = 0.0
    yaw: float = 0.0

    def apply(self, pose: Pose2D) -> Pose2D:
        c, s = math.cos(self.yaw), math.sin(self.yaw)
        return Pose2D(
            self.x + c * pose.x - s * pose.y,
            self.y + s * pose.x + c * pose.y,
            pose.yaw + self.yaw,
        )


@dataclass(frozen=True)
class StampedTwist:
    twist: Twist2D
    stamp: float
    frame_id: str


@dataclass(frozen=True)
class Odometry:
    pose: Pose2D
    twist: Twist2D
    frame_id: str = "odom"
    stamp: float = 0.0


Path2D = List[Pose2D]  # ordered waypoints, owned by the caller
