from __future__ import annotations

import math
from dataclasses import dataclass

from shared.types import Pose2D, Twist2D, wrap_angle


def _clamp(v: float, lo: float, hi: float) -> float:
    return hi if v > hi else lo if v < lo else v


@dataclass
class BaseParams:
    omni: bool = False  # holonomic base accepts vy, differential drops it
    tau: float = 0.05  # first-order velocity response time constant (s), 0 = ideal
    accel_max: float = 3.0  # per-axis accel limit (m/s^2)


class Base2D:
    """Planar mobile base tracking body-frame velocity commands."""

    def __init__(self, params: BaseParams | None = None) -> None:
        self.p = params or BaseParams()
        self.reset()

    def reset(self, x: float = 0.0, y: float = 0.0, yaw: float = 0.0) -> None:
        self.x, self.y, self.yaw = x, y, yaw
        self.vx = self.vy = self.wz = 0.0

    @property
    def pose(self) -> Pose2D:
        return Pose2D(self.x, self.y, self.yaw)

    @property
    def twist(self) -> Twist2D:
        return Twist2D(self.vx, self.vy, self.wz)

    def _track(self, v: float, v_cmd: float, dt: float) -> float:
        dv = v_cmd - v if self.p.tau <= 0 else (v_cmd - v) * min(dt / self.p.tau, 1.0)
        return v + _clamp(dv, -self.p.accel_max * dt, self.p.accel_max * dt)

    def step(self, dt: float, cmd: Twist2D) -> tuple[Pose2D, Twist2D]:
        vy_cmd = cmd.vy if self.p.omni else 0.0
        self.vx = self._track(self.vx, cmd.vx, dt)
        self.vy = self._track(self.vy, vy_cmd, dt)
        self.wz = self._track(self.wz, cmd.wz, dt)
        # midpoint integration in the world frame
        yaw_mid = self.yaw + 0.5 * self.wz * dt
        c, s = math.cos(yaw_mid), math.sin(yaw_mid)
        self.x += (c * self.vx - s * self.vy) * dt
        self.y += (s * self.vx + c * self.vy) * dt
        self.yaw = wrap_angle(self.yaw + self.wz * dt)
        return self.pose, self.twist
