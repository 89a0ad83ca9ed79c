from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from control.config import PlannerConfig
from shared.types import Twist2D


def _clamp(v: float, lo: float, hi: float) -> float:
    return hi if v > hi else lo if v < lo else v


@dataclass(frozen=True)
class LastCommand:
    """Filter memory carried between ticks."""

    control: Twist2D = field(default_factory=Twist2D)  # filtered + rate limited, before clamps
    cmd: Twist2D = field(default_factory=Twist2D)  # what was actually emitted


def shape_command(
    raw: Twist2D,
    last: LastCommand,
    dt: float,
    cfg: PlannerConfig,
    *,
    emergency_brake: bool = False,
    goal_reached: bool = False,
) -> LastCommand:
    """Turn raw control terms into the command to emit.

    Order: low-pass against the previous filtered terms, per-axis rate limit
    against the previous emitted command, optional projection onto the last
    control direction once the goal is reached, absolute clamps. Returns the
    new filter memory; its ``cmd`` is the command to send.
    """
    g = cfg.low_pass_gain
    prev = np.array(last.control.as_tuple())
    u = np.array(raw.as_tuple()) * g + prev * (1.0 - g)

    brake = emergency_brake and raw.vx >= 0
    decel_x = cfg.emergency_acc_lim_x if brake else cfg.acc_lim_x
    vx = _clamp(u[0], last.cmd.vx - decel_x * dt, last.cmd.vx + cfg.acc_lim_x * dt)
    vy = _clamp(u[1], last.cmd.vy - cfg.acc_lim_y * dt, last.cmd.vy + cfg.acc_lim_y * dt)
    wz = _clamp(u[2], last.cmd.wz - cfg.acc_lim_theta * dt, last.cmd.wz + cfg.acc_lim_theta * dt)

    if cfg.constrain_final and goal_reached:
        norm = np.linalg.norm(prev)
        if norm != 0.0:
            direction = prev / norm
            vx, vy, wz = direction * float(np.dot(direction, (vx, vy, wz)))

    control = Twist2D(float(vx), float(vy), float(wz))
    cmd = Twist2D(
        _clamp(control.vx, cfg.min_vel_x, cfg.max_vel_x),
        _clamp(control.vy, cfg.min_vel_y, cfg.max_vel_y),
        _clamp(control.wz, -cfg.max_rot_vel, cfg.max_rot_vel),
    )
    return LastCommand(control, cmd)
