from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from control.config import PlannerConfig
from costmap.gradients import CostGradient


class ControllerState(Enum):
    IDLE = 0
    TRANSLATING = 1
    ROTATING = 2
    ADJUSTING = 3
    TURNING = 4
    STUCK = 5


@dataclass(frozen=True)
class LawInputs:
    """Everything the control law needs for one tick, in the predicted body frame."""

    pos_error_x: float
    pos_error_y: float
    yaw_error: float
    goal_dist: float
    is_goal_target: bool
    lookahead_dist: float
    center_cost: float
    gradient: CostGradient
    has_obstacle: bool
    obstacle_dist: float
    vel_x: float  # measured forward speed
    yaw_rate: float  # measured yaw rate


@dataclass(frozen=True)
class LawOutput:
    state: ControllerState
    vel_x: float = 0.0
    vel_y: float = 0.0
    yaw_rate: float = 0.0
    emergency_brake: bool = False

    @property
    def stuck(self) -> bool:
        return self.state is ControllerState.STUCK


def _sign(v: float) -> float:
    return 1.0 if v > 0 else -1.0


def situational_limits(center_cost: float, cfg: PlannerConfig) -> tuple[float, float]:
    """Max translational / rotational speed, de-rated linearly with local cost."""
    scale = (cfg.max_cost - center_cost) / cfg.max_cost
    return (
        max(cfg.max_trans_vel * scale, cfg.min_trans_vel),
        max(cfg.max_rot_vel * scale, cfg.min_rot_vel),
    )


def stopping_speed(dist: float, accel: float) -> float:
    """Highest speed from which ``accel`` still stops within ``dist``."""
    if accel <= 0.0:
        return 0.0
    return accel * math.sqrt(2.0 * max(dist, 0.0) / accel)


def _tracking_vel_x(state: ControllerState, inp: LawInputs, max_trans: float, cfg: PlannerConfig):
    vel_x = max_trans
    emergency = False

    # wait until aligned before starting to move
    if state is not ControllerState.TRANSLATING and abs(inp.yaw_error) > cfg.start_yaw_error:
        vel_x = 0.0

    # curve speed
    if inp.yaw_error != 0.0:
        vel_x = min(vel_x, cfg.max_curve_vel * (inp.lookahead_dist / abs(inp.yaw_error)))

    # slow down towards the end of the path
    if inp.vel_x > 0:
        cap = stopping_speed(inp.goal_dist, cfg.goal_stop_accel_scale * cfg.acc_lim_x)
        vel_x = min(vel_x, max(cap, cfg.min_trans_vel))

    # slow down towards an obstacle
    if inp.has_obstacle and inp.vel_x > 0:
        cap = stopping_speed(inp.obstacle_dist, cfg.obstacle_stop_accel_scale * cfg.acc_lim_x)
        if cap < 0.5 * inp.vel_x:
            emergency = True
        vel_x = min(vel_x, cap)

    if inp.has_obstacle and inp.obstacle_dist <= 0:
        vel_x = 0.0

    return max(vel_x, 0.0), emergency


def velocity_law(state: ControllerState, inp: LawInputs, cfg: PlannerConfig) -> LawOutput:
    """One step of the tracking state machine.

    Takes the previous state and returns the next one together with the raw
    (unfiltered) command. A STUCK result means the caller must emit zero.
    """
    max_trans, max_rot = situational_limits(inp.center_cost, cfg)
    band = cfg.goal_heading_band
    grad = inp.gradient
    emergency = False
    vel_y = 0.0

    if inp.is_goal_target:
        # braking spring towards the final pose
        vel_x = inp.pos_error_x * cfg.pos_x_gain
    else:
        vel_x, emergency = _tracking_vel_x(state, inp, max_trans, cfg)

    # limit backing up
    backup_limit = 0.0 if state is ControllerState.TURNING else -cfg.max_backup_dist
    if inp.is_goal_target and cfg.max_backup_dist > 0 and inp.pos_error_x < backup_limit:
        vel_x = 0.0
        state = ControllerState.TURNING
    elif state is ControllerState.TURNING:
        state = ControllerState.IDLE

    if cfg.differential_drive:
        moving_thresh = cfg.trans_stopped_vel * (1.0 if state is ControllerState.TRANSLATING else 2.0)
        adjust_tol = cfg.xy_goal_tolerance * (
            cfg.adjust_tol_scale if state is ControllerState.ADJUSTING else cfg.adjust_enter_scale
        )
        if abs(inp.vel_x) > moving_thresh:
            # lane keeping
            yaw_rate = inp.pos_error_y / inp.vel_x * cfg.pos_y_yaw_gain
            if not inp.is_goal_target:
                yaw_rate += inp.yaw_error * cfg.yaw_gain
                yaw_rate -= grad.dy / inp.vel_x * cfg.cost_y_yaw_gain
                yaw_rate -= grad.dyaw * cfg.cost_yaw_gain
            state = ControllerState.TRANSLATING
        elif state is ControllerState.TURNING:
            yaw_rate = _sign(inp.yaw_rate) * max_rot
        elif (
            inp.is_goal_target
            and (state is ControllerState.ADJUSTING or abs(inp.yaw_error) < band)
            and abs(inp.pos_error_y) > adjust_tol
        ):
            # stopped near the goal but off to the side: turn towards the lane
            yaw_rate = _sign(inp.pos_error_y) * max_rot
            state = ControllerState.ADJUSTING
        else:
            yaw_rate = inp.yaw_error * cfg.static_yaw_gain
            state = ControllerState.ROTATING
    else:
        vel_y = inp.pos_error_y * cfg.pos_y_gain

        if state is ControllerState.TURNING:
            yaw_rate = _sign(inp.yaw_rate) * max_rot
        else:
            yaw_rate = inp.yaw_error * cfg.static_yaw_gain
            if abs(inp.vel_x) > cfg.trans_stopped_vel:
                state = ControllerState.TRANSLATING
            else:
                state = ControllerState.ROTATING

        turning_hard = state is ControllerState.ROTATING and abs(inp.yaw_error) > band
        if turning_hard:
            vel_x -= grad.dx * cfg.cost_x_gain
        if not inp.is_goal_target or turning_hard:
            vel_y -= grad.dy * cfg.cost_y_gain
        if not inp.is_goal_target:
            yaw_rate -= grad.dyaw * cfg.cost_yaw_gain

    if (
        inp.has_obstacle
        and inp.obstacle_dist <= 0
        and grad.dx > 0
        and state is ControllerState.ROTATING
        and abs(inp.yaw_error) < band
    ):
        return LawOutput(ControllerState.STUCK)

    return LawOutput(state, vel_x, vel_y, yaw_rate, emergency)
