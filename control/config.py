from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

import yaml

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannerConfig:
    """Tunables of the local planner, named after their flat parameter keys.

    Defaults match the stock parameter set, so an empty table is a valid config.
    """

    # acceleration limits
    acc_lim_x: float = 0.5  # m/s^2
    acc_lim_y: float = 0.5  # m/s^2
    acc_lim_theta: float = 0.5  # rad/s^2
    emergency_acc_lim_x: float = 0.5  # m/s^2, used while emergency braking

    # velocity limits
    min_vel_x: float = -0.1
    max_vel_x: float = 0.5
    min_vel_y: float = -0.5
    max_vel_y: float = 0.5
    min_rot_vel: float = 0.1
    max_rot_vel: float = 0.5
    min_trans_vel: float = 0.1
    max_trans_vel: float = 0.5  # derived: = max_vel_x
    rot_stopped_vel: float = 0.05
    trans_stopped_vel: float = 0.05  # derived: = 0.5 * min_trans_vel

    # goal handling
    yaw_goal_tolerance: float = 0.02
    xy_goal_tolerance: float = 0.1
    goal_tune_time: float = 0.5  # s the goal must stay reached
    max_goal_dist: float = 0.5
    max_backup_dist: float = 0.5
    constrain_final: bool = False

    # lookahead
    lookahead_time: float = 0.5
    lookahead_dist: float = 0.5
    start_yaw_error: float = 0.2

    # gains
    pos_x_gain: float = 1.0
    pos_y_gain: float = 1.0
    pos_y_yaw_gain: float = 1.0
    yaw_gain: float = 1.0
    static_yaw_gain: float = 3.0
    cost_x_gain: float = 0.1
    cost_y_gain: float = 0.1
    cost_y_yaw_gain: float = 0.1
    cost_y_lookahead_dist: float = 0.0
    cost_y_lookahead_time: float = 1.0
    cost_yaw_gain: float = 1.0
    low_pass_gain: float = 0.5

    # obstacles
    max_cost: float = 0.9
    max_curve_vel: float = 0.2
    min_stop_dist: float = 0.5

    differential_drive: bool = True

    # fixed thresholds of the control law
    goal_heading_band: float = math.pi / 6  # rad
    adjust_enter_scale: float = 0.5  # x xy_goal_tolerance
    adjust_tol_scale: float = 0.25  # x xy_goal_tolerance, once adjusting
    goal_stop_accel_scale: float = 0.8  # x acc_lim_x
    obstacle_stop_accel_scale: float = 0.9  # x acc_lim_x
    gradient_delta_x: float = 0.3  # m
    gradient_delta_y: float = 0.2  # m
    gradient_delta_yaw: float = 0.1  # rad
    scan_step: float = 0.05  # m
    scan_max_dist: float = 10.0  # m
    max_tick_dt: float = 0.1  # s

    def validate(self) -> "PlannerConfig":
        for name in ("acc_lim_x", "acc_lim_y", "acc_lim_theta", "emergency_acc_lim_x"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be >= 0")
        if not 0.0 < self.max_cost <= 1.0:
            raise ValueError("max_cost must be in (0, 1]")
        if not 0.0 <= self.low_pass_gain <= 1.0:
            raise ValueError("low_pass_gain must be in [0, 1]")
        for lo, hi in (("min_vel_x", "max_vel_x"), ("min_vel_y", "max_vel_y")):
            if getattr(self, lo) > getattr(self, hi):
                raise ValueError(f"{lo} must not exceed {hi}")
        if min(self.gradient_delta_x, self.gradient_delta_y, self.gradient_delta_yaw) <= 0.0:
            raise ValueError("gradient deltas must be positive")
        if self.scan_step <= 0.0:
            raise ValueError("scan_step must be positive")
        return self

    @classmethod
    def from_dict(cls, table: Mapping[str, Any] | None) -> "PlannerConfig":
        """Build from a flat key -> scalar/bool table; absent keys keep defaults."""
        known = {f.name: f for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in (table or {}).items():
            f = known.get(key)
            if f is None:
                log.warning("ignoring unknown planner parameter %r", key)
                continue
            kwargs[key] = _coerce_bool(value) if f.type in ("bool", bool) else float(value)

        # translational limits follow the x-axis ones
        kwargs["max_trans_vel"] = kwargs.get("max_vel_x", cls.max_vel_x)
        kwargs["trans_stopped_vel"] = 0.5 * kwargs.get("min_trans_vel", cls.min_trans_vel)
        return cls(**kwargs).validate()


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def load_planner_config(path: str | None, section: str | None = None) -> PlannerConfig:
    """Read a YAML parameter file; a missing file or empty document gives defaults.

    The table may be flat or nested under ``section`` (e.g. a plugin name).
    """
    if not path or not os.path.exists(path):
        if path:
            log.info("planner config %s not found, using defaults", path)
        return PlannerConfig()
    with open(path, "r") as f:
        cfg = yaml.safe_load(f) or {}
    if section and isinstance(cfg.get(section), Mapping):
        cfg = cfg[section]
    return PlannerConfig.from_dict(cfg)
