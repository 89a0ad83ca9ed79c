from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

from control.command_shaper import LastCommand, shape_command
from control.config import PlannerConfig
from control.goal_checker import GoalChecker, GoalReachedTracker, SimpleGoalChecker
from control.prediction import dynamic_lookahead, predict_pose
from control.velocity_law import ControllerState, LawInputs, velocity_law
from costmap.cost_grid import CostGrid, CostSampler
from costmap.gradients import CostGradient, GradientOffsets, estimate_gradient
from costmap.obstacle_scan import scan_for_obstacles
from planning.path import select_target
from shared.types import (
    Odometry,
    Path2D,
    Pose2D,
    StampedTwist,
    Transform2D,
    Twist2D,
    shortest_angular_distance,
)

log = logging.getLogger(__name__)

TrajectorySink = Callable[[str, List[Pose2D]], None]

LOG_EVERY_N_TICKS = 20


class TransformLookupError(RuntimeError):
    """Raised by a TransformSource when two frames cannot be related."""


class TransformSource(Protocol):
    def lookup(self, target_frame: str, source_frame: str) -> Transform2D: ...


class StaticTransformSource:
    """Fixed table of frame pairs; identical frames resolve to identity."""

    def __init__(self) -> None:
        self._table: dict[tuple[str, str], Transform2D] = {}

    def set_transform(self, target_frame: str, source_frame: str, tf: Transform2D) -> None:
        self._table[(target_frame, source_frame)] = tf

    def lookup(self, target_frame: str, source_frame: str) -> Transform2D:
        if target_frame == source_frame:
            return Transform2D()
        try:
            return self._table[(target_frame, source_frame)]
        except KeyError:
            raise TransformLookupError(f"no transform {source_frame} -> {target_frame}") from None


@dataclass(frozen=True)
class TickDiagnostics:
    dt: float
    predicted: Pose2D
    pos_error: tuple[float, float]
    yaw_error: float
    center_cost: float
    gradient: CostGradient
    has_obstacle: bool
    obstacle_dist: float
    obstacle_cost: float
    is_goal_target: bool
    state: ControllerState
    emergency_brake: bool


class LocalPlanner:
    """Closed-loop path tracker producing one velocity command per tick.

    Odometry arrives asynchronously through ``on_odometry``; every tick and every
    ``is_goal_reached`` call holds the same lock for its whole duration so each
    works on a single consistent measurement.
    """

    def __init__(
        self,
        costmap: CostGrid,
        cfg: PlannerConfig | None = None,
        *,
        transforms: TransformSource | None = None,
        goal_checker: GoalChecker | None = None,
        local_frame: str = "odom",
        clock: Callable[[], float] = time.monotonic,
        trajectory_sink: TrajectorySink | None = None,
    ) -> None:
        self.cfg = cfg or PlannerConfig()
        self.costmap = costmap
        self.transforms = transforms or StaticTransformSource()
        self.goal_checker = goal_checker or SimpleGoalChecker(
            self.cfg.xy_goal_tolerance,
            self.cfg.yaw_goal_tolerance,
            self.cfg.trans_stopped_vel,
            self.cfg.rot_stopped_vel,
        )
        self.local_frame = local_frame
        self.clock = clock
        self.trajectory_sink = trajectory_sink

        self._lock = threading.Lock()
        self._odom: Optional[Odometry] = None
        self._plan: Path2D = []
        self._plan_frame = local_frame
        self._last_good_tf = Transform2D()
        self._goal = GoalReachedTracker(self.cfg.goal_tune_time)
        self.last_diagnostics: Optional[TickDiagnostics] = None
        self.reset()

    # --- lifecycle / inputs ---

    def reset(self) -> None:
        """Forget controller state, filter memory and goal debouncing."""
        with self._lock:
            self.state = ControllerState.IDLE
            self._last = LastCommand()
            self._last_time = self.clock()
            self._goal.reset()
            self._ticks = 0

    def on_odometry(self, odom: Odometry) -> None:
        with self._lock:
            self._odom = odom

    def set_plan(self, path: Sequence[Pose2D], frame_id: str = "map") -> None:
        with self._lock:
            self._plan = list(path)
            self._plan_frame = frame_id

    @property
    def last_command(self) -> Twist2D:
        return self._last.cmd

    # --- helpers (lock held) ---

    def _plan_to_local(self) -> Transform2D:
        try:
            self._last_good_tf = self.transforms.lookup(self.local_frame, self._plan_frame)
        except TransformLookupError as e:
            log.warning("transform lookup failed, reusing last good transform: %s", e)
        return self._last_good_tf

    @staticmethod
    def _stamped(twist: Twist2D, now: float, frame_id: str) -> StampedTwist:
        return StampedTwist(twist, now, frame_id)

    def _hold_zero(self, now: float, frame_id: str) -> StampedTwist:
        self._last = LastCommand()
        self._last_time = now
        return self._stamped(Twist2D(), now, frame_id)

    # --- control tick ---

    def compute_velocity_commands(self) -> StampedTwist:
        with self._lock:
            now = self.clock()
            odom = self._odom
            if odom is None:
                log.debug("no odometry yet, commanding zero")
                return self._stamped(Twist2D(), now, self.local_frame)
            if not self._plan:
                log.debug("empty plan, commanding zero")
                return self._hold_zero(now, odom.frame_id)

            cfg = self.cfg
            dt = max(min(now - self._last_time, cfg.max_tick_dt), 0.0)
            tf = self._plan_to_local()
            plan = [tf.apply(p) for p in self._plan]
            sampler = CostSampler(self.costmap)

            pose, twist = odom.pose, odom.twist
            lookahead = dynamic_lookahead(cfg.lookahead_dist, twist.vx, cfg.lookahead_time)
            y_lookahead = dynamic_lookahead(
                cfg.cost_y_lookahead_dist, twist.vx, cfg.cost_y_lookahead_time
            )
            predicted = predict_pose(pose, twist, cfg.lookahead_time)

            center_cost = sampler.cost_at(predicted.position)
            gradient = estimate_gradient(
                sampler,
                predicted,
                GradientOffsets(cfg.gradient_delta_x, cfg.gradient_delta_y, cfg.gradient_delta_yaw),
                y_lookahead,
            )
            scan = scan_for_obstacles(
                sampler,
                predicted,
                twist.vx,
                twist.wz,
                obstacle_cost=cfg.max_cost,
                stopped_vel=cfg.trans_stopped_vel,
                stop_margin=cfg.min_stop_dist,
                step=cfg.scan_step,
                max_dist=cfg.scan_max_dist,
            )
            if self.trajectory_sink is not None:
                self.trajectory_sink(self.local_frame, scan.trajectory)

            sel = select_target(
                plan, predicted.position, max_goal_dist=cfg.max_goal_dist, lookahead_dist=lookahead
            )
            if sel is None:
                return self._hold_zero(now, odom.frame_id)
            ex, ey = predicted.inverse_transform_point(sel.target.x, sel.target.y)
            yaw_error = shortest_angular_distance(predicted.yaw, sel.target.yaw)

            out = velocity_law(
                self.state,
                LawInputs(
                    pos_error_x=ex,
                    pos_error_y=ey,
                    yaw_error=yaw_error,
                    goal_dist=sel.goal_dist,
                    is_goal_target=sel.is_goal_target,
                    lookahead_dist=lookahead,
                    center_cost=center_cost,
                    gradient=gradient,
                    has_obstacle=scan.has_obstacle,
                    obstacle_dist=scan.obstacle_dist,
                    vel_x=twist.vx,
                    yaw_rate=twist.wz,
                ),
                cfg,
            )
            prev_state, self.state = self.state, out.state
            self.last_diagnostics = TickDiagnostics(
                dt, predicted, (ex, ey), yaw_error, center_cost, gradient,
                scan.has_obstacle, scan.obstacle_dist, scan.peak_cost,
                sel.is_goal_target, out.state, out.emergency_brake,
            )

            if out.stuck:
                if prev_state is not ControllerState.STUCK:
                    log.warning(
                        "stuck: yaw_error=%.3f obstacle_dist=%.3f obstacle_cost=%.3f delta_cost_x=%.3f",
                        yaw_error, scan.obstacle_dist, scan.peak_cost, gradient.dx,
                    )
                return self._hold_zero(now, odom.frame_id)

            self._last = shape_command(
                Twist2D(out.vel_x, out.vel_y, out.yaw_rate),
                self._last,
                dt,
                cfg,
                emergency_brake=out.emergency_brake,
                goal_reached=self._goal.reached,
            )
            if self._ticks % LOG_EVERY_N_TICKS == 0:
                log.debug(
                    "dt=%.3f pos_error=(%.3f, %.3f) yaw_error=%.3f cost=%.3f obstacle_dist=%.3f "
                    "delta_cost=(%.3f, %.3f, %.3f) state=%s cmd=%s",
                    dt, ex, ey, yaw_error, center_cost, scan.obstacle_dist,
                    gradient.dx, gradient.dy, gradient.dyaw, out.state.name, self._last.cmd,
                )
            self._ticks += 1
            self._last_time = now
            return self._stamped(self._last.cmd, now, odom.frame_id)

    # --- goal ---

    def is_goal_reached(self) -> bool:
        with self._lock:
            if self._odom is None:
                log.info("waiting for odometry")
                return False
            if not self._plan:
                log.info("plan is empty, nothing to track")
                return True
            try:
                tf = self.transforms.lookup(self.local_frame, self._plan_frame)
            except TransformLookupError as e:
                log.warning("transform lookup failed: %s", e)
                return False

            goal = tf.apply(self._plan[-1])
            pose, twist = self._odom.pose, self._odom.twist
            is_reached = self.goal_checker.is_goal_reached(goal, pose, twist)
            if is_reached and not self._goal.reached:
                log.info(
                    "goal reached: xy_error=%.3f [m], yaw_error=%.3f [rad]",
                    pose.distance_to(goal),
                    abs(shortest_angular_distance(pose.yaw, goal.yaw)),
                )
            return self._goal.update(is_reached, self.clock())
