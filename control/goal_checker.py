from __future__ import annotations

from typing import Protocol

from shared.types import Pose2D, Twist2D, shortest_angular_distance


class GoalChecker(Protocol):
    def is_goal_reached(self, goal: Pose2D, pose: Pose2D, twist: Twist2D) -> bool: ...


class SimpleGoalChecker:
    """Position and heading within tolerance, and the base has come to rest."""

    def __init__(
        self,
        xy_goal_tolerance: float = 0.1,
        yaw_goal_tolerance: float = 0.02,
        trans_stopped_vel: float = 0.05,
        rot_stopped_vel: float = 0.05,
    ) -> None:
        self.xy_tol = xy_goal_tolerance
        self.yaw_tol = yaw_goal_tolerance
        self.trans_stopped = trans_stopped_vel
        self.rot_stopped = rot_stopped_vel

    def is_goal_reached(self, goal: Pose2D, pose: Pose2D, twist: Twist2D) -> bool:
        if pose.distance_to(goal) > self.xy_tol:
            return False
        if abs(shortest_angular_distance(pose.yaw, goal.yaw)) > self.yaw_tol:
            return False
        return (
            abs(twist.vx) <= self.trans_stopped
            and abs(twist.vy) <= self.trans_stopped
            and abs(twist.wz) <= self.rot_stopped
        )


class GoalReachedTracker:
    """Debounces the goal predicate: it must hold for ``tune_time`` seconds."""

    def __init__(self, tune_time: float) -> None:
        self.tune_time = tune_time
        self.reached = False
        self.first_reached_time = 0.0

    def reset(self) -> None:
        self.reached = False
        self.first_reached_time = 0.0

    def update(self, is_reached: bool, now: float) -> bool:
        if not self.reached:
            # restart the clock on every tick the goal is not held
            self.first_reached_time = now
        self.reached = is_reached
        return is_reached and (now - self.first_reached_time) >= self.tune_time
