from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from costmap.cost_grid import CostSampler
from shared.types import Pose2D


@dataclass
class ObstacleScan:
    has_obstacle: bool = False
    obstacle_dist: float = 0.0  # marched distance minus stop margin, may be negative
    peak_cost: float = 0.0
    trajectory: List[Pose2D] = field(default_factory=list)


def scan_for_obstacles(
    sampler: CostSampler,
    start: Pose2D,
    vel_x: float,
    yaw_rate: float,
    *,
    obstacle_cost: float,
    stopped_vel: float,
    stop_margin: float,
    step: float = 0.05,
    max_dist: float = 10.0,
) -> ObstacleScan:
    """March forward along the projected arc until something expensive shows up.

    Each step moves ``step`` metres along the current heading and turns by the
    yaw the robot would accumulate covering that distance at ``vel_x``. The
    march stops on an obstacle (max line cost >= obstacle_cost), on leaving the
    grid (not an obstacle), or after ``max_dist``.
    """
    dyaw = yaw_rate * (step / vel_x) if vel_x > stopped_vel else 0.0

    out = ObstacleScan()
    pose = start
    last = start
    dist = 0.0
    while dist < max_dist:
        cost = sampler.max_cost(last.position, pose.position)
        out.has_obstacle = cost >= obstacle_cost
        out.peak_cost = max(out.peak_cost, cost)
        out.trajectory.append(pose)
        if out.has_obstacle or not sampler.contains(pose.position):
            break

        last = pose
        nx, ny = pose.transform_point(step, 0.0)
        pose = Pose2D(nx, ny, pose.yaw + dyaw)
        dist += step

    out.obstacle_dist = dist - stop_margin
    return out
