from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from shared.types import Path2D, Pose2D


def straight_path(start: Pose2D, goal: Pose2D, *, step: float = 0.1, max_points: int = 2000) -> Path2D:
    """
    Returns a straight-line path from start to goal sampled every ~step meters.
    Intermediate poses face along the line; the last pose keeps the goal's yaw.
    """
    dx, dy = goal.x - start.x, goal.y - start.y
    dist = math.hypot(dx, dy)
    if dist == 0.0:
        return [start, goal]
    heading = math.atan2(dy, dx)
    n = max(2, min(max_points, int(dist / max(step, 1e-6)) + 1))
    pts: Path2D = []
    for i in range(n - 1):
        t = i / (n - 1)
        pts.append(Pose2D(start.x + t * dx, start.y + t * dy, heading))
    pts.append(goal)
    return pts


def find_closest_point(path: Sequence[Pose2D], pos: Tuple[float, float]) -> Optional[int]:
    """Index of the waypoint nearest to pos; the first one wins ties. None if empty."""
    best: Optional[int] = None
    best_dist = math.inf
    for i, p in enumerate(path):
        d = math.hypot(p.x - pos[0], p.y - pos[1])
        if d < best_dist:
            best_dist = d
            best = i
    return best


def move_along_path(path: Sequence[Pose2D], start: int, dist: float) -> Tuple[int, float]:
    """Walk forward from ``start`` by cumulative segment length.

    Returns the first index at which ``dist`` has been covered together with the
    distance actually travelled. Running off the end clamps to the last index.
    """
    n = len(path)
    i = prev = start
    left = dist
    while i < n:
        left -= path[i].distance_to(path[prev])
        if left <= 0.0:
            break
        prev = i
        i += 1
    if i >= n:
        i = prev
    return i, dist - left


@dataclass(frozen=True)
class TargetSelection:
    index: int
    target: Pose2D  # target position with the desired heading
    is_goal_target: bool
    goal_dist: float  # straight-line distance to the final waypoint


def select_target(
    path: Sequence[Pose2D],
    pos: Tuple[float, float],
    *,
    max_goal_dist: float,
    lookahead_dist: float,
) -> Optional[TargetSelection]:
    """Pick the tracking target for a (predicted) position.

    If the end of the path lies within ``max_goal_dist`` of the nearest waypoint
    (by arc length) the goal is targeted directly with its own heading.
    Otherwise the target is the nearest waypoint, headed towards the point
    ``lookahead_dist`` further along the path.
    """
    nearest = find_closest_point(path, pos)
    if nearest is None:
        return None

    goal = path[-1]
    goal_dist = math.hypot(goal.x - pos[0], goal.y - pos[1])

    reach, _ = move_along_path(path, nearest, max_goal_dist)
    if reach + 1 >= len(path):
        p = path[reach]
        return TargetSelection(reach, p, True, goal_dist)

    ahead, _ = move_along_path(path, nearest, lookahead_dist)
    p, q = path[nearest], path[ahead]
    yaw = math.atan2(q.y - p.y, q.x - p.x)
    return TargetSelection(nearest, Pose2D(p.x, p.y, yaw), False, goal_dist)
