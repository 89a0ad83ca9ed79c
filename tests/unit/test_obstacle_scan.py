import pytest

from costmap.cost_grid import CostGrid, CostSampler
from costmap.obstacle_scan import scan_for_obstacles
from shared.types import Pose2D

KW = dict(obstacle_cost=0.9, stopped_vel=0.05, stop_margin=0.5)


def _sampler(size=4.0, wall_x=None):
    grid = CostGrid.empty(int(size / 0.05), int(size / 0.05), 0.05, origin=(-size / 2, -size / 2))
    if wall_x is not None:
        grid.fill_world_rect((wall_x, -1.0), (wall_x + 0.2, 1.0), 254)
    return CostSampler(grid)


def test_leaving_grid_is_not_an_obstacle():
    scan = scan_for_obstacles(_sampler(), Pose2D(0.0, 0.0, 0.0), 0.5, 0.0, **KW)
    assert not scan.has_obstacle
    assert 1.9 < scan.obstacle_dist + 0.5 < 2.1
    assert scan.peak_cost == 0.0


def test_wall_ahead_stops_scan():
    scan = scan_for_obstacles(_sampler(wall_x=1.0), Pose2D(0.0, 0.0, 0.0), 0.5, 0.0, **KW)
    assert scan.has_obstacle
    assert scan.peak_cost >= 0.9
    assert 0.9 <= scan.obstacle_dist + 0.5 <= 1.1
    assert scan.trajectory[0] == Pose2D(0.0, 0.0, 0.0)
    assert scan.trajectory[-1].x == pytest.approx(scan.obstacle_dist + 0.5)


def test_obstacle_inside_margin_gives_negative_distance():
    scan = scan_for_obstacles(_sampler(wall_x=0.2), Pose2D(0.0, 0.0, 0.0), 0.0, 0.0, **KW)
    assert scan.has_obstacle
    assert scan.obstacle_dist < 0.0


def test_scan_range_is_bounded():
    scan = scan_for_obstacles(_sampler(size=30.0), Pose2D(0.0, 0.0, 0.0), 0.5, 0.0, **KW)
    assert not scan.has_obstacle
    assert scan.obstacle_dist == pytest.approx(10.0 - 0.5, abs=0.06)
    assert len(scan.trajectory) == pytest.approx(201, abs=1)


def test_march_follows_yaw_rate_only_when_moving():
    turning = scan_for_obstacles(_sampler(), Pose2D(0.0, 0.0, 0.0), 0.5, 0.5, max_dist=0.5, **KW)
    yaws = [p.yaw for p in turning.trajectory]
    assert yaws == sorted(yaws) and yaws[-1] > yaws[0]
    assert yaws[1] == pytest.approx(0.5 * 0.05 / 0.5)

    stopped = scan_for_obstacles(_sampler(), Pose2D(0.0, 0.0, 0.0), 0.01, 0.5, max_dist=0.5, **KW)
    assert all(p.yaw == 0.0 for p in stopped.trajectory)
