import math

import pytest

from planning.path import find_closest_point, move_along_path, select_target, straight_path
from shared.types import Pose2D


def _line(n=4, step=1.0, yaw=0.0):
    return [Pose2D(i * step, 0.0, yaw) for i in range(n)]


def test_closest_point_first_wins_ties():
    path = [Pose2D(0, 0), Pose2D(1, 0), Pose2D(0, 0)]
    assert find_closest_point(path, (0.0, 0.0)) == 0
    assert find_closest_point(path, (0.9, 0.1)) == 1
    assert find_closest_point([], (0.0, 0.0)) is None


def test_move_along_path_by_arc_length():
    path = _line()
    assert move_along_path(path, 0, 1.5) == (2, 2.0)
    assert move_along_path(path, 1, 0.0) == (1, 0.0)
    # running past the end clamps to the final waypoint
    idx, travelled = move_along_path(path, 0, 10.0)
    assert idx == 3 and travelled == pytest.approx(3.0)


@pytest.mark.parametrize("start", range(6))
def test_final_point_reachable_from_any_index(start):
    path = _line(6, 0.3)
    assert move_along_path(path, start, 1e6)[0] == 5


def test_goal_mode_near_end_of_path():
    path = _line()
    path[-1] = Pose2D(3.0, 0.0, 0.7)
    sel = select_target(path, (2.8, 0.0), max_goal_dist=0.5, lookahead_dist=1.0)
    assert sel.is_goal_target
    assert sel.index == 3
    assert sel.target.yaw == pytest.approx(0.7)
    assert sel.goal_dist == pytest.approx(0.2)


def test_tracking_mode_heads_to_lookahead_point():
    path = straight_path(Pose2D(0.0, 0.0), Pose2D(0.0, 3.0), step=0.1)
    sel = select_target(path, (0.2, 0.0), max_goal_dist=0.5, lookahead_dist=1.0)
    assert not sel.is_goal_target
    assert sel.index == 0
    assert (sel.target.x, sel.target.y) == (0.0, 0.0)
    assert sel.target.yaw == pytest.approx(math.pi / 2)


def test_degenerate_paths():
    assert select_target([], (0.0, 0.0), max_goal_dist=0.5, lookahead_dist=1.0) is None
    only = Pose2D(1.0, 1.0, 0.2)
    sel = select_target([only], (0.0, 0.0), max_goal_dist=0.5, lookahead_dist=1.0)
    assert sel.is_goal_target and sel.target == only


def test_straight_path_endpoints():
    s, g = Pose2D(0.0, 0.0), Pose2D(2.0, 0.0, 1.0)
    pts = straight_path(s, g, step=0.5)
    assert pts[0] == s and pts[-1] == g and len(pts) == 5
    assert straight_path(s, s) == [s, s]
