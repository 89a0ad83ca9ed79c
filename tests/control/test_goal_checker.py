from control.goal_checker import GoalReachedTracker, SimpleGoalChecker
from shared.types import Pose2D, Twist2D


def test_simple_goal_checker():
    chk = SimpleGoalChecker(xy_goal_tolerance=0.1, yaw_goal_tolerance=0.05)
    goal = Pose2D(1.0, 1.0, 0.0)
    assert chk.is_goal_reached(goal, Pose2D(1.05, 1.0, 0.02), Twist2D())
    assert not chk.is_goal_reached(goal, Pose2D(1.2, 1.0, 0.0), Twist2D())
    assert not chk.is_goal_reached(goal, Pose2D(1.0, 1.0, 0.2), Twist2D())
    assert not chk.is_goal_reached(goal, Pose2D(1.0, 1.0, 0.0), Twist2D(0.2, 0.0, 0.0))


def test_tracker_requires_goal_held_for_tune_time():
    tr = GoalReachedTracker(0.5)
    assert not tr.update(True, 0.0)
    assert tr.reached
    assert not tr.update(True, 0.3)
    assert tr.update(True, 0.6)
    # dropping out restarts the clock
    assert not tr.update(False, 0.7)
    assert not tr.reached
    assert not tr.update(True, 0.8)
    assert not tr.update(True, 1.2)
    assert tr.update(True, 1.4)


def test_tracker_zero_tune_time():
    tr = GoalReachedTracker(0.0)
    assert tr.update(True, 5.0)
    assert not tr.update(False, 5.1)


def test_tracker_reset_restarts_the_hold():
    tr = GoalReachedTracker(0.5)
    assert not tr.update(True, 0.0)
    assert tr.update(True, 0.6)
    tr.reset()
    assert not tr.reached
    assert not tr.update(True, 0.7)
    assert tr.update(True, 1.3)
