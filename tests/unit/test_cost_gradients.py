from costmap.cost_grid import CostGrid, CostSampler
from costmap.gradients import estimate_gradient
from shared.types import Pose2D


def _grid():
    # 2m x 2m, 5cm cells, centred on the origin
    return CostGrid.empty(40, 40, 0.05, origin=(-1.0, -1.0))


def test_free_space_has_zero_gradient():
    g = estimate_gradient(CostSampler(_grid()), Pose2D(0.0, 0.0, 0.3))
    assert g.dx == 0.0 and g.dy == 0.0 and g.dyaw == 0.0


def test_cost_ahead_gives_positive_x_gradient():
    grid = _grid()
    grid.fill_world_rect((0.1, -1.0), (0.35, 1.0), 254)
    g = estimate_gradient(CostSampler(grid), Pose2D(0.0, 0.0, 0.0))
    assert g.dx > 0.0
    assert abs(g.dy) < 1e-12

    # same wall seen from a robot facing the other way: cost is behind
    g_back = estimate_gradient(CostSampler(grid), Pose2D(0.0, 0.0, 3.14159))
    assert g_back.dx < 0.0


def test_cost_on_left_gives_positive_y_gradient():
    grid = _grid()
    grid.fill_world_rect((-1.0, 0.11), (1.0, 1.0), 254)
    g = estimate_gradient(CostSampler(grid), Pose2D(0.0, 0.0, 0.0))
    assert g.dy > 0.0


def test_cost_front_left_gives_positive_yaw_gradient():
    grid = _grid()
    grid.fill_world_rect((0.0, 0.0), (1.0, 1.0), 254)
    g = estimate_gradient(CostSampler(grid), Pose2D(0.0, 0.0, 0.0))
    assert g.dyaw > 0.0
