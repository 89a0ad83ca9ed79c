from __future__ import annotations

import math
from dataclasses import dataclass

from costmap.cost_grid import CostSampler
from shared.types import Pose2D


@dataclass(frozen=True)
class CostGradient:
    """Central-difference cost slopes around a pose (body-frame x/y, yaw)."""

    dx: float = 0.0
    dy: float = 0.0
    dyaw: float = 0.0


@dataclass(frozen=True)
class GradientOffsets:
    delta_x: float = 0.3  # m
    delta_y: float = 0.2  # m
    delta_yaw: float = 0.1  # rad


def _rotated_segment(pose: Pose2D, half_len: float, yaw_offset: float):
    """Body-frame segment of length 2*half_len through the pose, turned by yaw_offset."""
    c, s = math.cos(yaw_offset), math.sin(yaw_offset)
    front = pose.transform_point(c * half_len, s * half_len)
    back = pose.transform_point(-c * half_len, -s * half_len)
    return front, back


def estimate_gradient(
    sampler: CostSampler,
    pose: Pose2D,
    offsets: GradientOffsets = GradientOffsets(),
    y_lookahead: float = 0.0,
) -> CostGradient:
    """Finite-difference gradients used as a repulsive steering bias.

    x/y: average line cost from the pose to a perturbed point (the y probe sits
    ``y_lookahead`` metres ahead). yaw: average cost of a short segment through
    the pose, rotated by +/- delta_yaw.
    """
    dx_, dy_, dyaw_ = offsets.delta_x, offsets.delta_y, offsets.delta_yaw
    center = pose.position

    grad_x = (
        sampler.avg_cost(center, pose.transform_point(dx_, 0.0))
        - sampler.avg_cost(center, pose.transform_point(-dx_, 0.0))
    ) / (2.0 * dx_)

    grad_y = (
        sampler.avg_cost(center, pose.transform_point(y_lookahead, dy_))
        - sampler.avg_cost(center, pose.transform_point(y_lookahead, -dy_))
    ) / (2.0 * dy_)

    grad_yaw = (
        sampler.avg_cost(*_rotated_segment(pose, dx_, dyaw_))
        - sampler.avg_cost(*_rotated_segment(pose, dx_, -dyaw_))
    ) / (2.0 * dyaw_)

    return CostGradient(grad_x, grad_y, grad_yaw)
