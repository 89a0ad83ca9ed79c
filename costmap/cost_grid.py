from __future__ import annotations

import math
from typing import Iterator, List, Sequence, Tuple

import numpy as np

Cell = Tuple[int, int]  # (mx, my)
Point = Tuple[float, float]

LETHAL_COST = 255


def line_cells(x0: int, y0: int, x1: int, y1: int) -> Iterator[Cell]:
    """Bresenham traversal between two cells, inclusive of both ends."""
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy
    x, y = x0, y0
    while True:
        yield x, y
        if x == x1 and y == y1:
            return
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x += sx
        if e2 <= dx:
            err += dx
            y += sy


class CostGrid:
    """Row-major grid of uint8 costs in [0, 255] with a world <-> map mapping.

    ``data[my, mx]`` holds the cost of the cell whose lower-left corner sits at
    ``origin + (mx, my) * resolution``. The grid is owned by whoever maintains it;
    the controller only reads it.
    """

    def __init__(
        self,
        data: Sequence[Sequence[int]] | np.ndarray,
        resolution: float = 0.05,
        origin: Point = (0.0, 0.0),
    ) -> None:
        arr = np.asarray(data)
        if arr.ndim != 2 or arr.size == 0:
            raise ValueError("cost grid must be a non-empty 2D array")
        if resolution <= 0.0:
            raise ValueError("resolution must be positive")
        self.data = np.clip(arr, 0, LETHAL_COST).astype(np.uint8)
        self.resolution = float(resolution)
        self.origin = (float(origin[0]), float(origin[1]))

    @classmethod
    def empty(
        cls, width: int, height: int, resolution: float = 0.05, origin: Point = (0.0, 0.0)
    ) -> "CostGrid":
        return cls(np.zeros((height, width), dtype=np.uint8), resolution, origin)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def _raw_cell(self, wx: float, wy: float) -> Cell:
        mx = math.floor((wx - self.origin[0]) / self.resolution)
        my = math.floor((wy - self.origin[1]) / self.resolution)
        return mx, my

    def world_to_map(self, wx: float, wy: float) -> Cell | None:
        mx, my = self._raw_cell(wx, wy)
        if 0 <= mx < self.width and 0 <= my < self.height:
            return mx, my
        return None

    def world_to_map_clamped(self, wx: float, wy: float) -> Cell:
        mx, my = self._raw_cell(wx, wy)
        mx = min(max(mx, 0), self.width - 1)
        my = min(max(my, 0), self.height - 1)
        return mx, my

    def map_to_world(self, mx: int, my: int) -> Point:
        """World coordinates of a cell's centre."""
        return (
            self.origin[0] + (mx + 0.5) * self.resolution,
            self.origin[1] + (my + 0.5) * self.resolution,
        )

    def cost(self, mx: int, my: int) -> int:
        return int(self.data[my, mx])

    def set_cost(self, mx: int, my: int, value: int) -> None:
        self.data[my, mx] = min(max(int(value), 0), LETHAL_COST)

    def fill_world_rect(self, p0: Point, p1: Point, value: int) -> None:
        """Set every cell overlapping the world-space box p0..p1 (clamped to the grid)."""
        ax, ay = self.world_to_map_clamped(min(p0[0], p1[0]), min(p0[1], p1[1]))
        bx, by = self.world_to_map_clamped(max(p0[0], p1[0]), max(p0[1], p1[1]))
        self.data[ay : by + 1, ax : bx + 1] = min(max(int(value), 0), LETHAL_COST)


class CostSampler:
    """Normalised [0, 1] cost queries over a CostGrid.

    Point and line queries clamp out-of-bounds world points to the nearest cell;
    use ``contains`` to tell "off the grid" apart from "expensive".
    """

    def __init__(self, grid: CostGrid) -> None:
        self.grid = grid

    def contains(self, point: Point) -> bool:
        return self.grid.world_to_map(point[0], point[1]) is not None

    def cost_at(self, point: Point) -> float:
        mx, my = self.grid.world_to_map_clamped(point[0], point[1])
        return self.grid.cost(mx, my) / float(LETHAL_COST)

    def line_cells(self, p0: Point, p1: Point) -> List[Cell]:
        x0, y0 = self.grid.world_to_map_clamped(p0[0], p0[1])
        x1, y1 = self.grid.world_to_map_clamped(p1[0], p1[1])
        return list(line_cells(x0, y0, x1, y1))

    def avg_cost(self, p0: Point, p1: Point) -> float:
        # the traversal always yields at least the start cell
        cells = self.line_cells(p0, p1)
        total = sum(self.grid.cost(mx, my) for mx, my in cells)
        return total / (float(LETHAL_COST) * len(cells))

    def max_cost(self, p0: Point, p1: Point) -> float:
        cells = self.line_cells(p0, p1)
        return max(self.grid.cost(mx, my) for mx, my in cells) / float(LETHAL_COST)
