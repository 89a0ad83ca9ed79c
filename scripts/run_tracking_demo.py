from __future__ import annotations

import argparse
import csv
import logging
import os
from dataclasses import replace

from control.config import load_planner_config
from control.local_planner import LocalPlanner
from costmap.cost_grid import CostGrid
from planning.path import straight_path
from shared.types import Odometry, Pose2D
from sim.base_2d import Base2D, BaseParams


class SimClock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


def demo_costmap(size_m: float, resolution: float, obstacle_x: float | None) -> CostGrid:
    """Square grid centred on the origin with an optional wall across the x axis."""
    n = int(round(size_m / resolution))
    grid = CostGrid.empty(n, n, resolution, origin=(-size_m / 2.0, -size_m / 2.0))
    if obstacle_x is not None:
        grid.fill_world_rect((obstacle_x, -1.0), (obstacle_x + 0.2, 1.0), 254)
    return grid


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Tracking demo: straight path -> LocalPlanner -> Base2D")
    ap.add_argument("--goal", default="4.0,0.0", help="goal x,y in meters")
    ap.add_argument("--start-yaw", type=float, default=0.0)
    ap.add_argument("--obstacle-x", type=float, default=None, help="place a wall at this x")
    ap.add_argument("--omni", action="store_true", help="holonomic base")
    ap.add_argument("--dt", type=float, default=0.05)
    ap.add_argument("--sim-seconds", type=float, default=30.0)
    ap.add_argument("--planner-config", default="configs/local_planner.yaml")
    ap.add_argument("--csv-out", default="artifacts/tracking_run.csv")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    os.makedirs(os.path.dirname(args.csv_out) or ".", exist_ok=True)

    cfg = load_planner_config(args.planner_config, section="local_planner")
    if args.omni and cfg.differential_drive:
        cfg = replace(cfg, differential_drive=False)

    gx, gy = (float(s) for s in args.goal.split(","))
    path = straight_path(Pose2D(0.0, 0.0, 0.0), Pose2D(gx, gy, 0.0), step=0.05)

    clock = SimClock()
    planner = LocalPlanner(demo_costmap(20.0, 0.05, args.obstacle_x), cfg, clock=clock)
    planner.set_plan(path, frame_id="odom")
    base = Base2D(BaseParams(omni=args.omni))
    base.reset(yaw=args.start_yaw)

    reached = False
    with open(args.csv_out, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(
            ["t", "px", "py", "yaw", "vx", "vy", "wz", "cmd_vx", "cmd_vy", "cmd_wz",
             "state", "obstacle_dist", "goal_reached"]
        )
        while clock.t <= args.sim_seconds:
            planner.on_odometry(Odometry(base.pose, base.twist, "odom", clock.t))
            reached = planner.is_goal_reached()
            cmd = planner.compute_velocity_commands().twist
            diag = planner.last_diagnostics
            pose, twist = base.step(args.dt, cmd)
            w.writerow(
                [clock.t, pose.x, pose.y, pose.yaw, twist.vx, twist.vy, twist.wz,
                 cmd.vx, cmd.vy, cmd.wz, planner.state.name,
                 diag.obstacle_dist if diag else "", int(reached)]
            )
            if reached:
                break
            clock.t += args.dt

    print(f"Sim finished at t={clock.t:.2f}s. Goal reached: {reached}, state: {planner.state.name}")
    print(f"Wrote: {args.csv_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
