#!/usr/bin/env python3
from __future__ import annotations

import argparse
import os
from typing import Iterable

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402


def load_df(path: str) -> pd.DataFrame:
    df = pd.read_csv(path)
    required: Iterable[str] = ("t", "px", "py", "vx", "wz", "cmd_vx", "cmd_wz", "state")
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SystemExit(f"CSV missing required columns: {missing}")
    return df


def plot_run(df: pd.DataFrame, out: str) -> None:
    fig, (ax_xy, ax_v) = plt.subplots(1, 2, figsize=(11, 4.5))
    ax_xy.plot(df["px"], df["py"], label="base (px,py)")
    ax_xy.scatter(df["px"].iloc[-1:], df["py"].iloc[-1:], marker="x", label="final")
    ax_xy.set_xlabel("x [m]")
    ax_xy.set_ylabel("y [m]")
    ax_xy.set_title("Trajectory")
    ax_xy.axis("equal")
    ax_xy.legend()

    ax_v.plot(df["t"], df["cmd_vx"], label="cmd vx")
    ax_v.plot(df["t"], df["vx"], "--", label="vx")
    ax_v.plot(df["t"], df["cmd_wz"], label="cmd wz")
    stuck = df["state"] == "STUCK"
    if stuck.any():
        ax_v.scatter(df["t"][stuck], df["cmd_vx"][stuck], color="red", s=8, label="stuck")
    ax_v.set_xlabel("t [s]")
    ax_v.set_title("Commands vs time")
    ax_v.legend()

    fig.tight_layout()
    fig.savefig(out, dpi=150, bbox_inches="tight")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Plot tracking run CSV.")
    ap.add_argument("--csv", default="artifacts/tracking_run.csv")
    ap.add_argument("--out", default="artifacts/tracking_plot.png")
    args = ap.parse_args(argv)

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    plot_run(load_df(args.csv), args.out)
    print(f"Wrote plot to: {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
