from __future__ import annotations

import argparse
import logging
import time

import numpy as np

from pointfield import Cone, Cylinder, Sphere, fill_buffer, seed


def build_ornament():
    """
    Bauble with a hole drilled through it and a cone cap on top.
    """
    body = Sphere((0, 0, 5), 5.0) - Cylinder((0, 0, 5), 2.0, 10.0)
    cap = Cone((0, 0, 9), 3.0, 4.0)
    return body | cap


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Measure sampling throughput on a nested CSG shape.")
    p.add_argument("--points", type=int, default=1_000_000, help="points to generate (default: 1000000)")
    p.add_argument("--seed", type=int, default=None, help="random seed (default: unseeded)")
    p.add_argument("--verbose", action="store_true", help="debug logging")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if args.points < 1:
        raise ValueError("--points must be positive")
    rng = seed(args.seed)

    shape = build_ornament()
    buffer = np.empty(args.points * 3, dtype=np.float32)
    print(f"Sampling {args.points} points from {shape!r}")
    start = time.perf_counter()
    fill_buffer(shape, buffer, rng)
    elapsed = time.perf_counter() - start

    pts = buffer.reshape(-1, 3)
    print(f"Done in {elapsed:.2f}s ({args.points / max(elapsed, 1e-9):,.0f} points/s)")
    print(f"Bounds: min {pts.min(axis=0)}, max {pts.max(axis=0)}")


if __name__ == "__main__":
    main()
