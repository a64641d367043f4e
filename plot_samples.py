from __future__ import annotations

import argparse
import logging
import math
import os

import numpy as np

from pointfield import (
    Arc,
    Box,
    Circle,
    CircleSector,
    Cone,
    Cylinder,
    Ellipse,
    Line,
    Path,
    Polygon,
    Rectangle,
    Sphere,
    SphereSector,
    Triangle,
    bezier_cubic,
    helix,
)
from plotting.renderer import render_shape_grid, render_to_file


def build_planar_gallery():
    donut = Circle(radius=5.0) - Circle(radius=2.0)
    overlap = Rectangle((0, 0), 2, 2) | Rectangle((1, 0), 2, 2)
    lens = Rectangle((0, 0), 10, 10) & Rectangle((8, 8), 10, 10)
    star = Polygon([
        (math.cos(a) * (1.0 if k % 2 == 0 else 0.45), math.sin(a) * (1.0 if k % 2 == 0 else 0.45))
        for k, a in enumerate(np.linspace(0.5 * math.pi, 2.5 * math.pi, 10, endpoint=False))
    ])
    curve = Path([
        Line((0, 0), (2, 0)),
        Arc((2, 1), 1.0, -0.5 * math.pi, 0.5 * math.pi),
        bezier_cubic((2, 2), (1, 3.5), (0, 0.5), (-1, 2)),
    ])
    shapes = [
        ("donut", donut),
        ("union overlap", overlap),
        ("intersection", lens),
        ("ellipse ring", Ellipse(rx=3.0, ry=1.5, inner_ratio=0.6)),
        ("pie sector", CircleSector(radius=2.0, start_angle=0.25 * math.pi, end_angle=1.75 * math.pi)),
        ("rotated triangle", Triangle((0, 0), (3, 0), (0, 2)).rotate(roll=0.6)),
        ("star polygon", star),
        ("path", curve),
    ]
    return shapes


def build_solid_gallery():
    ornament = (Sphere((0, 0, 5), 5.0) - Cylinder((0, 0, 5), 2.0, 10.0)) | Cone((0, 0, 9), 3.0, 4.0)
    shapes = [
        ("ornament", ornament),
        ("shell", Sphere(radius=2.0, inner_radius=1.6)),
        ("tube", Cylinder(radius=1.5, height=4.0, inner_radius=1.0)),
        ("hollow cone", Cone(radius=2.0, height=3.0, inner_radius=1.5)),
        ("sphere wedge", SphereSector(radius=2.0, start_theta=0.0, end_theta=1.5 * math.pi)),
        ("tilted box", Box(width=3.0, height=1.0, depth=0.5).rotate(pitch=0.4, yaw=0.3, roll=0.2)),
        ("helix", Path([helix(radius=1.5, height=4.0, turns=3.0)])),
    ]
    return shapes


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Render point-cloud galleries of the sampling primitives.")
    p.add_argument("--outdir", type=str, default="plots/samples", help="output directory for the galleries")
    p.add_argument("--points", type=int, default=4000, help="samples per shape (default: 4000)")
    p.add_argument("--cols", type=int, default=4, help="columns in the grid")
    p.add_argument("--seed", type=int, default=7, help="random seed")
    p.add_argument("--single", type=str, default=None, help="render only the planar shape with this title")
    p.add_argument("--verbose", action="store_true", help="debug logging")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    os.makedirs(args.outdir, exist_ok=True)
    rng = np.random.default_rng(args.seed)

    planar = build_planar_gallery()
    if args.single is not None:
        matches = [(t, s) for t, s in planar if t == args.single]
        if not matches:
            raise ValueError(f"No planar shape titled {args.single!r}; choose from {[t for t, _ in planar]}")
        title, shape = matches[0]
        out_path = os.path.join(args.outdir, f"{title.replace(' ', '_')}.png")
        render_to_file(shape, out_path, n=args.points * 5, rng=rng, title=title, draw_edges=True)
        print(f"Saved {out_path}")
        return

    out_path = os.path.join(args.outdir, "planar.png")
    render_shape_grid([s for _, s in planar], out_path, titles=[t for t, _ in planar], cols=args.cols, n=args.points, rng=rng)
    print(f"Saved {out_path}")

    solids = build_solid_gallery()
    out_path = os.path.join(args.outdir, "solids.png")
    render_shape_grid(
        [s for _, s in solids], out_path, titles=[t for t, _ in solids],
        cols=args.cols, n=args.points, rng=rng, projection="3d",
    )
    print(f"Saved {out_path}")


if __name__ == "__main__":
    main()
