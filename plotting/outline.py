from __future__ import annotations

from typing import Any, Optional, Sequence
import math
import numpy as np
import matplotlib.pyplot as plt
import shapely.ops
from shapely import affinity
from shapely.geometry import LineString, Point as SPoint, Polygon as SPolygon, box

from pointfield import (
    Circle,
    CircleSector,
    Difference,
    Ellipse,
    EllipseSector,
    Intersection,
    Path,
    Polygon,
    Rectangle,
    Rotated,
    Shape,
    Translated,
    Triangle,
    Union,
)

ARC_RESOLUTION = 64


def _ring(cx: float, cy: float, rx: float, ry: float, start: float, span: float, n: int) -> list:
    ts = start + np.linspace(0.0, span, n + 1)
    return [(cx + rx * math.cos(t), cy + ry * math.sin(t)) for t in ts]


def _sector_geom(cx: float, cy: float, rx: float, ry: float, start: float, span: float, inner_ratio: float) -> Any:
    n = max(8, int(ARC_RESOLUTION * span / (2.0 * math.pi)))
    outer = _ring(cx, cy, rx, ry, start, span, n)
    if inner_ratio > 0.0:
        inner = _ring(cx, cy, rx * inner_ratio, ry * inner_ratio, start, span, n)[::-1]
    else:
        inner = [(cx, cy)]
    geom = SPolygon(outer + inner)
    if not geom.is_valid:
        geom = geom.buffer(0)
    return geom


def _ellipse_geom(cx: float, cy: float, rx: float, ry: float, inner_ratio: float) -> Any:
    disk = SPoint(0, 0).buffer(1.0, resolution=ARC_RESOLUTION // 4)
    geom = affinity.scale(disk, xfact=rx, yfact=ry, origin=(0, 0))
    if inner_ratio > 0.0:
        hole = affinity.scale(disk, xfact=rx * inner_ratio, yfact=ry * inner_ratio, origin=(0, 0))
        geom = geom.difference(hole)
    return affinity.translate(geom, xoff=cx, yoff=cy)


def shape_to_shapely(shape: Shape, path_resolution: int = 200) -> Any:
    """
    Vector outline of a planar shape tree as a shapely geometry.

    Only shapes lying in the XY plane can be outlined; rotations must be
    in-plane (roll only). Anything else raises TypeError or ValueError.
    """
    if shape.dimension == 3:
        raise TypeError(f"{type(shape).__name__} is a volume and has no planar outline")

    if isinstance(shape, Circle):
        c = shape.center
        geom = SPoint(c.x, c.y).buffer(shape.radius, resolution=ARC_RESOLUTION // 4)
        if shape.inner_radius > 0.0:
            geom = geom.difference(SPoint(c.x, c.y).buffer(shape.inner_radius, resolution=ARC_RESOLUTION // 4))
        return geom
    if isinstance(shape, Ellipse):
        c = shape.center
        return _ellipse_geom(c.x, c.y, shape.rx, shape.ry, shape.inner_ratio)
    if isinstance(shape, CircleSector):
        c = shape.center
        ratio = shape.inner_radius / shape.radius if shape.radius > 0.0 else 0.0
        return _sector_geom(c.x, c.y, shape.radius, shape.radius, shape.start, shape.span, ratio)
    if isinstance(shape, EllipseSector):
        c = shape.center
        return _sector_geom(c.x, c.y, shape.rx, shape.ry, shape.start, shape.span, shape.inner_ratio)
    if isinstance(shape, Rectangle):
        c = shape.center
        hw, hh = 0.5 * shape.width, 0.5 * shape.height
        return box(c.x - hw, c.y - hh, c.x + hw, c.y + hh)
    if isinstance(shape, Triangle):
        return SPolygon([(p.x, p.y) for p in (shape.a, shape.b, shape.c)])
    if isinstance(shape, Polygon):
        geom = SPolygon([(p.x, p.y) for p in shape.vertices])
        if not geom.is_valid:
            geom = geom.buffer(0)
        return geom
    if isinstance(shape, Path):
        ds = np.linspace(0.0, shape.total_length, max(2, path_resolution))
        return LineString([(p.x, p.y) for p in (shape.point_at(d) for d in ds)])

    if isinstance(shape, Translated):
        if shape.dz != 0.0:
            raise ValueError("translation out of the XY plane has no planar outline")
        return affinity.translate(shape_to_shapely(shape.shape, path_resolution), xoff=shape.dx, yoff=shape.dy)
    if isinstance(shape, Rotated):
        if shape.pitch != 0.0 or shape.yaw != 0.0:
            raise ValueError("only in-plane rotations (roll) have a planar outline")
        base = shape_to_shapely(shape.shape, path_resolution)
        return affinity.rotate(base, shape.roll, origin=(shape.pivot.x, shape.pivot.y), use_radians=True)

    if isinstance(shape, Union):
        return shapely.ops.unary_union([shape_to_shapely(s, path_resolution) for s in shape.shapes])
    if isinstance(shape, Intersection):
        geoms = [shape_to_shapely(s, path_resolution) for s in shape.shapes]
        acc = geoms[0]
        for g in geoms[1:]:
            acc = acc.intersection(g)
        return acc
    if isinstance(shape, Difference):
        return shape_to_shapely(shape.a, path_resolution).difference(shape_to_shapely(shape.b, path_resolution))

    raise TypeError(f"no outline for {type(shape).__name__}")


def draw_outline(
    ax: plt.Axes,
    geom: Any,
    edge_color: str = "black",
    face_color: Optional[Sequence[float]] = None,
    linewidth: float = 1.0,
) -> None:
    """
    Draw a shapely geometry (polygons with holes, lines, or collections of
    them) onto a Matplotlib axis.
    """
    if geom.is_empty:
        return
    parts = geom.geoms if hasattr(geom, "geoms") else [geom]
    for part in parts:
        if isinstance(part, SPolygon):
            x, y = part.exterior.xy
            if face_color is not None:
                ax.fill(x, y, fc=face_color, ec="none")
                for interior in part.interiors:
                    xi, yi = interior.xy
                    ax.fill(xi, yi, fc="white", ec="none")
            ax.plot(x, y, color=edge_color, linewidth=linewidth)
            for interior in part.interiors:
                xi, yi = interior.xy
                ax.plot(xi, yi, color=edge_color, linewidth=linewidth)
        elif isinstance(part, LineString):
            x, y = part.xy
            ax.plot(x, y, color=edge_color, linewidth=linewidth)
        elif hasattr(part, "geoms"):
            draw_outline(ax, part, edge_color, face_color, linewidth)
