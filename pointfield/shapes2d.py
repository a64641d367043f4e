from __future__ import annotations

from typing import List, Optional, Sequence
import logging
import math
import numpy as np

from .config import DEFAULT_EPSILON
from .core import BoundingBox, ORIGIN, Point, Shape, as_point, finite, get_rng, near
from .radial import (
    TWO_PI,
    angular_span,
    angular_tolerance,
    axis_gradient,
    check_inner,
    check_ratio,
    disk_point,
    in_angular_span,
    sector_point,
    surface_gap,
)

logger = logging.getLogger(__name__)


def _sector_bbox(center: Point, rx: float, ry: float, start: float, span: float, inner_ratio: float) -> BoundingBox:
    """
    Tight box of an elliptic sector: arc endpoints, axis crossings inside the
    sweep, and the inner boundary (the center itself when solid).
    """
    if span >= TWO_PI:
        return BoundingBox.around(center, rx, ry)
    angles = [start, start + span]
    k = math.ceil(start / (0.5 * math.pi))
    while k * 0.5 * math.pi <= start + span:
        angles.append(k * 0.5 * math.pi)
        k += 1
    pts = []
    for a in angles:
        c, s = math.cos(a), math.sin(a)
        pts.append(Point(center.x + rx * c, center.y + ry * s, center.z))
        pts.append(Point(center.x + inner_ratio * rx * c, center.y + inner_ratio * ry * s, center.z))
    return BoundingBox.from_points(pts)


def _point_box(center: Point) -> BoundingBox:
    return BoundingBox.around(center, 0.0, 0.0)


class EllipseSector(Shape):
    """
    Pie slice of an ellipse, optionally hollow: the inner boundary is the same
    ellipse scaled by inner_ratio. Angles are in radians, counter-clockwise,
    and a sweep with end < start wraps through 2*pi.
    """
    dimension = 2

    def __init__(
        self,
        center: Point = ORIGIN,
        rx: float = 1.0,
        ry: float = 1.0,
        start_angle: float = 0.0,
        end_angle: float = TWO_PI,
        inner_ratio: float = 0.0,
    ):
        finite(rx, ry, start_angle, end_angle, inner_ratio)
        check_ratio(inner_ratio)
        self.center = as_point(center)
        self.rx = float(rx)
        self.ry = float(ry)
        self.start = float(start_angle) % TWO_PI
        self.span = angular_span(start_angle, end_angle)
        self.inner_ratio = float(inner_ratio)
        if self.rx > 0.0 and self.ry > 0.0 and self.span > 0.0:
            self.measure = 0.5 * self.rx * self.ry * self.span * (1.0 - self.inner_ratio ** 2)
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            self.bbox = _sector_bbox(self.center, self.rx, self.ry, self.start, self.span, self.inner_ratio)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        if abs(p.z - self.center.z) > epsilon:
            return False
        nx = (p.x - self.center.x) / self.rx
        ny = (p.y - self.center.y) / self.ry
        n, axes = (nx, ny), (self.rx, self.ry)
        if surface_gap(n, axes) > epsilon:
            return False
        if self.inner_ratio > 0.0 and surface_gap(n, axes, self.inner_ratio) < -epsilon:
            return False
        if nx == 0.0 and ny == 0.0:
            return True
        # Parametric angle, the one the sampler draws uniformly
        theta = math.atan2(ny, nx)
        reach = math.hypot(nx, ny) / axis_gradient((-math.sin(theta), math.cos(theta)), axes)
        return in_angular_span(theta, self.start, self.span, angular_tolerance(epsilon, reach))

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        return sector_point(get_rng(rng), self.center, self.rx, self.ry, self.start, self.span, self.inner_ratio)


class Ellipse(Shape):
    dimension = 2

    def __init__(self, center: Point = ORIGIN, rx: float = 1.0, ry: float = 1.0, inner_ratio: float = 0.0):
        finite(rx, ry, inner_ratio)
        check_ratio(inner_ratio)
        self.center = as_point(center)
        self.rx = float(rx)
        self.ry = float(ry)
        self.inner_ratio = float(inner_ratio)
        if self.rx > 0.0 and self.ry > 0.0:
            self.measure = math.pi * self.rx * self.ry * (1.0 - self.inner_ratio ** 2)
        else:
            self.measure = 0.0
        self.bbox = BoundingBox.around(self.center, self.rx, self.ry) if self.measure > 0.0 else _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        if abs(p.z - self.center.z) > epsilon:
            return False
        nx = (p.x - self.center.x) / self.rx
        ny = (p.y - self.center.y) / self.ry
        n, axes = (nx, ny), (self.rx, self.ry)
        if surface_gap(n, axes) > epsilon:
            return False
        return self.inner_ratio == 0.0 or surface_gap(n, axes, self.inner_ratio) >= -epsilon

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        return sector_point(get_rng(rng), self.center, self.rx, self.ry, 0.0, TWO_PI, self.inner_ratio)


class CircleSector(Shape):
    dimension = 2

    def __init__(
        self,
        center: Point = ORIGIN,
        radius: float = 1.0,
        start_angle: float = 0.0,
        end_angle: float = TWO_PI,
        inner_radius: float = 0.0,
    ):
        finite(radius, start_angle, end_angle, inner_radius)
        check_inner(inner_radius, radius)
        self.center = as_point(center)
        self.radius = float(radius)
        self.inner_radius = float(inner_radius)
        self.start = float(start_angle) % TWO_PI
        self.span = angular_span(start_angle, end_angle)
        if self.radius > 0.0 and self.span > 0.0:
            self.measure = 0.5 * self.span * (self.radius ** 2 - self.inner_radius ** 2)
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            ratio = self.inner_radius / self.radius
            self.bbox = _sector_bbox(self.center, self.radius, self.radius, self.start, self.span, ratio)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        if abs(p.z - self.center.z) > epsilon:
            return False
        dx = p.x - self.center.x
        dy = p.y - self.center.y
        d = math.hypot(dx, dy)
        if d > self.radius + epsilon or d < self.inner_radius - epsilon:
            return False
        if d == 0.0:
            return True
        return in_angular_span(math.atan2(dy, dx), self.start, self.span, angular_tolerance(epsilon, d))

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        ratio = self.inner_radius / self.radius
        return sector_point(get_rng(rng), self.center, self.radius, self.radius, self.start, self.span, ratio)


class Circle(Shape):
    """
    Filled disk, or an annulus when inner_radius > 0.
    """
    dimension = 2

    def __init__(self, center: Point = ORIGIN, radius: float = 1.0, inner_radius: float = 0.0):
        finite(radius, inner_radius)
        check_inner(inner_radius, radius)
        self.center = as_point(center)
        self.radius = float(radius)
        self.inner_radius = float(inner_radius)
        self.measure = math.pi * (self.radius ** 2 - self.inner_radius ** 2) if self.radius > 0.0 else 0.0
        self.bbox = BoundingBox.around(self.center, self.radius, self.radius) if self.measure > 0.0 else _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        if abs(p.z - self.center.z) > epsilon:
            return False
        d = math.hypot(p.x - self.center.x, p.y - self.center.y)
        return self.inner_radius - epsilon <= d <= self.radius + epsilon

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        return disk_point(get_rng(rng), self.center, self.radius, self.inner_radius)


class Rectangle(Shape):
    dimension = 2

    def __init__(self, center: Point = ORIGIN, width: float = 1.0, height: float = 1.0):
        finite(width, height)
        self.center = as_point(center)
        self.width = float(width)
        self.height = float(height)
        self.measure = self.width * self.height if self.width > 0.0 and self.height > 0.0 else 0.0
        if self.measure > 0.0:
            self.bbox = BoundingBox.around(self.center, 0.5 * self.width, 0.5 * self.height)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        return (
            abs(p.x - self.center.x) <= 0.5 * self.width + epsilon
            and abs(p.y - self.center.y) <= 0.5 * self.height + epsilon
            and abs(p.z - self.center.z) <= epsilon
        )

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        rng = get_rng(rng)
        return Point(
            self.center.x + (rng.random() - 0.5) * self.width,
            self.center.y + (rng.random() - 0.5) * self.height,
            self.center.z,
        )


class Triangle(Shape):
    """
    Planar triangle at the height of its first vertex.
    """
    dimension = 2

    def __init__(self, a: Point, b: Point, c: Point):
        self.a = as_point(a)
        self.b = as_point(b)
        self.c = as_point(c)
        finite(*self.a, *self.b, *self.c)
        a, b, c = self.a, self.b, self.c
        self._det = (b.y - c.y) * (a.x - c.x) + (c.x - b.x) * (a.y - c.y)
        self.measure = 0.5 * abs((b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x))
        self.center = Point((a.x + b.x + c.x) / 3.0, (a.y + b.y + c.y) / 3.0, a.z)
        if self.measure > 0.0 and self._det != 0.0:
            # Altitude over each vertex: barycentric weight times altitude is the edge distance
            self._altitudes = tuple(
                2.0 * self.measure / math.hypot(q.x - r.x, q.y - r.y) for q, r in ((b, c), (c, a), (a, b))
            )
            self.bbox = BoundingBox(
                min(a.x, b.x, c.x), max(a.x, b.x, c.x),
                min(a.y, b.y, c.y), max(a.y, b.y, c.y),
                a.z, a.z,
            )
        else:
            self.measure = 0.0
            self.bbox = _point_box(self.center)

    def barycentric(self, p: Point):
        a, b, c = self.a, self.b, self.c
        l1 = ((b.y - c.y) * (p.x - c.x) + (c.x - b.x) * (p.y - c.y)) / self._det
        l2 = ((c.y - a.y) * (p.x - c.x) + (a.x - c.x) * (p.y - c.y)) / self._det
        return l1, l2, 1.0 - l1 - l2

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        if abs(p.z - self.a.z) > epsilon:
            return False
        return all(l * h >= -epsilon for l, h in zip(self.barycentric(p), self._altitudes))

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        rng = get_rng(rng)
        u = rng.random()
        v = rng.random()
        if u + v > 1.0:
            u = 1.0 - u
            v = 1.0 - v
        a, b, c = self.a, self.b, self.c
        return Point(
            a.x + u * (b.x - a.x) + v * (c.x - a.x),
            a.y + u * (b.y - a.y) + v * (c.y - a.y),
            a.z,
        )


def _signed_area(xy: np.ndarray) -> float:
    x = xy[:, 0]
    y = xy[:, 1]
    return 0.5 * float(np.sum(x * np.roll(y, -1) - np.roll(x, -1) * y))


def _cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    return float((a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0]))


def _strictly_inside(p: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray) -> bool:
    # CCW triangle; boundary points do not block an ear
    tol = 1e-12
    return _cross(a, b, p) > tol and _cross(b, c, p) > tol and _cross(c, a, p) > tol


def ear_clip(xy: np.ndarray) -> List[tuple]:
    """
    Triangulate a simple polygon by ear clipping. Returns index triples into
    xy, counter-clockwise. Self-intersecting input is handled best effort:
    clipping stops when no ear is left.
    """
    idx = list(range(xy.shape[0]))
    if _signed_area(xy) < 0.0:
        idx.reverse()
    triangles: List[tuple] = []
    while len(idx) > 3:
        n = len(idx)
        clipped = False
        for i in range(n):
            i_prev, i_cur, i_next = idx[i - 1], idx[i], idx[(i + 1) % n]
            a, b, c = xy[i_prev], xy[i_cur], xy[i_next]
            turn = _cross(a, b, c)
            if turn == 0.0 and float(np.dot(b - a, c - b)) > 0.0:
                # straight vertex: drop it without emitting a triangle
                idx.pop(i)
                clipped = True
                break
            if turn <= 0.0:
                continue
            if any(
                _strictly_inside(xy[j], a, b, c)
                for j in idx
                if j not in (i_prev, i_cur, i_next)
            ):
                continue
            triangles.append((i_prev, i_cur, i_next))
            idx.pop(i)
            clipped = True
            break
        if not clipped:
            logger.warning("ear clipping stopped with %d vertices left; polygon is not simple", len(idx))
            break
    if len(idx) == 3:
        triangles.append(tuple(idx))
    return triangles


class Polygon(Shape):
    """
    Filled simple polygon, triangulated once by ear clipping. Sampling picks a
    triangle by binary search over the cumulative areas, then folds a
    barycentric draw into it.
    """
    dimension = 2

    def __init__(self, vertices: Sequence[Point]):
        if vertices is None or len(vertices) < 3:
            raise ValueError("Polygon requires at least 3 vertices")
        self.vertices = [as_point(v) for v in vertices]
        xy = np.array([[v.x, v.y] for v in self.vertices], dtype=float)
        if not np.all(np.isfinite(xy)):
            raise ValueError("Polygon vertices must be finite")
        self.z = self.vertices[0].z
        self.triangles = [
            Triangle(self.vertices[i], self.vertices[j], self.vertices[k])
            for i, j, k in ear_clip(xy)
        ]
        areas = np.array([t.measure for t in self.triangles], dtype=float)
        self._cumulative = np.cumsum(areas)
        self.measure = float(self._cumulative[-1]) if areas.size else 0.0
        if self.measure > 0.0:
            a = np.array([[t.a.x, t.a.y] for t in self.triangles], dtype=float)
            b = np.array([[t.b.x, t.b.y] for t in self.triangles], dtype=float)
            c = np.array([[t.c.x, t.c.y] for t in self.triangles], dtype=float)
            self._a = a
            self._ab = b - a
            self._ac = c - a
            centroid = ((a + b + c) / 3.0 * areas[:, None]).sum(axis=0) / self.measure
            self.center = Point(float(centroid[0]), float(centroid[1]), self.z)
            lo = xy.min(axis=0)
            hi = xy.max(axis=0)
            self.bbox = BoundingBox(float(lo[0]), float(hi[0]), float(lo[1]), float(hi[1]), self.z, self.z)
        else:
            mean = xy.mean(axis=0)
            self.center = Point(float(mean[0]), float(mean[1]), self.z)
            self.bbox = _point_box(self.center)
        logger.debug("Polygon: %d vertices -> %d triangles, area %.6g", len(self.vertices), len(self.triangles), self.measure)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        if not self.bbox.contains(p, epsilon):
            return False
        return any(t.contains(p, epsilon) for t in self.triangles if t.measure > 0.0)

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        rng = get_rng(rng)
        r = rng.random() * self.measure
        i = min(int(np.searchsorted(self._cumulative, r, side="left")), len(self.triangles) - 1)
        u = rng.random()
        v = rng.random()
        if u + v > 1.0:
            u = 1.0 - u
            v = 1.0 - v
        q = self._a[i] + u * self._ab[i] + v * self._ac[i]
        return Point(float(q[0]), float(q[1]), self.z)
