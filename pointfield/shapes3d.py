from __future__ import annotations

from typing import Optional
import math
import numpy as np

from .config import DEFAULT_CONFIG, DEFAULT_EPSILON
from .core import (
    BoundingBox,
    EmptyRegionError,
    ORIGIN,
    Point,
    Shape,
    as_point,
    finite,
    get_rng,
    near,
)
from .radial import (
    TWO_PI,
    angular_span,
    angular_tolerance,
    axis_gradient,
    ball_point,
    check_inner,
    check_ratio,
    disk_radius,
    ellipsoid_point,
    in_angular_span,
    surface_gap,
)


def _point_box(center: Point) -> BoundingBox:
    return BoundingBox.around(center, 0.0, 0.0, 0.0)


def _check_polar(start_phi: float, end_phi: float) -> None:
    if not 0.0 <= start_phi <= end_phi <= math.pi:
        raise ValueError("polar angles must satisfy 0 <= start_phi <= end_phi <= pi")


def _in_wedge(
    n: tuple, axes: tuple, epsilon: float,
    start_theta: float, span_theta: float, start_phi: float, end_phi: float,
) -> bool:
    """
    Angular test for a nonzero offset n from a sector's center, divided by
    the semi-axes. epsilon is a distance; each angle's tolerance follows
    from how far the point moves in real space per radian.
    """
    nx, ny, nz = n
    rxy = math.hypot(nx, ny)
    theta = math.atan2(ny, nx)
    ct, st = math.cos(theta), math.sin(theta)
    if span_theta < TWO_PI and rxy > 0.0:
        reach = rxy / axis_gradient((-st, ct, 0.0), axes)
        if not in_angular_span(theta, start_theta, span_theta, angular_tolerance(epsilon, reach)):
            return False
    phi = math.atan2(rxy, nz)
    cp, sp = math.cos(phi), math.sin(phi)
    reach = math.hypot(rxy, nz) / axis_gradient((ct * cp, st * cp, -sp), axes)
    tol = angular_tolerance(epsilon, reach)
    return start_phi - tol <= phi <= end_phi + tol


class EllipsoidSector(Shape):
    """
    Wedge of a (possibly hollow) ellipsoid.

    theta is the azimuth around +Z (wraps through 2*pi when end < start),
    phi the polar angle measured from +Z. The polar angle is drawn through
    a uniform cos(phi), since solid angle grows with cos(phi), not phi.
    """
    dimension = 3

    def __init__(
        self,
        center: Point = ORIGIN,
        rx: float = 1.0,
        ry: float = 1.0,
        rz: float = 1.0,
        start_theta: float = 0.0,
        end_theta: float = TWO_PI,
        start_phi: float = 0.0,
        end_phi: float = math.pi,
        inner_ratio: float = 0.0,
    ):
        finite(rx, ry, rz, start_theta, end_theta, start_phi, end_phi, inner_ratio)
        check_ratio(inner_ratio)
        _check_polar(start_phi, end_phi)
        self.center = as_point(center)
        self.rx, self.ry, self.rz = float(rx), float(ry), float(rz)
        self.start_theta = float(start_theta) % TWO_PI
        self.span_theta = angular_span(start_theta, end_theta)
        self.start_phi = float(start_phi)
        self.end_phi = float(end_phi)
        self.cos_start_phi = math.cos(self.start_phi)
        self.cos_end_phi = math.cos(self.end_phi)
        self.inner_ratio = float(inner_ratio)
        solid_angle = self.span_theta * (self.cos_start_phi - self.cos_end_phi)
        if min(self.rx, self.ry, self.rz) > 0.0 and solid_angle > 0.0:
            self.measure = (1.0 / 3.0) * self.rx * self.ry * self.rz * solid_angle * (1.0 - self.inner_ratio ** 3)
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            self.bbox = BoundingBox.around(self.center, self.rx, self.ry, self.rz)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        nx = (p.x - self.center.x) / self.rx
        ny = (p.y - self.center.y) / self.ry
        nz = (p.z - self.center.z) / self.rz
        n, axes = (nx, ny, nz), (self.rx, self.ry, self.rz)
        if surface_gap(n, axes) > epsilon:
            return False
        if self.inner_ratio > 0.0 and surface_gap(n, axes, self.inner_ratio) < -epsilon:
            return False
        if nx == 0.0 and ny == 0.0 and nz == 0.0:
            return True
        return _in_wedge(n, axes, epsilon, self.start_theta, self.span_theta, self.start_phi, self.end_phi)

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        return ellipsoid_point(
            get_rng(rng), self.center, self.rx, self.ry, self.rz,
            self.start_theta, self.span_theta,
            self.cos_start_phi, self.cos_end_phi,
            self.inner_ratio,
        )


class Ellipsoid(Shape):
    dimension = 3

    def __init__(
        self,
        center: Point = ORIGIN,
        rx: float = 1.0,
        ry: float = 1.0,
        rz: float = 1.0,
        inner_ratio: float = 0.0,
    ):
        finite(rx, ry, rz, inner_ratio)
        check_ratio(inner_ratio)
        self.center = as_point(center)
        self.rx, self.ry, self.rz = float(rx), float(ry), float(rz)
        self.inner_ratio = float(inner_ratio)
        if min(self.rx, self.ry, self.rz) > 0.0:
            self.measure = (4.0 / 3.0) * math.pi * self.rx * self.ry * self.rz * (1.0 - self.inner_ratio ** 3)
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            self.bbox = BoundingBox.around(self.center, self.rx, self.ry, self.rz)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        nx = (p.x - self.center.x) / self.rx
        ny = (p.y - self.center.y) / self.ry
        nz = (p.z - self.center.z) / self.rz
        n, axes = (nx, ny, nz), (self.rx, self.ry, self.rz)
        if surface_gap(n, axes) > epsilon:
            return False
        return self.inner_ratio == 0.0 or surface_gap(n, axes, self.inner_ratio) >= -epsilon

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        return ellipsoid_point(
            get_rng(rng), self.center, self.rx, self.ry, self.rz,
            0.0, TWO_PI, 1.0, -1.0, self.inner_ratio,
        )


class SphereSector(Shape):
    dimension = 3

    def __init__(
        self,
        center: Point = ORIGIN,
        radius: float = 1.0,
        start_theta: float = 0.0,
        end_theta: float = TWO_PI,
        start_phi: float = 0.0,
        end_phi: float = math.pi,
        inner_radius: float = 0.0,
    ):
        finite(radius, start_theta, end_theta, start_phi, end_phi, inner_radius)
        check_inner(inner_radius, radius)
        _check_polar(start_phi, end_phi)
        self.center = as_point(center)
        self.radius = float(radius)
        self.inner_radius = float(inner_radius)
        self.start_theta = float(start_theta) % TWO_PI
        self.span_theta = angular_span(start_theta, end_theta)
        self.start_phi = float(start_phi)
        self.end_phi = float(end_phi)
        self.cos_start_phi = math.cos(self.start_phi)
        self.cos_end_phi = math.cos(self.end_phi)
        solid_angle = self.span_theta * (self.cos_start_phi - self.cos_end_phi)
        if self.radius > 0.0 and solid_angle > 0.0:
            self.measure = (1.0 / 3.0) * solid_angle * (self.radius ** 3 - self.inner_radius ** 3)
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            self.bbox = BoundingBox.around(self.center, self.radius, self.radius, self.radius)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        dx = p.x - self.center.x
        dy = p.y - self.center.y
        dz = p.z - self.center.z
        d = math.sqrt(dx * dx + dy * dy + dz * dz)
        if d > self.radius + epsilon or d < self.inner_radius - epsilon:
            return False
        if d == 0.0:
            return True
        return _in_wedge(
            (dx, dy, dz), (1.0, 1.0, 1.0), epsilon,
            self.start_theta, self.span_theta, self.start_phi, self.end_phi,
        )

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        r = self.radius
        return ellipsoid_point(
            get_rng(rng), self.center, r, r, r,
            self.start_theta, self.span_theta,
            self.cos_start_phi, self.cos_end_phi,
            self.inner_radius / r,
        )


class Sphere(Shape):
    """
    Solid ball, or a spherical shell when inner_radius > 0.
    """
    dimension = 3

    def __init__(self, center: Point = ORIGIN, radius: float = 1.0, inner_radius: float = 0.0):
        finite(radius, inner_radius)
        check_inner(inner_radius, radius)
        self.center = as_point(center)
        self.radius = float(radius)
        self.inner_radius = float(inner_radius)
        if self.radius > 0.0:
            self.measure = (4.0 / 3.0) * math.pi * (self.radius ** 3 - self.inner_radius ** 3)
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            self.bbox = BoundingBox.around(self.center, self.radius, self.radius, self.radius)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        dx = p.x - self.center.x
        dy = p.y - self.center.y
        dz = p.z - self.center.z
        d = math.sqrt(dx * dx + dy * dy + dz * dz)
        return self.inner_radius - epsilon <= d <= self.radius + epsilon

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        return ball_point(get_rng(rng), self.center, self.radius, self.inner_radius)


class Box(Shape):
    dimension = 3

    def __init__(self, center: Point = ORIGIN, width: float = 1.0, height: float = 1.0, depth: float = 1.0):
        finite(width, height, depth)
        self.center = as_point(center)
        self.width, self.height, self.depth = float(width), float(height), float(depth)
        if min(self.width, self.height, self.depth) > 0.0:
            self.measure = self.width * self.height * self.depth
            self.bbox = BoundingBox.around(self.center, 0.5 * self.width, 0.5 * self.height, 0.5 * self.depth)
        else:
            self.measure = 0.0
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        return (
            abs(p.x - self.center.x) <= 0.5 * self.width + epsilon
            and abs(p.y - self.center.y) <= 0.5 * self.height + epsilon
            and abs(p.z - self.center.z) <= 0.5 * self.depth + epsilon
        )

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        rng = get_rng(rng)
        return Point(
            self.center.x + (rng.random() - 0.5) * self.width,
            self.center.y + (rng.random() - 0.5) * self.height,
            self.center.z + (rng.random() - 0.5) * self.depth,
        )


class Cube(Box):
    def __init__(self, center: Point = ORIGIN, edge: float = 1.0):
        super().__init__(center, edge, edge, edge)
        self.edge = float(edge)


class Cylinder(Shape):
    """
    Upright cylinder centered at mid-height; a tube when inner_radius > 0.
    """
    dimension = 3

    def __init__(self, center: Point = ORIGIN, radius: float = 1.0, height: float = 1.0, inner_radius: float = 0.0):
        finite(radius, height, inner_radius)
        check_inner(inner_radius, radius)
        self.center = as_point(center)
        self.radius = float(radius)
        self.height = float(height)
        self.inner_radius = float(inner_radius)
        if self.radius > 0.0 and self.height > 0.0:
            self.measure = math.pi * (self.radius ** 2 - self.inner_radius ** 2) * self.height
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            self.bbox = BoundingBox.around(self.center, self.radius, self.radius, 0.5 * self.height)
        else:
            self.bbox = _point_box(self.center)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        if abs(p.z - self.center.z) > 0.5 * self.height + epsilon:
            return False
        d = math.hypot(p.x - self.center.x, p.y - self.center.y)
        return self.inner_radius - epsilon <= d <= self.radius + epsilon

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        rng = get_rng(rng)
        r = self.radius * disk_radius(rng.random(), self.inner_radius / self.radius)
        theta = rng.random() * TWO_PI
        return Point(
            self.center.x + r * math.cos(theta),
            self.center.y + r * math.sin(theta),
            self.center.z + (rng.random() - 0.5) * self.height,
        )


class Cone(Shape):
    """
    Upright cone: circular base at center, apex at center + height along +Z.

    A hollow cone removes an inner cone standing on the same base plane
    (inner_radius at the base, apex at inner_height, defaulting to the outer
    apex). Hollow cones are sampled by rejection from the solid one.
    """
    dimension = 3

    def __init__(
        self,
        center: Point = ORIGIN,
        radius: float = 1.0,
        height: float = 1.0,
        inner_radius: float = 0.0,
        inner_height: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ):
        if inner_height is None:
            inner_height = height if inner_radius > 0.0 else 0.0
        finite(radius, height, inner_radius, inner_height)
        check_inner(inner_radius, radius)
        check_inner(inner_height, height, name="inner_height")
        self.center = as_point(center)
        self.radius = float(radius)
        self.height = float(height)
        self.inner_radius = float(inner_radius)
        self.inner_height = float(inner_height)
        self.max_attempts = int(max_attempts if max_attempts is not None else DEFAULT_CONFIG.cone_max_attempts)
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.hollow = self.inner_radius > 0.0 and self.inner_height > 0.0
        if self.radius > 0.0 and self.height > 0.0:
            outer = self.radius ** 2 * self.height
            inner = self.inner_radius ** 2 * self.inner_height if self.hollow else 0.0
            self.measure = max(0.0, (math.pi / 3.0) * (outer - inner))
        else:
            self.measure = 0.0
        if self.measure > 0.0:
            self.bbox = BoundingBox(
                self.center.x - self.radius, self.center.x + self.radius,
                self.center.y - self.radius, self.center.y + self.radius,
                self.center.z, self.center.z + self.height,
            )
        else:
            self.bbox = _point_box(self.center)

    def _inside_void(self, d: float, dz: float, epsilon: float) -> bool:
        if not self.hollow or dz >= self.inner_height:
            return False
        inner_at = self.inner_radius * (1.0 - dz / self.inner_height)
        return d < inner_at - epsilon

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        if self.measure <= 0.0:
            return near(p, self.center, epsilon)
        dz = p.z - self.center.z
        if dz < -epsilon or dz > self.height + epsilon:
            return False
        outer_at = self.radius * (1.0 - dz / self.height)
        d = math.hypot(p.x - self.center.x, p.y - self.center.y)
        if d > outer_at + epsilon:
            return False
        return not self._inside_void(d, dz, epsilon)

    def _sample_solid(self, rng: np.random.Generator) -> Point:
        # Cross-section area shrinks as t^2 towards the apex, so t = cbrt(u)
        t = rng.random() ** (1.0 / 3.0)
        r = t * self.radius * math.sqrt(rng.random())
        theta = rng.random() * TWO_PI
        return Point(
            self.center.x + r * math.cos(theta),
            self.center.y + r * math.sin(theta),
            self.center.z + (1.0 - t) * self.height,
        )

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.measure <= 0.0:
            return self.center
        rng = get_rng(rng)
        if not self.hollow:
            return self._sample_solid(rng)
        for _ in range(self.max_attempts):
            p = self._sample_solid(rng)
            d = math.hypot(p.x - self.center.x, p.y - self.center.y)
            if not self._inside_void(d, p.z - self.center.z, 0.0):
                return p
        raise EmptyRegionError("hollow cone", self.max_attempts)
