"""
Radial and angular parameter transforms shared by the elliptic and spherical
primitives.

A uniformly drawn parameter only yields a uniform point once it is pushed
through the right inverse CDF: area grows with r^2 (take a square root),
volume with r^3 (cube root), and solid angle with cos(phi) rather than phi.
"""
from __future__ import annotations

from typing import Sequence
import math
import numpy as np

from .core import Point

TWO_PI = 2.0 * math.pi


def angular_span(start: float, end: float) -> float:
    """
    Counter-clockwise sweep from start to end, wrapping negative spans by a
    full turn and capping at a full turn.
    """
    span = end - start
    if span < 0.0:
        span += TWO_PI
    return min(span, TWO_PI)


def angular_tolerance(epsilon: float, r: float) -> float:
    """
    Angle that an arc of length epsilon subtends at distance r from the
    axis. Turns a distance tolerance into one for in_angular_span.
    """
    return epsilon / r if r > 0.0 else TWO_PI


def axis_gradient(direction: Sequence[float], axes: Sequence[float]) -> float:
    """
    Length that a unit gradient along direction, in coordinates divided by
    the semi-axes, takes on in real space. Dividing a gap measured in those
    coordinates by it gives a distance to first order; with equal axes r it
    is 1 / r.
    """
    return math.sqrt(sum((c / r) ** 2 for c, r in zip(direction, axes)))


def surface_gap(n: Sequence[float], axes: Sequence[float], level: float = 1.0) -> float:
    """
    Signed distance, to first order, from a point to the ellipse or
    ellipsoid with the given semi-axes scaled by level; positive outside.
    n is the point's offset from the center divided by the axes. Exact for
    circles and spheres.
    """
    rho = math.sqrt(sum(c * c for c in n))
    if rho == 0.0:
        return -level * min(axes)
    return (rho - level) / axis_gradient([c / rho for c in n], axes)


def in_angular_span(theta: float, start: float, span: float, epsilon: float) -> bool:
    if span >= TWO_PI:
        return True
    rel = (theta - start) % TWO_PI
    return rel <= span + epsilon or rel >= TWO_PI - epsilon


def disk_radius(u: float, inner_ratio: float = 0.0) -> float:
    """
    Radius in units of the outer radius for a uniform draw over a disk or
    annulus whose inner radius is inner_ratio times the outer one.
    """
    k2 = inner_ratio * inner_ratio
    return math.sqrt(u * (1.0 - k2) + k2)


def ball_radius(u: float, inner_ratio: float = 0.0) -> float:
    k3 = inner_ratio ** 3
    return (u * (1.0 - k3) + k3) ** (1.0 / 3.0)


def polar_cos(u: float, cos_start: float, cos_end: float) -> float:
    return cos_start - u * (cos_start - cos_end)


def sector_point(
    rng: np.random.Generator,
    center: Point,
    rx: float,
    ry: float,
    start: float,
    span: float,
    inner_ratio: float = 0.0,
) -> Point:
    theta = start + rng.random() * span
    r = disk_radius(rng.random(), inner_ratio)
    return Point(
        center.x + r * rx * math.cos(theta),
        center.y + r * ry * math.sin(theta),
        center.z,
    )


def disk_point(rng: np.random.Generator, center: Point, radius: float, inner_radius: float = 0.0) -> Point:
    theta = rng.random() * TWO_PI
    r = math.sqrt(rng.random() * (radius * radius - inner_radius * inner_radius) + inner_radius * inner_radius)
    return Point(center.x + r * math.cos(theta), center.y + r * math.sin(theta), center.z)


def ellipsoid_point(
    rng: np.random.Generator,
    center: Point,
    rx: float,
    ry: float,
    rz: float,
    start_theta: float,
    span_theta: float,
    cos_start_phi: float,
    cos_end_phi: float,
    inner_ratio: float = 0.0,
) -> Point:
    r = ball_radius(rng.random(), inner_ratio)
    theta = start_theta + rng.random() * span_theta
    cos_p = polar_cos(rng.random(), cos_start_phi, cos_end_phi)
    sin_p = math.sqrt(max(0.0, 1.0 - cos_p * cos_p))
    return Point(
        center.x + rx * r * sin_p * math.cos(theta),
        center.y + ry * r * sin_p * math.sin(theta),
        center.z + rz * r * cos_p,
    )


def ball_point(rng: np.random.Generator, center: Point, radius: float, inner_radius: float = 0.0) -> Point:
    r = (rng.random() * (radius ** 3 - inner_radius ** 3) + inner_radius ** 3) ** (1.0 / 3.0)
    theta = rng.random() * TWO_PI
    cos_p = 2.0 * rng.random() - 1.0
    sin_p = math.sqrt(max(0.0, 1.0 - cos_p * cos_p))
    return Point(
        center.x + r * sin_p * math.cos(theta),
        center.y + r * sin_p * math.sin(theta),
        center.z + r * cos_p,
    )


def check_inner(inner: float, outer: float, name: str = "inner_radius") -> None:
    if inner < 0.0:
        raise ValueError(f"{name} must be non-negative")
    if outer > 0.0 and inner > outer:
        raise ValueError(f"{name} ({inner}) exceeds the outer size ({outer})")


def check_ratio(inner_ratio: float) -> None:
    if not 0.0 <= inner_ratio <= 1.0:
        raise ValueError("inner_ratio must lie in [0, 1]")
