"""
Polylines of lines, circular arcs and parametric curves, sampled uniformly by
arc length.

A parametric curve f(t) is not uniform in t (f(t) = (100 t^3, 0) crowds its
samples near the origin), so every parametric segment is baked into a
cumulative chord-length table at construction and sampling inverts that
table instead of drawing t directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, Iterable, List, Optional, Union as TUnion
import logging
import math
import numpy as np

from .config import DEFAULT_CONFIG, DEFAULT_EPSILON
from .core import BoundingBox, ORIGIN, Point, Shape, as_point, finite, get_rng, union_bbox
from .radial import TWO_PI, angular_span, in_angular_span

logger = logging.getLogger(__name__)


# ---- Segment descriptions ----

@dataclass(frozen=True)
class Line:
    start: Point
    end: Point
    kind: ClassVar[str] = "line"

    def __post_init__(self):
        object.__setattr__(self, "start", as_point(self.start))
        object.__setattr__(self, "end", as_point(self.end))


@dataclass(frozen=True)
class Arc:
    """
    Circular arc in the XY plane at center.z, swept counter-clockwise from
    start_angle to end_angle (wrapping through 2*pi when end < start).
    """
    center: Point = ORIGIN
    radius: float = 1.0
    start_angle: float = 0.0
    end_angle: float = TWO_PI
    kind: ClassVar[str] = "arc"

    def __post_init__(self):
        object.__setattr__(self, "center", as_point(self.center))
        finite(self.radius, self.start_angle, self.end_angle)
        if self.radius < 0.0:
            raise ValueError("Arc radius must be non-negative")

    @property
    def span(self) -> float:
        return angular_span(self.start_angle, self.end_angle)


@dataclass(frozen=True)
class Parametric:
    f: Callable[[float], object]
    kind: ClassVar[str] = "parametric"

    def __call__(self, t: float) -> Point:
        return as_point(self.f(t))


Segment = TUnion[Line, Arc, Parametric]


# ---- Curve generators ----

def bezier_quadratic(p0, p1, p2) -> Parametric:
    p0, p1, p2 = (np.asarray(as_point(p), dtype=float) for p in (p0, p1, p2))

    def f(t: float) -> Point:
        u = 1.0 - t
        return as_point(u * u * p0 + 2.0 * u * t * p1 + t * t * p2)

    return Parametric(f)


def bezier_cubic(p0, p1, p2, p3) -> Parametric:
    p0, p1, p2, p3 = (np.asarray(as_point(p), dtype=float) for p in (p0, p1, p2, p3))

    def f(t: float) -> Point:
        u = 1.0 - t
        return as_point(u ** 3 * p0 + 3.0 * u * u * t * p1 + 3.0 * u * t * t * p2 + t ** 3 * p3)

    return Parametric(f)


def helix(center: Point = ORIGIN, radius: float = 1.0, height: float = 1.0, turns: float = 1.0) -> Parametric:
    """
    Helix around the vertical axis through center, rising from center.z to
    center.z + height over the given number of turns.
    """
    c = as_point(center)
    finite(radius, height, turns)

    def f(t: float) -> Point:
        a = TWO_PI * turns * t
        return Point(c.x + radius * math.cos(a), c.y + radius * math.sin(a), c.z + height * t)

    return Parametric(f)


def conic_helix(
    center: Point = ORIGIN,
    radius_start: float = 1.0,
    radius_end: float = 0.0,
    height: float = 1.0,
    turns: float = 1.0,
) -> Parametric:
    """
    Helix whose radius changes linearly from radius_start at center.z to
    radius_end at center.z + height.
    """
    c = as_point(center)
    finite(radius_start, radius_end, height, turns)

    def f(t: float) -> Point:
        a = TWO_PI * turns * t
        r = radius_start + (radius_end - radius_start) * t
        return Point(c.x + r * math.cos(a), c.y + r * math.sin(a), c.z + height * t)

    return Parametric(f)


def circle_perimeter(center: Point = ORIGIN, radius: float = 1.0) -> Arc:
    return Arc(center, radius, 0.0, TWO_PI)


# ---- Baked segments ----

def _segment_distances(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Distance from p to each segment a[i] -> b[i]; a and b are (n, 3), p is a
    single point or one point per segment.
    """
    ab = b - a
    denom = np.einsum("ij,ij->i", ab, ab)
    t = np.einsum("ij,ij->i", p - a, ab) / np.where(denom > 0.0, denom, 1.0)
    t = np.clip(t, 0.0, 1.0)
    closest = a + ab * t[:, None]
    return np.linalg.norm(closest - p, axis=1)


class _LineRun:
    def __init__(self, seg: Line):
        self.a = np.asarray(seg.start, dtype=float)
        self.b = np.asarray(seg.end, dtype=float)
        self.length = float(np.linalg.norm(self.b - self.a))
        self.bbox = BoundingBox.from_points([seg.start, seg.end])

    def point(self, s: float) -> Point:
        t = s / self.length if self.length > 0.0 else 0.0
        return as_point(self.a + (self.b - self.a) * t)

    def near(self, p: np.ndarray, epsilon: float) -> bool:
        return float(_segment_distances(p, self.a[None, :], self.b[None, :])[0]) <= epsilon


class _ArcRun:
    def __init__(self, seg: Arc):
        self.seg = seg
        self.span = seg.span
        self.length = seg.radius * self.span
        c, r = seg.center, seg.radius
        angles = [seg.start_angle, seg.start_angle + self.span]
        k = math.ceil(seg.start_angle / (0.5 * math.pi))
        while k * 0.5 * math.pi <= seg.start_angle + self.span:
            angles.append(k * 0.5 * math.pi)
            k += 1
        self.bbox = BoundingBox.from_points(
            [Point(c.x + r * math.cos(a), c.y + r * math.sin(a), c.z) for a in angles]
        )

    def point(self, s: float) -> Point:
        seg = self.seg
        angle = seg.start_angle + (s / seg.radius if seg.radius > 0.0 else 0.0)
        return Point(
            seg.center.x + seg.radius * math.cos(angle),
            seg.center.y + seg.radius * math.sin(angle),
            seg.center.z,
        )

    def near(self, p: np.ndarray, epsilon: float) -> bool:
        seg = self.seg
        dx = p[0] - seg.center.x
        dy = p[1] - seg.center.y
        dz = p[2] - seg.center.z
        if abs(dz) > epsilon:
            return False
        d = math.hypot(dx, dy)
        if seg.radius > 0.0 and d > 0.0:
            theta = math.atan2(dy, dx)
            if in_angular_span(theta, seg.start_angle % TWO_PI, self.span, 0.0):
                return math.hypot(d - seg.radius, dz) <= epsilon
        ends = np.array([self.point(0.0), self.point(self.length)], dtype=float)
        return float(np.min(np.linalg.norm(ends - p, axis=1))) <= epsilon


class _CurveRun:
    """
    Parametric segment baked into a chord-length lookup table.
    """
    def __init__(self, seg: Parametric, resolution: int):
        self.seg = seg
        self.n = int(resolution)
        self.ts = np.linspace(0.0, 1.0, self.n + 1)
        self.pts = np.array([seg(float(t)) for t in self.ts], dtype=float)
        if not np.all(np.isfinite(self.pts)):
            raise ValueError("parametric segment produced non-finite points")
        chords = np.linalg.norm(np.diff(self.pts, axis=0), axis=1)
        self.lut = np.concatenate(([0.0], np.cumsum(chords)))
        self.length = float(self.lut[-1])

        # How far the curve strays from each chord, measured at interior parameters
        h = 1.0 / self.n
        sag = np.zeros(self.n, dtype=float)
        for frac in (0.25, 0.5, 0.75):
            mids = np.array([seg(float(t)) for t in self.ts[:-1] + frac * h], dtype=float)
            sag = np.maximum(sag, _segment_distances(mids, self.pts[:-1], self.pts[1:]))
        self.sag = sag

        lo = self.pts.min(axis=0)
        hi = self.pts.max(axis=0)
        pad = float(sag.max()) if sag.size else 0.0
        # Only widen axes the curve actually moves along
        pad_axes = np.where(hi > lo, pad, 0.0)
        lo = lo - pad_axes
        hi = hi + pad_axes
        self.bbox = BoundingBox(float(lo[0]), float(hi[0]), float(lo[1]), float(hi[1]), float(lo[2]), float(hi[2]))

    def param_at(self, s: float) -> float:
        i = int(np.searchsorted(self.lut, s, side="left"))
        i = min(max(i, 1), self.n)
        delta = self.lut[i] - self.lut[i - 1]
        frac = (s - self.lut[i - 1]) / delta if delta > 0.0 else 0.0
        frac = min(max(frac, 0.0), 1.0)
        return ((i - 1) + frac) / self.n

    def point(self, s: float) -> Point:
        return self.seg(self.param_at(s))

    def near(self, p: np.ndarray, epsilon: float, iterations: int = 60) -> bool:
        dists = _segment_distances(p, self.pts[:-1], self.pts[1:])
        candidates = np.nonzero(dists <= epsilon + 2.0 * self.sag)[0]
        for i in candidates:
            lo, hi = float(self.ts[i]), float(self.ts[i + 1])
            for _ in range(iterations):
                m1 = lo + (hi - lo) / 3.0
                m2 = hi - (hi - lo) / 3.0
                if self._dist2(m1, p) <= self._dist2(m2, p):
                    hi = m2
                else:
                    lo = m1
            if math.sqrt(self._dist2(0.5 * (lo + hi), p)) <= epsilon:
                return True
        return False

    def _dist2(self, t: float, p: np.ndarray) -> float:
        q = self.seg(t)
        return (q.x - p[0]) ** 2 + (q.y - p[1]) ** 2 + (q.z - p[2]) ** 2


def _coerce_segment(seg) -> Segment:
    if isinstance(seg, (Line, Arc, Parametric)):
        return seg
    if callable(seg):
        return Parametric(seg)
    raise ValueError(f"unsupported path segment: {seg!r}")


def _bake(seg: Segment, resolution: int):
    if seg.kind == "line":
        return _LineRun(seg)
    if seg.kind == "arc":
        return _ArcRun(seg)
    return _CurveRun(seg, resolution)


def sample_segment(
    segment,
    rng: Optional[np.random.Generator] = None,
    lut_resolution: Optional[int] = None,
) -> Point:
    """
    Uniform arc-length sample from a single segment.
    """
    run = _bake(_coerce_segment(segment), lut_resolution or DEFAULT_CONFIG.lut_resolution)
    if run.length <= 0.0:
        return run.point(0.0)
    return run.point(get_rng(rng).random() * run.length)


# ---- Path ----

class Path(Shape):
    dimension = 1

    def __init__(self, segments: Iterable, lut_resolution: Optional[int] = None):
        if lut_resolution is None:
            lut_resolution = DEFAULT_CONFIG.lut_resolution
        if int(lut_resolution) < 1:
            raise ValueError("lut_resolution must be >= 1")
        segs: List[Segment] = [_coerce_segment(s) for s in segments]
        if not segs:
            raise ValueError("Path requires at least one segment")
        self.segments = tuple(segs)
        self.lut_resolution = int(lut_resolution)
        self._runs = [_bake(s, self.lut_resolution) for s in self.segments]
        self.cumulative_lengths = np.cumsum([r.length for r in self._runs])
        self.total_length = float(self.cumulative_lengths[-1])
        self.measure = self.total_length
        self.bbox = union_bbox([r.bbox for r in self._runs])
        self.center = self.bbox.center
        logger.debug("Path: %d segments, total length %.6g", len(self.segments), self.total_length)

    def point_at(self, distance: float) -> Point:
        """
        Point at the given arc length from the start of the path.
        """
        if self.total_length <= 0.0:
            return self.center
        d = min(max(float(distance), 0.0), self.total_length)
        i = int(np.searchsorted(self.cumulative_lengths, d, side="left"))
        i = min(i, len(self._runs) - 1)
        local = d - (self.cumulative_lengths[i - 1] if i > 0 else 0.0)
        return self._runs[i].point(float(local))

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.total_length <= 0.0:
            return self.center
        return self.point_at(get_rng(rng).random() * self.total_length)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        p = as_point(p)
        if not self.bbox.contains(p, epsilon):
            return False
        q = np.asarray(p, dtype=float)
        return any(r.near(q, epsilon) for r in self._runs)
