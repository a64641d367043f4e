from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Sequence, Tuple, TYPE_CHECKING
import math
import numpy as np

from .config import DEFAULT_EPSILON

if TYPE_CHECKING:
    from .composite import Difference, Intersection, Union
    from .transforms import Rotated, Translated


class Point(NamedTuple):
    x: float
    y: float
    z: float = 0.0


ORIGIN = Point(0.0, 0.0, 0.0)


def as_point(obj) -> Point:
    """
    Coerce a Point, a 2/3-sequence or a numpy array into a Point.
    """
    if isinstance(obj, Point):
        return obj
    if hasattr(obj, "x") and hasattr(obj, "y"):
        return Point(float(obj.x), float(obj.y), float(getattr(obj, "z", 0.0)))
    vals = np.asarray(obj, dtype=float).reshape(-1)
    if vals.shape[0] == 2:
        return Point(float(vals[0]), float(vals[1]), 0.0)
    if vals.shape[0] == 3:
        return Point(float(vals[0]), float(vals[1]), float(vals[2]))
    raise ValueError(f"cannot interpret {obj!r} as a 2D or 3D point")


def distance(a: Point, b: Point) -> float:
    return math.sqrt((a.x - b.x) ** 2 + (a.y - b.y) ** 2 + (a.z - b.z) ** 2)


# ---- Random source ----

_rng: np.random.Generator = np.random.default_rng()


def seed(value: Optional[int]) -> np.random.Generator:
    """
    Reseed the module-level generator used when no rng is passed to sample().
    """
    global _rng
    _rng = np.random.default_rng(value)
    return _rng


def get_rng(rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    return _rng if rng is None else rng


# ---- Errors ----

class EmptyRegionError(RuntimeError):
    """
    Raised when a composite region is provably or empirically empty.
    """
    def __init__(self, operation: str, attempts: int, detail: str = ""):
        self.operation = operation
        self.attempts = attempts
        msg = f"{operation}: no point found after {attempts} attempts"
        if detail:
            msg = f"{operation}: {detail}" if attempts == 0 else f"{msg} ({detail})"
        super().__init__(msg)


# ---- Bounding boxes ----

@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float = 0.0
    max_z: float = 0.0

    @staticmethod
    def from_points(points: Iterable[Point]) -> "BoundingBox":
        arr = np.array([tuple(as_point(p)) for p in points], dtype=float)
        if arr.size == 0:
            raise ValueError("BoundingBox.from_points needs at least one point")
        lo = arr.min(axis=0)
        hi = arr.max(axis=0)
        return BoundingBox(float(lo[0]), float(hi[0]), float(lo[1]), float(hi[1]), float(lo[2]), float(hi[2]))

    @staticmethod
    def around(center: Point, hx: float, hy: float, hz: float = 0.0) -> "BoundingBox":
        return BoundingBox(
            center.x - hx, center.x + hx,
            center.y - hy, center.y + hy,
            center.z - hz, center.z + hz,
        )

    @property
    def is_empty(self) -> bool:
        return self.min_x > self.max_x or self.min_y > self.max_y or self.min_z > self.max_z

    @property
    def center(self) -> Point:
        return Point(
            0.5 * (self.min_x + self.max_x),
            0.5 * (self.min_y + self.max_y),
            0.5 * (self.min_z + self.max_z),
        )

    @property
    def extent(self) -> Tuple[float, float, float]:
        return (self.max_x - self.min_x, self.max_y - self.min_y, self.max_z - self.min_z)

    @property
    def measure(self) -> float:
        """
        Product of the non-zero extents (area for flat boxes, volume otherwise).
        """
        if self.is_empty:
            return 0.0
        sides = [e for e in self.extent if e > 0.0]
        return float(np.prod(sides)) if sides else 0.0

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        return (
            self.min_x - epsilon <= p.x <= self.max_x + epsilon
            and self.min_y - epsilon <= p.y <= self.max_y + epsilon
            and self.min_z - epsilon <= p.z <= self.max_z + epsilon
        )

    def intersect(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            max(self.min_x, other.min_x), min(self.max_x, other.max_x),
            max(self.min_y, other.min_y), min(self.max_y, other.max_y),
            max(self.min_z, other.min_z), min(self.max_z, other.max_z),
        )

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            min(self.min_x, other.min_x), max(self.max_x, other.max_x),
            min(self.min_y, other.min_y), max(self.max_y, other.max_y),
            min(self.min_z, other.min_z), max(self.max_z, other.max_z),
        )

    def overlaps(self, other: "BoundingBox") -> bool:
        return not self.intersect(other).is_empty

    def translated(self, dx: float, dy: float, dz: float = 0.0) -> "BoundingBox":
        return BoundingBox(
            self.min_x + dx, self.max_x + dx,
            self.min_y + dy, self.max_y + dy,
            self.min_z + dz, self.max_z + dz,
        )

    def corners(self) -> np.ndarray:
        xs = (self.min_x, self.max_x)
        ys = (self.min_y, self.max_y)
        zs = (self.min_z, self.max_z)
        return np.array([[x, y, z] for z in zs for y in ys for x in xs], dtype=float)

    def sample_uniform(self, rng: np.random.Generator) -> Point:
        # Zero-extent axes collapse onto their single coordinate
        return Point(
            self.min_x + rng.random() * (self.max_x - self.min_x),
            self.min_y + rng.random() * (self.max_y - self.min_y),
            self.min_z + rng.random() * (self.max_z - self.min_z) if self.max_z > self.min_z else self.min_z,
        )


def union_bbox(boxes: Sequence[BoundingBox]) -> BoundingBox:
    acc = boxes[0]
    for b in boxes[1:]:
        acc = acc.union(b)
    return acc


def intersect_bbox(boxes: Sequence[BoundingBox]) -> BoundingBox:
    acc = boxes[0]
    for b in boxes[1:]:
        acc = acc.intersect(b)
    return acc


# ---- Shape capability ----

class Shape:
    """
    Base class for everything that can be sampled uniformly.

    Subclasses set ``measure`` (length, area or volume), ``bbox``, ``center``
    and ``dimension`` at construction and implement ``sample`` and ``contains``.
    """
    measure: float = 0.0
    dimension: int = 0
    bbox: BoundingBox
    center: Point

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        raise NotImplementedError

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        raise NotImplementedError

    @property
    def is_degenerate(self) -> bool:
        return not self.measure > 0.0

    def sample_many(self, n: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """
        Draw n points into an (n, 3) array.
        """
        rng = get_rng(rng)
        out = np.empty((int(n), 3), dtype=float)
        for i in range(out.shape[0]):
            out[i] = self.sample(rng)
        return out

    # ---- Composition DSL ----
    def union(self, other: "Shape") -> "Union":
        from .composite import Union
        return Union(self, other)

    def __or__(self, other: "Shape") -> "Union":
        return self.union(other)

    def intersect(self, other: "Shape") -> "Intersection":
        from .composite import Intersection
        return Intersection(self, other)

    def __and__(self, other: "Shape") -> "Intersection":
        return self.intersect(other)

    def difference(self, other: "Shape") -> "Difference":
        from .composite import Difference
        return Difference(self, other)

    def __sub__(self, other: "Shape") -> "Difference":
        return self.difference(other)

    # ---- Transform helpers ----
    def translate(self, dx: float, dy: float, dz: float = 0.0) -> "Translated":
        from .transforms import Translated
        return Translated(self, dx, dy, dz)

    def rotate(self, pitch: float = 0.0, yaw: float = 0.0, roll: float = 0.0) -> "Rotated":
        from .transforms import Rotated
        return Rotated(self, pitch=pitch, yaw=yaw, roll=roll)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(measure={self.measure:.6g}, dimension={self.dimension})"


def near(p: Point, q: Point, epsilon: float) -> bool:
    """
    Membership test used by degenerate shapes: p coincides with q up to epsilon.
    """
    return distance(p, q) <= epsilon


def finite(*values: float) -> None:
    for v in values:
        if not math.isfinite(v):
            raise ValueError(f"shape parameters must be finite, got {v!r}")
