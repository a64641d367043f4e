"""
Boolean composition of shapes.

Every composite is itself a Shape, so trees nest freely. Bounding boxes and
measures are derived once at construction; composite measures are sampling
weights for an enclosing union, not exact areas or volumes.

When a rejection loop runs out of attempts:
  - Union returns its last unfiltered draw (on_exhausted="fallback", the
    default) or raises EmptyRegionError (on_exhausted="raise").
  - Intersection always raises EmptyRegionError.
  - Difference raises EmptyRegionError by default; on_exhausted="fallback"
    returns the last point drawn from the minuend.

A nested Union or Intersection is merged into its parent only when both
carry the same sampling settings; otherwise it stays a child and keeps
its own. contains asks the children directly with the same distance
tolerance.
"""
from __future__ import annotations

from typing import Optional, Sequence
import logging
import numpy as np

from .config import DEFAULT_CONFIG, ExhaustionPolicy, SamplingConfig, check_policy
from .core import (
    BoundingBox,
    EmptyRegionError,
    Point,
    Shape,
    as_point,
    get_rng,
    intersect_bbox,
    union_bbox,
)

logger = logging.getLogger(__name__)


class Composite(Shape):
    kind: str = ""

    def __init__(self, shapes: Sequence[Shape], config: Optional[SamplingConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.shapes = tuple(shapes)
        for s in self.shapes:
            if not isinstance(s, Shape):
                raise ValueError(f"{type(self).__name__} children must be shapes, got {s!r}")
        self.dimension = max((s.dimension for s in self.shapes), default=0)

    @property
    def epsilon(self) -> float:
        return self.config.epsilon

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.shapes)} shapes, measure={self.measure:.6g})"


def _flatten(cls: type, shapes: Sequence[Shape], settings: tuple) -> list:
    # Nested composites of the same kind merge only when their sampling settings agree
    flat: list = []
    for s in shapes:
        if type(s) is cls and s.settings == settings:
            flat.extend(s.shapes)
        else:
            flat.append(s)
    return flat


class Union(Composite):
    """
    Measure-weighted union. A draw from child i is rejected when an
    earlier-indexed child already contains it, so overlaps are counted once.
    """
    kind = "union"

    def __init__(
        self,
        *shapes: Shape,
        max_attempts: Optional[int] = None,
        on_exhausted: Optional[ExhaustionPolicy] = None,
        config: Optional[SamplingConfig] = None,
    ):
        config = config or DEFAULT_CONFIG
        self.max_attempts = int(max_attempts if max_attempts is not None else config.union_max_attempts)
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.on_exhausted = check_policy(on_exhausted or config.union_on_exhausted)
        settings = (self.max_attempts, self.on_exhausted, config)
        super().__init__(_flatten(type(self), shapes, settings), config)
        if len(self.shapes) == 0:
            raise ValueError(f"{type(self).__name__} requires at least one shape")

        weights = np.array([max(0.0, float(s.measure)) for s in self.shapes], dtype=float)
        self.cumulative_weights = np.cumsum(weights)
        total = float(self.cumulative_weights[-1])
        if not total > 0.0:
            raise ValueError(f"{type(self).__name__} children have zero total measure")
        self.measure = total
        self.bbox = union_bbox([s.bbox for s in self.shapes])
        self.center = self.bbox.center
        logger.debug("%s: %d children, total weight %.6g", type(self).__name__, len(self.shapes), total)

    def _pick(self, rng: np.random.Generator) -> int:
        # side="right" never lands on a zero-weight child
        target = rng.random() * self.measure
        i = int(np.searchsorted(self.cumulative_weights, target, side="right"))
        return min(i, len(self.shapes) - 1)

    @property
    def settings(self) -> tuple:
        return (self.max_attempts, self.on_exhausted, self.config)

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        rng = get_rng(rng)
        eps = self.epsilon
        p = self.center
        for _ in range(self.max_attempts):
            i = self._pick(rng)
            p = self.shapes[i].sample(rng)
            if not any(self.shapes[j].contains(p, eps) for j in range(i)):
                return p
        if self.on_exhausted == "raise":
            raise EmptyRegionError("union", self.max_attempts, "every draw fell in an earlier child")
        logger.debug("Union: %d attempts exhausted, returning unfiltered sample", self.max_attempts)
        return p

    def contains(self, p: Point, epsilon: Optional[float] = None) -> bool:
        eps = self.epsilon if epsilon is None else epsilon
        p = as_point(p)
        return any(s.contains(p, eps) for s in self.shapes)


class FaultyUnion(Union):
    """
    Weighted union without overlap rejection: overlapping regions are drawn
    from once per covering child and come out denser than the rest.
    Kept for comparison against Union; do not use for real output.
    """
    kind = "faulty_union"

    def __init__(self, *shapes: Shape, config: Optional[SamplingConfig] = None):
        # No rejection loop, so no attempt budget or exhaustion policy
        super().__init__(*shapes, config=config)

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        rng = get_rng(rng)
        return self.shapes[self._pick(rng)].sample(rng)


class Intersection(Composite):
    kind = "intersection"

    def __init__(
        self,
        *shapes: Shape,
        max_attempts: Optional[int] = None,
        config: Optional[SamplingConfig] = None,
    ):
        config = config or DEFAULT_CONFIG
        self.max_attempts = int(max_attempts if max_attempts is not None else config.intersection_max_attempts)
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        super().__init__(_flatten(type(self), shapes, (self.max_attempts, config)), config)
        if len(self.shapes) == 0:
            raise ValueError("Intersection requires at least one shape")
        self.bbox = intersect_bbox([s.bbox for s in self.shapes])
        if self.bbox.is_empty:
            self.measure = 0.0
            logger.debug("Intersection: bounding boxes of %d children are disjoint", len(self.shapes))
        else:
            self.measure = min(float(s.measure) for s in self.shapes)
            logger.debug("Intersection: %d children, box %s", len(self.shapes), self.bbox)
        self.center = self.bbox.center

    @property
    def settings(self) -> tuple:
        return (self.max_attempts, self.config)

    @property
    def is_empty(self) -> bool:
        return self.bbox.is_empty

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        if self.bbox.is_empty:
            raise EmptyRegionError("intersection", 0, "shapes do not intersect")
        rng = get_rng(rng)
        eps = self.epsilon
        for _ in range(self.max_attempts):
            p = self.bbox.sample_uniform(rng)
            if all(s.contains(p, eps) for s in self.shapes):
                return p
        raise EmptyRegionError("intersection", self.max_attempts)

    def contains(self, p: Point, epsilon: Optional[float] = None) -> bool:
        eps = self.epsilon if epsilon is None else epsilon
        p = as_point(p)
        return all(s.contains(p, eps) for s in self.shapes)


class Difference(Composite):
    """
    a minus b, drawn from a's own sampler and rejected where b contains it.
    """
    kind = "difference"

    def __init__(
        self,
        a: Shape,
        b: Shape,
        max_attempts: Optional[int] = None,
        on_exhausted: Optional[ExhaustionPolicy] = None,
        config: Optional[SamplingConfig] = None,
    ):
        super().__init__((a, b), config)
        self.a, self.b = a, b
        self.max_attempts = int(max_attempts if max_attempts is not None else self.config.difference_max_attempts)
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.on_exhausted = check_policy(on_exhausted or self.config.difference_on_exhausted)
        self.bbox: BoundingBox = a.bbox
        if a.bbox.overlaps(b.bbox):
            self.measure = max(0.0, float(a.measure) - float(b.measure))
        else:
            self.measure = float(a.measure)
        self.center = a.center
        logger.debug("Difference: weight %.6g", self.measure)

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        rng = get_rng(rng)
        eps = self.epsilon
        p = self.a.center
        for _ in range(self.max_attempts):
            p = self.a.sample(rng)
            if not self.b.contains(p, eps):
                return p
        if self.on_exhausted == "raise":
            raise EmptyRegionError("difference", self.max_attempts, "subtrahend covers every draw")
        logger.debug("Difference: %d attempts exhausted, returning last draw", self.max_attempts)
        return p

    def contains(self, p: Point, epsilon: Optional[float] = None) -> bool:
        eps = self.epsilon if epsilon is None else epsilon
        p = as_point(p)
        return self.a.contains(p, eps) and not self.b.contains(p, eps)


_KINDS = {
    "union": Union,
    "intersection": Intersection,
    "difference": Difference,
    "faulty_union": FaultyUnion,
}


def make_composite(kind: str, shapes: Sequence[Shape], **options) -> Composite:
    """
    Build a composite from an operation tag and a list of children.
    """
    try:
        cls = _KINDS[kind]
    except KeyError:
        raise ValueError(f"unknown composite kind {kind!r}; expected one of {sorted(_KINDS)}") from None
    shapes = list(shapes)
    if cls is Difference and len(shapes) != 2:
        raise ValueError(f"difference needs exactly 2 shapes, got {len(shapes)}")
    return cls(*shapes, **options)
