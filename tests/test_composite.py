from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from pointfield import (
    BoundingBox,
    Circle,
    Cone,
    Cylinder,
    Difference,
    Ellipse,
    EmptyRegionError,
    FaultyUnion,
    Intersection,
    Point,
    Rectangle,
    SamplingConfig,
    Shape,
    Sphere,
    Triangle,
    Union,
    make_composite,
)


class _Everywhere(Shape):
    """Zero-weight child that claims every point."""
    dimension = 2

    def __init__(self):
        self.measure = 0.0
        self.bbox = BoundingBox(-100.0, 100.0, -100.0, 100.0)
        self.center = Point(0.0, 0.0)

    def sample(self, rng=None):
        return self.center

    def contains(self, p, epsilon=1e-9):
        return True


def _overlap_fraction(pts: np.ndarray) -> float:
    return float(np.mean((pts[:, 0] >= 0.0) & (pts[:, 0] <= 1.0)))


class TestUnion:
    def test_samples_are_contained(self, overlapping_rects, rng):
        union = Union(*overlapping_rects)
        for _ in range(1000):
            assert union.contains(union.sample(rng))

    def test_overlap_not_overinflated(self, overlapping_rects, rng):
        # Overlap strip is 2 of the union's 6 square units
        union = Union(*overlapping_rects)
        pts = union.sample_many(6000, rng)
        frac = _overlap_fraction(pts)
        assert frac == pytest.approx(1.0 / 3.0, abs=0.04)
        density_ratio = (frac / 2.0) / ((1.0 - frac) / 4.0)
        assert 0.8 < density_ratio < 1.2

    def test_faulty_union_double_counts(self, overlapping_rects, rng):
        faulty = FaultyUnion(*overlapping_rects)
        pts = faulty.sample_many(6000, rng)
        assert _overlap_fraction(pts) > 0.45

    def test_measure_bbox_and_contains(self, overlapping_rects):
        union = Union(*overlapping_rects)
        assert union.measure == pytest.approx(8.0)
        assert (union.bbox.min_x, union.bbox.max_x) == pytest.approx((-1.0, 2.0))
        assert union.contains(Point(1.5, 0.5))
        assert not union.contains(Point(2.5, 0.0))

    def test_zero_weight_rejected(self):
        with pytest.raises(ValueError):
            Union(Circle(radius=0.0), Circle(radius=0.0))

    def test_no_children_rejected(self):
        with pytest.raises(ValueError):
            Union()

    def test_nested_unions_flatten(self):
        a, b, c = Circle(radius=1.0), Circle(Point(3, 0)), Circle(Point(6, 0))
        assert len(((a | b) | c).shapes) == 3
        assert len(FaultyUnion(FaultyUnion(a, b), c).shapes) == 3
        assert len(Union(FaultyUnion(a, b), c).shapes) == 2

    def test_exhaustion_raises_when_asked(self, rng):
        union = Union(_Everywhere(), Circle(radius=1.0), max_attempts=10, on_exhausted="raise")
        with pytest.raises(EmptyRegionError) as info:
            union.sample(rng)
        assert info.value.operation == "union"
        assert info.value.attempts == 10

    def test_exhaustion_falls_back_by_default(self, rng, caplog):
        union = Union(_Everywhere(), Circle(radius=1.0), max_attempts=10)
        with caplog.at_level(logging.DEBUG, logger="pointfield.composite"):
            p = union.sample(rng)
        assert math.hypot(p.x, p.y) <= 1.0
        assert "attempts exhausted" in caplog.text

    def test_bad_policy_rejected(self):
        with pytest.raises(ValueError):
            Union(Circle(), on_exhausted="ignore")


class TestIntersection:
    def test_shared_region(self, rng):
        inter = Rectangle(Point(0, 0), 10, 10) & Rectangle(Point(8, 8), 10, 10)
        a, b = inter.shapes
        for _ in range(1000):
            p = inter.sample(rng)
            assert a.contains(p) and b.contains(p)
            assert 3.0 - 1e-9 <= p.x <= 5.0 + 1e-9
            assert 3.0 - 1e-9 <= p.y <= 5.0 + 1e-9

    def test_bbox_and_measure(self):
        inter = Intersection(Rectangle(Point(0, 0), 10, 10), Rectangle(Point(8, 8), 10, 10))
        assert (inter.bbox.min_x, inter.bbox.max_x) == pytest.approx((3.0, 5.0))
        assert inter.measure == pytest.approx(100.0)

    def test_disjoint_boxes_raise(self, rng):
        inter = Rectangle(Point(0, 0), 1, 1) & Rectangle(Point(10, 10), 1, 1)
        assert inter.is_empty
        assert inter.measure == 0.0
        assert not inter.contains(Point(0, 0))
        with pytest.raises(EmptyRegionError) as info:
            inter.sample(rng)
        assert info.value.attempts == 0
        assert "do not intersect" in str(info.value)

    def test_exhaustion_raises(self, rng):
        # Boxes overlap but the disks do not
        inter = Intersection(Circle(Point(0, 0), 1.0), Circle(Point(1.9, 1.9), 1.0), max_attempts=50)
        assert not inter.is_empty
        with pytest.raises(EmptyRegionError) as info:
            inter.sample(rng)
        assert info.value.attempts == 50

    def test_nested_intersections_flatten(self):
        a, b, c = Circle(radius=2.0), Circle(Point(1, 0), 2.0), Circle(Point(0, 1), 2.0)
        assert len(((a & b) & c).shapes) == 3

    def test_solid_intersection(self, rng):
        lens = Sphere(radius=2.0) & Sphere(Point(2, 0, 0), 2.0)
        for _ in range(300):
            p = lens.sample(rng)
            assert 0.0 - 1e-9 <= p.x <= 2.0 + 1e-9
            assert lens.contains(p)


class TestDifference:
    def test_donut(self, donut, rng):
        for _ in range(1000):
            p = donut.sample(rng)
            d = math.hypot(p.x, p.y)
            assert 2.0 < d <= 5.0 + 1e-9
            assert donut.contains(p)

    def test_contains(self, donut):
        assert not donut.contains(Point(0.0, 0.0))
        assert donut.contains(Point(3.0, 0.0))
        assert not donut.contains(Point(6.0, 0.0))

    def test_measure_and_bbox(self, donut):
        assert donut.measure == pytest.approx(21.0 * math.pi)
        assert donut.bbox == donut.a.bbox
        apart = Circle(radius=1.0) - Circle(Point(10, 0), 1.0)
        assert apart.measure == pytest.approx(math.pi)
        swallowed = Circle(radius=1.0) - Circle(radius=3.0)
        assert swallowed.measure == 0.0

    def test_covered_minuend_raises(self, rng):
        empty = Difference(Circle(radius=1.0), Circle(radius=2.0), max_attempts=20)
        with pytest.raises(EmptyRegionError) as info:
            empty.sample(rng)
        assert info.value.operation == "difference"
        assert info.value.attempts == 20

    def test_fallback_returns_minuend_point(self, rng):
        empty = Difference(Circle(radius=1.0), Circle(radius=2.0), max_attempts=20, on_exhausted="fallback")
        p = empty.sample(rng)
        assert math.hypot(p.x, p.y) <= 1.0

    def test_config_supplies_defaults(self):
        cfg = SamplingConfig(difference_on_exhausted="fallback", difference_max_attempts=7)
        diff = Difference(Circle(radius=2.0), Circle(radius=1.0), config=cfg)
        assert diff.on_exhausted == "fallback"
        assert diff.max_attempts == 7
        explicit = Difference(Circle(radius=2.0), Circle(radius=1.0), max_attempts=3, config=cfg)
        assert explicit.max_attempts == 3


class TestMakeComposite:
    def test_kinds(self):
        a, b = Circle(radius=1.0), Circle(Point(1, 0), 1.0)
        assert isinstance(make_composite("union", [a, b]), Union)
        assert isinstance(make_composite("intersection", [a, b]), Intersection)
        assert isinstance(make_composite("difference", [a, b]), Difference)
        assert type(make_composite("faulty_union", [a, b])) is FaultyUnion

    def test_options_forwarded(self):
        u = make_composite("union", [Circle()], max_attempts=5)
        assert u.max_attempts == 5

    def test_difference_arity(self):
        with pytest.raises(ValueError):
            make_composite("difference", [Circle(), Circle(), Circle()])

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            make_composite("xor", [Circle()])


class TestNesting:
    def test_ornament(self, rng):
        body = Sphere(Point(0, 0, 5), 5.0) - Cylinder(Point(0, 0, 5), 2.0, 10.0)
        ornament = body | Cone(Point(0, 0, 9), 3.0, 4.0)
        assert ornament.dimension == 3
        for _ in range(500):
            p = ornament.sample(rng)
            assert ornament.contains(p)
            in_cap = ornament.shapes[1].contains(p)
            assert in_cap or math.hypot(p.x, p.y) > 2.0

    def test_union_of_differences(self, rng):
        ring_a = Circle(radius=2.0) - Circle(radius=1.0)
        ring_b = (Circle(radius=2.0) - Circle(radius=1.0)).translate(3.0, 0.0)
        both = ring_a | ring_b
        for _ in range(500):
            p = both.sample(rng)
            assert both.contains(p)
        assert both.measure == pytest.approx(6.0 * math.pi)

    def test_seeded_generator_reproducible(self, donut):
        a = donut.sample_many(50, np.random.default_rng(3))
        b = donut.sample_many(50, np.random.default_rng(3))
        assert np.array_equal(a, b)


class TestContainsTolerance:
    @pytest.mark.parametrize("p", [Point(10.3, 0.0), Point(10.05, 0.0), Point(0.0, 1.08), Point(10.4, 0.0)])
    @pytest.mark.parametrize("rx, ry", [(10.0, 10.0), (10.0, 1.0)])
    def test_composites_defer_to_children(self, p, rx, ry):
        e = Ellipse(rx=rx, ry=ry)
        expected = e.contains(p, 0.1)
        assert Union(e).contains(p, 0.1) is expected
        assert Intersection(e, Circle(radius=20.0)).contains(p, 0.1) is expected
        assert Difference(e, Circle(Point(50, 0), 1.0)).contains(p, 0.1) is expected

    def test_point_past_padded_box_still_in_union(self):
        # Within 0.1 of the sliver's long edge, 0.5 left of its box
        sliver = Triangle((0, 0), (10, 0), (10, 1))
        p = Point(-0.5, -0.02)
        assert sliver.contains(p, 0.1)
        assert not sliver.bbox.contains(p, 0.1)
        assert Union(sliver, Circle(Point(-20, 0), 1.0)).contains(p, 0.1)
        assert Intersection(sliver, Circle(radius=20.0)).contains(p, 0.1)


class TestSettingsOnNesting:
    def test_faulty_union_rejects_sampling_budget(self):
        a, b = Circle(radius=1.0), Circle(Point(1, 0), 1.0)
        with pytest.raises(TypeError):
            FaultyUnion(a, b, max_attempts=5)
        with pytest.raises(TypeError):
            make_composite("faulty_union", [a, b], on_exhausted="raise")

    def test_union_keeps_child_with_own_settings(self):
        a, b, c = Circle(radius=1.0), Circle(Point(3, 0)), Circle(Point(6, 0))
        strict = Union(a, b, max_attempts=5, on_exhausted="raise")
        outer = Union(strict, c)
        assert len(outer.shapes) == 2
        assert outer.shapes[0].max_attempts == 5
        assert outer.shapes[0].on_exhausted == "raise"
        assert len(Union(Union(a, b, max_attempts=5), c, max_attempts=5).shapes) == 3

    def test_intersection_keeps_child_with_own_config(self):
        a, b, c = Circle(radius=2.0), Circle(Point(1, 0), 2.0), Circle(Point(0, 1), 2.0)
        cfg = SamplingConfig(epsilon=1e-6)
        assert len(Intersection(Intersection(a, b, config=cfg), c).shapes) == 2
        assert len(Intersection(Intersection(a, b, config=cfg), c, config=cfg).shapes) == 3
