from __future__ import annotations

import math

import numpy as np
import pytest

from pointfield import Circle, Point, Sphere
from pointfield.radial import (
    TWO_PI,
    angular_span,
    ball_radius,
    check_inner,
    check_ratio,
    disk_radius,
    in_angular_span,
    polar_cos,
)


class TestAngles:
    def test_span_plain(self):
        assert angular_span(0.0, math.pi) == pytest.approx(math.pi)

    def test_span_wraps_when_end_precedes_start(self):
        assert angular_span(1.5 * math.pi, 0.5 * math.pi) == pytest.approx(math.pi)

    def test_span_capped_at_full_turn(self):
        assert angular_span(0.0, 5.0 * math.pi) == pytest.approx(TWO_PI)

    def test_in_span_across_zero(self):
        start = 1.5 * math.pi
        span = math.pi
        assert in_angular_span(0.0, start, span, 1e-9)
        assert in_angular_span(-0.25 * math.pi, start, span, 1e-9)
        assert not in_angular_span(math.pi, start, span, 1e-9)

    def test_full_span_accepts_everything(self):
        assert in_angular_span(2.0, 1.0, TWO_PI, 0.0)


class TestRadialTransforms:
    def test_disk_radius_endpoints(self):
        assert disk_radius(0.0) == 0.0
        assert disk_radius(1.0) == pytest.approx(1.0)
        assert disk_radius(0.0, 0.4) == pytest.approx(0.4)

    def test_ball_radius_endpoints(self):
        assert ball_radius(0.0, 0.5) == pytest.approx(0.5)
        assert ball_radius(1.0, 0.5) == pytest.approx(1.0)

    def test_polar_cos_interpolates(self):
        assert polar_cos(0.0, 1.0, -1.0) == 1.0
        assert polar_cos(1.0, 1.0, -1.0) == -1.0
        assert polar_cos(0.5, 1.0, -1.0) == pytest.approx(0.0)

    def test_check_inner_rejects_bad_radii(self):
        with pytest.raises(ValueError):
            check_inner(-1.0, 2.0)
        with pytest.raises(ValueError):
            check_inner(3.0, 2.0)
        check_inner(2.0, 2.0)

    def test_check_ratio_bounds(self):
        with pytest.raises(ValueError):
            check_ratio(1.5)
        check_ratio(0.0)
        check_ratio(1.0)


class TestNoClumping:
    def test_unit_disk_mean_radius(self, rng):
        # Uniform over area: E[r] = 2/3, whereas a uniform radius gives 1/2
        disk = Circle(radius=1.0)
        pts = disk.sample_many(20000, rng)
        r = np.hypot(pts[:, 0], pts[:, 1])
        assert r.mean() == pytest.approx(2.0 / 3.0, abs=0.02)
        assert np.all(r <= 1.0 + 1e-9)

    def test_disk_quadrants_balanced(self, rng):
        pts = Circle(Point(1, 1), radius=2.0).sample_many(8000, rng)
        frac = np.mean((pts[:, 0] > 1.0) & (pts[:, 1] > 1.0))
        assert frac == pytest.approx(0.25, abs=0.03)

    def test_sphere_cos_phi_uniform(self, rng):
        pts = Sphere(radius=1.0).sample_many(20000, rng)
        r = np.linalg.norm(pts, axis=1)
        cos_phi = pts[:, 2] / r
        assert cos_phi.mean() == pytest.approx(0.0, abs=0.03)
        assert np.mean(cos_phi > 0.5) == pytest.approx(0.25, abs=0.03)
        assert np.mean(np.abs(cos_phi) < 0.5) == pytest.approx(0.5, abs=0.03)

    def test_ball_volume_fraction(self, rng):
        # Half the volume of a unit ball lies beyond r = 0.5 ** (1/3)
        pts = Sphere(radius=1.0).sample_many(20000, rng)
        r = np.linalg.norm(pts, axis=1)
        assert np.mean(r ** 3) == pytest.approx(0.5, abs=0.02)
