from __future__ import annotations

import math

import numpy as np
import pytest

from pointfield import (
    Box,
    Circle,
    Cylinder,
    Point,
    Rectangle,
    Rotated,
    Rotation3D,
    Translated,
)


class TestRotation3D:
    def test_identity(self):
        assert np.allclose(Rotation3D.identity().R, np.eye(3))
        assert np.allclose(Rotation3D.from_euler(0.0, 0.0, 0.0).R, np.eye(3))

    def test_orthonormal(self):
        R = Rotation3D.from_euler(0.3, -1.1, 2.0).R
        assert np.allclose(R @ R.T, np.eye(3))
        assert np.linalg.det(R) == pytest.approx(1.0)

    def test_roll_is_in_plane(self):
        rot = Rotation3D.from_euler(roll=0.5 * math.pi)
        assert np.allclose(rot.apply(np.array([1.0, 0.0, 0.0])), [0.0, 1.0, 0.0])

    def test_inverse_apply_undoes_apply(self):
        rot = Rotation3D.from_euler(0.4, 0.2, -0.7)
        v = np.array([1.0, -2.0, 0.5])
        assert np.allclose(rot.inverse_apply(rot.apply(v)), v)

    def test_then_composes(self):
        a = Rotation3D.from_euler(roll=0.2)
        b = Rotation3D.from_euler(roll=0.5)
        assert np.allclose(a.then(b).R, Rotation3D.from_euler(roll=0.7).R)

    def test_shape_checked(self):
        with pytest.raises(ValueError):
            Rotation3D(R=np.eye(2))


class TestTranslated:
    def test_nested_translations_collapse(self):
        base = Circle(radius=1.0)
        nested = Translated(Translated(base, 1.0, 2.0), 3.0, 4.0, 5.0)
        assert nested.shape is base
        assert nested.offset == Point(4.0, 6.0, 5.0)

    def test_same_distribution_as_single_offset(self):
        base = Rectangle(width=2.0, height=1.0)
        nested = base.translate(1.0, 2.0).translate(3.0, 4.0)
        single = base.translate(4.0, 6.0)
        a = nested.sample_many(200, np.random.default_rng(9))
        b = single.sample_many(200, np.random.default_rng(9))
        assert np.allclose(a, b)

    def test_contains_and_bbox_shift(self, rng):
        moved = Circle(radius=1.0).translate(10.0, 0.0)
        assert moved.contains(Point(10.5, 0.0))
        assert not moved.contains(Point(0.0, 0.0))
        assert moved.bbox.min_x == pytest.approx(9.0)
        assert moved.center == Point(10.0, 0.0, 0.0)
        assert moved.measure == pytest.approx(math.pi)
        for _ in range(200):
            assert moved.contains(moved.sample(rng))


class TestRotated:
    def test_identity_rotation_matches_base(self):
        base = Box(Point(1, 2, 3), 2.0, 1.0, 0.5)
        rotated = base.rotate(0.0, 0.0, 0.0)
        a = base.sample_many(200, np.random.default_rng(4))
        b = rotated.sample_many(200, np.random.default_rng(4))
        assert np.allclose(a, b)
        for p in a:
            q = Point(*p)
            assert rotated.contains(q) == base.contains(q)

    def test_quarter_turn_bbox(self):
        rect = Rectangle(width=4.0, height=2.0).rotate(roll=0.5 * math.pi)
        assert rect.bbox.max_x == pytest.approx(1.0)
        assert rect.bbox.max_y == pytest.approx(2.0)
        assert rect.contains(Point(0.0, 1.9))
        assert not rect.contains(Point(1.9, 0.0))

    def test_rotation_about_own_center(self):
        rect = Rectangle(Point(5, 5), 4.0, 2.0).rotate(roll=0.5 * math.pi)
        assert rect.center == pytest.approx(Point(5.0, 5.0, 0.0))
        assert rect.contains(Point(5.0, 6.9))

    def test_explicit_pivot(self):
        rot = Rotated(Circle(Point(1, 0), radius=0.1), roll=math.pi, pivot=Point(0, 0))
        assert rot.center == pytest.approx(Point(-1.0, 0.0, 0.0))
        assert rot.contains(Point(-1.0, 0.0))

    def test_forward_and_inverse_consistent(self, rng):
        tilted = Cylinder(Point(1, 0, 2), radius=1.0, height=3.0).rotate(0.7, -0.4, 1.3)
        assert tilted.measure == pytest.approx(3.0 * math.pi)
        for _ in range(1000):
            p = tilted.sample(rng)
            assert tilted.contains(p, 1e-7)
            assert tilted.bbox.contains(p, 1e-7)

    def test_pitch_tilts_out_of_plane(self):
        flat = Rectangle(width=2.0, height=2.0).rotate(pitch=0.5 * math.pi)
        assert flat.bbox.max_z == pytest.approx(1.0)
        assert flat.bbox.max_y == pytest.approx(0.0, abs=1e-12)
