"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from pointfield import Circle, Rectangle


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture
def donut():
    return Circle(radius=5.0) - Circle(radius=2.0)


@pytest.fixture
def overlapping_rects():
    return Rectangle((0, 0), 2, 2), Rectangle((1, 0), 2, 2)
