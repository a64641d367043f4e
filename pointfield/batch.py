from __future__ import annotations

from typing import Optional
import logging
import numpy as np

from .core import Shape, get_rng

logger = logging.getLogger(__name__)


def sample_points(shape: Shape, n: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Draw n points from shape into an (n, 3) float array.
    """
    if n < 0:
        raise ValueError("n must be non-negative")
    return shape.sample_many(int(n), get_rng(rng))


def fill_buffer(shape: Shape, buffer: np.ndarray, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Fill a flat buffer laid out as [x0, y0, z0, x1, y1, z1, ...] in place.

    The buffer keeps its own dtype (float32 buffers are the usual vertex
    layout); its length must be a multiple of 3.
    """
    if buffer.ndim != 1:
        raise ValueError("buffer must be one-dimensional")
    if buffer.shape[0] % 3 != 0:
        raise ValueError(f"buffer length {buffer.shape[0]} is not a multiple of 3")
    rng = get_rng(rng)
    for i in range(0, buffer.shape[0], 3):
        buffer[i:i + 3] = shape.sample(rng)
    return buffer


def estimate_measure(shape: Shape, n: int = 100_000, rng: Optional[np.random.Generator] = None) -> float:
    """
    Monte Carlo estimate of a region's true area or volume: the hit rate of
    uniform draws from the bounding box, scaled by the box measure.
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    box = shape.bbox
    if box.is_empty or box.measure <= 0.0:
        return 0.0
    rng = get_rng(rng)
    hits = 0
    for _ in range(int(n)):
        if shape.contains(box.sample_uniform(rng)):
            hits += 1
    estimate = box.measure * hits / n
    logger.debug("estimate_measure: %d/%d hits in box of measure %.6g", hits, n, box.measure)
    return float(estimate)
