from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple, Union as TUnion
import io
import logging
import os
import numpy as np
import matplotlib.pyplot as plt
from PIL import Image

from pointfield import Shape, Union, sample_points

from plotting.outline import draw_outline, shape_to_shapely

logger = logging.getLogger(__name__)

_PLANES = {"xy": (0, 1), "xz": (0, 2), "yz": (1, 2)}


def _as_shape(shape_or_shapes: TUnion[Shape, Iterable[Shape]]) -> Shape:
    if isinstance(shape_or_shapes, Shape):
        return shape_or_shapes
    shapes = list(shape_or_shapes)
    if not shapes:
        raise ValueError("No shapes provided")
    return Union(*shapes)


def padded_limits(shape: Shape, margin: float = 0.05) -> Tuple[Tuple[float, float], ...]:
    """
    Axis limits (x, y, z) from the shape's bounding box, widened by a
    fraction of the largest extent.
    """
    box = shape.bbox
    pad = margin * max(max(box.extent), 1e-9)
    return (
        (box.min_x - pad, box.max_x + pad),
        (box.min_y - pad, box.max_y + pad),
        (box.min_z - pad, box.max_z + pad),
    )


def render_to_axes(
    ax,
    shape: TUnion[Shape, Iterable[Shape]],
    n: int = 5000,
    rng: Optional[np.random.Generator] = None,
    projection: str = "xy",
    title: Optional[str] = None,
    point_size: float = 1.0,
    color: str = "tab:blue",
    alpha: float = 0.6,
    draw_edges: bool = False,
    edge_color: str = "black",
    show_axes: bool = False,
) -> np.ndarray:
    """
    Scatter n samples of shape onto ax and return them. projection is one of
    "xy", "xz", "yz" (2D axes) or "3d" (an axis created with projection="3d").
    """
    shape = _as_shape(shape)
    pts = sample_points(shape, n, rng)
    limits = padded_limits(shape)
    if projection == "3d":
        ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], s=point_size, c=color, alpha=alpha, depthshade=False)
        ax.set_xlim(*limits[0])
        ax.set_ylim(*limits[1])
        ax.set_zlim(*limits[2])
    else:
        if projection not in _PLANES:
            raise ValueError(f"unknown projection {projection!r}")
        i, j = _PLANES[projection]
        ax.scatter(pts[:, i], pts[:, j], s=point_size, c=color, alpha=alpha, linewidths=0)
        ax.set_aspect("equal", adjustable="box")
        ax.set_xlim(*limits[i])
        ax.set_ylim(*limits[j])
        if draw_edges and projection == "xy" and shape.dimension < 3:
            draw_outline(ax, shape_to_shapely(shape), edge_color=edge_color)
    if title:
        ax.set_title(title)
    if not show_axes:
        ax.set_xticks([])
        ax.set_yticks([])
    return pts


def render_to_file(
    shape: TUnion[Shape, Iterable[Shape]],
    out_path: Optional[str],
    n: int = 20000,
    rng: Optional[np.random.Generator] = None,
    projection: str = "xy",
    figsize: Tuple[float, float] = (6.0, 6.0),
    title: Optional[str] = None,
    draw_edges: bool = False,
    dpi: int = 150,
    format: Optional[str] = None,
    return_image: bool = False,
) -> Optional[Image.Image]:
    """
    Render a sample cloud to out_path (PNG or SVG, from the suffix unless
    format is given), or to an in-memory Pillow image when return_image is set.
    """
    if not return_image and out_path is None:
        raise ValueError("rendering requires an output path (out_path) when return_image is False.")
    if format is None:
        format = "svg" if out_path is not None and out_path.endswith(".svg") else "png"

    fig = plt.figure(figsize=figsize)
    if projection == "3d":
        ax = fig.add_subplot(1, 1, 1, projection="3d")
    else:
        ax = fig.add_subplot(1, 1, 1)
    render_to_axes(ax, shape, n=n, rng=rng, projection=projection, title=title, draw_edges=draw_edges)

    if return_image:
        buffer = io.BytesIO()
        fig.savefig(buffer, format="png", dpi=dpi, facecolor="white")
        plt.close(fig)
        buffer.seek(0)
        image = Image.open(buffer)
        image.load()
        return image

    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    fig.savefig(out_path, dpi=dpi, format=format, facecolor="white")
    plt.close(fig)
    logger.info("wrote %s", out_path)
    return None


def render_shape_grid(
    shapes: Sequence[Shape],
    out_path: str,
    titles: Optional[Sequence[str]] = None,
    cols: int = 4,
    n: int = 4000,
    rng: Optional[np.random.Generator] = None,
    figsize_per_cell: Tuple[float, float] = (3.0, 3.0),
    projection: str = "xy",
) -> None:
    """
    Render a grid of sample clouds, one cell per shape.
    """
    count = len(shapes)
    cols = max(1, cols)
    rows = max(1, (count + cols - 1) // cols)
    fig = plt.figure(figsize=(figsize_per_cell[0] * cols, figsize_per_cell[1] * rows), constrained_layout=True)
    fig.patch.set_facecolor("white")

    for idx in range(rows * cols):
        kwargs = {"projection": "3d"} if projection == "3d" else {}
        ax = fig.add_subplot(rows, cols, idx + 1, **kwargs)
        if idx >= count:
            ax.axis("off")
            continue
        title = titles[idx] if titles is not None and idx < len(titles) else f"{idx}"
        render_to_axes(ax, shapes[idx], n=n, rng=rng, projection=projection, title=title)

    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    fmt = "svg" if out_path.endswith(".svg") else "png"
    fig.savefig(out_path, dpi=150, format=fmt, facecolor="white")
    plt.close(fig)
    logger.info("wrote %d shapes to %s", count, out_path)
