from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import math
import numpy as np

from .config import DEFAULT_EPSILON
from .core import BoundingBox, Point, Shape, as_point, finite, get_rng


@dataclass(frozen=True)
class Rotation3D:
    """
    3D rotation x -> R x about the origin.
    """
    R: np.ndarray  # shape (3, 3)

    def __post_init__(self):
        if self.R.shape != (3, 3):
            raise ValueError("R must be 3x3")
        # Orthonormal, so the inverse is the transpose
        object.__setattr__(self, "_Rt", self.R.T.copy())

    def apply(self, v: np.ndarray) -> np.ndarray:
        return self.R @ v

    def inverse_apply(self, v: np.ndarray) -> np.ndarray:
        return self._Rt @ v

    @staticmethod
    def identity() -> "Rotation3D":
        return Rotation3D(R=np.eye(3))

    @staticmethod
    def from_euler(pitch: float = 0.0, yaw: float = 0.0, roll: float = 0.0) -> "Rotation3D":
        """
        Rx(pitch) @ Ry(yaw) @ Rz(roll); with pitch = yaw = 0 this is an
        in-plane rotation by roll about +Z.
        """
        cp, sp = math.cos(pitch), math.sin(pitch)
        cy, sy = math.cos(yaw), math.sin(yaw)
        cr, sr = math.cos(roll), math.sin(roll)
        R = np.array(
            [
                [cy * cr, -cy * sr, sy],
                [sp * sy * cr + cp * sr, -sp * sy * sr + cp * cr, -sp * cy],
                [-cp * sy * cr + sp * sr, cp * sy * sr + sp * cr, cp * cy],
            ],
            dtype=float,
        )
        return Rotation3D(R=R)

    def then(self, after: "Rotation3D") -> "Rotation3D":
        """
        First apply self, then apply 'after'.
        """
        return Rotation3D(R=after.R @ self.R)


class Translated(Shape):
    def __init__(self, shape: Shape, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0):
        finite(dx, dy, dz)
        # Collapse nested translations into a single offset
        if isinstance(shape, Translated):
            dx += shape.dx
            dy += shape.dy
            dz += shape.dz
            shape = shape.shape
        self.shape = shape
        self.dx, self.dy, self.dz = float(dx), float(dy), float(dz)
        self.measure = shape.measure
        self.dimension = shape.dimension
        self.bbox = shape.bbox.translated(self.dx, self.dy, self.dz)
        c = shape.center
        self.center = Point(c.x + self.dx, c.y + self.dy, c.z + self.dz)

    @property
    def offset(self) -> Point:
        return Point(self.dx, self.dy, self.dz)

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        p = self.shape.sample(get_rng(rng))
        return Point(p.x + self.dx, p.y + self.dy, p.z + self.dz)

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        p = as_point(p)
        return self.shape.contains(Point(p.x - self.dx, p.y - self.dy, p.z - self.dz), epsilon)


class Rotated(Shape):
    """
    Rotation of a shape about its own center, or about an explicit pivot.
    """
    def __init__(
        self,
        shape: Shape,
        pitch: float = 0.0,
        yaw: float = 0.0,
        roll: float = 0.0,
        pivot: Optional[Point] = None,
    ):
        finite(pitch, yaw, roll)
        self.shape = shape
        self.pitch, self.yaw, self.roll = float(pitch), float(yaw), float(roll)
        self.rotation = Rotation3D.from_euler(self.pitch, self.yaw, self.roll)
        self.pivot = as_point(pivot) if pivot is not None else shape.center
        # Unpacked entries for the per-sample path
        self._m = tuple(float(v) for v in self.rotation.R.reshape(-1))

        self.measure = shape.measure
        self.dimension = shape.dimension
        piv = np.asarray(self.pivot, dtype=float)
        corners = (shape.bbox.corners() - piv) @ self.rotation.R.T + piv
        lo = corners.min(axis=0)
        hi = corners.max(axis=0)
        self.bbox = BoundingBox(float(lo[0]), float(hi[0]), float(lo[1]), float(hi[1]), float(lo[2]), float(hi[2]))
        self.center = self._forward(shape.center)

    def _forward(self, p: Point) -> Point:
        m00, m01, m02, m10, m11, m12, m20, m21, m22 = self._m
        c = self.pivot
        x, y, z = p.x - c.x, p.y - c.y, p.z - c.z
        return Point(
            m00 * x + m01 * y + m02 * z + c.x,
            m10 * x + m11 * y + m12 * z + c.y,
            m20 * x + m21 * y + m22 * z + c.z,
        )

    def _inverse(self, p: Point) -> Point:
        m00, m01, m02, m10, m11, m12, m20, m21, m22 = self._m
        c = self.pivot
        x, y, z = p.x - c.x, p.y - c.y, p.z - c.z
        return Point(
            m00 * x + m10 * y + m20 * z + c.x,
            m01 * x + m11 * y + m21 * z + c.y,
            m02 * x + m12 * y + m22 * z + c.z,
        )

    def sample(self, rng: Optional[np.random.Generator] = None) -> Point:
        return self._forward(self.shape.sample(get_rng(rng)))

    def contains(self, p: Point, epsilon: float = DEFAULT_EPSILON) -> bool:
        return self.shape.contains(self._inverse(as_point(p)), epsilon)
