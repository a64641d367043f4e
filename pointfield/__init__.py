# Re-export the sampling API for convenience
from .config import SamplingConfig, DEFAULT_CONFIG, DEFAULT_EPSILON
from .core import (
    Point,
    ORIGIN,
    BoundingBox,
    Shape,
    EmptyRegionError,
    as_point,
    distance,
    seed,
    get_rng,
)
from .shapes2d import (
    EllipseSector,
    Ellipse,
    CircleSector,
    Circle,
    Rectangle,
    Triangle,
    Polygon,
    ear_clip,
)
from .shapes3d import (
    EllipsoidSector,
    Ellipsoid,
    SphereSector,
    Sphere,
    Box,
    Cube,
    Cylinder,
    Cone,
)
from .curves import (
    Line,
    Arc,
    Parametric,
    Path,
    bezier_quadratic,
    bezier_cubic,
    helix,
    conic_helix,
    circle_perimeter,
    sample_segment,
)
from .transforms import Rotation3D, Translated, Rotated
from .composite import (
    Composite,
    Union,
    Intersection,
    Difference,
    FaultyUnion,
    make_composite,
)
from .batch import sample_points, fill_buffer, estimate_measure
