from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import DegenerateBoundary
from .types import Segment, Vector2


PointLike = Union[Vector2, Sequence[float]]


def _signed_area(vertices: Sequence[Vector2]) -> float:
    n = len(vertices)
    total = 0.0
    for i in range(n):
        a = vertices[i]
        b = vertices[(i + 1) % n]
        total += a.x * b.y - b.x * a.y
    return total * 0.5


@dataclass(frozen=True)
class ConvexBoundary:
    """Convex clipping polygon, consistently wound in either direction."""

    vertices: Tuple[Vector2, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", tuple(Vector2.coerce(v) for v in self.vertices))
        if len(self.vertices) < 3:
            raise DegenerateBoundary(
                f"Boundary polygon needs at least 3 vertices, got {len(self.vertices)}"
            )
        if _signed_area(self.vertices) == 0.0:
            raise DegenerateBoundary("Boundary polygon vertices are collinear")

    @classmethod
    def from_points(cls, points: Sequence[PointLike]) -> "ConvexBoundary":
        return cls(tuple(Vector2.coerce(p) for p in points))

    @property
    def area(self) -> float:
        return _signed_area(self.vertices)

    def as_array(self) -> np.ndarray:
        return np.array([[v.x, v.y] for v in self.vertices], dtype=float)

    def inward_normals(self) -> np.ndarray:
        pts = self.as_array()
        nxt = np.roll(pts, -1, axis=0)
        normals = np.column_stack((pts[:, 1] - nxt[:, 1], nxt[:, 0] - pts[:, 0]))
        # normals face inward for positive signed area
        if self.area < 0:
            normals = -normals
        return normals


@dataclass(frozen=True)
class AxisAlignedBox:
    min: Vector2
    max: Vector2

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", Vector2.coerce(self.min))
        object.__setattr__(self, "max", Vector2.coerce(self.max))
        if not (self.min.x < self.max.x and self.min.y < self.max.y):
            raise DegenerateBoundary(
                f"Box corners must satisfy min < max on both axes, got {self.min} / {self.max}"
            )

    @classmethod
    def from_corners(cls, lo: PointLike, hi: PointLike) -> "AxisAlignedBox":
        return cls(Vector2.coerce(lo), Vector2.coerce(hi))

    @property
    def width(self) -> float:
        return self.max.x - self.min.x

    @property
    def height(self) -> float:
        return self.max.y - self.min.y

    def corners(self) -> ConvexBoundary:
        lo, hi = self.min, self.max
        return ConvexBoundary(
            (
                Vector2(lo.x, lo.y),
                Vector2(hi.x, lo.y),
                Vector2(hi.x, hi.y),
                Vector2(lo.x, hi.y),
            )
        )


def bbox_vertices(x: float = 0, y: float = 0, width: float = 100, height: float = 100) -> ConvexBoundary:
    return ConvexBoundary.from_points(
        [(x, y), (x + width, y), (x + width, y + height), (x, y + height)]
    )


def bbox_corners(x: float = 0, y: float = 0, width: float = 100, height: float = 100) -> AxisAlignedBox:
    return AxisAlignedBox.from_corners((x, y), (x + width, y + height))


def canvas_boundary(width: float, height: float) -> ConvexBoundary:
    """Four canvas corners ``(0,0)-(w,0)-(w,h)-(0,h)``."""
    return bbox_vertices(0, 0, width, height)


def as_convex_boundary(boundary: Any) -> ConvexBoundary:
    if isinstance(boundary, ConvexBoundary):
        return boundary
    if isinstance(boundary, AxisAlignedBox):
        return boundary.corners()
    return ConvexBoundary.from_points(boundary)


def as_box(box: Any) -> AxisAlignedBox:
    if isinstance(box, AxisAlignedBox):
        return box
    lo, hi = box
    return AxisAlignedBox.from_corners(lo, hi)


def clip_convex(segment: Segment, boundary: Union[ConvexBoundary, Sequence[PointLike]]) -> Optional[Segment]:
    """Cyrus-Beck clip of *segment* against a convex polygon.

    Returns the surviving part of the segment, or ``None`` when nothing
    (or only a single point) lies inside. An edge parallel to the segment
    only rejects it when the segment's start lies outside that edge.
    """
    poly = as_convex_boundary(boundary)
    normals = poly.inward_normals()
    vertices = poly.as_array()

    p0 = np.array([segment.start.x, segment.start.y], dtype=float)
    delta = np.array(
        [segment.end.x - segment.start.x, segment.end.y - segment.start.y], dtype=float
    )

    with np.errstate(invalid="ignore", over="ignore"):
        numerators = np.einsum("ij,ij->i", normals, vertices - p0)
        denominators = normals @ delta

    parallel = denominators == 0
    if np.any(numerators[parallel] > 0):
        return None

    entering = denominators > 0
    leaving = denominators < 0

    t_enter = 0.0
    t_leave = 1.0
    with np.errstate(invalid="ignore", over="ignore"):
        if np.any(entering):
            t_enter = max(t_enter, float(np.max(numerators[entering] / denominators[entering])))
        if np.any(leaving):
            t_leave = min(t_leave, float(np.min(numerators[leaving] / denominators[leaving])))

    if t_enter > t_leave:
        return None

    clipped = Segment(segment.point_at(t_enter), segment.point_at(t_leave))
    if clipped.is_degenerate():
        return None
    return clipped


def clip_box(segment: Segment, box: Union[AxisAlignedBox, Tuple[PointLike, PointLike]]) -> Optional[Segment]:
    """Liang-Barsky clip against an axis-aligned box.

    Unlike :func:`clip_convex` a segment touching the box in one point comes
    back as a zero-length segment.
    """
    rect = as_box(box)
    x0, y0 = segment.start.x, segment.start.y
    dx = segment.end.x - x0
    dy = segment.end.y - y0
    t0, t1 = 0.0, 1.0

    # left, right, bottom, top
    edges = (
        (-dx, x0 - rect.min.x),
        (dx, rect.max.x - x0),
        (-dy, y0 - rect.min.y),
        (dy, rect.max.y - y0),
    )
    for p, q in edges:
        if p == 0:
            if q < 0:
                return None
            continue
        r = q / p
        if p < 0:
            if r > t1:
                return None
            if r > t0:
                t0 = r
        else:
            if r < t0:
                return None
            if r < t1:
                t1 = r

    if t0 > t1:
        return None
    return Segment(segment.point_at(t0), segment.point_at(t1))


def clip_line(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    boundary: Optional[Union[ConvexBoundary, Sequence[PointLike]]] = None,
) -> Optional[Tuple[float, float, float, float]]:
    if boundary is None:
        boundary = bbox_vertices()
    clipped = clip_convex(Segment.from_coords(x1, y1, x2, y2), boundary)
    if clipped is None:
        return None
    return clipped.as_tuple()


__all__ = [
    "ConvexBoundary",
    "AxisAlignedBox",
    "bbox_vertices",
    "bbox_corners",
    "canvas_boundary",
    "as_convex_boundary",
    "as_box",
    "clip_convex",
    "clip_box",
    "clip_line",
]
