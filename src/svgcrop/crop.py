from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Union

from lxml import etree as ET

from .errors import MalformedToken, TypeMismatch
from .geom import AxisAlignedBox, ConvexBoundary, PointLike, clip_box, clip_convex
from .svg_path import DEFAULT_PRECISION, check_precision, parse, serialize
from .types import ClipOutcome, CropResult, Segment


log = logging.getLogger(__name__)


Boundary = Union[ConvexBoundary, AxisAlignedBox, Sequence[PointLike]]


def local_name(node: Any) -> str:
    tag = getattr(node, "tag", None)
    if isinstance(tag, str):
        if tag.startswith("{"):
            return tag.split("}", 1)[1]
        return tag
    return ""


def require_path_element(path: Any) -> ET._Element:
    if not isinstance(path, ET._Element) or local_name(path) != "path":
        raise TypeMismatch(f"Expected an SVG <path> element, got {path!r}")
    return path


def _check_container(container: Any) -> Any:
    for name in ("get_path_data", "set_path_data", "remove"):
        if not callable(getattr(container, name, None)):
            raise TypeMismatch(f"Container {type(container).__name__} has no {name}()")
    return container


def _remove_element(path: ET._Element) -> None:
    parent = path.getparent()
    if parent is not None:
        parent.remove(path)


def clip_segment(segment: Segment, boundary: Boundary) -> Optional[Segment]:
    """Dispatch to Liang-Barsky for boxes and Cyrus-Beck for everything else."""
    if isinstance(boundary, AxisAlignedBox):
        return clip_box(segment, boundary)
    return clip_convex(segment, boundary)


def crop_path(
    path: Any,
    boundary: Boundary,
    *,
    container: Any = None,
    tolerance: float = 0.0,
    precision: int = DEFAULT_PRECISION,
) -> CropResult:
    """Clip the line described by *path* against *boundary*.

    Only the first two vertices of the path are considered. A path whose
    clipped line is empty or a single point is removed; a path that lies
    fully inside is left untouched; anything else gets its ``d`` rewritten.
    Parser errors propagate unchanged.
    """
    check_precision(precision)
    if container is None:
        element = require_path_element(path)
        d = element.get("d") or ""
    else:
        d = _check_container(container).get_path_data(path) or ""

    points = parse(d)
    if len(points) < 2:
        raise MalformedToken(d, f"a line needs two vertices, got {len(points)}")
    original = Segment(points[0], points[1])

    clipped = clip_segment(original, boundary)
    if clipped is None or clipped.is_degenerate(tolerance):
        if container is None:
            _remove_element(element)
        else:
            container.remove(path)
        log.debug("Discarded path %r", d)
        return CropResult(ClipOutcome.DISCARDED, original, None)

    if clipped.same_endpoints(original, tolerance):
        return CropResult(ClipOutcome.UNCHANGED, original, original, d)

    new_d = serialize([clipped.start, clipped.end], precision=precision)
    if container is None:
        element.set("d", new_d)
    else:
        container.set_path_data(path, new_d)
    log.debug("Cropped path %r -> %r", d, new_d)
    return CropResult(ClipOutcome.CLIPPED, original, clipped, new_d)


__all__ = ["crop_path", "clip_segment", "local_name", "require_path_element", "Boundary"]
