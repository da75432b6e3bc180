from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Protocol, Tuple, Union, runtime_checkable

from lxml import etree as ET

from .crop import Boundary, crop_path, local_name, require_path_element
from .errors import DegenerateBoundary, SvgCropError, TypeMismatch
from .geom import AxisAlignedBox, canvas_boundary
from .metrics import MetricsTracker, Timer
from .svg_path import DEFAULT_PRECISION, check_precision
from .types import ClipOutcome, Summary


log = logging.getLogger(__name__)


_FLOAT_RE = re.compile(r"[-+]?(?:\d*\.\d+|\d+)(?:[eE][-+]?\d+)?")

ALGORITHMS = ("convex", "box")


def _parse_length(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    value = value.strip()
    if not value or value.endswith("%"):
        return None
    match = _FLOAT_RE.match(value)
    if not match:
        return None
    return float(match.group(0))


def _parse_viewbox_size(value: Optional[str]) -> Optional[Tuple[float, float]]:
    if not value:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        return float(parts[2]), float(parts[3])
    except ValueError:
        return None


@runtime_checkable
class PathContainer(Protocol):
    """What the batch processor needs from a host document."""

    def canvas_size(self) -> Tuple[float, float]: ...

    def path_nodes(self) -> List[Any]: ...

    def get_path_data(self, node: Any) -> Optional[str]: ...

    def set_path_data(self, node: Any, d: str) -> None: ...

    def remove(self, node: Any) -> None: ...

    def background_rect(self) -> Optional[Tuple[Any, Optional[float], Optional[float]]]: ...


class SvgDocument:
    """:class:`PathContainer` over an lxml SVG tree."""

    def __init__(
        self,
        root: ET._Element,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> None:
        if not isinstance(root, ET._Element):
            raise TypeMismatch(f"Expected an lxml element, got {type(root).__name__}")
        self.root = root
        self._width = width
        self._height = height

    @classmethod
    def from_string(cls, text: Union[str, bytes], **kwargs: Any) -> "SvgDocument":
        if isinstance(text, str):
            text = text.encode("utf-8")
        parser = ET.XMLParser(huge_tree=True, remove_blank_text=False)
        return cls(ET.fromstring(text, parser=parser), **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> "SvgDocument":
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"SVG not found: {p}")
        parser = ET.XMLParser(huge_tree=True, remove_blank_text=False)
        tree = ET.parse(str(p), parser=parser)
        return cls(tree.getroot(), **kwargs)

    def canvas_size(self) -> Tuple[float, float]:
        width = self._width if self._width is not None else _parse_length(self.root.get("width"))
        height = self._height if self._height is not None else _parse_length(self.root.get("height"))
        if width is None or height is None:
            vb = _parse_viewbox_size(self.root.get("viewBox"))
            if vb is not None:
                width = vb[0] if width is None else width
                height = vb[1] if height is None else height
        if width is None or height is None:
            raise DegenerateBoundary("Canvas size unknown: no width/height or viewBox on the document")
        return float(width), float(height)

    def path_nodes(self) -> List[ET._Element]:
        return [node for node in self.root.iter() if local_name(node) == "path"]

    def get_path_data(self, node: ET._Element) -> Optional[str]:
        return require_path_element(node).get("d")

    def set_path_data(self, node: ET._Element, d: str) -> None:
        require_path_element(node).set("d", d)

    def remove(self, node: ET._Element) -> None:
        if not isinstance(node, ET._Element):
            raise TypeMismatch(f"Expected an lxml element, got {type(node).__name__}")
        parent = node.getparent()
        if parent is not None:
            parent.remove(node)

    def background_rect(self) -> Optional[Tuple[ET._Element, Optional[float], Optional[float]]]:
        group = next((child for child in self.root if local_name(child) == "g"), None)
        if group is None:
            return None
        first = next((child for child in group if isinstance(child.tag, str)), None)
        if first is None or local_name(first) != "rect":
            return None
        return first, _parse_length(first.get("width")), _parse_length(first.get("height"))

    def to_string(self) -> bytes:
        return ET.tostring(self.root.getroottree(), xml_declaration=True, encoding="UTF-8")

    def write(self, path: Union[str, Path]) -> None:
        with open(path, "wb") as f:
            f.write(self.to_string())


def as_container(container: Any) -> PathContainer:
    if isinstance(container, ET._ElementTree):
        return SvgDocument(container.getroot())
    if isinstance(container, ET._Element):
        return SvgDocument(container)
    if isinstance(container, PathContainer):
        return container
    raise TypeMismatch(f"Expected an SVG document or path container, got {type(container).__name__}")


def remove_background_rect(container: Any) -> bool:
    """Drop the canvas-sized background rect a sketch renderer puts first.

    Safe to call repeatedly; returns whether a rect was removed.
    """
    doc = as_container(container)
    found = doc.background_rect()
    if found is None:
        log.info("No background rect found to remove")
        return False
    node, width, height = found
    try:
        canvas_w, canvas_h = doc.canvas_size()
    except DegenerateBoundary as exc:
        log.debug("Keeping first rect, canvas size unknown: %s", exc)
        return False
    if width != canvas_w or height != canvas_h:
        log.debug(
            "First rect is %sx%s, canvas is %sx%s; keeping it", width, height, canvas_w, canvas_h
        )
        return False
    doc.remove(node)
    log.info("Background rect removed from SVG document")
    return True


def default_boundary(container: PathContainer, algorithm: str = "convex") -> Boundary:
    width, height = container.canvas_size()
    if algorithm == "box":
        return AxisAlignedBox.from_corners((0.0, 0.0), (width, height))
    return canvas_boundary(width, height)


def process_document(
    container: Any,
    boundary: Optional[Boundary] = None,
    *,
    algorithm: str = "convex",
    remove_background: bool = True,
    continue_on_error: bool = False,
    tolerance: float = 0.0,
    precision: int = DEFAULT_PRECISION,
    tracker: Optional[MetricsTracker] = None,
) -> Summary:
    """Crop every path of *container* to *boundary* (the canvas by default).

    Stops at the first path that fails to parse unless *continue_on_error*
    is set; paths handled before the failure keep their changes.
    """
    if algorithm not in ALGORITHMS:
        raise ValueError(f"Unknown clipping algorithm {algorithm!r}; expected one of {ALGORITHMS}")
    check_precision(precision)
    doc = as_container(container)

    with Timer("crop.batch", tracker=tracker, logger=log):
        background_removed = remove_background_rect(doc) if remove_background else False
        if boundary is None:
            boundary = default_boundary(doc, algorithm)

        nodes = list(doc.path_nodes())
        discarded = clipped = unchanged = failed = 0
        errors: List[str] = []
        for index, node in enumerate(nodes):
            try:
                result = crop_path(
                    node,
                    boundary,
                    container=doc,
                    tolerance=tolerance,
                    precision=precision,
                )
            except SvgCropError as exc:
                if not continue_on_error:
                    raise
                failed += 1
                errors.append(f"path {index}: {exc}")
                log.warning("Skipping path %d: %s", index, exc)
                continue
            if result.outcome is ClipOutcome.DISCARDED:
                discarded += 1
            elif result.outcome is ClipOutcome.CLIPPED:
                clipped += 1
            else:
                unchanged += 1

    summary = Summary(
        processed=len(nodes),
        discarded=discarded,
        clipped=clipped,
        unchanged=unchanged,
        failed=failed,
        background_removed=background_removed,
        errors=tuple(errors),
    )
    if tracker is not None:
        tracker.increment("paths.processed", summary.processed)
        tracker.increment("paths.discarded", summary.discarded)
        tracker.increment("paths.clipped", summary.clipped)
        tracker.increment("paths.failed", summary.failed)
    log.info(
        "Paths cropped to canvas: %d to process, %d discarded, %d cropped, %d exported",
        summary.processed,
        summary.discarded,
        summary.clipped,
        summary.exported,
    )
    return summary


__all__ = [
    "PathContainer",
    "SvgDocument",
    "as_container",
    "remove_background_rect",
    "default_boundary",
    "process_document",
    "ALGORITHMS",
]
