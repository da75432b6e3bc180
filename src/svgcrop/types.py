from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import TypeMismatch


@dataclass(frozen=True)
class Vector2:
    """Plain 2D coordinate; ``z`` is carried along but never clipped."""

    x: float
    y: float
    z: Optional[float] = None

    @classmethod
    def coerce(cls, value: Any) -> "Vector2":
        if isinstance(value, Vector2):
            return value
        if isinstance(value, (str, bytes)) or not hasattr(value, "__len__"):
            raise TypeMismatch(f"Expected a vector or (x, y) pair, got {value!r}")
        if len(value) not in (2, 3):
            raise TypeMismatch(f"Expected 2 or 3 coordinates, got {len(value)}")
        try:
            coords = [float(v) for v in value]
        except (TypeError, ValueError) as exc:
            raise TypeMismatch(f"Non-numeric coordinate in {value!r}") from exc
        return cls(*coords)

    def __sub__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x - other.x, self.y - other.y)

    def __add__(self, other: "Vector2") -> "Vector2":
        return Vector2(self.x + other.x, self.y + other.y)

    def dot(self, other: "Vector2") -> float:
        return self.x * other.x + self.y * other.y

    def is_close(self, other: "Vector2", tol: float = 0.0) -> bool:
        # tol == 0 keeps exact comparison; z is ignored here
        if tol <= 0.0:
            return self.x == other.x and self.y == other.y
        return abs(self.x - other.x) <= tol and abs(self.y - other.y) <= tol

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Segment:
    start: Vector2
    end: Vector2

    @classmethod
    def from_coords(cls, x1: float, y1: float, x2: float, y2: float) -> "Segment":
        return cls(Vector2(float(x1), float(y1)), Vector2(float(x2), float(y2)))

    @property
    def direction(self) -> Vector2:
        return self.end - self.start

    def point_at(self, t: float) -> Vector2:
        if t == 0.0:
            return Vector2(self.start.x, self.start.y)
        if t == 1.0:
            return Vector2(self.end.x, self.end.y)
        d = self.direction
        return Vector2(self.start.x + d.x * t, self.start.y + d.y * t)

    def is_degenerate(self, tol: float = 0.0) -> bool:
        return self.start.is_close(self.end, tol)

    def same_endpoints(self, other: "Segment", tol: float = 0.0) -> bool:
        return self.start.is_close(other.start, tol) and self.end.is_close(other.end, tol)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.start.x, self.start.y, self.end.x, self.end.y)


class ClipOutcome(str, Enum):
    UNCHANGED = "unchanged"
    CLIPPED = "clipped"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class CropResult:
    outcome: ClipOutcome
    original: Segment
    clipped: Optional[Segment]
    path_data: Optional[str] = None


@dataclass(frozen=True)
class Summary:
    """Tallies of one batch run over a document."""

    processed: int
    discarded: int
    clipped: int
    unchanged: int = 0
    failed: int = 0
    background_removed: bool = False
    errors: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def exported(self) -> int:
        return self.processed - self.discarded

    def as_dict(self) -> Dict[str, int]:
        return {
            "processed": self.processed,
            "discarded": self.discarded,
            "clipped": self.clipped,
            "exported": self.exported,
        }


__all__ = ["Vector2", "Segment", "ClipOutcome", "CropResult", "Summary"]
