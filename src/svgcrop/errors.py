from __future__ import annotations

from typing import Iterable, Tuple


class SvgCropError(Exception):
    """Base class for everything raised by svgcrop."""


class PathSyntaxError(SvgCropError, ValueError):
    """Path data could not be turned into vertices."""


class UnsupportedCommand(PathSyntaxError):
    """Path data uses command letters other than M, L, H and V."""

    def __init__(self, letters: Iterable[str]) -> None:
        self.letters: Tuple[str, ...] = tuple(letters)
        super().__init__(
            "Unsupported path command(s): " + ",".join(self.letters)
        )


class MalformedToken(PathSyntaxError):
    def __init__(self, token: str, reason: str = "expected a command letter followed by its operands") -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"Malformed path token {token!r}: {reason}")


class TypeMismatch(SvgCropError, TypeError):
    """An argument is not the path-like or container-like value expected."""


class DegenerateBoundary(SvgCropError, ValueError):
    """Boundary has fewer than three vertices, no area, or inverted corners."""


__all__ = [
    "SvgCropError",
    "PathSyntaxError",
    "UnsupportedCommand",
    "MalformedToken",
    "TypeMismatch",
    "DegenerateBoundary",
]
