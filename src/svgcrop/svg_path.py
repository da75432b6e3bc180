from __future__ import annotations

import logging
import re
from typing import Iterable, List, Sequence, Tuple, Union

from .errors import MalformedToken, TypeMismatch, UnsupportedCommand
from .types import Vector2


log = logging.getLogger(__name__)


_FLOAT = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_OPERAND_RE = re.compile(r"\s*,?\s*(" + _FLOAT + r")")
# e/E right after a mantissa digit or dot is an exponent; any other letter opens a command
_COMMAND_RE = re.compile(
    r"([A-DF-Za-df-z]|(?<![\d.])[eE])((?:[^A-Za-z]|(?<=[\d.])[eE])*)"
)

_ARITY = {"M": 2, "L": 2, "H": 1, "V": 1}

MIN_PRECISION = 6
DEFAULT_PRECISION = 8

PathCommand = Tuple[str, List[float]]


def _split_commands(d: str) -> List[Tuple[str, str]]:
    text = d.strip()
    if not text:
        return []
    first = _COMMAND_RE.search(text)
    leading = text if first is None else text[: first.start()]
    if leading.strip():
        raise MalformedToken(leading.strip(), "operands before the first command letter")
    return [(m.group(1), m.group(2)) for m in _COMMAND_RE.finditer(text)]


def _read_operands(letter: str, body: str) -> List[float]:
    body = body.strip()
    values: List[float] = []
    pos = 0
    while pos < len(body):
        match = _OPERAND_RE.match(body, pos)
        if match is None:
            raise MalformedToken(f"{letter} {body}", "operands must be decimal numbers")
        values.append(float(match.group(1)))
        pos = match.end()
    return values


def tokenize(d: str) -> List[PathCommand]:
    """Split path data into ``(letter, operands)`` pairs.

    Every offending command letter is reported at once, before any operand
    is parsed, so a rejected path never yields a partial command list.
    """
    if not isinstance(d, str):
        raise TypeMismatch(f"Path data must be a string, got {type(d).__name__}")

    chunks = _split_commands(d)
    unsupported = [letter for letter, _ in chunks if letter not in _ARITY]
    if unsupported:
        raise UnsupportedCommand(unsupported)

    commands: List[PathCommand] = []
    for letter, body in chunks:
        values = _read_operands(letter, body)
        expected = _ARITY[letter]
        if len(values) != expected:
            raise MalformedToken(
                f"{letter} {body.strip()}".strip(),
                f"{letter} takes {expected} operand(s), got {len(values)}",
            )
        commands.append((letter, values))
    return commands


def parse(d: str) -> List[Vector2]:
    """Turn M/L/H/V path data into one vertex per command.

    ``H x`` yields ``(x, 0)`` and ``V y`` yields ``(0, y)``; neither is
    relative to the current point.
    """
    points: List[Vector2] = []
    for letter, values in tokenize(d):
        if letter in ("M", "L"):
            points.append(Vector2(values[0], values[1]))
        elif letter == "H":
            points.append(Vector2(values[0], 0.0))
        else:
            points.append(Vector2(0.0, values[0]))
    log.debug("Parsed %d vertices from %r", len(points), d)
    return points


def _format_number(value: float, precision: int) -> str:
    # + 0.0 folds -0.0 into 0.0
    return format(float(value) + 0.0, f".{precision}g")


def serialize(
    vertices: Iterable[Union[Vector2, Sequence[float]]],
    closed: bool = False,
    precision: int = DEFAULT_PRECISION,
) -> str:
    check_precision(precision)

    parts: List[str] = []
    for index, vertex in enumerate(vertices):
        v = Vector2.coerce(vertex)
        letter = "M" if index == 0 else "L"
        parts.append(f"{letter} {_format_number(v.x, precision)} {_format_number(v.y, precision)}")
    if not parts:
        return ""
    d = " ".join(parts)
    return d + " Z" if closed else d


def check_precision(precision: int) -> int:
    if precision < MIN_PRECISION:
        raise ValueError(f"precision must be at least {MIN_PRECISION} significant digits")
    return precision


__all__ = [
    "tokenize",
    "parse",
    "serialize",
    "check_precision",
    "PathCommand",
    "DEFAULT_PRECISION",
    "MIN_PRECISION",
]
