from __future__ import annotations

import logging
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
import yaml
from lxml import etree as ET
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from .config import load_config_with_defaults, parse_override, set_nested
from .document import ALGORITHMS, SvgDocument, process_document
from .errors import SvgCropError
from .metrics import MetricsTracker
from .svg_path import DEFAULT_PRECISION, check_precision
from .types import Summary


class Logger:
    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose
        theme = Theme({
            "info": "cyan",
            "step": "bold cyan",
            "warning": "bold yellow",
            "error": "bold red",
        })
        self.console = Console(theme=theme, highlight=False, record=False)
        self.err_console = Console(theme=theme, highlight=False, record=False, stderr=True)

    def _print(self, message: str, style: str | None = None, *, err: bool = False) -> None:
        target = self.err_console if err else self.console
        if style:
            target.print(f"[{style}]{message}[/{style}]")
        else:
            target.print(message)

    def info(self, message: str) -> None:
        self._print(message, style="info")

    def step(self, message: str) -> None:
        self.console.print(f"[step]▶ {message}")

    def warn(self, message: str) -> None:
        self._print(message, style="warning")

    def error(self, message: str) -> None:
        self._print(message, style="error", err=True)

    def debug(self, message: str) -> None:
        if self.verbose:
            self.console.print(f"[dim]{message}[/dim]")


class _LoggingBridge(logging.Handler):
    def __init__(self, cli_logger: Logger, level: int) -> None:
        super().__init__(level)
        self._cli_logger = cli_logger

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        msg = self.format(record)
        if record.levelno >= logging.ERROR:
            self._cli_logger.error(msg)
        elif record.levelno >= logging.WARNING:
            self._cli_logger.warn(msg)
        elif record.levelno >= logging.INFO:
            self._cli_logger.info(msg)
        else:
            self._cli_logger.debug(msg)


def _install_bridge(logger: Logger, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    package_logger = logging.getLogger("svgcrop")
    package_logger.setLevel(log_level)
    package_logger.propagate = False
    for handler in list(package_logger.handlers):
        if isinstance(handler, _LoggingBridge):
            package_logger.removeHandler(handler)
    bridge = _LoggingBridge(logger, log_level)
    bridge.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(bridge)


def _default_output(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}-cropped{input_path.suffix or '.svg'}")


def _summarize(logger: Logger, summary: Summary, output: Path, tracker: MetricsTracker) -> None:
    logger.console.rule("Crop Summary")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Paths")
    table.add_column("Count", justify="right")
    rows: List[Tuple[str, int]] = [
        ("processed", summary.processed),
        ("discarded", summary.discarded),
        ("clipped", summary.clipped),
        ("unchanged", summary.unchanged),
        ("exported", summary.exported),
    ]
    if summary.failed:
        rows.append(("failed", summary.failed))
    for label, count in rows:
        table.add_row(label, str(count))
    logger.console.print(table)
    if summary.background_removed:
        logger.console.print("Background rect removed")
    logger.console.print(f"Output: {output}")
    for line in tracker.report():
        logger.debug(f"metrics: {line}")
    if summary.errors:
        logger.console.print("Skipped paths:", style="warning")
        for item in summary.errors:
            logger.console.print(f"  - {item}", style="warning")


def _handle_known_exception(logger: Logger, exc: Exception, *, prefix: str | None = None) -> None:
    message = str(exc) if str(exc) else exc.__class__.__name__
    if prefix:
        message = f"{prefix}: {message}"
    logger.error(message)


app = typer.Typer(help="Crop SVG line paths to the canvas boundary")


@app.command("crop")
def crop(
    input_svg: Path = typer.Argument(..., exists=True, readable=True, resolve_path=True, help="SVG file to crop"),
    output: Optional[Path] = typer.Argument(
        None,
        resolve_path=True,
        help="Output SVG (default: <input>-cropped.svg)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        resolve_path=True,
        help="YAML configuration file",
    ),
    algorithm: Optional[str] = typer.Option(
        None,
        "--algorithm",
        help="Clipping algorithm: convex (Cyrus-Beck) or box (Liang-Barsky)",
    ),
    width: Optional[float] = typer.Option(None, "--width", help="Canvas width override"),
    height: Optional[float] = typer.Option(None, "--height", help="Canvas height override"),
    tolerance: Optional[float] = typer.Option(
        None,
        "--tolerance",
        min=0.0,
        help="Absolute tolerance for unchanged/collapsed checks (0 = exact)",
    ),
    precision: Optional[int] = typer.Option(
        None,
        "--precision",
        min=6,
        help="Significant digits for rewritten coordinates",
    ),
    keep_background: bool = typer.Option(
        False,
        "--keep-background",
        help="Do not remove the canvas-sized background rect",
    ),
    continue_on_error: bool = typer.Option(
        False,
        "--continue-on-error",
        help="Skip paths that fail to parse instead of aborting",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    opts: List[str] = typer.Option(
        [],
        "--opts",
        help="Override config values, e.g. --opts clip.tolerance=0.001",
        show_default=False,
        metavar="PATH=VALUE",
    ),
) -> None:
    logger = Logger(verbose=verbose)
    _install_bridge(logger, verbose)
    tracker = MetricsTracker()

    try:
        logger.step("Loading configuration")
        try:
            cfg = load_config_with_defaults(config)
        except yaml.YAMLError as exc:
            raise ValueError(f"Configuration could not be read: {exc}") from exc

        overrides: List[Tuple[Tuple[str, ...], Any]] = [
            (("clip", "algorithm"), algorithm),
            (("clip", "tolerance"), tolerance),
            (("serialize", "precision"), precision),
            (("canvas", "width"), width),
            (("canvas", "height"), height),
            (("batch", "remove_background"), False if keep_background else None),
            (("batch", "continue_on_error"), True if continue_on_error else None),
        ]
        for entry in opts:
            overrides.append(parse_override(entry))
        for path, value in overrides:
            if value is None:
                continue
            set_nested(cfg, path, value)

        clip_cfg: Dict[str, Any] = cfg.get("clip", {})
        batch_cfg: Dict[str, Any] = cfg.get("batch", {})
        canvas_cfg: Dict[str, Any] = cfg.get("canvas", {})
        algo = str(clip_cfg.get("algorithm", "convex")).lower()
        if algo not in ALGORITHMS:
            raise ValueError(f"--algorithm must be one of {', '.join(ALGORITHMS)}")
        digits = check_precision(int(cfg.get("serialize", {}).get("precision", DEFAULT_PRECISION)))

        logger.step(f"Reading {input_svg}")
        doc = SvgDocument.from_file(
            input_svg,
            width=canvas_cfg.get("width"),
            height=canvas_cfg.get("height"),
        )
        canvas_w, canvas_h = doc.canvas_size()
        logger.debug(f"Canvas {canvas_w:g}x{canvas_h:g}, algorithm={algo}")

        logger.step("Cropping paths")
        summary = process_document(
            doc,
            algorithm=algo,
            remove_background=bool(batch_cfg.get("remove_background", True)),
            continue_on_error=bool(batch_cfg.get("continue_on_error", False)),
            tolerance=float(clip_cfg.get("tolerance", 0.0) or 0.0),
            precision=digits,
            tracker=tracker,
        )

        out_path = output or _default_output(input_svg)
        doc.write(out_path)
        _summarize(logger, summary, out_path, tracker)
    except (SvgCropError, FileNotFoundError, ValueError, ET.XMLSyntaxError) as exc:
        _handle_known_exception(logger, exc, prefix="Error")
        raise typer.Exit(code=2) from exc
    except Exception as exc:  # pragma: no cover - fallback path
        _handle_known_exception(logger, exc, prefix="Unexpected error")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from exc


def main() -> None:
    app()


if __name__ == "__main__":
    main()
