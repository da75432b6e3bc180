from __future__ import annotations

from pathlib import Path

import pytest

from svgcrop.config import (
    HARDCODED_DEFAULTS,
    deep_merge,
    load_config,
    load_config_with_defaults,
    parse_override,
    set_nested,
)


def test_defaults_are_copied():
    cfg = load_config_with_defaults()
    assert cfg == HARDCODED_DEFAULTS
    cfg["clip"]["algorithm"] = "box"
    assert HARDCODED_DEFAULTS["clip"]["algorithm"] == "convex"


def test_file_values_merge_over_defaults(tmp_path: Path):
    path = tmp_path / "crop.yaml"
    path.write_text("clip:\n  algorithm: box\nserialize:\n  precision: 10\n", encoding="utf-8")
    cfg = load_config_with_defaults(path)
    assert cfg["clip"] == {"algorithm": "box", "tolerance": 0.0}
    assert cfg["serialize"]["precision"] == 10
    assert cfg["batch"]["remove_background"] is True


def test_empty_file_gives_defaults(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config_with_defaults(path) == HARDCODED_DEFAULTS


def test_non_mapping_root(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_with_defaults(path)


def test_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_deep_merge_does_not_touch_inputs():
    base = {"a": {"b": 1, "c": [1, 2]}, "d": 3}
    merged = deep_merge(base, {"a": {"b": 5}, "e": 6})
    assert merged == {"a": {"b": 5, "c": [1, 2]}, "d": 3, "e": 6}
    assert base["a"]["b"] == 1


def test_set_nested_creates_levels():
    cfg: dict = {"clip": 1}
    set_nested(cfg, ("clip", "tolerance"), 0.5)
    set_nested(cfg, ("canvas", "width"), 10)
    assert cfg == {"clip": {"tolerance": 0.5}, "canvas": {"width": 10}}


@pytest.mark.parametrize(
    "entry, expected",
    [
        ("clip.tolerance=0.001", (("clip", "tolerance"), 0.001)),
        ("batch.continue_on_error=true", (("batch", "continue_on_error"), True)),
        ("clip.algorithm=box", (("clip", "algorithm"), "box")),
        (" canvas . width = 640", (("canvas", "width"), 640)),
    ],
)
def test_parse_override(entry, expected):
    assert parse_override(entry) == expected


@pytest.mark.parametrize("entry", ["clip.tolerance", "=1", ". =2", "clip.algorithm=[box"])
def test_parse_override_errors(entry):
    with pytest.raises(ValueError):
        parse_override(entry)
