from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Sequence, Tuple

import yaml


HARDCODED_DEFAULTS: Dict[str, Any] = {
    "clip": {
        "algorithm": "convex",
        "tolerance": 0.0,
    },
    "batch": {
        "remove_background": True,
        "continue_on_error": False,
    },
    "serialize": {"precision": 8},
    "canvas": {"width": None, "height": None},
}


def load_config(path: str) -> dict:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    return yaml.safe_load(p.read_text(encoding="utf-8"))


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key in base:
        value = base[key]
        if isinstance(value, Mapping):
            result[key] = copy.deepcopy(value)
        elif isinstance(value, list):
            result[key] = list(value)
        else:
            result[key] = value
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = deep_merge(result[key], value)  # type: ignore[arg-type]
        else:
            result[key] = value
    return result


def set_nested(config: MutableMapping[str, Any], path: Sequence[str], value: Any) -> None:
    if not path:
        return
    cursor: MutableMapping[str, Any] = config
    for key in path[:-1]:
        next_value = cursor.get(key)
        if not isinstance(next_value, MutableMapping):
            next_value = {}
            cursor[key] = next_value
        cursor = next_value
    cursor[path[-1]] = value


def parse_override(entry: str) -> Tuple[Tuple[str, ...], Any]:
    """Split ``clip.tolerance=0.01`` into a key path and a YAML-parsed value."""
    if "=" not in entry:
        raise ValueError("--opts expects 'path=value'")
    raw_path, raw_value = entry.split("=", 1)
    path = tuple(part.strip() for part in raw_path.split(".") if part.strip())
    if not path:
        raise ValueError("--opts needs a key path, e.g. clip.tolerance")
    try:
        value = yaml.safe_load(raw_value)
    except yaml.YAMLError as exc:
        raise ValueError(f"--opts {raw_path}: value could not be parsed ({exc})") from exc
    return path, value


def load_config_with_defaults(path: Optional[Path] = None) -> Dict[str, Any]:
    if path is None:
        return copy.deepcopy(HARDCODED_DEFAULTS)
    loaded = load_config(str(path))
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, MutableMapping):
        raise ValueError("Config root must be a mapping")
    return deep_merge(HARDCODED_DEFAULTS, loaded)
