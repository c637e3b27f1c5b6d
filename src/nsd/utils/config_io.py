from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import yaml

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


def _parse_yaml(text: str) -> dict[str, Any]:
    # an empty YAML document parses to None
    return yaml.safe_load(text) or {}


_PARSERS: dict[str, Callable[[str], dict[str, Any]]] = {
    ".json": json.loads,
    ".toml": tomllib.loads,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
}


def read_settings_file(path: Path) -> dict[str, Any]:
    """Parse one ``nsd.*`` settings file, picking the parser from its suffix."""
    parser = _PARSERS.get(path.suffix.lower())
    if parser is None:
        raise ValueError(f"unsupported settings file {path}: expected one of {sorted(_PARSERS)}")
    return parser(path.read_text(encoding="utf-8"))


def merge_settings(into: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    """Recursively apply ``layer`` on top of ``into``. Mutates and returns ``into``."""
    for key, value in layer.items():
        current = into.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merge_settings(current, value)
        else:
            into[key] = value
    return into


def casefold_keys(settings: Any) -> Any:
    # Dynaconf upper-cases keys; sections are matched lower-case
    if isinstance(settings, dict):
        return {str(key).lower(): casefold_keys(value) for key, value in settings.items()}
    if isinstance(settings, list):
        return [casefold_keys(item) for item in settings]
    return settings
