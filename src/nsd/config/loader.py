from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from nsd.config.defaults import DEFAULT_CONFIG
from nsd.config.models import DatasetConfig, LoaderConfig, MonitoringConfig
from nsd.utils.config_io import casefold_keys, merge_settings, read_settings_file

CONFIG_FILE_NAMES = ("nsd.toml", "nsd.yaml", "nsd.yml", "nsd.json")


def _load_with_dynaconf(config_paths: list[Path]) -> dict[str, Any]:
    try:
        from dynaconf import Dynaconf
    except ImportError:
        return {}

    settings = Dynaconf(
        envvar_prefix="NSD",
        settings_files=[str(path) for path in config_paths if path.exists()],
        merge_enabled=True,
        environments=False,
        load_dotenv=False,
    )
    return casefold_keys(settings.as_dict())


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _resolve_relative(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    p = Path(path_value).expanduser()
    if p.is_absolute():
        return str(p)
    return str((base_dir / p).resolve())


def _normalize(data: dict[str, Any], base_dir: Path) -> LoaderConfig:
    dataset_data = data.get("dataset", {})
    monitoring_data = data.get("monitoring", {})

    return LoaderConfig(
        dataset=DatasetConfig(
            root=_resolve_relative(dataset_data.get("root"), base_dir),
            version=str(dataset_data.get("version", "v1.0-mini")),
            check=_coerce_bool(dataset_data.get("check", True)),
            max_workers=max(1, int(dataset_data.get("max_workers", 1))),
        ),
        monitoring=MonitoringConfig(
            json_logs=_coerce_bool(monitoring_data.get("json_logs", False)),
            log_level=str(monitoring_data.get("log_level", "INFO")).upper(),
            load_stats=_coerce_bool(monitoring_data.get("load_stats", True)),
        ),
    )


def _default_config_copy() -> dict[str, Any]:
    return json.loads(json.dumps(DEFAULT_CONFIG))


def load_loader_config(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
    base_dir: Path | None = None,
) -> LoaderConfig:
    """Defaults, then config file(s) or Dynaconf (``NSD_`` env vars), then overrides."""
    base_dir = base_dir or Path.cwd()

    config_paths: list[Path] = []
    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        config_paths.append(Path(config_path))
    else:
        for name in CONFIG_FILE_NAMES:
            candidate = base_dir / name
            if candidate.exists():
                config_paths.append(candidate)

    merged = _default_config_copy()

    dynaconf_data = _load_with_dynaconf(config_paths)
    if dynaconf_data:
        merge_settings(merged, dynaconf_data)
    else:
        for path in config_paths:
            merge_settings(merged, casefold_keys(read_settings_file(path)))

    if overrides:
        merge_settings(merged, casefold_keys(overrides))

    return _normalize(merged, base_dir)


def loader_config_to_dict(config: LoaderConfig) -> dict[str, Any]:
    return asdict(config)
