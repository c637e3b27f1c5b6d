from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DatasetConfig:
    root: str | None = None
    version: str = "v1.0-mini"
    check: bool = True
    max_workers: int = 1


@dataclass
class MonitoringConfig:
    json_logs: bool = False
    log_level: str = "INFO"
    load_stats: bool = True


@dataclass
class LoaderConfig:
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    def as_log_context(self) -> dict[str, Any]:
        return {
            "root": self.dataset.root,
            "version": self.dataset.version,
            "check": self.dataset.check,
            "max_workers": self.dataset.max_workers,
            "json_logs": self.monitoring.json_logs,
        }
