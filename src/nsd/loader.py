from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from nsd.config.models import DatasetConfig, LoaderConfig
from nsd.dataset import Dataset
from nsd.errors import DatasetValidationError
from nsd.index.chains import reconstruct_chains
from nsd.index.token_index import build_token_index
from nsd.monitoring.stats import LoadStats
from nsd.tables.reader import read_tables

_LOGGER = logging.getLogger("nsd.loader")


@dataclass(frozen=True)
class DatasetLoader:
    """Reads, indexes and validates one dataset version.

    The loader is stateless between calls: each ``load`` builds a fresh
    :class:`Dataset`, so several versions can be loaded side by side.
    """

    check: bool = True
    max_workers: int = 1
    log_stats: bool = True

    @classmethod
    def from_config(cls, config: LoaderConfig | DatasetConfig) -> "DatasetLoader":
        if isinstance(config, LoaderConfig):
            return cls(
                check=config.dataset.check,
                max_workers=config.dataset.max_workers,
                log_stats=config.monitoring.load_stats,
            )
        return cls(check=config.check, max_workers=config.max_workers)

    def load(self, version: str, root: str | Path) -> Dataset:
        root_path = Path(root).expanduser()
        meta_dir = root_path / version
        stats = LoadStats(version)

        _LOGGER.info("loading %s from %s", version, root_path)
        with stats.phase("read"):
            tables = read_tables(meta_dir, max_workers=self.max_workers)
        _LOGGER.debug(
            "tables read: %s",
            " ".join(f"{kind}={len(records)}" for kind, records in tables.items()),
        )

        try:
            with stats.phase("index"):
                index = build_token_index(tables)
            with stats.phase("chains"):
                chains = reconstruct_chains(index, check=self.check)
        except DatasetValidationError as exc:
            _LOGGER.error("dataset %s failed validation: %s", version, exc)
            raise

        dataset = Dataset(version, root_path, index, chains)
        if self.log_stats:
            stats.emit(dataset.summary())
        return dataset


def load(version: str, root: str | Path, *, check: bool = True, max_workers: int = 1) -> Dataset:
    """Load ``root/version`` into a validated :class:`Dataset`."""
    return DatasetLoader(check=check, max_workers=max_workers).load(version, root)


def load_from_config(config: LoaderConfig) -> Dataset:
    if not config.dataset.root:
        raise ValueError("dataset.root is not configured")
    _LOGGER.debug("loading from config", extra={"context": config.as_log_context()})
    return DatasetLoader.from_config(config).load(config.dataset.version, config.dataset.root)
