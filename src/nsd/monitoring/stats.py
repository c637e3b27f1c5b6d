from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class LoadSnapshot:
    version: str
    phases: dict[str, float] = field(default_factory=dict)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_seconds(self) -> float:
        return sum(self.phases.values())


class LoadStats:
    """Wall-clock timings of the load phases (read, index, chains)."""

    def __init__(self, version: str) -> None:
        self._version = version
        self._phases: dict[str, float] = {}
        self._logger = logging.getLogger("nsd.stats")

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        started = time.monotonic()
        try:
            yield
        finally:
            self._phases[name] = time.monotonic() - started

    def snapshot(self, counts: dict[str, int] | None = None) -> LoadSnapshot:
        return LoadSnapshot(
            version=self._version,
            phases=dict(self._phases),
            counts=dict(counts or {}),
        )

    def emit(self, counts: dict[str, int]) -> LoadSnapshot:
        snapshot = self.snapshot(counts)
        self._logger.info(
            "loaded version=%s total=%.3fs %s scenes=%d samples=%d sample_data=%d annotations=%d",
            snapshot.version,
            snapshot.total_seconds,
            " ".join(f"{name}={seconds:.3f}s" for name, seconds in snapshot.phases.items()),
            counts.get("scene", 0),
            counts.get("sample", 0),
            counts.get("sample_data", 0),
            counts.get("sample_annotation", 0),
            extra={"context": {"version": snapshot.version, "phases": snapshot.phases, "counts": snapshot.counts}},
        )
        return snapshot
