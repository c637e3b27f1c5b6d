from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from nsd.errors import TableReadError
from nsd.tables.schema import TABLES, TableSpec

Record = dict[str, Any]

_LOGGER = logging.getLogger("nsd.tables")


def read_table(path: Path) -> list[Record]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TableReadError(path, exc.strerror or str(exc)) from exc

    try:
        loaded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise TableReadError(path, f"invalid JSON: {exc}") from exc

    if not isinstance(loaded, list):
        raise TableReadError(path, f"expected a list of records, got {type(loaded).__name__}")
    for position, record in enumerate(loaded):
        if not isinstance(record, dict):
            raise TableReadError(path, f"entry {position} is not an object")
    return loaded


def _read_spec(meta_dir: Path, spec: TableSpec) -> list[Record]:
    path = meta_dir / spec.filename
    if not spec.required and not path.exists():
        _LOGGER.debug("optional table %s not present, using empty table", spec.filename)
        return []
    return read_table(path)


def read_tables(meta_dir: Path, max_workers: int = 1) -> dict[str, list[Record]]:
    """Read every table below ``meta_dir``.

    With ``max_workers > 1`` files are parsed on a thread pool. Results are
    collected in schema order, so the error raised is always the one of the
    first failing table in that order, whatever finished first.
    """
    if not meta_dir.is_dir():
        raise TableReadError(meta_dir, "version directory does not exist")

    if max_workers <= 1:
        return {spec.kind: _read_spec(meta_dir, spec) for spec in TABLES}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="nsd-table") as pool:
        futures = [(spec.kind, pool.submit(_read_spec, meta_dir, spec)) for spec in TABLES]
        return {kind: future.result() for kind, future in futures}
