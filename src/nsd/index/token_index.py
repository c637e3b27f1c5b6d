from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from nsd.errors import DanglingReference, DuplicateToken, InvalidField, NotFound
from nsd.tables.schema import (
    CALIBRATED_SENSOR,
    EGO_POSE,
    MANY,
    MAP,
    OPTIONAL,
    SAMPLE,
    SAMPLE_ANNOTATION,
    SAMPLE_DATA,
    SCENE,
    TABLES,
    ForeignKey,
    token_or_none,
)

Record = Mapping[str, Any]

SCENES_BY_LOG = "scenes_by_log"
MAPS_BY_LOG = "maps_by_log"
SAMPLES_BY_SCENE = "samples_by_scene"
ANNOTATIONS_BY_SAMPLE = "annotations_by_sample"
SAMPLE_DATA_BY_SAMPLE = "sample_data_by_sample"
ANNOTATIONS_BY_INSTANCE = "annotations_by_instance"
CALIBRATED_SENSORS_BY_SENSOR = "calibrated_sensors_by_sensor"
SAMPLE_DATA_BY_STREAM = "sample_data_by_stream"

TIMESTAMPED_KINDS = (EGO_POSE, SAMPLE, SAMPLE_DATA)

_LOGGER = logging.getLogger("nsd.index")


@dataclass(frozen=True)
class StreamKey:
    """A sensor stream: one calibrated sensor recording within one scene."""

    calibrated_sensor_token: str
    scene_token: str

    def __str__(self) -> str:
        return f"{self.calibrated_sensor_token}@{self.scene_token}"


class TokenIndex:
    """Token to record maps per kind plus the one-to-many grouping indices."""

    def __init__(
        self,
        records: dict[str, dict[str, Record]],
        groups: dict[str, dict[Hashable, tuple[str, ...]]],
    ) -> None:
        self._records = records
        self._groups = groups

    def get(self, kind: str, token: str) -> Record:
        try:
            return self._records[kind][token]
        except KeyError:
            raise NotFound(kind, token) from None

    def contains(self, kind: str, token: str) -> bool:
        return token in self._records.get(kind, {})

    def tokens(self, kind: str) -> tuple[str, ...]:
        # dicts keep insertion order, which is table order
        return tuple(self._records[kind])

    def count(self, kind: str) -> int:
        return len(self._records[kind])

    def group(self, name: str, parent: Hashable) -> tuple[str, ...]:
        return self._groups[name].get(parent, ())

    def group_keys(self, name: str) -> tuple[Hashable, ...]:
        return tuple(self._groups[name])

    def kinds(self) -> tuple[str, ...]:
        return tuple(self._records)


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    return value


def _index_records(tables: Mapping[str, list[dict[str, Any]]]) -> dict[str, dict[str, Record]]:
    records: dict[str, dict[str, Record]] = {}
    for spec in TABLES:
        by_token: dict[str, Record] = {}
        for raw in tables.get(spec.kind, []):
            token = token_or_none(raw.get("token"))
            if token is None:
                raise DuplicateToken(spec.kind, "")
            if token in by_token:
                raise DuplicateToken(spec.kind, token)
            by_token[token] = _freeze(raw)
        records[spec.kind] = by_token
    return records


def _check_timestamps(records: dict[str, dict[str, Record]]) -> None:
    # chain walks and the by-time orderings compare these as integers
    for kind in TIMESTAMPED_KINDS:
        for token, record in records[kind].items():
            value = record.get("timestamp")
            if value is None:
                raise InvalidField(kind, token, "timestamp", "is missing")
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidField(kind, token, "timestamp", f"must be an integer, got {value!r}")


def _referenced_tokens(kind: str, token: str, record: Record, fk: ForeignKey) -> list[str]:
    value = record.get(fk.field)
    if fk.cardinality == MANY:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise DanglingReference(kind, token, fk.field, str(value))
        return [str(item) for item in value]

    referenced = token_or_none(value)
    if referenced is None:
        if fk.cardinality == OPTIONAL:
            return []
        raise DanglingReference(kind, token, fk.field, "")
    return [referenced]


def _check_foreign_keys(records: dict[str, dict[str, Record]]) -> None:
    for spec in TABLES:
        for token, record in records[spec.kind].items():
            for fk in spec.foreign_keys:
                targets = records[fk.target]
                for referenced in _referenced_tokens(spec.kind, token, record, fk):
                    if referenced not in targets:
                        raise DanglingReference(spec.kind, token, fk.field, referenced)


def _group_by(
    records: dict[str, Record],
    key_of,
) -> dict[Hashable, tuple[str, ...]]:
    grouped: dict[Hashable, list[str]] = defaultdict(list)
    for token, record in records.items():
        for key in key_of(record):
            grouped[key].append(token)
    return {key: tuple(children) for key, children in grouped.items()}


def stream_key(record: Record, samples: Mapping[str, Record]) -> StreamKey:
    sample = samples[str(record["sample_token"])]
    return StreamKey(str(record["calibrated_sensor_token"]), str(sample["scene_token"]))


def _build_groups(records: dict[str, dict[str, Record]]) -> dict[str, dict[Hashable, tuple[str, ...]]]:
    samples = records[SAMPLE]

    def one(field: str):
        return lambda record: (str(record[field]),)

    return {
        SCENES_BY_LOG: _group_by(records[SCENE], one("log_token")),
        MAPS_BY_LOG: _group_by(
            records[MAP], lambda record: [str(t) for t in record.get("log_tokens") or ()]
        ),
        SAMPLES_BY_SCENE: _group_by(samples, one("scene_token")),
        ANNOTATIONS_BY_SAMPLE: _group_by(records[SAMPLE_ANNOTATION], one("sample_token")),
        SAMPLE_DATA_BY_SAMPLE: _group_by(records[SAMPLE_DATA], one("sample_token")),
        ANNOTATIONS_BY_INSTANCE: _group_by(records[SAMPLE_ANNOTATION], one("instance_token")),
        CALIBRATED_SENSORS_BY_SENSOR: _group_by(records[CALIBRATED_SENSOR], one("sensor_token")),
        SAMPLE_DATA_BY_STREAM: _group_by(
            records[SAMPLE_DATA], lambda record: (stream_key(record, samples),)
        ),
    }


def build_token_index(tables: Mapping[str, list[dict[str, Any]]]) -> TokenIndex:
    """Index raw table records and resolve every foreign key.

    Tables are scanned in schema order, records in table order and fields in
    declaration order; the first violation found is raised.
    """
    records = _index_records(tables)
    _check_foreign_keys(records)
    _check_timestamps(records)
    groups = _build_groups(records)
    _LOGGER.debug(
        "token index built: %s",
        ", ".join(f"{kind}={len(records[kind])}" for kind in records),
    )
    return TokenIndex(records, groups)

