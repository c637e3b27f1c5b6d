from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar, overload

from nsd.index.token_index import (
    ANNOTATIONS_BY_SAMPLE,
    CALIBRATED_SENSORS_BY_SENSOR,
    MAPS_BY_LOG,
    SAMPLE_DATA_BY_SAMPLE,
    SCENES_BY_LOG,
    StreamKey,
)
from nsd.payload.factory import load_payload
from nsd.tables import schema
from nsd.tables.schema import token_or_none
from nsd.types import Payload

if TYPE_CHECKING:
    from nsd.dataset import Dataset

V = TypeVar("V", bound="EntityView")


def _timestamp_to_datetime(timestamp_us: int) -> datetime:
    return datetime.fromtimestamp(timestamp_us / 1_000_000, tz=timezone.utc)


class EntityView:
    """Non-owning handle: the owning dataset plus one token.

    Every field and relation is resolved through the dataset at access time.
    """

    kind: ClassVar[str] = ""
    __slots__ = ("_dataset", "token")

    def __init__(self, dataset: Dataset, token: str) -> None:
        self._dataset = dataset
        self.token = token

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def record(self) -> Mapping[str, Any]:
        return self._dataset.index.get(self.kind, self.token)

    def _field(self, name: str, default: Any = None) -> Any:
        return self.record.get(name, default)

    def _one(self, view_type: type[V], field: str) -> V:
        return self._dataset.view(view_type, str(self.record[field]))

    def _maybe(self, view_type: type[V], field: str) -> V | None:
        token = token_or_none(self.record.get(field))
        if token is None:
            return None
        return self._dataset.view(view_type, token)

    def _many(self, view_type: type[V], tokens: Sequence[str]) -> TokenSequence[V]:
        return TokenSequence(self._dataset, view_type, tuple(tokens))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityView):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.token == other.token
            and self._dataset is other._dataset
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.token, id(self._dataset)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(token={self.token!r})"


class TokenSequence(Sequence[V], Generic[V]):
    """Lazy, finite and restartable sequence of views over a fixed token order."""

    __slots__ = ("_dataset", "_view_type", "_tokens")

    def __init__(self, dataset: Dataset, view_type: type[V], tokens: tuple[str, ...]) -> None:
        self._dataset = dataset
        self._view_type = view_type
        self._tokens = tokens

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    @overload
    def __getitem__(self, index: int) -> V: ...

    @overload
    def __getitem__(self, index: slice) -> TokenSequence[V]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return TokenSequence(self._dataset, self._view_type, self._tokens[index])
        return self._dataset.view(self._view_type, self._tokens[index])

    def __iter__(self):
        for token in self._tokens:
            yield self._dataset.view(self._view_type, token)

    def __repr__(self) -> str:
        return f"TokenSequence({self._view_type.__name__}, n={len(self._tokens)})"


class AttributeView(EntityView):
    kind = schema.ATTRIBUTE
    __slots__ = ()

    @property
    def name(self) -> str:
        return str(self._field("name", ""))

    @property
    def description(self) -> str:
        return str(self._field("description", ""))


class VisibilityView(EntityView):
    kind = schema.VISIBILITY
    __slots__ = ()

    @property
    def level(self) -> str:
        return str(self._field("level", ""))

    @property
    def description(self) -> str:
        return str(self._field("description", ""))


class CategoryView(EntityView):
    kind = schema.CATEGORY
    __slots__ = ()

    @property
    def name(self) -> str:
        return str(self._field("name", ""))

    @property
    def description(self) -> str:
        return str(self._field("description", ""))


class SensorView(EntityView):
    kind = schema.SENSOR
    __slots__ = ()

    @property
    def channel(self) -> str:
        return str(self._field("channel", ""))

    @property
    def modality(self) -> str:
        return str(self._field("modality", ""))

    def calibrated_sensors(self) -> TokenSequence[CalibratedSensorView]:
        return self._many(
            CalibratedSensorView,
            self._dataset.index.group(CALIBRATED_SENSORS_BY_SENSOR, self.token),
        )


class CalibratedSensorView(EntityView):
    kind = schema.CALIBRATED_SENSOR
    __slots__ = ()

    @property
    def translation(self) -> list[float]:
        return list(self._field("translation", []))

    @property
    def rotation(self) -> list[float]:
        return list(self._field("rotation", []))

    @property
    def camera_intrinsic(self) -> list[list[float]] | None:
        """3x3 intrinsic matrix for cameras, ``None`` for lidar and radar."""
        value = self._field("camera_intrinsic")
        if not value:
            return None
        return [list(row) for row in value]

    def sensor(self) -> SensorView:
        return self._one(SensorView, "sensor_token")


class EgoPoseView(EntityView):
    kind = schema.EGO_POSE
    __slots__ = ()

    @property
    def timestamp(self) -> int:
        return int(self._field("timestamp"))

    @property
    def translation(self) -> list[float]:
        return list(self._field("translation", []))

    @property
    def rotation(self) -> list[float]:
        return list(self._field("rotation", []))


class LogView(EntityView):
    kind = schema.LOG
    __slots__ = ()

    @property
    def date_captured(self) -> str:
        return str(self._field("date_captured", ""))

    @property
    def location(self) -> str:
        return str(self._field("location", ""))

    @property
    def vehicle(self) -> str:
        return str(self._field("vehicle", ""))

    @property
    def logfile(self) -> str | None:
        return self._field("logfile") or None

    def scenes(self) -> TokenSequence[SceneView]:
        return self._many(SceneView, self._dataset.index.group(SCENES_BY_LOG, self.token))

    def maps(self) -> TokenSequence[MapView]:
        return self._many(MapView, self._dataset.index.group(MAPS_BY_LOG, self.token))


class MapView(EntityView):
    kind = schema.MAP
    __slots__ = ()

    @property
    def category(self) -> str:
        return str(self._field("category", ""))

    @property
    def filename(self) -> str:
        return str(self._field("filename", ""))

    @property
    def path(self) -> Path:
        return self._dataset.root / self.filename

    def load(self) -> Payload:
        """Read and decode the map raster. The format follows the file suffix."""
        return load_payload(self._dataset.root, self.filename, Path(self.filename).suffix.lstrip("."))

    def logs(self) -> TokenSequence[LogView]:
        return self._many(LogView, [str(t) for t in self._field("log_tokens") or ()])


class SceneView(EntityView):
    kind = schema.SCENE
    __slots__ = ()

    @property
    def name(self) -> str:
        return str(self._field("name", ""))

    @property
    def description(self) -> str:
        return str(self._field("description", ""))

    @property
    def nbr_samples(self) -> int:
        return len(self._dataset.chains.samples_by_scene.get(self.token, ()))

    def log(self) -> LogView:
        return self._one(LogView, "log_token")

    def samples(self) -> TokenSequence[SampleView]:
        """Samples in chain order, which is strictly increasing in time."""
        return self._many(SampleView, self._dataset.chains.samples_by_scene.get(self.token, ()))

    def first_sample(self) -> SampleView | None:
        return self._maybe(SampleView, "first_sample_token")

    def last_sample(self) -> SampleView | None:
        return self._maybe(SampleView, "last_sample_token")


class SampleView(EntityView):
    kind = schema.SAMPLE
    __slots__ = ()

    @property
    def timestamp(self) -> int:
        """Capture time in microseconds since the epoch."""
        return int(self._field("timestamp"))

    @property
    def datetime(self) -> datetime:
        return _timestamp_to_datetime(self.timestamp)

    def scene(self) -> SceneView:
        return self._one(SceneView, "scene_token")

    def next(self) -> SampleView | None:
        return self._maybe(SampleView, "next")

    def previous(self) -> SampleView | None:
        return self._maybe(SampleView, "prev")

    def annotations(self) -> TokenSequence[SampleAnnotationView]:
        return self._many(
            SampleAnnotationView,
            self._dataset.index.group(ANNOTATIONS_BY_SAMPLE, self.token),
        )

    def sample_data(self) -> TokenSequence[SampleDataView]:
        """Sensor recordings of this sample, ordered by timestamp then table order."""
        index = self._dataset.index
        tokens = sorted(
            index.group(SAMPLE_DATA_BY_SAMPLE, self.token),
            key=lambda token: index.get(schema.SAMPLE_DATA, token)["timestamp"],
        )
        return self._many(SampleDataView, tokens)

    def sample_data_by_channel(self, key_frames_only: bool = True) -> dict[str, SampleDataView]:
        """Map sensor channel to its recording, like the devkit's ``sample['data']``."""
        by_channel: dict[str, SampleDataView] = {}
        for data in self.sample_data():
            if key_frames_only and not data.is_key_frame:
                continue
            by_channel.setdefault(data.sensor().channel, data)
        return by_channel


class InstanceView(EntityView):
    kind = schema.INSTANCE
    __slots__ = ()

    @property
    def nbr_annotations(self) -> int:
        return len(self._dataset.chains.annotations_by_instance.get(self.token, ()))

    def category(self) -> CategoryView:
        return self._one(CategoryView, "category_token")

    def annotations(self) -> TokenSequence[SampleAnnotationView]:
        """Annotations of this instance in chain order."""
        return self._many(
            SampleAnnotationView,
            self._dataset.chains.annotations_by_instance.get(self.token, ()),
        )

    def first_annotation(self) -> SampleAnnotationView | None:
        return self._maybe(SampleAnnotationView, "first_annotation_token")

    def last_annotation(self) -> SampleAnnotationView | None:
        return self._maybe(SampleAnnotationView, "last_annotation_token")


class SampleAnnotationView(EntityView):
    kind = schema.SAMPLE_ANNOTATION
    __slots__ = ()

    @property
    def translation(self) -> list[float]:
        return list(self._field("translation", []))

    @property
    def size(self) -> list[float]:
        return list(self._field("size", []))

    @property
    def rotation(self) -> list[float]:
        return list(self._field("rotation", []))

    @property
    def num_lidar_pts(self) -> int:
        return int(self._field("num_lidar_pts", 0))

    @property
    def num_radar_pts(self) -> int:
        return int(self._field("num_radar_pts", 0))

    def sample(self) -> SampleView:
        return self._one(SampleView, "sample_token")

    def instance(self) -> InstanceView:
        return self._one(InstanceView, "instance_token")

    def category(self) -> CategoryView:
        return self.instance().category()

    def attributes(self) -> TokenSequence[AttributeView]:
        return self._many(AttributeView, [str(t) for t in self._field("attribute_tokens") or ()])

    def visibility(self) -> VisibilityView | None:
        return self._maybe(VisibilityView, "visibility_token")

    def next(self) -> SampleAnnotationView | None:
        return self._maybe(SampleAnnotationView, "next")

    def previous(self) -> SampleAnnotationView | None:
        return self._maybe(SampleAnnotationView, "prev")


class SampleDataView(EntityView):
    kind = schema.SAMPLE_DATA
    __slots__ = ()

    @property
    def timestamp(self) -> int:
        return int(self._field("timestamp"))

    @property
    def datetime(self) -> datetime:
        return _timestamp_to_datetime(self.timestamp)

    @property
    def filename(self) -> str:
        return str(self._field("filename", ""))

    @property
    def fileformat(self) -> str:
        return str(self._field("fileformat", ""))

    @property
    def is_key_frame(self) -> bool:
        return bool(self._field("is_key_frame", False))

    @property
    def width(self) -> int:
        return int(self._field("width") or 0)

    @property
    def height(self) -> int:
        return int(self._field("height") or 0)

    @property
    def path(self) -> Path:
        return self._dataset.root / self.filename

    def sample(self) -> SampleView:
        return self._one(SampleView, "sample_token")

    def ego_pose(self) -> EgoPoseView:
        return self._one(EgoPoseView, "ego_pose_token")

    def calibrated_sensor(self) -> CalibratedSensorView:
        return self._one(CalibratedSensorView, "calibrated_sensor_token")

    def sensor(self) -> SensorView:
        return self.calibrated_sensor().sensor()

    def next(self) -> SampleDataView | None:
        return self._maybe(SampleDataView, "next")

    def previous(self) -> SampleDataView | None:
        return self._maybe(SampleDataView, "prev")

    @property
    def stream_key(self) -> StreamKey:
        return StreamKey(
            str(self._field("calibrated_sensor_token")),
            str(self.sample().record["scene_token"]),
        )

    def stream(self) -> TokenSequence[SampleDataView]:
        """Every recording of this sensor stream in chronological order."""
        return self._many(
            SampleDataView,
            self._dataset.chains.sample_data_by_stream.get(self.stream_key, ()),
        )

    def load(self) -> Payload:
        """Read and decode the payload file. Each call reads the file again."""
        return load_payload(self._dataset.root, self.filename, self.fileformat)


VIEW_TYPES: dict[str, type[EntityView]] = {
    view_type.kind: view_type
    for view_type in (
        AttributeView,
        VisibilityView,
        CategoryView,
        SensorView,
        CalibratedSensorView,
        EgoPoseView,
        LogView,
        MapView,
        SceneView,
        SampleView,
        InstanceView,
        SampleAnnotationView,
        SampleDataView,
    )
}
