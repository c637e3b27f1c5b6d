from __future__ import annotations

from pathlib import Path
from typing import TypeVar

from nsd.errors import NotFound
from nsd.index.chains import ChainSet
from nsd.index.token_index import TokenIndex
from nsd.tables import schema
from nsd.views import (
    VIEW_TYPES,
    AttributeView,
    CalibratedSensorView,
    CategoryView,
    EgoPoseView,
    EntityView,
    InstanceView,
    LogView,
    MapView,
    SampleAnnotationView,
    SampleDataView,
    SampleView,
    SceneView,
    SensorView,
    TokenSequence,
    VisibilityView,
)

V = TypeVar("V", bound=EntityView)


def _by_timestamp(index: TokenIndex, kind: str) -> tuple[str, ...]:
    # sorted() is stable, so equal timestamps keep table order
    return tuple(sorted(index.tokens(kind), key=lambda token: index.get(kind, token)["timestamp"]))


class Dataset:
    """A validated, read-only snapshot of one dataset version.

    Built by :func:`nsd.loader.load`. Every accessor returns lightweight views
    that resolve their data through this object; nothing here is mutated after
    construction, so a dataset can be shared freely between threads.
    """

    def __init__(self, version: str, root: Path, index: TokenIndex, chains: ChainSet) -> None:
        self._version = version
        self._root = root
        self._index = index
        self._chains = chains
        self._samples_by_time = _by_timestamp(index, schema.SAMPLE)
        self._sample_data_by_time = _by_timestamp(index, schema.SAMPLE_DATA)
        self._ego_poses_by_time = _by_timestamp(index, schema.EGO_POSE)
        self._scenes_by_time = self._order_scenes_by_time()

    def _order_scenes_by_time(self) -> tuple[str, ...]:
        def key(scene_token: str) -> tuple[int, int]:
            samples = self._chains.samples_by_scene.get(scene_token, ())
            if not samples:
                return (1, 0)
            return (0, int(self._index.get(schema.SAMPLE, samples[0])["timestamp"]))

        return tuple(sorted(self._index.tokens(schema.SCENE), key=key))

    @property
    def version(self) -> str:
        return self._version

    @property
    def root(self) -> Path:
        return self._root

    @property
    def meta_dir(self) -> Path:
        return self._root / self._version

    @property
    def index(self) -> TokenIndex:
        return self._index

    @property
    def chains(self) -> ChainSet:
        return self._chains

    def view(self, view_type: type[V], token: str) -> V:
        if not self._index.contains(view_type.kind, token):
            raise NotFound(view_type.kind, token)
        return view_type(self, token)

    def get(self, kind: str, token: str) -> EntityView:
        """Look up any entity by kind name and token."""
        try:
            view_type = VIEW_TYPES[kind]
        except KeyError:
            raise ValueError(f"Unknown entity kind: {kind}") from None
        return self.view(view_type, token)

    def _all(self, view_type: type[V]) -> TokenSequence[V]:
        return TokenSequence(self, view_type, self._index.tokens(view_type.kind))

    def summary(self) -> dict[str, int]:
        return {kind: self._index.count(kind) for kind in self._index.kinds()}

    def __repr__(self) -> str:
        return (
            f"Dataset(version={self._version!r}, root={str(self._root)!r}, "
            f"scenes={self._index.count(schema.SCENE)})"
        )

    # token lookups

    def attribute(self, token: str) -> AttributeView:
        return self.view(AttributeView, token)

    def calibrated_sensor(self, token: str) -> CalibratedSensorView:
        return self.view(CalibratedSensorView, token)

    def category(self, token: str) -> CategoryView:
        return self.view(CategoryView, token)

    def ego_pose(self, token: str) -> EgoPoseView:
        return self.view(EgoPoseView, token)

    def instance(self, token: str) -> InstanceView:
        return self.view(InstanceView, token)

    def log(self, token: str) -> LogView:
        return self.view(LogView, token)

    def map(self, token: str) -> MapView:
        return self.view(MapView, token)

    def sample(self, token: str) -> SampleView:
        return self.view(SampleView, token)

    def sample_annotation(self, token: str) -> SampleAnnotationView:
        return self.view(SampleAnnotationView, token)

    def sample_data(self, token: str) -> SampleDataView:
        return self.view(SampleDataView, token)

    def scene(self, token: str) -> SceneView:
        return self.view(SceneView, token)

    def sensor(self, token: str) -> SensorView:
        return self.view(SensorView, token)

    def visibility(self, token: str) -> VisibilityView:
        return self.view(VisibilityView, token)

    # iteration in table order

    def attributes(self) -> TokenSequence[AttributeView]:
        return self._all(AttributeView)

    def calibrated_sensors(self) -> TokenSequence[CalibratedSensorView]:
        return self._all(CalibratedSensorView)

    def categories(self) -> TokenSequence[CategoryView]:
        return self._all(CategoryView)

    def ego_poses(self) -> TokenSequence[EgoPoseView]:
        return self._all(EgoPoseView)

    def instances(self) -> TokenSequence[InstanceView]:
        return self._all(InstanceView)

    def logs(self) -> TokenSequence[LogView]:
        return self._all(LogView)

    def maps(self) -> TokenSequence[MapView]:
        return self._all(MapView)

    def samples(self) -> TokenSequence[SampleView]:
        return self._all(SampleView)

    def sample_annotations(self) -> TokenSequence[SampleAnnotationView]:
        return self._all(SampleAnnotationView)

    def sample_datas(self) -> TokenSequence[SampleDataView]:
        return self._all(SampleDataView)

    def scenes(self) -> TokenSequence[SceneView]:
        """Scenes in table order. Chronology is only guaranteed within a scene."""
        return self._all(SceneView)

    def sensors(self) -> TokenSequence[SensorView]:
        return self._all(SensorView)

    def visibilities(self) -> TokenSequence[VisibilityView]:
        return self._all(VisibilityView)

    # chronological orderings

    def scenes_by_time(self) -> TokenSequence[SceneView]:
        """Scenes ordered by their first sample; scenes without samples come last."""
        return TokenSequence(self, SceneView, self._scenes_by_time)

    def samples_by_time(self) -> TokenSequence[SampleView]:
        return TokenSequence(self, SampleView, self._samples_by_time)

    def sample_data_by_time(self) -> TokenSequence[SampleDataView]:
        return TokenSequence(self, SampleDataView, self._sample_data_by_time)

    def ego_poses_by_time(self) -> TokenSequence[EgoPoseView]:
        return TokenSequence(self, EgoPoseView, self._ego_poses_by_time)
