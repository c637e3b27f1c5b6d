from __future__ import annotations

from dataclasses import dataclass, field

ATTRIBUTE = "attribute"
CALIBRATED_SENSOR = "calibrated_sensor"
CATEGORY = "category"
EGO_POSE = "ego_pose"
INSTANCE = "instance"
LOG = "log"
MAP = "map"
SAMPLE = "sample"
SAMPLE_ANNOTATION = "sample_annotation"
SAMPLE_DATA = "sample_data"
SCENE = "scene"
SENSOR = "sensor"
VISIBILITY = "visibility"

REQUIRED = "required"
OPTIONAL = "optional"
MANY = "many"


@dataclass(frozen=True)
class ForeignKey:
    field: str
    target: str
    cardinality: str = REQUIRED


@dataclass(frozen=True)
class TableSpec:
    kind: str
    required: bool = True
    foreign_keys: tuple[ForeignKey, ...] = field(default_factory=tuple)

    @property
    def filename(self) -> str:
        return f"{self.kind}.json"


# Scan order for reading and validation. Errors are always reported in this order.
TABLES: tuple[TableSpec, ...] = (
    TableSpec(ATTRIBUTE),
    TableSpec(VISIBILITY),
    TableSpec(CATEGORY),
    TableSpec(SENSOR),
    TableSpec(
        CALIBRATED_SENSOR,
        foreign_keys=(ForeignKey("sensor_token", SENSOR),),
    ),
    TableSpec(EGO_POSE),
    TableSpec(LOG),
    TableSpec(
        MAP,
        required=False,
        foreign_keys=(ForeignKey("log_tokens", LOG, MANY),),
    ),
    TableSpec(
        SCENE,
        foreign_keys=(
            ForeignKey("log_token", LOG),
            ForeignKey("first_sample_token", SAMPLE, OPTIONAL),
            ForeignKey("last_sample_token", SAMPLE, OPTIONAL),
        ),
    ),
    TableSpec(
        SAMPLE,
        foreign_keys=(
            ForeignKey("scene_token", SCENE),
            ForeignKey("prev", SAMPLE, OPTIONAL),
            ForeignKey("next", SAMPLE, OPTIONAL),
        ),
    ),
    TableSpec(
        INSTANCE,
        foreign_keys=(
            ForeignKey("category_token", CATEGORY),
            ForeignKey("first_annotation_token", SAMPLE_ANNOTATION, OPTIONAL),
            ForeignKey("last_annotation_token", SAMPLE_ANNOTATION, OPTIONAL),
        ),
    ),
    TableSpec(
        SAMPLE_ANNOTATION,
        foreign_keys=(
            ForeignKey("sample_token", SAMPLE),
            ForeignKey("instance_token", INSTANCE),
            ForeignKey("attribute_tokens", ATTRIBUTE, MANY),
            ForeignKey("visibility_token", VISIBILITY, OPTIONAL),
            ForeignKey("prev", SAMPLE_ANNOTATION, OPTIONAL),
            ForeignKey("next", SAMPLE_ANNOTATION, OPTIONAL),
        ),
    ),
    TableSpec(
        SAMPLE_DATA,
        foreign_keys=(
            ForeignKey("sample_token", SAMPLE),
            ForeignKey("ego_pose_token", EGO_POSE),
            ForeignKey("calibrated_sensor_token", CALIBRATED_SENSOR),
            ForeignKey("prev", SAMPLE_DATA, OPTIONAL),
            ForeignKey("next", SAMPLE_DATA, OPTIONAL),
        ),
    ),
)

TABLES_BY_KIND: dict[str, TableSpec] = {spec.kind: spec for spec in TABLES}
KINDS: tuple[str, ...] = tuple(spec.kind for spec in TABLES)


def table_spec(kind: str) -> TableSpec:
    try:
        return TABLES_BY_KIND[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind}") from None


def token_or_none(value: object) -> str | None:
    """Normalize an optional token field. Empty strings and null mean absent."""
    if value is None:
        return None
    text = str(value)
    return text or None
