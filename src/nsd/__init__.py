from nsd.dataset import Dataset
from nsd.errors import (
    BrokenChain,
    CorruptPayload,
    CyclicChain,
    DanglingReference,
    DatasetValidationError,
    DuplicateToken,
    InconsistentChain,
    InvalidField,
    NotFound,
    NuScenesError,
    PayloadError,
    PayloadIOError,
    TableReadError,
    UnsupportedFormat,
)
from nsd.loader import DatasetLoader, load, load_from_config
from nsd.types import Image, PointCloud

__all__ = [
    "BrokenChain",
    "CorruptPayload",
    "CyclicChain",
    "DanglingReference",
    "Dataset",
    "DatasetLoader",
    "DatasetValidationError",
    "DuplicateToken",
    "Image",
    "InconsistentChain",
    "InvalidField",
    "NotFound",
    "NuScenesError",
    "PayloadError",
    "PayloadIOError",
    "PointCloud",
    "TableReadError",
    "UnsupportedFormat",
    "load",
    "load_from_config",
]
