from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import numpy as np


@dataclass
class PointCloud:
    """Decoded point cloud. One row per point, one column per field."""

    points: np.ndarray
    fields: tuple[str, ...]
    path: Path
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def num_points(self) -> int:
        return int(self.points.shape[0])

    def column(self, name: str) -> np.ndarray:
        return self.points[:, self.fields.index(name)]

    @property
    def xyz(self) -> np.ndarray:
        return self.points[:, :3]


@dataclass
class Image:
    """Decoded raster image in OpenCV channel order (BGR)."""

    pixels: np.ndarray
    path: Path

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])


Payload = Union[PointCloud, Image]
