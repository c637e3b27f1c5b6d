from __future__ import annotations

import io
from pathlib import Path

import numpy as np
import pypcd4

from nsd.errors import CorruptPayload
from nsd.payload.base import PayloadDecoder
from nsd.types import PointCloud

LIDAR_FIELDS: tuple[str, ...] = ("x", "y", "z", "intensity", "ring_index")
LIDAR_DTYPE = np.dtype("<f4")


class LidarBinDecoder(PayloadDecoder):
    """Headerless float32 records, five per point (nuScenes ``.pcd.bin``).

    The returned matrix is a read-only view over the file bytes.
    """

    def name(self) -> str:
        return "lidar-bin"

    def decode(self, raw: bytes, path: Path) -> PointCloud:
        record_size = LIDAR_DTYPE.itemsize * len(LIDAR_FIELDS)
        if len(raw) % record_size != 0:
            raise CorruptPayload(
                path,
                f"{len(raw)} bytes is not a whole number of {record_size}-byte points",
            )
        points = np.frombuffer(raw, dtype=LIDAR_DTYPE).reshape(-1, len(LIDAR_FIELDS))
        return PointCloud(points=points, fields=LIDAR_FIELDS, path=path)


class PcdDecoder(PayloadDecoder):
    """PCD files in any DATA mode (ascii, binary, binary_compressed) via pypcd4.

    Every field is kept. Multi-count fields become ``name_0``, ``name_1``...
    """

    def name(self) -> str:
        return "pcd"

    def decode(self, raw: bytes, path: Path) -> PointCloud:
        try:
            cloud = pypcd4.PointCloud.from_fileobj(io.BytesIO(raw))
            data = np.atleast_1d(cloud.pc_data)
            declared = int(cloud.metadata.points)
        except Exception as exc:
            raise CorruptPayload(path, f"pypcd4 could not decode PCD: {exc}") from exc

        if len(data) != declared:
            raise CorruptPayload(path, f"header declares {declared} points, body has {len(data)}")

        columns: list[str] = []
        blocks: list[np.ndarray] = []
        for name in data.dtype.names or ():
            width = int(np.prod(data.dtype[name].shape, dtype=np.int64))
            block = np.asarray(data[name], dtype=np.float64).reshape(len(data), width)
            if width == 1:
                columns.append(name)
            else:
                columns.extend(f"{name}_{i}" for i in range(width))
            blocks.append(block)

        points = np.hstack(blocks) if blocks else np.zeros((len(data), 0), dtype=np.float64)
        return PointCloud(
            points=points,
            fields=tuple(columns),
            path=path,
            extra={"version": str(cloud.metadata.version), "data": str(cloud.metadata.data)},
        )
