from __future__ import annotations

import logging
from pathlib import Path

from nsd.errors import PayloadIOError, UnsupportedFormat
from nsd.payload.base import PayloadDecoder
from nsd.types import Payload

POINT_CLOUD_FORMATS = frozenset({"bin", "pcd"})
IMAGE_FORMATS = frozenset({"jpg", "jpeg", "png"})

_LOGGER = logging.getLogger("nsd.payload")


def select_decoder(fileformat: str, filename: str = "") -> PayloadDecoder:
    fmt = str(fileformat).strip().lower()

    # nuScenes lidar sweeps are declared "pcd" but stored as raw ".pcd.bin"
    if fmt == "bin" or (fmt == "pcd" and filename.lower().endswith(".bin")):
        from nsd.payload.pointcloud import LidarBinDecoder

        return LidarBinDecoder()

    if fmt == "pcd":
        from nsd.payload.pointcloud import PcdDecoder

        return PcdDecoder()

    if fmt in IMAGE_FORMATS:
        from nsd.payload.image import OpenCVImageDecoder

        return OpenCVImageDecoder()

    raise UnsupportedFormat(str(fileformat))


def load_payload(root: str | Path, filename: str, fileformat: str) -> Payload:
    """Read and decode one payload file. Nothing is cached between calls."""
    decoder = select_decoder(fileformat, filename)
    path = Path(root) / filename
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise PayloadIOError(path, exc.strerror or str(exc)) from exc
    _LOGGER.debug("decoding %s (%d bytes) with %s", path, len(raw), decoder.name())
    return decoder.decode(raw, path)
