from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np

from nsd.errors import CorruptPayload
from nsd.payload.base import PayloadDecoder
from nsd.types import Image


class OpenCVImageDecoder(PayloadDecoder):
    def __init__(self, flags: int = cv2.IMREAD_COLOR) -> None:
        self._flags = flags

    def name(self) -> str:
        return "opencv-image"

    def decode(self, raw: bytes, path: Path) -> Image:
        if not raw:
            raise CorruptPayload(path, "image file is empty")
        try:
            pixels = cv2.imdecode(np.frombuffer(raw, dtype=np.uint8), self._flags)
        except cv2.error as exc:
            raise CorruptPayload(path, f"OpenCV could not decode image: {exc}") from exc
        if pixels is None or pixels.size == 0:
            raise CorruptPayload(path, "OpenCV could not decode image")
        return Image(pixels=pixels, path=path)
