from nsd.payload.base import PayloadDecoder
from nsd.payload.factory import IMAGE_FORMATS, POINT_CLOUD_FORMATS, load_payload, select_decoder

__all__ = [
    "IMAGE_FORMATS",
    "POINT_CLOUD_FORMATS",
    "PayloadDecoder",
    "load_payload",
    "select_decoder",
]
