from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from nsd.types import Payload


class PayloadDecoder(ABC):
    @abstractmethod
    def decode(self, raw: bytes, path: Path) -> Payload:
        """Decode the full file contents. ``path`` is only used for error context."""

    @abstractmethod
    def name(self) -> str:
        """Stable decoder name."""
