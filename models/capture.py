from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class CaptureMode(str, Enum):
    CAMERA = "camera"
    GALLERY = "gallery"


@dataclass(frozen=True)
class CaptureResult:
    """
    Payload returned by a capture source.
    `data` is the image URI, or None when the user backed out.
    """
    data: str | None = None

    @property
    def cancelled(self) -> bool:
        return not self.data
