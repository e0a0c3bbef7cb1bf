from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse


@dataclass(frozen=True)
class ImageHandle:
    """
    Opaque reference to a picked or captured image (a file:// URI or a path).
    Created by a capture source, consumed once by the pipeline.
    """
    uri: str

    @property
    def path(self) -> Path:
        parsed = urlparse(self.uri)
        if parsed.scheme == "file":
            return Path(unquote(parsed.path))
        return Path(self.uri)

    @classmethod
    def from_path(cls, path: str | Path) -> "ImageHandle":
        return cls(Path(path).resolve().as_uri())
