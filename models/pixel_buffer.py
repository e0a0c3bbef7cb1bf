from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np


@dataclass
class PixelBuffer:
    """
    Owned canonical pixel buffer handed to the segmenter.
    Whoever receives it may read it, the sender must not touch it afterwards.
    """
    pixels: np.ndarray # Shape (H, W, 4), dtype uint8, RGBA order, C-contiguous.
    path: Path | None = None # Where the pixels came from, for logging only.

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]
