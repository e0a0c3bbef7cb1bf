from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np


@dataclass
class Image:
    """
    Decoded preview image, exactly as it came off the decoder.
    Pixels may be gray (H, W), RGB (H, W, 3) or RGBA (H, W, 4).
    """
    pixels: np.ndarray # dtype uint8, EXIF rotation NOT applied.
    path: Path | None = None # Source of the image.
