from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Tuple
import numpy as np


@dataclass(frozen=True)
class ColoredLabel:
    label: str
    display_name: str
    color: Tuple[int, int, int]   # RGB


@dataclass(frozen=True)
class ColorLabel:
    """A label that actually occurs in a result, as listed next to the overlay."""
    id: int
    label: str
    color: Tuple[int, int, int]


@dataclass
class Segmentation:
    """
    One labeled region map.
    category_mask[y, x] is an index into colored_labels.
    """
    category_mask: np.ndarray                     # (H, W) uint8
    colored_labels: List[ColoredLabel] = field(default_factory=list)


@dataclass
class SegmentationResult:
    segmentations: List[Segmentation]
    inference_time_ms: int
    image_height: int   # of the image the model actually saw (after rotation)
    image_width: int
