from __future__ import annotations
from typing import Callable, List

import numpy as np

from models.segmentation import ColorLabel, Segmentation

LabelsListener = Callable[[List[ColorLabel]], None]


class OverlayService:
    """
    Display-side holder of the latest segmentation.
    invalidate() stands for a redraw: it bumps the redraw counter and tells
    the labels listener which labels are now visible.
    """

    def __init__(self, labels_listener: LabelsListener | None = None):
        self.labels_listener = labels_listener
        self.results: List[Segmentation] | None = None
        self.image_height = 0
        self.image_width = 0
        self.redraw_count = 0

    def set_results(self, results: List[Segmentation] | None, image_height: int, image_width: int) -> None:
        self.results = results
        self.image_height = image_height
        self.image_width = image_width

    def color_labels(self) -> List[ColorLabel]:
        """Labels of the first segmentation that occur in its mask, by index."""
        if not self.results:
            return []
        segmentation = self.results[0]
        labels = segmentation.colored_labels
        present = np.unique(segmentation.category_mask)
        return [
            ColorLabel(id=int(i), label=labels[i].label, color=labels[i].color)
            for i in present
            if i < len(labels)
        ]

    def invalidate(self) -> None:
        self.redraw_count += 1
        if self.labels_listener is not None:
            self.labels_listener(self.color_labels())
