# repositories/segmentation_repository.py
from __future__ import annotations
import time
from pathlib import Path
from typing import List

import numpy as np

from models.segmentation import ColoredLabel, Segmentation, SegmentationResult
from models.segmentation_engine import SegmentationEngine

VALID_ROTATIONS = (0, 90, 180, 270)


class SegmentationRepository:
    """
    One-buffer inference + result assembly.

    • Calls the MediaPipe engine (created on first use).
    • Times the call and attaches a colored label per class.
    """

    def __init__(
        self,
        engine: SegmentationEngine | None = None,
        model_path: str | Path | None = None,
    ) -> None:
        self._engine = engine
        self.model_path = model_path

    @property
    def engine(self) -> SegmentationEngine:
        if self._engine is None:
            self._engine = SegmentationEngine(self.model_path)
        return self._engine

    # ---------- private helpers ----------
    @staticmethod
    def _colormap(n: int) -> np.ndarray:
        """
        PASCAL VOC colormap, the palette DeepLab results are usually shown in.
        Row i is the RGB color of class i.
        """
        colormap = np.zeros((n, 3), dtype=int)
        ind = np.arange(n)
        for shift in reversed(range(8)):
            for channel in range(3):
                colormap[:, channel] |= ((ind >> channel) & 1) << shift
            ind >>= 3
        return colormap

    def _colored_labels(self, labels: List[str]) -> List[ColoredLabel]:
        colors = self._colormap(len(labels))
        return [
            ColoredLabel(
                label=label,
                display_name=label.replace("_", " ").capitalize(),
                color=tuple(int(c) for c in colors[i]),
            )
            for i, label in enumerate(labels)
        ]

    # ---------- public API ----------
    def segment(self, rgba: np.ndarray, rotation_degrees: int = 0) -> SegmentationResult:
        """
        rgba : (H, W, 4) uint8 buffer
        rotation_degrees : one of 0 / 90 / 180 / 270
        """
        if rotation_degrees not in VALID_ROTATIONS:
            raise ValueError(f"Unsupported rotation: {rotation_degrees}")

        start = time.perf_counter()
        mask = self.engine.predict(rgba, rotation_degrees)
        inference_time_ms = int(round((time.perf_counter() - start) * 1000))

        labels = list(self.engine.labels) or [str(i) for i in range(int(mask.max()) + 1)]
        height, width = mask.shape[:2]
        return SegmentationResult(
            segmentations=[Segmentation(mask, self._colored_labels(labels))],
            inference_time_ms=inference_time_ms,
            image_height=height,
            image_width=width,
        )
