# models/segmentation_engine.py
"""
Singleton wrapper around the MediaPipe ImageSegmenter task.

• Loads the DeepLab v3 TFLite graph once per Python process.
• Exposes .predict(rgba, rotation_degrees)  →  category mask (H, W) uint8.
• Exposes .labels  →  model label names, indexed by mask value.
"""
from __future__ import annotations
import logging
import os
import threading
from pathlib import Path
from typing import List

import numpy as np
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_MODEL_PATH = os.getenv("SEGMENTATION_MODEL_PATH", "deeplab_v3.tflite")

logger = logging.getLogger(__name__)


class SegmentationEngine:
    _instance: "SegmentationEngine" | None = None
    _lock = threading.RLock()

    def __new__(cls, model_path: str | Path | None = None):
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._init_runtime(model_path)
                cls._instance = instance
            elif model_path is not None and Path(model_path) != cls._instance.model_path:
                logger.warning(
                    f"Segmentation engine already loaded from {cls._instance.model_path}; "
                    f"ignoring {model_path}"
                )
            return cls._instance

    # --------------------------------------------------
    def _init_runtime(self, model_path: str | Path | None) -> None:
        """Heavy TFLite load – runs once per Python process."""
        import mediapipe as mp
        from mediapipe.tasks.python.vision.core.image_processing_options import (
            ImageProcessingOptions,
        )

        self.model_path = Path(model_path or DEFAULT_MODEL_PATH)
        if not self.model_path.exists():
            raise FileNotFoundError(f"Segmentation model not found at {self.model_path}")

        options = mp.tasks.vision.ImageSegmenterOptions(
            base_options=mp.tasks.BaseOptions(model_asset_path=str(self.model_path)),
            running_mode=mp.tasks.vision.RunningMode.IMAGE,
            output_category_mask=True,
            output_confidence_masks=False,
        )
        self._mp = mp
        self._processing_options = ImageProcessingOptions
        self._segmenter = mp.tasks.vision.ImageSegmenter.create_from_options(options)
        self.labels: List[str] = list(self._segmenter.labels)

    # --------------------------------------------------
    def predict(self, rgba: np.ndarray, rotation_degrees: int = 0) -> np.ndarray:
        """
        Args
        ----
        rgba : np.ndarray  (H, W, 4)  uint8  RGBA order
        rotation_degrees : clockwise rotation the model should apply first

        Returns
        -------
        mask : np.ndarray  (H', W')  uint8  label index per pixel
        """
        mp_image = self._mp.Image(
            image_format=self._mp.ImageFormat.SRGBA,
            data=np.ascontiguousarray(rgba),
        )
        processing = self._processing_options(rotation_degrees=rotation_degrees)

        # the graph is not re-entrant
        with self._lock:
            result = self._segmenter.segment(mp_image, processing)
        return result.category_mask.numpy_view().copy()
