from __future__ import annotations
import logging
import os

import cv2
import numpy as np
from dotenv import load_dotenv

from models.image import Image
from models.pixel_buffer import PixelBuffer
from services.preview_service import PreviewService
from services.segmentation_service import SegmentationService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

SETTLE_TIMEOUT = float(os.getenv("SETTLE_TIMEOUT_SECONDS", "1.0"))


class BufferService:
    """
    Copies the settled preview into a fresh RGBA buffer and hands it,
    together with the rotation, to the segmentation service.
    """

    def __init__(self, segmentation_service: SegmentationService, settle_timeout: float = SETTLE_TIMEOUT):
        self.segmentation_service = segmentation_service
        self.settle_timeout = settle_timeout

    @staticmethod
    def to_buffer(image: Image) -> PixelBuffer:
        """
        Gray / RGB / RGBA uint8 pixels → new C-contiguous (H, W, 4) RGBA buffer.
        The result never shares memory with *image*.
        """
        pixels = np.ascontiguousarray(image.pixels)
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")

        if pixels.ndim == 2:
            rgba = cv2.cvtColor(pixels, cv2.COLOR_GRAY2RGBA)
        elif pixels.ndim == 3 and pixels.shape[2] == 3:
            rgba = cv2.cvtColor(pixels, cv2.COLOR_RGB2RGBA)
        elif pixels.ndim == 3 and pixels.shape[2] == 4:
            rgba = pixels.copy()
        else:
            raise ValueError(f"Unsupported pixel layout {pixels.shape}")

        return PixelBuffer(pixels=rgba, path=image.path)

    async def materialize(self, preview: PreviewService, rotation_degrees: int) -> bool:
        """
        Wait for the preview, then segment it.
        Returns False (and segments nothing) if no decoded image turned up in time.
        """
        image = await preview.wait_until_loaded(self.settle_timeout)
        if image is None:
            logger.warning("No decoded image available after settling, frame dropped")
            return False

        buffer = self.to_buffer(image)
        logger.info(f"Segmenting {buffer.width}x{buffer.height} buffer, rotation={rotation_degrees}°")
        self.segmentation_service.segment(buffer, rotation_degrees)
        return True
