from __future__ import annotations
import asyncio
import logging
from typing import Dict

from models.capture import CaptureMode, CaptureResult
from models.image_handle import ImageHandle
from repositories.capture_repository import CameraCaptureRepository, GalleryCaptureRepository

logger = logging.getLogger(__name__)


class AcquisitionService:
    """
    Asks a capture source for one image.
    The source owns whatever UI it shows; we only see the result payload.
    A cancelled or empty result is not an error, it just yields None.
    """

    def __init__(self, sources: Dict[CaptureMode, object] | None = None):
        if sources is None:
            sources = {
                CaptureMode.CAMERA: CameraCaptureRepository(),
                CaptureMode.GALLERY: GalleryCaptureRepository(),
            }
        self.sources = sources

    async def acquire(self, mode: CaptureMode = CaptureMode.CAMERA) -> ImageHandle | None:
        source = self.sources.get(mode)
        if source is None:
            raise ValueError(f"No capture source registered for mode '{mode.value}'")

        # capture sources block (camera open, file write)
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, source.capture)
        return self.handle_from_result(result)

    @staticmethod
    def handle_from_result(result: CaptureResult | None) -> ImageHandle | None:
        if result is None or result.cancelled:
            logger.info("Capture cancelled, nothing to segment")
            return None
        return ImageHandle(result.data)
