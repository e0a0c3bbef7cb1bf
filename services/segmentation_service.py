# services/segmentation_service.py
from __future__ import annotations
import logging
import os
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import List

from dotenv import load_dotenv

from models.pixel_buffer import PixelBuffer
from models.segmentation import Segmentation
from repositories.segmentation_repository import SegmentationRepository

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

SEGMENTATION_WORKERS = int(os.getenv("SEGMENTATION_WORKERS", "1"))


class SegmentationListener(ABC):
    """Receives segmentation outcomes, possibly on a worker thread."""

    @abstractmethod
    def on_results(
        self,
        results: List[Segmentation] | None,
        inference_time: int,
        image_height: int,
        image_width: int,
    ) -> None:
        ...

    @abstractmethod
    def on_error(self, error: str) -> None:
        ...


class SegmentationService:
    """
    Runs the segmenter on a worker thread and reports to a listener.

    • Exactly one listener call per segment() call: on_results or on_error.
    • Once submitted, a job runs to completion regardless of the caller.
    """

    def __init__(
        self,
        listener: SegmentationListener,
        repository: SegmentationRepository | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.listener = listener
        self.repo = repository or SegmentationRepository()
        self._executor = executor or ThreadPoolExecutor(
            max_workers=SEGMENTATION_WORKERS, thread_name_prefix="segmentation"
        )

    def segment(self, buffer: PixelBuffer, rotation_degrees: int) -> Future:
        return self._executor.submit(self._run, buffer, rotation_degrees)

    def _run(self, buffer: PixelBuffer, rotation_degrees: int) -> None:
        try:
            result = self.repo.segment(buffer.pixels, rotation_degrees)
        except Exception as err:
            logger.exception(f"Segmentation failed for {buffer.path or 'in-memory buffer'}")
            self.listener.on_error(str(err) or type(err).__name__)
            return

        logger.debug(f"Inference took {result.inference_time_ms} ms")
        self.listener.on_results(
            result.segmentations,
            result.inference_time_ms,
            result.image_height,
            result.image_width,
        )

    def close(self) -> None:
        self._executor.shutdown(wait=False)
