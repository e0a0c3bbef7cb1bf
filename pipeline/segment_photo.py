# pipeline/segment_photo.py
from __future__ import annotations
import asyncio
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from models.capture import CaptureMode
from models.image_handle import ImageHandle
from models.segmentation import ColorLabel, Segmentation
from pipeline.camera_segmenter import CameraSegmenter
from repositories.segmentation_repository import SegmentationRepository
from services.acquisition_service import AcquisitionService
from services.notification_service import NotificationService
from services.overlay_service import OverlayService

# env‑vars
load_dotenv()
SEGMENTATION_TIMEOUT = float(os.getenv("SEGMENTATION_TIMEOUT_SECONDS", "30"))


@dataclass
class PhotoSegmentation:
    """What the overlay ended up showing for one photo, or the error it got."""
    handle: ImageHandle
    rotation_degrees: int
    segmentations: List[Segmentation] = field(default_factory=list)
    color_labels: List[ColorLabel] = field(default_factory=list)
    image_height: int = 0
    image_width: int = 0
    inference_time_ms: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def segment_photo(
    handle: ImageHandle | None,
    *,
    segmentation_repository: SegmentationRepository | None = None,
    settle_timeout: float | None = None,
    timeout: float = SEGMENTATION_TIMEOUT,
) -> PhotoSegmentation | None:
    """
    Run one acquired image through the pipeline and wait for the outcome.

    There is no on-screen preview here, so by default the decode may take up
    to *timeout* seconds rather than the short UI settle bound.

    Returns None when there is nothing to show (cancelled capture, or an
    image that cannot be decoded). Raises asyncio.TimeoutError if the decode
    or the segmenter does not finish within its bound.
    """
    if handle is None:
        return None
    if settle_timeout is None:
        settle_timeout = timeout

    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()

    def _finish(kind: str, payload) -> None:
        if not outcome.done():
            outcome.set_result((kind, payload))

    overlay = OverlayService(labels_listener=lambda labels: _finish("labels", labels))
    notifier = NotificationService(on_notify=lambda message: _finish("error", message))
    segmenter = CameraSegmenter(
        overlay,
        notifier,
        segmentation_repository=segmentation_repository,
        settle_timeout=settle_timeout,
    )

    try:
        task = segmenter.on_capture_result(handle)
        if task is None:
            return None
        if not await task:
            if segmenter.preview.loading:
                raise asyncio.TimeoutError(f"{handle.uri} still decoding after {settle_timeout:.2f}s")
            return None
        kind, payload = await asyncio.wait_for(outcome, timeout)
    finally:
        segmenter.destroy()

    result = PhotoSegmentation(handle=handle, rotation_degrees=segmenter.rotation_degrees)
    if kind == "error":
        result.error = payload
        return result

    result.segmentations = overlay.results or []
    result.color_labels = payload
    result.image_height = overlay.image_height
    result.image_width = overlay.image_width
    result.inference_time_ms = segmenter.presenter.last_inference_time_ms
    return result


async def capture_and_segment(
    acquisition_service: AcquisitionService,
    mode: CaptureMode = CaptureMode.CAMERA,
    **kwargs,
) -> PhotoSegmentation | None:
    handle = await acquisition_service.acquire(mode)
    return await segment_photo(handle, **kwargs)
