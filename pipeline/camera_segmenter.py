# pipeline/camera_segmenter.py
"""
Capture → orientation → settled buffer → segmentation → overlay.

One CameraSegmenter per view. Build it inside the event loop that owns the
view; results are always applied on that loop.
"""
from __future__ import annotations
import asyncio
import logging

from models.capture import CaptureMode
from models.image_handle import ImageHandle
from repositories.segmentation_repository import SegmentationRepository
from services.acquisition_service import AcquisitionService
from services.buffer_service import SETTLE_TIMEOUT, BufferService
from services.lifecycle_service import LifecycleScope
from services.notification_service import NotificationService
from services.orientation_service import OrientationService
from services.overlay_service import OverlayService
from services.preview_service import PreviewService
from services.result_presenter import ResultPresenter
from services.segmentation_service import SegmentationService

logger = logging.getLogger(__name__)


class CameraSegmenter:
    def __init__(
        self,
        overlay: OverlayService | None = None,
        notifier: NotificationService | None = None,
        *,
        acquisition_service: AcquisitionService | None = None,
        orientation_service: OrientationService | None = None,
        preview_service: PreviewService | None = None,
        segmentation_repository: SegmentationRepository | None = None,
        settle_timeout: float = SETTLE_TIMEOUT,
    ) -> None:
        loop = asyncio.get_running_loop()
        self.overlay = overlay or OverlayService()
        self.notifier = notifier or NotificationService()
        self.acquisition_service = acquisition_service or AcquisitionService()
        self.orientation_service = orientation_service or OrientationService()
        self.preview = preview_service or PreviewService()
        self.scope = LifecycleScope()
        self.presenter = ResultPresenter(loop, self.overlay, self.notifier)
        self.segmentation_service = SegmentationService(self.presenter, repository=segmentation_repository)
        self.buffer_service = BufferService(self.segmentation_service, settle_timeout)
        self.rotation_degrees = 0

    async def capture(self, mode: CaptureMode = CaptureMode.CAMERA) -> asyncio.Task | None:
        """The capture button: ask for a photo, then feed whatever comes back."""
        handle = await self.acquisition_service.acquire(mode)
        return self.on_capture_result(handle)

    def on_capture_result(self, handle: ImageHandle | None) -> asyncio.Task | None:
        """
        Start showing *handle* and schedule its segmentation.
        Returns the scheduled task, or None when there is nothing to do.
        """
        if handle is None or self.scope.cancelled:
            return None

        self.preview.load(handle)
        self.rotation_degrees = self.orientation_service.rotation_degrees(handle)
        logger.info(f"Acquired {handle.uri} (rotation {self.rotation_degrees}°)")

        return self.scope.launch(
            self.buffer_service.materialize(self.preview, self.rotation_degrees)
        )

    def destroy(self) -> None:
        """View teardown: drop pending work and stop applying results."""
        self.scope.cancel()
        self.presenter.detach()
        self.preview.clear()
        self.segmentation_service.close()
