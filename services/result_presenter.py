from __future__ import annotations
import asyncio
import logging
from typing import List

from models.segmentation import Segmentation
from services.notification_service import NotificationService
from services.overlay_service import OverlayService
from services.segmentation_service import SegmentationListener

logger = logging.getLogger(__name__)


class ResultPresenter(SegmentationListener):
    """
    Listener the pipeline registers with the segmentation service.

    Callbacks arrive on a worker thread; every view update is posted back to
    the event loop that owns the overlay. After detach() updates are dropped.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        overlay: OverlayService,
        notifier: NotificationService,
    ) -> None:
        self._loop = loop
        self.overlay = overlay
        self.notifier = notifier
        self.last_inference_time_ms: int | None = None
        self._attached = True

    def detach(self) -> None:
        self._attached = False

    def _post(self, callback, *args) -> None:
        if not self._attached or self._loop.is_closed():
            return
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # loop closed between the check and the call
            logger.debug("Event loop gone, dropping view update")

    # ─── SegmentationListener ─────────────────────────────────────
    def on_results(
        self,
        results: List[Segmentation] | None,
        inference_time: int,
        image_height: int,
        image_width: int,
    ) -> None:
        self._post(self._show_results, results, inference_time, image_height, image_width)

    def on_error(self, error: str) -> None:
        self._post(self._show_error, error)

    # ─── loop-side updates ────────────────────────────────────────
    def _show_results(self, results, inference_time, image_height, image_width) -> None:
        if not self._attached:
            return
        self.last_inference_time_ms = inference_time
        self.overlay.set_results(results, image_height, image_width)
        self.overlay.invalidate()

    def _show_error(self, error: str) -> None:
        if not self._attached:
            return
        self.notifier.notify(error)
