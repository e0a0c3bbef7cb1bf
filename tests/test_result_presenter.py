import asyncio
import threading

import numpy as np
import pytest

from models.segmentation import ColoredLabel, Segmentation
from services.notification_service import NotificationService
from services.overlay_service import OverlayService
from services.result_presenter import ResultPresenter


def _segmentations():
    mask = np.zeros((3, 5), dtype=np.uint8)
    return [Segmentation(mask, [ColoredLabel("background", "Background", (0, 0, 0))])]


def _from_worker(target, *args):
    thread = threading.Thread(target=target, args=args)
    thread.start()
    thread.join()


@pytest.mark.asyncio
async def test_results_are_applied_on_the_loop():
    overlay = OverlayService()
    presenter = ResultPresenter(asyncio.get_running_loop(), overlay, NotificationService())
    results = _segmentations()

    _from_worker(presenter.on_results, results, 12, 480, 640)
    assert overlay.redraw_count == 0

    await asyncio.sleep(0)

    assert overlay.results is results
    assert (overlay.image_height, overlay.image_width) == (480, 640)
    assert overlay.redraw_count == 1
    assert presenter.last_inference_time_ms == 12


@pytest.mark.asyncio
async def test_error_is_notified_verbatim_once():
    notifier = NotificationService()
    overlay = OverlayService()
    presenter = ResultPresenter(asyncio.get_running_loop(), overlay, notifier)

    _from_worker(presenter.on_error, "GPU delegate unavailable: fallback failed")
    await asyncio.sleep(0)

    assert list(notifier.recent) == ["GPU delegate unavailable: fallback failed"]
    assert overlay.redraw_count == 0


@pytest.mark.asyncio
async def test_detached_presenter_drops_updates():
    notifier = NotificationService()
    overlay = OverlayService()
    presenter = ResultPresenter(asyncio.get_running_loop(), overlay, notifier)

    _from_worker(presenter.on_results, _segmentations(), 1, 3, 5)
    presenter.detach()
    _from_worker(presenter.on_error, "late")
    await asyncio.sleep(0)

    assert overlay.redraw_count == 0
    assert list(notifier.recent) == []


def test_closed_loop_is_ignored():
    loop = asyncio.new_event_loop()
    loop.close()
    overlay = OverlayService()

    ResultPresenter(loop, overlay, NotificationService()).on_results(_segmentations(), 1, 3, 5)

    assert overlay.redraw_count == 0
