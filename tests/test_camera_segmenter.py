import asyncio

import cv2
import numpy as np
import pytest

from conftest import FakeSegmentationRepository, SlowImageRepository, wait_until
from models.capture import CaptureMode, CaptureResult
from models.image_handle import ImageHandle
from pipeline.camera_segmenter import CameraSegmenter
from repositories.image_repository import ImageRepository
from services.acquisition_service import AcquisitionService
from services.notification_service import NotificationService
from services.overlay_service import OverlayService
from services.preview_service import PreviewService


class StaticSource:
    def __init__(self, result):
        self.result = result

    def capture(self):
        return self.result


def _segmenter(repo, result=CaptureResult(), **kwargs):
    return CameraSegmenter(
        OverlayService(),
        NotificationService(),
        acquisition_service=AcquisitionService({CaptureMode.CAMERA: StaticSource(result)}),
        segmentation_repository=repo,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_cancelled_capture_never_segments(fake_repository):
    segmenter = _segmenter(fake_repository)

    task = await segmenter.capture()
    await asyncio.sleep(0.05)
    segmenter.destroy()

    assert task is None
    assert fake_repository.calls == []
    assert segmenter.overlay.redraw_count == 0


@pytest.mark.asyncio
async def test_captured_photo_is_segmented_once(fake_repository, rotated_photo):
    segmenter = _segmenter(fake_repository, CaptureResult(rotated_photo.resolve().as_uri()), settle_timeout=5)

    task = await segmenter.capture(CaptureMode.CAMERA)
    assert await task
    await wait_until(lambda: segmenter.overlay.redraw_count == 1)
    segmenter.destroy()

    assert len(fake_repository.calls) == 1
    pixels, rotation = fake_repository.calls[0]
    expected = cv2.cvtColor(ImageRepository.load(rotated_photo).pixels, cv2.COLOR_RGB2RGBA)
    assert rotation == 90
    assert np.array_equal(pixels, expected)


@pytest.mark.asyncio
async def test_result_dimensions_pass_through(rotated_photo):
    repo = FakeSegmentationRepository()
    segmenter = _segmenter(repo, settle_timeout=5)

    await segmenter.on_capture_result(ImageHandle.from_path(rotated_photo))
    await wait_until(lambda: segmenter.overlay.redraw_count == 1)
    segmenter.destroy()

    # the fake model reports the rotated 32x24 frame; the overlay must see exactly that
    assert (segmenter.overlay.image_height, segmenter.overlay.image_width) == (32, 24)
    assert segmenter.presenter.last_inference_time_ms == repo.inference_time_ms


@pytest.mark.asyncio
async def test_destroy_during_settle_drops_the_frame(fake_repository, photo):
    segmenter = _segmenter(
        fake_repository,
        preview_service=PreviewService(SlowImageRepository(delay=0.3)),
        settle_timeout=5,
    )

    task = segmenter.on_capture_result(ImageHandle.from_path(photo))
    await asyncio.sleep(0.05)
    segmenter.destroy()
    await asyncio.gather(task, return_exceptions=True)
    await asyncio.sleep(0.4)

    assert task.cancelled()
    assert fake_repository.calls == []
    assert segmenter.overlay.redraw_count == 0


@pytest.mark.asyncio
async def test_no_new_work_after_destroy(fake_repository, photo):
    segmenter = _segmenter(fake_repository)
    segmenter.destroy()

    assert segmenter.on_capture_result(ImageHandle.from_path(photo)) is None
    assert fake_repository.calls == []


@pytest.mark.asyncio
async def test_segmentation_error_is_notified(photo):
    repo = FakeSegmentationRepository(error=RuntimeError("model exploded"))
    segmenter = _segmenter(repo, settle_timeout=5)

    await segmenter.on_capture_result(ImageHandle.from_path(photo))
    await wait_until(lambda: len(segmenter.notifier.recent) == 1)
    await asyncio.sleep(0.05)
    segmenter.destroy()

    assert list(segmenter.notifier.recent) == ["model exploded"]
    assert segmenter.overlay.redraw_count == 0
