"""Shared fixtures: synthetic photos and stand-ins for the model."""

from __future__ import annotations

import asyncio
import threading
import time
from pathlib import Path

import numpy as np
import pytest
from PIL import Image as PILImage

from models.segmentation import ColoredLabel, Segmentation, SegmentationResult

EXIF_ORIENTATION = 0x0112


def write_photo(path: Path, pixels: np.ndarray, orientation: int | None = None) -> Path:
    """Save *pixels* with Pillow, optionally tagging an EXIF orientation."""
    img = PILImage.fromarray(pixels)
    kwargs = {}
    if orientation is not None:
        exif = PILImage.Exif()
        exif[EXIF_ORIENTATION] = orientation
        kwargs["exif"] = exif.tobytes()
    img.save(path, **kwargs)
    return path


def gradient(height: int = 24, width: int = 32) -> np.ndarray:
    ys, xs = np.mgrid[0:height, 0:width]
    return np.stack(
        [(xs * 7) % 256, (ys * 11) % 256, ((xs + ys) * 5) % 256], axis=-1
    ).astype(np.uint8)


async def wait_until(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


class FakeSegmentationRepository:
    """Records every call; top half of the (rotated) image is class 1."""

    labels = ("background", "person")

    def __init__(self, error: Exception | None = None, inference_time_ms: int = 7):
        self.error = error
        self.inference_time_ms = inference_time_ms
        self.calls: list[tuple[np.ndarray, int]] = []
        self._lock = threading.Lock()

    def segment(self, rgba: np.ndarray, rotation_degrees: int = 0) -> SegmentationResult:
        with self._lock:
            self.calls.append((rgba.copy(), rotation_degrees))
        if self.error is not None:
            raise self.error

        height, width = rgba.shape[:2]
        if rotation_degrees in (90, 270):
            height, width = width, height
        mask = np.zeros((height, width), dtype=np.uint8)
        mask[: height // 2] = 1
        colored = [
            ColoredLabel("background", "Background", (0, 0, 0)),
            ColoredLabel("person", "Person", (192, 128, 128)),
        ]
        return SegmentationResult(
            segmentations=[Segmentation(mask, colored)],
            inference_time_ms=self.inference_time_ms,
            image_height=height,
            image_width=width,
        )


class SlowImageRepository:
    """An ImageRepository whose decode takes longer than any settle timeout used in tests."""

    def __init__(self, delay: float = 0.5):
        self.delay = delay

    def load(self, path):
        time.sleep(self.delay)
        from repositories.image_repository import ImageRepository
        return ImageRepository.load(path)


@pytest.fixture
def photo(tmp_path: Path) -> Path:
    return write_photo(tmp_path / "photo.jpg", gradient())


@pytest.fixture
def rotated_photo(tmp_path: Path) -> Path:
    return write_photo(tmp_path / "rotated.jpg", gradient(), orientation=6)


@pytest.fixture
def fake_repository() -> FakeSegmentationRepository:
    return FakeSegmentationRepository()
