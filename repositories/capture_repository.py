# repositories/capture_repository.py
from __future__ import annotations
import logging
import os
import time
import uuid
from pathlib import Path

import cv2
from dotenv import load_dotenv

from models.capture import CaptureResult
from models.image import Image
from repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

CAMERA_INDEX = int(os.getenv("CAMERA_INDEX", "0"))
CAMERA_OPEN_TIMEOUT = float(os.getenv("CAMERA_OPEN_TIMEOUT_SECONDS", "3"))
CAPTURE_DIR = os.getenv("CAPTURE_DIR_PATH", "data/captures")


class CameraCaptureRepository:
    """
    Camera-only capture source.

    • Grabs a single frame from a local camera via OpenCV.
    • Saves it as JPEG into the capture folder through ImageRepository.
    • Returns its URI, or an empty result if nothing could be captured.
    """

    def __init__(
        self,
        camera_index: int = CAMERA_INDEX,
        capture_dir: str | Path = CAPTURE_DIR,
        open_timeout: float = CAMERA_OPEN_TIMEOUT,
    ) -> None:
        self.camera_index = camera_index
        self.capture_dir = Path(capture_dir)
        self.open_timeout = open_timeout

    def _open(self) -> cv2.VideoCapture | None:
        cam: cv2.VideoCapture | None = None
        deadline = time.time() + max(self.open_timeout, 0.5)
        while time.time() < deadline:
            if cam is not None:
                cam.release()
            cam = cv2.VideoCapture(self.camera_index)
            if cam.isOpened():
                return cam
            time.sleep(0.35)
        if cam is not None:
            cam.release()
        return None

    def capture(self) -> CaptureResult:
        cam = self._open()
        if cam is None:
            logger.warning(f"Camera {self.camera_index} could not be opened")
            return CaptureResult()

        try:
            ok, frame_bgr = cam.read()
        finally:
            cam.release()

        if not ok or frame_bgr is None:
            logger.warning(f"Camera {self.camera_index} returned no frame")
            return CaptureResult()

        path = self.capture_dir / f"capture_{uuid.uuid4().hex}.jpg"
        frame = Image(pixels=cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB), path=path)
        try:
            ImageRepository.save(frame)
        except (OSError, ValueError) as err:
            logger.warning(f"Could not write captured frame to {path}: {err}")
            return CaptureResult()

        logger.info(f"Captured frame {frame_bgr.shape[1]}x{frame_bgr.shape[0]} → {path}")
        return CaptureResult(path.resolve().as_uri())


class GalleryCaptureRepository:
    """
    Gallery source: hands back a file the caller already picked.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None

    def select(self, path: str | Path | None) -> None:
        self.path = Path(path) if path is not None else None

    def capture(self) -> CaptureResult:
        if self.path is None or not self.path.is_file():
            return CaptureResult()
        return CaptureResult(self.path.resolve().as_uri())
