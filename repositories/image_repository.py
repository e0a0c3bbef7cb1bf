from pathlib import Path
from typing import Union
import logging
import threading
import numpy as np
import cv2
from PIL import Image as PILImage, ExifTags
from models.image import Image

logger = logging.getLogger(__name__)

ORIENTATION_NORMAL = 1

# PILImage.MAX_IMAGE_PIXELS is process-wide
_bomb_check_lock = threading.Lock()


class ImageRepository:
    """
    Handles file I/O for Image entities: pixel decoding and EXIF metadata.
    """

    @staticmethod
    def read_orientation(path: Union[str, Path]) -> int:
        """
        Raw EXIF orientation tag (1..8) of the file at *path*.
        Missing file, missing tag or unreadable metadata all read as "normal".
        """
        with _bomb_check_lock:
            # only the header is read here, pixel count does not matter
            max_pixels = PILImage.MAX_IMAGE_PIXELS
            PILImage.MAX_IMAGE_PIXELS = None
            try:
                with PILImage.open(path) as pil_img:
                    tag = pil_img.getexif().get(ExifTags.Base.Orientation, ORIENTATION_NORMAL)
                return int(tag)
            except Exception as err:
                logger.warning(f"No readable EXIF orientation in {path}: {err}")
                return ORIENTATION_NORMAL
            finally:
                PILImage.MAX_IMAGE_PIXELS = max_pixels

    @staticmethod
    def load(path: Union[str, Path]) -> Image:
        """
        Decode *path* into RGB / RGBA / gray uint8 pixels.
        EXIF orientation is NOT applied, callers pass it on separately.
        """
        path = Path(path)

        # IMREAD_UNCHANGED keeps alpha and ignores EXIF orientation
        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")

        if arr.dtype == np.uint16:
            arr = (arr >> 8).astype(np.uint8)

        if arr.ndim == 3 and arr.shape[2] == 4:
            arr = cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        elif arr.ndim == 3:
            arr = cv2.cvtColor(arr, cv2.COLOR_BGR2RGB)
        return Image(pixels=arr, path=path)

    @staticmethod
    def save(image: Image) -> None:
        """Write *image* to its path; the format follows the file extension."""
        if image.path is None:
            raise ValueError("Image has no path to save to")
        path = Path(image.path)
        path.parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(image.pixels).save(path)
