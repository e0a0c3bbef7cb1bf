from models.image_handle import ImageHandle
from repositories.image_repository import ImageRepository

# EXIF orientation tag values
ORIENTATION_ROTATE_180 = 3
ORIENTATION_ROTATE_90 = 6
ORIENTATION_ROTATE_270 = 8

_DEGREES = {
    ORIENTATION_ROTATE_90: 90,
    ORIENTATION_ROTATE_180: 180,
    ORIENTATION_ROTATE_270: 270,
}


class OrientationService:
    """
    Turns embedded EXIF orientation into the rotation the segmenter should apply.
    Never raises: anything unknown or unreadable means 0.
    """

    def __init__(self):
        self.image_repository = ImageRepository()

    @staticmethod
    def exif_to_degrees(exif_orientation: int) -> int:
        """
        Args:
            exif_orientation (int): Raw EXIF orientation tag.

        Returns:
            (int): 90, 180 or 270 for the matching rotate tags, 0 for anything else.
        """
        return _DEGREES.get(exif_orientation, 0)

    def rotation_degrees(self, handle: ImageHandle) -> int:
        tag = self.image_repository.read_orientation(handle.path)
        return self.exif_to_degrees(tag)
