from __future__ import annotations
import asyncio
import logging

from models.image import Image
from models.image_handle import ImageHandle
from repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


class PreviewService:
    """
    The on-screen preview of the picked image.

    Decoding happens off the event loop; `wait_until_loaded` is the explicit
    "image loaded" signal the buffer step waits on.
    """

    def __init__(self, image_repository: ImageRepository | None = None):
        self.image_repository = image_repository or ImageRepository()
        self.image: Image | None = None
        self._loaded: asyncio.Future | None = None

    def load(self, handle: ImageHandle) -> asyncio.Future:
        self.clear()
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self.image_repository.load, handle.path)
        future.add_done_callback(self._on_loaded)
        self._loaded = future
        return future

    def _on_loaded(self, future: asyncio.Future) -> None:
        if future is not self._loaded or future.cancelled() or future.exception() is not None:
            return
        self.image = future.result()

    async def wait_until_loaded(self, timeout: float) -> Image | None:
        """
        Returns the decoded image, or None if it is not ready within *timeout*
        seconds or could not be decoded at all.
        """
        if self._loaded is None:
            return self.image
        try:
            return await asyncio.wait_for(asyncio.shield(self._loaded), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Preview not loaded after {timeout:.2f}s")
        except Exception as err:
            logger.warning(f"Preview could not be decoded: {err}")
        return None

    @property
    def loading(self) -> bool:
        """True while a decode is still running."""
        return self._loaded is not None and not self._loaded.done()

    def clear(self) -> None:
        if self._loaded is not None and not self._loaded.done():
            self._loaded.cancel()
        self._loaded = None
        self.image = None
