"""Capture device backed by photos sent to the bot."""

from __future__ import annotations

import logging
from pathlib import Path

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import PhotoSize

from meterscan.core.exceptions import CaptureDeviceError

logger = logging.getLogger(__name__)


class TelegramPhotoDevice:
    """
    Treats the photo a user just sent as the captured image.

    The handler attaches the photo, then the session asks for it through
    ``take_photo()``, which downloads the file and returns its local path.
    """

    def __init__(self, bot: Bot, media_dir: Path):
        self._bot = bot
        self._media_dir = media_dir
        self._pending: PhotoSize | None = None

    def attach(self, photo: PhotoSize) -> None:
        self._pending = photo

    async def take_photo(self) -> str:
        photo, self._pending = self._pending, None
        if photo is None:
            raise CaptureDeviceError("No photo was sent.")

        destination = self._media_dir / f"{photo.file_unique_id}.jpg"
        try:
            self._media_dir.mkdir(parents=True, exist_ok=True)
            await self._bot.download(photo, destination=destination)
        except (TelegramAPIError, OSError) as e:
            raise CaptureDeviceError(f"Could not download the photo: {e}") from e

        logger.info(f"Photo {photo.file_unique_id} saved to {destination}")
        return str(destination)
