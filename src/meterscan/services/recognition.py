"""Optical text recognition of meter photos."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import pytesseract
from PIL import Image, ImageOps

from meterscan.config import settings
from meterscan.core.exceptions import RecognitionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionResult:
    """Unstructured text recognized on an image."""

    text: str


class RecognitionEngine(Protocol):
    """Turns an image reference into recognized text."""

    async def recognize(self, image_ref: str) -> RecognitionResult: ...


class TesseractRecognitionEngine:
    """Reads the whole photo with Tesseract after a light cleanup."""

    name = "tesseract"

    def __init__(self, lang: str | None = None, config: str | None = None):
        self._lang = lang or settings.OCR_LANG
        self._config = config if config is not None else settings.OCR_CONFIG

    def _preprocess(self, image: Image.Image) -> Image.Image:
        img = ImageOps.exif_transpose(image).convert("L")
        return ImageOps.autocontrast(img)

    def _read(self, image_ref: str) -> str:
        try:
            with Image.open(image_ref) as image:
                prepared = self._preprocess(image)
        except (OSError, ValueError) as e:
            raise RecognitionError(f"Cannot open image {image_ref}: {e}") from e

        try:
            return pytesseract.image_to_string(
                prepared, lang=self._lang, config=self._config
            )
        except (pytesseract.TesseractError, OSError) as e:
            raise RecognitionError(f"Tesseract failed on {image_ref}: {e}") from e

    async def recognize(self, image_ref: str) -> RecognitionResult:
        logger.info(f"Running {self.name} recognition on {image_ref}")
        text = await asyncio.to_thread(self._read, str(image_ref))
        return RecognitionResult(text=text)


class DigitsTesseractEngine(TesseractRecognitionEngine):
    """Binarizes the photo and restricts Tesseract to a single line of digits.

    Works better on close-up shots of the counter window, worse on photos
    where labels around the digits matter.
    """

    name = "tesseract_digits"

    def __init__(self, lang: str | None = None):
        super().__init__(
            lang=lang,
            config=(
                "--oem 3 --psm 7 "
                "-c tessedit_char_whitelist=0123456789 "
                "-c load_system_dawg=0 -c load_freq_dawg=0"
            ),
        )

    def _preprocess(self, image: Image.Image) -> Image.Image:
        img = super()._preprocess(image)
        w, h = img.size
        img = img.resize((w * 2, h * 2), Image.Resampling.LANCZOS)
        img = img.point(lambda px: 0 if px < 165 else 255, "L")
        return ImageOps.expand(img, border=40, fill=255)


def create_recognition_engine(name: str | None = None) -> RecognitionEngine:
    """Builds the recognition engine configured by name."""
    key = (name or settings.OCR_ENGINE).strip().lower()
    if key in {"tesseract", "default"}:
        return TesseractRecognitionEngine()
    if key in {"tesseract_digits", "digits"}:
        return DigitsTesseractEngine()
    raise ValueError(
        "Unknown recognition engine. Use one of: 'tesseract', 'tesseract_digits'"
    )
