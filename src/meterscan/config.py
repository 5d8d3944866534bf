"""Application configuration."""

from decimal import Decimal
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Loads and validates application settings from the environment."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    BOT_TOKEN: str = "YOUR_TELEGRAM_BOT_TOKEN"
    ADMIN_IDS: list[int] = []
    ALLOWED_USER_IDS: list[int] = []  # empty admits everyone

    TARIFF_RATE: Decimal = Decimal("0.2")
    CAPTURE_TIMEOUT: float = 30.0
    RECOGNITION_TIMEOUT: float = 60.0
    HISTORY_TIMEOUT: float = 10.0

    DEFAULT_CONSUMER_ID: str = "default-consumer"
    MEDIA_DIR: Path = Path("media")

    OCR_ENGINE: str = "tesseract"
    OCR_LANG: str = "eng"
    OCR_CONFIG: str = "--oem 3 --psm 6"

    LOG_LEVEL: str = "INFO"

    @field_validator("TARIFF_RATE")
    @classmethod
    def _rate_must_be_positive(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("TARIFF_RATE must be a positive number.")
        return value

    @field_validator("CAPTURE_TIMEOUT", "RECOGNITION_TIMEOUT", "HISTORY_TIMEOUT")
    @classmethod
    def _timeout_must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timeouts must be positive.")
        return value


settings = Settings()
