"""Access to previously recorded meter readings."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol

from tortoise.exceptions import BaseORMException

from meterscan.core.exceptions import HistoryFetchError
from meterscan.core.extraction import MeterReading
from meterscan.core.models import Reading, ReadingSource
from meterscan.core.repositories.consumer import ConsumerRepository
from meterscan.core.repositories.reading import ReadingRepository

logger = logging.getLogger(__name__)


class HistoryGateway(Protocol):
    """Source of the previous reading for a consumer."""

    async def fetch_previous(self, consumer_id: str) -> MeterReading:
        """Returns the last recorded reading or raises ``HistoryFetchError``."""
        ...


class RepositoryHistoryGateway:
    """History gateway backed by the readings stored in the database."""

    def __init__(
        self,
        consumer_repo: ConsumerRepository,
        reading_repo: ReadingRepository,
    ):
        self._consumer_repo = consumer_repo
        self._reading_repo = reading_repo

    async def fetch_previous(self, consumer_id: str) -> MeterReading:
        try:
            reading = await self._reading_repo.get_latest_for_consumer(consumer_id)
        except BaseORMException as e:
            logger.error(f"Failed to load readings for {consumer_id}: {e}")
            raise HistoryFetchError(
                f"Could not load readings for consumer {consumer_id}."
            ) from e

        if reading is None:
            raise HistoryFetchError(f"No previous reading for consumer {consumer_id}.")
        return MeterReading(reading.value)

    async def record_reading(
        self,
        consumer_id: str,
        value: MeterReading,
        source: ReadingSource = ReadingSource.PHOTO,
        taken_at: datetime | None = None,
    ) -> Reading:
        """
        Stores a reading so that it becomes the consumer's previous reading.

        The consumer is created on first use.
        """
        if value < 0:
            raise ValueError("A meter reading cannot be negative.")

        consumer, created = await self._consumer_repo.get_or_create(
            external_id=consumer_id
        )
        if created:
            logger.info(f"Registered new consumer {consumer_id}.")

        reading = await self._reading_repo.create(
            consumer=consumer,
            value=value,
            source=source,
            taken_at=taken_at or datetime.now(timezone.utc),
        )
        logger.info(f"Recorded reading {value} for consumer {consumer_id}.")
        return reading
