"""Repository for Reading model."""

from __future__ import annotations

from meterscan.core.models import Reading
from meterscan.core.repositories.base import BaseRepository


class ReadingRepository(BaseRepository[Reading]):
    """Reading-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(Reading)

    async def get_latest_for_consumer(self, external_id: str) -> Reading | None:
        """Get the most recent reading of a consumer."""
        return (
            await self.model.filter(consumer__external_id=external_id)
            .order_by("-taken_at")
            .first()
        )

    async def list_for_consumer(
        self, external_id: str, limit: int = 10
    ) -> list[Reading]:
        """Get the latest readings of a consumer, newest first."""
        return (
            await self.model.filter(consumer__external_id=external_id)
            .order_by("-taken_at")
            .limit(limit)
        )
