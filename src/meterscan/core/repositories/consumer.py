"""Repository for Consumer model."""

from __future__ import annotations

from meterscan.core.models import Consumer
from meterscan.core.repositories.base import BaseRepository


class ConsumerRepository(BaseRepository[Consumer]):
    """Consumer-specific repository operations."""

    def __init__(self) -> None:
        super().__init__(Consumer)

