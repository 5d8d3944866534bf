"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from tortoise import Tortoise

from meterscan.core.exceptions import HistoryFetchError
from meterscan.services.recognition import RecognitionResult


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """
    Provides a clean in-memory SQLite database for each test function.
    """
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={"models": ["meterscan.core.models"]},
    )
    await Tortoise.generate_schemas()

    yield

    await Tortoise.close_connections()


class FakeDevice:
    """Capture device returning a fixed image reference."""

    def __init__(self, image_ref: str = "file:///tmp/meter.jpg", error=None):
        self.image_ref = image_ref
        self.error = error
        self.release = asyncio.Event()
        self.release.set()
        self.calls = 0

    async def take_photo(self) -> str:
        self.calls += 1
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.image_ref


class FakeRecognizer:
    """Recognition engine returning canned text."""

    def __init__(self, text: str | None = "Reading: 01234 kWh", error=None):
        self.text = text
        self.error = error
        self.seen: list[str] = []

    async def recognize(self, image_ref: str) -> RecognitionResult | None:
        self.seen.append(image_ref)
        if self.error is not None:
            raise self.error
        if self.text is None:
            return None
        return RecognitionResult(text=self.text)


class FakeHistory:
    """History gateway with readings held in a dict."""

    def __init__(self, readings: dict[str, int] | None = None, delay: float = 0):
        self.readings = readings if readings is not None else {"c-1": 1000}
        self.delay = delay
        self.requested: list[str] = []

    async def fetch_previous(self, consumer_id: str) -> int:
        self.requested.append(consumer_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if consumer_id not in self.readings:
            raise HistoryFetchError(f"No previous reading for consumer {consumer_id}.")
        return self.readings[consumer_id]


class FakeGate:
    def __init__(self, granted: bool = True):
        self.granted = granted

    def has_permissions(self) -> bool:
        return self.granted


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()


@pytest.fixture
def history() -> FakeHistory:
    return FakeHistory()


@pytest.fixture
def gate() -> FakeGate:
    return FakeGate()
