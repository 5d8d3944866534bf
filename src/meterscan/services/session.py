"""Orchestration of one capture-to-billing session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Protocol, TypeVar

from meterscan.config import settings
from meterscan.core.calculations import compute_billing
from meterscan.core.exceptions import (
    CaptureDeviceError,
    HistoryFetchError,
    MeterScanError,
    PermissionsNotGrantedError,
    RecognitionError,
    SessionBusyError,
)
from meterscan.core.extraction import extract_reading
from meterscan.core.states import (
    Capturing,
    Failed,
    FailureReason,
    Idle,
    Processing,
    Result,
    SessionState,
)
from meterscan.services.history import HistoryGateway
from meterscan.services.permissions import PermissionGate
from meterscan.services.recognition import RecognitionEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")
StateListener = Callable[[SessionState], None]


class CaptureDevice(Protocol):
    """Produces a reference to a freshly taken photo."""

    async def take_photo(self) -> str: ...


class CaptureSessionController:
    """
    Drives a session through Idle -> Capturing -> Processing -> Result.

    Every stage runs to completion before the next one starts and only one
    cycle can be in flight: ``capture()`` is accepted from ``Idle`` only.
    Failures after the photo is taken end in ``Failed``; a failed capture
    returns to ``Idle`` with a notice. ``reset()`` leaves ``Result`` or
    ``Failed`` and drops everything the cycle produced.
    """

    def __init__(
        self,
        device: CaptureDevice,
        recognizer: RecognitionEngine,
        history: HistoryGateway,
        consumer_id: str,
        permissions: PermissionGate | None = None,
        tariff_rate: Decimal | None = None,
        capture_timeout: float | None = None,
        recognition_timeout: float | None = None,
        history_timeout: float | None = None,
    ):
        self._device = device
        self._recognizer = recognizer
        self._history = history
        self._consumer_id = consumer_id
        self._permissions = permissions
        self._tariff_rate = _default(tariff_rate, settings.TARIFF_RATE)
        self._capture_timeout = _default(capture_timeout, settings.CAPTURE_TIMEOUT)
        self._recognition_timeout = _default(
            recognition_timeout, settings.RECOGNITION_TIMEOUT
        )
        self._history_timeout = _default(history_timeout, settings.HISTORY_TIMEOUT)

        self._state: SessionState = Idle()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def consumer_id(self) -> str:
        return self._consumer_id

    @consumer_id.setter
    def consumer_id(self, value: str) -> None:
        if not isinstance(self._state, Idle):
            raise SessionBusyError(
                "Consumer can only be changed while idle, "
                f"not {self._state.status.value}."
            )
        self._consumer_id = value

    def add_listener(self, listener: StateListener) -> None:
        """Registers a callback invoked with every new state."""
        self._listeners.append(listener)

    async def capture(self) -> SessionState:
        """
        Runs one full cycle and returns the state it ended in.

        Raises:
            SessionBusyError: The session is not idle. The state is unchanged.
            PermissionsNotGrantedError: The permission gate refused the capture.
        """
        if not isinstance(self._state, Idle):
            logger.warning(
                f"Capture rejected for {self._consumer_id}: "
                f"session is {self._state.status.value}"
            )
            raise SessionBusyError(
                f"Cannot capture while the session is {self._state.status.value}."
            )
        if self._permissions is not None and not self._permissions.has_permissions():
            logger.warning(f"Capture rejected for {self._consumer_id}: no permissions")
            raise PermissionsNotGrantedError(
                "Capture requires permissions that have not been granted."
            )

        self._transition(Capturing())
        try:
            image_ref = await self._call(
                self._device.take_photo(),
                self._capture_timeout,
                CaptureDeviceError,
                "Capture device",
            )
        except CaptureDeviceError as e:
            logger.error(f"Capture failed: {e}", exc_info=True)
            self._transition(Idle(notice=str(e)))
            return self._state
        except asyncio.CancelledError:
            self._transition(Idle(notice="Capture was cancelled."))
            raise

        self._transition(Processing(image_ref=image_ref))
        try:
            state = await self._process(image_ref)
        except asyncio.CancelledError:
            self._transition(
                Failed(
                    reason=FailureReason.CANCELLED,
                    message="Processing was cancelled.",
                    image_ref=image_ref,
                )
            )
            raise
        self._transition(state)
        return self._state

    def reset(self) -> SessionState:
        """Returns to ``Idle``, discarding the image, text and billing result."""
        if not isinstance(self._state, (Idle, Result, Failed)):
            raise SessionBusyError(
                f"Cannot reset while the session is {self._state.status.value}."
            )
        self._transition(Idle())
        return self._state

    async def _process(self, image_ref: str) -> SessionState:
        try:
            recognition = await self._call(
                self._recognizer.recognize(image_ref),
                self._recognition_timeout,
                RecognitionError,
                "Recognition engine",
            )
            text = recognition.text if recognition is not None else None
            if text is None or not text.strip():
                raise RecognitionError("Recognition engine returned no text.")
        except RecognitionError as e:
            logger.error(f"Recognition failed for {image_ref}: {e}", exc_info=True)
            return Failed(
                reason=FailureReason.RECOGNITION_ERROR,
                message=str(e),
                image_ref=image_ref,
            )

        current_reading = extract_reading(text)
        if current_reading is None:
            logger.info(f"No reading detected in text from {image_ref}")
            return Failed(
                reason=FailureReason.EXTRACTION_NOT_FOUND,
                message="No meter reading detected in the recognized text.",
                image_ref=image_ref,
                recognized_text=text,
            )

        try:
            previous_reading = await self._call(
                self._history.fetch_previous(self._consumer_id),
                self._history_timeout,
                HistoryFetchError,
                "History lookup",
            )
        except HistoryFetchError as e:
            logger.error(
                f"Previous reading lookup failed for {self._consumer_id}: {e}",
                exc_info=True,
            )
            return Failed(
                reason=FailureReason.HISTORY_FETCH_ERROR,
                message=str(e),
                image_ref=image_ref,
                recognized_text=text,
            )

        billing = compute_billing(current_reading, previous_reading, self._tariff_rate)
        if billing.is_negative:
            logger.warning(
                f"Negative consumption for {self._consumer_id}: "
                f"{previous_reading} -> {current_reading}"
            )
        return Result(image_ref=image_ref, recognized_text=text, billing=billing)

    async def _call(
        self,
        awaitable: Awaitable[T],
        timeout: float,
        error: type[MeterScanError],
        label: str,
    ) -> T:
        """Awaits a collaborator, turning timeouts and faults into ``error``."""
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except error:
            raise
        except asyncio.TimeoutError as e:
            raise error(f"{label} timed out after {timeout:g}s.") from e
        except Exception as e:
            raise error(f"{label} failed: {e}") from e

    def _transition(self, state: SessionState) -> None:
        logger.info(
            f"Session {self._consumer_id}: "
            f"{self._state.status.value} -> {state.status.value}"
        )
        self._state = state
        for listener in self._listeners:
            try:
                listener(state)
            except Exception:
                logger.exception(f"State listener {listener!r} failed")


def _default(value: T | None, fallback: T) -> T:
    return fallback if value is None else value
