"""States of a capture session."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Union

from meterscan.core.calculations import BillingResult


class SessionStatus(str, enum.Enum):
    """Tag of the active session state."""

    IDLE = "idle"
    CAPTURING = "capturing"
    PROCESSING = "processing"
    RESULT = "result"
    FAILED = "failed"


class FailureReason(str, enum.Enum):
    """Why a processing cycle ended in the failed state."""

    RECOGNITION_ERROR = "recognition_error"
    EXTRACTION_NOT_FOUND = "extraction_not_found"
    HISTORY_FETCH_ERROR = "history_fetch_error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Idle:
    """No image captured. ``notice`` carries the last capture failure, if any."""

    status: ClassVar[SessionStatus] = SessionStatus.IDLE

    notice: str | None = None


@dataclass(frozen=True)
class Capturing:
    """Waiting on the capture device."""

    status: ClassVar[SessionStatus] = SessionStatus.CAPTURING


@dataclass(frozen=True)
class Processing:
    """Recognition, extraction, history fetch and billing are running."""

    status: ClassVar[SessionStatus] = SessionStatus.PROCESSING

    image_ref: str


@dataclass(frozen=True)
class Result:
    """A completed cycle."""

    status: ClassVar[SessionStatus] = SessionStatus.RESULT

    image_ref: str
    recognized_text: str
    billing: BillingResult


@dataclass(frozen=True)
class Failed:
    """A cycle that stopped early, with whatever data it had gathered."""

    status: ClassVar[SessionStatus] = SessionStatus.FAILED

    reason: FailureReason
    message: str
    image_ref: str
    recognized_text: str | None = None


SessionState = Union[Idle, Capturing, Processing, Result, Failed]
