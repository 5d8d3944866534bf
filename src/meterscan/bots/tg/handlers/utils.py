"""Rendering of session states as chat messages."""

from __future__ import annotations

from decimal import Decimal

from aiogram import html

from meterscan.core.calculations import BillingResult
from meterscan.core.states import Failed, FailureReason, Idle, Result, SessionState

FAILURE_TITLES = {
    FailureReason.RECOGNITION_ERROR: "Could not recognize the photo",
    FailureReason.EXTRACTION_NOT_FOUND: "No reading detected",
    FailureReason.HISTORY_FETCH_ERROR: "Could not load the previous reading",
    FailureReason.CANCELLED: "Processing was interrupted",
}


def format_amount(value: Decimal) -> str:
    """Formats a monetary amount with two decimals."""
    return f"{value:.2f}"


def format_billing(billing: BillingResult) -> str:
    """Formats a billing result as message lines."""
    lines = [
        f"Previous reading: <b>{billing.previous_reading}</b>",
        f"Current reading: <b>{billing.current_reading}</b>",
        f"Consumption: <b>{billing.consumption}</b>",
        f"Tariff: <b>${format_amount(billing.tariff)}</b>",
    ]
    if billing.is_negative:
        lines.append(
            "⚠️ The current reading is lower than the previous one. "
            "Check the photo before saving."
        )
    return "\n".join(lines)


def render_state(state: SessionState) -> str:
    """Builds the message text describing a session state."""
    if isinstance(state, Idle):
        if state.notice:
            return (
                f"⚠️ Capture failed: {html.quote(state.notice)}\n"
                "Please send the photo again."
            )
        return "Send a photo of the meter display."

    if isinstance(state, Result):
        return (
            f"Recognized text:\n{html.pre(html.quote(state.recognized_text))}\n\n"
            f"{format_billing(state.billing)}"
        )

    if isinstance(state, Failed):
        lines = [
            f"❌ <b>{FAILURE_TITLES[state.reason]}</b>",
            html.quote(state.message),
        ]
        if state.recognized_text is not None:
            lines.append(
                f"\nRecognized text:\n{html.pre(html.quote(state.recognized_text))}"
            )
        return "\n".join(lines)

    return "⏳ Processing the photo..."
