"""Core business logic for billing calculations."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from meterscan.core.extraction import MeterReading


@dataclass(frozen=True)
class BillingResult:
    """Consumption and tariff derived from two successive readings."""

    previous_reading: MeterReading
    current_reading: MeterReading
    consumption: int
    tariff: Decimal

    @property
    def is_negative(self) -> bool:
        """True when the current reading is below the previous one."""
        return self.consumption < 0


def calculate_consumption(
    current_reading: MeterReading, previous_reading: MeterReading
) -> int:
    """
    Calculates the consumption between two meter readings.

    The result is not clamped: a current reading below the previous one
    (rollback, rollover or misread) yields a negative consumption that the
    caller has to validate.
    """
    return current_reading - previous_reading


def calculate_tariff(consumption: int, rate: Decimal | int | float | str) -> Decimal:
    """
    Calculates the monetary charge for a consumption at a per-unit rate.

    The value is never rounded here; rounding happens on display.
    """
    return Decimal(consumption) * _as_decimal(rate)


def compute_billing(
    current_reading: MeterReading,
    previous_reading: MeterReading,
    rate: Decimal | int | float | str,
) -> BillingResult:
    """Builds the billing result for a pair of readings."""
    consumption = calculate_consumption(current_reading, previous_reading)
    return BillingResult(
        previous_reading=previous_reading,
        current_reading=current_reading,
        consumption=consumption,
        tariff=calculate_tariff(consumption, rate),
    )


def _as_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.2 as 0.2 instead of its binary expansion
    return Decimal(str(value))
