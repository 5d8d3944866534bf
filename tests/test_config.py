"""Tests for settings validation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from meterscan.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.TARIFF_RATE == Decimal("0.2")
    assert settings.HISTORY_TIMEOUT > 0


def test_rate_from_environment(monkeypatch):
    monkeypatch.setenv("TARIFF_RATE", "0.35")

    assert Settings(_env_file=None).TARIFF_RATE == Decimal("0.35")


@pytest.mark.parametrize(
    "field, value",
    [("TARIFF_RATE", "0"), ("TARIFF_RATE", "-1"), ("HISTORY_TIMEOUT", "0")],
)
def test_non_positive_values_are_rejected(monkeypatch, field, value):
    monkeypatch.setenv(field, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
