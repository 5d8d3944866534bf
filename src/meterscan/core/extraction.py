"""Extraction of a meter reading from recognized text."""

from __future__ import annotations

import re
from typing import NewType

MeterReading = NewType("MeterReading", int)

# ASCII only: unicode digit classes (e.g. fullwidth) are not meter digits.
_DIGIT_RUN = re.compile(r"[0-9]+")


def extract_reading(text: str) -> MeterReading | None:
    """
    Finds the meter reading in a blob of recognized text.

    The first contiguous run of decimal digits is taken and parsed as a
    base-10 integer, so leading zeros are dropped (``"00012"`` gives ``12``)
    and a leading minus sign is ignored.

    Args:
        text: Raw text returned by the recognition engine.

    Returns:
        The reading, or ``None`` when the text contains no digits.
    """
    match = _DIGIT_RUN.search(text)
    if match is None:
        return None
    return MeterReading(int(match.group()))
