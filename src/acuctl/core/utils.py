# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Helper functions shared by the converter, record store and CLI.

This module provides:
- parse_duration(): "1s", "5min", "2h" -> milliseconds
- to_unsigned_int(): lossless integer normalization for chain u64/u128 values
- parse_job_id(): normalize a JobRegistrationStored argument into a JobId
- job_id_to_number(): numeric part of a JobId, used in record file names
"""

import re
from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from acuctl.core.schema import JobId

_DURATION_UNITS_MS = {
    "ms": 1,
    "millisecond": 1,
    "milliseconds": 1,
    "s": 1000,
    "sec": 1000,
    "second": 1000,
    "seconds": 1000,
    "m": 60_000,
    "min": 60_000,
    "minute": 60_000,
    "minutes": 60_000,
    "h": 3_600_000,
    "hr": 3_600_000,
    "hour": 3_600_000,
    "hours": 3_600_000,
    "d": 86_400_000,
    "day": 86_400_000,
    "days": 86_400_000,
    "w": 604_800_000,
    "week": 604_800_000,
    "weeks": 604_800_000,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]*)")


def parse_duration(text: str) -> int | None:
    """Parse a human duration into milliseconds.

    Parts are summed, so "1h 30min" works. A bare number is milliseconds.

    Args:
        text: Duration string (e.g., "1s", "5min", "2h")

    Returns:
        Milliseconds, or None if the string is not a duration
    """
    text = text.strip().lower()
    if not text:
        return None

    total = Decimal(0)
    position = 0
    for match in _DURATION_PART.finditer(text):
        if text[position : match.start()].strip(" ,"):
            return None
        value, unit = match.groups()
        factor = _DURATION_UNITS_MS.get(unit or "ms")
        if factor is None:
            return None
        total += Decimal(value) * factor
        position = match.end()

    if position == 0 or text[position:].strip():
        return None
    return int(total.to_integral_value(rounding=ROUND_HALF_UP))


def to_unsigned_int(value: Any) -> int:
    """Normalize an int, float or numeric string to a non-negative int.

    Floats are rounded half-up through their decimal string so large delays
    do not pick up binary rounding noise. Thousands separators ("1,234") are
    accepted because chain tooling prints u128 values that way.
    """
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got {value!r}")
    try:
        number = Decimal(str(value).replace(",", ""))
    except InvalidOperation as e:
        raise ValueError(f"Expected a number, got {value!r}") from e
    result = int(number.to_integral_value(rounding=ROUND_HALF_UP))
    if result < 0:
        raise ValueError(f"Expected a non-negative number, got {value!r}")
    return result


def parse_job_id(value: Any) -> JobId:
    """Normalize a job identifier as reported by the chain.

    Accepts (origin, number) pairs where origin is either an account string
    or a single-entry mapping such as {"Acurast": "5Grw..."}.
    """
    if isinstance(value, Mapping) or isinstance(value, str) or not isinstance(value, Sequence):
        raise ValueError(f"Expected (origin, number) job id, got {value!r}")
    if len(value) != 2:
        raise ValueError(f"Expected (origin, number) job id, got {value!r}")

    origin, number = value
    if isinstance(origin, Mapping):
        if len(origin) != 1:
            raise ValueError(f"Ambiguous job origin: {origin!r}")
        origin = next(iter(origin.values()))
    return str(origin), to_unsigned_int(number)


def job_id_to_number(job_id: Any) -> int:
    """Stable numeric encoding of a job identifier (its sequence number)."""
    return parse_job_id(job_id)[1]
