"""Utility functions for the retirement calculator.

This module provides helpers for parsing user input (command-line options,
form fields and URL query values) into Python numbers. All helpers raise
``ValueError`` on bad input; callers turn that into the error type of their
interface.
"""

from __future__ import annotations

import math


def parse_amount(value: str) -> float:
    """Parse a currency amount with optional ``k``/``m`` suffixes.

    Accepts plain numbers ("500000"), thousands separators ("100,000") and
    shorthand such as "100k" meaning 100_000. Negative amounts are allowed.

    Raises
    ------
    ValueError
        If the string is not a finite number.
    """
    cleaned = str(value).strip().lower().replace(",", "").replace("_", "")
    factor = 1.0
    if cleaned.endswith("k"):
        factor = 1_000.0
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = 1_000_000.0
        cleaned = cleaned[:-1]
    try:
        amount = float(cleaned) * factor
    except ValueError as exc:
        raise ValueError(f"Invalid amount: {value}") from exc
    if not math.isfinite(amount):
        raise ValueError(f"Invalid amount: {value}")
    return amount


def parse_percent(value: str) -> float:
    """Parse a percentage such as "10" or "10%" into percent units.

    Unlike fractional rates, the result stays in percent: "7.5%" becomes 7.5.
    """
    cleaned = str(value).strip()
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1]
    try:
        percent = float(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid percentage: {value}") from exc
    if not math.isfinite(percent):
        raise ValueError(f"Invalid percentage: {value}")
    return percent


def parse_age(value: str) -> int:
    """Parse a whole number of years.

    "20" and "20.0" are accepted; "20.5" is rejected because the projection
    advances one whole year at a time.
    """
    try:
        number = float(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid age: {value}") from exc
    if not math.isfinite(number) or not number.is_integer():
        raise ValueError(f"Invalid age: {value}")
    return int(number)


def format_number(value: float) -> str:
    """Render a number the way it is written back into a URL query.

    Integral floats lose their trailing ".0" so that "500" round-trips as
    "500" rather than "500.0".
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def json_safe(value):
    """Replace non-finite floats with ``None`` throughout a JSON-bound value.

    Extreme rates can overflow a projection to ``inf`` or ``nan``; those have
    no JSON representation, so they are written as ``null``.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value
