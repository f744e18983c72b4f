"""Shared size, duration and number normalizer.

Engine metrics and plan text carry human-formatted values such as
``"1,234,567"``, ``"12.3 MiB"`` or ``"1.2 s"``. The helpers here turn them into
plain numbers. None of them raise on malformed text; they return ``None``
instead so the caller can omit whatever it was about to derive.
"""

from __future__ import annotations

import math
import re
from datetime import datetime

_NUMBER_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*([A-Za-z%]*)\s*$")

_BYTE_UNITS: dict[str, int] = {
    "": 1,
    "b": 1,
    "byte": 1,
    "bytes": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
    "t": 1024**4,
    "tb": 1024**4,
    "tib": 1024**4,
    "p": 1024**5,
    "pb": 1024**5,
    "pib": 1024**5,
}

_DURATION_UNITS_MS: dict[str, float] = {
    "": 1.0,
    "ns": 1e-6,
    "us": 1e-3,
    "ms": 1.0,
    "s": 1000.0,
    "sec": 1000.0,
    "m": 60_000.0,
    "min": 60_000.0,
    "h": 3_600_000.0,
    "hr": 3_600_000.0,
}

_COUNT_SUFFIXES = frozenset({"", "rows", "row", "records", "files", "partitions"})

_SUBMISSION_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def _split(text: str) -> tuple[float, str] | None:
    match = _NUMBER_PATTERN.match(text.replace(",", ""))
    if match is None:
        return None
    value = float(match.group(1))
    if math.isnan(value) or math.isinf(value):
        return None
    return value, match.group(2).lower()


def parse_number(text: str | None) -> float | None:
    """Parse a plain count, tolerating thousands separators and a count noun.

    Parameters
    ----------
    text : str | None
        Text such as ``"1,234,567"`` or ``"1,234 rows"``

    Returns
    -------
    float | None
        The number, or None when the text is not numeric

    Examples
    --------
    >>> parse_number("1,234,567")
    1234567.0
    >>> parse_number("12 rows")
    12.0
    >>> parse_number("n/a") is None
    True
    """
    if text is None:
        return None
    parsed = _split(text)
    if parsed is None:
        return None
    value, unit = parsed
    if unit not in _COUNT_SUFFIXES:
        return None
    return value


def parse_bytes(text: str | None) -> int | None:
    """Parse a size such as ``"12.3 MiB"`` into bytes (binary multiples).

    Examples
    --------
    >>> parse_bytes("1.5 KiB")
    1536
    >>> parse_bytes("2,048 B")
    2048
    """
    if text is None:
        return None
    parsed = _split(text)
    if parsed is None:
        return None
    value, unit = parsed
    multiplier = _BYTE_UNITS.get(unit)
    if multiplier is None:
        return None
    return math.trunc(value * multiplier)


def parse_duration_ms(text: str | None) -> float | None:
    """Parse a duration such as ``"1.2 s"`` or ``"350 ms"`` into milliseconds.

    Compound values like ``"1 m 3 s"`` are not supported; the engine emits a
    single unit per value. A bare number is taken as milliseconds.

    Examples
    --------
    >>> parse_duration_ms("1.5 s")
    1500.0
    >>> parse_duration_ms("2 min")
    120000.0
    """
    if text is None:
        return None
    parsed = _split(text)
    if parsed is None:
        return None
    value, unit = parsed
    multiplier = _DURATION_UNITS_MS.get(unit)
    if multiplier is None:
        return None
    return value * multiplier


def extract_statistics_total(value: str) -> str:
    """Return the total of a statistics metric, or ``value`` itself otherwise.

    Statistics metrics look like::

        total (min, med, max (stageId: taskId))
        12.3 s (1 ms, 2 ms, 3 s (stage 1.0: task 4))

    The total is the text of the second line before its first parenthesis.
    """
    lines = value.split("\n")
    if len(lines) < 2:
        return value.strip()
    return lines[1].split("(", 1)[0].strip()


def parse_submission_time(text: str | None) -> int | None:
    """Parse the engine's ``2024-01-01T10:00:00.000GMT`` timestamps to epoch millis.

    Examples
    --------
    >>> parse_submission_time("1970-01-01T00:00:01.500GMT")
    1500
    >>> parse_submission_time("yesterday") is None
    True
    """
    if not text:
        return None
    try:
        moment = datetime.strptime(text.strip().replace("GMT", "+0000"), _SUBMISSION_TIME_FORMAT)
    except ValueError:
        return None
    return round(moment.timestamp() * 1000)


def calculate_percentage(value: float, total: float) -> float:
    """Return ``value`` as a percentage of ``total``, clamped to [0, 100].

    A zero ``total`` yields 0.

    Examples
    --------
    >>> calculate_percentage(25, 200)
    12.5
    >>> calculate_percentage(5, 0)
    0
    """
    if total == 0:
        return 0
    percentage = (value / total) * 100
    return min(max(percentage, 0.0), 100.0)
