"""Formatting helpers for free-text footer values."""

from __future__ import annotations

import re

_QUANTITY = re.compile(r"(\d{1,3}(?:,\d{3})+(?!\d)(?:\.\d+)?|\d+(?:[.,]\d+)?)\s*([a-zA-Z]*)")
_THOUSANDS = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?")
_CLOCK = re.compile(r"(?<![\d:])(\d{1,2}):(\d{2})(?::(\d{2}))?(?![\d:])")

_DISTANCE_UNITS = {
    "": 1.0,
    "m": 1.0,
    "km": 1000.0,
    "kms": 1000.0,
    "mi": 1609.344,
    "mile": 1609.344,
    "miles": 1609.344,
}

_DURATION_UNITS = {
    "": 60.0,
    "s": 1.0,
    "sec": 1.0,
    "secs": 1.0,
    "h": 3600.0,
    "hr": 3600.0,
    "hrs": 3600.0,
    "hour": 3600.0,
    "hours": 3600.0,
    "min": 60.0,
    "mins": 60.0,
    "minute": 60.0,
    "minutes": 60.0,
}


def _to_float(number: str) -> float:
    if _THOUSANDS.fullmatch(number):
        return float(number.replace(",", ""))
    return float(number.replace(",", "."))


def _parse_quantity(text: str | None, units: dict[str, float], total: float | None = None) -> float | None:
    if not text:
        return total
    for number, unit in _QUANTITY.findall(str(text)):
        factor = units.get(unit.lower())
        if factor is None:
            continue
        total = (total or 0.0) + _to_float(number) * factor
    return round(total, 3) if total is not None else None


def parse_distance_meters(text: str | None) -> float | None:
    """Extract a distance in meters from text such as ``"12.5 KM"``.

    Values without a unit are read as meters. A comma followed by exactly
    three digits groups thousands (``"1,200 m"``), otherwise it is a decimal
    mark (``"21,3 km"``).
    """

    return _parse_quantity(text, _DISTANCE_UNITS)


def parse_duration_seconds(text: str | None) -> float | None:
    """Extract a duration in seconds from text such as ``"1 h 20 mins"``.

    Clock values (``"01:01"``, ``"1:02:30"``) are read as ``H:MM[:SS]``.
    Other values without a unit are read as minutes.
    """

    if not text:
        return None
    text = str(text)
    clock_total = None
    for hours, minutes, seconds in _CLOCK.findall(text):
        clock_total = (clock_total or 0.0) + int(hours) * 3600 + int(minutes) * 60 + int(seconds or 0)
    return _parse_quantity(_CLOCK.sub(" ", text), _DURATION_UNITS, clock_total)
