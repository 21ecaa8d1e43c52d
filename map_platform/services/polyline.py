"""Encoded polyline codec with precision detection.

Stored routes use the encoded polyline algorithm but do not record whether
they were produced at precision 5 (most routing engines) or precision 6
(OSRM/Valhalla ``polyline6``). Decoding at the wrong precision scales the
path by a factor of ten: too small at 6 and usually out of range at 5, so
the candidate with the longer valid path is the right one.
"""

from __future__ import annotations

import logging
from math import isfinite
from typing import Iterable, Sequence

from ..utils.geo import is_valid_coordinate, path_length

logger = logging.getLogger(__name__)

PRECISIONS: tuple[int, ...] = (5, 6)

Coordinate = tuple[float, float]


class _TruncatedPolyline(ValueError):
    pass


def _iter_values(encoded: str) -> Iterable[int]:
    index = 0
    length = len(encoded)
    while index < length:
        result = 0
        shift = 0
        while True:
            if index >= length:
                raise _TruncatedPolyline(encoded)
            byte = ord(encoded[index]) - 63
            index += 1
            if byte < 0 or byte > 0x3F:
                raise _TruncatedPolyline(encoded)
            result |= (byte & 0x1F) << shift
            shift += 5
            if byte < 0x20:
                break
        yield ~(result >> 1) if result & 1 else result >> 1


def _decode_raw(encoded: str, precision: int) -> list[Coordinate]:
    """Decode to ``(lon, lat)`` pairs without any range filtering."""

    factor = 10 ** precision
    values = list(_iter_values(encoded))
    if len(values) % 2:
        raise _TruncatedPolyline(encoded)

    points: list[Coordinate] = []
    lat = lon = 0
    for d_lat, d_lon in zip(values[0::2], values[1::2]):
        lat += d_lat
        lon += d_lon
        points.append((lon / factor, lat / factor))
    return points


def decode(encoded: object, precision: int | None = None) -> list[Coordinate]:
    """Decode ``encoded`` into GeoJSON ordered ``(lon, lat)`` coordinates.

    When ``precision`` is omitted both standard precisions are tried and the
    one yielding the longer path is kept. Invalid input yields ``[]``.
    """

    if not isinstance(encoded, str) or not encoded:
        return []
    if precision is not None and precision not in PRECISIONS:
        logger.warning("Ignoring unsupported polyline precision hint %r", precision)
        precision = None

    candidates = (precision,) if precision else PRECISIONS
    best: list[Coordinate] = []
    best_length = -1.0
    for candidate in candidates:
        try:
            points = _decode_raw(encoded, candidate)
        except _TruncatedPolyline:
            logger.debug("Polyline is malformed at precision %s", candidate)
            return []
        length = path_length(points)
        if length > best_length:
            best, best_length = points, length

    return [
        (lon, lat)
        for lon, lat in best
        if isfinite(lon) and isfinite(lat) and is_valid_coordinate(lat, lon)
    ]


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode(points: Sequence[Sequence[float]], precision: int = 5) -> str:
    """Encode ``(lat, lon)`` pairs using the encoded polyline algorithm."""

    if precision not in PRECISIONS:
        raise ValueError(f"Unsupported polyline precision: {precision}")

    factor = 10 ** precision
    output = []
    prev_lat = prev_lon = 0
    for lat, lon in points:
        lat_i = int(round(lat * factor))
        lon_i = int(round(lon * factor))
        output.append(_encode_value(lat_i - prev_lat))
        output.append(_encode_value(lon_i - prev_lon))
        prev_lat, prev_lon = lat_i, lon_i
    return "".join(output)
