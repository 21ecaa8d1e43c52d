"""Geospatial helpers."""

from __future__ import annotations

from math import atan2, cos, isfinite, radians, sin, sqrt
from typing import Iterable


EARTH_RADIUS_METERS = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the distance between two coordinates in meters."""

    phi1 = radians(lat1)
    phi2 = radians(lat2)
    delta_phi = radians(lat2 - lat1)
    delta_lambda = radians(lon2 - lon1)

    a = sin(delta_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(delta_lambda / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """Return ``True`` for finite coordinates inside the geographic range."""

    return isfinite(lat) and isfinite(lon) and abs(lat) <= 90 and abs(lon) <= 180


def path_length(points: Iterable[tuple[float, float]]) -> float:
    """Sum the haversine length of ``(lon, lat)`` points.

    Segments touching an invalid coordinate are not counted.
    """

    total = 0.0
    previous: tuple[float, float] | None = None
    for lon, lat in points:
        if not is_valid_coordinate(lat, lon):
            previous = None
            continue
        if previous is not None:
            total += haversine_distance(previous[1], previous[0], lat, lon)
        previous = (lon, lat)
    return total
