"""Utility helpers for the map platform project."""

from .geo import haversine_distance, is_valid_coordinate, path_length
from .formatting import parse_distance_meters, parse_duration_seconds
from .io import detect_encoding, ensure_directory
from .slug import slugify

__all__ = [
    "haversine_distance",
    "is_valid_coordinate",
    "path_length",
    "parse_distance_meters",
    "parse_duration_seconds",
    "detect_encoding",
    "ensure_directory",
    "slugify",
]
