"""
Helpers for the textual point notation used by the spatial store.

Points are written as ``POINT(<lng> <lat>)``, longitude first.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional

EARTH_RADIUS_METERS = 6371008.8

POINT_PATTERN = re.compile(
    r"^\s*(?:SRID=\d+;)?\s*POINT\s*\(\s*(-?\d+(?:\.\d+)?)\s+(-?\d+(?:\.\d+)?)\s*\)\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def to_text(self) -> str:
        return format_point(self.lat, self.lng)


def format_point(lat: float, lng: float) -> str:
    return f"POINT({lng} {lat})"


def parse_point(text: Optional[str]) -> Optional[GeoPoint]:
    """
    Parse ``POINT(lng lat)`` into a GeoPoint.

    Returns None for empty input and raises ValueError when the text is not a
    point or the coordinates are out of range.
    """
    if text is None or not text.strip():
        return None
    match = POINT_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid point: {text!r}")
    lng, lat = float(match.group(1)), float(match.group(2))
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValueError(f"Point out of range: {text!r}")
    return GeoPoint(lat=lat, lng=lng)


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))
