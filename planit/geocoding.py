"""
Address geocoding through a Nominatim-compatible search API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests

from planit.geo import format_point


class GeocodingError(Exception):
    """The geocoding service could not be reached or answered garbage."""


@dataclass(frozen=True)
class GeocodeResult:
    lat: float
    lng: float
    display_name: str

    @property
    def location(self) -> str:
        return format_point(self.lat, self.lng)

    def as_dict(self) -> dict:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "display_name": self.display_name,
            "location": self.location,
        }


class Geocoder(Protocol):
    def geocode(self, address: str) -> Optional[GeocodeResult]:
        ...


@dataclass
class StaticGeocoder:
    """Lookup table geocoder for development and tests."""

    known: dict[str, GeocodeResult] = field(default_factory=dict)

    def add(self, address: str, result: GeocodeResult) -> None:
        self.known[address.strip().lower()] = result

    def geocode(self, address: str) -> Optional[GeocodeResult]:
        return self.known.get(address.strip().lower())


@dataclass
class NominatimGeocoder:
    url: str = "https://nominatim.openstreetmap.org/search"
    user_agent: str = "PlanIt-App/1.0"
    timeout: float = 10.0

    def geocode(self, address: str) -> Optional[GeocodeResult]:
        """
        Return the best match for ``address`` or None when nothing matches.

        Raises:
            GeocodingError: on transport errors or an unexpected payload.
        """
        try:
            response = requests.get(
                self.url,
                params={"q": address, "format": "json", "limit": 1},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            results = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise GeocodingError(str(exc)) from exc

        if not results:
            return None
        first = results[0]
        try:
            return GeocodeResult(
                lat=float(first["lat"]),
                lng=float(first["lon"]),
                display_name=first.get("display_name", address),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodingError(f"Unexpected geocoder payload: {first!r}") from exc
