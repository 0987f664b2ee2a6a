from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import httpx

from photo_atlas.core.errors import GeocodingError, TimezoneLookupError

logger = logging.getLogger(__name__)


@dataclass
class GoogleMapsConfig:
    api_key: Optional[str]
    base_url: str
    timeout: float
    language: str

    @classmethod
    def from_env(cls) -> "GoogleMapsConfig":
        return cls(
            api_key=os.getenv("GOOGLE_MAPS_API_KEY"),
            base_url=os.getenv("GOOGLE_MAPS_BASE_URL", "https://maps.googleapis.com/maps/api"),
            timeout=float(os.getenv("GOOGLE_MAPS_HTTP_TIMEOUT", "10")),
            language=os.getenv("GOOGLE_MAPS_LANGUAGE", "en"),
        )


class GoogleMapsClient:
    """Time Zone and reverse Geocoding APIs of Google Maps Platform."""

    def __init__(self, config: GoogleMapsConfig, client: Optional[httpx.Client] = None):
        if not config.api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY not set")
        self.config = config
        self.client = client or httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        response = self.client.get(endpoint, params={**params, "key": self.config.api_key})
        response.raise_for_status()
        return response.json()

    def timezone_id(self, latitude: float, longitude: float, at: datetime) -> str:
        """Return the IANA zone name in effect at the coordinate for instant ``at``."""
        try:
            data = self._get(
                "timezone/json",
                {
                    "location": f"{latitude},{longitude}",
                    "timestamp": int(at.timestamp()),
                    "language": self.config.language,
                },
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise TimezoneLookupError(
                f"timezone lookup failed for {latitude}, {longitude}: {exc}"
            ) from exc
        status = data.get("status")
        zone = data.get("timeZoneId")
        if status != "OK" or not zone:
            raise TimezoneLookupError(
                f"timezone lookup for {latitude}, {longitude} returned status {status}"
            )
        return str(zone)

    def address_components(self, latitude: float, longitude: float) -> list[dict[str, Any]]:
        """Address components of the best reverse geocoding result (may be empty)."""
        try:
            data = self._get(
                "geocode/json",
                {"latlng": f"{latitude},{longitude}", "language": self.config.language},
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise GeocodingError(
                f"reverse geocoding failed for {latitude}, {longitude}: {exc}"
            ) from exc
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise GeocodingError(
                f"reverse geocoding for {latitude}, {longitude} returned status {status}"
            )
        results = data.get("results") or []
        if not results:
            return []
        return list(results[0].get("address_components") or [])
