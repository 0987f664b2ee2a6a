"""Reverse geocoding into the (city, country) pair stored for each location."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from photo_atlas.core.errors import GeocodingError
from photo_atlas.core.models import Place

logger = logging.getLogger(__name__)

CITY_COMPONENT = "administrative_area_level_1"
COUNTRY_COMPONENT = "country"
NEIGHBORHOOD_COMPONENT = "neighborhood"

# Raw administrative-area labels mapped to the city names people expect.
CITY_OVERRIDES: dict[str, str] = {
    "กรุงเทพมหานคร": "Bangkok",
    "เชียงใหม่": "Chang Wat Chiang Mai",
    "Chang Wat Samut Prakan": "Samut Prakan",
    "Wilayah Persekutuan Kuala Lumpur": "Kuala Lumpur",
}

# Countries whose administrative areas make poor city names; the neighborhood is used instead.
NEIGHBORHOOD_CITY_COUNTRIES: frozenset[str] = frozenset({"Taiwan"})


class GeocodingProvider(Protocol):
    def address_components(self, latitude: float, longitude: float) -> list[dict[str, Any]]: ...


def load_city_overrides(path: str | Path | None = None) -> dict[str, str]:
    """Built-in overrides, extended by a JSON object file (CITY_OVERRIDES_FILE)."""
    overrides = dict(CITY_OVERRIDES)
    path = path or os.getenv("CITY_OVERRIDES_FILE")
    if not path:
        return overrides
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"city overrides file {path} must contain a JSON object")
    overrides.update({str(raw): str(label) for raw, label in data.items()})
    return overrides


def _component_name(component: Mapping[str, Any]) -> str:
    return str(component.get("long_name") or "").strip()


def place_from_components(
    components: list[Mapping[str, Any]],
    *,
    overrides: Optional[Mapping[str, str]] = None,
    neighborhood_countries: frozenset[str] = NEIGHBORHOOD_CITY_COUNTRIES,
) -> Optional[Place]:
    """Pick city and country out of typed address components.

    Returns None unless both end up non-empty.
    """
    overrides = CITY_OVERRIDES if overrides is None else overrides
    area = country = neighborhood = ""
    for component in components:
        types = component.get("types") or []
        name = _component_name(component)
        if CITY_COMPONENT in types and not area:
            area = name
        elif COUNTRY_COMPONENT in types and not country:
            country = name
        elif NEIGHBORHOOD_COMPONENT in types and not neighborhood:
            neighborhood = name

    if country in neighborhood_countries:
        city = neighborhood
    else:
        city = overrides.get(area, area) or neighborhood
    if not city or not country:
        return None
    return Place(city=city, country=country)


def reverse_geocode(
    provider: GeocodingProvider,
    latitude: float,
    longitude: float,
    *,
    overrides: Optional[Mapping[str, str]] = None,
) -> Place:
    components = provider.address_components(latitude, longitude)
    if not components:
        raise GeocodingError(
            f"reverse geocoding did not return required address components for "
            f"latitude {latitude}, longitude {longitude}"
        )
    place = place_from_components(components, overrides=overrides)
    if place is None:
        raise GeocodingError(
            f"couldn't find either city or country for coordinates {latitude}, {longitude}"
        )
    return place
