"""Timezone and place-name resolution for photo coordinates."""

from .geocoding import CITY_OVERRIDES, load_city_overrides, place_from_components, reverse_geocode
from .google_maps import GoogleMapsClient, GoogleMapsConfig
from .timezones import correct_timestamp, localize

__all__ = [
    "CITY_OVERRIDES",
    "GoogleMapsClient",
    "GoogleMapsConfig",
    "correct_timestamp",
    "load_city_overrides",
    "localize",
    "place_from_components",
    "reverse_geocode",
]
