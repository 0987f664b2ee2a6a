from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Platform(str, Enum):
    MASTODON = "Mastodon"
    X = "X"


class CaptureMetadata(BaseModel):
    """GPS position and camera wall-clock time decoded from EXIF."""

    latitude: float
    longitude: float
    # Naive: cameras record local wall-clock time without a zone.
    taken_at: datetime


class Place(BaseModel):
    city: str
    country: str


class Candidate(BaseModel):
    """One source file moving through an ingestion run."""

    path_large: str
    path_medium: Optional[str] = None
    path_small: Optional[str] = None
    url_large: Optional[str] = None
    url_medium: Optional[str] = None
    url_small: Optional[str] = None
    sha256: str
    latitude: float
    longitude: float
    taken_at: datetime
    timezone: Optional[str] = None
    coordinate_id: Optional[int] = None
    city: Optional[str] = None
    country: Optional[str] = None

    @property
    def coordinate_known(self) -> bool:
        return self.coordinate_id is not None

    @property
    def is_resolved(self) -> bool:
        """True once the candidate has everything needed to become an image row."""
        if self.taken_at.tzinfo is None:
            return False
        if self.coordinate_known:
            return True
        return bool(self.city and self.country and self.timezone)


class KnownCoordinate(BaseModel):
    id: int
    latitude: float
    longitude: float
    timezone: str


class ImageRecord(BaseModel):
    """A persisted image joined with its coordinate and location."""

    id: int
    url_large: str
    url_medium: str
    url_small: str
    sha256: str
    timestamp: datetime
    latitude: float
    longitude: float
    city: str
    country: str
    timezone: str

    @property
    def location_label(self) -> str:
        if not self.city and self.country:
            return self.country
        if not self.country and self.city:
            return self.city
        if not self.city and not self.country:
            return "an undisclosed location"
        return f"{self.city}, {self.country}"
