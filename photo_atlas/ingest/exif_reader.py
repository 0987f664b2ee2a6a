from __future__ import annotations

import numbers
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from photo_atlas.core.errors import MissingMetadataError, UnsupportedImageError
from photo_atlas.core.models import CaptureMetadata

DATETIME_ORIGINAL_TAG = 36867  # EXIF DateTimeOriginal
DATETIME_TAG = 306  # EXIF DateTime fallback
EXIF_IFD_TAG = 34665  # ExifOffset
GPS_INFO_TAG = 34853  # GPSInfo
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


def _to_float(value: object) -> Optional[float]:
    if isinstance(value, tuple) and len(value) == 2 and value[1]:
        return float(value[0]) / float(value[1])
    if isinstance(value, (int, float)) or isinstance(value, numbers.Real):
        return float(value)
    return None


def _convert_gps_coordinate(values: object, ref: object) -> Optional[float]:
    if not isinstance(values, tuple) or len(values) != 3 or ref is None:
        return None
    parts = [_to_float(v) for v in values]
    if any(p is None for p in parts):
        return None
    degrees, minutes, seconds = parts  # type: ignore[misc]
    coordinate = degrees + minutes / 60.0 + seconds / 3600.0
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if isinstance(ref, str) and ref.strip("\x00").upper() in {"S", "W"}:
        coordinate *= -1
    return coordinate


def _parse_timestamp(value: object) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip("\x00").strip(), EXIF_DATETIME_FORMAT)
    except ValueError:
        return None


def read_capture_metadata(path: str | Path) -> CaptureMetadata:
    """Decode GPS coordinates and the naive capture time from a photo's EXIF data.

    Raises MissingMetadataError when either is absent; ingestion cannot place or
    date a photo without them.
    """
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            exif_ifd = exif.get_ifd(EXIF_IFD_TAG)
            gps_info = exif.get_ifd(GPS_INFO_TAG)
    except (UnidentifiedImageError, OSError) as exc:
        raise UnsupportedImageError(f"unable to decode exif data from file at {path}: {exc}") from exc

    taken_at = (
        _parse_timestamp(exif_ifd.get(DATETIME_ORIGINAL_TAG))
        or _parse_timestamp(exif.get(DATETIME_ORIGINAL_TAG))
        or _parse_timestamp(exif.get(DATETIME_TAG))
    )
    if taken_at is None:
        raise MissingMetadataError(f"unable to read timestamp from exif data in file at {path}")

    latitude = longitude = None
    if gps_info:
        latitude = _convert_gps_coordinate(gps_info.get(2), gps_info.get(1))
        longitude = _convert_gps_coordinate(gps_info.get(4), gps_info.get(3))
    if latitude is None or longitude is None:
        raise MissingMetadataError(f"unable to read GPS coords from exif data in file at {path}")

    return CaptureMetadata(latitude=latitude, longitude=longitude, taken_at=taken_at)
