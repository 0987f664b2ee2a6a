from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pytest
from PIL import Image

EXIF_IFD = 0x8769
GPS_IFD = 0x8825

CHIANG_MAI_GPS = ((18.0, 47.0, 24.0), "N", (98.0, 59.0, 6.0), "E")
CHIANG_MAI_LAT = 18 + 47 / 60.0 + 24 / 3600.0
CHIANG_MAI_LON = 98 + 59 / 60.0 + 6 / 3600.0

CHIANG_MAI_COMPONENTS = [
    {"long_name": "Si Phum", "short_name": "Si Phum", "types": ["neighborhood", "political"]},
    {
        "long_name": "เชียงใหม่",
        "short_name": "จ.เชียงใหม่",
        "types": ["administrative_area_level_1", "political"],
    },
    {"long_name": "Thailand", "short_name": "TH", "types": ["country", "political"]},
]


def write_photo(
    path: Path,
    *,
    size: tuple[int, int] = (1200, 800),
    gps: Optional[tuple] = CHIANG_MAI_GPS,
    taken_at: Optional[str] = "2023:06:01 14:00:00",
) -> Path:
    """Write a JPEG with GPS and DateTimeOriginal EXIF tags; content is unique per file name."""
    img = Image.new("RGB", size, color="orange")
    exif = Image.Exif()
    exif[270] = path.name  # ImageDescription keeps file bytes distinct
    if taken_at:
        exif[306] = taken_at
        exif[EXIF_IFD] = {36867: taken_at}
    if gps:
        lat, lat_ref, lon, lon_ref = gps
        exif[GPS_IFD] = {1: lat_ref, 2: lat, 3: lon_ref, 4: lon}
    img.save(path, format="JPEG", exif=exif)
    return path


class StubTimezones:
    def __init__(self, zone: str = "Asia/Bangkok"):
        self.zone = zone
        self.calls: list[tuple[float, float, datetime]] = []

    def timezone_id(self, latitude: float, longitude: float, at: datetime) -> str:
        self.calls.append((latitude, longitude, at))
        return self.zone


class StubGeocoder:
    def __init__(self, components: Optional[list[dict[str, Any]]] = None):
        self.components = CHIANG_MAI_COMPONENTS if components is None else components
        self.calls = 0

    def address_components(self, latitude: float, longitude: float) -> list[dict[str, Any]]:
        self.calls += 1
        return self.components


@pytest.fixture
def photo_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "photos"
    directory.mkdir()
    return directory


@pytest.fixture
def SessionLocal(tmp_path: Path):
    from photo_atlas.index import init_db, session_factory

    engine = init_db(f"sqlite+pysqlite:///{tmp_path / 'atlas.db'}")
    yield session_factory(engine)
    engine.dispose()
