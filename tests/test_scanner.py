from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

from conftest import CHIANG_MAI_LAT, CHIANG_MAI_LON, write_photo
from photo_atlas.core.errors import MissingMetadataError, UnsupportedImageError
from photo_atlas.ingest import read_capture_metadata, scan_candidates


def test_read_capture_metadata_returns_naive_wall_clock(tmp_path: Path) -> None:
    path = write_photo(tmp_path / "cat.jpg")

    metadata = read_capture_metadata(path)
    assert metadata.taken_at == datetime(2023, 6, 1, 14, 0, 0)
    assert metadata.taken_at.tzinfo is None
    assert metadata.latitude == pytest.approx(CHIANG_MAI_LAT)
    assert metadata.longitude == pytest.approx(CHIANG_MAI_LON)


def test_southern_and_western_refs_are_negative(tmp_path: Path) -> None:
    path = write_photo(
        tmp_path / "south.jpg", gps=((33.0, 52.0, 0.0), "S", (151.0, 12.0, 0.0), "W")
    )

    metadata = read_capture_metadata(path)
    assert metadata.latitude == pytest.approx(-(33 + 52 / 60))
    assert metadata.longitude == pytest.approx(-(151 + 12 / 60))


def test_missing_gps_is_an_error(tmp_path: Path) -> None:
    path = write_photo(tmp_path / "nogps.jpg", gps=None)
    with pytest.raises(MissingMetadataError):
        read_capture_metadata(path)


def test_missing_timestamp_is_an_error(tmp_path: Path) -> None:
    path = write_photo(tmp_path / "notime.jpg", taken_at=None)
    with pytest.raises(MissingMetadataError):
        read_capture_metadata(path)


def test_undecodable_file_is_an_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not a jpeg")
    with pytest.raises(UnsupportedImageError):
        read_capture_metadata(path)


def test_scan_skips_derivatives_and_unsupported_files(photo_dir: Path) -> None:
    write_photo(photo_dir / "a.jpg")
    write_photo(photo_dir / "b.JPEG")
    write_photo(photo_dir / "a-small.jpg")
    write_photo(photo_dir / "a-medium.jpg")
    (photo_dir / "notes.txt").write_text("skip me")
    (photo_dir / "clip.mp4").write_bytes(b"\x00")
    nested = photo_dir / "nested"
    nested.mkdir()
    write_photo(nested / "deep.jpg")

    candidates = scan_candidates(photo_dir)
    names = [Path(c.path_large).name for c in candidates]
    assert names == ["a.jpg", "b.JPEG"]
    assert all(len(c.sha256) == 64 for c in candidates)
    assert candidates[0].sha256 != candidates[1].sha256
    assert all(c.coordinate_id is None for c in candidates)


def test_scan_aborts_on_first_bad_file(photo_dir: Path) -> None:
    write_photo(photo_dir / "a.jpg")
    Image.new("RGB", (10, 10)).save(photo_dir / "b.jpg")

    with pytest.raises(MissingMetadataError, match="b.jpg"):
        scan_candidates(photo_dir)
