from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from photo_atlas.core.models import Candidate

from .exif_reader import read_capture_metadata

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
SUFFIX_MEDIUM = "-medium"
SUFFIX_SMALL = "-small"
DERIVATIVE_SUFFIXES = (SUFFIX_MEDIUM, SUFFIX_SMALL)


def _hash_file(path: Path, chunk_size: int = 1024 * 1024) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as infile:
        for chunk in iter(lambda: infile.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def is_supported(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def is_derivative(path: Path) -> bool:
    """True for resized outputs of an earlier run, e.g. ``cat-small.jpg``."""
    return path.stem.endswith(DERIVATIVE_SUFFIXES)


def scan_candidates(root: str | Path) -> list[Candidate]:
    """Hash and decode every supported source photo directly inside ``root``.

    Files are visited in name order. Any file lacking GPS or timestamp EXIF tags
    aborts the scan.
    """
    root_path = Path(root)
    logger.info("Scanning directory %s", root_path)
    candidates: list[Candidate] = []
    for path in sorted(root_path.iterdir()):
        if not path.is_file() or not is_supported(path):
            continue
        if is_derivative(path):
            continue
        sha256 = _hash_file(path)
        metadata = read_capture_metadata(path)
        candidates.append(
            Candidate(
                path_large=str(path.resolve()),
                sha256=sha256,
                latitude=metadata.latitude,
                longitude=metadata.longitude,
                taken_at=metadata.taken_at,
            )
        )
    logger.info("Found %d source photos in %s", len(candidates), root_path)
    return candidates
