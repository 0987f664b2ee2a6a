from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from photo_atlas.core.errors import PersistenceError
from photo_atlas.core.models import Candidate
from photo_atlas.geo.geocoding import GeocodingProvider, load_city_overrides, reverse_geocode
from photo_atlas.geo.timezones import TimezoneProvider, correct_timestamp, localize
from photo_atlas.index import store

from .resizer import WIDTH_MEDIUM, WIDTH_SMALL, resize_image
from .scanner import SUFFIX_MEDIUM, SUFFIX_SMALL, scan_candidates
from .upload import UploadSink

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class IngestConfig:
    database_url: str = "sqlite+pysqlite:///./photo_atlas.db"
    width_medium: int = WIDTH_MEDIUM
    width_small: int = WIDTH_SMALL
    city_overrides: dict[str, str] = field(default_factory=load_city_overrides)

    @classmethod
    def from_env(cls) -> "IngestConfig":
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./photo_atlas.db"),
            width_medium=int(os.getenv("IMAGE_WIDTH_MEDIUM", str(WIDTH_MEDIUM))),
            width_small=int(os.getenv("IMAGE_WIDTH_SMALL", str(WIDTH_SMALL))),
            city_overrides=load_city_overrides(),
        )


def _query(SessionLocal: sessionmaker[Session], operation: Callable[[Session], T]) -> T:
    try:
        with SessionLocal() as session:
            return operation(session)
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc)) from exc


def remove_known(
    candidates: list[Candidate], SessionLocal: sessionmaker[Session]
) -> list[Candidate]:
    """Drop candidates whose content hash is already stored or seen earlier in the batch."""
    hashes = [c.sha256 for c in candidates]
    known = _query(SessionLocal, lambda session: store.known_hashes(session, hashes))
    fresh: list[Candidate] = []
    for candidate in candidates:
        if candidate.sha256 in known:
            continue
        known.add(candidate.sha256)
        fresh.append(candidate)
    logger.info("Dedup: %d of %d photos are new", len(fresh), len(candidates))
    return fresh


def resize_candidates(
    candidates: list[Candidate], *, width_medium: int = WIDTH_MEDIUM, width_small: int = WIDTH_SMALL
) -> None:
    logger.info("Resizing %d photos", len(candidates))
    for candidate in candidates:
        candidate.path_small = str(resize_image(candidate.path_large, SUFFIX_SMALL, width_small))
        candidate.path_medium = str(
            resize_image(candidate.path_large, SUFFIX_MEDIUM, width_medium)
        )


def attach_known_coordinates(
    candidates: list[Candidate], SessionLocal: sessionmaker[Session]
) -> int:
    """Mark candidates whose exact coordinate is stored; returns the number of hits.

    Must run before timezone correction and geocoding so that known places
    never reach the metered external services.
    """
    hits = 0
    for candidate in candidates:
        known = _query(
            SessionLocal,
            lambda session: store.coordinate_for(session, candidate.latitude, candidate.longitude),
        )
        if known is None:
            continue
        candidate.coordinate_id = known.id
        candidate.timezone = known.timezone
        hits += 1
    logger.info("Coordinates: %d of %d photos at known coordinates", hits, len(candidates))
    return hits


def correct_timezones(candidates: list[Candidate], provider: TimezoneProvider) -> None:
    logger.info("Fixing timezones")
    for candidate in candidates:
        if candidate.coordinate_known:
            # Zone comes from the stored location; no lookup needed.
            logger.debug("Coordinate already known for %s. skipping lookup", candidate.path_large)
            candidate.taken_at = localize(candidate.taken_at, candidate.timezone)
            continue
        candidate.taken_at, candidate.timezone = correct_timestamp(
            provider, candidate.latitude, candidate.longitude, candidate.taken_at
        )


def geocode_candidates(
    candidates: list[Candidate],
    provider: GeocodingProvider,
    *,
    overrides: Optional[Mapping[str, str]] = None,
) -> None:
    logger.info("Reverse geocoding")
    for candidate in candidates:
        if candidate.coordinate_known:
            logger.debug("Coordinate already known for %s. skipping", candidate.path_large)
            continue
        place = reverse_geocode(
            provider, candidate.latitude, candidate.longitude, overrides=overrides
        )
        candidate.city = place.city
        candidate.country = place.country


def upload_candidates(candidates: list[Candidate], sink: UploadSink) -> None:
    logger.info("Uploading %d photos", len(candidates))
    for candidate in candidates:
        candidate.url_large = sink.store(Path(candidate.path_large))
        candidate.url_medium = sink.store(Path(candidate.path_medium))
        candidate.url_small = sink.store(Path(candidate.path_small))


def persist_candidates(candidates: list[Candidate], SessionLocal: sessionmaker[Session]) -> list[int]:
    """Insert one image per candidate, each in its own transaction.

    Rows committed before a failure stay in place.
    """
    logger.info("Inserting %d images", len(candidates))
    image_ids: list[int] = []
    for candidate in candidates:
        try:
            with SessionLocal.begin() as session:
                image_ids.append(store.insert_image(session, candidate).id)
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"unable to insert image {candidate.path_large}: {exc}"
            ) from exc
    return image_ids


def ingest_directory(
    root: str | Path,
    SessionLocal: sessionmaker[Session],
    *,
    timezones: TimezoneProvider,
    geocoder: GeocodingProvider,
    sink: UploadSink,
    config: Optional[IngestConfig] = None,
) -> list[Candidate]:
    """Scan ``root`` and store every new photo. Returns the persisted candidates.

    Stages run one after another over the whole batch; the first failure aborts
    the run with an IngestError subclass.
    """
    config = config or IngestConfig()
    candidates = scan_candidates(root)
    candidates = remove_known(candidates, SessionLocal)
    if not candidates:
        logger.info("No new images found at %s", root)
        return []

    resize_candidates(
        candidates, width_medium=config.width_medium, width_small=config.width_small
    )
    attach_known_coordinates(candidates, SessionLocal)
    correct_timezones(candidates, timezones)
    geocode_candidates(candidates, geocoder, overrides=config.city_overrides)
    upload_candidates(candidates, sink)
    persist_candidates(candidates, SessionLocal)
    logger.info("Ingested %d new images from %s", len(candidates), root)
    return candidates
