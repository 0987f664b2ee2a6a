from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import Select, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from photo_atlas.core.errors import PersistenceError
from photo_atlas.core.models import Candidate, ImageRecord, KnownCoordinate, Platform

from .schema import CoordinateRow, ImageRow, LocationRow, PlatformRow, PostRow

logger = logging.getLogger(__name__)


def _insert_if_absent(
    session: Session, model: type, values: dict[str, Any], conflict_columns: list[str]
) -> None:
    """INSERT ... ON CONFLICT DO NOTHING; a concurrent writer winning the race is not an error."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=conflict_columns
        )
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values).on_conflict_do_nothing(
            index_elements=conflict_columns
        )
    else:
        try:
            with session.begin_nested():
                session.execute(insert(model).values(**values))
        except IntegrityError:
            logger.debug("%s row %s already exists", model.__tablename__, values)
        return
    session.execute(stmt)


def known_hashes(session: Session, hashes: Iterable[str]) -> set[str]:
    """Subset of ``hashes`` already stored as images."""
    wanted = list(set(hashes))
    if not wanted:
        return set()
    return set(session.scalars(select(ImageRow.sha256).where(ImageRow.sha256.in_(wanted))))


def coordinate_for(session: Session, latitude: float, longitude: float) -> Optional[KnownCoordinate]:
    """Exact-match lookup of a stored coordinate; None when it has not been seen yet."""
    row = session.execute(
        select(CoordinateRow.id, LocationRow.timezone)
        .join(LocationRow, LocationRow.id == CoordinateRow.location_id)
        .where(CoordinateRow.latitude == latitude, CoordinateRow.longitude == longitude)
    ).first()
    if row is None:
        return None
    return KnownCoordinate(id=row.id, latitude=latitude, longitude=longitude, timezone=row.timezone)


def get_or_create_location(session: Session, city: str, country: str, timezone_name: str) -> int:
    _insert_if_absent(
        session,
        LocationRow,
        {"city": city, "country": country, "timezone": timezone_name},
        ["city", "country"],
    )
    return session.scalar(
        select(LocationRow.id).where(LocationRow.city == city, LocationRow.country == country)
    )


def get_or_create_coordinate(
    session: Session, latitude: float, longitude: float, location_id: int
) -> int:
    _insert_if_absent(
        session,
        CoordinateRow,
        {"latitude": latitude, "longitude": longitude, "location_id": location_id},
        ["latitude", "longitude"],
    )
    return session.scalar(
        select(CoordinateRow.id).where(
            CoordinateRow.latitude == latitude, CoordinateRow.longitude == longitude
        )
    )


def insert_image(session: Session, candidate: Candidate) -> ImageRow:
    """Insert the image row for a fully resolved candidate, creating its coordinate if needed."""
    if not candidate.is_resolved:
        raise PersistenceError(f"candidate {candidate.path_large} is not fully resolved")
    if not (candidate.url_large and candidate.url_medium and candidate.url_small):
        raise PersistenceError(f"candidate {candidate.path_large} has not been uploaded")

    coordinate_id = candidate.coordinate_id
    if coordinate_id is None:
        location_id = get_or_create_location(
            session, candidate.city, candidate.country, candidate.timezone
        )
        coordinate_id = get_or_create_coordinate(
            session, candidate.latitude, candidate.longitude, location_id
        )

    row = ImageRow(
        url_large=candidate.url_large,
        url_medium=candidate.url_medium,
        url_small=candidate.url_small,
        sha256=candidate.sha256,
        timestamp=candidate.taken_at.astimezone(timezone.utc),
        coordinate_id=coordinate_id,
    )
    session.add(row)
    session.flush()
    return row


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _records_query() -> Select:
    return (
        select(ImageRow, CoordinateRow, LocationRow)
        .join(CoordinateRow, CoordinateRow.id == ImageRow.coordinate_id)
        .join(LocationRow, LocationRow.id == CoordinateRow.location_id)
    )


def _to_record(image: ImageRow, coordinate: CoordinateRow, location: LocationRow) -> ImageRecord:
    return ImageRecord(
        id=image.id,
        url_large=image.url_large,
        url_medium=image.url_medium,
        url_small=image.url_small,
        sha256=image.sha256,
        timestamp=_as_utc(image.timestamp).astimezone(ZoneInfo(location.timezone)),
        latitude=coordinate.latitude,
        longitude=coordinate.longitude,
        city=location.city,
        country=location.country,
        timezone=location.timezone,
    )


def _load_records(session: Session, stmt: Select) -> list[ImageRecord]:
    return [_to_record(*row) for row in session.execute(stmt).all()]


def get_image(session: Session, image_id: int) -> Optional[ImageRecord]:
    records = _load_records(session, _records_query().where(ImageRow.id == image_id))
    return records[0] if records else None


def find_by_hash(session: Session, sha256: str) -> Optional[ImageRecord]:
    records = _load_records(session, _records_query().where(ImageRow.sha256 == sha256))
    return records[0] if records else None


def list_images(session: Session) -> list[ImageRecord]:
    return _load_records(session, _records_query().order_by(ImageRow.id))


def images_at(session: Session, latitude: float, longitude: float) -> list[ImageRecord]:
    """Images taken at exactly this coordinate, oldest first."""
    return _load_records(
        session,
        _records_query()
        .where(CoordinateRow.latitude == latitude, CoordinateRow.longitude == longitude)
        .order_by(ImageRow.timestamp),
    )


def _posted_image_ids(platform: Platform | str) -> Select:
    name = platform.value if isinstance(platform, Platform) else platform
    return (
        select(PostRow.image_id)
        .join(PlatformRow, PlatformRow.id == PostRow.platform_id)
        .where(PlatformRow.name == name)
    )


def random_unused_image(session: Session, platform: Platform | str) -> Optional[ImageRecord]:
    """A random image that has not been posted to ``platform`` yet."""
    records = _load_records(
        session,
        _records_query()
        .where(ImageRow.id.not_in(_posted_image_ids(platform)))
        .order_by(func.random())
        .limit(1),
    )
    return records[0] if records else None


def unused_image_count(session: Session, platform: Platform | str) -> int:
    return session.scalar(
        select(func.count(ImageRow.id)).where(ImageRow.id.not_in(_posted_image_ids(platform)))
    )


def register_platform(
    session: Session, platform: Platform | str, profile_url: str | None = None
) -> PlatformRow:
    name = platform.value if isinstance(platform, Platform) else platform
    row = session.scalar(select(PlatformRow).where(PlatformRow.name == name))
    if row is None:
        row = PlatformRow(name=name, profile_url=profile_url)
        session.add(row)
    elif profile_url and row.profile_url != profile_url:
        row.profile_url = profile_url
    session.flush()
    return row


def insert_post(session: Session, image_id: int, platform: Platform | str) -> PostRow:
    name = platform.value if isinstance(platform, Platform) else platform
    platform_row = session.scalar(select(PlatformRow).where(PlatformRow.name == name))
    if platform_row is None:
        raise ValueError(f"Platform {name} not registered")
    post = PostRow(image_id=image_id, platform_id=platform_row.id)
    session.add(post)
    session.flush()
    return post
