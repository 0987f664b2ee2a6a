"""Relational store for images, coordinates, locations and posts."""

from .schema import (
    Base,
    CoordinateRow,
    ImageRow,
    LocationRow,
    PlatformRow,
    PostRow,
    create_engine_from_url,
    init_db,
    session_factory,
)
from .store import (
    coordinate_for,
    find_by_hash,
    get_image,
    get_or_create_coordinate,
    get_or_create_location,
    images_at,
    insert_image,
    insert_post,
    known_hashes,
    list_images,
    random_unused_image,
    register_platform,
    unused_image_count,
)

__all__ = [
    "Base",
    "CoordinateRow",
    "ImageRow",
    "LocationRow",
    "PlatformRow",
    "PostRow",
    "coordinate_for",
    "create_engine_from_url",
    "find_by_hash",
    "get_image",
    "get_or_create_coordinate",
    "get_or_create_location",
    "images_at",
    "init_db",
    "insert_image",
    "insert_post",
    "known_hashes",
    "list_images",
    "random_unused_image",
    "register_platform",
    "session_factory",
    "unused_image_count",
]
