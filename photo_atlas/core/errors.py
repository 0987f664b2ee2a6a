"""Exceptions raised by the ingestion pipeline. Any of them aborts the current run."""

from __future__ import annotations


class IngestError(RuntimeError):
    """Base class for all ingestion failures."""


class InputError(IngestError):
    """A source file cannot be ingested as-is."""


class UnsupportedImageError(InputError):
    """The file is not a decodable image."""


class MissingMetadataError(InputError):
    """GPS coordinates or the capture timestamp are missing from the EXIF data."""


class ExternalServiceError(IngestError):
    """A remote service failed or returned an unusable result."""


class TimezoneLookupError(ExternalServiceError):
    pass


class GeocodingError(ExternalServiceError):
    pass


class UploadError(ExternalServiceError):
    pass


class PersistenceError(IngestError):
    """A database operation failed."""


class DerivativeError(IngestError):
    """A resized derivative could not be written."""
