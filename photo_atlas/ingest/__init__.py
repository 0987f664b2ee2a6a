"""Ingest pipeline: scan, dedupe, resize, locate and store new photos."""

from .exif_reader import read_capture_metadata
from .pipeline import IngestConfig, ingest_directory
from .resizer import resize_image
from .scanner import SUPPORTED_EXTENSIONS, scan_candidates
from .upload import HttpUploadSink, LocalUploadSink, UploadSink, sink_from_env

__all__ = [
    "HttpUploadSink",
    "IngestConfig",
    "LocalUploadSink",
    "SUPPORTED_EXTENSIONS",
    "UploadSink",
    "ingest_directory",
    "read_capture_metadata",
    "resize_image",
    "scan_candidates",
    "sink_from_env",
]
