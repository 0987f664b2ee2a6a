from __future__ import annotations

import hashlib
import logging
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

import httpx

from photo_atlas.core.errors import UploadError

logger = logging.getLogger(__name__)


class UploadSink(Protocol):
    def store(self, path: Path) -> str: ...


class LocalUploadSink:
    """Keeps files where they are; the absolute path is the locator."""

    def store(self, path: Path) -> str:
        resolved = Path(path).resolve()
        if not resolved.is_file():
            raise UploadError(f"unable to open file {resolved}")
        return str(resolved)


@dataclass
class HttpUploadConfig:
    base_url: str
    public_url: str
    timeout: float

    @classmethod
    def from_env(cls) -> Optional["HttpUploadConfig"]:
        base_url = os.getenv("UPLOAD_BASE_URL")
        if not base_url:
            return None
        return cls(
            base_url=base_url,
            public_url=os.getenv("UPLOAD_PUBLIC_URL", base_url),
            timeout=float(os.getenv("UPLOAD_HTTP_TIMEOUT", "30")),
        )


class HttpUploadSink:
    """PUTs each file to ``<base_url>/<key>`` and returns ``<public_url>/<key>``.

    The key is ``<sha256>/<name>``: objects are never overwritten by a later
    upload of different bytes under the same file name.
    """

    def __init__(self, config: HttpUploadConfig, client: Optional[httpx.Client] = None):
        self.config = config
        self.client = client or httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def store(self, path: Path) -> str:
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise UploadError(f"unable to open file {path}: {exc}") from exc
        key = f"{hashlib.sha256(data).hexdigest()}/{path.name}"
        try:
            response = self.client.put(
                key, content=data, headers={"Content-Type": content_type}
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UploadError(f"unable to upload file {path} to {self.config.base_url}: {exc}") from exc
        locator = f"{self.config.public_url.rstrip('/')}/{key}"
        logger.debug("Uploaded %s to %s", path, locator)
        return locator


def sink_from_env() -> UploadSink:
    config = HttpUploadConfig.from_env()
    if config is None:
        return LocalUploadSink()
    return HttpUploadSink(config)
