from __future__ import annotations

import logging
import os
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from PIL.Image import Resampling

from photo_atlas.core.errors import DerivativeError

logger = logging.getLogger(__name__)

WIDTH_MEDIUM = 600
WIDTH_SMALL = 300
JPEG_QUALITY = 100


def derivative_path(source: Path, suffix: str) -> Path:
    """``/photos/cat.jpg`` + ``-small`` -> ``/photos/cat-small.jpg``."""
    return source.with_name(f"{source.stem}{suffix}{source.suffix}")


def scaled_size(size: tuple[int, int], width: int) -> tuple[int, int]:
    src_width, src_height = size
    height = max(1, round(src_height * width / src_width))
    return width, height


def resize_image(source: str | Path, suffix: str, width: int) -> Path:
    """Write a ``width``-pixel wide copy of ``source`` next to it and return its path.

    An existing file at the derivative path is reused without decoding the source.
    """
    source_path = Path(source)
    target = derivative_path(source_path, suffix)
    if target.is_dir():
        raise DerivativeError(
            f"cannot write resized image to {target}. a directory with that name already exists"
        )
    if target.exists():
        logger.debug("Resized image %s already exists", target)
        return target

    try:
        with Image.open(source_path) as img:
            img.load()
            resized = img.resize(scaled_size(img.size, width), resample=Resampling.BICUBIC)
    except (UnidentifiedImageError, OSError) as exc:
        raise DerivativeError(f"unable to decode {source_path} for resizing: {exc}") from exc

    # Written beside the target and renamed, so an existing derivative is always complete.
    partial = target.with_name(f".{target.name}.partial")
    try:
        if target.suffix.lower() in {".jpg", ".jpeg"}:
            resized.convert("RGB").save(partial, format="JPEG", quality=JPEG_QUALITY)
        else:
            resized.save(partial, format="PNG")
        os.replace(partial, target)
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise DerivativeError(f"unable to write resized image to {target}: {exc}") from exc
    return target
