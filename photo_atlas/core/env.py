from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

LOGGER_NAMESPACE = "photo_atlas"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_dotenv_if_present(path: str | Path | None = None) -> bool:
    """Load PHOTO_ATLAS_ENV_FILE (default ``.env``) without overriding the environment.

    Returns True when a file was loaded.
    """
    dotenv_path = Path(path or os.getenv("PHOTO_ATLAS_ENV_FILE", ".env"))
    if not dotenv_path.is_file():
        return False
    return load_dotenv(dotenv_path=dotenv_path, override=False)


def configure_logging(default_level: str = "INFO") -> logging.Logger:
    """Attach a stderr handler to the ``photo_atlas`` logger tree.

    Level comes from PHOTO_ATLAS_LOG_LEVEL, then LOG_LEVEL. Third-party loggers
    (httpx, sqlalchemy) stay at the root's WARNING default. Repeated calls only
    adjust the level.
    """
    level_name = os.getenv("PHOTO_ATLAS_LOG_LEVEL") or os.getenv("LOG_LEVEL", default_level)
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level)
    if not any(getattr(h, "_photo_atlas", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._photo_atlas = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logger.propagate = False
    return logger
