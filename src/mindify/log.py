"""Logging setup shared by the CLI and the API server."""

from __future__ import annotations

import logging
import os
from typing import Final

_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_HANDLER_ATTACHED: bool = False


def _resolve_level(default: str) -> int:
    level_name = os.getenv("MINDIFY_LOG_LEVEL", default).upper()
    return getattr(logging, level_name, logging.WARNING)


def configure_logging(default_level: str = "WARNING") -> None:
    """Attach a single stream handler to the ``mindify`` logger.

    Level comes from MINDIFY_LOG_LEVEL, falling back to *default_level*.
    Safe to call more than once; later calls only adjust the level.
    """
    global _HANDLER_ATTACHED

    level = _resolve_level(default_level)
    logger = logging.getLogger("mindify")

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        _HANDLER_ATTACHED = True

    logger.setLevel(level)
