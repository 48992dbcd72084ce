"""Logging setup for the layout engine and its CLI."""

from __future__ import annotations

import logging
from typing import IO, Optional, Union

PACKAGE_LOGGER = "menulayout"
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def resolve_level(level: Union[int, str]) -> int:
    """Accept ``logging.DEBUG`` or a name such as ``"debug"``; unknown names mean INFO."""

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Union[int, str] = logging.INFO, stream: Optional[IO[str]] = None) -> None:
    """Install one handler on the root logger and set the engine's verbosity.

    Only the ``menulayout`` logger follows ``level``. The root stays at
    WARNING so HTTP client chatter from ``requests``/``urllib3`` does not
    drown out drag and placement traces when running with DEBUG.
    """

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolve_level(level))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the package namespace, configuring defaults once."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name or PACKAGE_LOGGER)
