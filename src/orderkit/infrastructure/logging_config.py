"""Process-wide logging setup for entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers;
handlers and levels are configured here, once, by whoever runs the app.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = "WARNING") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("orderkit").setLevel(level)
