# src/monitoring/logging_config.py
"""
Logging setup for voxel_nav hosts and tools.

    from monitoring.logging_config import configure_logging
    configure_logging(search_level=logging.WARNING)

Loggers that matter for navigation:
    voxel_nav.search      one line per search slice (SearchTracer)
    voxel_nav.controller  path resets, failed actions
    voxel_nav.nav.*       post-processing and movement debug output
    monitoring.events     bus relay (LoggingSubscriber)

Search traces are emitted every tick while a search is partial, so they
get their own level.
"""

from __future__ import annotations

import logging
import sys
from typing import Dict, Optional, TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

SEARCH_LOGGER = "voxel_nav.search"
NAV_LOGGERS = ("voxel_nav", "monitoring")


def configure_logging(
    level: int = logging.INFO,
    *,
    search_level: Optional[int] = None,
    stream: Optional[TextIO] = None,
) -> Dict[str, int]:
    """
    Attach one stream handler to the root logger and set navigation levels.

    The handler is only added when the root logger has none, so calling
    this twice (or after a host configured logging) does not duplicate
    output. Levels are applied either way. Returns the levels set, by
    logger name.
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream=stream or sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(level)

    levels = {name: level for name in NAV_LOGGERS}
    levels[SEARCH_LOGGER] = level if search_level is None else search_level
    for name, value in levels.items():
        logging.getLogger(name).setLevel(value)
    return levels
