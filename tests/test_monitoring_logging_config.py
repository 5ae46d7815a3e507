#tests/test_monitoring_logging_config.py

from __future__ import annotations

import io
import logging

import pytest

from monitoring.logging_config import NAV_LOGGERS, SEARCH_LOGGER, configure_logging


@pytest.fixture
def nav_levels():
    """Restore logger levels touched by configure_logging."""
    root = logging.getLogger()
    names = (*NAV_LOGGERS, SEARCH_LOGGER)
    saved = {name: logging.getLogger(name).level for name in names}
    saved_root = root.level
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
    root.setLevel(saved_root)


def test_search_traces_get_their_own_level(nav_levels, monkeypatch) -> None:
    monkeypatch.setattr(logging.getLogger(), "handlers", [])
    stream = io.StringIO()

    levels = configure_logging(logging.INFO, search_level=logging.WARNING, stream=stream)
    logging.getLogger("voxel_nav.controller").info("path reset: stuck")
    logging.getLogger(SEARCH_LOGGER).info("search status=partial")

    assert levels[SEARCH_LOGGER] == logging.WARNING
    assert levels["voxel_nav"] == logging.INFO
    output = stream.getvalue()
    assert "[INFO] voxel_nav.controller: path reset: stuck" in output
    assert "search status" not in output


def test_handler_is_added_once(nav_levels, monkeypatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    stream = io.StringIO()

    configure_logging(stream=stream)
    configure_logging(logging.DEBUG, stream=stream)

    assert len(root.handlers) == 1
    # Levels still follow the latest call.
    assert logging.getLogger(SEARCH_LOGGER).level == logging.DEBUG
