"""Tests for logging setup."""

import logging

import pytest

from persona_feed.config import settings
from persona_feed.logging import get_logger, setup_logging


@pytest.fixture
def root_handlers():
    root = logging.getLogger()
    sql = logging.getLogger("sqlalchemy.engine")
    saved, level, sql_level = list(root.handlers), root.level, sql.level
    yield root
    root.handlers = saved
    root.setLevel(level)
    sql.setLevel(sql_level)


def test_repeated_setup_keeps_one_handler(root_handlers) -> None:
    setup_logging()
    setup_logging()

    assert len(root_handlers.handlers) == 1
    assert logging.getLogger("httpx").level == logging.WARNING


def test_sql_logging_is_opt_in(root_handlers, monkeypatch) -> None:
    setup_logging()
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    monkeypatch.setattr(settings, "log_sql", True)
    setup_logging()
    assert logging.getLogger("sqlalchemy.engine").level == logging.INFO


def test_get_logger_accepts_key_values(root_handlers) -> None:
    setup_logging()

    get_logger("persona_feed.tests").warning("content_published", content_id=1)
