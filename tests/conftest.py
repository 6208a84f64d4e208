"""
Shared pytest fixtures and configuration for tagorm tests.

This module provides:
- Settings isolated from the developer's environment and ``.env``
- A fresh ``Mapper`` per test
- The recording fake session and a SQLite session with the test tables

Usage:
    Fixtures are auto-discovered by pytest; request them by argument name.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from tagorm.backend import SQLiteSession
from tagorm.logging import clear_context
from tagorm.mapper import Mapper
from tagorm.settings import OrmSettings, _settings_cache
from tests._support.fakes import RecordingSession

SQLITE_SCHEMA = """
CREATE TABLE ITEM (
    NAME     TEXT    NOT NULL,
    OWNERID  INTEGER NOT NULL,
    ID       INTEGER PRIMARY KEY AUTOINCREMENT
);
CREATE TABLE PERSON (
    NAME      TEXT NOT NULL,
    NICKNAME  TEXT,
    BORN      TEXT,
    TEAM_ID   INTEGER,
    PERSON_ID INTEGER PRIMARY KEY
);
CREATE TABLE READING (
    SENSOR_NO INTEGER NOT NULL,
    VALUE     REAL    NOT NULL,
    LEVEL     INTEGER NOT NULL,
    OK        INTEGER NOT NULL,
    PAYLOAD   BLOB    NOT NULL,
    TAKEN     TEXT    NOT NULL
);
"""


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_process_state() -> Generator[None, None, None]:
    """Drop cached settings and logging configuration around every test."""
    _settings_cache.clear()
    clear_context()
    yield
    _settings_cache.clear()
    clear_context()
    structlog.reset_defaults()


# =============================================================================
# Mapper Fixtures
# =============================================================================


@pytest.fixture
def settings() -> OrmSettings:
    """Default settings, ignoring any ``.env`` file in the working directory."""
    return OrmSettings(_env_file=None)


@pytest.fixture
def mapper(settings: OrmSettings) -> Mapper:
    return Mapper(settings=settings)


@pytest.fixture
def session() -> RecordingSession:
    return RecordingSession(returning=42)


@pytest.fixture
def sqlite_session() -> Generator[SQLiteSession, None, None]:
    """In-memory SQLite session with the ITEM, PERSON and READING tables."""
    with SQLiteSession() as ses:
        ses.execute_script(SQLITE_SCHEMA)
        yield ses
