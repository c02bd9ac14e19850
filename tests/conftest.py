"""
Shared pytest fixtures and configuration for spine-fixtures tests.

This module provides:
- Settings/cache isolation (no test sees another test's connections)
- SQLite databases with the schemas from ``tests._support``
- Paths to the on-disk config files and fixture groups

Usage:
    Fixtures are auto-discovered by pytest; use them as test arguments.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from spine_fixtures.core.settings import clear_settings_cache
from spine_fixtures.database.resolver import ConfigResolver, ConnectionCache
from tests._support import (
    BLOG_SCHEMA,
    DB_CONFIG_DIR,
    DB_DIR_ENV,
    FIXTURES_DIR,
    HOUSING_SCHEMA,
    MEMBERSHIP_SCHEMA,
    WIDGET_SCHEMA,
    create_schema,
)


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests that use a database on disk as integration tests."""
    for item in items:
        fixtures = getattr(item, "fixturenames", ())
        if any(name.endswith("_db") for name in fixtures):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Every test reads settings from its own environment."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def connection_cache() -> ConnectionCache:
    cache = ConnectionCache()
    yield cache
    cache.clear()


@pytest.fixture
def resolver(connection_cache: ConnectionCache) -> ConfigResolver:
    return ConfigResolver(connection_cache)


# =============================================================================
# Databases
# =============================================================================


@pytest.fixture
def db_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Directory holding the SQLite files; exported for the YAML configs."""
    directory = tmp_path / "db"
    directory.mkdir()
    monkeypatch.setenv(DB_DIR_ENV, str(directory))
    return directory


@pytest.fixture
def blog_db(db_dir: Path) -> Path:
    """Used by resources/db/without_environment_database.yml."""
    return create_schema(db_dir / "blog.db", BLOG_SCHEMA)


@pytest.fixture
def membership_db(db_dir: Path) -> Path:
    """Used by the ``test`` entry of resources/db/with_environment_database.yml."""
    return create_schema(db_dir / "membership.db", MEMBERSHIP_SCHEMA)


@pytest.fixture
def housing_db(db_dir: Path) -> Path:
    return create_schema(db_dir / "housing.db", HOUSING_SCHEMA)


@pytest.fixture
def widget_db(db_dir: Path) -> Path:
    return create_schema(db_dir / "widgets.db", WIDGET_SCHEMA)


# =============================================================================
# Resources
# =============================================================================


@pytest.fixture
def database_yml():
    """Path (as ``str``) of a config file under resources/db."""

    def _path(filename: str) -> str:
        return str(DB_CONFIG_DIR / filename)

    return _path


@pytest.fixture
def fixtures_path():
    """Path (as ``str``) of a fixture group under resources/fixtures."""

    def _path(dirname: str) -> str:
        return str(FIXTURES_DIR / dirname)

    return _path
