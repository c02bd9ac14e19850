"""
Fixture builder: clean the database, load a fixture group, return it.

Usage::

    FixtureBuilder(
        database_config="config/database.yml",
        fixture_directory="spec/fixtures/blog",
        database_cleaner_options={"skip": False, "tables": ["users", "posts"]},
    ).result

Or, refining step by step::

    (FixtureBuilder()
        .with_database_config("config/database.yml")
        .with_fixture_directory("spec/fixtures/blog")
        .with_database_cleaner_options({"tables": ["users", "posts"]})
        .result)

Defaults:
    database_config:            ./config/database.yml
    fixture_directory:          ./spec/fixtures, else ./test/fixtures
    database_cleaner_options:   skip=False, tables=None (all tables)
    config_resolver:            process-wide resolver / connection cache
    fixture_loader:             FixtureLoader()

so with the conventional layout ``FixtureBuilder().result`` is enough.

Build order:
    ::

        connection        resolve config, open or reuse    ─┐ fail fast:
        path_to_fixtures  explicit dir, else candidates    ─┘ nothing touched yet
        DatabaseCleaner   unless skip
        fixture_loader.load(parent, leaf, connection)  →  FixtureSet

Tags:
    spine-fixtures, fixtures, builder, database, testing

Doc-Types:
    - API Reference
    - Testing Guide
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from functools import cached_property
from typing import Any

from spine_fixtures.builder import Builder
from spine_fixtures.core.errors import DatabaseNotConfiguredError, ErrorContext
from spine_fixtures.core.logging import get_logger
from spine_fixtures.core.protocols import DatabaseHandle
from spine_fixtures.core.settings import get_settings
from spine_fixtures.database.cleaner import DatabaseCleaner
from spine_fixtures.database.resolver import default_resolver
from spine_fixtures.database.types import normalize_keys

from .loader import FixtureLoader

logger = get_logger(__name__)


def _cleaner_options(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(
            f"database_cleaner_options must be a mapping, got {type(value).__name__}"
        )
    options = normalize_keys(value)
    tables = options.get("tables")
    if isinstance(tables, str):
        options["tables"] = [tables]
    return options


class FixtureBuilder(
    Builder.with_options(
        "database_config",
        "fixture_directory",
        "database_cleaner_options",
        "config_resolver",
        "fixture_loader",
    )
):
    """Truncates the database and loads a fixture group.

    ``result`` is the :class:`~spine_fixtures.fixtures.loader.FixtureSet`
    the loader returned.
    """

    def build(self) -> Any:
        connection = self.connection
        fixture_path = self.path_to_fixtures

        if not self.skip_database_cleaner:
            logger.info("fixture_builder.cleaning", tables=self.database_cleaner_tables or "all")
            DatabaseCleaner(connection, self.database_cleaner_tables).clean()

        parent, leaf = os.path.split(os.path.normpath(fixture_path))
        logger.info("fixture_builder.loading", parent=parent, group=leaf)
        return self.fixture_loader.load(parent, leaf, connection)

    @cached_property
    def connection(self) -> DatabaseHandle:
        """The database connection for ``database_config``.

        Raises:
            DatabaseNotConfiguredError: the config cannot be resolved.
        """
        return self.config_resolver.connection(self.database_config)

    @cached_property
    def path_to_fixtures(self) -> str:
        """The fixture directory to load.

        The given ``fixture_directory`` if non-empty (it must exist),
        otherwise the first existing candidate directory.

        Raises:
            DatabaseNotConfiguredError: the given directory does not exist,
                or no candidate does.
        """
        if self.fixture_directory:
            directory = os.fspath(self.fixture_directory)
            if not os.path.exists(directory):
                raise DatabaseNotConfiguredError(
                    f"Invalid fixture directory {directory}",
                    context=ErrorContext(fixture_directory=directory),
                )
            return directory

        for candidate in get_settings().fixture_directories:
            if os.path.exists(candidate):
                return candidate

        raise DatabaseNotConfiguredError("Unable to find fixtures to load")

    @property
    def skip_database_cleaner(self) -> bool:
        return bool(self.database_cleaner_options.get("skip", False))

    @property
    def database_cleaner_tables(self) -> list[str] | None:
        """Tables to clean; ``None`` means every table."""
        tables = self.database_cleaner_options.get("tables")
        return None if tables is None else [str(t) for t in tables]


FixtureBuilder.coercion_for("database_cleaner_options", _cleaner_options)
FixtureBuilder.default_for("config_resolver", factory=lambda builder: default_resolver())
FixtureBuilder.default_for("fixture_loader", factory=lambda builder: FixtureLoader())


__all__ = [
    "FixtureBuilder",
]
