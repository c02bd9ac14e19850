"""
YAML fixture groups: read them, load them, keep what was loaded.

A fixture group is a directory with one YAML file per table. Each file
maps record names to rows::

    spec/fixtures/blog/
        users.yml        luke:  {id: 1, first_name: Luke, last_name: Skywalker}
                         leia:  {id: 2, first_name: Leia, last_name: Organa}
        posts.yml        first: {id: 1, title: Hello, blog_id: 1}

Files are rendered with Jinja2 before parsing, so rows can be generated
(``{% for %}``) or read from the environment (``{{ env.X }}``).

Manifesto:
    Fixtures load into EMPTY tables. Loading on top of leftover rows makes
    test outcomes depend on test order, so the loader refuses to do it;
    clean first (the fixture builder does) or empty the tables yourself.

Architecture:
    ::

        FixtureLoader.load(parent, name, connection)
            │
            ├── read(parent/name)       *.yml / *.yaml, file-name order
            ├── every target table empty?   no → FixtureTableNotEmptyError
            ├── insert_many per table
            ↓
        FixtureSet {table: {record_name: row}}

Examples:
    >>> fixtures = FixtureLoader().load("spec/fixtures", "blog", db)
    >>> fixtures["users"]["luke"]["first_name"]
    'Luke'
    >>> fixtures.counts()
    {'posts': 1, 'users': 2}

Tags:
    spine-fixtures, fixtures, yaml, jinja2, loader

Doc-Types:
    - API Reference
    - Testing Guide
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from jinja2 import TemplateError

from spine_fixtures.core.errors import ErrorContext, FixtureError, FixtureTableNotEmptyError
from spine_fixtures.core.logging import fixture_log_context, get_logger
from spine_fixtures.core.protocols import DatabaseHandle
from spine_fixtures.core.templating import load_yaml_file

logger = get_logger(__name__)

FIXTURE_EXTENSIONS = (".yml", ".yaml")


class FixtureSet(Mapping[str, Mapping[str, Mapping[str, Any]]]):
    """Read-only ``table → {record name → row}`` of a loaded group."""

    def __init__(self, name: str, fixtures: Mapping[str, Mapping[str, Mapping[str, Any]]]):
        self.name = name
        self._fixtures = {
            table: MappingProxyType(dict(records)) for table, records in fixtures.items()
        }

    def __getitem__(self, table: str) -> Mapping[str, Mapping[str, Any]]:
        return self._fixtures[table]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fixtures)

    def __len__(self) -> int:
        return len(self._fixtures)

    @property
    def tables(self) -> list[str]:
        return list(self._fixtures)

    def record(self, table: str, name: str) -> Mapping[str, Any]:
        """The row loaded as ``name`` into ``table``."""
        return self._fixtures[table][name]

    def counts(self) -> dict[str, int]:
        """Rows loaded per table."""
        return {table: len(records) for table, records in self._fixtures.items()}

    def __repr__(self) -> str:
        return f"FixtureSet({self.name!r}, {self.counts()!r})"


class FixtureLoader:
    """
    Loads fixture groups into a database.

    Args:
        require_empty: Refuse to load into tables that already hold rows.
    """

    def __init__(self, *, require_empty: bool = True):
        self.require_empty = require_empty

    def load(
        self,
        parent: str | os.PathLike[str],
        name: str,
        connection: DatabaseHandle,
    ) -> FixtureSet:
        """Load the group ``parent/name`` into ``connection``.

        Raises:
            FixtureError: the group directory is missing or a file is not
                a valid fixture file.
            FixtureTableNotEmptyError: a target table already has rows.
        """
        directory = Path(parent) / name
        with fixture_log_context(fixture_group=name):
            fixtures = self.read(directory)

            if self.require_empty:
                for table in fixtures:
                    if connection.table(table).count() != 0:
                        raise FixtureTableNotEmptyError(table)

            for table, records in fixtures.items():
                inserted = connection.table(table).insert_many(records.values())
                logger.debug("fixture_loader.table_loaded", table=table, rows=inserted)

            loaded = FixtureSet(name, fixtures)
            logger.info("fixture_loader.loaded", directory=str(directory), counts=loaded.counts())
        return loaded

    def read(self, directory: str | os.PathLike[str]) -> dict[str, dict[str, dict[str, Any]]]:
        """Parse every fixture file in ``directory`` without touching a database."""
        directory = Path(directory)
        if not directory.is_dir():
            raise FixtureError(
                f"Fixture directory not found: {directory}",
                context=ErrorContext(fixture_directory=str(directory)),
            )

        fixtures: dict[str, dict[str, dict[str, Any]]] = {}
        paths = sorted(
            p for p in directory.iterdir() if p.is_file() and p.suffix in FIXTURE_EXTENSIONS
        )
        for path in paths:
            table = path.stem
            if table in fixtures:
                raise FixtureError(
                    f"Duplicate fixture files for table '{table}' in {directory}",
                    context=ErrorContext(fixture_directory=str(directory), table=table),
                )
            fixtures[table] = self._read_file(path)
        return fixtures

    def _read_file(self, path: Path) -> dict[str, dict[str, Any]]:
        context = ErrorContext(fixture_directory=str(path.parent), table=path.stem)
        try:
            data = load_yaml_file(path)
        except (UnicodeDecodeError, yaml.YAMLError, TemplateError) as e:
            raise FixtureError(f"Invalid fixture file {path}: {e}", context=context, cause=e) from e

        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise FixtureError(
                f"Fixture file {path} must map record names to rows, got {type(data).__name__}",
                context=context,
            )

        records: dict[str, dict[str, Any]] = {}
        for record_name, row in data.items():
            if not isinstance(row, Mapping):
                raise FixtureError(
                    f"Fixture '{record_name}' in {path} is not a mapping of columns",
                    context=context,
                )
            records[str(record_name)] = {str(col): val for col, val in row.items()}
        return records


__all__ = [
    "FIXTURE_EXTENSIONS",
    "FixtureSet",
    "FixtureLoader",
]
