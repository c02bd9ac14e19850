"""
Canonical protocol definitions for spine-fixtures.

The cleaner, the resolver and the fixture loader depend on the SHAPE of a
database connection, not on SQLAlchemy. ``spine_fixtures.database.Database``
is the shipped implementation; tests substitute ``MagicMock`` doubles.

Architecture:
    ::

        protocols.py
        ├── TableHandle       — truncate / insert / count on one table
        ├── DatabaseHandle    — tables() + table(name)
        └── FixtureLoaderProtocol
                              — load(parent, name, connection) -> mapping

    Consumers:
        database/cleaner.py, database/resolver.py, fixtures/loader.py,
        fixtures/builder.py

Guardrails:
    ❌ DON'T: Import SQLAlchemy in code that only needs these shapes
    ✅ DO: Type against DatabaseHandle / TableHandle

Tags:
    protocol, connection, database, fixtures, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TableHandle(Protocol):
    """One table of a connected database."""

    def truncate(self) -> None:
        """Remove every row from the table."""
        ...

    def insert(self, row: Mapping[str, Any] | None = None, **values: Any) -> None:
        """Insert one row."""
        ...

    def insert_many(self, rows: Iterable[Mapping[str, Any]]) -> int:
        """Insert rows; return how many were inserted."""
        ...

    def count(self) -> int:
        """Number of rows currently in the table."""
        ...


@runtime_checkable
class DatabaseHandle(Protocol):
    """
    Minimal database connection interface.

    ::

        ┌────────────────────────────────────────────────────────┐
        │ tables()     → ordered list of table names             │
        │ table(name)  → TableHandle                             │
        └────────────────────────────────────────────────────────┘
    """

    def tables(self) -> list[str]:
        """Names of all tables known to the connection."""
        ...

    def table(self, name: str) -> TableHandle:
        """Handle for the table called ``name``."""
        ...


@runtime_checkable
class FixtureLoaderProtocol(Protocol):
    """Loads one fixture group into a database."""

    def load(
        self,
        parent: str | Path,
        name: str,
        connection: DatabaseHandle,
    ) -> Mapping[str, Any]:
        """Load ``parent/name`` into ``connection``; return what was loaded by table."""
        ...


__all__ = [
    "TableHandle",
    "DatabaseHandle",
    "FixtureLoaderProtocol",
]
