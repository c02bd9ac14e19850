"""Truncate tables to reset state before fixtures are loaded."""

from __future__ import annotations

from collections.abc import Iterable

from spine_fixtures.core.logging import get_logger
from spine_fixtures.core.protocols import DatabaseHandle

logger = get_logger(__name__)


class DatabaseCleaner:
    """
    Cleans a database by truncating tables.

    Usage::

        DatabaseCleaner(db).clean()                      # every table
        DatabaseCleaner(db, ["users", "roles"]).clean()  # only these

    Without an explicit list, the tables known to the connection are read
    once, here; tables created afterwards are not cleaned by this instance.
    """

    def __init__(self, connection: DatabaseHandle, tables: Iterable[str] | None = None):
        self._connection = connection
        if tables is None:
            tables = connection.tables()
        self._tables = tuple(str(table) for table in tables)

    @property
    def tables(self) -> tuple[str, ...]:
        return self._tables

    def clean(self) -> None:
        """Truncate every table, in order. Failures propagate."""
        for table in self._tables:
            self._connection.table(table).truncate()
        logger.debug("database_cleaner.cleaned", tables=list(self._tables))


__all__ = [
    "DatabaseCleaner",
]
