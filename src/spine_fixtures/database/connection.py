"""SQLAlchemy-backed database handle used by the cleaner and the loader.

Manifesto:
    Fixture code needs a handful of operations: list tables, truncate a
    table, insert and count rows. ``Database`` wraps a SQLAlchemy
    ``Engine`` to provide exactly those (the ``DatabaseHandle`` protocol),
    so nothing above this module touches SQLAlchemy directly.

This module provides:

* ``create_fixture_engine`` -- Create a SA engine with sane defaults.
* ``open_database``         -- Config → connected ``Database``; fails fast.
* ``Database`` / ``Table``  -- The handles.

Usage::

    from spine_fixtures.database.connection import open_database
    from spine_fixtures.database.types import DatabaseConfig

    db = open_database(DatabaseConfig("sqlite", "test.db", "root"))
    db.tables()                   # ['blogs', 'users']
    db["users"].insert(id=1, first_name="Luke")
    db["users"].count()           # 1
    db["users"].truncate()

Tags:
    spine-fixtures, database, sqlalchemy, engine, truncate

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import sqlalchemy as sa
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from spine_fixtures.core.errors import DatabaseConnectionError, ErrorContext
from spine_fixtures.core.logging import get_logger

from .registry import AdapterRegistry, build_url
from .types import DatabaseConfig

logger = get_logger(__name__)


def create_fixture_engine(url: URL | str, *, echo: bool = False, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    url = sa.engine.make_url(url)
    if url.get_backend_name() == "sqlite":
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return sa.create_engine(url, echo=echo, **kwargs)


class Table:
    """One table of a :class:`Database`.

    The table definition is reflected on each operation, so handles stay
    valid across schema changes.
    """

    def __init__(self, database: Database, name: str) -> None:
        self._database = database
        self.name = name

    def _reflect(self) -> sa.Table:
        return sa.Table(self.name, sa.MetaData(), autoload_with=self._database.engine)

    def truncate(self) -> None:
        """Remove every row (``TRUNCATE``, or ``DELETE`` on SQLite)."""
        statement = self._database.truncate_statement(self.name)
        with self._database.engine.begin() as conn:
            conn.execute(sa.text(statement))

    def insert(self, row: Mapping[str, Any] | None = None, **values: Any) -> None:
        """Insert one row."""
        self.insert_many([{**(row or {}), **values}])

    def insert_many(self, rows: Iterable[Mapping[str, Any]]) -> int:
        """Insert rows in one transaction; return how many were inserted."""
        table = self._reflect()
        inserted = 0
        with self._database.engine.begin() as conn:
            for row in rows:
                conn.execute(table.insert().values(**dict(row)))
                inserted += 1
        return inserted

    def count(self) -> int:
        """Number of rows in the table."""
        table = self._reflect()
        with self._database.engine.connect() as conn:
            return conn.execute(sa.select(sa.func.count()).select_from(table)).scalar_one()

    def is_empty(self) -> bool:
        return self.count() == 0

    def select(self, **where: Any) -> list[dict[str, Any]]:
        """Rows matching all ``column=value`` pairs, as dicts."""
        table = self._reflect()
        query = sa.select(table).where(*(table.c[col] == val for col, val in where.items()))
        with self._database.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(query)]

    where = select

    def __repr__(self) -> str:
        return f"Table({self.name!r})"


class Database:
    """A connected database (``DatabaseHandle`` protocol)."""

    def __init__(self, engine: Engine, config: DatabaseConfig | None = None) -> None:
        self._engine = engine
        self.config = config

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine."""
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    @property
    def url(self) -> str:
        """Connection URL with the password masked."""
        return self._engine.url.render_as_string(hide_password=True)

    def tables(self) -> list[str]:
        """Names of all tables, as reported by the database right now."""
        return sa.inspect(self._engine).get_table_names()

    def table(self, name: str) -> Table:
        return Table(self, str(name))

    __getitem__ = table

    def truncate_statement(self, name: str) -> str:
        quoted = self._engine.dialect.identifier_preparer.quote(name)
        if self.dialect_name == "sqlite":
            return f"DELETE FROM {quoted}"
        return f"TRUNCATE TABLE {quoted}"

    def dispose(self) -> None:
        """Close all pooled connections."""
        self._engine.dispose()

    def __repr__(self) -> str:
        return f"Database({self.url!r})"


def open_database(
    config: DatabaseConfig,
    *,
    registry: AdapterRegistry | None = None,
    echo: bool = False,
) -> Database:
    """Create a :class:`Database` for ``config`` and check it can connect.

    Raises:
        DatabaseConnectionError: the driver is missing or refuses the
            connection. The driver exception is chained as ``cause``.
    """
    url = build_url(config, registry)
    try:
        engine = create_fixture_engine(url, echo=echo)
        with engine.connect():
            pass
    except (SQLAlchemyError, ImportError) as e:
        raise DatabaseConnectionError(
            f"Failed to connect to {config.adapter} database {config.database!r}: {e}",
            context=ErrorContext(metadata={"adapter": config.adapter}),
            cause=e,
        ) from e

    database = Database(engine, config)
    logger.debug("database.opened", url=database.url, dialect=database.dialect_name)
    return database


__all__ = [
    "create_fixture_engine",
    "Table",
    "Database",
    "open_database",
]
