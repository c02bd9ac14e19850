"""Database access for fixture set-up: config, connections, cleaning.

Manifesto:
    Fixture set-up must reach the same database the application under
    test uses, described the way applications describe it (a
    ``database.yml`` with a ``test`` entry), and leave it in a known
    state. This package resolves that description, keeps one connection
    per description, and truncates tables on request.

Architecture::

    types         DatabaseConfig record, config-source variants
    registry      AdapterRegistry: adapter name -> SQLAlchemy driver
    connection    Database / Table handles over a SQLAlchemy engine
    resolver      ConfigResolver + ConnectionCache
    cleaner       DatabaseCleaner (truncate given or all tables)

Tags:
    spine-fixtures, database, sqlalchemy, configuration, cleaning

Doc-Types:
    package-overview, module-index
"""

from .cleaner import DatabaseCleaner
from .connection import Database, Table, create_fixture_engine, open_database
from .registry import AdapterRegistry, adapter_registry, build_url
from .resolver import (
    ConfigResolver,
    ConnectionCache,
    default_connection_cache,
    default_resolver,
)
from .types import (
    REQUIRED_FIELDS,
    ConfigSource,
    DatabaseConfig,
    DefaultConfig,
    FilePath,
    InlineConfig,
    config_source,
)

__all__ = [
    # Types
    "REQUIRED_FIELDS",
    "DatabaseConfig",
    "ConfigSource",
    "FilePath",
    "InlineConfig",
    "DefaultConfig",
    "config_source",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "build_url",
    # Connections
    "Database",
    "Table",
    "create_fixture_engine",
    "open_database",
    # Resolution
    "ConfigResolver",
    "ConnectionCache",
    "default_connection_cache",
    "default_resolver",
    # Cleaning
    "DatabaseCleaner",
]
