"""Adapter registry: config ``adapter`` names to SQLAlchemy URLs.

Manifesto:
    Database configs name their backend the way application frameworks do
    (``sqlite``, ``postgres``, ``mysql2``). SQLAlchemy wants a driver name.
    The registry maps one to the other so the resolver never hard-codes a
    backend, and projects with an unusual driver can register it.

Features:
    - ``AdapterRegistry`` with pre-registered defaults and aliases
    - ``register()`` for custom drivers (``"postgresql+psycopg"``, ...)
    - ``build_url()``: ``DatabaseConfig`` → ``sqlalchemy.engine.URL``

Tags:
    spine-fixtures, database, registry, sqlalchemy

Doc-Types:
    api-reference
"""

from __future__ import annotations

from sqlalchemy.engine import URL

from spine_fixtures.core.errors import ConfigError

from .types import DatabaseConfig


class AdapterRegistry:
    """
    Registry of adapter name → SQLAlchemy driver name.

    Pre-registered adapters:
    - ``sqlite`` / ``sqlite3``
    - ``postgresql`` / ``postgres``
    - ``mysql`` / ``mysql2``
    - ``oracle``
    - ``mssql``
    """

    def __init__(self):
        self._drivers: dict[str, str] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._drivers["sqlite"] = "sqlite"
        self._drivers["sqlite3"] = "sqlite"  # Alias
        self._drivers["postgresql"] = "postgresql"
        self._drivers["postgres"] = "postgresql"  # Alias
        self._drivers["mysql"] = "mysql"
        self._drivers["mysql2"] = "mysql"  # Alias
        self._drivers["oracle"] = "oracle"
        self._drivers["mssql"] = "mssql"

    def register(self, name: str, driver: str) -> None:
        """Register (or override) the driver used for an adapter name."""
        self._drivers[name.lower()] = driver

    def resolve(self, name: str) -> str:
        """SQLAlchemy driver name for an adapter name."""
        key = name.lower()
        if key not in self._drivers:
            raise ConfigError(f"Unknown database adapter: {name}")
        return self._drivers[key]

    def list_adapters(self) -> list[str]:
        """List registered adapter names."""
        return sorted(self._drivers.keys())


# Global registry
adapter_registry = AdapterRegistry()


def build_url(config: DatabaseConfig, registry: AdapterRegistry | None = None) -> URL:
    """
    Build the SQLAlchemy URL for a config.

    SQLite only takes the database path; ``file:`` URIs (shared in-memory
    databases) are passed through with ``uri=true``.
    """
    driver = (registry or adapter_registry).resolve(config.adapter)
    query: dict[str, str] = {}

    if driver.split("+", 1)[0] == "sqlite":
        if config.database.startswith("file:"):
            query["uri"] = "true"
        return URL.create(driver, database=config.database, query=query)

    return URL.create(
        driver,
        username=config.username,
        password=config.password,
        host=config.host,
        port=config.port,
        database=config.database,
        query=query,
    )


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "build_url",
]
