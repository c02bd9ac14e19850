"""
Config resolution and connection caching.

Turns the flexible ``database_config`` argument of the fixture builder (a
path to a YAML file, an inline mapping, or nothing at all) into a
validated :class:`DatabaseConfig` and an open :class:`Database`, and keeps
one connection per distinct config argument.

Manifesto:
    Test suites construct many fixture builders with the same config.
    Opening a new engine per builder leaks connections and, for shared
    in-memory SQLite, loses data. The resolver caches connections by the
    config ARGUMENT, so equal arguments share one connection.

    - **Precedence is fixed:** file → mapping → default file
    - **Fail fast:** an invalid mapping raises, it never falls back
    - **Explicit cache:** ``ConnectionCache`` is an object, injectable
      into resolvers and builders for test isolation

Architecture:
    ::

        argument ──► config_source()
                       │
          ┌────────────┼──────────────────┐
          ↓            ↓                  ↓
       FilePath    InlineConfig      DefaultConfig
          │            │                  │
        exists and     │                  │
        parses to a    │                  │
        mapping? ──yes─┤                  │
          │ no         ↓                  │
          │      "test" entry or the      │
          │      mapping itself           │
          │            │                  │
          │       validate ──missing──► DatabaseNotConfiguredError
          │            │                  │
          └──────► default config file ◄──┘
                       │ missing / unparsable
                       ↓
               DatabaseNotConfiguredError

        ConnectionCache[key(argument)] ──miss──► open_database(config)

Examples:
    >>> resolver = ConfigResolver(ConnectionCache())
    >>> resolver.resolve_config({"test": {"adapter": "sqlite",
    ...                                   "database": "t.db",
    ...                                   "username": "root"}})
    DatabaseConfig(adapter='sqlite', database='t.db', username='root', host=None, port=None)

Guardrails:
    ❌ DON'T: Key the cache by the resolved config
    ✅ DO: Key by the argument; the default path stands in for ``None``

    ❌ DON'T: Share a ConnectionCache across threads that resolve the
       same key concurrently; there is no locking
    ✅ DO: Warm the cache from one thread, or give each thread its own

Tags:
    spine-fixtures, configuration, yaml, cache, connection, resolver

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import os
from collections.abc import Callable, Hashable, Iterator, Mapping
from typing import Any

import yaml
from jinja2 import TemplateError

from spine_fixtures.core.errors import DatabaseNotConfiguredError, ErrorContext
from spine_fixtures.core.logging import get_logger
from spine_fixtures.core.settings import get_settings
from spine_fixtures.core.templating import load_yaml_file

from .connection import Database, open_database
from .types import (
    DatabaseConfig,
    DefaultConfig,
    FilePath,
    InlineConfig,
    config_source,
)

logger = get_logger(__name__)


def cache_key(argument: Any) -> Hashable:
    """Hashable stand-in for a config argument, equal for equal arguments."""
    if isinstance(argument, Mapping):
        return frozenset((str(k), cache_key(v)) for k, v in argument.items())
    if isinstance(argument, (list, tuple)):
        return tuple(cache_key(v) for v in argument)
    if isinstance(argument, os.PathLike):
        return os.fspath(argument)
    return argument


class ConnectionCache:
    """
    Config argument → open :class:`Database`.

    Entries live until :meth:`clear`; there is no eviction and no locking.
    """

    def __init__(self) -> None:
        self._connections: dict[Hashable, Database] = {}

    def get(self, key: Hashable) -> Database | None:
        return self._connections.get(key)

    def store(self, key: Hashable, database: Database) -> Database:
        self._connections[key] = database
        return database

    def clear(self, *, dispose: bool = True) -> None:
        """Forget every connection, disposing their engines by default."""
        if dispose:
            for database in self._connections.values():
                database.dispose()
        self._connections.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._connections)


# Process-wide cache
default_connection_cache = ConnectionCache()


class ConfigResolver:
    """
    Resolve config arguments and hand out cached connections.

    Parameters
    ----------
    cache:
        Where connections are kept. Defaults to the process-wide
        ``default_connection_cache``.
    default_path:
        Config file used when the argument does not resolve. Defaults to
        the ``database_config`` setting (``./config/database.yml``).
    environment:
        Entry picked from environment-keyed configs. Defaults to the
        ``environment`` setting (``test``).
    connector:
        ``DatabaseConfig`` → ``Database``. Defaults to ``open_database``.
    """

    def __init__(
        self,
        cache: ConnectionCache | None = None,
        *,
        default_path: str | None = None,
        environment: str | None = None,
        connector: Callable[[DatabaseConfig], Database] = open_database,
    ) -> None:
        self.cache = cache if cache is not None else default_connection_cache
        self._default_path = default_path
        self._environment = environment
        self._connector = connector

    # unset values follow the settings, so clear_settings_cache() reaches
    # resolvers that already exist
    @property
    def default_path(self) -> str:
        return self._default_path or get_settings().database_config

    @property
    def environment(self) -> str:
        return self._environment or get_settings().environment

    def connection(self, argument: Any = None) -> Database:
        """The cached connection for ``argument``, opening it on first use."""
        key = self.key_for(argument)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("config_resolver.cache_hit", key=_describe(argument))
            return cached

        config = self.resolve_config(argument)
        database = self._connector(config)
        logger.info(
            "config_resolver.connected",
            adapter=config.adapter,
            database=config.database,
            source=_describe(argument),
        )
        return self.cache.store(key, database)

    def key_for(self, argument: Any) -> Hashable:
        return cache_key(argument if argument is not None else self.default_path)

    def resolve_config(self, argument: Any = None) -> DatabaseConfig:
        """Validated config for ``argument``.

        Raises:
            DatabaseNotConfiguredError: a mapping is missing required
                fields, or no source resolves at all.
        """
        match config_source(argument):
            case FilePath(path=path):
                parsed = self._parse_file(path)
                if parsed is not None:
                    return self._from_mapping(parsed, source=path)
            case InlineConfig(mapping=mapping):
                return self._from_mapping(mapping, source="inline")
            case DefaultConfig():
                pass

        parsed = self._parse_file(self.default_path)
        if parsed is not None:
            return self._from_mapping(parsed, source=self.default_path)

        raise DatabaseNotConfiguredError(
            "Unable to connect to database",
            context=ErrorContext(config_source=_describe(argument)),
        )

    def _parse_file(self, path: str) -> Mapping[Any, Any] | None:
        """Parsed mapping from ``path``, or ``None`` when it is not usable."""
        if not os.path.isfile(path):
            return None
        try:
            parsed = load_yaml_file(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, TemplateError) as e:
            logger.warning("config_resolver.unparsable_config", path=path, error=str(e))
            return None
        if not isinstance(parsed, Mapping):
            logger.warning(
                "config_resolver.unusable_config", path=path, parsed_type=type(parsed).__name__
            )
            return None
        return parsed

    def _from_mapping(self, mapping: Mapping[Any, Any], *, source: str) -> DatabaseConfig:
        keys = {str(k): k for k in mapping}
        candidate = mapping[keys[self.environment]] if self.environment in keys else mapping
        if not isinstance(candidate, Mapping):
            candidate = {}
        try:
            return DatabaseConfig.from_mapping(candidate)
        except DatabaseNotConfiguredError as e:
            e.with_context(config_source=source)
            raise


def _describe(argument: Any) -> str:
    if argument is None:
        return "default"
    if isinstance(argument, Mapping):
        return "inline"
    return str(argument)


_default_resolver: ConfigResolver | None = None


def default_resolver() -> ConfigResolver:
    """The resolver over ``default_connection_cache`` with settings defaults."""
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = ConfigResolver(default_connection_cache)
    return _default_resolver


__all__ = [
    "cache_key",
    "ConnectionCache",
    "default_connection_cache",
    "ConfigResolver",
    "default_resolver",
]
