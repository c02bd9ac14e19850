"""Database config record and config-source variants."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from spine_fixtures.core.errors import DatabaseNotConfiguredError

REQUIRED_FIELDS: tuple[str, ...] = ("adapter", "database", "username")
KNOWN_FIELDS: tuple[str, ...] = (*REQUIRED_FIELDS, "password", "host", "port")


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Validated connection configuration.

    ``adapter``, ``database`` and ``username`` are required; anything that
    is not a known field (``pool``, ``encoding``, ...) is kept in
    ``options`` but not passed to the driver.
    """

    adapter: str
    database: str
    username: str | None
    password: str | None = None
    host: str | None = None
    port: int | None = None
    options: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any] | None) -> DatabaseConfig:
        """Validate ``mapping`` and build a config from it.

        Raises:
            DatabaseNotConfiguredError: naming every missing required field,
                or a null ``adapter`` / ``database``.
        """
        values = normalize_keys(mapping or {})
        missing = missing_fields(values)
        if missing:
            raise DatabaseNotConfiguredError(
                f"Unable to connect to database: Missing config for {', '.join(missing)}",
                missing_fields=missing,
            )
        empty = tuple(name for name in ("adapter", "database") if values[name] is None)
        if empty:
            raise DatabaseNotConfiguredError(
                f"Unable to connect to database: Empty config for {', '.join(empty)}",
                missing_fields=empty,
            )

        port = values.get("port")
        return cls(
            adapter=str(values["adapter"]),
            database=str(values["database"]),
            username=values["username"],
            password=values.get("password"),
            host=values.get("host"),
            port=int(port) if port is not None else None,
            options={k: v for k, v in values.items() if k not in KNOWN_FIELDS},
        )

    def __repr__(self) -> str:
        # never echo the password
        return (
            f"DatabaseConfig(adapter={self.adapter!r}, database={self.database!r}, "
            f"username={self.username!r}, host={self.host!r}, port={self.port!r})"
        )


def normalize_keys(mapping: Mapping[Any, Any]) -> dict[str, Any]:
    """Return ``mapping`` with every key turned into a ``str``."""
    return {str(key): value for key, value in mapping.items()}


def missing_fields(values: Mapping[str, Any]) -> tuple[str, ...]:
    """Required fields absent from ``values``, in ``REQUIRED_FIELDS`` order."""
    return tuple(name for name in REQUIRED_FIELDS if name not in values)


# ── Config sources ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class FilePath:
    """Config given as a path to a YAML file."""

    path: str


@dataclass(frozen=True)
class InlineConfig:
    """Config given as a mapping."""

    mapping: Mapping[Any, Any]


@dataclass(frozen=True)
class DefaultConfig:
    """No config given; use the default config file."""


ConfigSource = Union[FilePath, InlineConfig, DefaultConfig]


def config_source(argument: Any) -> ConfigSource:
    """Classify a raw config argument.

    ``None`` → :class:`DefaultConfig`, ``str`` / ``os.PathLike`` →
    :class:`FilePath`, ``Mapping`` → :class:`InlineConfig`.
    """
    if argument is None:
        return DefaultConfig()
    if isinstance(argument, (str, os.PathLike)):
        return FilePath(os.fspath(argument))
    if isinstance(argument, Mapping):
        return InlineConfig(argument)
    raise DatabaseNotConfiguredError(
        f"Unable to connect to database: unsupported config of type {type(argument).__name__}"
    )


__all__ = [
    "REQUIRED_FIELDS",
    "DatabaseConfig",
    "normalize_keys",
    "missing_fields",
    "FilePath",
    "InlineConfig",
    "DefaultConfig",
    "ConfigSource",
    "config_source",
]
