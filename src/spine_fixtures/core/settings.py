"""Settings for spine-fixtures.

Where the fixture builder looks for things when it is not told explicitly:
the database config file, the candidate fixture directories, and which
environment entry to pick from an environment-keyed config.

Manifesto:
    Defaults should work with zero configuration for the conventional
    project layout (``config/database.yml`` plus ``spec/fixtures`` or
    ``test/fixtures``) and stay overridable from the environment for CI
    setups that lay things out differently.

    - **Pydantic validation:** Type-checked when loaded
    - **Environment-driven:** ``SPINE_FIXTURES_*`` variables and ``.env``
    - **Cached:** One settings object per process

Examples:
    >>> from spine_fixtures.core.settings import get_settings
    >>> get_settings().database_config
    './config/database.yml'

    ``SPINE_FIXTURES_FIXTURE_DIRECTORIES='["./tests/fixtures"]'`` replaces
    the candidate list.

Tags:
    settings, configuration, pydantic, environment, spine-fixtures

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_CONFIG = "./config/database.yml"
DEFAULT_SPEC_FIXTURE_DIRECTORY = "./spec/fixtures"
DEFAULT_TEST_FIXTURE_DIRECTORY = "./test/fixtures"
DEFAULT_ENVIRONMENT = "test"


class FixtureSettings(BaseSettings):
    """Configuration for config resolution and fixture discovery.

    Fields
    ──────
    database_config      : Config file used when no config argument is given
    fixture_directories  : Candidate fixture directories, first existing wins
    environment          : Entry selected from environment-keyed configs
    log_level            : Structlog log level
    """

    model_config = SettingsConfigDict(
        env_prefix="SPINE_FIXTURES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_config: str = DEFAULT_DATABASE_CONFIG
    fixture_directories: list[str] = Field(
        default_factory=lambda: [
            DEFAULT_SPEC_FIXTURE_DIRECTORY,
            DEFAULT_TEST_FIXTURE_DIRECTORY,
        ],
        description="Candidate fixture directories, in lookup order",
    )
    environment: str = DEFAULT_ENVIRONMENT
    log_level: str = "INFO"


_settings_cache: dict[str, FixtureSettings] = {}


def get_settings(*, _force_reload: bool = False) -> FixtureSettings:
    """Load, validate, and cache a :class:`FixtureSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = FixtureSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, or after changing the environment)."""
    _settings_cache.clear()


__all__ = [
    "DEFAULT_DATABASE_CONFIG",
    "DEFAULT_SPEC_FIXTURE_DIRECTORY",
    "DEFAULT_TEST_FIXTURE_DIRECTORY",
    "DEFAULT_ENVIRONMENT",
    "FixtureSettings",
    "get_settings",
    "clear_settings_cache",
]
