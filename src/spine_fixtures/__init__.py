"""
spine-fixtures - immutable builders and database fixture provisioning.

- spine_fixtures.builder: Builder framework (options, defaults, refinement)
- spine_fixtures.database: Config resolution, connection cache, cleaning
- spine_fixtures.fixtures: Fixture loader and FixtureBuilder
"""

__version__ = "0.1.0"

from spine_fixtures.builder import AdHocBuilder, Builder, Option
from spine_fixtures.core.errors import (
    ConfigError,
    DatabaseConnectionError,
    DatabaseNotConfiguredError,
    FixtureError,
    SpineFixturesError,
)
from spine_fixtures.database import ConfigResolver, ConnectionCache, DatabaseCleaner
from spine_fixtures.fixtures import FixtureBuilder, FixtureLoader, FixtureSet

__all__ = [
    "Builder",
    "AdHocBuilder",
    "Option",
    "FixtureBuilder",
    "FixtureLoader",
    "FixtureSet",
    "ConfigResolver",
    "ConnectionCache",
    "DatabaseCleaner",
    "SpineFixturesError",
    "ConfigError",
    "DatabaseNotConfiguredError",
    "DatabaseConnectionError",
    "FixtureError",
]
