"""
Structured error types for spine-fixtures.

Provides a small hierarchy of typed errors carrying a category, a retry
flag, structured context and an optional chained cause. Every failure in
config resolution, connection set-up and fixture loading is raised as one
of these (or as a plain driver error); nothing is retried or swallowed.

Manifesto:
    - **Typed Error Hierarchy:** Configuration problems, connection
      failures and fixture problems are distinct types
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry metadata for logging
    - **Error Chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        ┌────────────────────────────────────────────────────────────┐
        │                   SpineFixturesError                       │
        │  (category, retryable, context, cause)                     │
        ├────────────────────────────────────────────────────────────┤
        │  ConfigError                DatabaseConnectionError        │
        │  (CONFIG)                   (DATABASE, retryable)          │
        │       │                                                    │
        │  DatabaseNotConfiguredError FixtureError                   │
        │                             (PARSE)                        │
        └────────────────────────────────────────────────────────────┘

Examples:
    >>> error = DatabaseNotConfiguredError("Unable to find fixtures to load")
    >>> error.retryable
    False
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>

Guardrails:
    ❌ DON'T: Raise DatabaseNotConfiguredError after cleaning has started
    ✅ DO: Validate configuration before any table is touched

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, configuration, database,
    spine-fixtures

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"         # Connection, truncation, insert
    STORAGE = "STORAGE"           # File system
    PARSE = "PARSE"               # YAML / template errors
    VALIDATION = "VALIDATION"     # Fixture content violations
    CONFIG = "CONFIG"             # Missing config, invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Where in the fixture workflow an error happened.

    Typed fields cover what the fixture workflow knows when it fails:
    the config argument, the fixture directory and the table involved.
    Anything else goes into ``metadata``.

    Attributes:
        config_source: Description of the config argument being resolved
        fixture_directory: Fixture directory being resolved or loaded
        table: Table being cleaned or loaded
        metadata: Additional key-value pairs
    """

    config_source: str | None = None
    fixture_directory: str | None = None
    table: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Only the fields that are set, metadata flattened in."""
        result = {}
        for key in ["config_source", "fixture_directory", "table"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SpineFixturesError(Exception):
    """
    Base exception for all spine-fixtures errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their domain.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SpineFixturesError:
        """
        Attach context and return the same error.

        Usage:
            raise FixtureError("Bad fixture").with_context(table="users")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Structured form, suitable as structlog key/values."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SpineFixturesError):
    """
    Configuration error.

    Fix the configuration; retrying cannot help.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class DatabaseNotConfiguredError(ConfigError):
    """
    The database or fixture set-up cannot be determined.

    Raised when a required database config field is missing, when no config
    source can be resolved at all, or when the fixture directory cannot be
    found. Always raised before any table is cleaned or loaded.
    """

    def __init__(
        self,
        message: str,
        *,
        missing_fields: tuple[str, ...] = (),
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.missing_fields = missing_fields

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.missing_fields:
            result["missing_fields"] = list(self.missing_fields)
        return result


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseConnectionError(SpineFixturesError):
    """A structurally valid config could not establish a connection."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


# =============================================================================
# FIXTURE ERRORS
# =============================================================================


class FixtureError(SpineFixturesError):
    """A fixture group could not be loaded."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


class FixtureTableNotEmptyError(FixtureError):
    """A table targeted by a fixture group already holds rows."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, table: str, message: str | None = None):
        self.table = table
        super().__init__(
            message
            or f"The table '{table}' is not empty, all tables should be empty prior to loading fixtures",
            context=ErrorContext(table=table),
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Whether retrying the failed set-up could succeed."""
    if isinstance(error, SpineFixturesError):
        return error.retryable
    return isinstance(error, (ConnectionError, BrokenPipeError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Category of any exception, typed or not."""
    if isinstance(error, SpineFixturesError):
        return error.category
    if isinstance(error, (FileNotFoundError, PermissionError)):
        return ErrorCategory.STORAGE
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    if isinstance(error, (KeyError, AttributeError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SpineFixturesError",
    "ConfigError",
    "DatabaseNotConfiguredError",
    "DatabaseConnectionError",
    "FixtureError",
    "FixtureTableNotEmptyError",
    "is_retryable",
    "categorize_error",
]
