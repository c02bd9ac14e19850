"""Core primitives shared by every spine-fixtures module.

Modules
-------
errors          Typed error hierarchy (DatabaseNotConfiguredError, ...)
logging         structlog configuration and get_logger()
settings        pydantic-settings defaults (config path, fixture dirs)
protocols       Driver contracts consumed by the cleaner and the loader
templating      Jinja2-rendered YAML files (configs and fixtures)
"""
