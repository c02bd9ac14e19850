"""Fixture loading and the fixture builder.

Modules
-------
loader          FixtureLoader (YAML + Jinja2 fixture groups), FixtureSet
builder         FixtureBuilder (resolve config, clean, load)
"""

from .builder import FixtureBuilder
from .loader import FIXTURE_EXTENSIONS, FixtureLoader, FixtureSet

__all__ = [
    "FixtureBuilder",
    "FixtureLoader",
    "FixtureSet",
    "FIXTURE_EXTENSIONS",
]
