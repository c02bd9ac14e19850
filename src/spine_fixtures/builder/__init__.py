"""Builders -- immutable, refinable, memoized object construction.

Modules
-------
base            Builder, AdHocBuilder (with_options, default_for, create_with)
options         Option descriptor, CoercionPipeline, DefaultLayer
"""

from .base import AdHocBuilder, Builder
from .options import CoercionPipeline, DefaultLayer, Option, identity

__all__ = [
    "Builder",
    "AdHocBuilder",
    "Option",
    "CoercionPipeline",
    "DefaultLayer",
    "identity",
]
