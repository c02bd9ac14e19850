"""
Immutable builders with named options and a memoized result.

A builder is a pending construction: a frozen set of named options plus a
``build()`` method that turns them into something (a model row, a loaded
fixture set, a connection, ...). Clients never mutate a builder; every
change produces a new one, so a partially configured builder can be shared
and refined from several places without interference.

Manifesto:
    Test set-up code tends to become a pile of helper functions with long,
    drifting keyword lists. Builders give set-up a single shape:

    - **Named options:** One descriptor per option, with accessor and
      ``with_<name>()`` refinement
    - **Immutable:** ``refine_with()`` returns a new builder, the receiver
      never changes
    - **Defaults as data:** ``default_for()`` stacks default layers on the
      option's coercion pipeline
    - **Memoized result:** ``result`` runs ``build()`` at most once

Architecture:
    ::

        Builder.with_options("name", "bday")
            │  (new subclass, one Option descriptor per name)
            ↓
        class UserBuilder(<generated>):
            def build(self): ...
        UserBuilder.default_for("name", "Jane")
            │
            ↓
        UserBuilder(bday=...)            construct: coerce every option
            .with_name("Bob")            refine: new instance
            .result                      build once, cache

Examples:
    >>> class UserBuilder(Builder.with_options("name", "bday")):
    ...     def build(self):
    ...         return {"name": self.name, "bday": self.bday}
    >>> UserBuilder.default_for("name", "Jane")
    >>> UserBuilder().result
    {'name': 'Jane', 'bday': None}
    >>> UserBuilder().with_name("Bob").result
    {'name': 'Bob', 'bday': None}

    Ad-hoc builders without a named class:

    >>> b = Builder.create_with({"name": "Bob"}, lambda b: b.name.upper())
    >>> b.build()
    'BOB'

    Client-facing refinement methods are plain methods calling
    ``refine_with``:

    >>> class BirthdayBuilder(UserBuilder):
    ...     def born_on(self, day):
    ...         return self.refine_with(bday=day)

Guardrails:
    ❌ DON'T: Call ``build()`` repeatedly to get "the" object
    ✅ DO: Use ``result``; ``build()`` may have side effects

    ❌ DON'T: Assign to builder attributes
    ✅ DO: ``with_<name>()`` or ``refine_with()``

Tags:
    builder, immutable, options, defaults, memoization, test-data,
    spine-fixtures

Doc-Types:
    - API Reference
    - Testing Guide
"""

from __future__ import annotations

import keyword
from collections.abc import Callable, Mapping
from functools import cached_property
from operator import methodcaller
from types import MappingProxyType
from typing import Any, ClassVar, TypeVar

from .options import CoercionPipeline, DefaultLayer, Option

B = TypeVar("B", bound="Builder")
PipelineEdit = Callable[[CoercionPipeline], CoercionPipeline]


class Builder:
    """
    Base class for all builders.

    Subclasses declare options with :class:`Option` descriptors (directly,
    or through :meth:`with_options`) and override :meth:`build`.
    """

    # option name -> pipeline edits declared on this class only
    _pipeline_edits: ClassVar[dict[str, list[PipelineEdit]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._pipeline_edits = {}

    def __init__(self, **options: Any) -> None:
        pipelines = type(self).pipelines()
        unknown = sorted(set(options) - set(pipelines))
        if unknown:
            raise TypeError(
                f"{type(self).__name__} got unexpected option(s): {', '.join(unknown)}"
            )

        # filled in declaration order so default factories can read
        # options declared before theirs
        values: dict[str, Any] = {}
        object.__setattr__(self, "_values", values)
        for name, pipeline in pipelines.items():
            values[name] = pipeline(self, options.get(name))
        object.__setattr__(self, "_values", MappingProxyType(values))

    # -- class-level DSL ---------------------------------------------------

    @classmethod
    def with_options(cls: type[B], *option_names: str) -> type[B]:
        """Return a new subclass with one :class:`Option` per name.

        Each option gets an accessor, a ``with_<name>()`` refinement method
        and an identity coercion.

        Usage:
            class UserBuilder(Builder.with_options("name", "bday", "nickname")):
                def build(self):
                    return User(name=self.name, bday=self.bday)
        """
        _check_option_names(cls, option_names)
        namespace: dict[str, Any] = {name: Option() for name in option_names}
        return type(f"{cls.__name__}Options", (cls,), namespace)

    @classmethod
    def default_for(
        cls,
        option_name: str,
        value: Any = None,
        *,
        factory: Callable[[Any], Any] | None = None,
    ) -> None:
        """Set the default of an option on this class.

        The default is used when the option is not given (or given as
        ``None``). ``factory`` is called with the builder being constructed,
        at construction time. Declaring several defaults for one option
        stacks them; the latest declaration runs first.

        Usage:
            UserBuilder.default_for("name", "Jane")
            UserBuilder.default_for("bday", factory=lambda b: date.today())
        """
        cls._add_edit(option_name, methodcaller("with_default", DefaultLayer(value, factory)))

    @classmethod
    def coercion_for(cls, option_name: str, coercion: Callable[[Any], Any]) -> None:
        """Replace the terminal coercion of an option on this class.

        Defaults still run before ``coercion``, so it sees the defaulted
        value.

        Usage:
            UserBuilder.coercion_for("name", lambda v: str(v) if v else "Bob")
        """
        cls._add_edit(option_name, methodcaller("with_terminal", coercion))

    @classmethod
    def create_with(
        cls,
        initial_options: Mapping[str, Any],
        build: Callable[[Any], Any],
    ) -> AdHocBuilder:
        """Create a builder from initial option values and a build function.

        Usage:
            b = Builder.create_with(
                {"name": "Bob", "bday": birthday},
                lambda b: User(name=b.name, bday=b.bday),
            )
            b.build()
        """
        builder_class = AdHocBuilder.with_options(*initial_options)
        ad_hoc = type(
            builder_class.__name__,
            (builder_class,),
            {"build_logic": staticmethod(build)},
        )
        return ad_hoc(**initial_options)

    @classmethod
    def option_names(cls) -> tuple[str, ...]:
        """Declared option names, in declaration order."""
        return tuple(cls.pipelines())

    @classmethod
    def pipelines(cls) -> dict[str, CoercionPipeline]:
        """Effective pipeline of every option, in declaration order.

        Built from the MRO on each call, so a default declared on a parent
        class reaches subclasses created before it. Edits declared on a
        subclass apply after the parent's and never affect the parent.
        """
        pipelines: dict[str, CoercionPipeline] = {}
        for klass in reversed(cls.__mro__):
            if not issubclass(klass, Builder):
                continue
            for name, attr in klass.__dict__.items():
                if isinstance(attr, Option):
                    pipelines[name] = attr.pipeline
            for name, edits in klass.__dict__.get("_pipeline_edits", {}).items():
                for edit in edits:
                    pipelines[name] = edit(pipelines[name])
        return pipelines

    @classmethod
    def _add_edit(cls, option_name: str, edit: PipelineEdit) -> None:
        if option_name not in cls.pipelines():
            raise ValueError(f"{cls.__name__} has no option {option_name!r}")
        cls._pipeline_edits.setdefault(option_name, []).append(edit)

    # -- instance API ------------------------------------------------------

    @property
    def options(self) -> dict[str, Any]:
        """A copy of the current option values."""
        return dict(self._values)

    def refine_with(
        self: B,
        alterations: Mapping[str, Any] | None = None,
        /,
        **kwargs: Any,
    ) -> B:
        """Return a copy of this builder with the given options replaced.

        The new values go through the options' coercion pipelines; all
        other options carry over. The receiver is not modified.
        """
        merged = {**self._values, **(alterations or {}), **kwargs}
        return type(self)(**merged)

    def build(self) -> Any:
        """Execute the builder.

        Don't call this directly; use :attr:`result`. Concrete builders
        must override it.
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not implement build()"
        )

    @cached_property
    def result(self) -> Any:
        """The object built by this builder, built on first access."""
        return self.build()

    def __call__(self) -> Any:
        return self.build()

    # -- immutability / value semantics ------------------------------------

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            f"{type(self).__name__} is immutable; use refine_with() instead"
        )

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return dict(self._values) == dict(other._values)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"{type(self).__name__}({args})"


class AdHocBuilder(Builder):
    """Builder whose build logic is a function stored on the class.

    Created by :meth:`Builder.create_with`.
    """

    build_logic: ClassVar[Callable[[Any], Any] | None] = None

    def build(self) -> Any:
        if self.build_logic is None:
            return super().build()
        return self.build_logic(self)

    def with_build(self, build: Callable[[Any], Any]) -> AdHocBuilder:
        """Return a builder with the same options and different build logic."""
        replaced = type(
            type(self).__name__,
            (type(self),),
            {"build_logic": staticmethod(build)},
        )
        return replaced(**self._values)


def _check_option_names(cls: type[Builder], names: tuple[str, ...]) -> None:
    seen: set[str] = set()
    for name in names:
        if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
            raise ValueError(f"Invalid option name: {name!r}")
        if name in seen:
            raise ValueError(f"Duplicate option name: {name!r}")
        if hasattr(cls, name) and name not in cls.pipelines():
            raise ValueError(f"Option name {name!r} shadows a {cls.__name__} attribute")
        seen.add(name)


__all__ = [
    "Builder",
    "AdHocBuilder",
]
