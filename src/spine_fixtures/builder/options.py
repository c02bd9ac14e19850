"""Option descriptors and coercion pipelines for builders.

Every builder option is an :class:`Option` descriptor. The descriptor gives
the option a read accessor and installs a ``with_<name>()`` refinement
method on the owning class. What happens to an incoming value is data, not
method overriding: each option owns a :class:`CoercionPipeline`, an ordered
tuple of :class:`DefaultLayer` steps (outermost first) that ends in a
terminal coercion (identity unless replaced).

::

    incoming value
        │
        ↓
    DefaultLayer (declared last)   None? → value / factory(builder)
        │
        ↓
    DefaultLayer (declared first)  None? → value / factory(builder)
        │
        ↓
    terminal coercion              identity, or coercion_for(name, fn)
        │
        ↓
    stored option value

Tags:
    builder, options, descriptor, coercion, defaults, spine-fixtures

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .base import Builder


def identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class DefaultLayer:
    """Substitute a default when the incoming value is ``None``.

    ``factory`` wins over ``value`` and is called with the builder being
    constructed, so a default can depend on options declared before it.
    """

    value: Any = None
    factory: Callable[[Builder], Any] | None = None

    def apply(self, builder: Builder, incoming: Any) -> Any:
        if incoming is not None:
            return incoming
        if self.factory is not None:
            return self.factory(builder)
        return self.value


@dataclass(frozen=True)
class CoercionPipeline:
    """Ordered default layers (outermost first) plus a terminal coercion."""

    layers: tuple[DefaultLayer, ...] = ()
    terminal: Callable[[Any], Any] = identity

    def with_default(self, layer: DefaultLayer) -> CoercionPipeline:
        """New pipeline with ``layer`` as the new outermost step."""
        return replace(self, layers=(layer, *self.layers))

    def with_terminal(self, coercion: Callable[[Any], Any]) -> CoercionPipeline:
        """New pipeline ending in ``coercion`` instead of the current terminal."""
        return replace(self, terminal=coercion)

    def __call__(self, builder: Builder, incoming: Any) -> Any:
        value = incoming
        for layer in self.layers:
            value = layer.apply(builder, value)
        return self.terminal(value)


class Option:
    """A named builder option.

    Declared in a builder class body, or generated by
    :meth:`Builder.with_options`::

        class UserBuilder(Builder):
            name = Option(default="Jane")
            bday = Option(default_factory=lambda b: date.today())
            tags = Option(coercion=tuple)

    ``default`` / ``default_factory`` add the first default layer;
    ``coercion`` replaces the identity terminal step.
    """

    def __init__(
        self,
        *,
        default: Any = None,
        default_factory: Callable[[Builder], Any] | None = None,
        coercion: Callable[[Any], Any] | None = None,
    ) -> None:
        pipeline = CoercionPipeline(terminal=coercion or identity)
        if default is not None or default_factory is not None:
            pipeline = pipeline.with_default(DefaultLayer(default, default_factory))
        self.pipeline = pipeline
        self.name: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        if name.startswith("_"):
            raise ValueError(f"Option names cannot start with an underscore: {name!r}")
        self.name = name
        refiner = f"with_{name}"
        if refiner not in owner.__dict__:
            setattr(owner, refiner, _make_refiner(name))

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.__dict__["_values"].get(self.name)

    def __set__(self, instance: Any, value: Any) -> None:
        raise AttributeError(
            f"{type(instance).__name__} is immutable; use with_{self.name}() to refine it"
        )

    def __repr__(self) -> str:
        return f"Option({self.name!r})"


def _make_refiner(name: str) -> Callable[..., Builder]:
    def refine(self: Builder, value: Any, *extra: Any) -> Builder:
        # several positional values become one list-valued option
        if extra:
            value = [value, *extra]
        return self.refine_with({name: value})

    refine.__name__ = f"with_{name}"
    refine.__qualname__ = f"with_{name}"
    refine.__doc__ = f"Return a copy of this builder with ``{name}`` replaced."
    return refine


__all__ = [
    "identity",
    "DefaultLayer",
    "CoercionPipeline",
    "Option",
]
