"""Árbol de datos consumido por el `TemplateBinder`.

Cada clave de un *scope* lleva una de tres variantes:

- `Leaf`: escalar para texto, propiedades o dataset.
- `Collection`: items + `child_data(item)`; la directiva iterate clona una vez por item.
- `Deferred`: un awaitable que produce el scope de una rama tardía.

Los escalares sueltos en un scope se tratan como `Leaf`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from core.domain.errors import BindingMismatch

T = TypeVar("T")


@dataclass(frozen=True)
class Leaf:
    value: Any = None


@dataclass(frozen=True)
class Collection(Generic[T]):
    items: Sequence[T] = ()
    child_data: Callable[[T], "Scope"] = field(default=lambda item: {})


@dataclass(frozen=True)
class Deferred:
    """`pending` es un awaitable o una fábrica sin argumentos que lo crea.

    Con una fábrica, el trabajo solo arranca si la plantilla tiene la rama.
    """

    pending: Awaitable["Scope"] | Callable[[], Awaitable["Scope"]] | None = None


Node = Union[Leaf, Collection, Deferred]
Scope = Mapping[str, Any]

_MISSING = object()


def _get(scope: Scope, directive: str, key: str) -> Any:
    if not isinstance(scope, Mapping):
        raise BindingMismatch(directive, key, f"scope is {type(scope).__name__}, not a mapping")
    value = scope.get(key, _MISSING)
    if value is _MISSING:
        raise BindingMismatch(directive, key, "key is absent")
    return value


def expect_leaf(scope: Scope, key: str, *, directive: str = "text") -> Leaf:
    value = _get(scope, directive, key)
    if isinstance(value, Leaf):
        return value
    if isinstance(value, (Collection, Deferred)):
        raise BindingMismatch(directive, key, f"expected a leaf, got {type(value).__name__}")
    return Leaf(value)


def expect_collection(scope: Scope, key: str) -> Collection:
    value = _get(scope, "iterate", key)
    if not isinstance(value, Collection):
        raise BindingMismatch("iterate", key, f"expected a collection, got {type(value).__name__}")
    if not isinstance(value.items, Sequence) or isinstance(value.items, (str, bytes)):
        raise BindingMismatch("iterate", key, f"items is {type(value.items).__name__}, not a sequence")
    if not callable(value.child_data):
        raise BindingMismatch("iterate", key, "child_data is not callable")
    return value


def expect_deferred(scope: Scope, key: str) -> Deferred:
    value = _get(scope, "await", key)
    if not isinstance(value, Deferred):
        raise BindingMismatch("await", key, f"expected a deferred value, got {type(value).__name__}")
    return value
