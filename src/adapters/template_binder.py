"""Enlazado de un árbol de datos sobre un árbol de plantilla HTML (BeautifulSoup).

Directivas (atributos en la plantilla):

- `data-text="key"`: texto del nodo.
- `data-props="prop:key prop:key"`: atributos del nodo.
- `data-dataset="name:key"`: atributos `data-<name>`.
- `data-iterate="key"`: en un `<template>`; clona su contenido una vez por item.
- `data-await="key"`: en un `<template>`; clona ya, inserta al resolver.

Las ramas `await` corren como tareas asyncio independientes y se insertan
tras su marcador en orden de llegada. Los desajustes de forma se registran y
solo saltan el subárbol afectado, salvo con `strict=True`.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import re
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, PageElement, Tag

from core.domain.data_tree import (
    Scope,
    expect_collection,
    expect_deferred,
    expect_leaf,
)
from core.domain.errors import BindingMismatch

logger = logging.getLogger(__name__)

TEXT = "data-text"
PROPS = "data-props"
DATASET = "data-dataset"
ITERATE = "data-iterate"
AWAIT = "data-await"

# Nombres de propiedad DOM que no coinciden con su atributo HTML.
_PROPERTY_ATTRIBUTES = {
    "className": "class",
    "htmlFor": "for",
}

InsertListener = Callable[[Tag, list[PageElement]], None]


def parse_template(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def is_marker(tag: Tag) -> bool:
    return tag.has_attr(ITERATE) or tag.has_attr(AWAIT)


def strip_markers(root: Tag) -> None:
    """Elimina los `<template>` marcadores (para exportar HTML estático)."""

    top_level = [
        marker
        for marker in root.find_all(is_marker)
        if not any(is_marker(parent) for parent in marker.parents)
    ]
    for marker in top_level:
        marker.decompose()


def _kebab(name: str) -> str:
    return re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name)


def _pairs(raw: str, directive: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for chunk in raw.split():
        target, sep, key = chunk.partition(":")
        if not sep or not target or not key:
            raise BindingMismatch(directive, chunk, "expected 'name:key'")
        pairs.append((target, key))
    return pairs


def _detach_children(container: Tag) -> list[PageElement]:
    return [child.extract() for child in list(container.contents)]


def _insert_after(marker: Tag, nodes: list[PageElement]) -> None:
    anchor: PageElement = marker
    for node in nodes:
        anchor.insert_after(node)
        anchor = node


@dataclass
class _Directives:
    text: list[Tag] = field(default_factory=list)
    props: list[Tag] = field(default_factory=list)
    dataset: list[Tag] = field(default_factory=list)
    iterate: list[Tag] = field(default_factory=list)
    awaits: list[Tag] = field(default_factory=list)


def _collect(root: Tag) -> _Directives:
    """Nodos con directivas bajo `root`, sin entrar en los marcadores."""

    found = _Directives()

    def visit(node: Tag) -> None:
        for child in node.children:
            if not isinstance(child, Tag):
                continue
            if is_marker(child):
                (found.iterate if child.has_attr(ITERATE) else found.awaits).append(child)
                continue
            if child.has_attr(TEXT):
                found.text.append(child)
            if child.has_attr(PROPS):
                found.props.append(child)
            if child.has_attr(DATASET):
                found.dataset.append(child)
            visit(child)

    visit(root)
    return found


class RenderPass:
    """Estado de un render: las ramas diferidas todavía en curso."""

    def __init__(self) -> None:
        self._tasks: list[asyncio.Task] = []
        self.inserted = 0
        self.skipped = 0

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def track(self, task: asyncio.Task) -> None:
        self._tasks.append(task)

    async def settled(self) -> None:
        """Espera todas las ramas, incluidas las que nacen de otras ramas."""

        while True:
            running = [task for task in self._tasks if not task.done()]
            if not running:
                break
            await asyncio.wait(running)

        for task in self._tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]


class TemplateBinder:
    def __init__(
        self,
        *,
        strict: bool = False,
        on_insert: InsertListener | None = None,
    ) -> None:
        self.strict = strict
        self._listeners: list[InsertListener] = [on_insert] if on_insert else []

    def add_listener(self, listener: InsertListener) -> None:
        self._listeners.append(listener)

    def fill(self, root: Tag, scope: Scope, render: RenderPass | None = None) -> RenderPass:
        """Materializa `scope` sobre `root` in situ.

        Si el árbol contiene ramas `Deferred`, debe llamarse dentro de un event
        loop en marcha; las ramas se esperan con `RenderPass.settled()`.
        """

        render = render or RenderPass()
        nodes = _collect(root)

        for node in nodes.text:
            self._guard(render, self._bind_text, node, scope)
        for node in nodes.props:
            self._guard(render, self._bind_props, node, scope)
        for node in nodes.dataset:
            self._guard(render, self._bind_dataset, node, scope)
        for marker in nodes.iterate:
            self._guard(render, self._bind_iterate, marker, scope, render)
        for marker in nodes.awaits:
            self._guard(render, self._bind_await, marker, scope, render)
        return render

    def _guard(self, render: RenderPass, bind: Callable[..., None], *args: Any) -> None:
        try:
            bind(*args)
        except BindingMismatch as exc:
            if self.strict:
                raise
            render.skipped += 1
            logger.warning("Binding skipped: %s", exc)

    def _bind_text(self, node: Tag, scope: Scope) -> None:
        leaf = expect_leaf(scope, node[TEXT], directive="text")
        node.string = "" if leaf.value is None else str(leaf.value)

    def _bind_props(self, node: Tag, scope: Scope) -> None:
        for prop, key in _pairs(node[PROPS], "props"):
            value = expect_leaf(scope, key, directive="props").value
            if prop == "textContent":
                node.string = "" if value is None else str(value)
                continue
            self._set_attribute(node, _PROPERTY_ATTRIBUTES.get(prop, prop), value)

    def _bind_dataset(self, node: Tag, scope: Scope) -> None:
        for name, key in _pairs(node[DATASET], "dataset"):
            value = expect_leaf(scope, key, directive="dataset").value
            self._set_attribute(node, f"data-{_kebab(name)}", value)

    @staticmethod
    def _set_attribute(node: Tag, name: str, value: Any) -> None:
        if value is None or value is False:
            if node.has_attr(name):
                del node[name]
        elif value is True:
            node[name] = ""
        else:
            node[name] = str(value)

    def _bind_iterate(self, marker: Tag, scope: Scope, render: RenderPass) -> None:
        key = marker[ITERATE]
        collection = expect_collection(scope, key)

        # Los clones solo se insertan si todos los items producen su scope.
        fragments: list[PageElement] = []
        for item in collection.items:
            try:
                child_scope = collection.child_data(item)
            except Exception as exc:
                raise BindingMismatch("iterate", key, f"child_data failed on {item!r}: {exc!r}") from exc
            clone = copy.copy(marker)
            self.fill(clone, child_scope, render)
            fragments.extend(_detach_children(clone))
        _insert_after(marker, fragments)

    def _bind_await(self, marker: Tag, scope: Scope, render: RenderPass) -> None:
        key = marker[AWAIT]
        if isinstance(scope, Mapping) and key not in scope:
            logger.debug("No pending value for await '%s'; branch skipped", key)
            return
        deferred = expect_deferred(scope, key)
        if deferred.pending is None:
            logger.debug("Await '%s' has nothing pending; branch skipped", key)
            return

        loop = asyncio.get_running_loop()
        pending = deferred.pending() if callable(deferred.pending) else deferred.pending
        clone = copy.copy(marker)
        task = loop.create_task(self._settle(marker, clone, key, pending, render))
        render.track(task)

    async def _settle(
        self,
        marker: Tag,
        clone: Tag,
        key: str,
        pending: Awaitable[Scope],
        render: RenderPass,
    ) -> None:
        try:
            resolved = await pending
            self.fill(clone, resolved, render)
        except Exception:
            if self.strict:
                raise
            render.skipped += 1
            logger.warning("Deferred branch '%s' failed; not inserted", key, exc_info=True)
            return

        nodes = _detach_children(clone)
        _insert_after(marker, nodes)
        render.inserted += 1
        for listener in self._listeners:
            listener(marker, nodes)


__all__ = [
    "RenderPass",
    "TemplateBinder",
    "is_marker",
    "parse_template",
    "strip_markers",
]
