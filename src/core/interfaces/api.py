"""Contratos de acceso a la API.

Por qué Protocol:
- El ensamblador de dominio solo conoce `call` y `stream`; el scheduler y el
  fetcher concretos viven en adapters y se pueden sustituir en tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class JsonApi(Protocol):
    """Llamada JSON con control de admisión y reintentos."""

    async def call(
        self,
        method: str,
        path: str,
        query: Mapping[str, str] | None = None,
    ) -> Any:
        ...


@runtime_checkable
class RecordStream(Protocol):
    """Secuencia perezosa de registros paginados."""

    @property
    def has_more(self) -> bool:
        ...

    async def next_page(self) -> list[Any]:
        ...

    def __aiter__(self) -> AsyncIterator[Any]:
        ...


@runtime_checkable
class PagedApi(Protocol):
    def stream(self, path: str, query: Mapping[str, str] | None = None) -> RecordStream:
        ...
