"""Lectura perezosa de colecciones paginadas (`{results, next}`).

Cada `stream()` empieza de cero en la primera página. Las páginas se piden de
una en una; cada petición pasa por el control de admisión del scheduler.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any

from pydantic import ValidationError

from core.domain.models import Page
from core.interfaces.api import JsonApi

logger = logging.getLogger(__name__)


class PageStream:
    """Iterador de registros con chequeo explícito `has_more`."""

    def __init__(self, api: JsonApi, path: str, query: Mapping[str, str] | None = None) -> None:
        self._api = api
        self._path = path
        self._query = dict(query or {})
        self._next: str | None = None
        self._started = False
        self._exhausted = False
        self.pages_fetched = 0

    @property
    def has_more(self) -> bool:
        return not self._exhausted

    async def next_page(self) -> list[Any]:
        if self._exhausted:
            raise StopAsyncIteration

        if not self._started:
            self._started = True
            body = await self._api.call("GET", self._path, self._query)
        else:
            # `next` ya trae path y query completos.
            body = await self._api.call("GET", self._next or "")

        page = self._parse(body)
        self.pages_fetched += 1
        self._next = page.next
        if not page.next:
            self._exhausted = True
        logger.debug(
            "Page %d of %s: %d results, more=%s",
            self.pages_fetched,
            self._path,
            len(page.results),
            self.has_more,
        )
        return page.results

    def _parse(self, body: Any) -> Page:
        if not isinstance(body, Mapping) or not isinstance(body.get("results"), list):
            logger.warning("Unexpected page body for %s; treating as last page", self._path)
            return Page()
        try:
            return Page.model_validate(body)
        except ValidationError:
            logger.warning("Invalid pagination fields for %s; treating as last page", self._path)
            return Page(results=body["results"])

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._records()

    async def _records(self) -> AsyncIterator[Any]:
        while self.has_more:
            for record in await self.next_page():
                yield record


class PaginatedFetcher:
    def __init__(self, api: JsonApi) -> None:
        self._api = api

    def stream(self, path: str, query: Mapping[str, str] | None = None) -> PageStream:
        return PageStream(self._api, path, query)

    async def collect(self, path: str, query: Mapping[str, str] | None = None) -> list[Any]:
        return [record async for record in self.stream(path, query)]
