"""Scheduler de peticiones JSON.

Responsabilidad:
- Control de admisión: como mucho `max_in_flight` peticiones en vuelo por
  instancia. La espera es por sondeo (`admission_poll_seconds`), sin cola ni
  orden de llegada garantizado.
- Reintento ante HTTP 429 con espera lineal (`intento × backoff_step_seconds`),
  acotado por `max_retries`.
- Cualquier otro status se devuelve tal cual como JSON parseado.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import InvalidResponse, RetriesExhausted, TransportFailure
from core.domain.models import Request

logger = logging.getLogger(__name__)

THROTTLED = 429

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class AdmissionState:
    """Contador de peticiones en vuelo; `0 <= active <= cap`."""

    cap: int
    active: int = 0
    peak: int = 0

    @property
    def has_room(self) -> bool:
        return self.active < self.cap

    def admit(self) -> None:
        self.active += 1
        self.peak = max(self.peak, self.active)

    def release(self) -> None:
        self.active -= 1


class RequestScheduler:
    """Primitiva `call(method, path, query)` sobre un `httpx.AsyncClient`."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client or build_async_client(self._settings)
        self._owns_client = client is None
        self._sleep: Sleep = sleep or asyncio.sleep
        self.admission = AdmissionState(cap=self._settings.max_in_flight)

    @property
    def api_root(self) -> str:
        return self._settings.api_root

    @property
    def active(self) -> int:
        return self.admission.active

    async def __aenter__(self) -> "RequestScheduler":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def call(
        self,
        method: str,
        path: str,
        query: Mapping[str, str] | None = None,
    ) -> Any:
        request = Request(method=method.upper(), path=path, query=dict(query or {}))
        return await self.submit(request)

    async def submit(self, request: Request) -> Any:
        await self._admit(request)
        try:
            return await self._send_with_retry(request)
        finally:
            self.admission.release()

    async def _admit(self, request: Request) -> None:
        waited = False
        while not self.admission.has_room:
            if not waited:
                logger.debug(
                    "Admission full (%d/%d), waiting: %s",
                    self.admission.active,
                    self.admission.cap,
                    request.path,
                )
                waited = True
            await self._sleep(self._settings.admission_poll_seconds)
        self.admission.admit()

    async def _send_with_retry(self, request: Request) -> Any:
        url = request.url(self._settings.api_root)
        attempts = 0
        while True:
            try:
                response = await self._client.request(request.method, url)
            except httpx.TransportError as exc:
                raise TransportFailure(url, exc) from exc

            if response.status_code != THROTTLED:
                return self._decode(url, response)

            attempts += 1
            if attempts > self._settings.max_retries:
                logger.error("Giving up on %s after %d throttled attempts", url, attempts)
                raise RetriesExhausted(url, attempts)

            delay = attempts * self._settings.backoff_step_seconds
            logger.warning("HTTP 429 from %s, retry %d in %.1fs", url, attempts, delay)
            await self._sleep(delay)

    @staticmethod
    def _decode(url: str, response: httpx.Response) -> Any:
        if not response.is_success:
            logger.debug("HTTP %d from %s returned to caller", response.status_code, url)
        try:
            return response.json()
        except ValueError as exc:
            raise InvalidResponse(url, response.status_code) from exc
