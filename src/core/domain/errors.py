"""Taxonomía de errores.

- `TransportFailure`, `RetriesExhausted` e `InvalidResponse` se propagan a
  quien esperaba la llamada.
- `BindingMismatch` solo degrada el subárbol afectado (salvo modo estricto).
- Un jugador inexistente no es un error: el tablero sale vacío.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base de todos los errores del proyecto."""


class TransportFailure(BoardError):
    """Fallo de red; no se reintenta."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url} failed: {cause}")


class RetriesExhausted(BoardError):
    """La API siguió respondiendo 429 tras el máximo de reintentos."""

    def __init__(self, url: str, attempts: int) -> None:
        self.url = url
        self.attempts = attempts
        super().__init__(f"Still throttled after {attempts} attempts: {url}")


class InvalidResponse(BoardError):
    """El cuerpo de la respuesta no es JSON."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"Non-JSON body from {url} (HTTP {status_code})")


class BindingMismatch(BoardError):
    """El dato en `key` no tiene la forma que espera la directiva."""

    def __init__(self, directive: str, key: str, reason: str) -> None:
        self.directive = directive
        self.key = key
        self.reason = reason
        super().__init__(f"{directive} '{key}': {reason}")
