"""Shared fixtures: fast settings, an in-memory JSON API and an httpx mock router."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Any

import httpx
import pytest

from core.config import AppSettings

API_ROOT = "https://api.test/v1"


class FakeApi:
    """In-memory `JsonApi`: routes are keyed by path (relative or absolute)."""

    def __init__(self, routes: Mapping[str, Any]) -> None:
        self.routes = dict(routes)
        self.calls: list[tuple[str, dict[str, str]]] = []

    async def call(self, method: str, path: str, query: Mapping[str, str] | None = None) -> Any:
        self.calls.append((path, dict(query or {})))
        await asyncio.sleep(0)
        route = self.routes[path]
        return route(dict(query or {})) if callable(route) else route


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        api_root=API_ROOT,
        site_root="https://site.test",
        max_in_flight=10,
        admission_poll_seconds=0.5,
        backoff_step_seconds=1.0,
        max_retries=20,
        default_tournament_id=1,
    )


@pytest.fixture
def fake_api() -> Callable[[Mapping[str, Any]], FakeApi]:
    return FakeApi


@pytest.fixture
def recorded_sleep() -> tuple[list[float], Callable[[float], Any]]:
    """A sleep that records its argument and only yields to the loop."""

    delays: list[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)
        await asyncio.sleep(0)

    return delays, sleep


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], Any]], httpx.AsyncClient]:
    def build(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build


@pytest.fixture
def tournament_routes() -> dict[str, Any]:
    """One round: A (1) vs B (2) finished, C (3) vs D (4) still in play."""

    return {
        "players": lambda query: {
            "results": [
                {"id": 11, "username": query["username"] + "_fan"},
                {"id": 1, "username": "A"},
            ]
            if query.get("username") == "A"
            else [],
            "next": None,
        },
        "tournaments/1/rounds": [
            {
                "round_number": 1,
                "matches": [
                    {"white": 1, "black": 2, "gameid": 10},
                    {"white": 3, "black": 4, "gameid": 11},
                ],
            }
        ],
        "tournaments/1/players": {
            "results": [
                {"player": {"id": 1, "username": "A"}, "points": 0},
                {"player": {"id": 2, "username": "B"}, "points": 1},
            ],
            "next": f"{API_ROOT}/tournaments/1/players?page=2",
        },
        f"{API_ROOT}/tournaments/1/players?page=2": {
            "results": [
                {"player": {"id": 3, "username": "C"}, "points": 0.5},
            ],
            "next": None,
        },
        "players/4": {"id": 4, "username": "D"},
        "games/10": {
            "id": 10,
            "players": {"white": {"id": 1, "username": "A"}, "black": {"id": 2, "username": "B"}},
            "gamedata": {"phase": "finished", "moves": [[3, 3]] * 120, "winner": 2, "outcome": "5.5"},
        },
        "games/11": {
            "id": 11,
            "players": {"white": {"id": 3, "username": "C"}, "black": {"id": 4, "username": "D"}},
            "gamedata": {"phase": "play", "moves": [[0, 0]] * 7, "winner": None, "outcome": ""},
        },
    }
