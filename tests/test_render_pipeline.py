"""Tests for core/services/render_pipeline.py over a mocked HTTP transport."""

import asyncio
import json
from urllib.parse import urlsplit

import httpx

from core.services.render_pipeline import RenderRequest, load_standings, render_board

API_PREFIX = "/v1/"


def _router(routes):
    """Serve `tournament_routes` through an httpx handler (throttling once per path)."""

    throttled = set()

    def handler(request):
        url = str(request.url)
        path = urlsplit(url).path[len(API_PREFIX):]
        if request.url.params.get("page"):
            key = url
        else:
            key = path
        if key not in throttled:
            throttled.add(key)
            return httpx.Response(429, json={"detail": "Request was throttled."})
        route = routes[key]
        body = route(dict(request.url.params)) if callable(route) else route
        return httpx.Response(200, json=body)

    return handler


def test_render_writes_html_and_json(tmp_path, settings, tournament_routes, mock_client, recorded_sleep):
    delays, sleep = recorded_sleep
    request = RenderRequest(
        output_path=tmp_path / "out" / "board.html",
        json_path=tmp_path / "out" / "board.json",
        strip_markers=True,
    )

    async def scenario():
        async with mock_client(_router(tournament_routes)) as client:
            return await render_board(settings=settings, request=request, client=client, sleep=sleep)

    result = asyncio.run(scenario())

    html = result.output_path.read_text(encoding="utf-8")
    assert "B + 5.5" in html
    assert "(7)" in html
    assert "<template" not in html

    payload = json.loads(result.json_path.read_text(encoding="utf-8"))
    assert payload["tournament_id"] == 1
    assert payload["mode"] == "groups"
    assert payload["rounds"][0]["groups"][1]["players"] == [
        {"id": 3, "username": "C"},
        {"id": 4, "username": "D"},
    ]

    assert 1 <= result.peak_in_flight <= settings.max_in_flight
    assert 1.0 in delays


def test_progressive_render_rewrites_file(tmp_path, settings, tournament_routes, mock_client, recorded_sleep):
    _, sleep = recorded_sleep
    request = RenderRequest(output_path=tmp_path / "board.html", player="A", progressive=True)

    async def scenario():
        async with mock_client(_router(tournament_routes)) as client:
            return await render_board(settings=settings, request=request, client=client, sleep=sleep)

    result = asyncio.run(scenario())

    assert result.board.player.username == "A"
    assert "B + 5.5" in result.output_path.read_text(encoding="utf-8")


def test_standings_are_sorted_by_points(settings, tournament_routes, mock_client):
    routes = dict(tournament_routes)

    def handler(request):
        url = str(request.url)
        key = url if request.url.params.get("page") else urlsplit(url).path[len(API_PREFIX):]
        return httpx.Response(200, json=routes[key])

    async def scenario():
        async with mock_client(handler) as client:
            return await load_standings(settings=settings, client=client)

    board = asyncio.run(scenario())

    assert [p.player.username for p in board.participants] == ["B", "C", "A"]
