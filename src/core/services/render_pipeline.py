"""Board rendering orchestration.

Wires the scheduler, the paginated fetcher, the domain assembler and the
exporters into a single coroutine so the CLI (and tests) only deal with a
request object and a result object.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import httpx

from adapters.json_exporter import export_board_json
from adapters.paginated_fetcher import PaginatedFetcher
from adapters.report_exporter import export_board_html
from adapters.request_scheduler import RequestScheduler, Sleep
from core.config import AppSettings
from core.services.board_assembler import Board, BoardAssembler, BoardMode


@dataclass
class RenderRequest:
    """Parameters that control a render pass."""

    output_path: Path
    tournament_id: int | None = None
    player: str | None = None
    json_path: Path | None = None
    strip_markers: bool = False
    progressive: bool = False
    strict: bool = False


@dataclass
class RenderResult:
    board: Board
    output_path: Path
    json_path: Path | None
    peak_in_flight: int


async def render_board(
    *,
    settings: AppSettings,
    request: RenderRequest,
    client: httpx.AsyncClient | None = None,
    sleep: Sleep | None = None,
) -> RenderResult:
    tournament_id = request.tournament_id or settings.default_tournament_id

    async with RequestScheduler(settings, client=client, sleep=sleep) as scheduler:
        assembler = BoardAssembler(scheduler, PaginatedFetcher(scheduler), settings)
        board = await assembler.assemble(tournament_id, request.player)

        output_path = await export_board_html(
            board=board,
            assembler=assembler,
            output_path=request.output_path,
            settings=settings,
            strict=request.strict,
            strip=request.strip_markers,
            progressive=request.progressive,
        )
        json_path = None
        if request.json_path is not None:
            json_path = export_board_json(board=board, output_path=request.json_path)

        return RenderResult(
            board=board,
            output_path=output_path,
            json_path=json_path,
            peak_in_flight=scheduler.admission.peak,
        )


async def load_standings(
    *,
    settings: AppSettings,
    tournament_id: int | None = None,
    client: httpx.AsyncClient | None = None,
) -> Board:
    """Tablero sin rondas: solo participantes ordenados por puntos."""

    tournament_id = tournament_id or settings.default_tournament_id
    async with RequestScheduler(settings, client=client) as scheduler:
        assembler = BoardAssembler(scheduler, PaginatedFetcher(scheduler), settings)
        participants = await assembler.participants(tournament_id)

    board = Board(tournament_id=tournament_id, mode=BoardMode.GROUPS)
    board.participants = sorted(participants, key=lambda p: -p.points)
    board.usernames = {p.player.id: p.player.username for p in participants}
    return board
