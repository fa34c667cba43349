"""Ensamblado del tablero de un torneo.

Convierte los registros crudos de la API en el árbol de datos que consume el
`TemplateBinder`. Solo habla con la API a través de los contratos `JsonApi` y
`PagedApi`, así que en tests el scheduler y el fetcher se sustituyen por fakes.

Dos modos de render:

- grupos: las partidas de cada ronda se separan en componentes conexos de
  jugadores que comparten alguna partida.
- jugador: sus partidas más las de cada rival en esa ronda, con filas
  `[jugador, *rivales]`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any

from core.config import AppSettings
from core.domain.data_tree import Collection, Deferred, Scope
from core.domain.models import Game, Match, Player, Round, TournamentParticipant
from core.domain.results import format_result
from core.interfaces.api import JsonApi, PagedApi

logger = logging.getLogger(__name__)


class BoardMode(str, Enum):
    GROUPS = "groups"
    PLAYER = "player"


@dataclass
class MatchGroup:
    """Filas de un grupo: ids de jugador en orden y las partidas de la ronda."""

    player_ids: list[int]
    matches: list[Match]

    def matches_of(self, player_id: int) -> list[Match]:
        return [match for match in self.matches if match.involves(player_id)]


@dataclass
class RoundView:
    round_number: int
    groups: list[MatchGroup] = field(default_factory=list)


@dataclass
class Board:
    tournament_id: int
    mode: BoardMode
    player: Player | None = None
    rounds: list[RoundView] = field(default_factory=list)
    usernames: dict[int, str] = field(default_factory=dict)
    participants: list[TournamentParticipant] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rounds

    def points_of(self, player_id: int) -> float | None:
        for participant in self.participants:
            if participant.player.id == player_id:
                return participant.points
        return None


def group_matches(matches: list[Match]) -> list[MatchGroup]:
    """Componentes conexas de jugadores que comparten alguna partida.

    Los grupos y sus jugadores conservan el orden de primera aparición.
    """

    parent: dict[int, int] = {}

    def find(pid: int) -> int:
        parent.setdefault(pid, pid)
        while parent[pid] != pid:
            parent[pid] = parent[parent[pid]]
            pid = parent[pid]
        return pid

    for match in matches:
        a, b = find(match.white), find(match.black)
        if a != b:
            parent[b] = a

    groups: dict[int, MatchGroup] = {}
    for match in matches:
        group = groups.setdefault(find(match.white), MatchGroup(player_ids=[], matches=[]))
        group.matches.append(match)
        for pid in (match.white, match.black):
            if pid not in group.player_ids:
                group.player_ids.append(pid)
    return list(groups.values())


def player_group(matches: list[Match], player_id: int) -> MatchGroup:
    """El jugador, sus rivales y todas las partidas de cualquiera de ellos."""

    opponents = [match.opponent_of(player_id) for match in matches if match.involves(player_id)]
    player_ids = [player_id, *opponents]
    related = [
        match
        for match in matches
        if any(match.involves(pid) for pid in player_ids)
    ]
    return MatchGroup(player_ids=player_ids, matches=related)


def _format_points(points: float | None) -> str:
    if points is None:
        return ""
    return str(int(points)) if float(points).is_integer() else str(points)


class BoardAssembler:
    def __init__(
        self,
        api: JsonApi,
        pages: PagedApi,
        settings: AppSettings | None = None,
    ) -> None:
        self._api = api
        self._pages = pages
        self._settings = settings or AppSettings()
        self._games: dict[int, asyncio.Task] = {}

    # --- Lecturas de la API ---

    async def find_player(self, username: str | None) -> Player | None:
        """Jugador con username exacto, o None si no existe."""

        if not username:
            return None
        async for record in self._pages.stream("players", {"username": username}):
            if isinstance(record, Mapping) and record.get("username") == username:
                return Player.model_validate(record)
        logger.info("No player named %r", username)
        return None

    async def find_rounds(self, tournament_id: int) -> list[Round]:
        path = f"tournaments/{tournament_id}/rounds"
        body = await self._api.call("GET", path)
        if isinstance(body, Mapping) and isinstance(body.get("results"), list):
            # Rondas paginadas: se sigue desde `next`, la primera página ya está.
            records = list(body["results"])
            if body.get("next"):
                records += [record async for record in self._pages.stream(body["next"])]
            body = records
        if not isinstance(body, list):
            logger.warning("Unexpected rounds body for tournament %s", tournament_id)
            return []
        return [Round.model_validate(record) for record in body]

    async def participants(self, tournament_id: int) -> list[TournamentParticipant]:
        records = [
            record async for record in self._pages.stream(f"tournaments/{tournament_id}/players")
        ]
        return [TournamentParticipant.model_validate(record) for record in records]

    async def fetch_player(self, player_id: int) -> Player:
        return Player.model_validate(await self._api.call("GET", f"players/{player_id}"))

    async def fetch_game(self, game_id: int) -> Game:
        return Game.model_validate(await self._api.call("GET", f"games/{game_id}"))

    # --- Ensamblado ---

    async def assemble(self, tournament_id: int, username: str | None = None) -> Board:
        mode = BoardMode.PLAYER if username else BoardMode.GROUPS
        player, rounds, participants = await asyncio.gather(
            self.find_player(username),
            self.find_rounds(tournament_id),
            self.participants(tournament_id),
        )

        board = Board(
            tournament_id=tournament_id,
            mode=mode,
            player=player,
            participants=sorted(participants, key=lambda p: -p.points),
            usernames={p.player.id: p.player.username for p in participants},
        )
        if mode is BoardMode.PLAYER and player is None:
            return board

        for round_ in rounds:
            if player is not None:
                if not any(match.involves(player.id) for match in round_.matches):
                    groups = [MatchGroup(player_ids=[player.id], matches=[])]
                else:
                    groups = [player_group(round_.matches, player.id)]
            else:
                groups = group_matches(round_.matches)
            board.rounds.append(RoundView(round_number=round_.round_number, groups=groups))

        if player is not None:
            board.usernames.setdefault(player.id, player.username)
        await self._resolve_usernames(board)
        return board

    async def _resolve_usernames(self, board: Board) -> None:
        missing = {
            pid
            for round_ in board.rounds
            for group in round_.groups
            for pid in group.player_ids
            if pid not in board.usernames
        }
        if not missing:
            return
        logger.debug("Fetching %d players missing from the participant list", len(missing))
        players = await asyncio.gather(*(self.fetch_player(pid) for pid in sorted(missing)))
        for found in players:
            board.usernames[found.id] = found.username

    # --- Árbol de datos ---

    def player_href(self, player_id: int) -> str:
        return f"{self._settings.site_root}/player/{player_id}"

    def game_href(self, game_id: int) -> str:
        return f"{self._settings.site_root}/game/{game_id}"

    def _username(self, board: Board, player_id: int) -> str:
        return board.usernames.get(player_id, str(player_id))

    def _game_task(self, game_id: int) -> asyncio.Task:
        # Una partida aparece en la fila de cada jugador: se pide una sola vez.
        task = self._games.get(game_id)
        if task is None:
            task = asyncio.get_running_loop().create_task(self.fetch_game(game_id))
            self._games[game_id] = task
        return task

    async def game_details(self, game_id: int) -> Scope:
        game = await self._game_task(game_id)
        return {
            "result": format_result(game),
            "phase": game.gamedata.phase,
            "moves": len(game.gamedata.moves),
        }

    def board_scope(self, board: Board) -> Scope:
        """Árbol `rounds → groups → players → games → details (diferido)`."""

        def game_data(player_id: int):
            def build(match: Match) -> Scope:
                opponent = match.opponent_of(player_id)
                scope: dict[str, Any] = {
                    "color": "Black" if match.black == player_id else "White",
                    "opponent": self._username(board, opponent),
                    "opponentHref": self.player_href(opponent),
                    "gameHref": self.game_href(match.gameid) if match.gameid else None,
                    "details": Deferred(partial(self.game_details, match.gameid) if match.gameid else None),
                }
                return scope

            return build

        def row_data(group: MatchGroup):
            def build(player_id: int) -> Scope:
                return {
                    "username": self._username(board, player_id),
                    "playerHref": self.player_href(player_id),
                    "points": _format_points(board.points_of(player_id)),
                    "games": Collection(group.matches_of(player_id), game_data(player_id)),
                }

            return build

        def group_data(group: MatchGroup) -> Scope:
            return {"players": Collection(group.player_ids, row_data(group))}

        def round_data(round_: RoundView) -> Scope:
            return {
                "roundNumber": round_.round_number,
                "groups": Collection(round_.groups, group_data),
            }

        return {
            "tournamentId": board.tournament_id,
            "mode": board.mode.value,
            "player": board.player.username if board.player else None,
            "empty": board.is_empty,
            "rounds": Collection(board.rounds, round_data),
            "standings": self.standings_scope(board)["standings"],
        }

    def standings_scope(self, board: Board) -> Scope:
        ranked = list(enumerate(board.participants, start=1))

        def standing(entry: tuple[int, TournamentParticipant]) -> Scope:
            rank, participant = entry
            return {
                "rank": rank,
                "username": participant.player.username,
                "playerHref": self.player_href(participant.player.id),
                "points": _format_points(participant.points),
            }

        return {"standings": Collection(ranked, standing)}
