"""Texto de resultado por partida."""

from __future__ import annotations

from core.domain.models import Game


def format_result(game: Game) -> str:
    """`(<jugadas>)` si la partida sigue en curso, si no `B + <outcome>` / `W + <outcome>`."""

    data = game.gamedata
    if data.phase != "finished":
        return f"({len(data.moves)})"

    winner = "B" if data.winner == game.players.black.id else "W"
    return f"{winner} + {data.outcome}"
