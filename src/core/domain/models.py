"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación en el borde: los registros de la API llegan como JSON arbitrario.
- `extra="ignore"` porque la API devuelve muchos más campos de los que usamos.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Request(BaseModel):
    """Petición inmutable a la API.

    `path` puede ser relativo a la raíz de la API o una URL absoluta
    (continuaciones de paginación).
    """

    model_config = ConfigDict(frozen=True)

    method: str = Field(default="GET", min_length=1)
    path: str = Field(..., min_length=1)
    query: dict[str, str] = Field(default_factory=dict)

    @property
    def is_absolute(self) -> bool:
        return self.path.startswith("http://") or self.path.startswith("https://")

    def url(self, api_root: str) -> str:
        base = self.path if self.is_absolute else f"{api_root.rstrip('/')}/{self.path.lstrip('/')}"
        if not self.query:
            return base
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{urlencode(self.query)}"


class Page(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[Any] = Field(default_factory=list)
    next: str | None = Field(
        default=None,
        description="URL absoluta de la siguiente página; ausente en la última.",
    )


class Player(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str = Field(..., min_length=1)


class Match(BaseModel):
    model_config = ConfigDict(extra="ignore")

    white: int
    black: int
    gameid: int | None = Field(
        default=None,
        description="Partida asociada; nula en emparejamientos sin partida.",
    )

    def involves(self, player_id: int) -> bool:
        return player_id in (self.white, self.black)

    def opponent_of(self, player_id: int) -> int:
        return self.black if self.white == player_id else self.white


class Round(BaseModel):
    model_config = ConfigDict(extra="ignore")

    round_number: int
    matches: list[Match] = Field(default_factory=list)


class GamePlayers(BaseModel):
    model_config = ConfigDict(extra="ignore")

    white: Player
    black: Player


class GameData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    phase: str = Field(default="play")
    moves: list[Any] = Field(default_factory=list)
    winner: int | None = None
    outcome: str | float = Field(default="")


class Game(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    players: GamePlayers
    gamedata: GameData = Field(default_factory=GameData)


class TournamentParticipant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    player: Player
    points: float = Field(default=0.0)
