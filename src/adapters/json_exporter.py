"""Exportación JSON del tablero.

Por qué JSON:
- Permite inspeccionar el agrupado sin depender del render HTML.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.services.board_assembler import Board


def board_payload(board: Board) -> dict[str, Any]:
    return {
        "tournament_id": board.tournament_id,
        "mode": board.mode.value,
        "player": board.player.model_dump(mode="json") if board.player else None,
        "rounds": [
            {
                "round_number": round_.round_number,
                "groups": [
                    {
                        "players": [
                            {"id": pid, "username": board.usernames.get(pid)}
                            for pid in group.player_ids
                        ],
                        "matches": [match.model_dump(mode="json") for match in group.matches],
                    }
                    for group in round_.groups
                ],
            }
            for round_ in board.rounds
        ],
        "standings": [p.model_dump(mode="json") for p in board.participants],
    }


def export_board_json(*, board: Board, output_path: Path) -> Path:
    """Exporta `Board` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(board_payload(board), ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
