"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.services.board_assembler import Board


def print_banner(console: Console) -> None:
    title = Text("OGS-BOARD", style="bold cyan")
    subtitle = Text("Rondas • Grupos • Resultados", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_rounds_table(board: Board) -> Table:
    """Resumen por ronda: grupos, jugadores y partidas."""

    title = f"Tournament {board.tournament_id} ({board.mode.value})"
    table = Table(title=title)
    table.add_column("Round", style="cyan", no_wrap=True)
    table.add_column("Groups", style="white")
    table.add_column("Players", style="white")
    table.add_column("Games", style="green")

    for round_ in board.rounds:
        players = sum(len(group.player_ids) for group in round_.groups)
        games = sum(len(group.matches) for group in round_.groups)
        table.add_row(str(round_.round_number), str(len(round_.groups)), str(players), str(games))
    return table


def build_standings_table(board: Board) -> Table:
    table = Table(title=f"Standings · tournament {board.tournament_id}")
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Player", style="white")
    table.add_column("Points", style="green", justify="right")

    for rank, participant in enumerate(board.participants, start=1):
        table.add_row(str(rank), participant.player.username, f"{participant.points:g}")
    return table
