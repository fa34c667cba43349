"""CLI principal (Typer).

Comandos:
- `render`: genera el tablero HTML de un torneo (grupos o partidas de un jugador).
- `standings`: clasificación del torneo en consola.
- `doctor`: diagnóstico de configuración y conectividad.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from cli import doctor
from cli.ui_components import build_rounds_table, build_standings_table, print_banner
from core.config import AppSettings
from core.domain.errors import BoardError
from core.logging_setup import setup_logging
from core.services.render_pipeline import RenderRequest, load_standings, render_board

app = typer.Typer(no_args_is_help=True, help="Render online-go.com tournament boards as HTML.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
    quiet_banner: bool = typer.Option(False, "--no-banner", help="Skip the banner."),
) -> None:
    settings = AppSettings()
    setup_logging("DEBUG" if verbose else settings.log_level)
    if not quiet_banner:
        print_banner(_console)


@app.command()
def render(
    player: Optional[str] = typer.Option(None, "--player", "-p", help="Show only this player's games and their opponents'."),
    tournament: Optional[int] = typer.Option(None, "--tournament", "-t", help="Tournament id (default from settings)."),
    output: Path = typer.Option(Path("reports/board.html"), "--output", "-o", help="HTML output path."),
    json_output: Optional[Path] = typer.Option(None, "--json", help="Also export the grouped board as JSON."),
    strip: bool = typer.Option(False, "--strip-markers", help="Remove <template> markers from the output."),
    progressive: bool = typer.Option(False, "--progressive", help="Rewrite the file as late results arrive."),
    strict: bool = typer.Option(False, "--strict", help="Fail on template/data mismatches instead of skipping."),
) -> None:
    """Render the tournament board to an HTML file."""

    settings = AppSettings()
    request = RenderRequest(
        output_path=output,
        tournament_id=tournament,
        player=player,
        json_path=json_output,
        strip_markers=strip,
        progressive=progressive,
        strict=strict,
    )

    try:
        with _console.status("Fetching tournament…"):
            result = asyncio.run(render_board(settings=settings, request=request))
    except BoardError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if player and result.board.player is None:
        _console.print(f"[yellow]No player named[/yellow] {player!r}; the board is empty.")
    else:
        _console.print(build_rounds_table(result.board))

    _console.print(f"[green]HTML:[/green] {result.output_path}")
    if result.json_path:
        _console.print(f"[green]JSON:[/green] {result.json_path}")
    _console.print(f"[dim]Peak requests in flight: {result.peak_in_flight}[/dim]")


@app.command()
def standings(
    tournament: Optional[int] = typer.Option(None, "--tournament", "-t", help="Tournament id (default from settings)."),
) -> None:
    """Print the tournament standings."""

    settings = AppSettings()
    try:
        board = asyncio.run(load_standings(settings=settings, tournament_id=tournament))
    except BoardError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _console.print(build_standings_table(board))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
