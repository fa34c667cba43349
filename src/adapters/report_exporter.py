"""Exportación del tablero a HTML.

Por qué está en adapters:
- HTML es un detalle de infraestructura (Jinja2 para la página, BeautifulSoup
  para el enlazado de la plantilla).
- El Core solo conoce el agregado `Board` y su árbol de datos.

Flujo:
1. Jinja2 renderiza la página (título, metadatos, bloques opcionales).
2. `TemplateBinder` enlaza el árbol de datos sobre los `<template>` marcadores.
3. Las ramas diferidas se insertan según llegan; `on_update` recibe cada estado.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from adapters.template_binder import TemplateBinder, parse_template, strip_markers
from core.config import AppSettings
from core.services.board_assembler import Board, BoardAssembler


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

UpdateCallback = Callable[[str], None]


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )


def render_page_shell(
    *,
    board: Board,
    settings: AppSettings | None = None,
    show_standings: bool = True,
    template_name: str = "board.html",
) -> str:
    """HTML de la página con los marcadores aún sin enlazar."""

    settings = settings or AppSettings()
    generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    title = f"Tournament {board.tournament_id}"
    if board.player:
        title = f"{board.player.username} · {title}"

    template = _get_env().get_template(template_name)
    return template.render(
        title=title,
        generated_at=generated_at,
        tournament_id=board.tournament_id,
        tournament_href=f"{settings.site_root}/tournament/{board.tournament_id}",
        player=board.player.username if board.player else None,
        show_standings=show_standings and bool(board.participants),
    )


async def render_board_html(
    *,
    board: Board,
    assembler: BoardAssembler,
    settings: AppSettings | None = None,
    strict: bool = False,
    strip: bool = False,
    show_standings: bool = True,
    on_update: UpdateCallback | None = None,
) -> str:
    """Renderiza el tablero completo, esperando todas las ramas diferidas."""

    shell = render_page_shell(board=board, settings=settings, show_standings=show_standings)
    soup = parse_template(shell)

    binder = TemplateBinder(strict=strict)
    if on_update is not None:
        binder.add_listener(lambda marker, nodes: on_update(str(soup)))

    render = binder.fill(soup, assembler.board_scope(board))
    if on_update is not None:
        on_update(str(soup))

    await render.settled()

    if strip:
        strip_markers(soup)
    return str(soup)


async def export_board_html(
    *,
    board: Board,
    assembler: BoardAssembler,
    output_path: Path,
    settings: AppSettings | None = None,
    strict: bool = False,
    strip: bool = False,
    progressive: bool = False,
) -> Path:
    """Exporta el tablero como HTML.

    Con `progressive=True` el fichero se reescribe en el primer pintado y tras
    cada rama diferida, de modo que un navegador con recarga ve el avance.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)

    def write(html: str) -> None:
        output_path.write_text(html, encoding="utf-8")

    html = await render_board_html(
        board=board,
        assembler=assembler,
        settings=settings,
        strict=strict,
        strip=strip,
        on_update=write if progressive else None,
    )
    write(html)
    return output_path
