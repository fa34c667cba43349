"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.request_scheduler import RequestScheduler
from core.config import AppSettings, get_user_env_file
from core.domain.errors import BoardError

app = typer.Typer(no_args_is_help=False, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_api(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with RequestScheduler(settings) as scheduler:
            body = await scheduler.call("GET", f"tournaments/{settings.default_tournament_id}/rounds")
        if isinstance(body, list):
            return True, f"tournament {settings.default_tournament_id}: {len(body)} rounds"
        return False, f"Unexpected body: {str(body)[:80]}"
    except BoardError as exc:
        return False, str(exc)


@app.callback(invoke_without_command=True)
def run() -> None:
    """Show effective settings and check API connectivity."""

    settings = AppSettings()

    table = Table(title="OGS-BOARD Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    env_file = get_user_env_file()
    table.add_row("User config", "OK" if env_file.exists() else "OPTIONAL", str(env_file))
    table.add_row("API root", "OK", settings.api_root)
    table.add_row(
        "Scheduler",
        "OK",
        f"cap={settings.max_in_flight} poll={settings.admission_poll_seconds}s "
        f"backoff={settings.backoff_step_seconds}s×attempt max_retries={settings.max_retries}",
    )

    ok_api, detail_api = asyncio.run(_check_api(settings))
    table.add_row("API connectivity", "OK" if ok_api else "FAIL", detail_api)

    _console.print(table)
    if not ok_api:
        raise typer.Exit(code=1)
