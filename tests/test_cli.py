"""Tests for cli/main.py and cli/doctor.py with the pipeline stubbed out."""

import runpy
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cli import doctor
from cli import main as cli_main
from core.domain.errors import RetriesExhausted
from core.domain.models import Player, TournamentParticipant
from core.services.board_assembler import Board, BoardMode, MatchGroup, RoundView
from core.services.render_pipeline import RenderResult


@pytest.fixture
def runner():
    return CliRunner()


def _board(player=None):
    board = Board(tournament_id=7, mode=BoardMode.PLAYER if player else BoardMode.GROUPS, player=player)
    board.rounds = [RoundView(round_number=1, groups=[MatchGroup(player_ids=[1, 2], matches=[])])]
    board.participants = [TournamentParticipant(player=Player(id=1, username="A"), points=2)]
    return board


def test_render_passes_options_to_pipeline(runner, monkeypatch, tmp_path):
    seen = {}

    async def fake_render_board(*, settings, request):
        seen["request"] = request
        return RenderResult(
            board=_board(),
            output_path=request.output_path,
            json_path=None,
            peak_in_flight=3,
        )

    monkeypatch.setattr(cli_main, "render_board", fake_render_board)
    output = tmp_path / "b.html"

    result = runner.invoke(
        cli_main.app,
        ["--no-banner", "render", "--tournament", "7", "--output", str(output), "--strip-markers"],
    )

    assert result.exit_code == 0, result.output
    request = seen["request"]
    assert request.tournament_id == 7
    assert request.output_path == output
    assert request.strip_markers is True
    assert request.player is None
    assert "Peak requests in flight: 3" in result.output


def test_render_reports_unknown_player(runner, monkeypatch, tmp_path):
    async def fake_render_board(*, settings, request):
        board = Board(tournament_id=7, mode=BoardMode.PLAYER)
        return RenderResult(board=board, output_path=request.output_path, json_path=None, peak_in_flight=1)

    monkeypatch.setattr(cli_main, "render_board", fake_render_board)

    result = runner.invoke(
        cli_main.app,
        ["--no-banner", "render", "--player", "ghost", "--output", str(tmp_path / "b.html")],
    )

    assert result.exit_code == 0
    assert "ghost" in result.output


def test_render_errors_exit_non_zero(runner, monkeypatch):
    async def fake_render_board(*, settings, request):
        raise RetriesExhausted("https://api.test/v1/players", 21)

    monkeypatch.setattr(cli_main, "render_board", fake_render_board)

    result = runner.invoke(cli_main.app, ["--no-banner", "render", "--output", "x.html"])

    assert result.exit_code == 1
    assert "throttled" in result.output


def test_standings_table(runner, monkeypatch):
    async def fake_load_standings(*, settings, tournament_id):
        return _board()

    monkeypatch.setattr(cli_main, "load_standings", fake_load_standings)

    result = runner.invoke(cli_main.app, ["--no-banner", "standings", "-t", "7"])

    assert result.exit_code == 0
    assert "Standings" in result.output
    assert "A" in result.output


def test_doctor_reports_api_status(runner, monkeypatch):
    async def fake_check_api(settings):
        return False, "connection refused"

    monkeypatch.setattr(doctor, "_check_api", fake_check_api)

    result = runner.invoke(cli_main.app, ["--no-banner", "doctor"])

    assert result.exit_code == 1
    assert "API connectivity" in result.output
    assert "FAIL" in result.output


def test_checkout_entry_point_runs_the_app(monkeypatch, capsys):
    async def fake_load_standings(*, settings, tournament_id):
        return _board()

    monkeypatch.setattr(cli_main, "load_standings", fake_load_standings)
    monkeypatch.setattr(sys, "path", list(sys.path))
    monkeypatch.setattr(sys, "argv", ["main.py", "--no-banner", "standings", "-t", "7"])
    entry = runpy.run_path(str(Path(__file__).resolve().parents[1] / "main.py"), run_name="checkout_main")

    with pytest.raises(SystemExit) as info:
        entry["main"]()

    assert info.value.code == 0
    assert "Standings" in capsys.readouterr().out
