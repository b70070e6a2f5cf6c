import pytest

from app import build_parser
from holiday_scoreboard.database import MemoryRosterStore, SQLiteRosterStore
from holiday_scoreboard.scoreboard import ScoreboardSystem


def test_cli_options_default_to_configuration(monkeypatch):
    monkeypatch.delenv("HOST", raising=False)

    args = build_parser().parse_args([])

    assert args.web_port is None
    assert args.db is None
    assert args.backend is None


def test_arguments_override_configuration(config, tmp_path):
    db_path = str(tmp_path / "other.db")

    system = ScoreboardSystem(web_port=9100, db_path=db_path, config=config)

    assert system.web_port == 9100
    assert isinstance(system.store, SQLiteRosterStore)
    assert system.store.db_path == db_path


def test_memory_backend_from_arguments(config):
    system = ScoreboardSystem(backend="memory", config=config)

    assert isinstance(system.store, MemoryRosterStore)
    assert system.engine.default_rows == 30


@pytest.mark.anyio
async def test_print_full_scoreboard(config, sample_players, capsys):
    system = ScoreboardSystem(config=config, store=MemoryRosterStore(sample_players))

    await system.print_full_scoreboard()

    lines = capsys.readouterr().out.splitlines()
    ranked = [line for line in lines if line.strip()[:2] in ("1.", "2.", "3.")]
    assert [line.split()[1] for line in ranked] == ["A", "B", "C"]
    assert ranked[0].split()[-1] == "15"


@pytest.mark.anyio
async def test_print_empty_scoreboard(config, capsys):
    system = ScoreboardSystem(config=config, store=MemoryRosterStore())

    await system.print_full_scoreboard()

    assert "No scores saved yet" in capsys.readouterr().out
