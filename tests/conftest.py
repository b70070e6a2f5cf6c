import pytest

from holiday_scoreboard.config import ScoreboardConfig
from holiday_scoreboard.database import MemoryRosterStore
from holiday_scoreboard.engine import ScoreboardEngine
from holiday_scoreboard.models import Player


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def sample_players():
    return [
        Player(name="A", toss=10, plinko=5, fluff=0),
        Player(name="B", toss=10, plinko=5, fluff=0),
        Player(name="C", toss=1, plinko=1, fluff=1),
    ]


@pytest.fixture()
def store():
    return MemoryRosterStore()


@pytest.fixture()
def engine(store):
    return ScoreboardEngine(store)


@pytest.fixture()
def config(tmp_path, monkeypatch):
    for name in (
        "SCOREBOARD_NAME",
        "DEFAULT_ROWS",
        "MAX_RETRIES",
        "STORAGE_BACKEND",
        "DB_PATH",
        "DOCUMENT_KEY",
        "WEB_HOST",
        "WEB_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    return ScoreboardConfig(str(tmp_path / "scoreboard_config.json"), create_missing=False)
