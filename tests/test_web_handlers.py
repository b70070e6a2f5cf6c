import pytest
from aiohttp.test_utils import TestClient, TestServer

from holiday_scoreboard.models import EMPTY_SCOREBOARD_MESSAGE, Player
from holiday_scoreboard.scoreboard import ScoreboardSystem


@pytest.fixture()
async def client(config, store):
    system = ScoreboardSystem(config=config, store=store)
    async with TestClient(TestServer(system.build_app())) as test_client:
        yield test_client


@pytest.mark.anyio
async def test_roster_on_empty_store_has_placeholders(client):
    resp = await client.get("/api/roster")
    data = await resp.json()

    assert resp.status == 200
    assert len(data["rows"]) == 30
    assert data["rows"][0] == {
        "index": 0,
        "id": None,
        "name": "Player 1",
        "toss": None,
        "plinko": None,
        "fluff": None,
    }
    assert [g["name"] for g in data["games"]] == [
        "Snowball Toss",
        "North Pole Plinko",
        "Reindeer Fluff Roundup",
    ]
    assert "error" not in data


@pytest.mark.anyio
async def test_roster_when_storage_fails(client, store):
    store.fail_loads = True

    resp = await client.get("/api/roster")
    data = await resp.json()

    assert resp.status == 200
    assert len(data["rows"]) == 30
    assert data["error"]


@pytest.mark.anyio
async def test_save_roster_from_json(client, store):
    rows = [
        {"index": 1, "name": "Bob", "toss": "x", "plinko": "2", "fluff": ""},
        {"index": 0, "name": "  ", "toss": "3", "plinko": "4", "fluff": "5"},
    ]

    resp = await client.put("/api/roster", json={"rows": rows})
    data = await resp.json()

    assert resp.status == 200
    assert data["success"]
    assert [(p["name"], p["toss"], p["plinko"], p["fluff"]) for p in data["players"]] == [
        ("Bob", 0, 2, 0)
    ]
    assert await store.load() == [Player(name="Bob", plinko=2)]


@pytest.mark.anyio
async def test_save_roster_from_form_fields(client, store):
    form = {
        "name-3": "Cy",
        "toss-3": "9",
        "name-0": "Al",
        "toss-0": "1",
        "plinko-0": "1",
        "fluff-0": "1",
    }

    resp = await client.put("/api/roster", data=form)

    assert resp.status == 200
    assert [p.name for p in await store.load()] == ["Al", "Cy"]


@pytest.mark.anyio
async def test_failed_save_echoes_submitted_rows(client, store):
    store.fail_writes = True
    rows = [{"index": 0, "name": "Al", "toss": "5", "plinko": "", "fluff": "x"}]

    resp = await client.put("/api/roster", json={"rows": rows})
    data = await resp.json()

    assert resp.status == 503
    assert not data["success"]
    assert data["rows"][0]["toss"] == "5"
    assert data["rows"][0]["fluff"] == "x"
    assert await store.load() == []


@pytest.mark.anyio
async def test_save_roster_rejects_bad_body(client):
    resp = await client.put(
        "/api/roster", data="{nope", headers={"Content-Type": "application/json"}
    )
    assert resp.status == 400

    resp = await client.put("/api/roster", json={"rows": [{"index": "a"}]})
    assert resp.status == 400


@pytest.mark.anyio
async def test_save_roster_rejects_non_finite_index(client, store):
    resp = await client.put(
        "/api/roster",
        data='{"rows": [{"index": Infinity, "name": "Al"}]}',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status == 400
    assert await store.load() == []


@pytest.mark.anyio
async def test_save_roster_rejects_bad_revision(client, store):
    for revision in ("two", -1, True, 1.5):
        resp = await client.put(
            "/api/roster", json={"rows": [{"name": "Al"}], "revision": revision}
        )
        assert resp.status == 400
    assert store.write_count == 0


@pytest.mark.anyio
async def test_save_roster_at_loaded_revision(client, store):
    loaded = await (await client.get("/api/roster")).json()
    assert loaded["revision"] == 0

    resp = await client.put(
        "/api/roster",
        json={"rows": [{"index": 0, "name": "Al"}], "revision": loaded["revision"]},
    )

    assert resp.status == 200
    assert [p.name for p in await store.load()] == ["Al"]


@pytest.mark.anyio
async def test_save_roster_after_concurrent_add_is_rejected(client, store):
    await store.replace([Player(name="A", toss=3)])
    loaded = await (await client.get("/api/roster")).json()

    # Someone else adds a player while the form is open
    resp = await client.post("/api/players")
    assert resp.status == 200

    rows = [dict(loaded["rows"][0], toss="9")]
    resp = await client.put(
        "/api/roster", json={"rows": rows, "revision": loaded["revision"]}
    )
    data = await resp.json()

    assert resp.status == 409
    assert data["conflict"]
    assert data["rows"][0]["toss"] == "9"
    assert await store.load() == [Player(name="A", toss=3), Player(name="Player 2")]


@pytest.mark.anyio
async def test_form_save_sends_revision_field(client, store):
    await store.replace([Player(name="A")])

    resp = await client.put("/api/roster", data={"name-0": "Al", "revision": "0"})

    assert resp.status == 409
    assert await store.load() == [Player(name="A")]


@pytest.mark.anyio
async def test_add_and_remove_player(client, store):
    resp = await client.post("/api/players")
    assert (await resp.json()) == {"success": True, "added": "Player 1"}

    resp = await client.delete("/api/players/last")
    assert (await resp.json()) == {"success": True, "removed": "Player 1"}
    assert await store.load() == []


@pytest.mark.anyio
async def test_remove_from_empty_roster(client, store):
    resp = await client.delete("/api/players/last")
    data = await resp.json()

    assert resp.status == 409
    assert data["nothing_to_remove"]
    assert store.write_count == 0


@pytest.mark.anyio
async def test_add_player_when_storage_fails(client, store):
    store.fail_writes = True

    resp = await client.post("/api/players")

    assert resp.status == 503
    assert not (await resp.json())["success"]


@pytest.mark.anyio
async def test_scoreboard(client, store, sample_players):
    await store.replace(sample_players)

    resp = await client.get("/api/scoreboard")
    data = await resp.json()

    assert [(e["rank"], e["name"], e["total"]) for e in data["entries"]] == [
        (1, "A", 15),
        (2, "B", 15),
        (3, "C", 3),
    ]


@pytest.mark.anyio
async def test_scoreboard_placeholder(client, store):
    resp = await client.get("/api/scoreboard")
    assert (await resp.json()) == {"entries": [], "placeholder": EMPTY_SCOREBOARD_MESSAGE}

    store.fail_loads = True
    resp = await client.get("/api/scoreboard")
    data = await resp.json()
    assert data["placeholder"] == EMPTY_SCOREBOARD_MESSAGE
    assert data["error"]


@pytest.mark.anyio
async def test_config_endpoint(client):
    resp = await client.get("/api/config")
    data = await resp.json()

    assert data["scoreboard_name"] == "Holiday Games Scoreboard"
    assert data["default_rows"] == 30
