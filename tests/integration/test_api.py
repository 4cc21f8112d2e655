"""Integration tests for the FastAPI layer."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from gembattle.api.app import create_app
from gembattle.api.runtime import ApiState
from gembattle.config import Settings
from gembattle.repository import MemorySlotStore
from gembattle.savegame import GAME_STATE_SLOT, Persistence
from gembattle.services import GameService
from gembattle.state import StateStore
from gembattle.utils.rng import ScriptedRandom


def _make_app(tmp_path):
    def factory() -> ApiState:
        settings = Settings(data_dir=tmp_path, storage_backend="memory")
        return ApiState(
            settings=settings,
            service_factory=lambda run_id: GameService(random=ScriptedRandom()),
        )

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


async def _create_run(client: AsyncClient, player_class: str = "Knight") -> str:
    response = await client.post("/runs", json={"player_class": player_class})
    assert response.status_code == 201
    payload = response.json()
    assert payload["player"]["class"] == player_class
    assert payload["state"] == "not_started"
    return payload["id"]


@pytest.mark.asyncio
async def test_health_reports_backend(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "rules_version": "1.0",
        "storage_backend": "memory",
        "active_runs": 0,
    }


@pytest.mark.asyncio
async def test_battle_flow(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        run_id = await _create_run(client)

        response = await client.post(f"/runs/{run_id}/battle")
        assert response.status_code == 200
        run = response.json()
        assert run["state"] == "player_turn"
        assert run["enemy"]["name"] == "Grunt"
        assert [gem["key"] for gem in run["hand"]] == ["redAttack"] * 3

        response = await client.post(f"/runs/{run_id}/selection", json={"index": 0})
        assert response.json()["selected"] == [0]

        response = await client.post(f"/runs/{run_id}/execute")
        assert response.status_code == 200
        payload = response.json()

    assert not payload["rejected"]
    assert payload["enemy_health_delta"] == -5
    assert payload["effects"][0]["gem_key"] == "redAttack"
    assert payload["effects"][0]["succeeded"]
    assert payload["run"]["enemy"]["health"] == 15
    assert payload["run"]["player"]["health"] == 35
    assert payload["run"]["turn"] == 2


@pytest.mark.asyncio
async def test_invalid_selection_clears(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        run_id = await _create_run(client)
        await client.post(f"/runs/{run_id}/battle")
        await client.post(f"/runs/{run_id}/selection", json={"index": 1})
        response = await client.post(f"/runs/{run_id}/selection", json={"index": 9})

    assert response.status_code == 200
    assert response.json()["selected"] == []


@pytest.mark.asyncio
async def test_flee_and_conflicts(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        run_id = await _create_run(client, "Mage")

        premature = await client.post(f"/runs/{run_id}/execute")
        await client.post(f"/runs/{run_id}/battle")
        fled = await client.post(f"/runs/{run_id}/flee")
        again = await client.post(f"/runs/{run_id}/flee")

    assert premature.status_code == 409
    assert fled.status_code == 200
    assert fled.json()["result"] == "fled"
    assert fled.json()["next_screen"] == "shop"
    assert fled.json()["run"]["battle_count"] == 1
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_unknown_run_and_gem(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        missing = await client.get("/runs/nope")
        run_id = await _create_run(client, "Rogue")
        unknown = await client.post(
            f"/runs/{run_id}/catalog/unlock", json={"gem_key": "goldenGem"}
        )
        poor = await client.post(f"/runs/{run_id}/catalog/unlock", json={"gem_key": "greenPoison"})

    assert missing.status_code == 404
    assert unknown.status_code == 404
    assert poor.status_code == 200
    assert poor.json()["unlocked"] is False
    assert "greenPoison" in poor.json()["run"]["catalog"]["available"]


@pytest.mark.asyncio
async def test_bad_player_class_is_rejected(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post("/runs", json={"player_class": "Bard"})

    assert response.status_code == 422


async def _win_first_battle(client: AsyncClient, run_id: str) -> dict[str, object]:
    await client.post(f"/runs/{run_id}/battle")
    for _ in range(15):
        await client.post(f"/runs/{run_id}/selection", json={"index": 0})
        response = await client.post(f"/runs/{run_id}/execute")
        run = response.json()["run"]
        if run["state"] == "won":
            return run
    pytest.fail("battle did not finish")


@pytest.mark.asyncio
async def test_unlock_during_battle_conflicts(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        run_id = await _create_run(client)
        await client.post(f"/runs/{run_id}/battle")
        response = await client.post(
            f"/runs/{run_id}/catalog/unlock", json={"gem_key": "redBurst"}
        )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_shop_and_camp_routes(tmp_path):
    app, transport = _make_app(tmp_path)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        run_id = await _create_run(client)
        run = await _win_first_battle(client, run_id)
        full = await client.post(f"/runs/{run_id}/shop/buy")
        await client.post(f"/runs/{run_id}/selection", json={"index": 0, "context": "shop"})
        upgrades = await client.get(f"/runs/{run_id}/shop/upgrades")
        discarded = await client.post(f"/runs/{run_id}/shop/discard")
        bought = await client.post(f"/runs/{run_id}/shop/buy")
        camp = await client.post(f"/runs/{run_id}/camp/withdraw", json={"amount": 1})

    assert run["screen"] == "shop"
    assert run["gem_count"] == 20
    assert full.status_code == 200
    assert full.json()["success"] is False
    assert upgrades.status_code == 200
    assert discarded.json()["success"] is True
    assert bought.json()["success"] is True
    assert bought.json()["gem_key"] == "greyHeal"
    assert bought.json()["run"]["player"]["zenny"] == 4
    assert camp.status_code == 409


@pytest.mark.asyncio
async def test_open_runs_are_saved_on_shutdown(tmp_path):
    slots = MemorySlotStore()

    def service_factory(run_id: str) -> GameService:
        store = StateStore()
        return GameService(
            store=store, persistence=Persistence(store, slots), random=ScriptedRandom()
        )

    app = create_app(
        state_factory=lambda: ApiState(
            settings=Settings(data_dir=tmp_path, storage_backend="memory"),
            service_factory=service_factory,
        )
    )
    transport = ASGITransport(app=app)
    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        await _create_run(client)
        assert GAME_STATE_SLOT not in slots.slots()

    assert GAME_STATE_SLOT in slots.slots()
