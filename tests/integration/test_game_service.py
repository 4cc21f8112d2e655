"""End-to-end runs through the game service with in-memory saves."""

from __future__ import annotations

import pytest

from gembattle.domain.enums import GemColor, PlayerClass, Screen, SelectionContext, TurnState
from gembattle.domain.errors import InvalidTransitionError, UnknownGemError
from gembattle.domain.models import ProficiencyRecord
from gembattle.events import BattleOutcome, Event, EventBus, HandStateSaved
from gembattle.repository import MemorySlotStore
from gembattle.savegame import GAME_STATE_SLOT, HAND_STATE_SLOT, Persistence
from gembattle.services import GameService
from gembattle.state import StateStore
from gembattle.utils.rng import ScriptedRandom


def _service(slots: MemorySlotStore) -> tuple[GameService, list[Event]]:
    store = StateStore()
    bus = EventBus()
    events: list[Event] = []
    bus.subscribe(Event, events.append)
    service = GameService(
        store=store,
        bus=bus,
        persistence=Persistence(store, slots, bus=bus),
        random=ScriptedRandom(),
    )
    return service, events


def _win_battle(service: GameService, max_turns: int = 15) -> None:
    for _ in range(max_turns):
        service.toggle_selection(0)
        service.execute_selection()
        if service.turns.state.is_terminal:
            return
    pytest.fail("battle did not finish")


def test_full_battle_is_won_and_saved():
    slots = MemorySlotStore()
    service, events = _service(slots)
    service.start_run(PlayerClass.KNIGHT)
    service.start_battle()

    _win_battle(service)

    assert service.turns.state is TurnState.WON
    assert service.store.get("metaZenny") == 10
    assert service.store.get("currentScreen") is Screen.SHOP
    assert service.last_enemy_turn is not None
    assert GAME_STATE_SLOT in slots.slots()
    assert HAND_STATE_SLOT in slots.slots()
    assert any(isinstance(event, BattleOutcome) for event in events)
    assert any(isinstance(event, HandStateSaved) for event in events)


def test_run_resumes_from_saved_slots():
    slots = MemorySlotStore()
    first, _ = _service(slots)
    first.start_run(PlayerClass.KNIGHT)
    first.start_battle()
    _win_battle(first)
    hand = list(first.store.get("hand"))

    second, _ = _service(slots)
    assert second.resume()
    assert second.store.get("metaZenny") == 10
    assert second.store.get("currentPhaseIndex") == 1

    second.start_battle()
    assert second.turns.battle.enemy.name == "Bandit"
    assert second.store.get("hand")[: len(hand)] == hand
    assert HAND_STATE_SLOT not in slots.slots()


def test_waiting_hands_the_turn_to_the_enemy():
    service, _ = _service(MemorySlotStore())
    service.start_run(PlayerClass.MAGE)
    service.start_battle()

    service.wait_turn()

    assert service.turns.state is TurnState.PLAYER_TURN
    assert service.turns.battle.turn_number == 2
    assert service.turns.player.health == 25


def test_flee_then_fight_again():
    service, _ = _service(MemorySlotStore())
    service.start_run(PlayerClass.ROGUE)
    service.start_battle()

    result = service.flee()

    assert result.next_screen is Screen.SHOP
    service.start_battle()
    assert service.turns.battle.enemy.name == "Bandit"
    assert service.turns.battle.return_screen == Screen.SHOP.value


def test_battle_requires_a_live_run():
    service, _ = _service(MemorySlotStore())
    service.start_run(PlayerClass.KNIGHT)
    service.store.set("currentScreen", Screen.CHARACTER_SELECT)
    with pytest.raises(InvalidTransitionError):
        service.start_battle()


def test_unlocking_spends_meta_currency_and_starts_learning():
    slots = MemorySlotStore()
    service, _ = _service(slots)
    service.start_run(PlayerClass.KNIGHT)
    service.store.set("metaZenny", 60)

    assert service.unlock_gem("redBurst")
    assert service.store.get("metaZenny") == 10
    assert service.catalog.is_unlocked("redBurst")
    assert service.proficiency.records["redBurst"] == ProficiencyRecord(0, 0.9)
    assert "stw_gemUnlocks_Knight" in slots.slots()

    assert not service.unlock_gem("greyFocus")
    with pytest.raises(UnknownGemError):
        service.unlock_gem("goldenGem")


def test_summary_is_json_friendly():
    service, _ = _service(MemorySlotStore())
    service.start_run(PlayerClass.KNIGHT)
    service.start_battle()
    service.toggle_selection(1)

    summary = service.summary()

    assert summary["player"]["class"] == "Knight"
    assert summary["state"] == "player_turn"
    assert summary["phase"] == "Dawn"
    assert summary["selected"] == [1]
    assert len(summary["hand"]) == 3
    assert summary["enemy"]["name"] == "Grunt"
    assert "redAttack" in summary["catalog"]["unlocked"]


def test_new_run_drops_the_previous_hand_snapshot():
    slots = MemorySlotStore()
    service, _ = _service(slots)
    service.start_run(PlayerClass.KNIGHT)
    service.start_battle()
    _win_battle(service)
    assert HAND_STATE_SLOT in slots.slots()

    service.start_run(PlayerClass.KNIGHT)
    assert HAND_STATE_SLOT not in slots.slots()
    service.start_battle()

    assert len(service.store.get("hand")) == 3
    assert len(service.store.get("gemBag")) == 17
    assert service.store.get("discard") == []


def test_unlocking_is_refused_during_a_battle():
    service, _ = _service(MemorySlotStore())
    service.start_run(PlayerClass.KNIGHT)
    service.store.set("metaZenny", 60)
    service.start_battle()

    with pytest.raises(InvalidTransitionError):
        service.unlock_gem("redBurst")
    assert service.store.get("metaZenny") == 60
    assert not service.catalog.is_unlocked("redBurst")

    service.flee()
    assert service.unlock_gem("redBurst")


def test_unlocked_gem_is_upgraded_into_the_hand_and_kept():
    slots = MemorySlotStore()
    service, _ = _service(slots)
    service.start_run(PlayerClass.KNIGHT)
    service.start_battle()
    _win_battle(service)
    service.store.set("metaZenny", 60)
    assert service.unlock_gem("redBurst")
    assert service.store.get("hand")[0].color is GemColor.RED

    service.toggle_selection(0, SelectionContext.SHOP)
    assert "redBurst" in service.upgrade_options()
    upgraded = service.upgrade_gem("redBurst")

    assert upgraded is not None
    assert service.turns.player.zenny == 5
    service.start_battle()
    assert upgraded in service.store.get("hand")


def test_shop_discard_makes_room_for_a_purchase():
    service, events = _service(MemorySlotStore())
    service.start_run(PlayerClass.KNIGHT)
    service.start_battle()
    _win_battle(service)
    assert service.shop.gem_count == 20
    assert service.buy_gem() is None

    service.toggle_selection(0, SelectionContext.SHOP)
    removed = service.discard_gem()
    bought = service.buy_gem()

    assert removed is not None
    assert bought is not None
    assert bought.key == "greyHeal"
    assert bought in service.store.get("gemBag")
    assert service.shop.gem_count == 20
    assert service.turns.player.zenny == 4


def test_camp_transfers_and_rest_before_the_next_day():
    slots = MemorySlotStore()
    service, _ = _service(slots)
    service.start_run(PlayerClass.KNIGHT)
    service.start_battle()
    _win_battle(service)
    service.store.set("currentScreen", Screen.CAMP)
    service.turns.player.health = 20

    with pytest.raises(InvalidTransitionError):
        service.heal()
    assert service.withdraw_zenny(4)
    assert not service.deposit_zenny(100)

    assert service.turns.player.zenny == 6
    assert service.store.get("metaZenny") == 14
    assert "stw_metaZenny" in slots.slots()

    service.start_battle()
    assert service.turns.player.health == 30
