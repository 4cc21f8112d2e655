"""Tests for the named persistence buckets."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from gembattle.domain.catalog import initial_catalog
from gembattle.domain.content import BASE_GEMS
from gembattle.domain.enums import PlayerClass
from gembattle.domain.errors import SlotStoreError
from gembattle.domain.models import Gem, PlayerState, ProficiencyRecord
from gembattle.domain.proficiency import reconcile_proficiency
from gembattle.events import Event, EventBus, HandStateLoaded, HandStateSaved
from gembattle.repository import MemorySlotStore
from gembattle.savegame import (
    GAME_STATE_SLOT,
    HAND_STATE_SLOT,
    META_ZENNY_SLOT,
    Persistence,
    proficiency_slot,
    unlocks_slot,
)
from gembattle.state import StateStore

SAVED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class BrokenSlotStore:
    """Every operation fails the way an unavailable medium would."""

    def read(self, slot: str) -> str | None:
        raise SlotStoreError("offline")

    def write(self, slot: str, payload: str) -> None:
        raise SlotStoreError("offline")

    def delete(self, slot: str) -> None:
        raise SlotStoreError("offline")

    def slots(self) -> list[str]:
        raise SlotStoreError("offline")


def _gem(key: str, serial: int) -> Gem:
    return Gem.from_definition(BASE_GEMS[key], f"{key}-{serial}")


def _store() -> StateStore:
    return StateStore(
        {
            "player": PlayerState(
                player_class=PlayerClass.KNIGHT,
                health=31,
                max_health=40,
                stamina=3,
                base_stamina=3,
                zenny=12,
            ),
            "metaZenny": 40,
            "currentDay": 3,
            "currentPhaseIndex": 1,
            "battleCount": 7,
            "gemSerial": 20,
            "hand": [_gem("redAttack", 1), _gem("greyHeal", 2)],
            "gemBag": [_gem("redStrongAttack", 3)],
            "discard": [],
            "classGemCatalogs": {"Knight": initial_catalog(PlayerClass.KNIGHT)},
            "classGemProficiency": {"Knight": reconcile_proficiency(PlayerClass.KNIGHT, None)},
        }
    )


def _persistence(store: StateStore, slots, *, at: datetime = SAVED_AT, bus=None) -> Persistence:
    return Persistence(store, slots, bus=bus, now=lambda: at)


def test_game_state_round_trip():
    slots = MemorySlotStore()
    assert _persistence(_store(), slots).save_game_state()

    restored = StateStore()
    assert _persistence(restored, slots, at=SAVED_AT + timedelta(hours=1)).load_game_state()

    original = _store()
    for path in ("player", "metaZenny", "currentDay", "currentPhaseIndex", "battleCount", "hand"):
        assert restored.get(path) == original.get(path)
    assert restored.get("classGemCatalogs.Knight") == initial_catalog(PlayerClass.KNIGHT)


def test_stale_game_state_is_discarded():
    slots = MemorySlotStore()
    _persistence(_store(), slots).save_game_state()

    restored = StateStore()
    loaded = _persistence(restored, slots, at=SAVED_AT + timedelta(days=8)).load_game_state()

    assert not loaded
    assert restored.get("player") is None
    assert slots.read(GAME_STATE_SLOT) is None


def test_recent_game_state_is_kept():
    slots = MemorySlotStore()
    _persistence(_store(), slots).save_game_state()

    restored = StateStore()
    assert _persistence(restored, slots, at=SAVED_AT + timedelta(days=6)).load_game_state()
    assert restored.get("currentDay") == 3


def test_missing_and_malformed_game_state():
    store = StateStore()
    assert not _persistence(store, MemorySlotStore()).load_game_state()
    slots = MemorySlotStore({GAME_STATE_SLOT: "{not json"})
    assert not _persistence(store, slots).load_game_state()


def test_meta_zenny_round_trip():
    slots = MemorySlotStore()
    _persistence(_store(), slots).save_meta_zenny()
    assert slots.read(META_ZENNY_SLOT) == "40"

    restored = StateStore()
    assert _persistence(restored, slots).load_meta_zenny()
    assert restored.get("metaZenny") == 40


def test_proficiency_load_reconciles_legacy_payload():
    raw = {"redAttack": {"successCount": 2, "failureChance": 0.5}, "redBurst": {"successCount": 1}}
    slots = MemorySlotStore({proficiency_slot(PlayerClass.KNIGHT): json.dumps(raw)})
    store = StateStore()

    assert _persistence(store, slots).load_gem_proficiency(PlayerClass.KNIGHT)

    records = store.get("classGemProficiency.Knight")
    assert records["redAttack"].failure_chance == 0.0
    assert records["redBurst"] == ProficiencyRecord(1, 0.75)
    assert records["redStrongAttack"].failure_chance == 0.0


def test_missing_unlocks_store_defaults():
    store = StateStore()
    assert not _persistence(store, MemorySlotStore()).load_gem_unlocks(PlayerClass.MAGE)
    assert store.get("classGemCatalogs.Mage") == initial_catalog(PlayerClass.MAGE)


def test_unlocks_round_trip():
    slots = MemorySlotStore()
    store = _store()
    store.get("classGemCatalogs.Knight").unlocked.append("redBurst")
    _persistence(store, slots).save_gem_unlocks(PlayerClass.KNIGHT)

    restored = StateStore()
    assert _persistence(restored, slots).load_gem_unlocks(PlayerClass.KNIGHT)
    assert "redBurst" in restored.get("classGemCatalogs.Knight").unlocked
    assert unlocks_slot("Knight") in slots.slots()


def test_broken_backend_reports_failure():
    persistence = _persistence(_store(), BrokenSlotStore())

    assert not persistence.save_all()
    assert not persistence.load_meta_zenny()
    assert not persistence.load_game_state()
    assert not persistence.load_hand_state()
    assert not persistence.clear_all()


def test_hand_snapshot_is_restored_verbatim_once():
    bus = EventBus()
    events: list[Event] = []
    bus.subscribe(Event, events.append)
    slots = MemorySlotStore()
    store = _store()
    hand = list(store.get("hand"))

    assert _persistence(store, slots, bus=bus).save_hand_state()
    store.set("hand", [])
    assert _persistence(store, slots, bus=bus).load_hand_state()

    assert store.get("hand") == hand
    assert slots.read(HAND_STATE_SLOT) is None
    assert events == [HandStateSaved(size=2), HandStateLoaded(size=2)]
    assert not _persistence(store, slots).load_hand_state()


def test_empty_hand_is_not_saved():
    store = _store()
    store.set("hand", [])
    slots = MemorySlotStore()
    assert not _persistence(store, slots).save_hand_state()
    assert slots.slots() == []


def test_clearing_the_hand_snapshot():
    store = _store()
    slots = MemorySlotStore()
    persistence = _persistence(store, slots)
    assert persistence.save_hand_state()

    assert persistence.clear_hand_state()
    assert slots.read(HAND_STATE_SLOT) is None
    assert persistence.clear_hand_state()
    assert not persistence.load_hand_state()


@pytest.mark.parametrize("payload", ["[]", "[{\"key\": 1}]"])
def test_bad_hand_snapshot_is_rejected(payload):
    store = StateStore({"hand": []})
    slots = MemorySlotStore({HAND_STATE_SLOT: payload})
    assert not _persistence(store, slots).load_hand_state()
    assert store.get("hand") == []


def test_save_all_then_load_all():
    slots = MemorySlotStore()
    assert _persistence(_store(), slots).save_all()

    restored = StateStore()
    assert _persistence(restored, slots).load_all()
    assert restored.get("metaZenny") == 40
    assert restored.get("classGemCatalogs.Mage") == initial_catalog(PlayerClass.MAGE)


def test_reset_and_clear():
    slots = MemorySlotStore({"other": "1"})
    store = _store()
    persistence = _persistence(store, slots)
    persistence.save_all()

    assert persistence.reset_meta_progression()
    assert store.get("metaZenny") == 0
    assert slots.read(META_ZENNY_SLOT) is None

    assert persistence.clear_all()
    assert slots.slots() == ["other"]
