"""Load and save helpers for the named persistence buckets.

Every bucket lives in a fixed slot of a :class:`~gembattle.repository.SlotStore`
as a JSON string.  Operations report success as a ``bool`` and never raise
past this module for backend or parse failures: gameplay continues from
in-memory state when storage is unavailable.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter

from gembattle.domain.catalog import reconcile_catalog
from gembattle.domain.enums import PlayerClass
from gembattle.domain.errors import SlotStoreError
from gembattle.domain.models import CatalogState, Gem, ProficiencyRecord, SavedGame
from gembattle.domain.proficiency import reconcile_proficiency
from gembattle.domain.rules_config import DEFAULT_RULES, RulesConfig
from gembattle.events import Bus, HandStateLoaded, HandStateSaved
from gembattle.repository import SlotStore
from gembattle.state import StateStore

logger = logging.getLogger(__name__)

META_ZENNY_SLOT = "stw_metaZenny"
GAME_STATE_SLOT = "stw_gameState"
HAND_STATE_SLOT = "stw_temp_hand"
UNLOCKS_PREFIX = "stw_gemUnlocks_"
PROFICIENCY_PREFIX = "stw_gemProficiency_"

_FAILURES = (SlotStoreError, ValueError, TypeError)
_CLASS_NAMES = frozenset(player_class.value for player_class in PlayerClass)

INT_ADAPTER: TypeAdapter[int] = TypeAdapter(int)
RAW_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])
CATALOG_ADAPTER: TypeAdapter[CatalogState] = TypeAdapter(CatalogState)
PROFICIENCY_ADAPTER: TypeAdapter[dict[str, ProficiencyRecord]] = TypeAdapter(
    dict[str, ProficiencyRecord]
)
HAND_ADAPTER: TypeAdapter[list[Gem]] = TypeAdapter(list[Gem])


class GameSnapshot(BaseModel):
    """Timestamped game-state tree written to the game-state slot."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    state: SavedGame


def unlocks_slot(player_class: PlayerClass | str) -> str:
    return f"{UNLOCKS_PREFIX}{PlayerClass(player_class).value}"


def proficiency_slot(player_class: PlayerClass | str) -> str:
    return f"{PROFICIENCY_PREFIX}{PlayerClass(player_class).value}"


def snapshot_from_store(store: StateStore) -> SavedGame:
    """Collect the persisted subset of the state tree."""

    return SavedGame(
        player=store.get("player"),
        meta_zenny=store.get("metaZenny", 0),
        current_day=store.get("currentDay", 1),
        current_phase_index=store.get("currentPhaseIndex", 0),
        battle_count=store.get("battleCount", 0),
        gem_serial=store.get("gemSerial", 0),
        hand=list(store.get("hand") or []),
        gem_bag=list(store.get("gemBag") or []),
        discard=list(store.get("discard") or []),
        class_gem_catalogs=dict(store.get("classGemCatalogs") or {}),
        class_gem_proficiency=dict(store.get("classGemProficiency") or {}),
    )


class Persistence:
    """Named load/save buckets over a slot store."""

    def __init__(
        self,
        store: StateStore,
        slots: SlotStore,
        *,
        bus: Bus | None = None,
        rules: RulesConfig = DEFAULT_RULES,
        max_age_days: int | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._store = store
        self._slots = slots
        self._bus = bus
        self._rules = rules
        self._max_age = timedelta(days=max_age_days or rules.saves.max_snapshot_age_days)
        self._now = now

    # -- meta currency ----------------------------------------------------------

    def save_meta_zenny(self) -> bool:
        return self._write(META_ZENNY_SLOT, INT_ADAPTER.dump_json(self._store.get("metaZenny", 0)))

    def load_meta_zenny(self) -> bool:
        try:
            payload = self._slots.read(META_ZENNY_SLOT)
            if payload is None:
                return False
            amount = INT_ADAPTER.validate_json(payload)
        except _FAILURES:
            logger.warning("could not load meta zenny", exc_info=True)
            return False
        self._store.set("metaZenny", max(0, amount))
        return True

    # -- gem unlocks --------------------------------------------------------------

    def save_gem_unlocks(self, player_class: PlayerClass | str) -> bool:
        catalog = self._store.get(f"classGemCatalogs.{PlayerClass(player_class).value}")
        if catalog is None:
            return False
        return self._write(unlocks_slot(player_class), CATALOG_ADAPTER.dump_json(catalog))

    def load_gem_unlocks(self, player_class: PlayerClass | str) -> bool:
        """Load and reconcile a class catalog; defaults are stored on failure."""

        raw = self._read_raw(unlocks_slot(player_class))
        catalog = reconcile_catalog(player_class, raw, rules=self._rules)
        self._store.set(f"classGemCatalogs.{PlayerClass(player_class).value}", catalog)
        return raw is not None

    # -- gem proficiency ----------------------------------------------------------

    def save_gem_proficiency(self, player_class: PlayerClass | str) -> bool:
        records = self._store.get(f"classGemProficiency.{PlayerClass(player_class).value}")
        if records is None:
            return False
        return self._write(proficiency_slot(player_class), PROFICIENCY_ADAPTER.dump_json(records))

    def load_gem_proficiency(self, player_class: PlayerClass | str) -> bool:
        """Load and reconcile a class record set; defaults are stored on failure."""

        raw = self._read_raw(proficiency_slot(player_class))
        records = reconcile_proficiency(player_class, raw, rules=self._rules)
        self._store.set(f"classGemProficiency.{PlayerClass(player_class).value}", records)
        return raw is not None

    # -- full game state -----------------------------------------------------------

    def save_game_state(self) -> bool:
        snapshot = GameSnapshot(timestamp=self._now(), state=snapshot_from_store(self._store))
        return self._write(GAME_STATE_SLOT, snapshot.model_dump_json())

    def load_game_state(self) -> bool:
        """Restore the saved tree unless it is missing, malformed or stale."""

        try:
            payload = self._slots.read(GAME_STATE_SLOT)
            if payload is None:
                return False
            snapshot = GameSnapshot.model_validate_json(payload)
        except _FAILURES:
            logger.warning("could not load game state", exc_info=True)
            return False

        timestamp = snapshot.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        age = self._now() - timestamp
        if age > self._max_age:
            logger.info("discarding game state saved %s ago", age)
            self._delete(GAME_STATE_SLOT)
            return False

        state = snapshot.state
        catalogs = {
            key: reconcile_catalog(key, value, rules=self._rules)
            for key, value in state.class_gem_catalogs.items()
            if key in _CLASS_NAMES
        }
        proficiency = {
            key: reconcile_proficiency(key, value, rules=self._rules)
            for key, value in state.class_gem_proficiency.items()
            if key in _CLASS_NAMES
        }
        self._store.update(
            {
                "player": state.player,
                "metaZenny": state.meta_zenny,
                "currentDay": state.current_day,
                "currentPhaseIndex": state.current_phase_index,
                "battleCount": state.battle_count,
                "gemSerial": state.gem_serial,
                "hand": state.hand,
                "gemBag": state.gem_bag,
                "discard": state.discard,
            }
        )
        for key, catalog in catalogs.items():
            self._store.set(f"classGemCatalogs.{key}", catalog)
        for key, records in proficiency.items():
            self._store.set(f"classGemProficiency.{key}", records)
        return True

    # -- transient hand -------------------------------------------------------------

    def save_hand_state(self) -> bool:
        hand = list(self._store.get("hand") or [])
        if not hand:
            return False
        saved = self._write(HAND_STATE_SLOT, HAND_ADAPTER.dump_json(hand))
        if saved and self._bus is not None:
            self._bus.publish(HandStateSaved(size=len(hand)))
        return saved

    def load_hand_state(self) -> bool:
        """Restore the hand snapshot verbatim and drop the slot."""

        try:
            payload = self._slots.read(HAND_STATE_SLOT)
            if payload is None:
                return False
            hand = HAND_ADAPTER.validate_json(payload)
        except _FAILURES:
            logger.warning("could not load hand state", exc_info=True)
            return False
        if not hand:
            return False
        self._store.set("hand", hand)
        self._delete(HAND_STATE_SLOT)
        if self._bus is not None:
            self._bus.publish(HandStateLoaded(size=len(hand)))
        return True

    def clear_hand_state(self) -> bool:
        """Drop any hand snapshot left over from a previous journey."""

        return self._delete(HAND_STATE_SLOT)

    # -- bulk ---------------------------------------------------------------------------

    def load_all(self) -> bool:
        """Load meta progression for every class, then the game state."""

        loaded = self.load_meta_zenny()
        for player_class in PlayerClass:
            loaded = self.load_gem_unlocks(player_class) or loaded
            loaded = self.load_gem_proficiency(player_class) or loaded
        return self.load_game_state() or loaded

    def save_all(self) -> bool:
        saved = self.save_meta_zenny()
        for player_class in PlayerClass:
            if self._store.get(f"classGemCatalogs.{player_class.value}") is not None:
                saved = self.save_gem_unlocks(player_class) and saved
            if self._store.get(f"classGemProficiency.{player_class.value}") is not None:
                saved = self.save_gem_proficiency(player_class) and saved
        return self.save_game_state() and saved

    def reset_meta_progression(self) -> bool:
        """Forget meta currency, unlocks and proficiency for every class."""

        ok = self._delete(META_ZENNY_SLOT)
        for player_class in PlayerClass:
            ok = self._delete(unlocks_slot(player_class)) and ok
            ok = self._delete(proficiency_slot(player_class)) and ok
        self._store.update({"metaZenny": 0, "classGemCatalogs": {}, "classGemProficiency": {}})
        return ok

    def clear_all(self) -> bool:
        try:
            for slot in self._slots.slots():
                if slot.startswith("stw_"):
                    self._slots.delete(slot)
        except SlotStoreError:
            logger.warning("could not clear save slots", exc_info=True)
            return False
        return True

    # -- internals ------------------------------------------------------------------------

    def _write(self, slot: str, payload: bytes | str) -> bool:
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        try:
            self._slots.write(slot, payload)
        except SlotStoreError:
            logger.warning("could not save slot %s", slot, exc_info=True)
            return False
        return True

    def _delete(self, slot: str) -> bool:
        try:
            self._slots.delete(slot)
        except SlotStoreError:
            logger.warning("could not delete slot %s", slot, exc_info=True)
            return False
        return True

    def _read_raw(self, slot: str) -> dict[str, Any] | None:
        try:
            payload = self._slots.read(slot)
            if payload is None:
                return None
            return RAW_ADAPTER.validate_json(payload)
        except _FAILURES:
            logger.warning("could not load slot %s", slot, exc_info=True)
            return None
