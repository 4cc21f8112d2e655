"""Per-class gem catalog: which gem types are unlocked or purchasable."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from gembattle.state import StateStore

from .content import BASE_GEMS, INITIAL_AVAILABLE, required_gem_keys
from .enums import PlayerClass
from .errors import UnknownGemError
from .models import CatalogState, GemDefinition
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


def definition_of(gem_key: str) -> GemDefinition:
    """Static registry lookup; an unknown key is a programming error."""

    try:
        return BASE_GEMS[gem_key]
    except KeyError:
        raise UnknownGemError(gem_key) from None


def initial_catalog(
    player_class: PlayerClass | str, *, rules: RulesConfig = DEFAULT_RULES
) -> CatalogState:
    player_class = PlayerClass(player_class)
    return CatalogState(
        unlocked=list(required_gem_keys(player_class)),
        available=list(INITIAL_AVAILABLE[player_class]),
        max_capacity=rules.catalog.max_capacity,
    )


def reconcile_catalog(
    player_class: PlayerClass | str,
    loaded: CatalogState | Mapping[str, Any] | None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> CatalogState:
    """Return a validated catalog with the basic and signature gems unlocked.

    Unknown keys are dropped, duplicates removed and the unlocked list is
    trimmed to capacity (required gems are never trimmed).
    """

    fresh = initial_catalog(player_class, rules=rules)
    if loaded is None:
        return fresh
    if isinstance(loaded, CatalogState):
        raw_unlocked, raw_available = loaded.unlocked, loaded.available
    else:
        raw_unlocked = loaded.get("unlocked") or []
        raw_available = loaded.get("available") or []

    required = list(required_gem_keys(player_class))
    unlocked = list(required)
    for key in raw_unlocked:
        if key not in BASE_GEMS:
            logger.warning("dropping unknown unlocked gem %r for %s", key, player_class)
            continue
        if key not in unlocked and len(unlocked) < rules.catalog.max_capacity:
            unlocked.append(key)

    available: list[str] = []
    for key in (*raw_available, *fresh.available):
        if key in BASE_GEMS and key not in unlocked and key not in available:
            available.append(key)
    return CatalogState(
        unlocked=unlocked, available=available, max_capacity=rules.catalog.max_capacity
    )


class GemCatalog:
    """Catalog for one class, stored at ``classGemCatalogs.<class>``."""

    def __init__(
        self,
        store: StateStore,
        player_class: PlayerClass | str,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._store = store
        self.player_class = PlayerClass(player_class)
        self._rules = rules

    @property
    def path(self) -> str:
        return f"classGemCatalogs.{self.player_class.value}"

    @property
    def state(self) -> CatalogState:
        state = self._store.get(self.path)
        if state is None:
            state = initial_catalog(self.player_class, rules=self._rules)
            self._store.set(self.path, state)
        return state

    def is_unlocked(self, gem_key: str) -> bool:
        return gem_key in self.state.unlocked

    def is_available(self, gem_key: str) -> bool:
        return gem_key in self.state.available

    def definition_of(self, gem_key: str) -> GemDefinition:
        return definition_of(gem_key)

    def unlocked_definitions(self) -> list[GemDefinition]:
        return [definition_of(key) for key in self.state.unlocked]

    @property
    def is_full(self) -> bool:
        state = self.state
        return len(state.unlocked) >= state.max_capacity

    def can_unlock(self, gem_key: str) -> bool:
        return self.is_available(gem_key) and not self.is_full

    def unlock(self, gem_key: str) -> bool:
        """Move ``gem_key`` from available to unlocked.

        Returns ``False`` when the gem is not purchasable or the catalog is at
        capacity.  Raises :class:`UnknownGemError` for keys missing from the
        registry.
        """

        definition_of(gem_key)
        if not self.can_unlock(gem_key):
            logger.info("cannot unlock %s for %s", gem_key, self.player_class)
            return False
        state = self.state
        state.available.remove(gem_key)
        state.unlocked.append(gem_key)
        return True
