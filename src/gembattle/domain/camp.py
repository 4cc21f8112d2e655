"""End-of-day camp: moving zenny between the journey and meta wallets."""

from __future__ import annotations

import logging

from gembattle.events import Bus, ZennyTransferred
from gembattle.state import StateStore

from .enums import Screen
from .errors import InvalidTransitionError
from .models import PlayerState
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


def rest_heal(player: PlayerState, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Heal a share of max health for the night; returns the amount healed."""

    amount = int(player.max_health * rules.camp.rest_heal_ratio)
    healed = max(0, min(player.max_health - player.health, amount))
    player.health += healed
    return healed


class Camp:
    """Wallet transfers, only while the run is on the camp screen.

    Journey zenny is ``player.zenny`` and is lost when the run ends; meta
    zenny lives at ``metaZenny`` and pays for gem unlocks.
    """

    def __init__(self, store: StateStore, bus: Bus) -> None:
        self._store = store
        self._bus = bus

    def _require_open(self) -> PlayerState:
        screen = self._store.get("currentScreen")
        if screen != Screen.CAMP:
            raise InvalidTransitionError(f"camp is only open at the end of a day, not on {screen}")
        player = self._store.get("player")
        if player is None:
            raise InvalidTransitionError("no player in the current run")
        return player

    def withdraw(self, amount: int) -> bool:
        """Bank ``amount`` journey zenny into the meta wallet."""

        player = self._require_open()
        if amount <= 0 or player.zenny < amount:
            logger.info("withdraw of %d refused (journey zenny %d)", amount, player.zenny)
            return False
        player.zenny -= amount
        self._store.set("metaZenny", self._store.get("metaZenny", 0) + amount)
        self._publish(-amount, player)
        return True

    def deposit(self, amount: int) -> bool:
        """Move ``amount`` meta zenny into the journey wallet."""

        player = self._require_open()
        meta = self._store.get("metaZenny", 0)
        if amount <= 0 or meta < amount:
            logger.info("deposit of %d refused (meta zenny %d)", amount, meta)
            return False
        self._store.set("metaZenny", meta - amount)
        player.zenny += amount
        self._publish(amount, player)
        return True

    def _publish(self, amount: int, player: PlayerState) -> None:
        self._bus.publish(
            ZennyTransferred(
                amount=amount, journey_zenny=player.zenny, meta_zenny=self._store.get("metaZenny", 0)
            )
        )
