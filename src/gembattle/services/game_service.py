"""Game Service for the gem battle engine.

Wires the state store, bus, persistence, random source and the core
components for a single player run.  The enemy turn is processed
automatically as soon as the player's turn ends, so every public call leaves
the battle in ``PlayerTurn`` or a terminal state.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from gembattle.domain.camp import Camp, rest_heal
from gembattle.domain.catalog import GemCatalog, reconcile_catalog
from gembattle.domain.content import class_definition
from gembattle.domain.enums import OutcomeResult, PlayerClass, Screen, SelectionContext, TurnState
from gembattle.domain.errors import InvalidTransitionError
from gembattle.domain.models import Gem, PlayerState
from gembattle.domain.proficiency import ProficiencyTable, reconcile_proficiency
from gembattle.domain.progression import phase_name
from gembattle.domain.resolution import EffectBatch
from gembattle.domain.rules_config import DEFAULT_RULES, RulesConfig
from gembattle.domain.selection import SelectionManager
from gembattle.domain.shop import Shop
from gembattle.domain.turns import BattleResult, EnemyTurnResult, TurnStateMachine
from gembattle.events import Bus, EventBus
from gembattle.savegame import Persistence
from gembattle.state import StateStore
from gembattle.utils.rng import RandomSource, SeededRandom

logger = logging.getLogger(__name__)


class GameService:
    """Service facade for one run."""

    def __init__(
        self,
        *,
        store: StateStore | None = None,
        bus: Bus | None = None,
        persistence: Persistence | None = None,
        random: RandomSource | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self.store = store or StateStore()
        self.bus = bus or EventBus()
        self.persistence = persistence
        self.random = random or SeededRandom()
        self.rules = rules
        self.selection = SelectionManager(self.store, self.bus)
        self.turns = TurnStateMachine(
            self.store, self.bus, random=self.random, selection=self.selection, rules=rules
        )
        self.shop = Shop(
            self.store, self.bus, random=self.random, selection=self.selection, rules=rules
        )
        self.camp = Camp(self.store, self.bus)
        self.last_enemy_turn: EnemyTurnResult | None = None

    # -- run lifecycle ------------------------------------------------------------

    @property
    def player_class(self) -> PlayerClass:
        return self.turns.player.player_class

    @property
    def catalog(self) -> GemCatalog:
        return GemCatalog(self.store, self.player_class, rules=self.rules)

    @property
    def proficiency(self) -> ProficiencyTable:
        return self.turns.proficiency

    def start_run(self, player_class: PlayerClass | str) -> PlayerState:
        """Begin a fresh journey; meta progression carries over."""

        definition = class_definition(player_class)
        self._load_meta(definition.player_class)
        if self.persistence is not None:
            self.persistence.clear_hand_state()
        player = PlayerState(
            player_class=definition.player_class,
            health=definition.max_health,
            max_health=definition.max_health,
            stamina=definition.base_stamina,
            base_stamina=definition.base_stamina,
            zenny=definition.starting_zenny,
        )
        self.store.update(
            {
                "player": player,
                "battle": None,
                "lastOutcome": None,
                "currentDay": 1,
                "currentPhaseIndex": 0,
                "battleCount": 0,
                "gemSerial": 0,
                "hand": [],
                "gemBag": [],
                "discard": [],
                "selectedGems": set(),
                "currentScreen": Screen.BATTLE,
            }
        )
        logger.info("new %s run started", definition.player_class.value)
        return player

    def resume(self) -> bool:
        """Restore a saved run if one exists and is recent enough."""

        if self.persistence is None:
            return False
        return self.persistence.load_all()

    def _load_meta(self, player_class: PlayerClass) -> None:
        if self.persistence is not None:
            self.persistence.load_meta_zenny()
            self.persistence.load_gem_unlocks(player_class)
            self.persistence.load_gem_proficiency(player_class)
            return
        key = player_class.value
        self.store.set(
            f"classGemCatalogs.{key}",
            reconcile_catalog(player_class, self.store.get(f"classGemCatalogs.{key}"), rules=self.rules),
        )
        self.store.set(
            f"classGemProficiency.{key}",
            reconcile_proficiency(
                player_class, self.store.get(f"classGemProficiency.{key}"), rules=self.rules
            ),
        )

    # -- battle --------------------------------------------------------------------

    def start_battle(self) -> None:
        if self.store.get("currentScreen") == Screen.CHARACTER_SELECT:
            raise InvalidTransitionError("the run is over; start a new one")
        if self.persistence is not None:
            self.persistence.load_hand_state()
        previous = self.store.get("currentScreen")
        if previous == Screen.CAMP:
            healed = rest_heal(self.turns.player, rules=self.rules)
            logger.info("rested at camp, healed %d", healed)
        return_screen = Screen(previous) if previous and previous != Screen.BATTLE else None
        self.turns.start_battle(return_screen=return_screen)

    def toggle_selection(
        self, index: int, context: SelectionContext = SelectionContext.BATTLE
    ) -> set[int]:
        return self.selection.toggle(index, context)

    def execute_selection(self) -> EffectBatch:
        batch = self.turns.execute_selection()
        self._after_player_turn()
        return batch

    def wait_turn(self) -> None:
        self.turns.wait_turn()
        self._after_player_turn()

    def discard_and_end_turn(self) -> int:
        count = self.turns.discard_and_end_turn()
        self._after_player_turn()
        return count

    def flee(self) -> BattleResult:
        result = self.turns.flee()
        self._after_battle(result)
        return result

    def _after_player_turn(self) -> None:
        if self.turns.state is TurnState.ENEMY_TURN:
            self.last_enemy_turn = self.turns.process_enemy_turn()
        if self.turns.state.is_terminal:
            self._after_battle(self.store.get("lastOutcome"))

    def _after_battle(self, result: BattleResult | None) -> None:
        if result is None or self.persistence is None:
            return
        if result.result is not OutcomeResult.DEFEAT and not result.journey_complete:
            self.persistence.save_hand_state()
        self.save()

    # -- catalog ---------------------------------------------------------------------

    def unlock_gem(self, gem_key: str) -> bool:
        """Spend meta zenny to unlock a gem for the current class."""

        if self.turns.battle is not None and not self.turns.state.is_terminal:
            raise InvalidTransitionError("gems cannot be unlocked during a battle")
        cost = self.rules.catalog.unlock_cost
        meta = self.store.get("metaZenny", 0)
        catalog = self.catalog
        if meta < cost or not catalog.can_unlock(gem_key):
            catalog.definition_of(gem_key)
            logger.info("unlock of %s refused (meta zenny %d, cost %d)", gem_key, meta, cost)
            return False
        catalog.unlock(gem_key)
        self.store.set("metaZenny", meta - cost)
        self.proficiency.begin_learning(gem_key)
        if self.persistence is not None:
            self.persistence.save_meta_zenny()
            self.persistence.save_gem_unlocks(self.player_class)
            self.persistence.save_gem_proficiency(self.player_class)
        return True

    # -- shop and camp ----------------------------------------------------------------

    def buy_gem(self) -> Gem | None:
        gem = self.shop.buy_gem()
        if gem is not None:
            self._save_between_battles()
        return gem

    def heal(self) -> int:
        healed = self.shop.heal()
        if healed:
            self._save_between_battles()
        return healed

    def discard_gem(self) -> Gem | None:
        """Remove the gem picked with shop selection from the journey."""

        gem = self.shop.discard_selected()
        if gem is not None:
            self._save_between_battles()
        return gem

    def upgrade_options(self) -> list[str]:
        return self.shop.upgrade_options()

    def upgrade_gem(self, gem_key: str) -> Gem | None:
        gem = self.shop.upgrade_selected(gem_key)
        if gem is not None:
            self._save_between_battles()
        return gem

    def withdraw_zenny(self, amount: int) -> bool:
        moved = self.camp.withdraw(amount)
        if moved:
            self._save_between_battles()
        return moved

    def deposit_zenny(self, amount: int) -> bool:
        moved = self.camp.deposit(amount)
        if moved:
            self._save_between_battles()
        return moved

    def _save_between_battles(self) -> None:
        # start_battle restores the hand slot over the stored hand.
        if self.persistence is None:
            return
        if self.store.get("hand"):
            self.persistence.save_hand_state()
        else:
            self.persistence.clear_hand_state()
        self.save()

    # -- persistence -------------------------------------------------------------------

    def save(self) -> bool:
        if self.persistence is None:
            return False
        return self.persistence.save_all()

    def load(self) -> bool:
        return self.resume()

    # -- views ---------------------------------------------------------------------------

    def summary(self) -> dict[str, Any]:
        """Return a JSON-friendly view of the run."""

        player = self.store.get("player")
        if player is None:
            raise InvalidTransitionError("no run in progress")
        battle = self.turns.battle
        catalog = self.catalog.state
        return {
            "player": _player_dict(player),
            "state": self.turns.state.value,
            "day": self.store.get("currentDay", 1),
            "phase": phase_name(self.store.get("currentPhaseIndex", 0), rules=self.rules),
            "battle_count": self.store.get("battleCount", 0),
            "meta_zenny": self.store.get("metaZenny", 0),
            "screen": str(self.store.get("currentScreen", Screen.BATTLE)),
            "hand": [
                {"index": index, "key": gem.key, "name": gem.name, "cost": gem.stamina_cost}
                for index, gem in enumerate(self.store.get("hand") or [])
            ],
            "selected": list(self.selection.ordered()),
            "bag_size": len(self.store.get("gemBag") or []),
            "discard_size": len(self.store.get("discard") or []),
            "gem_count": self.shop.gem_count,
            "enemy": _enemy_dict(battle) if battle is not None else None,
            "turn": battle.turn_number if battle is not None else 0,
            "catalog": {"unlocked": list(catalog.unlocked), "available": list(catalog.available)},
        }


def _player_dict(player: PlayerState) -> dict[str, Any]:
    return {
        "class": player.player_class.value,
        "health": player.health,
        "max_health": player.max_health,
        "stamina": player.stamina,
        "base_stamina": player.base_stamina,
        "zenny": player.zenny,
        "buffs": [asdict(buff) for buff in player.buffs],
    }


def _enemy_dict(battle) -> dict[str, Any]:
    enemy = battle.enemy
    return {
        "name": enemy.name,
        "health": enemy.health,
        "max_health": enemy.max_health,
        "defense": enemy.effective_defense,
        "current_action": enemy.current_action,
        "mini_boss": enemy.is_mini_boss,
        "buffs": [asdict(buff) for buff in enemy.buffs],
    }
