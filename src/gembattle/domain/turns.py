"""Battle turn state machine.

States run ``NotStarted -> PlayerTurn -> Resolving -> EnemyTurn -> PlayerTurn``
until one of the terminal states ``Won``, ``Lost`` or ``Fled`` is reached.
All working data lives in the injected :class:`~gembattle.state.StateStore`;
the machine only holds references to its collaborators.

Every operation runs to completion before returning.  An operation requested
in a state that does not allow it raises :class:`InvalidTransitionError` and
leaves the store untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from gembattle.events import (
    BattleOutcome,
    BattleStarted,
    Bus,
    GemExecuted,
    HandUpdated,
    ProficiencyUpdated,
    ScreenTransition,
    TurnStarted,
)
from gembattle.state import StateStore
from gembattle.utils.rng import RandomSource

from . import enemies, hand as hand_rules, progression, resolution
from .enums import BuffType, OutcomeResult, Screen, TurnState
from .errors import InvalidTransitionError
from .models import Battle, Enemy, Gem, PlayerState
from .proficiency import ProficiencyTable
from .rules_config import DEFAULT_RULES, RulesConfig
from .selection import SelectionManager

logger = logging.getLogger(__name__)

_OUTCOMES = {
    TurnState.WON: OutcomeResult.VICTORY,
    TurnState.LOST: OutcomeResult.DEFEAT,
    TurnState.FLED: OutcomeResult.FLED,
}


@dataclass(frozen=True, slots=True)
class BattleResult:
    """Summary of a finished battle."""

    result: OutcomeResult
    enemy: str
    reward: int
    next_screen: Screen
    journey_complete: bool = False


@dataclass(frozen=True, slots=True)
class EnemyTurnResult:
    poison_damage: int
    action: enemies.EnemyActionResult | None
    state: TurnState


class TurnStateMachine:
    """Orchestrates one battle at a time against the state store."""

    def __init__(
        self,
        store: StateStore,
        bus: Bus,
        *,
        random: RandomSource,
        selection: SelectionManager | None = None,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._store = store
        self._bus = bus
        self._random = random
        self._selection = selection or SelectionManager(store, bus)
        self._rules = rules

    # -- accessors -----------------------------------------------------------------

    @property
    def battle(self) -> Battle | None:
        return self._store.get("battle")

    @property
    def state(self) -> TurnState:
        battle = self.battle
        return battle.state if battle is not None else TurnState.NOT_STARTED

    @property
    def player(self) -> PlayerState:
        player = self._store.get("player")
        if player is None:
            raise InvalidTransitionError("no player in the current run")
        return player

    @property
    def proficiency(self) -> ProficiencyTable:
        path = f"classGemProficiency.{self.player.player_class.value}"
        records = self._store.get(path)
        if records is None:
            records = {}
            self._store.set(path, records)
        return ProficiencyTable(records, rules=self._rules)

    def _pile(self, path: str) -> list[Gem]:
        pile = self._store.get(path)
        if pile is None:
            pile = []
            self._store.set(path, pile)
        return pile

    def _require(self, *allowed: TurnState) -> Battle:
        battle = self.battle
        current = self.state
        if battle is None or current not in allowed:
            wanted = ", ".join(state.value for state in allowed)
            raise InvalidTransitionError(f"operation requires {wanted}; battle is {current.value}")
        return battle

    # -- transitions ---------------------------------------------------------------

    def start_battle(self, *, return_screen: Screen | None = None) -> Battle:
        """Begin a battle for the current day and phase."""

        if not (self.battle is None or self.state.is_terminal):
            raise InvalidTransitionError(f"a battle is already {self.state.value}")
        player = self.player

        day = self._store.get("currentDay", 1)
        phase_index = self._store.get("currentPhaseIndex", 0)
        enemy = enemies.generate_enemy(
            day,
            phase_index,
            self._store.get("battleCount", 0),
            self._random,
            rules=self._rules,
        )
        battle = Battle(
            enemy=enemy,
            day=day,
            phase_index=phase_index,
            state=TurnState.PLAYER_TURN,
            return_screen=return_screen.value if return_screen else None,
        )
        self._store.set("battle", battle)
        player.stamina = player.base_stamina
        player.buffs.clear()

        self._deal()
        self._selection.clear()
        self._store.set("currentScreen", Screen.BATTLE)
        logger.info("battle started: %s (day %d, %s)", enemy.name, day, self._phase(phase_index))
        self._bus.publish(
            BattleStarted(enemy=enemy.name, day=day, phase=self._phase(phase_index))
        )
        self._bus.publish(TurnStarted(turn=battle.turn_number))
        return battle

    def execute_selection(self) -> resolution.EffectBatch:
        """Resolve the selected gems and move on to the enemy or an ending."""

        battle = self._require(TurnState.PLAYER_TURN)
        selection = self._selection.selected
        if not selection:
            return resolution.EffectBatch()

        battle.state = TurnState.RESOLVING
        table = self.proficiency
        batch = resolution.execute(
            selection,
            self._pile("hand"),
            table,
            self.player,
            battle.enemy,
            random=self._random,
            rules=self._rules,
        )
        self._selection.clear()
        if batch.rejected:
            battle.state = TurnState.PLAYER_TURN
            return batch

        self._pile("discard").extend(batch.consumed)
        for effect in batch.applied:
            self._bus.publish(
                GemExecuted(
                    gem_key=effect.gem_key,
                    succeeded=effect.succeeded,
                    effect=effect.kind.value,
                    amount=effect.amount,
                )
            )
            record = table.records[effect.gem_key]
            self._bus.publish(
                ProficiencyUpdated(
                    gem_key=effect.gem_key,
                    success_count=record.success_count,
                    failure_chance=record.failure_chance,
                )
            )
        self._bus.publish(HandUpdated(size=len(self._pile("hand"))))

        if not self._check_end(battle):
            battle.state = TurnState.ENEMY_TURN
        return batch

    def wait_turn(self) -> None:
        """Skip gem play; the player is focused for the next turns."""

        battle = self._require(TurnState.PLAYER_TURN)
        enemies.refresh_timer(self.player.buffs, BuffType.FOCUSED, 1, self._rules.combat.focus_turns)
        self._selection.clear()
        battle.state = TurnState.ENEMY_TURN

    def discard_and_end_turn(self) -> int:
        """Return the selected gems to the bag and end the turn.

        A stale selection is cleared and the turn stays with the player.
        """

        battle = self._require(TurnState.PLAYER_TURN)
        current_hand = self._pile("hand")
        selected = set(self._selection.selected)
        if not resolution.validate_selection(selected, current_hand):
            logger.warning(
                "stale selection %s for hand of %d; clearing", sorted(selected), len(current_hand)
            )
            self._selection.clear()
            return 0
        returned = [current_hand[index] for index in sorted(selected)]
        current_hand[:] = [gem for index, gem in enumerate(current_hand) if index not in selected]
        count = hand_rules.return_to_bag(returned, self._pile("gemBag"), self._random)
        self._selection.clear()
        if count:
            self._bus.publish(HandUpdated(size=len(current_hand)))
        battle.state = TurnState.ENEMY_TURN
        return count

    def flee(self) -> BattleResult:
        """Leave the battle with no reward."""

        battle = self._require(TurnState.PLAYER_TURN)
        battle.state = TurnState.FLED
        return self._finish(battle)

    def process_enemy_turn(self) -> EnemyTurnResult:
        """Poison tick, scripted action, then upkeep for the next player turn."""

        battle = self._require(TurnState.ENEMY_TURN)
        enemy, player = battle.enemy, self.player

        poison = enemies.tick_poison(enemy)
        if self._check_end(battle):
            return EnemyTurnResult(poison, None, battle.state)

        action = enemies.resolve_enemy_action(enemy, player, rules=self._rules)
        logger.debug(action.message)
        if self._check_end(battle):
            return EnemyTurnResult(poison, action, battle.state)

        enemies.prepare_next_action(enemy, self._random, rules=self._rules)
        enemies.decay_timers(player.buffs)
        enemies.decay_timers(enemy.buffs)
        player.stamina = player.base_stamina
        self._selection.clear()
        self._deal()

        battle.turn_number += 1
        battle.state = TurnState.PLAYER_TURN
        self._bus.publish(TurnStarted(turn=battle.turn_number))
        return EnemyTurnResult(poison, action, battle.state)

    # -- internals -----------------------------------------------------------------

    def _phase(self, phase_index: int) -> str:
        return progression.phase_name(phase_index, rules=self._rules)

    def _deal(self) -> None:
        current_hand = self._pile("hand")
        bag = self._pile("gemBag")
        discard = self._pile("discard")
        if not (current_hand or bag or discard):
            minter = hand_rules.GemMinter(self._store.get("gemSerial", 0))
            bag.extend(
                hand_rules.build_gem_bag(
                    self.player.player_class, self._random, minter, rules=self._rules
                )
            )
            self._store.set("gemSerial", minter.serial)
        hand_rules.refill_hand(current_hand, bag, discard, self._random, rules=self._rules)
        self._bus.publish(HandUpdated(size=len(current_hand)))

    def _check_end(self, battle: Battle) -> bool:
        """Player death is checked before enemy death: a mutual kill is a loss."""

        if self.player.health <= 0:
            battle.state = TurnState.LOST
        elif battle.enemy.health <= 0:
            battle.state = TurnState.WON
        else:
            return False
        self._finish(battle)
        return True

    def _finish(self, battle: Battle) -> BattleResult:
        outcome = _OUTCOMES[battle.state]
        battle.battle_over = True
        enemy: Enemy = battle.enemy
        player = self.player

        reward = 0
        if outcome is OutcomeResult.VICTORY:
            reward = progression.calculate_reward(enemy, rules=self._rules)
            player.zenny += reward
            self._store.set("metaZenny", self._store.get("metaZenny", 0) + reward)

        return_screen = Screen(battle.return_screen) if battle.return_screen else None
        step = progression.advance(
            outcome,
            self._store.get("currentDay", 1),
            self._store.get("currentPhaseIndex", 0),
            self._store.get("battleCount", 0),
            return_screen=return_screen,
            rules=self._rules,
        )
        self._store.update(
            {
                "currentDay": step.day,
                "currentPhaseIndex": step.phase_index,
                "battleCount": step.battle_count,
                "currentScreen": step.next_screen,
            }
        )
        if step.bonus:
            self._store.set("metaZenny", self._store.get("metaZenny", 0) + step.bonus)
        self._selection.clear()

        result = BattleResult(
            result=outcome,
            enemy=enemy.name,
            reward=reward,
            next_screen=step.next_screen,
            journey_complete=step.journey_complete,
        )
        self._store.set("lastOutcome", result)
        logger.info("battle against %s ended: %s (reward %d)", enemy.name, outcome.value, reward)
        self._bus.publish(BattleOutcome(result=outcome, enemy=enemy.name, reward=reward))
        self._bus.publish(ScreenTransition(target=step.next_screen))
        return result
