"""Resolution of a selected batch of gems.

``execute`` walks the selection in ascending hand order.  For every gem it
checks stamina, rolls against the proficiency table, applies the kind-specific
effect, pays the stamina cost and consumes the gem.  It mutates only the
objects it is handed and returns an :class:`EffectBatch`; deciding what the
batch means for the turn is left to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from gembattle.utils.rng import RandomSource

from .content import class_definition
from .enemies import refresh_timer
from .enums import BuffType, GemColor, GemKind
from .models import Enemy, Gem, PlayerState
from .proficiency import ProficiencyTable
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppliedEffect:
    """One gem's contribution to a batch."""

    index: int
    gem_key: str
    kind: GemKind
    succeeded: bool
    skipped: bool = False
    amount: int = 0
    backfire: int = 0
    stamina_spent: int = 0


@dataclass(slots=True)
class EffectBatch:
    """Ordered effects plus the net change they caused."""

    effects: list[AppliedEffect] = field(default_factory=list)
    enemy_health_delta: int = 0
    player_health_delta: int = 0
    stamina_delta: int = 0
    consumed: list[Gem] = field(default_factory=list)
    rejected: bool = False

    @property
    def applied(self) -> list[AppliedEffect]:
        return [effect for effect in self.effects if not effect.skipped]

    @property
    def skipped(self) -> list[AppliedEffect]:
        return [effect for effect in self.effects if effect.skipped]


def roll_failure(chance: float, random: RandomSource) -> bool:
    """Uniform draw; the gem fails when the draw lands under ``chance``."""

    draw = random.random()
    return chance > 0 and draw < chance


def effect_multiplier(gem: Gem, player: PlayerState, *, rules: RulesConfig = DEFAULT_RULES) -> float:
    """Colour effectiveness, plus the focus bonus for damage and healing."""

    own_color = class_definition(player.player_class).color
    multiplier = 1.0
    if gem.color not in (own_color, GemColor.GREY):
        multiplier *= rules.combat.off_color_multiplier
    if gem.kind in (GemKind.ATTACK, GemKind.HEAL) and player.buff(BuffType.FOCUSED):
        multiplier *= rules.combat.focus_multiplier
    return multiplier


def _scaled(value: int, multiplier: float) -> int:
    if value <= 0:
        return 0
    return max(1, int(value * multiplier))


def _hurt_player(player: PlayerState, amount: int) -> int:
    dealt = min(player.health, max(0, amount))
    player.health -= dealt
    return dealt


def _apply_attack(
    gem: Gem, amount: int, failed: bool, player: PlayerState, enemy: Enemy, rules: RulesConfig
) -> tuple[int, int]:
    if failed:
        return 0, _hurt_player(player, int(amount * rules.combat.failure_backfire_ratio))
    damage = max(0, amount - enemy.effective_defense)
    dealt = min(enemy.health, damage)
    enemy.health -= dealt
    return dealt, 0


def _apply_heal(
    gem: Gem, amount: int, failed: bool, player: PlayerState, enemy: Enemy, rules: RulesConfig
) -> tuple[int, int]:
    if failed:
        return 0, 0
    healed = max(0, min(player.max_health - player.health, amount))
    player.health += healed
    return healed, 0


def _apply_shield(
    gem: Gem, amount: int, failed: bool, player: PlayerState, enemy: Enemy, rules: RulesConfig
) -> tuple[int, int]:
    turns = gem.duration or rules.combat.default_shield_turns
    refresh_timer(player.buffs, BuffType.SHIELD, amount, turns)
    return amount, 0


def _apply_focus(
    gem: Gem, amount: int, failed: bool, player: PlayerState, enemy: Enemy, rules: RulesConfig
) -> tuple[int, int]:
    restored = max(0, min(player.base_stamina - player.stamina, amount))
    player.stamina += restored
    return restored, 0


def _apply_poison(
    gem: Gem, amount: int, failed: bool, player: PlayerState, enemy: Enemy, rules: RulesConfig
) -> tuple[int, int]:
    if failed:
        return 0, _hurt_player(player, int(amount * rules.combat.failure_backfire_ratio))
    turns = gem.duration or rules.combat.default_poison_turns
    refresh_timer(enemy.buffs, BuffType.POISON, amount, turns)
    return amount, 0


# (applied amount, backfire onto the player)
EffectHandler = Callable[[Gem, int, bool, PlayerState, Enemy, RulesConfig], tuple[int, int]]

_EFFECTS: dict[GemKind, tuple[EffectHandler, Callable[[Gem], int]]] = {
    GemKind.ATTACK: (_apply_attack, lambda gem: gem.damage),
    GemKind.HEAL: (_apply_heal, lambda gem: gem.heal),
    GemKind.SHIELD: (_apply_shield, lambda gem: gem.defense),
    GemKind.FOCUS: (_apply_focus, lambda gem: gem.stamina),
    GemKind.POISON: (_apply_poison, lambda gem: gem.poison),
}


def validate_selection(selection: set[int], hand: list[Gem]) -> bool:
    return all(0 <= index < len(hand) and hand[index] is not None for index in selection)


def execute(
    selection: set[int],
    hand: list[Gem],
    proficiency: ProficiencyTable,
    player: PlayerState,
    enemy: Enemy,
    *,
    random: RandomSource,
    rules: RulesConfig = DEFAULT_RULES,
) -> EffectBatch:
    """Resolve every selected gem against ``enemy``.

    A selection holding an index with no hand entry is stale: it is cleared
    and nothing resolves.  Otherwise consumed gems leave ``hand`` and every
    index leaves ``selection``, skipped or not.
    """

    if not validate_selection(selection, hand):
        logger.warning("stale selection %s for hand of %d; clearing", sorted(selection), len(hand))
        selection.clear()
        return EffectBatch(rejected=True)

    batch = EffectBatch()
    enemy_start, player_start, stamina_start = enemy.health, player.health, player.stamina
    consumed: set[int] = set()

    for index in sorted(selection):
        gem = hand[index]
        if gem.stamina_cost > player.stamina:
            batch.effects.append(AppliedEffect(index, gem.key, gem.kind, False, skipped=True))
            selection.discard(index)
            continue

        failed = roll_failure(proficiency.current_failure_chance(gem.key), random)
        proficiency.record_outcome(gem.key, not failed)

        handler, magnitude = _EFFECTS[gem.kind]
        amount = _scaled(magnitude(gem), effect_multiplier(gem, player, rules=rules))
        applied, backfire = handler(gem, amount, failed, player, enemy, rules)

        player.stamina -= gem.stamina_cost
        consumed.add(index)
        selection.discard(index)
        batch.effects.append(
            AppliedEffect(
                index,
                gem.key,
                gem.kind,
                not failed,
                amount=applied,
                backfire=backfire,
                stamina_spent=gem.stamina_cost,
            )
        )

    batch.consumed = [hand[index] for index in sorted(consumed)]
    hand[:] = [gem for position, gem in enumerate(hand) if position not in consumed]

    batch.enemy_health_delta = enemy.health - enemy_start
    batch.player_health_delta = player.health - player_start
    batch.stamina_delta = player.stamina - stamina_start
    return batch
