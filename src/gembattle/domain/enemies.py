"""Enemy generation, day scaling and scripted actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from gembattle.utils.rng import RandomSource

from .content import ENEMIES, MINI_BOSS, EnemyTemplate
from .enums import BuffType, EnemyActionType
from .models import Enemy, PlayerState, StatusTimer
from .rules_config import DEFAULT_RULES, RulesConfig

logger = logging.getLogger(__name__)

_DEFAULT_AMOUNTS = {EnemyActionType.ATTACK: 5, EnemyActionType.STEAL: 3}


@dataclass(frozen=True, slots=True)
class EnemyActionResult:
    """What the enemy did on its turn."""

    action: str
    kind: EnemyActionType | None
    amount: int = 0
    blocked: int = 0
    message: str = ""


def parse_action(action: str) -> tuple[EnemyActionType | None, int]:
    """Split ``"Attack 5"`` into its type and amount.

    Unknown verbs yield ``(None, 0)``; a missing or malformed amount falls back
    to the verb's default.
    """

    verb, _, raw_amount = action.strip().partition(" ")
    try:
        kind = EnemyActionType(verb)
    except ValueError:
        return None, 0
    default = _DEFAULT_AMOUNTS.get(kind, 0)
    try:
        amount = int(raw_amount) if raw_amount else default
    except ValueError:
        logger.warning("malformed enemy action %r; using %d", action, default)
        amount = default
    return kind, amount


def scale_value(value: int, factor: float, day: int) -> int:
    """Apply ``factor`` once per day after the first."""

    if day <= 1:
        return value
    return max(1, round(value * factor ** (day - 1)))


def _scale_action(action: str, day: int, rules: RulesConfig) -> str:
    kind, amount = parse_action(action)
    if kind is EnemyActionType.ATTACK:
        return f"{kind.value} {scale_value(amount, rules.scaling.attack_factor, day)}"
    return action


def select_template(
    phase_index: int, battle_count: int, *, rules: RulesConfig = DEFAULT_RULES
) -> EnemyTemplate:
    if phase_index == rules.progression.mini_boss_phase_index:
        return MINI_BOSS
    return ENEMIES[battle_count % len(ENEMIES)]


def generate_enemy(
    day: int,
    phase_index: int,
    battle_count: int,
    random: RandomSource,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Enemy:
    """Build the scaled enemy for the given point in the run."""

    template = select_template(phase_index, battle_count, rules=rules)
    scaling = rules.scaling
    max_health = scale_value(template.max_health, scaling.health_factor, day)
    actions = [_scale_action(action, day, rules) for action in template.actions]
    enemy = Enemy(
        name=template.name,
        health=max_health,
        max_health=max_health,
        attack=scale_value(template.attack, scaling.attack_factor, day),
        zenny=scale_value(template.zenny, scaling.zenny_factor, day),
        actions=actions,
        defense=template.defense,
        is_mini_boss=template is MINI_BOSS,
    )
    enemy.action_queue = list(actions)
    random.shuffle(enemy.action_queue)
    prepare_next_action(enemy, random, rules=rules)
    return enemy


def prepare_next_action(
    enemy: Enemy, random: RandomSource, *, rules: RulesConfig = DEFAULT_RULES
) -> str | None:
    """Pop the next scripted action and top the queue back up."""

    if not enemy.action_queue:
        enemy.action_queue = list(enemy.actions)
        random.shuffle(enemy.action_queue)
    enemy.current_action = enemy.action_queue.pop(0) if enemy.action_queue else None

    wanted = rules.combat.action_queue_length - len(enemy.action_queue)
    if wanted > 0 and enemy.actions:
        refill = list(enemy.actions)
        random.shuffle(refill)
        enemy.action_queue.extend(refill[:wanted])
    return enemy.current_action


def tick_poison(enemy: Enemy) -> int:
    """Apply poison damage to the enemy; returns the damage dealt."""

    poison = enemy.buff(BuffType.POISON)
    if poison is None or enemy.health <= 0:
        return 0
    dealt = min(enemy.health, poison.value)
    enemy.health -= dealt
    return dealt


def resolve_enemy_action(
    enemy: Enemy, player: PlayerState, *, rules: RulesConfig = DEFAULT_RULES
) -> EnemyActionResult:
    """Carry out ``enemy.current_action`` against ``player``."""

    action = enemy.current_action or ""
    kind, amount = parse_action(action)

    if kind is EnemyActionType.ATTACK:
        damage = amount * enemy.next_attack_boost
        enemy.next_attack_boost = 1
        shield = player.buff(BuffType.SHIELD)
        blocked = min(damage, shield.value) if shield else 0
        dealt = min(player.health, damage - blocked)
        player.health -= dealt
        return EnemyActionResult(
            action, kind, dealt, blocked, f"{enemy.name} attacks for {dealt} damage"
        )

    if kind is EnemyActionType.DEFEND:
        refresh_timer(
            enemy.buffs,
            BuffType.DEFENSE,
            rules.combat.enemy_defend_value,
            rules.combat.enemy_defend_turns,
        )
        return EnemyActionResult(action, kind, rules.combat.enemy_defend_value, 0, f"{enemy.name} defends")

    if kind is EnemyActionType.CHARGE:
        enemy.next_attack_boost = rules.combat.charge_multiplier
        return EnemyActionResult(action, kind, 0, 0, f"{enemy.name} charges a stronger attack")

    if kind is EnemyActionType.STEAL:
        stolen = min(player.zenny, amount)
        player.zenny -= stolen
        return EnemyActionResult(action, kind, stolen, 0, f"{enemy.name} steals {stolen} zenny")

    logger.warning("enemy %s has unknown action %r", enemy.name, action)
    return EnemyActionResult(action, None, 0, 0, f"{enemy.name} makes a mysterious move")


def refresh_timer(timers: list[StatusTimer], buff_type: BuffType, value: int, turns: int) -> StatusTimer:
    """Attach a timer or refresh an existing one without stacking its value."""

    for timer in timers:
        if timer.type == buff_type:
            timer.value = max(timer.value, value)
            timer.turns = max(timer.turns, turns)
            return timer
    timer = StatusTimer(type=buff_type, value=value, turns=turns)
    timers.append(timer)
    return timer


def decay_timers(timers: list[StatusTimer]) -> list[StatusTimer]:
    """Count every timer down by one turn, dropping expired ones in place."""

    expired: list[StatusTimer] = []
    for timer in list(timers):
        timer.turns -= 1
        if timer.turns <= 0:
            timers.remove(timer)
            expired.append(timer)
    return expired
