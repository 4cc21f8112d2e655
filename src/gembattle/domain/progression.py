"""Rewards and day/phase progression after a battle ends."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import OutcomeResult, Screen
from .models import Enemy
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class Progression:
    """Where the run stands after an outcome has been applied."""

    day: int
    phase_index: int
    battle_count: int
    next_screen: Screen
    journey_complete: bool = False
    bonus: int = 0


def calculate_reward(enemy: Enemy, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Flat payout, or the mini-boss payout when its identity matches."""

    if enemy.name == rules.rewards.mini_boss_name:
        return rules.rewards.mini_boss_reward
    return rules.rewards.flat_reward


def phase_name(phase_index: int, *, rules: RulesConfig = DEFAULT_RULES) -> str:
    phases = rules.progression.phases
    return phases[phase_index % len(phases)]


def advance(
    outcome: OutcomeResult,
    day: int,
    phase_index: int,
    battle_count: int,
    *,
    return_screen: Screen | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> Progression:
    """Apply an outcome to the day/phase counters and choose the next screen."""

    progression = rules.progression
    if outcome is OutcomeResult.DEFEAT:
        return Progression(day, phase_index, battle_count, Screen.CHARACTER_SELECT)

    battle_count += 1
    next_phase = phase_index + 1
    wrapped = next_phase >= len(progression.phases)
    next_phase %= len(progression.phases)

    if outcome is OutcomeResult.FLED:
        return Progression(day, next_phase, battle_count, return_screen or Screen.SHOP)

    if not wrapped:
        return Progression(day, next_phase, battle_count, Screen.SHOP)

    next_day = day + 1
    if next_day > progression.max_days:
        return Progression(
            day,
            next_phase,
            battle_count,
            Screen.CHARACTER_SELECT,
            journey_complete=True,
            bonus=rules.rewards.journey_complete_bonus,
        )
    return Progression(next_day, next_phase, battle_count, Screen.CAMP)
