"""Declarative rule configuration for the battle domain."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import DayPhase


@dataclass(frozen=True, slots=True)
class ProficiencyRules:
    """Gem learning curve."""

    full_proficiency_threshold: int = 6
    base_failure_chance: float = 0.9
    failure_step: float = 0.15  # per recorded success


@dataclass(frozen=True, slots=True)
class CatalogRules:
    """Unlock limits."""

    max_capacity: int = 15
    unlock_cost: int = 50  # meta zenny


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Per-turn combat constants."""

    hand_size: int = 3
    gem_bag_size: int = 20
    off_color_multiplier: float = 0.75
    focus_multiplier: float = 1.2
    focus_turns: int = 2
    failure_backfire_ratio: float = 0.5
    default_shield_turns: int = 2
    default_poison_turns: int = 3
    enemy_defend_value: int = 3
    enemy_defend_turns: int = 2
    charge_multiplier: int = 2
    action_queue_length: int = 3


@dataclass(frozen=True, slots=True)
class EnemyScalingRules:
    """Multiplicative growth applied for each day after the first."""

    health_factor: float = 1.15
    attack_factor: float = 1.10
    zenny_factor: float = 1.10


@dataclass(frozen=True, slots=True)
class RewardRules:
    """Victory payouts."""

    flat_reward: int = 10
    mini_boss_reward: int = 30
    mini_boss_name: str = "Dark Guardian"
    journey_complete_bonus: int = 100


@dataclass(frozen=True, slots=True)
class ProgressionRules:
    """Run length and pacing."""

    max_days: int = 7
    battles_per_day: int = 3
    phases: tuple[str, ...] = tuple(phase.value for phase in DayPhase)
    mini_boss_phase_index: int = 2


@dataclass(frozen=True, slots=True)
class ShopRules:
    """Between-battle purchases, paid in journey zenny."""

    buy_gem_cost: int = 3
    discard_gem_cost: int = 3
    upgrade_gem_cost: int = 5
    heal_cost: int = 3
    heal_amount: int = 10
    class_color_chance: float = 0.55  # otherwise grey


@dataclass(frozen=True, slots=True)
class CampRules:
    """End-of-day rest."""

    rest_heal_ratio: float = 0.25


@dataclass(frozen=True, slots=True)
class SaveRules:
    """Persistence policy."""

    max_snapshot_age_days: int = 7


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    proficiency: ProficiencyRules = ProficiencyRules()
    catalog: CatalogRules = CatalogRules()
    combat: CombatRules = CombatRules()
    scaling: EnemyScalingRules = EnemyScalingRules()
    rewards: RewardRules = RewardRules()
    progression: ProgressionRules = ProgressionRules()
    shop: ShopRules = ShopRules()
    camp: CampRules = CampRules()
    saves: SaveRules = SaveRules()


DEFAULT_RULES = RulesConfig()
