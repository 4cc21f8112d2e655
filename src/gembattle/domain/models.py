"""Dataclasses describing every battle entity.

The engine keeps these objects inside an injected :class:`~gembattle.state.StateStore`
rather than on the components themselves, so a snapshot of the store is a
snapshot of the whole game.  Persistence adapters serialise the same types via
pydantic ``TypeAdapter``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .enums import BuffType, GemColor, GemKind, PlayerClass, TurnState

# --- Gems -----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GemDefinition:
    """Static registry entry describing a gem type."""

    key: str
    name: str
    kind: GemKind
    color: GemColor
    stamina_cost: int
    damage: int = 0
    heal: int = 0
    defense: int = 0
    poison: int = 0
    stamina: int = 0
    duration: int = 0
    rarity: str = "Common"

    @property
    def magnitude(self) -> int:
        """The number that matters for this gem's kind."""

        return {
            GemKind.ATTACK: self.damage,
            GemKind.HEAL: self.heal,
            GemKind.SHIELD: self.defense,
            GemKind.FOCUS: self.stamina,
            GemKind.POISON: self.poison,
        }[self.kind]


@dataclass(frozen=True, slots=True)
class Gem:
    """A gem drawn into the bag or hand; an immutable copy of its definition."""

    key: str
    instance_id: str
    name: str
    kind: GemKind
    color: GemColor
    stamina_cost: int
    damage: int = 0
    heal: int = 0
    defense: int = 0
    poison: int = 0
    stamina: int = 0
    duration: int = 0

    @classmethod
    def from_definition(cls, definition: GemDefinition, instance_id: str) -> Gem:
        return cls(
            key=definition.key,
            instance_id=instance_id,
            name=definition.name,
            kind=definition.kind,
            color=definition.color,
            stamina_cost=definition.stamina_cost,
            damage=definition.damage,
            heal=definition.heal,
            defense=definition.defense,
            poison=definition.poison,
            stamina=definition.stamina,
            duration=definition.duration,
        )


# --- Meta progression ------------------------------------------------------------


@dataclass(slots=True)
class ProficiencyRecord:
    """Learning progress for one gem type of one class."""

    success_count: int = 0
    failure_chance: float = 0.0


@dataclass(slots=True)
class CatalogState:
    """Unlocked and purchasable gem keys for one class."""

    unlocked: list[str] = field(default_factory=list)
    available: list[str] = field(default_factory=list)
    max_capacity: int = 15


# --- Combatants -------------------------------------------------------------------


@dataclass(slots=True)
class StatusTimer:
    """A timed buff or debuff (shield, focus, poison, defence)."""

    type: BuffType
    value: int
    turns: int


@dataclass(slots=True)
class PlayerState:
    """The player's run-scoped combat state."""

    player_class: PlayerClass
    health: int
    max_health: int
    stamina: int
    base_stamina: int
    zenny: int = 0
    buffs: list[StatusTimer] = field(default_factory=list)

    def buff(self, buff_type: BuffType) -> StatusTimer | None:
        return next((b for b in self.buffs if b.type == buff_type), None)


@dataclass(slots=True)
class Enemy:
    """An opponent for a single battle, already scaled for the current day."""

    name: str
    health: int
    max_health: int
    attack: int
    zenny: int
    actions: list[str]
    defense: int = 0
    is_mini_boss: bool = False
    action_queue: list[str] = field(default_factory=list)
    current_action: str | None = None
    next_attack_boost: int = 1
    buffs: list[StatusTimer] = field(default_factory=list)

    def buff(self, buff_type: BuffType) -> StatusTimer | None:
        return next((b for b in self.buffs if b.type == buff_type), None)

    @property
    def effective_defense(self) -> int:
        return self.defense + sum(b.value for b in self.buffs if b.type == BuffType.DEFENSE)


@dataclass(slots=True)
class Battle:
    """Transient aggregate for one encounter."""

    enemy: Enemy
    day: int
    phase_index: int
    state: TurnState = TurnState.NOT_STARTED
    turn_number: int = 1
    battle_over: bool = False
    return_screen: str | None = None


# --- Save data ----------------------------------------------------------------------


@dataclass(slots=True)
class SavedGame:
    """Serializable subset of the state tree written to the game-state slot."""

    player: PlayerState | None = None
    meta_zenny: int = 0
    current_day: int = 1
    current_phase_index: int = 0
    battle_count: int = 0
    gem_serial: int = 0
    hand: list[Gem] = field(default_factory=list)
    gem_bag: list[Gem] = field(default_factory=list)
    discard: list[Gem] = field(default_factory=list)
    class_gem_catalogs: dict[str, CatalogState] = field(default_factory=dict)
    class_gem_proficiency: dict[str, dict[str, ProficiencyRecord]] = field(
        default_factory=dict
    )
