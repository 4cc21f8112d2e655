"""Static game content: gem registry, classes and the enemy roster."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from .enums import GemColor, GemKind, PlayerClass
from .errors import ConfigurationError
from .models import GemDefinition


@dataclass(frozen=True, slots=True)
class ClassDefinition:
    """Base stats and signature gem of a playable class."""

    player_class: PlayerClass
    color: GemColor
    max_health: int
    base_stamina: int
    signature_gem: str
    starting_zenny: int = 0


@dataclass(frozen=True, slots=True)
class EnemyTemplate:
    """Unscaled enemy stats; actions use the ``"Attack 5"`` / ``"Steal 3"`` notation."""

    name: str
    max_health: int
    attack: int
    zenny: int
    actions: tuple[str, ...]
    defense: int = 0


def _gem(key: str, name: str, kind: GemKind, color: GemColor, cost: int, **values) -> GemDefinition:
    return GemDefinition(key=key, name=name, kind=kind, color=color, stamina_cost=cost, **values)


BASE_GEMS: dict[str, GemDefinition] = {
    gem.key: gem
    for gem in (
        _gem("redAttack", "Attack", GemKind.ATTACK, GemColor.RED, 2, damage=5),
        _gem("redBurst", "Burst", GemKind.ATTACK, GemColor.RED, 3, damage=10, rarity="Rare"),
        _gem(
            "redStrongAttack",
            "Strong Attack",
            GemKind.ATTACK,
            GemColor.RED,
            3,
            damage=8,
            rarity="Uncommon",
        ),
        _gem("blueMagicAttack", "Magic Attack", GemKind.ATTACK, GemColor.BLUE, 2, damage=7),
        _gem(
            "blueShield",
            "Shield",
            GemKind.SHIELD,
            GemColor.BLUE,
            2,
            defense=3,
            duration=2,
            rarity="Rare",
        ),
        _gem(
            "blueStrongHeal",
            "Strong Heal",
            GemKind.HEAL,
            GemColor.BLUE,
            3,
            heal=8,
            rarity="Uncommon",
        ),
        _gem("greenAttack", "Attack", GemKind.ATTACK, GemColor.GREEN, 1, damage=5),
        _gem(
            "greenPoison",
            "Poison",
            GemKind.POISON,
            GemColor.GREEN,
            2,
            poison=3,
            duration=2,
            rarity="Rare",
        ),
        _gem(
            "greenQuickAttack",
            "Quick Attack",
            GemKind.ATTACK,
            GemColor.GREEN,
            1,
            damage=3,
            rarity="Uncommon",
        ),
        _gem("greyHeal", "Heal", GemKind.HEAL, GemColor.GREY, 1, heal=5),
        _gem(
            "greyFocus",
            "Focus",
            GemKind.FOCUS,
            GemColor.GREY,
            0,
            stamina=2,
            rarity="Uncommon",
        ),
    )
}

BASIC_GEM_KEYS: tuple[str, ...] = ("redAttack", "blueMagicAttack", "greenAttack", "greyHeal")

CLASSES: dict[PlayerClass, ClassDefinition] = {
    PlayerClass.KNIGHT: ClassDefinition(
        player_class=PlayerClass.KNIGHT,
        color=GemColor.RED,
        max_health=40,
        base_stamina=3,
        signature_gem="redStrongAttack",
    ),
    PlayerClass.MAGE: ClassDefinition(
        player_class=PlayerClass.MAGE,
        color=GemColor.BLUE,
        max_health=30,
        base_stamina=4,
        signature_gem="blueStrongHeal",
    ),
    PlayerClass.ROGUE: ClassDefinition(
        player_class=PlayerClass.ROGUE,
        color=GemColor.GREEN,
        max_health=35,
        base_stamina=3,
        signature_gem="greenQuickAttack",
        starting_zenny=5,
    ),
}

# Bag composition on top of two of every basic gem.
CLASS_BAG_GEMS: dict[PlayerClass, tuple[tuple[str, int], ...]] = {
    PlayerClass.KNIGHT: (("redAttack", 3), ("redStrongAttack", 3)),
    PlayerClass.MAGE: (("blueMagicAttack", 3), ("blueStrongHeal", 3)),
    PlayerClass.ROGUE: (("greenAttack", 3), ("greenQuickAttack", 3)),
}

INITIAL_AVAILABLE: dict[PlayerClass, tuple[str, ...]] = {
    PlayerClass.KNIGHT: ("redBurst", "greyFocus"),
    PlayerClass.MAGE: ("blueShield", "greyFocus"),
    PlayerClass.ROGUE: ("greenPoison", "greyFocus"),
}

# Shop upgrade from the class-colour basic gem to the signature gem.
CLASS_UPGRADES: dict[PlayerClass, tuple[str, str]] = {
    PlayerClass.KNIGHT: ("redAttack", "redStrongAttack"),
    PlayerClass.MAGE: ("blueMagicAttack", "blueStrongHeal"),
    PlayerClass.ROGUE: ("greenAttack", "greenQuickAttack"),
}

ENEMIES: tuple[EnemyTemplate, ...] = (
    EnemyTemplate("Grunt", max_health=20, attack=5, zenny=3, actions=("Attack 5", "Defend", "Attack 3")),
    EnemyTemplate("Bandit", max_health=15, attack=7, zenny=3, actions=("Attack 7", "Steal 3", "Defend")),
    EnemyTemplate("Wolf", max_health=25, attack=6, zenny=3, actions=("Attack 4", "Charge", "Attack 6")),
)

MINI_BOSS = EnemyTemplate(
    "Dark Guardian", max_health=30, attack=6, zenny=5, actions=("Attack 6", "Charge", "Defend")
)


def class_definition(player_class: PlayerClass | str) -> ClassDefinition:
    """Look up a class, accepting either the enum or its string value."""

    return CLASSES[PlayerClass(player_class)]


def required_gem_keys(player_class: PlayerClass | str) -> tuple[str, ...]:
    """Basic gems plus the class signature gem: present in every record set."""

    return (*BASIC_GEM_KEYS, class_definition(player_class).signature_gem)


def validate_content(gems: Mapping[str, GemDefinition] = BASE_GEMS) -> None:
    """Raise :class:`ConfigurationError` if the tables reference missing gems."""

    for key, definition in gems.items():
        if definition.key != key:
            raise ConfigurationError(f"gem registered as {key!r} declares key {definition.key!r}")

    referenced = {
        *BASIC_GEM_KEYS,
        *(definition.signature_gem for definition in CLASSES.values()),
        *(key for composition in CLASS_BAG_GEMS.values() for key, _ in composition),
        *(key for keys in INITIAL_AVAILABLE.values() for key in keys),
        *(key for pair in CLASS_UPGRADES.values() for key in pair),
    }
    missing = sorted(referenced - gems.keys())
    if missing:
        raise ConfigurationError(f"content references unknown gems: {', '.join(missing)}")


validate_content()
