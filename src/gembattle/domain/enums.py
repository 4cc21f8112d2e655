"""Enumerations used across the battle domain."""

from __future__ import annotations

from enum import StrEnum


class GemKind(StrEnum):
    """What a gem does when it resolves."""

    ATTACK = "attack"
    HEAL = "heal"
    SHIELD = "shield"
    FOCUS = "focus"
    POISON = "poison"


class GemColor(StrEnum):
    """Gem colors; a class uses its own color (and grey) at full effect."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    GREY = "grey"


class PlayerClass(StrEnum):
    """Playable classes."""

    KNIGHT = "Knight"
    MAGE = "Mage"
    ROGUE = "Rogue"


class TurnState(StrEnum):
    """States of the battle turn machine."""

    NOT_STARTED = "not_started"
    PLAYER_TURN = "player_turn"
    RESOLVING = "resolving"
    ENEMY_TURN = "enemy_turn"
    WON = "won"
    LOST = "lost"
    FLED = "fled"

    @property
    def is_terminal(self) -> bool:
        return self in (TurnState.WON, TurnState.LOST, TurnState.FLED)


class SelectionContext(StrEnum):
    """Screen context that decides the selection policy."""

    BATTLE = "battle"
    SHOP = "shop"


class Screen(StrEnum):
    """Screens the engine can ask the presentation layer to show."""

    CHARACTER_SELECT = "character_select"
    BATTLE = "battle"
    SHOP = "shop"
    CAMP = "camp"


class DayPhase(StrEnum):
    """The three battles of a day."""

    DAWN = "Dawn"
    DUSK = "Dusk"
    DARK = "Dark"


class BuffType(StrEnum):
    """Timed status effects carried by either combatant."""

    SHIELD = "shield"
    FOCUSED = "focused"
    POISON = "poison"
    DEFENSE = "defense"


class EnemyActionType(StrEnum):
    """Scripted enemy moves."""

    ATTACK = "Attack"
    DEFEND = "Defend"
    CHARGE = "Charge"
    STEAL = "Steal"


class OutcomeResult(StrEnum):
    """How a battle ended."""

    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"
