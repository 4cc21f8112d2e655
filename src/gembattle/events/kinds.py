"""Typed notification payloads.

Each event kind is a frozen dataclass deriving from :class:`Event`; handlers
subscribe by class, so a misspelt channel name is an ``AttributeError`` at
import time rather than a handler that silently never fires.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gembattle.domain.enums import OutcomeResult, Screen


@dataclass(frozen=True, slots=True)
class Event:
    """Base of every event; subscribing to it receives all events."""


@dataclass(frozen=True, slots=True)
class SelectionChanged(Event):
    index: int
    selected: bool
    selected_indices: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class GemExecuted(Event):
    gem_key: str
    succeeded: bool
    effect: str
    amount: int = 0


@dataclass(frozen=True, slots=True)
class ProficiencyUpdated(Event):
    gem_key: str
    success_count: int
    failure_chance: float


@dataclass(frozen=True, slots=True)
class HandUpdated(Event):
    size: int


@dataclass(frozen=True, slots=True)
class BattleStarted(Event):
    enemy: str
    day: int
    phase: str


@dataclass(frozen=True, slots=True)
class TurnStarted(Event):
    turn: int


@dataclass(frozen=True, slots=True)
class BattleOutcome(Event):
    result: OutcomeResult
    enemy: str
    reward: int = 0


@dataclass(frozen=True, slots=True)
class ScreenTransition(Event):
    target: Screen
    context: dict[str, object] = field(default_factory=dict, compare=False)


@dataclass(frozen=True, slots=True)
class HandStateSaved(Event):
    size: int


@dataclass(frozen=True, slots=True)
class HandStateLoaded(Event):
    size: int


@dataclass(frozen=True, slots=True)
class ShopPurchase(Event):
    action: str
    cost: int
    gem_key: str = ""


@dataclass(frozen=True, slots=True)
class ZennyTransferred(Event):
    amount: int  # positive into the journey wallet
    journey_zenny: int
    meta_zenny: int


EVENT_KINDS: tuple[type[Event], ...] = (
    SelectionChanged,
    GemExecuted,
    ProficiencyUpdated,
    HandUpdated,
    BattleStarted,
    TurnStarted,
    BattleOutcome,
    ScreenTransition,
    HandStateSaved,
    HandStateLoaded,
    ShopPurchase,
    ZennyTransferred,
)
