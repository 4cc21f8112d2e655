"""Typed notification bus used to decouple the engine from presentation."""

from .bus import Bus, EventBus, InstrumentedBus, RecordedEvent
from .kinds import (
    EVENT_KINDS,
    BattleOutcome,
    BattleStarted,
    Event,
    GemExecuted,
    HandStateLoaded,
    HandStateSaved,
    HandUpdated,
    ProficiencyUpdated,
    ScreenTransition,
    SelectionChanged,
    ShopPurchase,
    TurnStarted,
    ZennyTransferred,
)

__all__ = [
    "EVENT_KINDS",
    "BattleOutcome",
    "BattleStarted",
    "Bus",
    "Event",
    "EventBus",
    "GemExecuted",
    "HandStateLoaded",
    "HandStateSaved",
    "HandUpdated",
    "InstrumentedBus",
    "ProficiencyUpdated",
    "RecordedEvent",
    "ScreenTransition",
    "SelectionChanged",
    "ShopPurchase",
    "TurnStarted",
    "ZennyTransferred",
]
