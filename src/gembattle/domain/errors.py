"""Exception hierarchy for the battle domain."""

from __future__ import annotations


class GemBattleError(Exception):
    """Base class for every error raised by the engine."""


class UnknownGemError(GemBattleError, KeyError):
    """A gem key is not present in the static gem registry.

    Gem keys never come from user input at this layer, so this signals a
    catalog/definition mismatch and is not recovered.
    """

    def __init__(self, gem_key: str) -> None:
        super().__init__(gem_key)
        self.gem_key = gem_key

    def __str__(self) -> str:
        return f"unknown gem key: {self.gem_key!r}"


class InvalidTransitionError(GemBattleError):
    """An operation was requested in a turn state that does not allow it."""


class ConfigurationError(GemBattleError):
    """Static content or rules are inconsistent."""


class SlotStoreError(GemBattleError):
    """A save-slot backend failed to read or write."""
