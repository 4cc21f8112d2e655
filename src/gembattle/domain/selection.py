"""Selection of hand slots for execution."""

from __future__ import annotations

import logging

from gembattle.events import Bus, SelectionChanged
from gembattle.state import StateStore

from .enums import SelectionContext

logger = logging.getLogger(__name__)

SELECTION_PATH = "selectedGems"
HAND_PATH = "hand"


class SelectionManager:
    """Tracks selected hand indices at ``selectedGems`` as a ``set[int]``.

    Battle context toggles membership; shop context holds at most one index.
    An index that does not point at a hand entry clears the selection.
    """

    def __init__(self, store: StateStore, bus: Bus) -> None:
        self._store = store
        self._bus = bus

    @property
    def selected(self) -> set[int]:
        selection = self._store.get(SELECTION_PATH)
        if selection is None:
            selection = set()
            self._store.set(SELECTION_PATH, selection)
        return selection

    def ordered(self) -> tuple[int, ...]:
        return tuple(sorted(self.selected))

    def toggle(self, index: int, context: SelectionContext = SelectionContext.BATTLE) -> set[int]:
        hand = self._store.get(HAND_PATH) or []
        if not 0 <= index < len(hand) or hand[index] is None:
            logger.warning("invalid selection index %s for hand of %d; clearing", index, len(hand))
            self.clear(index=index)
            return self.selected

        current = self.selected
        if SelectionContext(context) is SelectionContext.SHOP:
            updated = set() if current == {index} else {index}
        else:
            updated = current ^ {index}
        self._store.set(SELECTION_PATH, updated)
        self._publish(index, index in updated)
        return updated

    def clear(self, *, index: int = -1) -> None:
        self._store.set(SELECTION_PATH, set())
        self._publish(index, False)

    def discard(self, index: int) -> None:
        """Drop ``index`` without publishing; used while a batch resolves."""

        self.selected.discard(index)

    def _publish(self, index: int, selected: bool) -> None:
        self._bus.publish(
            SelectionChanged(index=index, selected=selected, selected_indices=self.ordered())
        )
