"""In-process slot store for tests and headless runs."""

from __future__ import annotations


class MemorySlotStore:
    """Keeps payloads in a dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._slots: dict[str, str] = dict(initial or {})

    def read(self, slot: str) -> str | None:
        return self._slots.get(slot)

    def write(self, slot: str, payload: str) -> None:
        self._slots[slot] = payload

    def delete(self, slot: str) -> None:
        self._slots.pop(slot, None)

    def slots(self) -> list[str]:
        return sorted(self._slots)
