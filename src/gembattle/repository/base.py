"""Save-slot backend interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SlotStore(Protocol):
    """String payloads stored under fixed slot names.

    Implementations raise :class:`~gembattle.domain.errors.SlotStoreError`
    when the underlying medium fails.
    """

    def read(self, slot: str) -> str | None: ...

    def write(self, slot: str, payload: str) -> None: ...

    def delete(self, slot: str) -> None: ...

    def slots(self) -> list[str]: ...
