"""Save slots kept in a SQL table through SQLAlchemy."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from gembattle.domain.errors import SlotStoreError
from gembattle.models import SaveSlot


class SqlSlotStore:
    """One ``save_slots`` row per slot.

    ``namespace`` prefixes every key so several runs can share one table.
    """

    def __init__(self, session_factory: sessionmaker[Session], *, namespace: str = "") -> None:
        self._session_factory = session_factory
        self._prefix = f"{namespace}/" if namespace else ""

    def _key(self, slot: str) -> str:
        return f"{self._prefix}{slot}"

    def read(self, slot: str) -> str | None:
        try:
            with self._session_factory() as session:
                row = session.get(SaveSlot, self._key(slot))
                return row.payload if row is not None else None
        except SQLAlchemyError as exc:
            raise SlotStoreError(f"cannot read slot {slot!r}") from exc

    def write(self, slot: str, payload: str) -> None:
        try:
            with self._session_factory.begin() as session:
                row = session.get(SaveSlot, self._key(slot))
                if row is None:
                    session.add(SaveSlot(slot=self._key(slot), payload=payload))
                else:
                    row.payload = payload
        except SQLAlchemyError as exc:
            raise SlotStoreError(f"cannot write slot {slot!r}") from exc

    def delete(self, slot: str) -> None:
        try:
            with self._session_factory.begin() as session:
                session.execute(delete(SaveSlot).where(SaveSlot.slot == self._key(slot)))
        except SQLAlchemyError as exc:
            raise SlotStoreError(f"cannot delete slot {slot!r}") from exc

    def slots(self) -> list[str]:
        try:
            with self._session_factory() as session:
                keys = session.scalars(select(SaveSlot.slot).order_by(SaveSlot.slot))
                return [
                    key[len(self._prefix) :]
                    for key in keys
                    if key.startswith(self._prefix) and "/" not in key[len(self._prefix) :]
                ]
        except SQLAlchemyError as exc:
            raise SlotStoreError("cannot list slots") from exc
