"""Save slot table."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class SaveSlot(Base, TimestampMixin):
    """A named save slot holding one serialized payload.

    Attributes:
        slot: Fixed slot name (e.g. ``stw_gameState``)
        payload: Serialized JSON string
    """

    __tablename__ = "save_slots"

    slot: Mapped[str] = mapped_column(String(128), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<SaveSlot(slot={self.slot!r}, size={len(self.payload or '')})>"
