"""SQLAlchemy models for the gem battle engine.

This module exports the declarative base and the save-slot table used by the
SQL slot backend.
"""

from .base import Base, TimestampMixin
from .save_slot import SaveSlot

__all__ = ["Base", "SaveSlot", "TimestampMixin"]
