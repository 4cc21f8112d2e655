"""Save-slot backends."""

from .base import SlotStore
from .json_store import JsonFileSlotStore
from .memory import MemorySlotStore
from .sql_store import SqlSlotStore

__all__ = ["JsonFileSlotStore", "MemorySlotStore", "SlotStore", "SqlSlotStore"]
