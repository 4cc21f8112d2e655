"""File-per-slot storage on disk."""

from __future__ import annotations

import re
from pathlib import Path

from gembattle.domain.errors import SlotStoreError

_SAFE_SLOT = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileSlotStore:
    """Persist each slot as ``<slot>.json`` under ``base_path``."""

    suffix = ".json"

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, slot: str) -> Path:
        if not _SAFE_SLOT.match(slot):
            raise SlotStoreError(f"invalid slot name: {slot!r}")
        return self.base_path / f"{slot}{self.suffix}"

    def read(self, slot: str) -> str | None:
        path = self._path_for(slot)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SlotStoreError(f"cannot read slot {slot!r}") from exc

    def write(self, slot: str, payload: str) -> None:
        path = self._path_for(slot)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise SlotStoreError(f"cannot write slot {slot!r}") from exc

    def delete(self, slot: str) -> None:
        path = self._path_for(slot)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise SlotStoreError(f"cannot delete slot {slot!r}") from exc

    def slots(self) -> list[str]:
        return sorted(path.stem for path in self.base_path.glob(f"*{self.suffix}"))
