"""Injected key/value store holding the engine's working memory."""

from __future__ import annotations

import copy
from collections.abc import Mapping, MutableMapping
from dataclasses import fields, is_dataclass
from typing import Any

_MISSING = object()


class StateStore:
    """Dotted-path state tree.

    Paths address nested mappings (``"classGemProficiency.Knight"``) or
    dataclass attributes (``"player.health"``).  ``set`` creates missing
    intermediate mappings.  Components receive an instance in their
    constructor; there is no process-wide store.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._tree: dict[str, Any] = dict(initial or {})

    def get(self, path: str, default: Any = None) -> Any:
        node: Any = self._tree
        for part in path.split("."):
            node = _child(node, part)
            if node is _MISSING:
                return default
        return node

    def set(self, path: str, value: Any) -> None:
        parts = path.split(".")
        node: Any = self._tree
        for part in parts[:-1]:
            child = _child(node, part)
            if child is _MISSING or child is None:
                if not isinstance(node, MutableMapping):
                    raise KeyError(f"cannot create '{part}' under non-mapping in {path!r}")
                child = {}
                node[part] = child
            node = child
        leaf = parts[-1]
        if isinstance(node, MutableMapping):
            node[leaf] = value
        elif is_dataclass(node) and leaf in {f.name for f in fields(node)}:
            setattr(node, leaf, value)
        else:
            raise KeyError(f"cannot set {path!r}")

    def update(self, values: Mapping[str, Any]) -> None:
        """Set several paths at once."""

        for path, value in values.items():
            self.set(path, value)

    def delete(self, path: str) -> None:
        parent_path, _, leaf = path.rpartition(".")
        parent = self.get(parent_path) if parent_path else self._tree
        if isinstance(parent, MutableMapping):
            parent.pop(leaf, None)
        elif is_dataclass(parent) and hasattr(parent, leaf):
            setattr(parent, leaf, None)

    def __contains__(self, path: str) -> bool:
        return self.get(path, _MISSING) is not _MISSING

    def snapshot(self) -> dict[str, Any]:
        """Return a deep copy of the whole tree."""

        return copy.deepcopy(self._tree)

    def restore(self, tree: Mapping[str, Any]) -> None:
        """Replace the whole tree with a deep copy of ``tree``."""

        self._tree = copy.deepcopy(dict(tree))


def _child(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(key, _MISSING)
    if is_dataclass(node) and not isinstance(node, type):
        return getattr(node, key, _MISSING)
    return _MISSING
