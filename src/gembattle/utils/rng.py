"""Injectable random sources for the battle engine.

Every chance-based rule in the engine (proficiency failure rolls, bag
shuffles, enemy action queues) draws from a single :class:`RandomSource`
handed to the component that needs it.  Production code uses
:class:`SeededRandom`, which derives a stable integer seed from a seed string
the same way for every run, so a battle can be replayed exactly.  Tests use
:class:`ScriptedRandom` to feed a fixed sequence of draws.

Examples:
    >>> rng = SeededRandom(generate_seed(run_id=1, day=1, phase="Dawn", context="battle"))
    >>> 0.0 <= rng.random() < 1.0
    True

    >>> scripted = ScriptedRandom([0.05, 0.95])
    >>> scripted.random(), scripted.random()
    (0.05, 0.95)
"""

from __future__ import annotations

import hashlib
import random as _random
from collections.abc import Iterable, MutableSequence, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class RandomSource(Protocol):
    """Uniform random draws used by the engine."""

    def random(self) -> float:
        """Return a float in ``[0.0, 1.0)``."""

    def shuffle(self, items: MutableSequence[Any]) -> None:
        """Shuffle ``items`` in place."""

    def choice(self, options: Sequence[T]) -> T:
        """Return one element of a non-empty sequence."""


def generate_seed(run_id: int, day: int, phase: str, context: str) -> str:
    """Generate a deterministic seed string from run state.

    Format: ``"run_id:day:phase:context"``

    Raises:
        ValueError: If run_id or day is negative
    """
    if run_id < 0:
        raise ValueError(f"run_id must be non-negative, got {run_id}")
    if day < 0:
        raise ValueError(f"day must be non-negative, got {day}")

    return f"{run_id}:{day}:{phase}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


class SeededRandom:
    """``random.Random`` seeded from an int or a seed string."""

    def __init__(self, seed: int | str | None = None) -> None:
        self.seed = seed
        if isinstance(seed, str):
            seed = _seed_to_int(seed)
        self._rng = _random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def shuffle(self, items: MutableSequence[Any]) -> None:
        self._rng.shuffle(items)

    def choice(self, options: Sequence[T]) -> T:
        if not options:
            raise ValueError("options list cannot be empty")
        return self._rng.choice(options)


class ScriptedRandom:
    """Replays a fixed sequence of draws; shuffles are the identity.

    Once the script is exhausted ``random()`` keeps returning ``default``.
    ``choice`` always picks the first option.
    """

    def __init__(self, draws: Iterable[float] = (), *, default: float = 0.99) -> None:
        self._draws = list(draws)
        self._position = 0
        self.default = default

    @property
    def consumed(self) -> int:
        """Number of draws taken so far."""

        return self._position

    def random(self) -> float:
        if self._position < len(self._draws):
            value = self._draws[self._position]
        else:
            value = self.default
        self._position += 1
        return value

    def shuffle(self, items: MutableSequence[Any]) -> None:
        return None

    def choice(self, options: Sequence[T]) -> T:
        if not options:
            raise ValueError("options list cannot be empty")
        return options[0]
