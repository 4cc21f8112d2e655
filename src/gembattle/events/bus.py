"""Synchronous typed publish/subscribe."""

from __future__ import annotations

import logging
from collections import Counter, deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, TypeVar

from .kinds import Event

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Event)
Handler = Callable[[E], None]
Unsubscribe = Callable[[], None]


class Bus(Protocol):
    """Interface shared by :class:`EventBus` and its wrappers."""

    def subscribe(self, kind: type[E], handler: Handler[E]) -> Unsubscribe: ...

    def publish(self, event: Event) -> int: ...


class EventBus:
    """Delivers each event to its subscribers in registration order.

    Handlers registered for ``Event`` itself receive every event, after the
    kind-specific handlers.  A failing handler is logged and does not stop
    delivery to the remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[Handler]] = {}

    def subscribe(self, kind: type[E], handler: Handler[E]) -> Unsubscribe:
        self._handlers.setdefault(kind, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: Event) -> int:
        """Deliver ``event`` and return how many handlers ran successfully."""

        targets = list(self._handlers.get(type(event), ()))
        if type(event) is not Event:
            targets.extend(self._handlers.get(Event, ()))

        delivered = 0
        for handler in targets:
            try:
                handler(event)
            except Exception:
                logger.exception("handler %r failed for %s", handler, type(event).__name__)
            else:
                delivered += 1
        return delivered

    def handler_count(self, kind: type[Event]) -> int:
        return len(self._handlers.get(kind, ()))

    def clear(self) -> None:
        self._handlers.clear()


@dataclass(frozen=True, slots=True)
class RecordedEvent:
    event: Event
    timestamp: datetime
    delivered: int


class InstrumentedBus:
    """Wraps another bus, counting traffic and remembering recent events.

    The wrapped bus is used through its public interface only.
    """

    def __init__(self, inner: Bus, *, history: int = 100, verbose: bool = False) -> None:
        self._inner = inner
        self.verbose = verbose
        self.emitted: Counter[str] = Counter()
        self.handled: Counter[str] = Counter()
        self.subscriptions: Counter[str] = Counter()
        self.recent: deque[RecordedEvent] = deque(maxlen=history)

    def subscribe(self, kind: type[E], handler: Handler[E]) -> Unsubscribe:
        self.subscriptions[kind.__name__] += 1
        if self.verbose:
            logger.debug("subscribe %s -> %r", kind.__name__, handler)
        return self._inner.subscribe(kind, handler)

    def publish(self, event: Event) -> int:
        name = type(event).__name__
        self.emitted[name] += 1
        if self.verbose:
            logger.debug("emit %s %r", name, event)
        delivered = self._inner.publish(event)
        self.handled[name] += delivered
        self.recent.append(RecordedEvent(event, datetime.now(UTC), delivered))
        return delivered

    def stats(self) -> dict[str, dict[str, int]]:
        return {
            "emitted": dict(self.emitted),
            "handled": dict(self.handled),
            "subscriptions": dict(self.subscriptions),
        }

    def recent_events(self, count: int = 10) -> list[RecordedEvent]:
        return list(self.recent)[-count:]

    def reset(self) -> None:
        self.emitted.clear()
        self.handled.clear()
        self.subscriptions.clear()
        self.recent.clear()
