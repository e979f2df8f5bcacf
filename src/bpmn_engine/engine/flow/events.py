from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

Listener = Callable[..., Any]


@dataclass(slots=True)
class _Subscription:
    listener: Listener
    once: bool


class EventEmitter:
    """Synchronous observer registry.

    Listeners are called in subscription order, in the caller's stack, at the
    point the event is emitted. A listener registered with :meth:`once` is
    removed before it is invoked.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[_Subscription]] = {}

    def on(self, event: str, listener: Listener) -> None:
        self._subscriptions.setdefault(event, []).append(_Subscription(listener, once=False))

    def once(self, event: str, listener: Listener) -> None:
        self._subscriptions.setdefault(event, []).append(_Subscription(listener, once=True))

    def off(self, event: str, listener: Listener) -> None:
        subs = self._subscriptions.get(event)
        if not subs:
            return
        # Equality rather than identity: bound methods are recreated on every access.
        self._subscriptions[event] = [s for s in subs if s.listener != listener]

    def listener_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        subs = self._subscriptions.get(event)
        if not subs:
            return False

        # Snapshot so listeners may subscribe/unsubscribe while being notified.
        for sub in list(subs):
            current = self._subscriptions.get(event, [])
            if not any(s is sub for s in current):
                continue
            if sub.once:
                self._subscriptions[event] = [s for s in current if s is not sub]
            sub.listener(*args)
        return True
