# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Listener fan-out with detachable subscriptions."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Generic, List, Optional, TypeVar

_log = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    def __init__(self, hub: "ListenerHub", listener: Callable) -> None:
        self._hub = hub
        self._listener = listener

    @property
    def active(self) -> bool:
        return self._listener in self._hub._listeners

    def unsubscribe(self) -> None:
        self._hub._discard(self._listener)


class ListenerHub(Generic[T]):
    """Delivers values to listeners in emit order.

    An emit issued from inside a listener is queued until the current value
    has reached every listener.
    """

    def __init__(self) -> None:
        self._listeners: List[Callable[[T], None]] = []
        self._pending: Deque[T] = deque()
        self._draining = False

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _discard(self, listener: Callable[[T], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear(self) -> None:
        self._listeners.clear()
        self._pending.clear()

    def emit(self, value: T) -> None:
        self._pending.append(value)
        if self._draining:
            return
        self._draining = True
        try:
            while self._pending:
                current = self._pending.popleft()
                for listener in list(self._listeners):
                    try:
                        listener(current)
                    except Exception:
                        _log.exception("Listener %r failed", listener)
        finally:
            self._draining = False


@dataclass(frozen=True)
class IdentityChange:
    # None: the lower sign-in layer reports no signed-in user.
    email: Optional[str]


class IdentityChannel(ListenerHub[IdentityChange]):
    """Notifications from a lower-level sign-in layer.

    Publish on the event loop thread; subscribers schedule async work.
    """

    def publish(self, email: Optional[str]) -> None:
        self.emit(IdentityChange(email=email))
