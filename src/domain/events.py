"""
Session event channel - publish/subscribe notifications.

Components interested in session status changes (bound at confirmation,
ended at logout) subscribe a callback and keep the returned Subscription.
Calling Subscription.unsubscribe() removes exactly that callback.
"""

import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionEvent:
    """Session status change."""

    kind: Literal["bound", "ended"]
    username: str
    session_id: str


class Subscription:
    """Handle returned by EventChannel.subscribe()."""

    def __init__(self, channel: "EventChannel", token: int) -> None:
        self._channel = channel
        self._token = token

    @property
    def active(self) -> bool:
        return self._channel._has(self._token)

    def unsubscribe(self) -> None:
        """Remove the subscriber. Safe to call more than once."""
        self._channel._remove(self._token)


class EventChannel:
    """Thread-safe publish/subscribe channel for SessionEvent."""

    def __init__(self) -> None:
        self._subscribers: dict[int, Callable[[SessionEvent], None]] = {}
        self._tokens = itertools.count()
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[SessionEvent], None]) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = callback
        return Subscription(self, token)

    def publish(self, event: SessionEvent) -> None:
        """
        Deliver event to every current subscriber in subscription order.

        A subscriber that raises is logged and skipped; delivery to the
        remaining subscribers continues.
        """
        with self._lock:
            callbacks = list(self._subscribers.values())

        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Session event subscriber failed for %s event", event.kind)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _has(self, token: int) -> bool:
        with self._lock:
            return token in self._subscribers

    def _remove(self, token: int) -> None:
        with self._lock:
            self._subscribers.pop(token, None)
