"""Lifecycle hook points for appointments and consultation sessions.

Subscribers run after the triggering write has been committed. A failing
subscriber is logged and skipped; it never rolls back the transition.
"""

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

APPOINTMENT_BOOKED = 'appointment_booked'
APPOINTMENT_STATUS_CHANGED = 'appointment_status_changed'
SESSION_INITIATED = 'session_initiated'
SESSION_STARTED = 'session_started'
SESSION_COMPLETED = 'session_completed'
SESSION_CANCELLED = 'session_cancelled'

EVENTS = (
    APPOINTMENT_BOOKED,
    APPOINTMENT_STATUS_CHANGED,
    SESSION_INITIATED,
    SESSION_STARTED,
    SESSION_COMPLETED,
    SESSION_CANCELLED,
)

Subscriber = Callable[..., Any]


class LifecycleHooks:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, event: str, callback: Subscriber) -> None:
        if event not in EVENTS:
            raise ValueError(f'Unknown lifecycle event: {event}')
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Subscriber) -> None:
        if callback in self._subscribers.get(event, []):
            self._subscribers[event].remove(callback)

    def emit(self, event: str, **payload: Any) -> None:
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(event=event, **payload)
            except Exception:
                logger.exception('Lifecycle subscriber %r failed for %s', callback, event)


hooks = LifecycleHooks()
