"""
Auth Event Bus

Session lifecycle changes are published as events instead of living in
ambient global state. Anything interested (logging, caches, websockets)
subscribes to the bus held on app.state.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List

from qr_service.db.models import utc_now

logger = logging.getLogger(__name__)


class AuthEventType(str, enum.Enum):
    SIGNED_UP = "SIGNED_UP"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class AuthEvent:
    type: AuthEventType
    user_id: str
    occurred_at: datetime = field(default_factory=utc_now)


Listener = Callable[[AuthEvent], None]


class AuthEventBus:
    """Synchronous publish/subscribe for auth state changes."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register ``listener``.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: AuthEvent) -> None:
        # A failing listener must not stop the others or the auth flow.
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Auth event listener {listener!r} failed on {event.type.value}: {e}", exc_info=True)


def log_auth_event(event: AuthEvent) -> None:
    logger.info(f"{event.type.value} user={event.user_id}")
