from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional, Protocol

from pydantic import BaseModel

from app.schemas.events import OnlineUsersEvent

logger = logging.getLogger(__name__)


class ConnectionHandle(Protocol):
    """A live client connection that accepts JSON-ready messages."""

    def deliver(self, message: dict) -> None:
        ...


class PresenceRegistry:
    """
    Process-scoped map of online user id -> connection handle.

    Empty on creation; entries are added on connect and removed on
    disconnect. One handle per user: a newer connection replaces the
    older one. Nothing is persisted.
    """

    def __init__(self) -> None:
        self._handles: Dict[int, ConnectionHandle] = {}
        self._lock = threading.Lock()

    def register(self, user_id: int, handle: ConnectionHandle) -> None:
        with self._lock:
            self._handles[user_id] = handle

    def unregister(self, user_id: int, handle: Optional[ConnectionHandle] = None) -> bool:
        """Remove the user's entry; when ``handle`` is given only if it is still current."""
        with self._lock:
            current = self._handles.get(user_id)
            if current is None:
                return False
            if handle is not None and current is not handle:
                return False
            del self._handles[user_id]
            return True

    def get(self, user_id: int) -> Optional[ConnectionHandle]:
        with self._lock:
            return self._handles.get(user_id)

    def online_user_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._handles)

    def handles(self) -> List[ConnectionHandle]:
        with self._lock:
            return list(self._handles.values())


class NotificationChannel:
    """
    Fire-and-forget push of notification events to online users.

    Emitting to a user with no registered handle is a no-op. There is no
    offline queue and no retry.
    """

    def __init__(self, registry: Optional[PresenceRegistry] = None) -> None:
        self.registry = registry if registry is not None else PresenceRegistry()

    def connect(self, user_id: int, handle: ConnectionHandle) -> None:
        self.registry.register(user_id, handle)
        logger.info("User %s connected to notification channel", user_id)
        self._broadcast_online_users()

    def disconnect(self, user_id: int, handle: Optional[ConnectionHandle] = None) -> None:
        if self.registry.unregister(user_id, handle):
            logger.info("User %s disconnected from notification channel", user_id)
            self._broadcast_online_users()

    def is_online(self, user_id: int) -> bool:
        return self.registry.get(user_id) is not None

    def emit_to_user(self, user_id: int, event: BaseModel) -> bool:
        """Push ``event`` to ``user_id`` if online. Returns True when handed to a handle."""
        handle = self.registry.get(user_id)
        if handle is None:
            logger.debug("User %s offline; dropping %s", user_id, getattr(event, "event", "event"))
            return False
        return self._deliver(handle, event.model_dump(mode="json"), user_id=user_id)

    def emit_to_users(self, user_ids: Iterable[int], event: BaseModel) -> int:
        """Emit one event to many users; returns how many were online."""
        delivered = 0
        for user_id in dict.fromkeys(user_ids):
            if self.emit_to_user(user_id, event):
                delivered += 1
        return delivered

    def broadcast(self, event: BaseModel) -> int:
        message = event.model_dump(mode="json")
        delivered = 0
        for handle in self.registry.handles():
            if self._deliver(handle, message):
                delivered += 1
        return delivered

    def _broadcast_online_users(self) -> None:
        self.broadcast(OnlineUsersEvent(user_ids=self.registry.online_user_ids()))

    @staticmethod
    def _deliver(handle: ConnectionHandle, message: dict, *, user_id: Optional[int] = None) -> bool:
        try:
            handle.deliver(message)
            return True
        except Exception as exc:
            logger.warning(
                "Notification delivery failed (user_id=%s, event=%s): %s",
                user_id,
                message.get("event"),
                exc,
            )
            return False
