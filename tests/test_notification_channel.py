from __future__ import annotations

from datetime import date

from app.schemas.events import (
    OnlineUsersEvent,
    SessionGoingLiveEvent,
    SlotSummary,
    notification_event_adapter,
)
from app.schemas.user import UserSummary
from app.services.notification_service import NotificationChannel, PresenceRegistry


class _Recorder:
    def __init__(self):
        self.messages = []

    def deliver(self, message: dict) -> None:
        self.messages.append(message)


class _Broken:
    def deliver(self, message: dict) -> None:
        raise RuntimeError("socket closed")


def _going_live() -> SessionGoingLiveEvent:
    return SessionGoingLiveEvent(
        session_id=7,
        skill="Go",
        teacher=UserSummary(id=1, name="Teacher", email="t@test.edu"),
        slot=SlotSummary(session_id=7, date=date(2024, 1, 1), start_time="10:00", end_time="11:00"),
    )


def test_registry_starts_empty_and_tracks_handles():
    registry = PresenceRegistry()
    assert registry.online_user_ids() == []

    first, second = _Recorder(), _Recorder()
    registry.register(2, first)
    registry.register(1, second)

    assert registry.online_user_ids() == [1, 2]
    assert registry.get(2) is first
    assert registry.unregister(2) is True
    assert registry.get(2) is None
    assert registry.unregister(2) is False


def test_newer_connection_replaces_older_one():
    registry = PresenceRegistry()
    old, new = _Recorder(), _Recorder()
    registry.register(5, old)
    registry.register(5, new)

    # Closing the old socket must not log the user out.
    assert registry.unregister(5, old) is False
    assert registry.get(5) is new
    assert registry.unregister(5, new) is True


def test_connect_and_disconnect_broadcast_online_users():
    channel = NotificationChannel(PresenceRegistry())
    alice, bob = _Recorder(), _Recorder()

    channel.connect(1, alice)
    channel.connect(2, bob)

    assert alice.messages[-1] == {"event": "online_users", "user_ids": [1, 2]}
    assert bob.messages[-1] == {"event": "online_users", "user_ids": [1, 2]}

    channel.disconnect(2, bob)
    assert alice.messages[-1] == {"event": "online_users", "user_ids": [1]}
    assert len(bob.messages) == 1
    assert channel.is_online(1)
    assert not channel.is_online(2)


def test_emit_to_offline_user_is_a_no_op():
    channel = NotificationChannel()
    assert channel.emit_to_user(42, _going_live()) is False


def test_emit_preserves_order_per_handle():
    channel = NotificationChannel(PresenceRegistry())
    handle = _Recorder()
    channel.connect(1, handle)
    handle.messages.clear()

    channel.emit_to_user(1, _going_live())
    channel.emit_to_user(1, OnlineUsersEvent(user_ids=[1]))

    assert [m["event"] for m in handle.messages] == ["session_going_live", "online_users"]
    assert handle.messages[0]["slot"]["date"] == "2024-01-01"


def test_emit_to_users_counts_online_and_dedupes():
    channel = NotificationChannel(PresenceRegistry())
    handle = _Recorder()
    channel.connect(1, handle)
    handle.messages.clear()

    delivered = channel.emit_to_users([1, 1, 3], _going_live())

    assert delivered == 1
    assert len(handle.messages) == 1


def test_failing_handle_does_not_raise():
    channel = NotificationChannel(PresenceRegistry())
    channel.registry.register(9, _Broken())
    healthy = _Recorder()
    channel.registry.register(10, healthy)

    assert channel.emit_to_user(9, _going_live()) is False
    assert channel.broadcast(OnlineUsersEvent(user_ids=[9, 10])) == 1
    assert healthy.messages == [{"event": "online_users", "user_ids": [9, 10]}]


def test_wire_messages_parse_back_to_the_event_union():
    message = _going_live().model_dump(mode="json")
    parsed = notification_event_adapter.validate_python(message)
    assert isinstance(parsed, SessionGoingLiveEvent)
    assert parsed.slot.start_time == "10:00"
