"""
Real-time notification events.

Every event pushed over the notification channel is one of the models
below, discriminated on ``event``. Emitters build the model; the channel
sends ``model_dump(mode="json")``; consumers can parse with
``notification_event_adapter``.
"""

import datetime as dt
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from .connection import ConnectionRequestResponse
from .user import UserSummary


class SlotSummary(BaseModel):
    session_id: int
    date: dt.date
    start_time: str
    end_time: str

    @classmethod
    def from_model(cls, session) -> "SlotSummary":
        return cls(
            session_id=session.id,
            date=session.slot_date,
            start_time=session.start_time,
            end_time=session.end_time,
        )


class SessionInvitationEvent(BaseModel):
    event: Literal["session_invitation"] = "session_invitation"
    teacher: UserSummary
    skill: str
    price: int
    slots: List[SlotSummary]


class SessionGoingLiveEvent(BaseModel):
    event: Literal["session_going_live"] = "session_going_live"
    session_id: int
    skill: str
    teacher: UserSummary
    slot: SlotSummary


class ConnectionRequestCreatedEvent(BaseModel):
    event: Literal["connection_request_created"] = "connection_request_created"
    request: ConnectionRequestResponse


class ConnectionRequestRespondedEvent(BaseModel):
    event: Literal["connection_request_responded"] = "connection_request_responded"
    request: ConnectionRequestResponse
    accepted: bool


class OnlineUsersEvent(BaseModel):
    event: Literal["online_users"] = "online_users"
    user_ids: List[int]


NotificationEvent = Annotated[
    Union[
        SessionInvitationEvent,
        SessionGoingLiveEvent,
        ConnectionRequestCreatedEvent,
        ConnectionRequestRespondedEvent,
        OnlineUsersEvent,
    ],
    Field(discriminator="event"),
]

notification_event_adapter = TypeAdapter(NotificationEvent)
