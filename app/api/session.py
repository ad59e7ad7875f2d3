# app/api/session.py
"""
Session API: publish time slots, discover, book, join and end sessions.
"""

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from app.api.realtime import get_notification_channel
from app.database import get_db
from app.models.user import User
from app.schemas.session import (
    CreateSlotsRequest,
    EndSessionRequest,
    JoinResponse,
    PeerResponse,
    SessionResponse,
    TeacherAvailabilityResponse,
)
from app.services import session_service
from app.services.notification_service import NotificationChannel
from app.utils.security import get_current_user

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ======================
# CREATE TIME SLOTS
# ======================
@router.post("/create-slots", response_model=List[SessionResponse], status_code=201)
def create_time_slots(
    payload: CreateSlotsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    """Teacher publishes one bookable session per time slot and invites connections."""
    sessions = session_service.create_time_slots(
        db,
        channel,
        teacher_id=current_user.id,
        skill=payload.skill,
        slots=payload.time_slots,
        price=payload.price,
        invited_user_ids=payload.invited_users,
    )
    return [SessionResponse.from_model(s) for s in sessions]


# ======================
# DISCOVERY
# ======================
@router.get("/available", response_model=List[SessionResponse])
def get_available_sessions(
    skill: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    sessions = session_service.get_available_sessions(db, requester_id=current_user.id, skill=skill)
    return [SessionResponse.from_model(s) for s in sessions]


@router.get("/teachers", response_model=List[TeacherAvailabilityResponse])
def get_connected_teachers(
    skill: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Connected teachers of a skill who have open slots, most experienced first."""
    return session_service.get_connected_teachers_with_availability(
        db, requester_id=current_user.id, skill=skill
    )


@router.get("/peers", response_model=List[PeerResponse])
def find_peers(
    skill: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return session_service.find_peers(db, requester_id=current_user.id, skill=skill)


@router.get("/my-sessions", response_model=List[SessionResponse])
def get_my_sessions(
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    sessions = session_service.list_user_sessions(db, user_id=current_user.id, status=status)
    return [SessionResponse.from_model(s) for s in sessions]


# ======================
# LIFECYCLE
# ======================
@router.post("/{session_id}/book", response_model=SessionResponse)
def book_session(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = session_service.book_session(db, session_id=session_id, student_id=current_user.id)
    return SessionResponse.from_model(session)


@router.post("/{session_id}/join", response_model=JoinResponse)
def join_video_call(
    session_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    """Enter the session's call; only inside the slot's time window."""
    result = session_service.join_video_call(
        db,
        channel,
        session_id=session_id,
        requester_id=current_user.id,
    )
    return JoinResponse(
        session=SessionResponse.from_model(result.session),
        video_call_room=result.video_call_room,
        user_role=result.user_role,
    )


@router.post("/{session_id}/end", response_model=SessionResponse)
def end_session(
    session_id: int,
    payload: Optional[EndSessionRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = session_service.end_session(
        db,
        session_id=session_id,
        requester_id=current_user.id,
        feedback=payload.feedback if payload else None,
    )
    return SessionResponse.from_model(session)
