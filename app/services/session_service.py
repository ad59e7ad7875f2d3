# app/services/session_service.py
"""
Session Lifecycle Engine

Teachers publish bookable time slots, connected students book or join
them, and sessions move available -> booked -> ongoing -> completed
(or -> cancelled). Every transition is a conditional update in the
session store, so two racing callers can never both win.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from app import models
from app.crud import connection as connection_crud
from app.crud import session as session_crud
from app.crud import user as user_crud
from app.exceptions import (
    ForbiddenError,
    IneligibleSkillError,
    InputValidationError,
    InvalidStateError,
    NotFoundError,
    OutsideScheduleWindowError,
    SelfBookingForbiddenError,
)
from app.models.session import TERMINAL_STATUSES, SessionStatus
from app.models.skill import TEACHING_PROFICIENCY_LEVELS
from app.schemas.events import SessionGoingLiveEvent, SessionInvitationEvent, SlotSummary
from app.schemas.session import FeedbackIn, PeerResponse, TeacherAvailabilityResponse, TimeSlotIn
from app.schemas.user import UserSummary
from app.services.notification_service import NotificationChannel
from app.utils.schedule import is_within_window, resolve_now, session_window, slot_duration_minutes

logger = logging.getLogger(__name__)


@dataclass
class JoinResult:
    session: models.Session
    video_call_room: str
    user_role: str


# ======================
# HELPERS
# ======================

def _get_session_or_404(db: Session, session_id: int) -> models.Session:
    session = session_crud.get_session(db, session_id)
    if not session:
        raise NotFoundError("Session not found")
    return session


def _require_skill(skill: Optional[str]) -> str:
    skill_name = (skill or "").strip()
    if not skill_name:
        raise InputValidationError("Skill is required")
    return skill_name


def _ensure_room(db: Session, session_id: int, now: datetime) -> None:
    """Assign the video-call room once; later calls leave it untouched."""
    session_crud.assign_room_if_absent(db, session_id, session_crud.room_id_for(session_id, now))


def _resolve_join_role(db: Session, session: models.Session, requester_id: int) -> str:
    if session.teacher_id == requester_id:
        return "teacher"
    if session.student_id is not None:
        if session.student_id == requester_id:
            return "student"
        raise ForbiddenError("You are not authorized to join this session")
    if connection_crud.are_connected(db, requester_id, session.teacher_id):
        return "invited"
    raise ForbiddenError("You are not authorized to join this session")


# ======================
# CREATE TIME SLOTS
# ======================

def create_time_slots(
    db: Session,
    channel: Optional[NotificationChannel],
    *,
    teacher_id: int,
    skill: str,
    slots: Sequence[TimeSlotIn],
    price: int = 0,
    invited_user_ids: Iterable[int] = (),
) -> List[models.Session]:
    """
    Publish one available session per slot for a skill the teacher teaches,
    then invite the selected connections who are online right now.

    Raises:
        InputValidationError: missing skill/slots, malformed times, negative price
        NotFoundError: unknown teacher
        IneligibleSkillError: teacher does not list the skill as taught
    """
    skill_name = _require_skill(skill)
    if not slots:
        raise InputValidationError("At least one time slot is required")
    if price is None or price < 0:
        raise InputValidationError("Price must be a non-negative integer")

    teacher = user_crud.get_user(db, teacher_id)
    if not teacher:
        raise NotFoundError("Teacher not found")

    teaching = user_crud.get_teaching_skill(db, teacher_id, skill_name)
    if not teaching:
        logger.warning("User %s tried to offer untaught skill '%s'", teacher_id, skill_name)
        raise IneligibleSkillError(f"You can only create sessions for skills you teach ('{skill_name}')")

    prepared = []
    for slot in slots:
        if slot.date is None or not slot.start_time or not slot.end_time:
            raise InputValidationError("Each time slot needs a date, start time and end time")
        start_time = slot.start_time.strip()
        end_time = slot.end_time.strip()
        prepared.append((slot.date, start_time, end_time, slot_duration_minutes(start_time, end_time)))

    created = session_crud.create_sessions(
        db,
        teacher_id=teacher_id,
        skill=teaching.skill.title,
        slots=prepared,
        price=price,
    )
    db.commit()
    for session in created:
        db.refresh(session)

    logger.info(
        "Teacher %s published %d slot(s) for '%s'",
        teacher_id,
        len(created),
        teaching.skill.title,
    )

    # Only the teacher's connections may be invited.
    invited = [user_id for user_id in dict.fromkeys(invited_user_ids) if user_id != teacher_id]
    connected = connection_crud.find_connected_user_ids(db, teacher_id) if invited else set()
    recipients = [user_id for user_id in invited if user_id in connected]
    dropped = [user_id for user_id in invited if user_id not in connected]
    if dropped:
        logger.warning("Teacher %s invited non-connected user(s) %s; skipped", teacher_id, dropped)

    if channel is not None and recipients:
        event = SessionInvitationEvent(
            teacher=UserSummary.model_validate(teacher),
            skill=teaching.skill.title,
            price=price,
            slots=[SlotSummary.from_model(session) for session in created],
        )
        delivered = channel.emit_to_users(recipients, event)
        logger.info("Session invitation delivered to %d of %d invited user(s)", delivered, len(recipients))

    return created


# ======================
# BOOK
# ======================

def book_session(
    db: Session,
    *,
    session_id: int,
    student_id: int,
    now: Optional[datetime] = None,
) -> models.Session:
    """
    Book an available session for ``student_id``.

    The available -> booked move is a single conditional update, so of two
    concurrent bookings exactly one succeeds.
    """
    now = resolve_now(now)
    session = _get_session_or_404(db, session_id)

    if session.status != SessionStatus.AVAILABLE.value:
        raise InvalidStateError("Session is not available for booking")
    if session.teacher_id == student_id:
        raise SelfBookingForbiddenError("You cannot book your own session")

    if not session_crud.claim_available(db, session_id, student_id):
        db.rollback()
        logger.warning("Booking lost race (session_id=%s, student_id=%s)", session_id, student_id)
        raise InvalidStateError("Session is not available for booking")

    _ensure_room(db, session_id, now)
    db.commit()
    db.refresh(session)

    logger.info("Session %s booked by user %s", session_id, student_id)
    return session


# ======================
# DISCOVERY
# ======================

def get_available_sessions(
    db: Session,
    *,
    requester_id: int,
    skill: str,
    now: Optional[datetime] = None,
) -> List[models.Session]:
    """Open slots for ``skill`` from today on, taught by the requester's connections only."""
    skill_name = _require_skill(skill)
    teacher_ids = connection_crud.find_connected_user_ids(db, requester_id)
    if not teacher_ids:
        return []
    return session_crud.list_available(
        db,
        teacher_ids=teacher_ids,
        skill=skill_name,
        from_date=resolve_now(now).date(),
    )


def get_connected_teachers_with_availability(
    db: Session,
    *,
    requester_id: int,
    skill: str,
    now: Optional[datetime] = None,
) -> List[TeacherAvailabilityResponse]:
    skill_name = _require_skill(skill)
    connected_ids = connection_crud.find_connected_user_ids(db, requester_id)
    if not connected_ids:
        return []

    teachers = user_crud.find_teachers_of_skill(
        db,
        skill_name,
        proficiency_levels=TEACHING_PROFICIENCY_LEVELS,
        user_ids=connected_ids,
    )
    if not teachers:
        return []

    open_counts = session_crud.count_available_by_teacher(
        db,
        teacher_ids=[user.id for user, _ in teachers],
        skill=skill_name,
        from_date=resolve_now(now).date(),
    )
    # find_teachers_of_skill already orders by sessions_completed desc.
    return [
        TeacherAvailabilityResponse(
            teacher=UserSummary.model_validate(user),
            proficiency_level=level,
            sessions_completed=user.sessions_completed or 0,
            available_sessions=open_counts[user.id],
        )
        for user, level in teachers
        if open_counts.get(user.id)
    ]


def find_peers(db: Session, *, requester_id: int, skill: str) -> List[PeerResponse]:
    """Other users teaching ``skill`` at intermediate level or above. Exact filtering, no scoring."""
    skill_name = _require_skill(skill)
    return [
        PeerResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            proficiency_level=level,
            sessions_completed=user.sessions_completed or 0,
        )
        for user, level in user_crud.find_teachers_of_skill(
            db,
            skill_name,
            proficiency_levels=TEACHING_PROFICIENCY_LEVELS,
            exclude_user_id=requester_id,
        )
    ]


def list_user_sessions(db: Session, *, user_id: int, status: Optional[str] = None) -> List[models.Session]:
    if status and status not in {s.value for s in SessionStatus}:
        raise InputValidationError(
            "Invalid status. Use one of: " + ", ".join(s.value for s in SessionStatus)
        )
    return session_crud.list_for_user(db, user_id, status)


# ======================
# JOIN VIDEO CALL
# ======================

def join_video_call(
    db: Session,
    channel: Optional[NotificationChannel],
    *,
    session_id: int,
    requester_id: int,
    now: Optional[datetime] = None,
) -> JoinResult:
    """
    Let a participant into the session's call inside its time window.

    A connection of the teacher joining a session nobody has booked yet
    books it in the same step. When the teacher joins, their other online
    connections are told the session is going live.
    """
    now = resolve_now(now)
    session = _get_session_or_404(db, session_id)
    role = _resolve_join_role(db, session, requester_id)

    if session.status in TERMINAL_STATUSES:
        raise InvalidStateError(f"Session is {session.status} and can no longer be joined")

    window = session_window(session.slot_date, session.start_time, session.end_time)
    if not is_within_window(now, window):
        raise OutsideScheduleWindowError(
            f"Session can only be joined between {window[0].isoformat()} and {window[1].isoformat()}"
        )

    if role == "invited":
        if not session_crud.claim_available(db, session_id, requester_id):
            db.rollback()
            logger.warning("Join-to-book lost race (session_id=%s, user_id=%s)", session_id, requester_id)
            raise InvalidStateError("Session has already been booked by another user")
        role = "student"

    _ensure_room(db, session_id, now)
    if session_crud.mark_joined(db, session_id, role=role, joined_at=now) is None:
        db.rollback()
        raise InvalidStateError("Session can no longer be joined")

    db.commit()
    db.refresh(session)
    logger.info("User %s joined session %s as %s", requester_id, session_id, role)

    if role == "teacher" and channel is not None:
        _announce_going_live(db, channel, session)

    return JoinResult(session=session, video_call_room=session.video_call_room, user_role=role)


def _announce_going_live(db: Session, channel: NotificationChannel, session: models.Session) -> None:
    recipients = connection_crud.find_connected_user_ids(db, session.teacher_id)
    recipients.discard(session.teacher_id)
    if not recipients:
        return
    event = SessionGoingLiveEvent(
        session_id=session.id,
        skill=session.skill,
        teacher=UserSummary.model_validate(session.teacher),
        slot=SlotSummary.from_model(session),
    )
    delivered = channel.emit_to_users(sorted(recipients), event)
    logger.info("Session %s going live: notified %d online connection(s)", session.id, delivered)


# ======================
# END / CANCEL
# ======================

def end_session(
    db: Session,
    *,
    session_id: int,
    requester_id: int,
    feedback: Optional[FeedbackIn] = None,
) -> models.Session:
    """
    Complete a booked or ongoing session, store optional feedback, and
    bump the participants' completed-session counters.
    """
    session = _get_session_or_404(db, session_id)
    if requester_id not in (session.teacher_id, session.student_id):
        raise ForbiddenError("You are not a participant in this session")

    participant_ids = [session.teacher_id]
    if session.student_id is not None:
        participant_ids.append(session.student_id)

    completed = session_crud.complete(
        db,
        session_id,
        feedback_rating=feedback.rating if feedback else None,
        feedback_comment=feedback.comment if feedback else None,
        feedback_given_by_id=requester_id if feedback else None,
    )
    if not completed:
        db.rollback()
        raise InvalidStateError("Only booked or ongoing sessions can be ended")

    for user_id in participant_ids:
        user_crud.increment_sessions_completed(db, user_id)

    db.commit()
    db.refresh(session)
    logger.info("Session %s completed by user %s", session_id, requester_id)
    return session


def cancel_session(db: Session, *, session_id: int, requester_id: int) -> models.Session:
    session = _get_session_or_404(db, session_id)
    if requester_id not in (session.teacher_id, session.student_id):
        raise ForbiddenError("You are not a participant in this session")

    if not session_crud.cancel(db, session_id):
        db.rollback()
        raise InvalidStateError("Only available, booked or ongoing sessions can be cancelled")

    db.commit()
    db.refresh(session)
    logger.info("Session %s cancelled by user %s", session_id, requester_id)
    return session
