"""
Session store.

State transitions are single conditional UPDATEs (compare-and-swap on
``status``); callers check the affected row count instead of reading
first and writing after.
"""

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.session import Session as SessionModel, SessionStatus


def room_id_for(session_id: int, assigned_at: datetime) -> str:
    """Room identifier derived from the session id and assignment time."""
    return f"session_{session_id}_{int(assigned_at.timestamp() * 1000)}"


def get_session(db: Session, session_id: int) -> Optional[SessionModel]:
    return db.query(SessionModel).filter(SessionModel.id == session_id).first()


def create_sessions(
    db: Session,
    *,
    teacher_id: int,
    skill: str,
    slots: Sequence[Tuple[date, str, str, int]],
    price: int = 0,
) -> List[SessionModel]:
    """Insert one available session per ``(date, start, end, duration)`` slot."""
    created = []
    for slot_date, start_time, end_time, duration in slots:
        session = SessionModel(
            teacher_id=teacher_id,
            skill=skill,
            status=SessionStatus.AVAILABLE.value,
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
            is_booked=False,
            duration=duration,
            price=price,
        )
        db.add(session)
        created.append(session)
    db.flush()
    return created


def claim_available(db: Session, session_id: int, student_id: int) -> bool:
    """available -> booked for ``student_id``; False if someone got there first."""
    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.status == SessionStatus.AVAILABLE.value,
        SessionModel.student_id.is_(None),
    ).update(
        {
            SessionModel.student_id: student_id,
            SessionModel.status: SessionStatus.BOOKED.value,
            SessionModel.is_booked: True,
            SessionModel.booked_by_id: student_id,
        },
        synchronize_session=False,
    )
    return updated == 1


def assign_room_if_absent(db: Session, session_id: int, room: str) -> bool:
    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.video_call_room.is_(None),
    ).update({SessionModel.video_call_room: room}, synchronize_session=False)
    return updated == 1


def mark_joined(db: Session, session_id: int, *, role: str, joined_at: datetime) -> Optional[str]:
    """
    Record a participant joining. Booked/ongoing sessions become ongoing.
    A teacher joining a still-available session only records the join time.
    Returns the resulting status, or None if the session can't be joined.
    """
    joined_column = (
        SessionModel.teacher_joined_at if role == "teacher" else SessionModel.student_joined_at
    )
    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.status.in_((SessionStatus.BOOKED.value, SessionStatus.ONGOING.value)),
    ).update(
        {SessionModel.status: SessionStatus.ONGOING.value, joined_column: joined_at},
        synchronize_session=False,
    )
    if updated == 1:
        return SessionStatus.ONGOING.value

    if role != "teacher":
        return None

    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.status == SessionStatus.AVAILABLE.value,
    ).update({joined_column: joined_at}, synchronize_session=False)
    return SessionStatus.AVAILABLE.value if updated == 1 else None


def complete(
    db: Session,
    session_id: int,
    *,
    feedback_rating: Optional[int] = None,
    feedback_comment: Optional[str] = None,
    feedback_given_by_id: Optional[int] = None,
) -> bool:
    values = {SessionModel.status: SessionStatus.COMPLETED.value}
    if feedback_rating is not None:
        values.update({
            SessionModel.feedback_rating: feedback_rating,
            SessionModel.feedback_comment: feedback_comment,
            SessionModel.feedback_given_by_id: feedback_given_by_id,
        })
    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.status.in_((SessionStatus.BOOKED.value, SessionStatus.ONGOING.value)),
    ).update(values, synchronize_session=False)
    return updated == 1


def cancel(db: Session, session_id: int) -> bool:
    updated = db.query(SessionModel).filter(
        SessionModel.id == session_id,
        SessionModel.status.in_((
            SessionStatus.AVAILABLE.value,
            SessionStatus.BOOKED.value,
            SessionStatus.ONGOING.value,
        )),
    ).update(
        {SessionModel.status: SessionStatus.CANCELLED.value, SessionModel.is_booked: False},
        synchronize_session=False,
    )
    return updated == 1


# ============================
# QUERIES
# ============================

def _available_query(db: Session, *, teacher_ids: Iterable[int], skill: str, from_date: date):
    return db.query(SessionModel).filter(
        SessionModel.status == SessionStatus.AVAILABLE.value,
        func.lower(SessionModel.skill) == func.lower(skill.strip()),
        SessionModel.slot_date >= from_date,
        SessionModel.teacher_id.in_(list(teacher_ids)),
    )


def list_available(
    db: Session,
    *,
    teacher_ids: Iterable[int],
    skill: str,
    from_date: date,
) -> List[SessionModel]:
    return (
        _available_query(db, teacher_ids=teacher_ids, skill=skill, from_date=from_date)
        .order_by(SessionModel.slot_date.asc(), SessionModel.start_time.asc(), SessionModel.id.asc())
        .all()
    )


def count_available_by_teacher(
    db: Session,
    *,
    teacher_ids: Iterable[int],
    skill: str,
    from_date: date,
) -> Dict[int, int]:
    rows = (
        _available_query(db, teacher_ids=teacher_ids, skill=skill, from_date=from_date)
        .with_entities(SessionModel.teacher_id, func.count(SessionModel.id))
        .group_by(SessionModel.teacher_id)
        .all()
    )
    return {teacher_id: count for teacher_id, count in rows}


def list_for_user(db: Session, user_id: int, status: Optional[str] = None) -> List[SessionModel]:
    query = db.query(SessionModel).filter(
        or_(SessionModel.teacher_id == user_id, SessionModel.student_id == user_id)
    )
    if status:
        query = query.filter(SessionModel.status == status)
    return query.order_by(
        SessionModel.slot_date.desc(),
        SessionModel.start_time.desc(),
        SessionModel.id.desc(),
    ).all()
