# tests/test_session_api.py
"""
Route-level workflow: handlers are called directly with the current user
and db session, the same objects FastAPI would inject.
"""

from datetime import date, datetime, timezone

import pytest

pytest.importorskip("fastapi")

from app.api import connection as connection_api  # noqa: E402
from app.api import session as session_api  # noqa: E402
from app.api import users as users_api  # noqa: E402
from app.exceptions import ForbiddenError, InputValidationError, InvalidStateError, NotFoundError  # noqa: E402
from app.schemas.connection import ConnectionRequestCreate, ConnectionRespond  # noqa: E402
from app.schemas.session import CreateSlotsRequest, EndSessionRequest, FeedbackIn, TimeSlotIn  # noqa: E402
from app.schemas.user import UserSkillCreate  # noqa: E402
from app.services import session_service  # noqa: E402
from app.utils import schedule  # noqa: E402

LIVE_NOW = datetime(2024, 3, 4, 18, 20, tzinfo=timezone.utc)


@pytest.fixture
def frozen_clock(monkeypatch):
    fixed = lambda now=None: now or LIVE_NOW  # noqa: E731
    monkeypatch.setattr(session_service, "resolve_now", fixed)
    monkeypatch.setattr(schedule, "resolve_now", fixed)
    return LIVE_NOW


def test_full_session_workflow_via_routes(db_session, channel, online, make_user, frozen_clock):
    teacher = make_user("Teacher T")
    student = make_user("Student S")
    friend = make_user("Friend F")
    friend_socket = online(friend)

    # Teacher lists Go as a taught skill through the users API.
    skill = users_api.add_my_skill(
        payload=UserSkillCreate(title="Go", skill_type="offer", proficiency_level="Advanced"),
        current_user=teacher,
        db=db_session,
    )
    assert skill.skill_type == "teach"
    assert skill.proficiency_level == "advanced"

    # Student and friend connect with the teacher.
    for user in (student, friend):
        request = connection_api.send_connection_request(
            payload=ConnectionRequestCreate(to_user_id=teacher.id),
            current_user=user,
            db=db_session,
            channel=channel,
        )
        connection_api.respond_to_connection_request(
            request_id=request.id,
            payload=ConnectionRespond(accept=True),
            current_user=teacher,
            db=db_session,
            channel=channel,
        )
    assert {u.id for u in connection_api.get_my_connections(current_user=teacher, db=db_session)} == {
        student.id,
        friend.id,
    }

    created = session_api.create_time_slots(
        payload=CreateSlotsRequest(
            skill="go",
            time_slots=[TimeSlotIn(date=date(2024, 3, 4), start_time="18:00", end_time="19:00")],
            price=10,
            invited_users=[student.id],
        ),
        current_user=teacher,
        db=db_session,
        channel=channel,
    )
    assert len(created) == 1
    session_id = created[0].id
    assert created[0].status == "available"
    assert created[0].schedule_state == "ready"
    assert created[0].time_slot.is_booked is False

    available = session_api.get_available_sessions(skill="Go", current_user=student, db=db_session)
    assert [s.id for s in available] == [session_id]

    teachers = session_api.get_connected_teachers(skill="Go", current_user=student, db=db_session)
    assert [t.teacher.id for t in teachers] == [teacher.id]
    assert teachers[0].available_sessions == 1

    booked = session_api.book_session(session_id=session_id, current_user=student, db=db_session)
    assert booked.status == "booked"
    assert booked.student.id == student.id
    assert booked.time_slot.booked_by == student.id
    room = booked.video_call_room

    joined = session_api.join_video_call(
        session_id=session_id, current_user=teacher, db=db_session, channel=channel
    )
    assert joined.user_role == "teacher"
    assert joined.video_call_room == room
    assert joined.session.status == "ongoing"
    assert joined.session.schedule_state == "ongoing"
    assert joined.session.joined_at.teacher is not None
    assert [m["session_id"] for m in friend_socket.events("session_going_live")] == [session_id]

    ended = session_api.end_session(
        session_id=session_id,
        payload=EndSessionRequest(feedback=FeedbackIn(rating=5, comment="Great pairing")),
        current_user=student,
        db=db_session,
    )
    assert ended.status == "completed"
    assert ended.feedback.rating == 5
    assert ended.feedback.given_by == student.id

    profile = users_api.get_current_user_profile(current_user=teacher, db=db_session)
    assert profile.sessions_completed == 1
    assert [s.skill_name for s in profile.skills] == ["Go"]

    mine = session_api.get_my_sessions(status="completed", current_user=student, db=db_session)
    assert [s.id for s in mine] == [session_id]


def test_end_without_body(db_session, channel, make_user, connect, frozen_clock):
    teacher = make_user("Teacher", teaches=["Go"])
    student = make_user("Student")
    connect(student, teacher)
    created = session_service.create_time_slots(
        db_session,
        channel,
        teacher_id=teacher.id,
        skill="Go",
        slots=[TimeSlotIn(date=date(2024, 3, 4), start_time="18:00", end_time="19:00")],
    )
    session_api.book_session(session_id=created[0].id, current_user=student, db=db_session)

    ended = session_api.end_session(session_id=created[0].id, payload=None, current_user=teacher, db=db_session)

    assert ended.status == "completed"
    assert ended.feedback is None


def test_route_errors_propagate_as_domain_errors(db_session, channel, make_user, connect, frozen_clock):
    teacher = make_user("Teacher", teaches=["Go"])
    student = make_user("Student")
    stranger = make_user("Stranger")
    connect(student, teacher)
    created = session_service.create_time_slots(
        db_session,
        channel,
        teacher_id=teacher.id,
        skill="Go",
        slots=[TimeSlotIn(date=date(2024, 3, 4), start_time="18:00", end_time="19:00")],
    )
    session_api.book_session(session_id=created[0].id, current_user=student, db=db_session)

    with pytest.raises(InvalidStateError):
        session_api.book_session(session_id=created[0].id, current_user=stranger, db=db_session)
    with pytest.raises(ForbiddenError):
        session_api.join_video_call(
            session_id=created[0].id, current_user=stranger, db=db_session, channel=channel
        )


def test_peers_route(db_session, make_user):
    me = make_user("Me", learns=["Go"])
    mentor = make_user("Mentor", teaches=[("Go", "intermediate")])

    peers = session_api.find_peers(skill="Go", current_user=me, db=db_session)

    assert [p.id for p in peers] == [mentor.id]
    assert peers[0].proficiency_level == "intermediate"


def test_users_routes_raise_domain_errors(db_session, make_user):
    me = make_user("Me")
    retired = make_user("Retired")
    retired.is_active = False
    db_session.commit()

    with pytest.raises(InputValidationError, match="skill_type"):
        users_api.add_my_skill(
            payload=UserSkillCreate(title="Go", skill_type="mentor"), current_user=me, db=db_session
        )
    with pytest.raises(InputValidationError, match="proficiency_level"):
        users_api.add_my_skill(
            payload=UserSkillCreate(title="Go", proficiency_level="guru"), current_user=me, db=db_session
        )
    with pytest.raises(NotFoundError):
        users_api.get_user_profile(user_id=999, current_user=me, db=db_session)
    with pytest.raises(NotFoundError):
        users_api.get_user_profile(user_id=retired.id, current_user=me, db=db_session)

    assert users_api.get_user_profile(user_id=me.id, current_user=me, db=db_session).id == me.id
