# tests/test_session_concurrency.py
"""
Racing bookings against one available session.

These run against a file-backed SQLite database so each caller gets its
own connection, the way separate API requests would.
"""

import threading
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import models
from app.crud import session as session_crud
from app.database import Base
from app.exceptions import ForbiddenError, InvalidStateError
from app.models.connection import ConnectionStatus
from app.models.session import SessionStatus
from app.services import session_service


@pytest.fixture
def file_db(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    try:
        yield SessionLocal
    finally:
        engine.dispose()


@pytest.fixture
def race_setup(file_db):
    """A teacher, two connected students and one available session."""
    db = file_db()
    try:
        teacher = models.User(name="Teacher", email="t@test.edu", password_hash="hash")
        first = models.User(name="Student One", email="s1@test.edu", password_hash="hash")
        second = models.User(name="Student Two", email="s2@test.edu", password_hash="hash")
        db.add_all([teacher, first, second])
        db.flush()
        for student in (first, second):
            low, high = sorted((teacher.id, student.id))
            db.add(models.ConnectionRequest(
                from_user_id=student.id,
                to_user_id=teacher.id,
                status=ConnectionStatus.ACCEPTED.value,
                user_low_id=low,
                user_high_id=high,
            ))
        session = models.Session(
            teacher_id=teacher.id,
            skill="Go",
            status=SessionStatus.AVAILABLE.value,
            slot_date=date(2024, 1, 1),
            start_time="10:00",
            end_time="11:00",
            is_booked=False,
            duration=60,
            price=0,
        )
        db.add(session)
        db.commit()
        return {
            "session_id": session.id,
            "student_ids": [first.id, second.id],
        }
    finally:
        db.close()


def test_stale_read_cannot_double_book(file_db, race_setup):
    """Both callers read 'available' before either writes; only one claim lands."""
    session_id = race_setup["session_id"]
    first_id, second_id = race_setup["student_ids"]
    db_one, db_two = file_db(), file_db()
    try:
        assert session_crud.get_session(db_one, session_id).status == SessionStatus.AVAILABLE.value
        assert session_crud.get_session(db_two, session_id).status == SessionStatus.AVAILABLE.value

        booked = session_service.book_session(db_one, session_id=session_id, student_id=first_id)
        assert booked.student_id == first_id

        # db_two still holds the stale 'available' row in its identity map.
        with pytest.raises(InvalidStateError, match="not available for booking"):
            session_service.book_session(db_two, session_id=session_id, student_id=second_id)
    finally:
        db_one.close()
        db_two.close()

    check = file_db()
    try:
        session = session_crud.get_session(check, session_id)
        assert session.status == SessionStatus.BOOKED.value
        assert session.student_id == first_id
    finally:
        check.close()


def test_concurrent_bookings_exactly_one_wins(file_db, race_setup):
    session_id = race_setup["session_id"]
    barrier = threading.Barrier(2)
    outcomes = {}

    def attempt(student_id):
        db = file_db()
        try:
            barrier.wait()
            session = session_service.book_session(db, session_id=session_id, student_id=student_id)
            outcomes[student_id] = ("booked", session.video_call_room)
        except InvalidStateError as exc:
            outcomes[student_id] = ("rejected", exc.message)
        finally:
            db.close()

    threads = [threading.Thread(target=attempt, args=(sid,)) for sid in race_setup["student_ids"]]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    results = sorted(kind for kind, _ in outcomes.values())
    assert results == ["booked", "rejected"]

    winner = next(sid for sid, (kind, _) in outcomes.items() if kind == "booked")
    check = file_db()
    try:
        session = session_crud.get_session(check, session_id)
        assert session.status == SessionStatus.BOOKED.value
        assert session.student_id == winner
        assert session.video_call_room == outcomes[winner][1]
    finally:
        check.close()


def test_concurrent_invited_joins_share_one_booking(file_db, race_setup):
    session_id = race_setup["session_id"]
    barrier = threading.Barrier(2)
    now = datetime(2024, 1, 1, 10, 15, tzinfo=timezone.utc)
    outcomes = {}

    def attempt(student_id):
        db = file_db()
        try:
            barrier.wait()
            result = session_service.join_video_call(
                db, None, session_id=session_id, requester_id=student_id, now=now
            )
            outcomes[student_id] = ("joined", result.video_call_room)
        except (InvalidStateError, ForbiddenError) as exc:
            outcomes[student_id] = ("rejected", exc.message)
        finally:
            db.close()

    threads = [threading.Thread(target=attempt, args=(sid,)) for sid in race_setup["student_ids"]]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert sorted(kind for kind, _ in outcomes.values()) == ["joined", "rejected"]


def test_room_assignment_happens_once(file_db, race_setup):
    session_id = race_setup["session_id"]
    db = file_db()
    try:
        assert session_crud.assign_room_if_absent(db, session_id, "session_x_1") is True
        assert session_crud.assign_room_if_absent(db, session_id, "session_x_2") is False
        db.commit()
        assert session_crud.get_session(db, session_id).video_call_room == "session_x_1"
    finally:
        db.close()
