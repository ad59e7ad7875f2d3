import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.utils.schedule import schedule_state
from .user import UserSummary

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

# ======================
# SESSION REQUEST MODELS
# ======================

class TimeSlotIn(BaseModel):
    date: dt.date
    start_time: str = Field(..., pattern=HHMM_PATTERN)  # "HH:MM"
    end_time: str = Field(..., pattern=HHMM_PATTERN)


class CreateSlotsRequest(BaseModel):
    skill: str = Field(..., min_length=1)
    time_slots: List[TimeSlotIn] = Field(..., min_length=1)
    price: int = Field(0, ge=0)
    invited_users: List[int] = []


class FeedbackIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class EndSessionRequest(BaseModel):
    feedback: Optional[FeedbackIn] = None

# ======================
# SESSION RESPONSE MODELS
# ======================

class TimeSlotResponse(BaseModel):
    date: dt.date
    start_time: str
    end_time: str
    is_booked: bool
    booked_by: Optional[int] = None


class JoinedAtResponse(BaseModel):
    teacher: Optional[dt.datetime] = None
    student: Optional[dt.datetime] = None


class FeedbackResponse(BaseModel):
    rating: int
    comment: Optional[str] = None
    given_by: Optional[int] = None


class SessionResponse(BaseModel):
    id: int
    teacher: UserSummary
    student: Optional[UserSummary] = None
    skill: str
    status: str
    time_slot: TimeSlotResponse
    duration: int
    price: int
    video_call_room: Optional[str] = None
    joined_at: JoinedAtResponse
    feedback: Optional[FeedbackResponse] = None
    schedule_state: str
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, session, now: Optional[dt.datetime] = None) -> "SessionResponse":
        feedback = None
        if session.feedback_rating is not None:
            feedback = FeedbackResponse(
                rating=session.feedback_rating,
                comment=session.feedback_comment,
                given_by=session.feedback_given_by_id,
            )
        return cls(
            id=session.id,
            teacher=UserSummary.model_validate(session.teacher),
            student=UserSummary.model_validate(session.student) if session.student else None,
            skill=session.skill,
            status=session.status,
            time_slot=TimeSlotResponse(
                date=session.slot_date,
                start_time=session.start_time,
                end_time=session.end_time,
                is_booked=session.is_booked,
                booked_by=session.booked_by_id,
            ),
            duration=session.duration,
            price=session.price,
            video_call_room=session.video_call_room,
            joined_at=JoinedAtResponse(
                teacher=session.teacher_joined_at,
                student=session.student_joined_at,
            ),
            feedback=feedback,
            schedule_state=schedule_state(session, now),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class JoinResponse(BaseModel):
    session: SessionResponse
    video_call_room: str
    user_role: str  # "teacher" or "student"


class TeacherAvailabilityResponse(BaseModel):
    """A connected teacher who currently has open slots for a skill."""
    teacher: UserSummary
    proficiency_level: Optional[str] = None
    sessions_completed: int
    available_sessions: int


class PeerResponse(BaseModel):
    id: int
    name: str
    email: str
    proficiency_level: Optional[str] = None
    sessions_completed: int
