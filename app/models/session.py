# app/models/session.py
import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
    TIMESTAMP,
    func,
)
from sqlalchemy.orm import relationship
from app.database import Base


class SessionStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = (SessionStatus.COMPLETED.value, SessionStatus.CANCELLED.value)


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    skill = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=SessionStatus.AVAILABLE.value, index=True)

    # Time slot
    slot_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)    # "HH:MM"
    is_booked = Column(Boolean, default=False, nullable=False)
    booked_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    duration = Column(Integer, default=60, nullable=False)  # minutes
    price = Column(Integer, default=0, nullable=False)
    video_call_room = Column(String(120), unique=True, nullable=True)

    teacher_joined_at = Column(TIMESTAMP(timezone=True), nullable=True)
    student_joined_at = Column(TIMESTAMP(timezone=True), nullable=True)

    feedback_rating = Column(Integer, nullable=True)
    feedback_comment = Column(Text, nullable=True)
    feedback_given_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_session_price"),
        CheckConstraint(
            "feedback_rating IS NULL OR (feedback_rating >= 1 AND feedback_rating <= 5)",
            name="check_feedback_rating_range",
        ),
    )

    # Relationships
    teacher = relationship("User", foreign_keys=[teacher_id], back_populates="teacher_sessions")
    student = relationship("User", foreign_keys=[student_id], back_populates="student_sessions")
    booked_by = relationship("User", foreign_keys=[booked_by_id])
    feedback_given_by = relationship("User", foreign_keys=[feedback_given_by_id])
