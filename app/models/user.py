from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, func
from sqlalchemy.orm import relationship
from app.database import Base


# ---------------- USER (AUTH TABLE) ----------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="student")
    is_active = Column(Boolean, default=True)
    # Bumped once per completed session the user took part in.
    sessions_completed = Column(Integer, default=0, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    user_skills = relationship("UserSkill", back_populates="user", cascade="all, delete-orphan")
    teacher_sessions = relationship("Session", foreign_keys="Session.teacher_id", back_populates="teacher")
    student_sessions = relationship("Session", foreign_keys="Session.student_id", back_populates="student")
