# app/schemas/__init__.py

# Auth schemas
from .auth import Token, TokenData, LoginRequest, RegisterRequest

# User schemas
from .user import UserSummary, UserResponse, UserSkillResponse, UserSkillCreate

# Connection schemas
from .connection import ConnectionRequestCreate, ConnectionRespond, ConnectionRequestResponse

# Session schemas
from .session import (
    TimeSlotIn,
    CreateSlotsRequest,
    FeedbackIn,
    EndSessionRequest,
    SessionResponse,
    JoinResponse,
    TeacherAvailabilityResponse,
    PeerResponse,
)

__all__ = [
    "Token",
    "TokenData",
    "LoginRequest",
    "RegisterRequest",
    "UserSummary",
    "UserResponse",
    "UserSkillResponse",
    "UserSkillCreate",
    "ConnectionRequestCreate",
    "ConnectionRespond",
    "ConnectionRequestResponse",
    "TimeSlotIn",
    "CreateSlotsRequest",
    "FeedbackIn",
    "EndSessionRequest",
    "SessionResponse",
    "JoinResponse",
    "TeacherAvailabilityResponse",
    "PeerResponse",
]
