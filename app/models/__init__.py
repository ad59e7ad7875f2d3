# app/models/__init__.py
# Import models in dependency order
from .user import User
from .skill import Skill, UserSkill
from .connection import ConnectionRequest, ConnectionStatus
from .session import Session, SessionStatus  # Import Session LAST

__all__ = [
    "User",
    "Skill",
    "UserSkill",
    "ConnectionRequest",
    "ConnectionStatus",
    "Session",
    "SessionStatus",
]
