from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ======================
# USER SUMMARIES
# ======================

class UserSummary(BaseModel):
    """Public identity fields embedded in sessions, requests and events."""
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserSkillResponse(BaseModel):
    id: int
    skill_id: int
    skill_name: str
    skill_type: str
    proficiency_level: Optional[str] = None


class UserResponse(UserSummary):
    role: str
    is_active: bool
    sessions_completed: int
    skills: List[UserSkillResponse] = []
    skills_to_learn: List[UserSkillResponse] = []


# ======================
# SKILL MANAGEMENT
# ======================

class UserSkillCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    skill_type: str = "teach"  # teach / learn (offer / need accepted)
    proficiency_level: Optional[str] = "beginner"
    category: Optional[str] = "General"
    description: Optional[str] = None
