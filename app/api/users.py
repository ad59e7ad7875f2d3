from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import models
from app.crud import user as user_crud
from app.crud.user import LEARN_SKILL_TYPES, TEACH_SKILL_TYPES
from app.database import get_db
from app.exceptions import InputValidationError, NotFoundError
from app.models.skill import PROFICIENCY_LEVELS
from app.schemas.user import UserResponse, UserSkillCreate, UserSkillResponse
from app.utils.security import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


def _skill_rows(db: Session, user_id: int, skill_types) -> list:
    rows = user_crud.get_user_skills(db, user_id, skill_types)

    # Collapse legacy alias duplicates (teach + offer for same skill).
    by_skill_id = {}
    for row in rows:
        by_skill_id.setdefault(row.skill_id, row)

    return [
        UserSkillResponse(
            id=row.id,
            skill_id=row.skill_id,
            skill_name=row.skill.title if row.skill else "N/A",
            skill_type=row.skill_type,
            proficiency_level=row.proficiency_level,
        )
        for row in by_skill_id.values()
    ]


def _user_response(db: Session, user: models.User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        sessions_completed=user.sessions_completed or 0,
        skills=_skill_rows(db, user.id, TEACH_SKILL_TYPES),
        skills_to_learn=_skill_rows(db, user.id, LEARN_SKILL_TYPES),
    )


# ======================
# GET: Current user profile
# ======================
@router.get("/me", response_model=UserResponse)
def get_current_user_profile(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _user_response(db, current_user)


# ======================
# POST: Add a taught / wanted skill
# ======================
@router.post("/me/skills", response_model=UserSkillResponse, status_code=201)
def add_my_skill(
    payload: UserSkillCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    raw_type = payload.skill_type.strip().lower()
    if raw_type in TEACH_SKILL_TYPES:
        skill_type = "teach"
    elif raw_type in LEARN_SKILL_TYPES:
        skill_type = "learn"
    else:
        raise InputValidationError("skill_type must be 'teach' or 'learn'")

    level = (payload.proficiency_level or "beginner").strip().lower()
    if level not in PROFICIENCY_LEVELS:
        raise InputValidationError("proficiency_level must be one of: " + ", ".join(PROFICIENCY_LEVELS))

    skill = user_crud.get_or_create_skill(
        db,
        payload.title,
        category=payload.category,
        description=payload.description,
    )
    user_skill = user_crud.upsert_user_skill(
        db,
        user_id=current_user.id,
        skill_id=skill.id,
        skill_type=skill_type,
        proficiency_level=level,
    )
    db.commit()
    db.refresh(user_skill)

    return UserSkillResponse(
        id=user_skill.id,
        skill_id=skill.id,
        skill_name=skill.title,
        skill_type=user_skill.skill_type,
        proficiency_level=user_skill.proficiency_level,
    )


# ======================
# GET: Another user's profile
# ======================
@router.get("/{user_id}", response_model=UserResponse)
def get_user_profile(
    user_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = user_crud.get_user(db, user_id)
    if not user or not user.is_active:
        raise NotFoundError("User not found")
    return _user_response(db, user)
