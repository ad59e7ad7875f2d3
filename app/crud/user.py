from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app import models

TEACH_SKILL_TYPES = ("teach", "offer")
LEARN_SKILL_TYPES = ("learn", "need")


# ============================
# USERS
# ============================

def create_user(db: Session, *, name: str, email: str, password_hash: str, role: str = "student"):
    db_user = models.User(
        name=name,
        email=email,
        password_hash=password_hash,
        role=role,
        is_active=True,
    )
    db.add(db_user)
    db.flush()
    return db_user


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def get_user(db: Session, user_id: int):
    return db.query(models.User).filter(models.User.id == user_id).first()


def increment_sessions_completed(db: Session, user_id: int) -> int:
    """Atomic ``sessions_completed = sessions_completed + 1``; returns rows touched."""
    return db.query(models.User).filter(models.User.id == user_id).update(
        {models.User.sessions_completed: models.User.sessions_completed + 1},
        synchronize_session=False,
    )


# ============================
# SKILLS
# ============================

def get_skill_by_title(db: Session, title: str):
    return db.query(models.Skill).filter(
        func.lower(models.Skill.title) == func.lower(title.strip())
    ).first()


def get_or_create_skill(
    db: Session,
    title: str,
    *,
    category: Optional[str] = "General",
    description: Optional[str] = None,
):
    skill = get_skill_by_title(db, title)
    if skill:
        return skill
    skill = models.Skill(
        title=title.strip(),
        category=category or "General",
        description=description,
    )
    db.add(skill)
    db.flush()
    return skill


def upsert_user_skill(
    db: Session,
    *,
    user_id: int,
    skill_id: int,
    skill_type: str,
    proficiency_level: Optional[str] = None,
):
    existing = db.query(models.UserSkill).filter(
        models.UserSkill.user_id == user_id,
        models.UserSkill.skill_id == skill_id,
        models.UserSkill.skill_type == skill_type,
    ).first()

    if existing:
        existing.proficiency_level = proficiency_level
        return existing

    user_skill = models.UserSkill(
        user_id=user_id,
        skill_id=skill_id,
        skill_type=skill_type,
        proficiency_level=proficiency_level,
    )
    db.add(user_skill)
    db.flush()
    return user_skill


def get_user_skills(db: Session, user_id: int, skill_types: Sequence[str]) -> List[models.UserSkill]:
    return (
        db.query(models.UserSkill)
        .filter(
            models.UserSkill.user_id == user_id,
            func.lower(models.UserSkill.skill_type).in_(skill_types),
        )
        .order_by(models.UserSkill.id.asc())
        .all()
    )


def get_teaching_skill(db: Session, user_id: int, skill_title: str) -> Optional[models.UserSkill]:
    """The user's ``teach`` row for ``skill_title`` (case-insensitive), if any."""
    return (
        db.query(models.UserSkill)
        .join(models.Skill, models.UserSkill.skill_id == models.Skill.id)
        .filter(
            models.UserSkill.user_id == user_id,
            func.lower(models.UserSkill.skill_type).in_(TEACH_SKILL_TYPES),
            func.lower(models.Skill.title) == func.lower(skill_title.strip()),
        )
        .order_by(models.UserSkill.id.asc())
        .first()
    )


def find_teachers_of_skill(
    db: Session,
    skill_title: str,
    *,
    proficiency_levels: Iterable[str],
    user_ids: Optional[Iterable[int]] = None,
    exclude_user_id: Optional[int] = None,
) -> List[Tuple[models.User, Optional[str]]]:
    """
    Active users teaching ``skill_title`` at one of ``proficiency_levels``,
    as ``(user, proficiency_level)`` pairs, most sessions completed first.
    """
    query = (
        db.query(models.User, models.UserSkill.proficiency_level)
        .join(models.UserSkill, models.UserSkill.user_id == models.User.id)
        .join(models.Skill, models.UserSkill.skill_id == models.Skill.id)
        .filter(
            models.User.is_active.is_(True),
            func.lower(models.UserSkill.skill_type).in_(TEACH_SKILL_TYPES),
            func.lower(models.Skill.title) == func.lower(skill_title.strip()),
            func.lower(models.UserSkill.proficiency_level).in_(tuple(proficiency_levels)),
        )
    )
    if user_ids is not None:
        query = query.filter(models.User.id.in_(list(user_ids)))
    if exclude_user_id is not None:
        query = query.filter(models.User.id != exclude_user_id)

    rows = query.order_by(
        models.User.sessions_completed.desc(),
        models.User.id.asc(),
    ).all()

    # Collapse legacy alias duplicates (teach + offer for the same skill).
    seen = set()
    unique_rows = []
    for user, level in rows:
        if user.id in seen:
            continue
        seen.add(user.id)
        unique_rows.append((user, level))
    return unique_rows
