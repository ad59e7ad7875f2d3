"""
Connection graph store.

A pair of users is connected iff an accepted request exists between them
in either direction.
"""

from typing import List, Optional, Set

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app import models
from app.models.connection import ACTIVE_CONNECTION_STATUSES, ConnectionStatus


def _pair(user_a: int, user_b: int):
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


def _between(user_a: int, user_b: int):
    low, high = _pair(user_a, user_b)
    return and_(
        models.ConnectionRequest.user_low_id == low,
        models.ConnectionRequest.user_high_id == high,
    )


def get_request(db: Session, request_id: int) -> Optional[models.ConnectionRequest]:
    return db.query(models.ConnectionRequest).filter(
        models.ConnectionRequest.id == request_id
    ).first()


def get_active_request(db: Session, user_a: int, user_b: int) -> Optional[models.ConnectionRequest]:
    """The pending or accepted request between the pair, in either direction."""
    return db.query(models.ConnectionRequest).filter(
        _between(user_a, user_b),
        models.ConnectionRequest.status.in_(ACTIVE_CONNECTION_STATUSES),
    ).order_by(models.ConnectionRequest.id.desc()).first()


def create_request(db: Session, *, from_user_id: int, to_user_id: int) -> models.ConnectionRequest:
    low, high = _pair(from_user_id, to_user_id)
    request = models.ConnectionRequest(
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        status=ConnectionStatus.PENDING.value,
        user_low_id=low,
        user_high_id=high,
    )
    db.add(request)
    db.flush()
    return request


def set_status_if_pending(db: Session, request_id: int, status: str) -> bool:
    """Move a pending request to ``status``; False when it was not pending."""
    updated = db.query(models.ConnectionRequest).filter(
        models.ConnectionRequest.id == request_id,
        models.ConnectionRequest.status == ConnectionStatus.PENDING.value,
    ).update({"status": status}, synchronize_session=False)
    return updated == 1


def are_connected(db: Session, user_a: int, user_b: int) -> bool:
    if user_a == user_b:
        return False
    return db.query(models.ConnectionRequest.id).filter(
        _between(user_a, user_b),
        models.ConnectionRequest.status == ConnectionStatus.ACCEPTED.value,
    ).first() is not None


def find_connected_user_ids(db: Session, user_id: int) -> Set[int]:
    rows = db.query(
        models.ConnectionRequest.from_user_id,
        models.ConnectionRequest.to_user_id,
    ).filter(
        or_(
            models.ConnectionRequest.from_user_id == user_id,
            models.ConnectionRequest.to_user_id == user_id,
        ),
        models.ConnectionRequest.status == ConnectionStatus.ACCEPTED.value,
    ).all()
    return {to_id if from_id == user_id else from_id for from_id, to_id in rows}


def find_connected_users(db: Session, user_id: int) -> List[models.User]:
    connected_ids = find_connected_user_ids(db, user_id)
    if not connected_ids:
        return []
    return (
        db.query(models.User)
        .filter(models.User.id.in_(connected_ids))
        .order_by(models.User.name.asc(), models.User.id.asc())
        .all()
    )


def list_pending_for(db: Session, user_id: int) -> List[models.ConnectionRequest]:
    return (
        db.query(models.ConnectionRequest)
        .filter(
            models.ConnectionRequest.to_user_id == user_id,
            models.ConnectionRequest.status == ConnectionStatus.PENDING.value,
        )
        .order_by(models.ConnectionRequest.created_at.desc(), models.ConnectionRequest.id.desc())
        .all()
    )
