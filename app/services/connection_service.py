# app/services/connection_service.py
"""
Connection graph operations: send, respond to, and list connection
requests. Reads used by the session engine live in app.crud.connection.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models
from app.crud import connection as connection_crud
from app.crud import user as user_crud
from app.exceptions import ForbiddenError, InputValidationError, InvalidStateError, NotFoundError
from app.models.connection import ConnectionStatus
from app.schemas.connection import ConnectionRequestResponse
from app.schemas.events import ConnectionRequestCreatedEvent, ConnectionRequestRespondedEvent
from app.services.notification_service import NotificationChannel

logger = logging.getLogger(__name__)

# Re-exported graph queries.
are_connected = connection_crud.are_connected
find_connected_users = connection_crud.find_connected_users
find_connected_user_ids = connection_crud.find_connected_user_ids
get_active_request = connection_crud.get_active_request


def _duplicate_error(existing: models.ConnectionRequest) -> InvalidStateError:
    if existing.status == ConnectionStatus.ACCEPTED.value:
        return InvalidStateError("Users are already connected")
    return InvalidStateError("Connection request already exists")


def send_request(
    db: Session,
    channel: Optional[NotificationChannel],
    *,
    from_user_id: int,
    to_user_id: int,
) -> models.ConnectionRequest:
    if from_user_id == to_user_id:
        raise InputValidationError("You cannot send a connection request to yourself")

    if not user_crud.get_user(db, to_user_id):
        raise NotFoundError("User not found")

    existing = connection_crud.get_active_request(db, from_user_id, to_user_id)
    if existing:
        raise _duplicate_error(existing)

    try:
        request = connection_crud.create_request(db, from_user_id=from_user_id, to_user_id=to_user_id)
        db.commit()
    except IntegrityError:
        # Another request for the pair landed between lookup and insert.
        db.rollback()
        logger.warning("Duplicate connection request blocked (%s -> %s)", from_user_id, to_user_id)
        existing = connection_crud.get_active_request(db, from_user_id, to_user_id)
        if existing:
            raise _duplicate_error(existing)
        raise InvalidStateError("Connection request already exists")

    db.refresh(request)
    logger.info("Connection request %s sent (%s -> %s)", request.id, from_user_id, to_user_id)

    if channel is not None:
        channel.emit_to_user(
            to_user_id,
            ConnectionRequestCreatedEvent(request=ConnectionRequestResponse.model_validate(request)),
        )
    return request


def respond_to_request(
    db: Session,
    channel: Optional[NotificationChannel],
    *,
    request_id: int,
    responder_id: int,
    accept: bool,
) -> models.ConnectionRequest:
    """Accept or decline a pending request. Only the recipient may respond, and only once."""
    request = connection_crud.get_request(db, request_id)
    if not request:
        raise NotFoundError("Connection request not found")
    if request.to_user_id != responder_id:
        raise ForbiddenError("Only the recipient can respond to this connection request")

    new_status = ConnectionStatus.ACCEPTED.value if accept else ConnectionStatus.DECLINED.value
    if not connection_crud.set_status_if_pending(db, request_id, new_status):
        db.rollback()
        raise InvalidStateError(f"Connection request has already been {request.status}")

    db.commit()
    db.refresh(request)
    logger.info("Connection request %s %s by user %s", request_id, new_status, responder_id)

    if channel is not None:
        channel.emit_to_user(
            request.from_user_id,
            ConnectionRequestRespondedEvent(
                request=ConnectionRequestResponse.model_validate(request),
                accepted=accept,
            ),
        )
    return request


def list_pending_requests(db: Session, *, user_id: int) -> List[models.ConnectionRequest]:
    return connection_crud.list_pending_for(db, user_id)
