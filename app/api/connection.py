from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.realtime import get_notification_channel
from app.database import get_db
from app.models.user import User
from app.schemas.connection import ConnectionRequestCreate, ConnectionRequestResponse, ConnectionRespond
from app.schemas.user import UserSummary
from app.services import connection_service
from app.services.notification_service import NotificationChannel
from app.utils.security import get_current_user

router = APIRouter(prefix="/connections", tags=["Connections"])


@router.post("/send", response_model=ConnectionRequestResponse, status_code=201)
def send_connection_request(
    payload: ConnectionRequestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    request = connection_service.send_request(
        db,
        channel,
        from_user_id=current_user.id,
        to_user_id=payload.to_user_id,
    )
    return ConnectionRequestResponse.model_validate(request)


@router.post("/{request_id}/respond", response_model=ConnectionRequestResponse)
def respond_to_connection_request(
    request_id: int,
    payload: ConnectionRespond,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    channel: NotificationChannel = Depends(get_notification_channel),
):
    request = connection_service.respond_to_request(
        db,
        channel,
        request_id=request_id,
        responder_id=current_user.id,
        accept=payload.accept,
    )
    return ConnectionRequestResponse.model_validate(request)


@router.get("/pending", response_model=List[ConnectionRequestResponse])
def get_pending_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    requests = connection_service.list_pending_requests(db, user_id=current_user.id)
    return [ConnectionRequestResponse.model_validate(r) for r in requests]


@router.get("/", response_model=List[UserSummary])
def get_my_connections(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    users = connection_service.find_connected_users(db, current_user.id)
    return [UserSummary.model_validate(u) for u in users]
