from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .user import UserSummary


class ConnectionRequestCreate(BaseModel):
    to_user_id: int


class ConnectionRespond(BaseModel):
    accept: bool


class ConnectionRequestResponse(BaseModel):
    id: int
    from_user: UserSummary
    to_user: UserSummary
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
