import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Index, TIMESTAMP, func, text
from sqlalchemy.orm import relationship
from app.database import Base


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


ACTIVE_CONNECTION_STATUSES = (ConnectionStatus.PENDING.value, ConnectionStatus.ACCEPTED.value)
_ACTIVE_PAIR_PREDICATE = text("status IN ('pending', 'accepted')")


class ConnectionRequest(Base):
    __tablename__ = "connection_requests"

    id = Column(Integer, primary_key=True, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    to_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ConnectionStatus.PENDING.value, index=True)
    # Unordered pair, smaller id first.
    user_low_id = Column(Integer, nullable=False)
    user_high_id = Column(Integer, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        # At most one pending/accepted request per unordered pair.
        Index(
            "uq_connection_active_pair",
            "user_low_id",
            "user_high_id",
            unique=True,
            sqlite_where=_ACTIVE_PAIR_PREDICATE,
            postgresql_where=_ACTIVE_PAIR_PREDICATE,
        ),
    )

    from_user = relationship("User", foreign_keys=[from_user_id])
    to_user = relationship("User", foreign_keys=[to_user_id])
