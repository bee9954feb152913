"""Removal request model - tracks opt-out requests."""

import enum
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from broker_remover.db.database import Base, utcnow


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    RESPONDED = "responded"
    COMPLETED = "completed"


# Nominal forward path of a request
STATUS_ORDER = [
    RequestStatus.PENDING,
    RequestStatus.SENT,
    RequestStatus.RESPONDED,
    RequestStatus.COMPLETED,
]


def is_backward_transition(current: str, new: str) -> bool:
    """True when ``new`` sits earlier than ``current`` on the nominal path."""
    order = [status.value for status in STATUS_ORDER]
    if current not in order or new not in order:
        return False
    return order.index(new) < order.index(current)


class RemovalRequest(Base):
    """Removal/opt-out request to a data broker."""

    __tablename__ = "requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Denormalized on purpose: requests outlive broker deletion
    broker_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(20), default=RequestStatus.PENDING.value, index=True)
    user_email: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    response_content: Mapped[str | None] = mapped_column(Text, nullable=True)

    # JSON text; see broker_remover.models.metadata for the typed view
    metadata_json: Mapped[str | None] = mapped_column("metadata", Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "broker_name": self.broker_name,
            "status": self.status,
            "user_email": self.user_email,
            "response_content": self.response_content,
            "metadata": self.metadata_json,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
