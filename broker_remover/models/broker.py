"""Data broker model."""

import enum
import uuid
from datetime import datetime
from sqlalchemy import String, Boolean, Integer, DateTime, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from broker_remover.db.database import Base, utcnow


class BrokerCategory(str, enum.Enum):
    PEOPLE_SEARCH = "people-search"
    CREDIT_REPORTING = "credit-reporting"
    MARKETING = "marketing"
    BACKGROUND_CHECK = "background-check"
    SOCIAL_MEDIA = "social-media"
    ADVERTISING = "advertising"
    RISK_MANAGEMENT = "risk-management"
    INSURANCE = "insurance"
    FINANCIAL = "financial"
    PERSONAL_DATA = "personal-data"
    OTHER = "other"


class OptOutMethod(str, enum.Enum):
    FORM = "form"
    EMAIL = "email"
    API = "api"
    MANUAL = "manual"


class Difficulty(str, enum.Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class DataBroker(Base):
    """Data broker information and opt-out procedures."""

    __tablename__ = "data_brokers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(50), default=BrokerCategory.OTHER.value)

    # Opt-out information
    opt_out_url: Mapped[str] = mapped_column(String(500), nullable=False)
    opt_out_method: Mapped[str] = mapped_column(String(50), default=OptOutMethod.FORM.value)
    data_types: Mapped[list | None] = mapped_column(JSON, nullable=True)  # ["name", "address", "phone"]

    difficulty: Mapped[str] = mapped_column(String(20), default=Difficulty.MEDIUM.value)
    response_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Jurisdiction
    regions: Mapped[list | None] = mapped_column(JSON, nullable=True)  # ["US", "EU"]
    laws: Mapped[list | None] = mapped_column(JSON, nullable=True)  # ["CCPA", "GDPR"]

    premium: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "domain": self.domain,
            "category": self.category,
            "opt_out_url": self.opt_out_url,
            "opt_out_method": self.opt_out_method,
            "data_types": list(self.data_types or []),
            "difficulty": self.difficulty,
            "response_days": self.response_days,
            "regions": self.regions,
            "laws": self.laws,
            "premium": bool(self.premium),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
