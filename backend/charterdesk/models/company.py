"""Company — counterparties that act as owner, charterer and/or broker."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(255))
    # shipping-company | broker | operator
    company_type: Mapped[str] = mapped_column(String(30), nullable=False)
    # Subset of ["owner", "charterer", "broker"]
    roles: Mapped[list] = mapped_column(JSON, default=list)
    # {"email": ..., "phone": ..., "address": ..., "website": ...}
    contact: Mapped[dict | None] = mapped_column(JSON)
    avatar_storage_id: Mapped[str | None] = mapped_column(String(255))

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
