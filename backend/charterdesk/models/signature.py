"""Party signatures for contracts and addenda.

Statuses: pending | signed | rejected
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow


class ContractSignature(Base):
    __tablename__ = "contract_signatures"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    contract_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("contracts.id"), nullable=False, index=True
    )
    party_role: Mapped[str] = mapped_column(String(20), nullable=False)
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), default="pending")
    signed_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    signed_at: Mapped[datetime | None] = mapped_column(DateTime)
    signing_method: Mapped[str | None] = mapped_column(String(50))
    document_storage_id: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class AddendaSignature(Base):
    __tablename__ = "addenda_signatures"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    addenda_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    addenda_type: Mapped[str] = mapped_column(String(20), nullable=False)
    party_role: Mapped[str] = mapped_column(String(20), nullable=False)
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), default="pending")
    signed_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    signed_at: Mapped[datetime | None] = mapped_column(DateTime)
    signing_method: Mapped[str | None] = mapped_column(String(50))
    document_storage_id: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
