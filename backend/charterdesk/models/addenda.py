"""Addenda — amendments to a Contract or a RecapManager.

Two tables with identical shape so that foreign keys stay real:
  contract_addenda → contracts
  recap_addenda    → recap_managers

Statuses: draft | pending | approved | rejected | signed

Addenda never feed the fixture rollup.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow

ADDENDA_STATUSES = ("draft", "pending", "approved", "rejected", "signed")


class ContractAddendum(Base):
    __tablename__ = "contract_addenda"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    addendum_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    contract_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("contracts.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="draft")
    created_by_user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)


class RecapAddendum(Base):
    __tablename__ = "recap_addenda"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    addendum_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    recap_manager_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recap_managers.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="draft")
    created_by_user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)
