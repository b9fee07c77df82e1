"""FieldChange — one row per field per edit on a trading entity.

Append-only: rows are never updated, and only bulk administrative clearing
(cli clear-trading-data) removes them.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow

# order | negotiation | contract | recap_manager | contract_addenda | recap_addenda
FIELD_CHANGE_ENTITY_TYPES = (
    "order",
    "negotiation",
    "contract",
    "recap_manager",
    "contract_addenda",
    "recap_addenda",
)


class FieldChange(Base):
    __tablename__ = "field_changes"
    __table_args__ = (
        Index("ix_field_changes_entity", "entity_type", "entity_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    entity_type: Mapped[str] = mapped_column(String(30), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    field_name: Mapped[str] = mapped_column(String(100), nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text)
    new_value: Mapped[str | None] = mapped_column(Text)
    change_reason: Mapped[str | None] = mapped_column(Text)
    # Not a foreign key: the log outlives user deletion
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )
