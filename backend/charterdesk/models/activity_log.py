"""ActivityLog — immutable, human-readable event trail for trading entities.

Records who did what, when, and to which entity. Negotiation events may
carry an `expandable` snapshot of the linked contract's commercial terms.
`metadata` holds one of the tagged variants in schemas.audit.ActivityMetadata.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_entity", "entity_type", "entity_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ── Target ─────────────────────────────────────────────────
    # order | negotiation | contract | recap_manager
    entity_type: Mapped[str] = mapped_column(String(30), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # ── What ───────────────────────────────────────────────────
    # created | updated | status-changed | distributed | withdrawn |
    # sent | accepted | rejected | approved | signed | fixed | ...
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # {"value": "firm-offer", "label": "Firm Offer"}
    status: Mapped[dict | None] = mapped_column(JSON)

    # ── Context ────────────────────────────────────────────────
    # Python attribute can't be `metadata` on a declarative class
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    expandable: Mapped[dict | None] = mapped_column(JSON)

    # ── Who / when ─────────────────────────────────────────────
    user_id: Mapped[str | None] = mapped_column(String(36), index=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )
