"""Fixture — groups the contracts and recaps that came out of one order.

`last_updated` and `search_text` are derived columns maintained by
services.rollup.recompute_fixture_derived. `updated_at` only moves when the
fixture itself is edited; the rollup never touches it.

Statuses: draft | working-copy | final | on-subs | fully-fixed | canceled
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow

FIXTURE_STATUSES = ("draft", "working-copy", "final", "on-subs", "fully-fixed", "canceled")


class Fixture(Base):
    __tablename__ = "fixtures"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    fixture_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    order_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("orders.id"), index=True
    )
    title: Mapped[str | None] = mapped_column(String(255))
    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)

    # ── Derived (rollup) ───────────────────────────────────────
    last_updated: Mapped[datetime | None] = mapped_column(DateTime, index=True)
    search_text: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)
