"""Order — the top-level trading intent.

Types:    buy | sell | charter
Stages:   offer | active | negotiating | pending
Statuses: draft | distributed | withdrawn
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    order_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    title: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    stage: Mapped[str] = mapped_column(String(20), default="offer", index=True)
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)

    # ── Cargo & route ──────────────────────────────────────────
    cargo_type_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("cargo_types.id"))
    quantity: Mapped[float | None] = mapped_column(Float)
    quantity_unit: Mapped[str | None] = mapped_column(String(20))
    laycan_start: Mapped[datetime | None] = mapped_column(DateTime)
    laycan_end: Mapped[datetime | None] = mapped_column(DateTime)
    load_port_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("ports.id"))
    discharge_port_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("ports.id"))

    # ── Commercial terms ───────────────────────────────────────
    freight_rate: Mapped[str | None] = mapped_column(String(100))
    freight_rate_type: Mapped[str | None] = mapped_column(String(20))
    demurrage_rate: Mapped[str | None] = mapped_column(String(100))
    despatch_rate: Mapped[str | None] = mapped_column(String(100))
    tce: Mapped[str | None] = mapped_column(String(100))
    validity_hours: Mapped[int | None] = mapped_column(Integer)

    # ── Parties ────────────────────────────────────────────────
    charterer_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("companies.id"))
    owner_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("companies.id"))
    broker_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("companies.id"))

    organization_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("organizations.id"), nullable=False, index=True
    )
    created_by_user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    approval_status: Mapped[str | None] = mapped_column(String(30))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    # Stamped explicitly by the service layer on every edit
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)
    distributed_at: Mapped[datetime | None] = mapped_column(DateTime)
    withdrawn_at: Mapped[datetime | None] = mapped_column(DateTime)
