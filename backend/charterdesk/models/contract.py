"""Contract — a dry-market charter party.

Statuses: draft | working-copy | final | rejected
  - moving to `final` stamps signed_at

Contract types:      voyage-charter | time-charter | bareboat | coa
Freight rate types:  worldscale | lumpsum | per-tonne

Voyages performed under a COA point at it through parent_contract_id.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow

CONTRACT_TYPES = ("voyage-charter", "time-charter", "bareboat", "coa")
FREIGHT_RATE_TYPES = ("worldscale", "lumpsum", "per-tonne")
CONTRACT_STATUSES = ("draft", "working-copy", "final", "rejected")


class Contract(Base):
    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    contract_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )

    # ── Lineage ────────────────────────────────────────────────
    fixture_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("fixtures.id"), index=True
    )
    order_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("orders.id"), index=True
    )
    negotiation_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("negotiations.id"), index=True
    )
    parent_contract_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("contracts.id"), index=True
    )

    contract_type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)
    approval_status: Mapped[str | None] = mapped_column(String(30))

    # ── Parties & vessel ───────────────────────────────────────
    owner_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("companies.id"))
    charterer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False
    )
    broker_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("companies.id"))
    vessel_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("vessels.id"))

    # ── Route & cargo ──────────────────────────────────────────
    load_port_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("ports.id"))
    discharge_port_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("ports.id"))
    load_delivery_type: Mapped[str | None] = mapped_column(String(100))
    discharge_redelivery_type: Mapped[str | None] = mapped_column(String(100))
    laycan_start: Mapped[datetime | None] = mapped_column(DateTime)
    laycan_end: Mapped[datetime | None] = mapped_column(DateTime)
    cargo_type_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("cargo_types.id"))
    quantity: Mapped[float | None] = mapped_column(Float)
    quantity_unit: Mapped[str | None] = mapped_column(String(20))

    # ── Commercial terms ───────────────────────────────────────
    freight_rate: Mapped[str | None] = mapped_column(String(100))
    freight_rate_type: Mapped[str | None] = mapped_column(String(20))
    demurrage_rate: Mapped[str | None] = mapped_column(String(100))
    despatch_rate: Mapped[str | None] = mapped_column(String(100))
    address_commission: Mapped[str | None] = mapped_column(String(50))
    broker_commission: Mapped[str | None] = mapped_column(String(50))

    # ── Documents ──────────────────────────────────────────────
    full_cp_chain_storage_id: Mapped[str | None] = mapped_column(String(255))
    itinerary_storage_id: Mapped[str | None] = mapped_column(String(255))
    cp_url: Mapped[str | None] = mapped_column(String(500))

    # ── Milestones ─────────────────────────────────────────────
    working_copy_date: Mapped[datetime | None] = mapped_column(DateTime)
    final_date: Mapped[datetime | None] = mapped_column(DateTime)
    fully_signed_date: Mapped[datetime | None] = mapped_column(DateTime)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)
