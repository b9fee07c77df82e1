"""Negotiation — one counterparty's bid/offer exchange against an Order.

The *_indication / *_last_day analytics columns are written by
services.negotiations.calculate_analytics, never by the fixture rollup.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow

NEGOTIATION_STATUSES = (
    "indicative-offer",
    "indicative-bid",
    "firm-offer",
    "firm-bid",
    "firm",
    "on-subs",
    "fixed",
    "firm-offer-expired",
    "withdrawn",
    "firm-amendment",
    "subs-expired",
    "subs-failed",
    "on-subs-amendment",
)


class Negotiation(Base):
    __tablename__ = "negotiations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    negotiation_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("orders.id"), nullable=False, index=True
    )
    counterparty_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    broker_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("companies.id"))
    vessel_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("vessels.id"))
    person_in_charge_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    deal_capture_user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    created_by_user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    status: Mapped[str] = mapped_column(String(30), default="indicative-offer", index=True)

    # ── Terms under negotiation ────────────────────────────────
    bid_price: Mapped[str | None] = mapped_column(String(100))
    offer_price: Mapped[str | None] = mapped_column(String(100))
    freight_rate: Mapped[str | None] = mapped_column(String(100))
    demurrage_rate: Mapped[str | None] = mapped_column(String(100))
    tce: Mapped[str | None] = mapped_column(String(100))
    validity: Mapped[str | None] = mapped_column(String(100))
    load_delivery_type: Mapped[str | None] = mapped_column(String(100))
    discharge_redelivery_type: Mapped[str | None] = mapped_column(String(100))
    laycan_start: Mapped[datetime | None] = mapped_column(DateTime)
    laycan_end: Mapped[datetime | None] = mapped_column(DateTime)
    quantity: Mapped[float | None] = mapped_column(Float)

    # ── Market & commissions ───────────────────────────────────
    market_index: Mapped[float | None] = mapped_column(Float)
    market_index_name: Mapped[str | None] = mapped_column(String(100))
    address_commission_percent: Mapped[float | None] = mapped_column(Float)
    address_commission_total: Mapped[float | None] = mapped_column(Float)
    broker_commission_percent: Mapped[float | None] = mapped_column(Float)
    broker_commission_total: Mapped[float | None] = mapped_column(Float)
    gross_freight: Mapped[float | None] = mapped_column(Float)

    # ── Analytics (derived from the activity log) ──────────────
    highest_freight_rate_indication: Mapped[float | None] = mapped_column(Float)
    lowest_freight_rate_indication: Mapped[float | None] = mapped_column(Float)
    first_freight_rate_indication: Mapped[float | None] = mapped_column(Float)
    highest_freight_rate_last_day: Mapped[float | None] = mapped_column(Float)
    lowest_freight_rate_last_day: Mapped[float | None] = mapped_column(Float)
    first_freight_rate_last_day: Mapped[float | None] = mapped_column(Float)
    highest_demurrage_indication: Mapped[float | None] = mapped_column(Float)
    lowest_demurrage_indication: Mapped[float | None] = mapped_column(Float)
    first_demurrage_indication: Mapped[float | None] = mapped_column(Float)
    highest_demurrage_last_day: Mapped[float | None] = mapped_column(Float)
    lowest_demurrage_last_day: Mapped[float | None] = mapped_column(Float)
    first_demurrage_last_day: Mapped[float | None] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)
