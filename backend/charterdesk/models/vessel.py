import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow


class Vessel(Base):
    __tablename__ = "vessels"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    imo_number: Mapped[str | None] = mapped_column(String(20), unique=True, index=True)
    callsign: Mapped[str | None] = mapped_column(String(20))
    mmsi: Mapped[str | None] = mapped_column(String(20))

    # ── Dimensions / capacity ──────────────────────────────────
    dwt: Mapped[float | None] = mapped_column(Float)
    grt: Mapped[float | None] = mapped_column(Float)
    draft: Mapped[float | None] = mapped_column(Float)
    loa: Mapped[float | None] = mapped_column(Float)
    beam: Mapped[float | None] = mapped_column(Float)
    max_height: Mapped[float | None] = mapped_column(Float)

    flag: Mapped[str | None] = mapped_column(String(100))
    vessel_class: Mapped[str | None] = mapped_column(String(100))
    speed_knots: Mapped[float | None] = mapped_column(Float)
    consumption_per_day: Mapped[float | None] = mapped_column(Float)
    built_date: Mapped[str | None] = mapped_column(String(20))
    current_owner_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("companies.id"), index=True
    )

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
