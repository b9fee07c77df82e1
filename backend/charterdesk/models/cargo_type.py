import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from charterdesk.database import Base
from charterdesk.utils.dates import utcnow


class CargoType(Base):
    __tablename__ = "cargo_types"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    # crude-oil | dry-bulk | container | lng | grain | iron-ore | coal | other
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    # mt | cbm | teu
    unit_type: Mapped[str] = mapped_column(String(10), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
