"""Batched point lookups for enriching trading entities.

Collect every id a response needs, load each table once with an IN query,
then resolve from memory:

    lookups = Lookups(db)
    await lookups.load(Company, [c.owner_id for c in contracts])
    owner = lookups.company_ref(contract.owner_id)
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.middleware.exceptions import ResourceNotFoundError
from charterdesk.models.cargo_type import CargoType
from charterdesk.models.company import Company
from charterdesk.models.port import Port
from charterdesk.models.user import User
from charterdesk.models.vessel import Vessel
from charterdesk.schemas.auth import UserSummary
from charterdesk.schemas.cargo_type import CargoTypeRef
from charterdesk.schemas.company import CompanyRef
from charterdesk.schemas.port import PortRef
from charterdesk.schemas.vessel import VesselRef
from charterdesk.services.enrichment import avatar_url


class Lookups:
    def __init__(self, db: AsyncSession):
        self.db = db
        self._rows: dict[type, dict[str, object]] = {}

    async def load(self, model, ids: Iterable[str | None]) -> None:
        cache = self._rows.setdefault(model, {})
        missing = {i for i in ids if i and i not in cache}
        if not missing:
            return
        result = await self.db.execute(select(model).where(model.id.in_(missing)))
        for row in result.scalars().all():
            cache[row.id] = row

    def get(self, model, record_id: str | None):
        if not record_id:
            return None
        return self._rows.get(model, {}).get(record_id)

    # ── Reference projections ───────────────────────────────

    def company_ref(self, company_id: str | None) -> CompanyRef | None:
        company = self.get(Company, company_id)
        if company is None:
            return None
        return CompanyRef(
            id=company.id,
            name=company.name,
            display_name=company.display_name,
            avatar_url=avatar_url(company.avatar_storage_id),
        )

    def vessel_ref(self, vessel_id: str | None) -> VesselRef | None:
        vessel = self.get(Vessel, vessel_id)
        return VesselRef.model_validate(vessel) if vessel else None

    def port_ref(self, port_id: str | None) -> PortRef | None:
        port = self.get(Port, port_id)
        return PortRef.model_validate(port) if port else None

    def cargo_type_ref(self, cargo_type_id: str | None) -> CargoTypeRef | None:
        cargo_type = self.get(CargoType, cargo_type_id)
        return CargoTypeRef.model_validate(cargo_type) if cargo_type else None

    def user_summary(self, user_id: str | None) -> UserSummary | None:
        user = self.get(User, user_id)
        if user is None:
            return None
        return UserSummary(
            id=user.id,
            name=user.name,
            email=user.email,
            avatar_url=avatar_url(user.avatar_storage_id),
        )

    def name_of(self, model, record_id: str | None) -> str | None:
        row = self.get(model, record_id)
        return row.name if row is not None else None


async def load_agreement_references(lookups: Lookups, agreements: list) -> None:
    """Load everything a contract/recap refers to by id."""
    await lookups.load(
        Company,
        [i for a in agreements for i in (a.owner_id, a.charterer_id, a.broker_id)],
    )
    await lookups.load(Vessel, [a.vessel_id for a in agreements])
    await lookups.load(Port, [i for a in agreements for i in (a.load_port_id, a.discharge_port_id)])
    await lookups.load(CargoType, [a.cargo_type_id for a in agreements])


async def get_or_404(db: AsyncSession, model, record_id: str, resource: str):
    row = await db.get(model, record_id)
    if row is None:
        raise ResourceNotFoundError(resource, record_id)
    return row


async def ensure_exists(db: AsyncSession, model, record_id: str | None, resource: str) -> None:
    """Reject a dangling reference before it reaches the foreign key."""
    if record_id:
        await get_or_404(db, model, record_id, resource)
