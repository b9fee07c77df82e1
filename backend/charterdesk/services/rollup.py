"""Fixture rollup: recompute a fixture's derived columns from its children.

  last_updated → max of the fixture's own created/updated time and every
                 child's updated_at (falling back to created_at), where the
                 children are its contracts, its recaps and the negotiations
                 of its order
  search_text  → lowercase, sorted, space-joined set of every identifying
                 string reachable from the fixture: numbers, contract types,
                 delivery types, market index names, and the names of the
                 referenced vessels (plus IMO), companies, ports (plus
                 country), cargo types and users

Called at the end of every contract/recap mutation that carries a
fixture_id and of every negotiation write (through the order), inside the
request's transaction. Lookups of optional related rows run in savepoints;
one that fails is logged and skipped, and the rollup never aborts the write
that triggered it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.cargo_type import CargoType
from charterdesk.models.company import Company
from charterdesk.models.contract import Contract
from charterdesk.models.fixture import Fixture
from charterdesk.models.negotiation import Negotiation
from charterdesk.models.order import Order
from charterdesk.models.port import Port
from charterdesk.models.recap_manager import RecapManager
from charterdesk.models.user import User
from charterdesk.models.vessel import Vessel
from charterdesk.services.enrichment import Enrichment, guarded

logger = logging.getLogger(__name__)


async def _lookup(db: AsyncSession, model, record_id: str) -> Enrichment:
    return await guarded(
        db,
        f"{model.__tablename__} lookup failed for {record_id}",
        lambda: db.get(model, record_id),
    )


def _child_timestamp(child) -> datetime:
    return child.updated_at or child.created_at


def compute_last_updated(
    fixture: Fixture, children: Iterable
) -> datetime:
    timestamps = [fixture.created_at]
    if fixture.updated_at:
        timestamps.append(fixture.updated_at)
    timestamps.extend(_child_timestamp(child) for child in children)
    return max(timestamps)


async def compute_search_text(
    db: AsyncSession,
    fixture: Fixture,
    agreements: list,
    negotiations: list[Negotiation],
    order: Order | None,
) -> str:
    values: set[str] = {fixture.fixture_number}
    vessel_ids: set[str] = set()
    company_ids: set[str] = set()
    port_ids: set[str] = set()
    cargo_type_ids: set[str] = set()
    user_ids: set[str] = set()

    for agreement in agreements:
        number = (
            agreement.contract_number
            if isinstance(agreement, Contract)
            else agreement.recap_number
        )
        values.update(
            v for v in (
                number,
                agreement.contract_type,
                agreement.load_delivery_type,
                agreement.discharge_redelivery_type,
            ) if v
        )
        vessel_ids.add(agreement.vessel_id)
        company_ids.update((agreement.owner_id, agreement.charterer_id, agreement.broker_id))
        port_ids.update((agreement.load_port_id, agreement.discharge_port_id))
        cargo_type_ids.add(agreement.cargo_type_id)

    for negotiation in negotiations:
        values.update(
            v for v in (
                negotiation.negotiation_number,
                negotiation.market_index_name,
                negotiation.load_delivery_type,
                negotiation.discharge_redelivery_type,
            ) if v
        )
        vessel_ids.add(negotiation.vessel_id)
        company_ids.update((negotiation.counterparty_id, negotiation.broker_id))
        user_ids.add(negotiation.deal_capture_user_id)

    if order is not None:
        user_ids.add(order.created_by_user_id)
        port_ids.update((order.load_port_id, order.discharge_port_id))
        cargo_type_ids.add(order.cargo_type_id)

    for vessel_id in sorted(filter(None, vessel_ids)):
        vessel = (await _lookup(db, Vessel, vessel_id)).optional()
        if vessel:
            values.add(vessel.name)
            if vessel.imo_number:
                values.add(vessel.imo_number)
    for company_id in sorted(filter(None, company_ids)):
        company = (await _lookup(db, Company, company_id)).optional()
        if company:
            values.add(company.name)
    for port_id in sorted(filter(None, port_ids)):
        port = (await _lookup(db, Port, port_id)).optional()
        if port:
            values.add(port.name)
            if port.country:
                values.add(port.country)
    for cargo_type_id in sorted(filter(None, cargo_type_ids)):
        cargo_type = (await _lookup(db, CargoType, cargo_type_id)).optional()
        if cargo_type:
            values.add(cargo_type.name)
    for user_id in sorted(filter(None, user_ids)):
        user = (await _lookup(db, User, user_id)).optional()
        if user:
            values.add(user.name)

    return " ".join(sorted({value.lower() for value in values}))


async def recompute_fixture_derived(db: AsyncSession, fixture_id: str | None) -> None:
    """Overwrite the fixture's last_updated and search_text.

    A missing fixture is a no-op. The fixture's own updated_at is left alone.
    """
    if not fixture_id:
        return
    fixture = await db.get(Fixture, fixture_id)
    if fixture is None:
        return

    contracts = list(
        (await db.execute(select(Contract).where(Contract.fixture_id == fixture_id)))
        .scalars().all()
    )
    recaps = list(
        (await db.execute(select(RecapManager).where(RecapManager.fixture_id == fixture_id)))
        .scalars().all()
    )

    order = None
    negotiations: list[Negotiation] = []
    if fixture.order_id:
        order = (await _lookup(db, Order, fixture.order_id)).optional()
        negotiations = list(
            (await db.execute(
                select(Negotiation).where(Negotiation.order_id == fixture.order_id)
            )).scalars().all()
        )

    fixture.last_updated = compute_last_updated(fixture, [*contracts, *recaps, *negotiations])
    fixture.search_text = await compute_search_text(
        db, fixture, [*contracts, *recaps], negotiations, order
    )
    await db.flush()

    logger.debug(
        "Recomputed fixture %s: %d contracts, %d recaps, %d negotiations",
        fixture.fixture_number, len(contracts), len(recaps), len(negotiations),
    )


async def recompute_fixtures(db: AsyncSession, *fixture_ids: str | None) -> None:
    """Recompute each distinct fixture once (a move touches old and new)."""
    seen = set()
    for fixture_id in fixture_ids:
        if fixture_id and fixture_id not in seen:
            seen.add(fixture_id)
            await recompute_fixture_derived(db, fixture_id)


async def recompute_all_fixtures(db: AsyncSession, organization_id: str | None = None) -> int:
    """Rerun the rollup on every fixture (optionally one organization's)."""
    query = select(Fixture.id).order_by(Fixture.created_at)
    if organization_id:
        query = query.where(Fixture.organization_id == organization_id)
    fixture_ids = list((await db.execute(query)).scalars().all())
    for fixture_id in fixture_ids:
        await recompute_fixture_derived(db, fixture_id)
    logger.info("Recomputed derived fields on %d fixtures", len(fixture_ids))
    return len(fixture_ids)


async def recompute_fixtures_for_order(db: AsyncSession, order_id: str | None) -> None:
    """Recompute every fixture made from the order (negotiation writes)."""
    if not order_id:
        return
    fixture_ids = (
        await db.execute(select(Fixture.id).where(Fixture.order_id == order_id))
    ).scalars().all()
    await recompute_fixtures(db, *fixture_ids)
