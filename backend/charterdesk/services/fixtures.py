"""Fixture CRUD. Derived columns are left to services.rollup."""

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import ResourceNotFoundError
from charterdesk.models.contract import Contract
from charterdesk.models.fixture import Fixture
from charterdesk.models.recap_manager import RecapManager
from charterdesk.schemas.fixture import FixtureCreate, FixtureUpdate
from charterdesk.services.orders import get_order
from charterdesk.services.rollup import recompute_fixture_derived
from charterdesk.utils.dates import utcnow
from charterdesk.utils.numbering import generate_number

logger = logging.getLogger(__name__)


async def get_fixture(db: AsyncSession, caller: Caller, fixture_id: str) -> Fixture:
    fixture = await db.get(Fixture, fixture_id)
    if fixture is None or fixture.organization_id != caller.organization_id:
        raise ResourceNotFoundError("Fixture", fixture_id)
    return fixture


async def list_fixtures(db: AsyncSession, caller: Caller) -> list[Fixture]:
    result = await db.execute(
        select(Fixture)
        .where(Fixture.organization_id == caller.require_organization())
        .order_by(Fixture.created_at.desc())
    )
    return list(result.scalars().all())


async def create_fixture(db: AsyncSession, caller: Caller, body: FixtureCreate) -> Fixture:
    organization_id = caller.require_organization()
    if body.order_id:
        await get_order(db, caller, body.order_id)

    now = utcnow()
    fixture = Fixture(
        fixture_number=await generate_number(db, Fixture.fixture_number, "fixture"),
        order_id=body.order_id,
        title=body.title,
        organization_id=organization_id,
        status=body.status,
        created_at=now,
        updated_at=now,
    )
    db.add(fixture)
    await db.flush()
    await recompute_fixture_derived(db, fixture.id)
    return fixture


async def update_fixture(
    db: AsyncSession, caller: Caller, fixture_id: str, body: FixtureUpdate
) -> Fixture:
    fixture = await get_fixture(db, caller, fixture_id)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(fixture, key, value)
    fixture.updated_at = utcnow()
    await db.flush()
    await recompute_fixture_derived(db, fixture.id)
    return fixture


async def delete_fixture(db: AsyncSession, caller: Caller, fixture_id: str) -> None:
    """Remove a fixture. Its contracts and recaps stay, detached."""
    fixture = await get_fixture(db, caller, fixture_id)
    await db.execute(
        update(Contract).where(Contract.fixture_id == fixture.id).values(fixture_id=None)
    )
    await db.execute(
        update(RecapManager).where(RecapManager.fixture_id == fixture.id).values(fixture_id=None)
    )
    await db.delete(fixture)
    await db.flush()
    logger.info("Fixture %s removed by %s", fixture.fixture_number, caller.user_id)


async def recompute_fixture(db: AsyncSession, caller: Caller, fixture_id: str) -> Fixture:
    fixture = await get_fixture(db, caller, fixture_id)
    await recompute_fixture_derived(db, fixture.id)
    return fixture
