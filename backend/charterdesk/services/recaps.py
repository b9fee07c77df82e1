"""Recap manager (wet-market agreement) lifecycle.

Mirrors services.contracts with the recap status set; moving to
fully-fixed stamps fixed_at.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.models.recap_manager import RecapManager
from charterdesk.schemas.audit import StatusChangeMetadata
from charterdesk.schemas.recap_manager import (
    RecapCreate,
    RecapDetail,
    RecapEnriched,
    RecapOut,
    RecapStatusUpdate,
    RecapUpdate,
)
from charterdesk.services import addenda, agreements, audit
from charterdesk.services.lookups import Lookups, get_or_404
from charterdesk.services.rollup import recompute_fixture_derived, recompute_fixtures
from charterdesk.utils.dates import utcnow
from charterdesk.utils.numbering import generate_number


async def get_recap(db: AsyncSession, recap_id: str) -> RecapManager:
    return await get_or_404(db, RecapManager, recap_id, "Recap manager")


async def list_recaps(db: AsyncSession, status: str | None = None) -> list[RecapEnriched]:
    query = select(RecapManager)
    if status:
        query = query.where(RecapManager.status == status)
    result = await db.execute(query.order_by(RecapManager.created_at.desc()))
    return await enrich(db, list(result.scalars().all()))


async def list_by_negotiation(db: AsyncSession, negotiation_id: str) -> list[RecapManager]:
    result = await db.execute(
        select(RecapManager)
        .where(RecapManager.negotiation_id == negotiation_id)
        .order_by(RecapManager.created_at.desc())
    )
    return list(result.scalars().all())


async def list_by_order(db: AsyncSession, order_id: str) -> list[RecapManager]:
    result = await db.execute(
        select(RecapManager)
        .where(RecapManager.order_id == order_id)
        .order_by(RecapManager.created_at.desc())
    )
    return list(result.scalars().all())


async def enrich(db: AsyncSession, recaps: list[RecapManager]) -> list[RecapEnriched]:
    return await agreements.enrich(db, recaps, RecapOut, RecapEnriched)


async def get_recap_detail(db: AsyncSession, recap_id: str) -> RecapDetail:
    recap = await get_recap(db, recap_id)
    lookups = Lookups(db)
    await agreements.load_lineage(lookups, [recap])
    children = await db.execute(
        select(RecapManager)
        .where(RecapManager.parent_recap_id == recap.id)
        .order_by(RecapManager.created_at)
    )
    return RecapDetail(
        **RecapOut.model_validate(recap).model_dump(),
        **agreements.enrichment_fields(lookups, recap),
        addenda=await addenda.list_addenda(db, "recap", recap.id),
        child_voyages=[RecapOut.model_validate(r) for r in children.scalars().all()],
    )


async def create_recap(db: AsyncSession, caller: Caller, body: RecapCreate) -> RecapManager:
    agreements.check_lineage(body.order_id, body.negotiation_id)
    values = body.model_dump()
    await agreements.check_references(db, caller, values)
    if body.parent_recap_id:
        await get_recap(db, body.parent_recap_id)

    now = utcnow()
    recap = RecapManager(
        **values,
        recap_number=await generate_number(db, RecapManager.recap_number, "recap"),
        created_at=now,
        updated_at=now,
    )
    if recap.status == "fully-fixed":
        recap.fixed_at = now
    db.add(recap)
    await db.flush()

    await audit.record_activity(
        db,
        entity_type="recap_manager",
        entity_id=recap.id,
        action="created",
        description=f"Recap {recap.recap_number} created",
        status=audit.status_label(recap.status),
        user_id=caller.user_id,
    )
    await recompute_fixture_derived(db, recap.fixture_id)
    return recap


async def update_recap(
    db: AsyncSession, caller: Caller, recap_id: str, body: RecapUpdate
) -> RecapManager:
    recap = await get_recap(db, recap_id)
    updates = body.model_dump(exclude_unset=True)
    change_reason = updates.pop("change_reason", None)
    await agreements.check_references(db, caller, updates)
    if updates.get("parent_recap_id"):
        await get_recap(db, updates["parent_recap_id"])

    previous_fixture_id = recap.fixture_id
    before = audit.snapshot(recap)
    for key, value in updates.items():
        setattr(recap, key, value)

    changes = audit.record_field_changes(
        db,
        entity_type="recap_manager",
        entity_id=recap.id,
        before=before,
        after=audit.snapshot(recap),
        user_id=caller.user_id,
        change_reason=change_reason,
    )
    recap.updated_at = utcnow()
    if changes:
        await audit.record_activity(
            db,
            entity_type="recap_manager",
            entity_id=recap.id,
            action="updated",
            description=(
                f"Recap {recap.recap_number} updated "
                f"({', '.join(c.field_name for c in changes)})"
            ),
            user_id=caller.user_id,
        )
    await db.flush()
    await recompute_fixtures(db, previous_fixture_id, recap.fixture_id)
    return recap


async def update_status(
    db: AsyncSession, caller: Caller, recap_id: str, body: RecapStatusUpdate
) -> RecapManager:
    recap = await get_recap(db, recap_id)
    previous = recap.status
    now = utcnow()

    recap.status = body.status
    recap.updated_at = now
    if body.status == "fully-fixed":
        recap.fixed_at = now

    if previous != body.status:
        audit.record_field_change(
            db,
            entity_type="recap_manager",
            entity_id=recap.id,
            field_name="status",
            old_value=previous,
            new_value=body.status,
            user_id=caller.user_id,
        )
        await audit.record_activity(
            db,
            entity_type="recap_manager",
            entity_id=recap.id,
            action="status-changed",
            description=(
                f"Recap {recap.recap_number}: "
                f"{audit.title_case(previous)} → {audit.title_case(body.status)}"
            ),
            status=audit.status_label(body.status),
            metadata=StatusChangeMetadata(from_status=previous, to_status=body.status),
            user_id=caller.user_id,
        )
    await db.flush()
    await recompute_fixture_derived(db, recap.fixture_id)
    return recap
