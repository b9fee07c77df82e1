"""Negotiation lifecycle and bid/offer analytics.

Every negotiation write (create, update, status change, analytics) reruns
the rollup on the fixtures made from its order.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.models.activity_log import ActivityLog
from charterdesk.models.company import Company
from charterdesk.models.negotiation import Negotiation
from charterdesk.models.order import Order
from charterdesk.models.user import User
from charterdesk.models.vessel import Vessel
from charterdesk.schemas.audit import StatusChangeMetadata
from charterdesk.schemas.negotiation import (
    NegotiationAnalytics,
    NegotiationCreate,
    NegotiationEnriched,
    NegotiationOut,
    NegotiationStatusUpdate,
    NegotiationUpdate,
)
from charterdesk.services import audit, rollup
from charterdesk.services.lookups import Lookups, ensure_exists, get_or_404
from charterdesk.services.orders import get_order
from charterdesk.utils.dates import utcnow
from charterdesk.utils.numbering import generate_number
from charterdesk.utils.numbers import first_number

logger = logging.getLogger(__name__)

LAST_DAY = timedelta(hours=24)


async def _check_references(db: AsyncSession, values: dict) -> None:
    for key in ("counterparty_id", "broker_id"):
        await ensure_exists(db, Company, values.get(key), "Company")
    await ensure_exists(db, Vessel, values.get("vessel_id"), "Vessel")
    for key in ("person_in_charge_id", "deal_capture_user_id"):
        await ensure_exists(db, User, values.get(key), "User")


async def get_negotiation(db: AsyncSession, negotiation_id: str) -> Negotiation:
    return await get_or_404(db, Negotiation, negotiation_id, "Negotiation")


def _scoped(caller: Caller):
    return (
        select(Negotiation)
        .join(Order, Order.id == Negotiation.order_id)
        .where(Order.organization_id == caller.require_organization())
    )


async def list_by_order(
    db: AsyncSession, caller: Caller, order_id: str
) -> list[NegotiationEnriched]:
    await get_order(db, caller, order_id)
    result = await db.execute(
        select(Negotiation)
        .where(Negotiation.order_id == order_id)
        .order_by(Negotiation.created_at.desc())
    )
    return await enrich(db, list(result.scalars().all()))


async def list_by_status(db: AsyncSession, caller: Caller, status: str) -> list[Negotiation]:
    result = await db.execute(
        _scoped(caller)
        .where(Negotiation.status == status)
        .order_by(Negotiation.created_at.desc())
    )
    return list(result.scalars().all())


async def list_by_counterparty(
    db: AsyncSession, caller: Caller, counterparty_id: str
) -> list[Negotiation]:
    result = await db.execute(
        _scoped(caller)
        .where(Negotiation.counterparty_id == counterparty_id)
        .order_by(Negotiation.created_at.desc())
    )
    return list(result.scalars().all())


async def enrich(db: AsyncSession, negotiations: list[Negotiation]) -> list[NegotiationEnriched]:
    lookups = Lookups(db)
    await lookups.load(
        Company, [i for n in negotiations for i in (n.counterparty_id, n.broker_id)]
    )
    await lookups.load(Vessel, [n.vessel_id for n in negotiations])
    await lookups.load(User, [n.person_in_charge_id for n in negotiations])
    return [
        NegotiationEnriched(
            **NegotiationOut.model_validate(n).model_dump(),
            counterparty=lookups.company_ref(n.counterparty_id),
            broker=lookups.company_ref(n.broker_id),
            vessel=lookups.vessel_ref(n.vessel_id),
            person_in_charge=lookups.user_summary(n.person_in_charge_id),
        )
        for n in negotiations
    ]


async def create_negotiation(
    db: AsyncSession, caller: Caller, body: NegotiationCreate
) -> Negotiation:
    values = body.model_dump()
    await get_order(db, caller, body.order_id)
    await _check_references(db, values)

    now = utcnow()
    negotiation = Negotiation(
        **values,
        negotiation_number=await generate_number(
            db, Negotiation.negotiation_number, "negotiation"
        ),
        created_by_user_id=caller.user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(negotiation)
    await db.flush()

    await audit.record_activity(
        db,
        entity_type="negotiation",
        entity_id=negotiation.id,
        action="created",
        description=f"Negotiation {negotiation.negotiation_number} created",
        status=audit.status_label(negotiation.status),
        user_id=caller.user_id,
    )
    await rollup.recompute_fixtures_for_order(db, negotiation.order_id)
    return negotiation


async def update_negotiation(
    db: AsyncSession, caller: Caller, negotiation_id: str, body: NegotiationUpdate
) -> Negotiation:
    negotiation = await get_negotiation(db, negotiation_id)
    updates = body.model_dump(exclude_unset=True)
    change_reason = updates.pop("change_reason", None)
    await _check_references(db, updates)

    before = audit.snapshot(negotiation)
    for key, value in updates.items():
        setattr(negotiation, key, value)

    changes = audit.record_field_changes(
        db,
        entity_type="negotiation",
        entity_id=negotiation.id,
        before=before,
        after=audit.snapshot(negotiation),
        user_id=caller.user_id,
        change_reason=change_reason,
    )
    if changes:
        negotiation.updated_at = utcnow()
        await audit.record_activity(
            db,
            entity_type="negotiation",
            entity_id=negotiation.id,
            action="updated",
            description=(
                f"Negotiation {negotiation.negotiation_number} updated "
                f"({', '.join(c.field_name for c in changes)})"
            ),
            user_id=caller.user_id,
        )
    await db.flush()
    await rollup.recompute_fixtures_for_order(db, negotiation.order_id)
    return negotiation


async def update_status(
    db: AsyncSession, caller: Caller, negotiation_id: str, body: NegotiationStatusUpdate
) -> Negotiation:
    negotiation = await get_negotiation(db, negotiation_id)
    previous = negotiation.status
    if previous == body.status:
        return negotiation

    negotiation.status = body.status
    negotiation.updated_at = utcnow()
    audit.record_field_change(
        db,
        entity_type="negotiation",
        entity_id=negotiation.id,
        field_name="status",
        old_value=previous,
        new_value=body.status,
        user_id=caller.user_id,
    )
    await audit.record_activity(
        db,
        entity_type="negotiation",
        entity_id=negotiation.id,
        action="status-changed",
        description=body.description or (
            f"Negotiation {negotiation.negotiation_number}: "
            f"{audit.title_case(previous)} → {audit.title_case(body.status)}"
        ),
        status=audit.status_label(body.status),
        metadata=StatusChangeMetadata(from_status=previous, to_status=body.status),
        user_id=caller.user_id,
    )
    await db.flush()
    await rollup.recompute_fixtures_for_order(db, negotiation.order_id)
    return negotiation


# ── Analytics ───────────────────────────────────────────────

def _indication_kind(label: str) -> str | None:
    label = label.lower()
    if "demurrage" in label:
        return "demurrage"
    if "freight" in label or "rate" in label:
        return "freight"
    return None


def _stats(points: list[tuple[datetime, float]]) -> tuple[float, float, float] | None:
    if not points:
        return None
    values = [value for _, value in points]
    return max(values), min(values), values[0]


def _analyse(points: list[tuple[datetime, float]]) -> dict:
    overall = _stats(points)
    last_day = None
    if points:
        cutoff = points[-1][0] - LAST_DAY
        last_day = _stats([p for p in points if p[0] >= cutoff])
    return {"overall": overall, "last_day": last_day}


def collect_indications(
    logs: list[ActivityLog],
) -> dict[str, list[tuple[datetime, float]]]:
    """Pull (timestamp, number) pairs out of expandable snapshots, oldest first."""
    found: dict[str, list[tuple[datetime, float]]] = {"freight": [], "demurrage": []}
    for log in sorted(logs, key=lambda entry: entry.timestamp):
        rows = (log.expandable or {}).get("data") or []
        for row in rows:
            kind = _indication_kind(str(row.get("label", "")))
            if kind is None:
                continue
            value = first_number(row.get("value"))
            if value is not None:
                found[kind].append((log.timestamp, value))
    return found


async def calculate_analytics(db: AsyncSession, negotiation_id: str) -> NegotiationAnalytics:
    """Recompute and persist the highest/lowest/first indications.

    Falls back to the negotiation's own rates when its activity log holds
    no indications. updated_at is left alone: analytics are derived.
    """
    negotiation = await get_negotiation(db, negotiation_id)
    result = await db.execute(
        select(ActivityLog).where(
            ActivityLog.entity_type == "negotiation",
            ActivityLog.entity_id == negotiation.id,
        )
    )
    indications = collect_indications(list(result.scalars().all()))

    seen_at = negotiation.updated_at or negotiation.created_at
    for kind, own_rate in (
        ("freight", negotiation.freight_rate),
        ("demurrage", negotiation.demurrage_rate),
    ):
        value = first_number(own_rate)
        if not indications[kind] and value is not None:
            indications[kind] = [(seen_at, value)]

    values: dict[str, float | None] = {}
    for kind, prefix in (("freight", "freight_rate"), ("demurrage", "demurrage")):
        analysis = _analyse(indications[kind])
        for window, suffix in (("overall", "indication"), ("last_day", "last_day")):
            stats = analysis[window] or (None, None, None)
            for position, value in zip(("highest", "lowest", "first"), stats):
                values[f"{position}_{prefix}_{suffix}"] = value

    for key, value in values.items():
        setattr(negotiation, key, value)
    await db.flush()
    await rollup.recompute_fixtures_for_order(db, negotiation.order_id)
    logger.debug("Analytics recomputed for negotiation %s", negotiation.negotiation_number)
    return NegotiationAnalytics(**values)
