"""Audit trail writers and readers.

Writers append rows to the current session; they never commit and never
reject a write for business reasons:

  record_field_change   → one FieldChange row
  record_field_changes  → one row per attribute that differs between two snapshots
  record_activity       → one ActivityLog row, with a contract-terms snapshot
                          attached for negotiation events when one can be built

Readers return rows newest first, each enriched with the acting user.
A failed user lookup renders as `user: None` rather than failing the read.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.activity_log import ActivityLog
from charterdesk.models.contract import Contract
from charterdesk.models.field_change import FieldChange
from charterdesk.schemas.audit import (
    ActivityCreate,
    ActivityLogOut,
    ActivityMetadata,
    FieldChangeCreate,
    FieldChangeOut,
    dump_metadata,
    parse_metadata,
)
from charterdesk.services.enrichment import Enrichment, Failed, Ok, guarded, user_summaries
from charterdesk.utils.dates import utcnow

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
NOT_SPECIFIED = "Not specified"

# Bookkeeping columns that never show up as field changes
_UNTRACKED = {"id", "created_at", "updated_at", "search_text", "last_updated"}


# ── Value formatting ────────────────────────────────────────

def _stringify(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):  # enums
        return str(value.value)
    return str(value)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ── Field changes ───────────────────────────────────────────

def record_field_change(
    db: AsyncSession,
    *,
    entity_type: str,
    entity_id: str,
    field_name: str,
    old_value: Any,
    new_value: Any,
    user_id: str,
    change_reason: str | None = None,
) -> FieldChange:
    change = FieldChange(
        entity_type=entity_type,
        entity_id=entity_id,
        field_name=field_name,
        old_value=_stringify(old_value),
        new_value=_stringify(new_value),
        change_reason=change_reason,
        user_id=user_id,
        timestamp=utcnow(),
    )
    db.add(change)
    return change


def snapshot(entity) -> dict[str, Any]:
    """Column values of a mapped instance, keyed by attribute name."""
    mapper = inspect(entity).mapper
    return {
        attr.key: getattr(entity, attr.key)
        for attr in mapper.column_attrs
        if attr.key not in _UNTRACKED
    }


def record_field_changes(
    db: AsyncSession,
    *,
    entity_type: str,
    entity_id: str,
    before: dict[str, Any],
    after: dict[str, Any],
    user_id: str,
    change_reason: str | None = None,
) -> list[FieldChange]:
    """Record one FieldChange for every key whose value differs."""
    changes = []
    for field_name, new_value in after.items():
        old_value = before.get(field_name)
        if old_value == new_value:
            continue
        changes.append(
            record_field_change(
                db,
                entity_type=entity_type,
                entity_id=entity_id,
                field_name=field_name,
                old_value=old_value,
                new_value=new_value,
                user_id=user_id,
                change_reason=change_reason,
            )
        )
    return changes


# ── Activity log ────────────────────────────────────────────

def _contract_terms(contract: Contract) -> dict:
    if contract.laycan_start and contract.laycan_end:
        laycan = f"{contract.laycan_start:%Y-%m-%d} - {contract.laycan_end:%Y-%m-%d}"
    else:
        laycan = NOT_SPECIFIED

    if contract.quantity:
        quantity = f"{_format_number(contract.quantity)} {contract.quantity_unit or 'MT'}"
    else:
        quantity = NOT_SPECIFIED

    return {
        "data": [
            {"label": "Freight Rate", "value": contract.freight_rate or NOT_SPECIFIED},
            {"label": "Laycan", "value": laycan},
            {"label": "Quantity", "value": quantity},
            {"label": "Demurrage", "value": contract.demurrage_rate or NOT_SPECIFIED},
        ]
    }


async def build_negotiation_snapshot(
    db: AsyncSession, negotiation_id: str
) -> Enrichment[dict | None]:
    """Point-in-time view of the commercial terms of a negotiation's contract.

    Ok(None) when the negotiation has no contract yet.
    """
    found = await guarded(
        db,
        f"contract lookup for negotiation {negotiation_id} failed",
        lambda: db.scalar(
            select(Contract)
            .where(Contract.negotiation_id == negotiation_id)
            .order_by(Contract.created_at)
            .limit(1)
        ),
    )
    if isinstance(found, Failed):
        return found
    contract = found.value
    if contract is None:
        return Ok(None)
    return Ok(_contract_terms(contract))


async def record_activity(
    db: AsyncSession,
    *,
    entity_type: str,
    entity_id: str,
    action: str,
    description: str,
    user_id: str | None = None,
    status: dict | None = None,
    metadata: ActivityMetadata | None = None,
    timestamp: datetime | None = None,
) -> ActivityLog:
    expandable = None
    if entity_type == "negotiation":
        expandable = (await build_negotiation_snapshot(db, entity_id)).optional()

    entry = ActivityLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        description=description,
        status=status,
        metadata_=dump_metadata(metadata),
        expandable=expandable,
        user_id=user_id,
        timestamp=timestamp or utcnow(),
    )
    db.add(entry)
    return entry


def status_label(value: str) -> dict:
    """{"value": "firm-offer", "label": "Firm Offer"}"""
    return {"value": value, "label": title_case(value)}


def title_case(value: str) -> str:
    return " ".join(part.capitalize() for part in value.split("-"))


# ── Read side ───────────────────────────────────────────────

async def _field_changes_out(db: AsyncSession, rows: list[FieldChange]) -> list[FieldChangeOut]:
    users = await user_summaries(db, (row.user_id for row in rows))
    return [
        FieldChangeOut(
            id=row.id,
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            field_name=row.field_name,
            old_value=row.old_value,
            new_value=row.new_value,
            change_reason=row.change_reason,
            user_id=row.user_id,
            timestamp=row.timestamp,
            user=users.get(row.user_id),
        )
        for row in rows
    ]


async def _activity_out(db: AsyncSession, rows: list[ActivityLog]) -> list[ActivityLogOut]:
    users = await user_summaries(db, (row.user_id for row in rows))
    return [
        ActivityLogOut(
            id=row.id,
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            action=row.action,
            description=row.description,
            status=row.status,
            metadata=parse_metadata(row.metadata_),
            expandable=row.expandable,
            user_id=row.user_id,
            timestamp=row.timestamp,
            user=users.get(row.user_id) if row.user_id else None,
        )
        for row in rows
    ]


async def get_field_changes(
    db: AsyncSession, entity_type: str, entity_id: str
) -> list[FieldChangeOut]:
    result = await db.execute(
        select(FieldChange)
        .where(FieldChange.entity_type == entity_type, FieldChange.entity_id == entity_id)
        .order_by(FieldChange.timestamp.desc())
    )
    return await _field_changes_out(db, list(result.scalars().all()))


async def get_recent_field_changes(
    db: AsyncSession, limit: int = DEFAULT_LIMIT
) -> list[FieldChangeOut]:
    result = await db.execute(
        select(FieldChange).order_by(FieldChange.timestamp.desc()).limit(limit)
    )
    return await _field_changes_out(db, list(result.scalars().all()))


async def get_field_changes_by_user(
    db: AsyncSession, user_id: str, limit: int = DEFAULT_LIMIT
) -> list[FieldChangeOut]:
    result = await db.execute(
        select(FieldChange)
        .where(FieldChange.user_id == user_id)
        .order_by(FieldChange.timestamp.desc())
        .limit(limit)
    )
    return await _field_changes_out(db, list(result.scalars().all()))


async def get_activity_log(
    db: AsyncSession, entity_type: str, entity_id: str
) -> list[ActivityLogOut]:
    result = await db.execute(
        select(ActivityLog)
        .where(ActivityLog.entity_type == entity_type, ActivityLog.entity_id == entity_id)
        .order_by(ActivityLog.timestamp.desc())
    )
    return await _activity_out(db, list(result.scalars().all()))


async def get_recent_activity(
    db: AsyncSession, limit: int = DEFAULT_LIMIT
) -> list[ActivityLogOut]:
    result = await db.execute(
        select(ActivityLog).order_by(ActivityLog.timestamp.desc()).limit(limit)
    )
    return await _activity_out(db, list(result.scalars().all()))


async def get_activity_by_user(
    db: AsyncSession, user_id: str, limit: int = DEFAULT_LIMIT
) -> list[ActivityLogOut]:
    result = await db.execute(
        select(ActivityLog)
        .where(ActivityLog.user_id == user_id)
        .order_by(ActivityLog.timestamp.desc())
        .limit(limit)
    )
    return await _activity_out(db, list(result.scalars().all()))


# ── Manual entries ──────────────────────────────────────────

async def log_field_change(
    db: AsyncSession, user_id: str, body: FieldChangeCreate
) -> FieldChangeOut:
    change = record_field_change(db, **body.model_dump(), user_id=user_id)
    await db.flush()
    return (await _field_changes_out(db, [change]))[0]


async def log_activity(db: AsyncSession, user_id: str, body: ActivityCreate) -> ActivityLogOut:
    entry = await record_activity(
        db,
        entity_type=body.entity_type,
        entity_id=body.entity_id,
        action=body.action,
        description=body.description,
        status=body.status.model_dump() if body.status else None,
        metadata=body.metadata,
        user_id=user_id,
    )
    await db.flush()
    return (await _activity_out(db, [entry]))[0]
