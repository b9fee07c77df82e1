"""Addenda on contracts ("contract") and recap managers ("recap").

Edits are recorded as field changes under contract_addenda / recap_addenda.
Addenda never trigger the fixture rollup.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.addenda import ContractAddendum, RecapAddendum
from charterdesk.models.contract import Contract
from charterdesk.models.recap_manager import RecapManager
from charterdesk.schemas.addenda import (
    AddendumCreate,
    AddendumOut,
    AddendumStatusUpdate,
    AddendumUpdate,
)
from charterdesk.services import audit
from charterdesk.services.lookups import get_or_404
from charterdesk.utils.dates import utcnow
from charterdesk.utils.numbering import generate_number


@dataclass(frozen=True)
class _Kind:
    model: type
    parent_model: type
    parent_key: str
    parent_name: str
    entity_type: str


KINDS = {
    "contract": _Kind(ContractAddendum, Contract, "contract_id", "Contract", "contract_addenda"),
    "recap": _Kind(RecapAddendum, RecapManager, "recap_manager_id", "Recap manager", "recap_addenda"),
}


def _kind(addenda_type: str) -> _Kind:
    try:
        return KINDS[addenda_type]
    except KeyError:
        raise BusinessLogicError(f"Unknown addenda type: {addenda_type}") from None


def to_out(addenda_type: str, addendum) -> AddendumOut:
    return AddendumOut(
        id=addendum.id,
        addenda_type=addenda_type,
        parent_id=getattr(addendum, _kind(addenda_type).parent_key),
        addendum_number=addendum.addendum_number,
        title=addendum.title,
        description=addendum.description,
        status=addendum.status,
        created_by_user_id=addendum.created_by_user_id,
        created_at=addendum.created_at,
        updated_at=addendum.updated_at,
    )


async def get_addendum(db: AsyncSession, addenda_type: str, addendum_id: str):
    return await get_or_404(db, _kind(addenda_type).model, addendum_id, "Addendum")


async def list_addenda(db: AsyncSession, addenda_type: str, parent_id: str) -> list[AddendumOut]:
    kind = _kind(addenda_type)
    result = await db.execute(
        select(kind.model)
        .where(getattr(kind.model, kind.parent_key) == parent_id)
        .order_by(kind.model.created_at)
    )
    return [to_out(addenda_type, a) for a in result.scalars().all()]


async def create_addendum(
    db: AsyncSession, caller: Caller, addenda_type: str, parent_id: str, body: AddendumCreate
):
    kind = _kind(addenda_type)
    await get_or_404(db, kind.parent_model, parent_id, kind.parent_name)

    now = utcnow()
    addendum = kind.model(
        **body.model_dump(),
        addendum_number=await generate_number(db, kind.model.addendum_number, "addendum"),
        created_by_user_id=caller.user_id,
        created_at=now,
        updated_at=now,
    )
    setattr(addendum, kind.parent_key, parent_id)
    db.add(addendum)
    await db.flush()
    return addendum


async def update_addendum(
    db: AsyncSession, caller: Caller, addenda_type: str, addendum_id: str, body: AddendumUpdate
):
    kind = _kind(addenda_type)
    addendum = await get_addendum(db, addenda_type, addendum_id)
    updates = body.model_dump(exclude_unset=True)
    change_reason = updates.pop("change_reason", None)

    before = audit.snapshot(addendum)
    for key, value in updates.items():
        setattr(addendum, key, value)
    changes = audit.record_field_changes(
        db,
        entity_type=kind.entity_type,
        entity_id=addendum.id,
        before=before,
        after=audit.snapshot(addendum),
        user_id=caller.user_id,
        change_reason=change_reason,
    )
    if changes:
        addendum.updated_at = utcnow()
    await db.flush()
    return addendum


async def update_status(
    db: AsyncSession,
    caller: Caller,
    addenda_type: str,
    addendum_id: str,
    body: AddendumStatusUpdate,
):
    kind = _kind(addenda_type)
    addendum = await get_addendum(db, addenda_type, addendum_id)
    if addendum.status != body.status:
        audit.record_field_change(
            db,
            entity_type=kind.entity_type,
            entity_id=addendum.id,
            field_name="status",
            old_value=addendum.status,
            new_value=body.status,
            user_id=caller.user_id,
        )
        addendum.status = body.status
        addendum.updated_at = utcnow()
        await db.flush()
    return addendum
