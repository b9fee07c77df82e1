"""Contract (charter party) lifecycle.

Every create, update and status change ends by recomputing the owning
fixture's derived columns; moving a contract between fixtures recomputes
both.

Status side effects:
  working-copy → working_copy_date (first time only)
  final        → signed_at, final_date (first time only)
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.models.contract import Contract
from charterdesk.schemas.audit import StatusChangeMetadata
from charterdesk.schemas.contract import (
    ContractCreate,
    ContractDetail,
    ContractEnriched,
    ContractOut,
    ContractStatusUpdate,
    ContractUpdate,
)
from charterdesk.services import addenda, agreements, approvals, audit, signatures
from charterdesk.services.lookups import Lookups, get_or_404
from charterdesk.services.rollup import recompute_fixture_derived, recompute_fixtures
from charterdesk.utils.dates import utcnow
from charterdesk.utils.numbering import generate_number


async def get_contract(db: AsyncSession, contract_id: str) -> Contract:
    return await get_or_404(db, Contract, contract_id, "Contract")


async def list_contracts(db: AsyncSession, status: str | None = None) -> list[ContractEnriched]:
    query = select(Contract)
    if status:
        query = query.where(Contract.status == status)
    result = await db.execute(query.order_by(Contract.created_at.desc()))
    return await enrich(db, list(result.scalars().all()))


async def list_by_negotiation(db: AsyncSession, negotiation_id: str) -> list[Contract]:
    result = await db.execute(
        select(Contract)
        .where(Contract.negotiation_id == negotiation_id)
        .order_by(Contract.created_at.desc())
    )
    return list(result.scalars().all())


async def list_by_order(db: AsyncSession, order_id: str) -> list[Contract]:
    result = await db.execute(
        select(Contract)
        .where(Contract.order_id == order_id)
        .order_by(Contract.created_at.desc())
    )
    return list(result.scalars().all())


async def enrich(db: AsyncSession, contracts: list[Contract]) -> list[ContractEnriched]:
    return await agreements.enrich(db, contracts, ContractOut, ContractEnriched)


async def get_contract_detail(db: AsyncSession, contract_id: str) -> ContractDetail:
    contract = await get_contract(db, contract_id)
    lookups = Lookups(db)
    await agreements.load_lineage(lookups, [contract])

    children = await db.execute(
        select(Contract)
        .where(Contract.parent_contract_id == contract.id)
        .order_by(Contract.created_at)
    )
    contract_approvals = await approvals.list_contract_approvals(db, contract.id)
    contract_signatures = await signatures.list_contract_signatures(db, contract.id)

    return ContractDetail(
        **ContractOut.model_validate(contract).model_dump(),
        **agreements.enrichment_fields(lookups, contract),
        addenda=await addenda.list_addenda(db, "contract", contract.id),
        child_voyages=[ContractOut.model_validate(c) for c in children.scalars().all()],
        approvals=contract_approvals,
        approval_summary=approvals.summarize(contract_approvals),
        signatures=contract_signatures,
        signature_summary=signatures.summarize(contract_signatures),
    )


async def create_contract(db: AsyncSession, caller: Caller, body: ContractCreate) -> Contract:
    agreements.check_lineage(body.order_id, body.negotiation_id)
    values = body.model_dump()
    await agreements.check_references(db, caller, values)
    if body.parent_contract_id:
        await get_contract(db, body.parent_contract_id)

    now = utcnow()
    contract = Contract(
        **values,
        contract_number=await generate_number(db, Contract.contract_number, "contract"),
        created_at=now,
        updated_at=now,
    )
    _stamp_milestones(contract, contract.status, now)
    db.add(contract)
    await db.flush()

    await audit.record_activity(
        db,
        entity_type="contract",
        entity_id=contract.id,
        action="created",
        description=f"Contract {contract.contract_number} created",
        status=audit.status_label(contract.status),
        user_id=caller.user_id,
    )
    await recompute_fixture_derived(db, contract.fixture_id)
    return contract


async def update_contract(
    db: AsyncSession, caller: Caller, contract_id: str, body: ContractUpdate
) -> Contract:
    contract = await get_contract(db, contract_id)
    updates = body.model_dump(exclude_unset=True)
    change_reason = updates.pop("change_reason", None)
    await agreements.check_references(db, caller, updates)
    if updates.get("parent_contract_id"):
        await get_contract(db, updates["parent_contract_id"])

    previous_fixture_id = contract.fixture_id
    before = audit.snapshot(contract)
    for key, value in updates.items():
        setattr(contract, key, value)

    changes = audit.record_field_changes(
        db,
        entity_type="contract",
        entity_id=contract.id,
        before=before,
        after=audit.snapshot(contract),
        user_id=caller.user_id,
        change_reason=change_reason,
    )
    contract.updated_at = utcnow()
    if changes:
        await audit.record_activity(
            db,
            entity_type="contract",
            entity_id=contract.id,
            action="updated",
            description=(
                f"Contract {contract.contract_number} updated "
                f"({', '.join(c.field_name for c in changes)})"
            ),
            user_id=caller.user_id,
        )
    await db.flush()
    await recompute_fixtures(db, previous_fixture_id, contract.fixture_id)
    return contract


def _stamp_milestones(contract: Contract, status: str, now) -> None:
    if status == "working-copy" and contract.working_copy_date is None:
        contract.working_copy_date = now
    elif status == "final":
        contract.signed_at = now
        if contract.final_date is None:
            contract.final_date = now


async def update_status(
    db: AsyncSession, caller: Caller, contract_id: str, body: ContractStatusUpdate
) -> Contract:
    contract = await get_contract(db, contract_id)
    previous = contract.status
    now = utcnow()

    contract.status = body.status
    contract.updated_at = now
    _stamp_milestones(contract, body.status, now)

    if previous != body.status:
        audit.record_field_change(
            db,
            entity_type="contract",
            entity_id=contract.id,
            field_name="status",
            old_value=previous,
            new_value=body.status,
            user_id=caller.user_id,
        )
        await audit.record_activity(
            db,
            entity_type="contract",
            entity_id=contract.id,
            action="status-changed",
            description=(
                f"Contract {contract.contract_number}: "
                f"{audit.title_case(previous)} → {audit.title_case(body.status)}"
            ),
            status=audit.status_label(body.status),
            metadata=StatusChangeMetadata(from_status=previous, to_status=body.status),
            user_id=caller.user_id,
        )
    await db.flush()
    await recompute_fixture_derived(db, contract.fixture_id)
    return contract
