"""Party approvals on contracts and addenda.

An approval starts `pending` and is decided once by approve/reject, which
records who decided, when, and any notes.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.approval import AddendaApproval, ContractApproval
from charterdesk.models.company import Company
from charterdesk.models.contract import Contract
from charterdesk.models.user import User
from charterdesk.schemas.approval import ApprovalCreate, ApprovalOut, ApprovalSummary
from charterdesk.services.addenda import get_addendum
from charterdesk.services.lookups import Lookups, ensure_exists, get_or_404
from charterdesk.utils.dates import utcnow


async def create_contract_approval(
    db: AsyncSession, caller: Caller, contract_id: str, body: ApprovalCreate
) -> ContractApproval:
    await get_or_404(db, Contract, contract_id, "Contract")
    await ensure_exists(db, Company, body.company_id, "Company")
    now = utcnow()
    approval = ContractApproval(
        contract_id=contract_id,
        party_role=body.party_role,
        company_id=body.company_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(approval)
    await db.flush()
    return approval


async def create_addenda_approval(
    db: AsyncSession, caller: Caller, addenda_type: str, addenda_id: str, body: ApprovalCreate
) -> AddendaApproval:
    await get_addendum(db, addenda_type, addenda_id)
    await ensure_exists(db, Company, body.company_id, "Company")
    now = utcnow()
    approval = AddendaApproval(
        addenda_id=addenda_id,
        addenda_type=addenda_type,
        party_role=body.party_role,
        company_id=body.company_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(approval)
    await db.flush()
    return approval


async def decide(
    db: AsyncSession,
    caller: Caller,
    model: type[ContractApproval] | type[AddendaApproval],
    approval_id: str,
    approved: bool,
    notes: str | None = None,
):
    approval = await get_or_404(db, model, approval_id, "Approval")
    if approval.status != "pending":
        raise BusinessLogicError(f"This approval has already been {approval.status}")
    now = utcnow()
    approval.status = "approved" if approved else "rejected"
    approval.approved_by = caller.user_id
    approval.approved_at = now
    approval.notes = notes
    approval.updated_at = now
    await db.flush()
    return approval


async def list_contract_approvals(db: AsyncSession, contract_id: str) -> list[ApprovalOut]:
    result = await db.execute(
        select(ContractApproval)
        .where(ContractApproval.contract_id == contract_id)
        .order_by(ContractApproval.created_at)
    )
    return await to_out(db, list(result.scalars().all()))


async def list_addenda_approvals(
    db: AsyncSession, addenda_type: str, addenda_id: str
) -> list[ApprovalOut]:
    result = await db.execute(
        select(AddendaApproval)
        .where(
            AddendaApproval.addenda_type == addenda_type,
            AddendaApproval.addenda_id == addenda_id,
        )
        .order_by(AddendaApproval.created_at)
    )
    return await to_out(db, list(result.scalars().all()))


async def to_out(db: AsyncSession, approvals: list) -> list[ApprovalOut]:
    lookups = Lookups(db)
    await lookups.load(Company, [a.company_id for a in approvals])
    await lookups.load(User, [a.approved_by for a in approvals])
    out = []
    for a in approvals:
        is_contract = isinstance(a, ContractApproval)
        out.append(ApprovalOut(
            id=a.id,
            target_type="contract" if is_contract else "addenda",
            target_id=a.contract_id if is_contract else a.addenda_id,
            addenda_type=None if is_contract else a.addenda_type,
            party_role=a.party_role,
            company_id=a.company_id,
            status=a.status,
            approved_by=a.approved_by,
            approved_at=a.approved_at,
            notes=a.notes,
            created_at=a.created_at,
            updated_at=a.updated_at,
            company=lookups.company_ref(a.company_id),
            user=lookups.user_summary(a.approved_by),
        ))
    return out


def summarize(approvals: list) -> ApprovalSummary:
    summary = ApprovalSummary(total=len(approvals))
    for a in approvals:
        if a.status == "approved":
            summary.approved += 1
        elif a.status == "rejected":
            summary.rejected += 1
        else:
            summary.pending += 1
    return summary
