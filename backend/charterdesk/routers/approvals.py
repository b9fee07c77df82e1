"""Approval routes for contracts and addenda.

Endpoints:
    GET    /api/approvals/contracts/{contract_id}              Approvals of a contract
    GET    /api/approvals/contracts/{contract_id}/summary      Counts by status
    POST   /api/approvals/contracts/{contract_id}              Request an approval
    GET    /api/approvals/addenda/{type}/{addenda_id}          Approvals of an addendum
    GET    /api/approvals/addenda/{type}/{addenda_id}/summary  Counts by status
    POST   /api/approvals/addenda/{type}/{addenda_id}          Request an approval
    POST   /api/approvals/{target}/{approval_id}/approve       Approve (target: contract|addenda)
    POST   /api/approvals/{target}/{approval_id}/reject        Reject
"""

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.models.approval import AddendaApproval, ContractApproval
from charterdesk.schemas.addenda import AddendaType
from charterdesk.schemas.approval import (
    ApprovalCreate,
    ApprovalDecision,
    ApprovalOut,
    ApprovalSummary,
)
from charterdesk.services import approvals

router = APIRouter()

_MODELS = {"contract": ContractApproval, "addenda": AddendaApproval}


# ── Contract approvals ──────────────────────────────────────

@router.get("/contracts/{contract_id}", response_model=list[ApprovalOut])
async def list_contract_approvals(
    contract_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await approvals.list_contract_approvals(db, contract_id)


@router.get("/contracts/{contract_id}/summary", response_model=ApprovalSummary)
async def contract_approval_summary(
    contract_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return approvals.summarize(await approvals.list_contract_approvals(db, contract_id))


@router.post("/contracts/{contract_id}", response_model=ApprovalOut, status_code=201)
async def create_contract_approval(
    contract_id: str,
    body: ApprovalCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("approvals.write")),
):
    approval = await approvals.create_contract_approval(db, caller, contract_id, body)
    return (await approvals.to_out(db, [approval]))[0]


# ── Addenda approvals ───────────────────────────────────────

@router.get("/addenda/{addenda_type}/{addenda_id}", response_model=list[ApprovalOut])
async def list_addenda_approvals(
    addenda_type: AddendaType,
    addenda_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await approvals.list_addenda_approvals(db, addenda_type, addenda_id)


@router.get("/addenda/{addenda_type}/{addenda_id}/summary", response_model=ApprovalSummary)
async def addenda_approval_summary(
    addenda_type: AddendaType,
    addenda_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return approvals.summarize(
        await approvals.list_addenda_approvals(db, addenda_type, addenda_id)
    )


# ── Decisions ───────────────────────────────────────────────

@router.post("/{target}/{approval_id}/approve", response_model=ApprovalOut)
async def approve(
    target: Literal["contract", "addenda"],
    approval_id: str,
    body: ApprovalDecision,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("approvals.write")),
):
    approval = await approvals.decide(
        db, caller, _MODELS[target], approval_id, approved=True, notes=body.notes
    )
    return (await approvals.to_out(db, [approval]))[0]


@router.post("/{target}/{approval_id}/reject", response_model=ApprovalOut)
async def reject(
    target: Literal["contract", "addenda"],
    approval_id: str,
    body: ApprovalDecision,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("approvals.write")),
):
    approval = await approvals.decide(
        db, caller, _MODELS[target], approval_id, approved=False, notes=body.notes
    )
    return (await approvals.to_out(db, [approval]))[0]


# ── Addenda approval requests ───────────────────────────────

@router.post(
    "/addenda/{addenda_type}/{addenda_id}", response_model=ApprovalOut, status_code=201
)
async def create_addenda_approval(
    addenda_type: AddendaType,
    addenda_id: str,
    body: ApprovalCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("approvals.write")),
):
    approval = await approvals.create_addenda_approval(db, caller, addenda_type, addenda_id, body)
    return (await approvals.to_out(db, [approval]))[0]
