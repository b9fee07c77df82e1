"""Contract (charter party) routes.

Endpoints:
    GET    /api/contracts/                         List contracts (?status=)
    GET    /api/contracts/by-negotiation/{id}      Contracts of a negotiation
    GET    /api/contracts/by-order/{id}            Contracts of an order
    POST   /api/contracts/                         Create contract
    GET    /api/contracts/{id}                     Contract with parties, addenda,
                                                   child voyages, approvals, signatures
    PATCH  /api/contracts/{id}                     Update contract
    POST   /api/contracts/{id}/status              Change status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.schemas.contract import (
    ContractCreate,
    ContractDetail,
    ContractEnriched,
    ContractOut,
    ContractStatus,
    ContractStatusUpdate,
    ContractUpdate,
)
from charterdesk.services import contracts

router = APIRouter()


@router.get("/", response_model=list[ContractEnriched])
async def list_contracts(
    status: ContractStatus | None = None,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await contracts.list_contracts(db, status=status)


@router.get("/by-negotiation/{negotiation_id}", response_model=list[ContractOut])
async def list_contracts_by_negotiation(
    negotiation_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await contracts.list_by_negotiation(db, negotiation_id)


@router.get("/by-order/{order_id}", response_model=list[ContractOut])
async def list_contracts_by_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await contracts.list_by_order(db, order_id)


@router.post("/", response_model=ContractOut, status_code=201)
async def create_contract(
    body: ContractCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    return await contracts.create_contract(db, caller, body)


@router.get("/{contract_id}", response_model=ContractDetail)
async def get_contract(
    contract_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await contracts.get_contract_detail(db, contract_id)


@router.patch("/{contract_id}", response_model=ContractOut)
async def update_contract(
    contract_id: str,
    body: ContractUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    return await contracts.update_contract(db, caller, contract_id, body)


@router.post("/{contract_id}/status", response_model=ContractOut)
async def update_contract_status(
    contract_id: str,
    body: ContractStatusUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    return await contracts.update_status(db, caller, contract_id, body)
