"""Signature routes for contracts and addenda.

Endpoints:
    GET    /api/signatures/contracts/{contract_id}              Signatures of a contract
    GET    /api/signatures/contracts/{contract_id}/summary      Counts by status
    POST   /api/signatures/contracts/{contract_id}              Request a signature
    GET    /api/signatures/addenda/{type}/{addenda_id}          Signatures of an addendum
    GET    /api/signatures/addenda/{type}/{addenda_id}/summary  Counts by status
    POST   /api/signatures/addenda/{type}/{addenda_id}          Request a signature
    POST   /api/signatures/{target}/{signature_id}/sign         Sign (target: contract|addenda)
    POST   /api/signatures/{target}/{signature_id}/reject       Reject
"""

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.models.signature import AddendaSignature, ContractSignature
from charterdesk.schemas.addenda import AddendaType
from charterdesk.schemas.signature import (
    SignatureCreate,
    SignatureOut,
    SignatureSummary,
    SignRequest,
)
from charterdesk.services import signatures

router = APIRouter()

_MODELS = {"contract": ContractSignature, "addenda": AddendaSignature}


@router.get("/contracts/{contract_id}", response_model=list[SignatureOut])
async def list_contract_signatures(
    contract_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await signatures.list_contract_signatures(db, contract_id)


@router.get("/contracts/{contract_id}/summary", response_model=SignatureSummary)
async def contract_signature_summary(
    contract_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return signatures.summarize(await signatures.list_contract_signatures(db, contract_id))


@router.post("/contracts/{contract_id}", response_model=SignatureOut, status_code=201)
async def create_contract_signature(
    contract_id: str,
    body: SignatureCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("signatures.write")),
):
    signature = await signatures.create_contract_signature(db, caller, contract_id, body)
    return (await signatures.to_out(db, [signature]))[0]


@router.get("/addenda/{addenda_type}/{addenda_id}", response_model=list[SignatureOut])
async def list_addenda_signatures(
    addenda_type: AddendaType,
    addenda_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await signatures.list_addenda_signatures(db, addenda_type, addenda_id)


@router.get("/addenda/{addenda_type}/{addenda_id}/summary", response_model=SignatureSummary)
async def addenda_signature_summary(
    addenda_type: AddendaType,
    addenda_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return signatures.summarize(
        await signatures.list_addenda_signatures(db, addenda_type, addenda_id)
    )


@router.post("/{target}/{signature_id}/sign", response_model=SignatureOut)
async def sign(
    target: Literal["contract", "addenda"],
    signature_id: str,
    body: SignRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("signatures.write")),
):
    signature = await signatures.sign(db, caller, _MODELS[target], signature_id, body)
    return (await signatures.to_out(db, [signature]))[0]


@router.post("/{target}/{signature_id}/reject", response_model=SignatureOut)
async def reject(
    target: Literal["contract", "addenda"],
    signature_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("signatures.write")),
):
    signature = await signatures.reject(db, caller, _MODELS[target], signature_id)
    return (await signatures.to_out(db, [signature]))[0]


@router.post(
    "/addenda/{addenda_type}/{addenda_id}", response_model=SignatureOut, status_code=201
)
async def create_addenda_signature(
    addenda_type: AddendaType,
    addenda_id: str,
    body: SignatureCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("signatures.write")),
):
    signature = await signatures.create_addenda_signature(
        db, caller, addenda_type, addenda_id, body
    )
    return (await signatures.to_out(db, [signature]))[0]
