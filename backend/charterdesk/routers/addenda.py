"""Addenda routes. `addenda_type` is "contract" or "recap".

Endpoints:
    GET    /api/addenda/{type}/by-parent/{parent_id}    Addenda of a contract/recap
    POST   /api/addenda/{type}/by-parent/{parent_id}    Create addendum
    GET    /api/addenda/{type}/{id}                     Single addendum
    PATCH  /api/addenda/{type}/{id}                     Update addendum
    POST   /api/addenda/{type}/{id}/status              Change status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.schemas.addenda import (
    AddendaType,
    AddendumCreate,
    AddendumOut,
    AddendumStatusUpdate,
    AddendumUpdate,
)
from charterdesk.services import addenda

router = APIRouter()


@router.get("/{addenda_type}/by-parent/{parent_id}", response_model=list[AddendumOut])
async def list_addenda(
    addenda_type: AddendaType,
    parent_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await addenda.list_addenda(db, addenda_type, parent_id)


@router.post(
    "/{addenda_type}/by-parent/{parent_id}", response_model=AddendumOut, status_code=201
)
async def create_addendum(
    addenda_type: AddendaType,
    parent_id: str,
    body: AddendumCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    addendum = await addenda.create_addendum(db, caller, addenda_type, parent_id, body)
    return addenda.to_out(addenda_type, addendum)


@router.get("/{addenda_type}/{addendum_id}", response_model=AddendumOut)
async def get_addendum(
    addenda_type: AddendaType,
    addendum_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return addenda.to_out(addenda_type, await addenda.get_addendum(db, addenda_type, addendum_id))


@router.patch("/{addenda_type}/{addendum_id}", response_model=AddendumOut)
async def update_addendum(
    addenda_type: AddendaType,
    addendum_id: str,
    body: AddendumUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    addendum = await addenda.update_addendum(db, caller, addenda_type, addendum_id, body)
    return addenda.to_out(addenda_type, addendum)


@router.post("/{addenda_type}/{addendum_id}/status", response_model=AddendumOut)
async def update_addendum_status(
    addenda_type: AddendaType,
    addendum_id: str,
    body: AddendumStatusUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    addendum = await addenda.update_status(db, caller, addenda_type, addendum_id, body)
    return addenda.to_out(addenda_type, addendum)
