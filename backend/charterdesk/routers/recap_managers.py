"""Recap manager routes. Same surface as contracts.

Endpoints:
    GET    /api/recap-managers/                        List recaps (?status=)
    GET    /api/recap-managers/by-negotiation/{id}     Recaps of a negotiation
    GET    /api/recap-managers/by-order/{id}           Recaps of an order
    POST   /api/recap-managers/                        Create recap
    GET    /api/recap-managers/{id}                    Recap with parties, addenda, child voyages
    PATCH  /api/recap-managers/{id}                    Update recap
    POST   /api/recap-managers/{id}/status             Change status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.schemas.recap_manager import (
    RecapCreate,
    RecapDetail,
    RecapEnriched,
    RecapOut,
    RecapStatus,
    RecapStatusUpdate,
    RecapUpdate,
)
from charterdesk.services import recaps

router = APIRouter()


@router.get("/", response_model=list[RecapEnriched])
async def list_recaps(
    status: RecapStatus | None = None,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await recaps.list_recaps(db, status=status)


@router.get("/by-negotiation/{negotiation_id}", response_model=list[RecapOut])
async def list_recaps_by_negotiation(
    negotiation_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await recaps.list_by_negotiation(db, negotiation_id)


@router.get("/by-order/{order_id}", response_model=list[RecapOut])
async def list_recaps_by_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await recaps.list_by_order(db, order_id)


@router.post("/", response_model=RecapOut, status_code=201)
async def create_recap(
    body: RecapCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    return await recaps.create_recap(db, caller, body)


@router.get("/{recap_id}", response_model=RecapDetail)
async def get_recap(
    recap_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("contracts.read")),
):
    return await recaps.get_recap_detail(db, recap_id)


@router.patch("/{recap_id}", response_model=RecapOut)
async def update_recap(
    recap_id: str,
    body: RecapUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    return await recaps.update_recap(db, caller, recap_id, body)


@router.post("/{recap_id}/status", response_model=RecapOut)
async def update_recap_status(
    recap_id: str,
    body: RecapStatusUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("contracts.write")),
):
    return await recaps.update_status(db, caller, recap_id, body)
