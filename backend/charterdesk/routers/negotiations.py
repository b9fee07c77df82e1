"""Negotiation routes.

Endpoints:
    GET    /api/negotiations/?order_id=          Negotiations of an order (enriched)
    GET    /api/negotiations/?status=            Negotiations in a status
    GET    /api/negotiations/?counterparty_id=   Negotiations with a counterparty
    POST   /api/negotiations/                    Create negotiation
    GET    /api/negotiations/{id}                Single negotiation (enriched)
    PATCH  /api/negotiations/{id}                Update negotiation
    POST   /api/negotiations/{id}/status         Change status
    POST   /api/negotiations/{id}/analytics      Recalculate indication analytics
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.schemas.negotiation import (
    NegotiationAnalytics,
    NegotiationCreate,
    NegotiationEnriched,
    NegotiationOut,
    NegotiationStatusUpdate,
    NegotiationUpdate,
)
from charterdesk.services import negotiations
from charterdesk.services.orders import get_order

router = APIRouter()


@router.get("/", response_model=list[NegotiationEnriched])
async def list_negotiations(
    order_id: str | None = None,
    status: str | None = None,
    counterparty_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("negotiations.read")),
):
    """Exactly one of order_id, status, counterparty_id selects the list."""
    if order_id:
        return await negotiations.list_by_order(db, caller, order_id)
    if status:
        rows = await negotiations.list_by_status(db, caller, status)
    elif counterparty_id:
        rows = await negotiations.list_by_counterparty(db, caller, counterparty_id)
    else:
        raise HTTPException(
            status_code=400, detail="Provide order_id, status or counterparty_id"
        )
    return await negotiations.enrich(db, rows)


@router.post("/", response_model=NegotiationOut, status_code=201)
async def create_negotiation(
    body: NegotiationCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("negotiations.write")),
):
    return await negotiations.create_negotiation(db, caller, body)


async def _visible(db: AsyncSession, caller: Caller, negotiation_id: str):
    negotiation = await negotiations.get_negotiation(db, negotiation_id)
    # Org scoping goes through the parent order
    await get_order(db, caller, negotiation.order_id)
    return negotiation


@router.get("/{negotiation_id}", response_model=NegotiationEnriched)
async def get_negotiation(
    negotiation_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("negotiations.read")),
):
    negotiation = await _visible(db, caller, negotiation_id)
    return (await negotiations.enrich(db, [negotiation]))[0]


@router.patch("/{negotiation_id}", response_model=NegotiationOut)
async def update_negotiation(
    negotiation_id: str,
    body: NegotiationUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("negotiations.write")),
):
    await _visible(db, caller, negotiation_id)
    return await negotiations.update_negotiation(db, caller, negotiation_id, body)


@router.post("/{negotiation_id}/status", response_model=NegotiationOut)
async def update_negotiation_status(
    negotiation_id: str,
    body: NegotiationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("negotiations.write")),
):
    await _visible(db, caller, negotiation_id)
    return await negotiations.update_status(db, caller, negotiation_id, body)


@router.post("/{negotiation_id}/analytics", response_model=NegotiationAnalytics)
async def calculate_negotiation_analytics(
    negotiation_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("negotiations.write")),
):
    await _visible(db, caller, negotiation_id)
    return await negotiations.calculate_analytics(db, negotiation_id)
