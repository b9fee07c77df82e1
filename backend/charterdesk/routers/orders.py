"""Order routes.

Endpoints:
    GET    /api/orders/                      List orders (?status=, ?stage=)
    POST   /api/orders/                      Create order
    GET    /api/orders/{id}                  Single order
    PATCH  /api/orders/{id}                  Update order
    POST   /api/orders/{id}/distribute       Mark distributed
    POST   /api/orders/{id}/withdraw         Mark withdrawn
    POST   /api/orders/{id}/fixture          Create a fixture from the order
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.schemas.fixture import FixtureOut
from charterdesk.schemas.order import OrderCreate, OrderOut, OrderStage, OrderUpdate
from charterdesk.services import orders

router = APIRouter()


@router.get("/", response_model=list[OrderOut])
async def list_orders(
    status: str | None = None,
    stage: OrderStage | None = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("orders.read")),
):
    return await orders.list_orders(db, caller, status=status, stage=stage)


@router.post("/", response_model=OrderOut, status_code=201)
async def create_order(
    body: OrderCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("orders.write")),
):
    return await orders.create_order(db, caller, body)


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("orders.read")),
):
    return await orders.get_order(db, caller, order_id)


@router.patch("/{order_id}", response_model=OrderOut)
async def update_order(
    order_id: str,
    body: OrderUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("orders.write")),
):
    return await orders.update_order(db, caller, order_id, body)


@router.post("/{order_id}/distribute", response_model=OrderOut)
async def distribute_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("orders.write")),
):
    return await orders.distribute_order(db, caller, order_id)


@router.post("/{order_id}/withdraw", response_model=OrderOut)
async def withdraw_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("orders.write")),
):
    return await orders.withdraw_order(db, caller, order_id)


@router.post("/{order_id}/fixture", response_model=FixtureOut, status_code=201)
async def create_fixture_from_order(
    order_id: str,
    title: str | None = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("orders.write", "fixtures.write")),
):
    return await orders.create_fixture_from_order(db, caller, order_id, title=title)
