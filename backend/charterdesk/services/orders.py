"""Order lifecycle.

Orders belong to the caller's organization. Every mutation stamps
updated_at, records field changes on edits, and appends an activity
entry: created | updated | distributed | withdrawn.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from charterdesk.models.cargo_type import CargoType
from charterdesk.models.company import Company
from charterdesk.models.fixture import Fixture
from charterdesk.models.order import Order
from charterdesk.models.port import Port
from charterdesk.schemas.audit import StatusChangeMetadata
from charterdesk.schemas.order import OrderCreate, OrderUpdate
from charterdesk.services import audit
from charterdesk.services.lookups import ensure_exists
from charterdesk.services.rollup import recompute_fixture_derived
from charterdesk.utils.dates import utcnow
from charterdesk.utils.numbering import generate_number


async def _check_references(db: AsyncSession, values: dict) -> None:
    await ensure_exists(db, CargoType, values.get("cargo_type_id"), "Cargo type")
    for key in ("load_port_id", "discharge_port_id"):
        await ensure_exists(db, Port, values.get(key), "Port")
    for key in ("charterer_id", "owner_id", "broker_id"):
        await ensure_exists(db, Company, values.get(key), "Company")


async def get_order(db: AsyncSession, caller: Caller, order_id: str) -> Order:
    order = await db.get(Order, order_id)
    if order is None or order.organization_id != caller.organization_id:
        raise ResourceNotFoundError("Order", order_id)
    return order


async def list_orders(
    db: AsyncSession,
    caller: Caller,
    status: str | None = None,
    stage: str | None = None,
) -> list[Order]:
    query = select(Order).where(Order.organization_id == caller.require_organization())
    if status:
        query = query.where(Order.status == status)
    if stage:
        query = query.where(Order.stage == stage)
    result = await db.execute(query.order_by(Order.created_at.desc()))
    return list(result.scalars().all())


async def create_order(db: AsyncSession, caller: Caller, body: OrderCreate) -> Order:
    organization_id = caller.require_organization()
    values = body.model_dump()
    await _check_references(db, values)

    now = utcnow()
    order = Order(
        **values,
        order_number=await generate_number(db, Order.order_number, "order"),
        status="draft",
        organization_id=organization_id,
        created_by_user_id=caller.user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    await db.flush()

    await audit.record_activity(
        db,
        entity_type="order",
        entity_id=order.id,
        action="created",
        description=f"Order {order.order_number} created",
        status=audit.status_label(order.status),
        user_id=caller.user_id,
    )
    return order


async def update_order(
    db: AsyncSession, caller: Caller, order_id: str, body: OrderUpdate
) -> Order:
    order = await get_order(db, caller, order_id)
    updates = body.model_dump(exclude_unset=True)
    change_reason = updates.pop("change_reason", None)
    await _check_references(db, updates)

    before = audit.snapshot(order)
    for key, value in updates.items():
        setattr(order, key, value)

    changes = audit.record_field_changes(
        db,
        entity_type="order",
        entity_id=order.id,
        before=before,
        after=audit.snapshot(order),
        user_id=caller.user_id,
        change_reason=change_reason,
    )
    if changes:
        order.updated_at = utcnow()
        await audit.record_activity(
            db,
            entity_type="order",
            entity_id=order.id,
            action="updated",
            description=f"Order {order.order_number} updated ({len(changes)} fields)",
            user_id=caller.user_id,
        )
    await db.flush()
    return order


async def _transition(
    db: AsyncSession, caller: Caller, order_id: str, status: str, action: str
) -> Order:
    order = await get_order(db, caller, order_id)
    if order.status == "withdrawn":
        raise BusinessLogicError(f"Order {order.order_number} has been withdrawn")

    previous = order.status
    now = utcnow()
    order.status = status
    order.updated_at = now
    if status == "distributed":
        order.distributed_at = now
    elif status == "withdrawn":
        order.withdrawn_at = now

    audit.record_field_change(
        db,
        entity_type="order",
        entity_id=order.id,
        field_name="status",
        old_value=previous,
        new_value=status,
        user_id=caller.user_id,
    )
    await audit.record_activity(
        db,
        entity_type="order",
        entity_id=order.id,
        action=action,
        description=f"Order {order.order_number} {action}",
        status=audit.status_label(status),
        metadata=StatusChangeMetadata(from_status=previous, to_status=status),
        user_id=caller.user_id,
    )
    await db.flush()
    return order


async def distribute_order(db: AsyncSession, caller: Caller, order_id: str) -> Order:
    return await _transition(db, caller, order_id, "distributed", "distributed")


async def withdraw_order(db: AsyncSession, caller: Caller, order_id: str) -> Order:
    return await _transition(db, caller, order_id, "withdrawn", "withdrawn")


async def create_fixture_from_order(
    db: AsyncSession, caller: Caller, order_id: str, title: str | None = None
) -> Fixture:
    order = await get_order(db, caller, order_id)
    now = utcnow()
    fixture = Fixture(
        fixture_number=await generate_number(db, Fixture.fixture_number, "fixture"),
        order_id=order.id,
        title=title or order.title,
        organization_id=order.organization_id,
        status="draft",
        created_at=now,
        updated_at=now,
    )
    db.add(fixture)
    await db.flush()
    await recompute_fixture_derived(db, fixture.id)
    return fixture
