"""Cargo type router.

Endpoints:
    GET    /api/cargo-types/                 List cargo types (optional ?category=)
    GET    /api/cargo-types/by-name/{name}   Look up by name
    GET    /api/cargo-types/{id}             Single cargo type
    POST   /api/cargo-types/                 Create cargo type
    PATCH  /api/cargo-types/{id}             Update cargo type
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.models.cargo_type import CargoType
from charterdesk.schemas.cargo_type import (
    CargoCategory,
    CargoTypeCreate,
    CargoTypeOut,
    CargoTypeUpdate,
)
from charterdesk.utils.dates import utcnow

router = APIRouter()


async def _check_name(db: AsyncSession, name: str) -> None:
    existing = await db.execute(select(CargoType.id).where(CargoType.name == name))
    if existing.first() is not None:
        raise HTTPException(status_code=400, detail="Cargo type with this name already exists")


@router.get("/", response_model=list[CargoTypeOut])
async def list_cargo_types(
    category: CargoCategory | None = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    query = select(CargoType)
    if category:
        query = query.where(CargoType.category == category)
    if not include_inactive:
        query = query.where(CargoType.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(CargoType.name))
    return [CargoTypeOut.model_validate(c) for c in result.scalars().all()]


@router.get("/by-name/{name}", response_model=CargoTypeOut)
async def get_cargo_type_by_name(
    name: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    result = await db.execute(select(CargoType).where(CargoType.name == name))
    cargo_type = result.scalar_one_or_none()
    if not cargo_type:
        raise HTTPException(status_code=404, detail="Cargo type not found")
    return CargoTypeOut.model_validate(cargo_type)


@router.get("/{cargo_type_id}", response_model=CargoTypeOut)
async def get_cargo_type(
    cargo_type_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    cargo_type = await db.get(CargoType, cargo_type_id)
    if not cargo_type:
        raise HTTPException(status_code=404, detail="Cargo type not found")
    return CargoTypeOut.model_validate(cargo_type)


@router.post("/", response_model=CargoTypeOut, status_code=201)
async def create_cargo_type(
    body: CargoTypeCreate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    await _check_name(db, body.name)
    cargo_type = CargoType(**body.model_dump())
    db.add(cargo_type)
    await db.flush()
    return CargoTypeOut.model_validate(cargo_type)


@router.patch("/{cargo_type_id}", response_model=CargoTypeOut)
async def update_cargo_type(
    cargo_type_id: str,
    body: CargoTypeUpdate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    cargo_type = await db.get(CargoType, cargo_type_id)
    if not cargo_type:
        raise HTTPException(status_code=404, detail="Cargo type not found")

    updates = body.model_dump(exclude_unset=True)
    if "name" in updates and updates["name"] != cargo_type.name:
        await _check_name(db, updates["name"])
    for key, value in updates.items():
        setattr(cargo_type, key, value)
    cargo_type.updated_at = utcnow()
    await db.flush()
    return CargoTypeOut.model_validate(cargo_type)
