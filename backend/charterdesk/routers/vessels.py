"""Vessel management router.

Endpoints:
    GET    /api/vessels/                  List vessels (optional ?owner_id=)
    GET    /api/vessels/by-imo/{imo}      Look up by IMO number
    GET    /api/vessels/by-name/{name}    Look up by name
    GET    /api/vessels/{id}              Single vessel
    POST   /api/vessels/                  Create vessel
    PATCH  /api/vessels/{id}              Update vessel
    DELETE /api/vessels/{id}              Toggle active/inactive
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.models.company import Company
from charterdesk.models.vessel import Vessel
from charterdesk.schemas.vessel import VesselCreate, VesselOut, VesselUpdate
from charterdesk.utils.dates import utcnow

router = APIRouter()


async def _get(db: AsyncSession, vessel_id: str) -> Vessel:
    vessel = await db.get(Vessel, vessel_id)
    if not vessel:
        raise HTTPException(status_code=404, detail="Vessel not found")
    return vessel


async def _check_owner(db: AsyncSession, owner_id: str | None) -> None:
    if owner_id and not await db.get(Company, owner_id):
        raise HTTPException(status_code=404, detail="Owner company not found")


async def _check_imo(db: AsyncSession, imo_number: str | None) -> None:
    if not imo_number:
        return
    existing = await db.execute(select(Vessel.id).where(Vessel.imo_number == imo_number))
    if existing.first() is not None:
        raise HTTPException(status_code=400, detail="Vessel with this IMO number already exists")


@router.get("/", response_model=list[VesselOut])
async def list_vessels(
    owner_id: str | None = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    """List vessels (active by default)."""
    query = select(Vessel)
    if owner_id:
        query = query.where(Vessel.current_owner_id == owner_id)
    if not include_inactive:
        query = query.where(Vessel.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(Vessel.name))
    return [VesselOut.model_validate(v) for v in result.scalars().all()]


@router.get("/by-imo/{imo_number}", response_model=VesselOut)
async def get_vessel_by_imo(
    imo_number: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    result = await db.execute(select(Vessel).where(Vessel.imo_number == imo_number))
    vessel = result.scalar_one_or_none()
    if not vessel:
        raise HTTPException(status_code=404, detail="Vessel not found")
    return VesselOut.model_validate(vessel)


@router.get("/by-name/{name}", response_model=VesselOut)
async def get_vessel_by_name(
    name: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    """Vessel names are not unique; the oldest match wins."""
    result = await db.execute(
        select(Vessel).where(Vessel.name == name).order_by(Vessel.created_at).limit(1)
    )
    vessel = result.scalar_one_or_none()
    if not vessel:
        raise HTTPException(status_code=404, detail="Vessel not found")
    return VesselOut.model_validate(vessel)


@router.get("/{vessel_id}", response_model=VesselOut)
async def get_vessel(
    vessel_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    return VesselOut.model_validate(await _get(db, vessel_id))


@router.post("/", response_model=VesselOut, status_code=201)
async def create_vessel(
    body: VesselCreate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    await _check_imo(db, body.imo_number)
    await _check_owner(db, body.current_owner_id)

    vessel = Vessel(**body.model_dump())
    db.add(vessel)
    await db.flush()
    return VesselOut.model_validate(vessel)


@router.patch("/{vessel_id}", response_model=VesselOut)
async def update_vessel(
    vessel_id: str,
    body: VesselUpdate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    vessel = await _get(db, vessel_id)
    updates = body.model_dump(exclude_unset=True)
    if updates.get("imo_number") and updates["imo_number"] != vessel.imo_number:
        await _check_imo(db, updates["imo_number"])
    await _check_owner(db, updates.get("current_owner_id"))

    for key, value in updates.items():
        setattr(vessel, key, value)
    vessel.updated_at = utcnow()
    await db.flush()
    return VesselOut.model_validate(vessel)


@router.delete("/{vessel_id}", response_model=VesselOut)
async def toggle_vessel(
    vessel_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    """Toggle active/inactive for a vessel."""
    vessel = await _get(db, vessel_id)
    vessel.is_active = not vessel.is_active
    vessel.updated_at = utcnow()
    await db.flush()
    return VesselOut.model_validate(vessel)
