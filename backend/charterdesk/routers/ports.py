"""Port management router.

Endpoints:
    GET    /api/ports/                       List ports (optional ?country_code=)
    GET    /api/ports/by-unlocode/{code}     Look up by UN/LOCODE
    GET    /api/ports/{id}                   Single port
    POST   /api/ports/                       Create port
    PATCH  /api/ports/{id}                   Update port
    DELETE /api/ports/{id}                   Toggle active/inactive
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.models.port import Port
from charterdesk.schemas.port import PortCreate, PortOut, PortUpdate
from charterdesk.utils.dates import utcnow

router = APIRouter()


async def _get(db: AsyncSession, port_id: str) -> Port:
    port = await db.get(Port, port_id)
    if not port:
        raise HTTPException(status_code=404, detail="Port not found")
    return port


async def _check_unlocode(db: AsyncSession, unlocode: str | None) -> None:
    if not unlocode:
        return
    existing = await db.execute(select(Port.id).where(Port.unlocode == unlocode))
    if existing.first() is not None:
        raise HTTPException(status_code=400, detail="Port with this UN/LOCODE already exists")


@router.get("/", response_model=list[PortOut])
async def list_ports(
    country_code: str | None = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    """List ports (active by default)."""
    query = select(Port)
    if country_code:
        query = query.where(Port.country_code == country_code.upper())
    if not include_inactive:
        query = query.where(Port.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(Port.name))
    return [PortOut.model_validate(p) for p in result.scalars().all()]


@router.get("/by-unlocode/{unlocode}", response_model=PortOut)
async def get_port_by_unlocode(
    unlocode: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    result = await db.execute(select(Port).where(Port.unlocode == unlocode.upper()))
    port = result.scalar_one_or_none()
    if not port:
        raise HTTPException(status_code=404, detail="Port not found")
    return PortOut.model_validate(port)


@router.get("/{port_id}", response_model=PortOut)
async def get_port(
    port_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    return PortOut.model_validate(await _get(db, port_id))


@router.post("/", response_model=PortOut, status_code=201)
async def create_port(
    body: PortCreate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    await _check_unlocode(db, body.unlocode)

    port = Port(**body.model_dump())
    db.add(port)
    await db.flush()
    return PortOut.model_validate(port)


@router.patch("/{port_id}", response_model=PortOut)
async def update_port(
    port_id: str,
    body: PortUpdate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    port = await _get(db, port_id)
    updates = body.model_dump(exclude_unset=True)
    if updates.get("unlocode") and updates["unlocode"] != port.unlocode:
        await _check_unlocode(db, updates["unlocode"])

    for key, value in updates.items():
        setattr(port, key, value)
    port.updated_at = utcnow()
    await db.flush()
    return PortOut.model_validate(port)


@router.delete("/{port_id}", response_model=PortOut)
async def toggle_port(
    port_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    """Toggle active/inactive for a port."""
    port = await _get(db, port_id)
    port.is_active = not port.is_active
    port.updated_at = utcnow()
    await db.flush()
    return PortOut.model_validate(port)
