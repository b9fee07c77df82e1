"""Company management router.

Endpoints:
    GET    /api/companies/                 List companies (optional ?role=)
    GET    /api/companies/by-name/{name}   Look up a company by exact name
    GET    /api/companies/{id}             Single company
    POST   /api/companies/                 Create company
    PATCH  /api/companies/{id}             Update company
    DELETE /api/companies/{id}             Toggle active/inactive
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.models.company import Company
from charterdesk.schemas.company import CompanyCreate, CompanyOut, CompanyRole, CompanyUpdate
from charterdesk.services.enrichment import avatar_url
from charterdesk.utils.dates import utcnow

router = APIRouter()


def _out(company: Company) -> CompanyOut:
    out = CompanyOut.model_validate(company)
    out.avatar_url = avatar_url(company.avatar_storage_id)
    return out


async def _get(db: AsyncSession, company_id: str) -> Company:
    company = await db.get(Company, company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.get("/", response_model=list[CompanyOut])
async def list_companies(
    role: CompanyRole | None = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    """List companies (active by default), optionally only those holding a role."""
    query = select(Company)
    if not include_inactive:
        query = query.where(Company.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(Company.name))
    companies = result.scalars().all()
    # roles is a JSON list; filter after loading
    if role:
        companies = [c for c in companies if role in (c.roles or [])]
    return [_out(c) for c in companies]


@router.get("/by-name/{name}", response_model=CompanyOut)
async def get_company_by_name(
    name: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    result = await db.execute(select(Company).where(Company.name == name))
    company = result.scalar_one_or_none()
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return _out(company)


@router.get("/{company_id}", response_model=CompanyOut)
async def get_company(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.read")),
):
    return _out(await _get(db, company_id))


@router.post("/", response_model=CompanyOut, status_code=201)
async def create_company(
    body: CompanyCreate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    """Create a new company. Names are unique."""
    existing = await db.execute(select(Company.id).where(Company.name == body.name))
    if existing.first() is not None:
        raise HTTPException(status_code=400, detail="Company with this name already exists")

    company = Company(**body.model_dump())
    db.add(company)
    await db.flush()
    return _out(company)


@router.patch("/{company_id}", response_model=CompanyOut)
async def update_company(
    company_id: str,
    body: CompanyUpdate,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    company = await _get(db, company_id)
    updates = body.model_dump(exclude_unset=True)
    if "name" in updates and updates["name"] != company.name:
        clash = await db.execute(select(Company.id).where(Company.name == updates["name"]))
        if clash.first() is not None:
            raise HTTPException(status_code=400, detail="Company with this name already exists")

    for key, value in updates.items():
        setattr(company, key, value)
    company.updated_at = utcnow()
    await db.flush()
    return _out(company)


@router.delete("/{company_id}", response_model=CompanyOut)
async def toggle_company(
    company_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("reference.write")),
):
    """Toggle active/inactive for a company."""
    company = await _get(db, company_id)
    company.is_active = not company.is_active
    company.updated_at = utcnow()
    await db.flush()
    return _out(company)
