"""Organization and membership routes.

Endpoints:
    POST   /api/organizations/                       Create (caller becomes admin)
    GET    /api/organizations/                       Organizations the user belongs to
    GET    /api/organizations/members                Members of the active organization
    POST   /api/organizations/members                Add member (admin)
    PATCH  /api/organizations/members/{id}           Change member role (admin)
    DELETE /api/organizations/members/{id}           Remove member (admin)
    GET    /api/organizations/{id}                   Single organization
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import get_caller, get_current_user, require_admin, require_permission
from charterdesk.database import get_db
from charterdesk.models.user import User
from charterdesk.schemas.organization import (
    MemberAdd,
    MemberOut,
    MemberRoleUpdate,
    OrganizationCreate,
    OrganizationOut,
)
from charterdesk.services import organizations

router = APIRouter()


@router.post("/", response_model=OrganizationOut, status_code=201)
async def create_organization(
    body: OrganizationCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await organizations.create_organization(db, user, body)


@router.get("/", response_model=list[OrganizationOut])
async def list_my_organizations(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await organizations.list_for_user(db, user)


# ── Members ──────────────────────────────────────────────────

@router.get("/members", response_model=list[MemberOut])
async def list_members(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("members.read")),
):
    return await organizations.list_members(db, caller)


@router.post("/members", response_model=MemberOut, status_code=201)
async def add_member(
    body: MemberAdd,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_admin),
):
    return await organizations.add_member(db, caller, body)


@router.patch("/members/{membership_id}", response_model=MemberOut)
async def update_member_role(
    membership_id: str,
    body: MemberRoleUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_admin),
):
    return await organizations.update_member_role(db, caller, membership_id, body.role)


@router.delete("/members/{membership_id}", status_code=204)
async def remove_member(
    membership_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_admin),
):
    await organizations.remove_member(db, caller, membership_id)


@router.get("/{organization_id}", response_model=OrganizationOut)
async def get_organization(
    organization_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    return await organizations.get_organization(db, caller, organization_id)
