"""Organizations and their memberships.

Every organization keeps at least one admin: the last admin can neither
be downgraded nor remove themselves.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from charterdesk.models.organization import MemberRole, Membership, Organization
from charterdesk.models.user import User
from charterdesk.schemas.organization import (
    MemberAdd,
    MemberOut,
    OrganizationCreate,
    OrganizationOut,
)
from charterdesk.services.enrichment import avatar_url

logger = logging.getLogger(__name__)


def _org_out(organization: Organization, role: str | None = None) -> OrganizationOut:
    return OrganizationOut(
        id=organization.id,
        name=organization.name,
        plan=organization.plan,
        avatar_storage_id=organization.avatar_storage_id,
        avatar_url=avatar_url(organization.avatar_storage_id),
        created_at=organization.created_at,
        role=role,
    )


async def create_organization(db: AsyncSession, user: User, body: OrganizationCreate) -> OrganizationOut:
    organization = Organization(**body.model_dump())
    db.add(organization)
    await db.flush()
    db.add(Membership(user_id=user.id, organization_id=organization.id, role=MemberRole.ADMIN))
    await db.flush()
    logger.info("Organization %s created by %s", organization.name, user.email)
    return _org_out(organization, MemberRole.ADMIN.value)


async def list_for_user(db: AsyncSession, user: User) -> list[OrganizationOut]:
    result = await db.execute(
        select(Organization, Membership.role)
        .join(Membership, Membership.organization_id == Organization.id)
        .where(Membership.user_id == user.id)
        .order_by(Membership.created_at)
    )
    return [_org_out(org, role.value) for org, role in result.all()]


async def get_organization(db: AsyncSession, caller: Caller, organization_id: str) -> OrganizationOut:
    result = await db.execute(
        select(Organization, Membership.role)
        .join(Membership, Membership.organization_id == Organization.id)
        .where(Organization.id == organization_id, Membership.user_id == caller.user_id)
    )
    row = result.first()
    if row is None:
        raise ResourceNotFoundError("Organization", organization_id)
    return _org_out(row[0], row[1].value)


async def list_members(db: AsyncSession, caller: Caller) -> list[MemberOut]:
    result = await db.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.organization_id == caller.require_organization())
        .order_by(Membership.created_at)
    )
    return [_member_out(membership, user) for membership, user in result.all()]


def _member_out(membership: Membership, user: User | None) -> MemberOut:
    return MemberOut(
        membership_id=membership.id,
        user_id=membership.user_id,
        name=user.name if user else None,
        email=user.email if user else None,
        avatar_url=avatar_url(user.avatar_storage_id) if user else None,
        role=membership.role.value,
        joined_at=membership.created_at,
    )


async def _admin_count(db: AsyncSession, organization_id: str) -> int:
    return await db.scalar(
        select(func.count(Membership.id)).where(
            Membership.organization_id == organization_id,
            Membership.role == MemberRole.ADMIN,
        )
    )


async def _org_membership(db: AsyncSession, caller: Caller, membership_id: str) -> Membership:
    membership = await db.get(Membership, membership_id)
    if membership is None or membership.organization_id != caller.organization_id:
        raise ResourceNotFoundError("Membership", membership_id)
    return membership


async def add_member(db: AsyncSession, caller: Caller, body: MemberAdd) -> MemberOut:
    organization_id = caller.require_organization()
    user = await db.get(User, body.user_id)
    if user is None:
        raise ResourceNotFoundError("User", body.user_id)
    existing = await db.execute(
        select(Membership.id).where(
            Membership.user_id == body.user_id,
            Membership.organization_id == organization_id,
        )
    )
    if existing.first() is not None:
        raise BusinessLogicError("Membership already exists")

    membership = Membership(
        user_id=body.user_id, organization_id=organization_id, role=MemberRole(body.role)
    )
    db.add(membership)
    await db.flush()
    return _member_out(membership, user)


async def update_member_role(
    db: AsyncSession, caller: Caller, membership_id: str, role: str
) -> MemberOut:
    membership = await _org_membership(db, caller, membership_id)
    new_role = MemberRole(role)
    if membership.role == MemberRole.ADMIN and new_role != MemberRole.ADMIN:
        if await _admin_count(db, membership.organization_id) == 1:
            raise BusinessLogicError(
                "Cannot downgrade the only admin. Promote another member first."
            )
    membership.role = new_role
    await db.flush()
    return _member_out(membership, await db.get(User, membership.user_id))


async def remove_member(db: AsyncSession, caller: Caller, membership_id: str) -> None:
    membership = await _org_membership(db, caller, membership_id)
    if membership.user_id == caller.user_id and membership.role == MemberRole.ADMIN:
        if await _admin_count(db, membership.organization_id) == 1:
            raise BusinessLogicError(
                "Cannot remove yourself as the only admin. Transfer admin role first."
            )
    await db.delete(membership)
    await db.flush()
    logger.info("Membership %s removed by %s", membership_id, caller.user_id)
