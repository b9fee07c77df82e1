"""Organization invitations.

State machine: pending → accepted | expired | revoked. Expiry is applied
lazily whenever a pending invitation is read or accepted after its
expires_at. Links are built and logged here; delivering them is someone
else's job.
"""

import logging
import secrets
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.config import settings
from charterdesk.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from charterdesk.models.invitation import Invitation
from charterdesk.models.organization import MemberRole, Membership, Organization
from charterdesk.models.user import User
from charterdesk.schemas.invitation import (
    InvitationAcceptResult,
    InvitationCreate,
    InvitationCreated,
    InvitationLookup,
    InvitationOut,
)
from charterdesk.services.lookups import Lookups
from charterdesk.utils.dates import utcnow

logger = logging.getLogger(__name__)


def generate_token() -> str:
    """64 hex characters."""
    return secrets.token_hex(32)


def accept_url(token: str) -> str:
    return f"{settings.app_base_url.rstrip('/')}/invitations/accept?token={token}"


def _expire_if_due(invitation: Invitation) -> bool:
    """Flip a pending invitation past its expiry to `expired`."""
    if invitation.status == "pending" and utcnow() > invitation.expires_at:
        invitation.status = "expired"
        return True
    return False


async def _by_token(db: AsyncSession, token: str) -> Invitation | None:
    result = await db.execute(select(Invitation).where(Invitation.token == token))
    return result.scalar_one_or_none()


async def _to_out(db: AsyncSession, invitations: list[Invitation]) -> list[InvitationOut]:
    lookups = Lookups(db)
    await lookups.load(User, [i.invited_by_user_id for i in invitations])
    out = []
    for invitation in invitations:
        inviter = lookups.get(User, invitation.invited_by_user_id)
        out.append(InvitationOut(
            id=invitation.id,
            email=invitation.email,
            organization_id=invitation.organization_id,
            role=invitation.role,
            invited_by_user_id=invitation.invited_by_user_id,
            status=invitation.status,
            expires_at=invitation.expires_at,
            accepted_at=invitation.accepted_at,
            created_at=invitation.created_at,
            invited_by_name=inviter.name if inviter else None,
            invited_by_email=inviter.email if inviter else None,
        ))
    return out


async def create_invitation(
    db: AsyncSession,
    organization_id: str,
    email: str,
    role: str,
    invited_by_user_id: str,
) -> InvitationCreated:
    email = email.lower()

    pending = await db.execute(
        select(Invitation.id).where(
            Invitation.organization_id == organization_id,
            func.lower(Invitation.email) == email,
            Invitation.status == "pending",
        )
    )
    if pending.first() is not None:
        raise BusinessLogicError("An invitation has already been sent to this email")

    member = await db.execute(
        select(Membership.id)
        .join(User, User.id == Membership.user_id)
        .where(Membership.organization_id == organization_id, User.email == email)
    )
    if member.first() is not None:
        raise BusinessLogicError("This user is already a member of the organization")

    now = utcnow()
    invitation = Invitation(
        email=email,
        organization_id=organization_id,
        role=role,
        invited_by_user_id=invited_by_user_id,
        token=generate_token(),
        status="pending",
        expires_at=now + timedelta(days=settings.invitation_expiry_days),
        created_at=now,
    )
    db.add(invitation)
    await db.flush()

    link = accept_url(invitation.token)
    logger.info("Invitation created for %s to organization %s: %s", email, organization_id, link)
    out = (await _to_out(db, [invitation]))[0]
    return InvitationCreated(**out.model_dump(), token=invitation.token, accept_url=link)


async def invite(db: AsyncSession, caller: Caller, body: InvitationCreate) -> InvitationCreated:
    return await create_invitation(
        db,
        organization_id=caller.require_organization(),
        email=body.email,
        role=body.role,
        invited_by_user_id=caller.user_id,
    )


async def get_by_token(db: AsyncSession, token: str) -> InvitationLookup:
    invitation = await _by_token(db, token)
    if invitation is None:
        raise ResourceNotFoundError("Invitation")
    if _expire_if_due(invitation):
        await db.flush()

    organization = await db.get(Organization, invitation.organization_id)
    inviter = await db.get(User, invitation.invited_by_user_id)
    return InvitationLookup(
        email=invitation.email,
        role=invitation.role,
        status=invitation.status,
        expires_at=invitation.expires_at,
        organization_id=invitation.organization_id,
        organization_name=organization.name if organization else None,
        invited_by_name=inviter.name if inviter else None,
    )


def _check_email(invitation: Invitation, user: User) -> None:
    if user.email.lower() != invitation.email.lower():
        raise BusinessLogicError(
            f"This invitation is for {invitation.email}, but you are signed in as "
            f"{user.email}. Please sign in with the correct account or contact your "
            "administrator."
        )


async def _is_member(db: AsyncSession, user_id: str, organization_id: str) -> bool:
    existing = await db.execute(
        select(Membership.id).where(
            Membership.user_id == user_id,
            Membership.organization_id == organization_id,
        )
    )
    return existing.first() is not None


async def _persist_expiry(db: AsyncSession, invitation: Invitation) -> None:
    """Commit the lazy `expired` flip ahead of the failing accept.

    get_db rolls back any request that raises, which would drop the flag.
    Accept writes nothing before this point, so the commit carries only
    the invitation's status.
    """
    await db.commit()
    logger.info("Invitation %s expired on accept", invitation.id)


async def accept(db: AsyncSession, user: User, token: str) -> InvitationAcceptResult:
    """Join the invitation's organization.

    Accepting again after a successful accept is a no-op that reports
    already_member, provided the membership still exists.
    """
    invitation = await _by_token(db, token)
    if invitation is None:
        raise ResourceNotFoundError("Invitation")
    if invitation.status == "accepted":
        _check_email(invitation, user)
        if await _is_member(db, user.id, invitation.organization_id):
            return InvitationAcceptResult(
                success=True,
                organization_id=invitation.organization_id,
                already_member=True,
            )
    if invitation.status != "pending":
        raise BusinessLogicError(f"This invitation has already been {invitation.status}")
    if _expire_if_due(invitation):
        await _persist_expiry(db, invitation)
        raise BusinessLogicError("This invitation has expired")

    _check_email(invitation, user)
    already_member = await _is_member(db, user.id, invitation.organization_id)
    if not already_member:
        db.add(Membership(
            user_id=user.id,
            organization_id=invitation.organization_id,
            role=MemberRole(invitation.role),
        ))

    invitation.status = "accepted"
    invitation.accepted_at = utcnow()
    await db.flush()
    logger.info(
        "Invitation %s accepted by %s (already member: %s)",
        invitation.id, user.email, already_member,
    )
    return InvitationAcceptResult(
        success=True,
        organization_id=invitation.organization_id,
        already_member=already_member,
    )


async def list_for_organization(db: AsyncSession, caller: Caller) -> list[InvitationOut]:
    result = await db.execute(
        select(Invitation)
        .where(Invitation.organization_id == caller.require_organization())
        .order_by(Invitation.created_at.desc())
    )
    invitations = list(result.scalars().all())
    if any([_expire_if_due(i) for i in invitations]):
        await db.flush()
    return await _to_out(db, invitations)


async def list_mine(db: AsyncSession, user: User) -> list[InvitationOut]:
    """Pending invitations addressed to the user's email."""
    result = await db.execute(
        select(Invitation)
        .where(func.lower(Invitation.email) == user.email.lower(), Invitation.status == "pending")
        .order_by(Invitation.created_at.desc())
    )
    invitations = list(result.scalars().all())
    expired = [i for i in invitations if _expire_if_due(i)]
    if expired:
        await db.flush()
    return await _to_out(db, [i for i in invitations if i.status == "pending"])


async def _org_invitation(db: AsyncSession, caller: Caller, invitation_id: str) -> Invitation:
    invitation = await db.get(Invitation, invitation_id)
    if invitation is None or invitation.organization_id != caller.organization_id:
        raise ResourceNotFoundError("Invitation")
    return invitation


async def revoke(db: AsyncSession, caller: Caller, invitation_id: str) -> InvitationOut:
    invitation = await _org_invitation(db, caller, invitation_id)
    _expire_if_due(invitation)
    if invitation.status != "pending":
        raise BusinessLogicError(
            f"Cannot revoke an invitation that has been {invitation.status}"
        )
    invitation.status = "revoked"
    await db.flush()
    logger.info("Invitation %s revoked by %s", invitation.id, caller.user_id)
    return (await _to_out(db, [invitation]))[0]


async def delete(db: AsyncSession, caller: Caller, invitation_id: str) -> None:
    invitation = await _org_invitation(db, caller, invitation_id)
    _expire_if_due(invitation)
    if invitation.status == "pending":
        raise BusinessLogicError("Cannot delete a pending invitation. Revoke it first.")
    await db.delete(invitation)
    await db.flush()
    logger.info("Invitation %s deleted by %s", invitation.id, caller.user_id)
