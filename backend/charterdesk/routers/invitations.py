"""Invitation routes.

Endpoints:
    POST   /api/invitations/                 Invite an email to the active organization
    GET    /api/invitations/                 Invitations of the active organization
    GET    /api/invitations/mine             Pending invitations for the signed-in user
    GET    /api/invitations/token/{token}    Public lookup for the accept page
    POST   /api/invitations/accept           Accept with a token
    POST   /api/invitations/{id}/revoke      Revoke a pending invitation
    DELETE /api/invitations/{id}             Delete a non-pending invitation
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import get_current_user, require_permission
from charterdesk.database import get_db
from charterdesk.models.user import User
from charterdesk.schemas.invitation import (
    InvitationAccept,
    InvitationAcceptResult,
    InvitationCreate,
    InvitationCreated,
    InvitationLookup,
    InvitationOut,
)
from charterdesk.services import invitations

router = APIRouter()


@router.post("/", response_model=InvitationCreated, status_code=201)
async def create_invitation(
    body: InvitationCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("invitations.manage")),
):
    return await invitations.invite(db, caller, body)


@router.get("/", response_model=list[InvitationOut])
async def list_invitations(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("invitations.manage")),
):
    return await invitations.list_for_organization(db, caller)


@router.get("/mine", response_model=list[InvitationOut])
async def list_my_invitations(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await invitations.list_mine(db, user)


@router.get("/token/{token}", response_model=InvitationLookup)
async def get_invitation_by_token(token: str, db: AsyncSession = Depends(get_db)):
    """No auth: the accept page shows who invited whom before sign-in."""
    return await invitations.get_by_token(db, token)


@router.post("/accept", response_model=InvitationAcceptResult)
async def accept_invitation(
    body: InvitationAccept,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await invitations.accept(db, user, body.token)


@router.post("/{invitation_id}/revoke", response_model=InvitationOut)
async def revoke_invitation(
    invitation_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("invitations.manage")),
):
    return await invitations.revoke(db, caller, invitation_id)


@router.delete("/{invitation_id}", status_code=204)
async def delete_invitation(
    invitation_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("invitations.manage")),
):
    await invitations.delete(db, caller, invitation_id)
