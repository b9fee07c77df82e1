from datetime import datetime

from pydantic import BaseModel, EmailStr

from charterdesk.schemas.organization import MemberRoleName


class InvitationCreate(BaseModel):
    email: EmailStr
    role: MemberRoleName = "trader"


class InvitationOut(BaseModel):
    id: str
    email: str
    organization_id: str
    role: str
    invited_by_user_id: str
    status: str
    expires_at: datetime
    accepted_at: datetime | None
    created_at: datetime | None
    invited_by_name: str | None = None
    invited_by_email: str | None = None


class InvitationCreated(InvitationOut):
    token: str
    accept_url: str


class InvitationLookup(BaseModel):
    """Public view of an invitation, fetched by token."""
    email: str
    role: str
    status: str
    expires_at: datetime
    organization_id: str
    organization_name: str | None = None
    invited_by_name: str | None = None


class InvitationAccept(BaseModel):
    token: str


class InvitationAcceptResult(BaseModel):
    success: bool = True
    organization_id: str
    already_member: bool = False
