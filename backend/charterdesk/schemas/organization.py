from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

MemberRoleName = Literal["admin", "trader", "broker", "viewer"]


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    plan: str = "pro"
    avatar_storage_id: str | None = None


class OrganizationOut(BaseModel):
    id: str
    name: str
    plan: str
    avatar_storage_id: str | None
    avatar_url: str | None = None
    created_at: datetime
    role: str | None = None


class MemberAdd(BaseModel):
    user_id: str
    role: MemberRoleName = "trader"


class MemberRoleUpdate(BaseModel):
    role: MemberRoleName


class MemberOut(BaseModel):
    membership_id: str
    user_id: str
    name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    role: str
    joined_at: datetime | None = None
