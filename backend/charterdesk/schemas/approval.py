"""Pydantic schemas for contract and addenda approvals."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from charterdesk.schemas.auth import UserSummary
from charterdesk.schemas.company import CompanyRef

PartyRole = Literal["owner", "charterer", "broker"]


class ApprovalCreate(BaseModel):
    party_role: PartyRole
    company_id: str


class ApprovalDecision(BaseModel):
    notes: str | None = None


class ApprovalOut(BaseModel):
    id: str
    target_type: Literal["contract", "addenda"]
    target_id: str
    addenda_type: str | None = None
    party_role: str
    company_id: str
    status: str
    approved_by: str | None
    approved_at: datetime | None
    notes: str | None
    created_at: datetime | None
    updated_at: datetime | None
    company: CompanyRef | None = None
    user: UserSummary | None = None


class ApprovalSummary(BaseModel):
    total: int = 0
    approved: int = 0
    pending: int = 0
    rejected: int = 0
