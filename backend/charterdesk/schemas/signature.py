"""Pydantic schemas for contract and addenda signatures."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from charterdesk.schemas.auth import UserSummary
from charterdesk.schemas.company import CompanyRef

PartyRole = Literal["owner", "charterer", "broker"]


class SignatureCreate(BaseModel):
    party_role: PartyRole
    company_id: str


class SignRequest(BaseModel):
    signing_method: str | None = None
    document_storage_id: str | None = None


class SignatureOut(BaseModel):
    id: str
    target_type: Literal["contract", "addenda"]
    target_id: str
    addenda_type: str | None = None
    party_role: str
    company_id: str
    status: str
    signed_by: str | None
    signed_at: datetime | None
    signing_method: str | None
    document_storage_id: str | None
    document_url: str | None = None
    created_at: datetime | None
    updated_at: datetime | None
    company: CompanyRef | None = None
    user: UserSummary | None = None


class SignatureSummary(BaseModel):
    total: int = 0
    signed: int = 0
    pending: int = 0
    rejected: int = 0
