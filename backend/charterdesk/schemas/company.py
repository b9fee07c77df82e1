"""Pydantic schemas for Company CRUD operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from charterdesk.schemas.validators import validate_phone, validate_url

CompanyRole = Literal["owner", "charterer", "broker"]
CompanyType = Literal["shipping-company", "broker", "operator"]


class CompanyContact(BaseModel):
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    website: str | None = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return validate_phone(v) if v else v

    @field_validator("website")
    @classmethod
    def _website(cls, v: str | None) -> str | None:
        return validate_url(v) if v else v


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    display_name: str | None = None
    company_type: CompanyType
    roles: list[CompanyRole] = []
    contact: CompanyContact | None = None
    avatar_storage_id: str | None = None
    is_verified: bool = False


class CompanyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    display_name: str | None = None
    company_type: CompanyType | None = None
    roles: list[CompanyRole] | None = None
    contact: CompanyContact | None = None
    avatar_storage_id: str | None = None
    is_verified: bool | None = None
    is_active: bool | None = None


class CompanyOut(BaseModel):
    id: str
    name: str
    display_name: str | None
    company_type: str
    roles: list[str]
    contact: dict | None
    avatar_storage_id: str | None
    avatar_url: str | None = None
    is_verified: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CompanyRef(BaseModel):
    """Compact company reference embedded in trading entities."""
    id: str
    name: str
    display_name: str | None = None
    avatar_url: str | None = None
