"""Pydantic schemas for contract and recap addenda."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

AddendaType = Literal["contract", "recap"]
AddendumStatus = Literal["draft", "pending", "approved", "rejected", "signed"]


class AddendumCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    status: AddendumStatus = "draft"


class AddendumUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    change_reason: str | None = None


class AddendumStatusUpdate(BaseModel):
    status: AddendumStatus


class AddendumOut(BaseModel):
    id: str
    addenda_type: AddendaType
    parent_id: str
    addendum_number: str
    title: str
    description: str | None
    status: str
    created_by_user_id: str | None
    created_at: datetime
    updated_at: datetime | None
