"""Pydantic schemas for CargoType CRUD operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

CargoCategory = Literal[
    "crude-oil", "dry-bulk", "container", "lng", "grain", "iron-ore", "coal", "other"
]
UnitType = Literal["mt", "cbm", "teu"]


class CargoTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: CargoCategory
    unit_type: UnitType = "mt"


class CargoTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    category: CargoCategory | None = None
    unit_type: UnitType | None = None
    is_active: bool | None = None


class CargoTypeOut(BaseModel):
    id: str
    name: str
    category: str
    unit_type: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CargoTypeRef(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}
