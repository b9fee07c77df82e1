"""Pydantic schemas for Vessel CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from charterdesk.schemas.validators import validate_imo_number


class VesselCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    imo_number: str | None = None
    callsign: str | None = None
    mmsi: str | None = None
    dwt: float | None = Field(None, ge=0)
    grt: float | None = Field(None, ge=0)
    draft: float | None = Field(None, ge=0)
    loa: float | None = Field(None, ge=0)
    beam: float | None = Field(None, ge=0)
    max_height: float | None = Field(None, ge=0)
    flag: str | None = None
    vessel_class: str | None = None
    speed_knots: float | None = Field(None, ge=0)
    consumption_per_day: float | None = Field(None, ge=0)
    built_date: str | None = None
    current_owner_id: str | None = None
    is_verified: bool = False

    @field_validator("imo_number")
    @classmethod
    def _imo(cls, v: str | None) -> str | None:
        return validate_imo_number(v) if v else v


class VesselUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    imo_number: str | None = None
    callsign: str | None = None
    mmsi: str | None = None
    dwt: float | None = Field(None, ge=0)
    grt: float | None = Field(None, ge=0)
    draft: float | None = Field(None, ge=0)
    loa: float | None = Field(None, ge=0)
    beam: float | None = Field(None, ge=0)
    max_height: float | None = Field(None, ge=0)
    flag: str | None = None
    vessel_class: str | None = None
    speed_knots: float | None = Field(None, ge=0)
    consumption_per_day: float | None = Field(None, ge=0)
    built_date: str | None = None
    current_owner_id: str | None = None
    is_verified: bool | None = None
    is_active: bool | None = None

    @field_validator("imo_number")
    @classmethod
    def _imo(cls, v: str | None) -> str | None:
        return validate_imo_number(v) if v else v


class VesselOut(BaseModel):
    id: str
    name: str
    imo_number: str | None
    callsign: str | None
    mmsi: str | None
    dwt: float | None
    grt: float | None
    draft: float | None
    loa: float | None
    beam: float | None
    max_height: float | None
    flag: str | None
    vessel_class: str | None
    speed_knots: float | None
    consumption_per_day: float | None
    built_date: str | None
    current_owner_id: str | None
    is_verified: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VesselRef(BaseModel):
    id: str
    name: str
    imo_number: str | None = None

    model_config = {"from_attributes": True}
