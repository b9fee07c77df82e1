"""Pydantic schemas for Port CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from charterdesk.schemas.validators import validate_country_code, validate_unlocode


class PortCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    unlocode: str | None = None
    country: str = Field(..., min_length=1, max_length=100)
    country_code: str
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    timezone: str | None = None
    is_verified: bool = False

    @field_validator("unlocode")
    @classmethod
    def _unlocode(cls, v: str | None) -> str | None:
        return validate_unlocode(v) if v else v

    @field_validator("country_code")
    @classmethod
    def _country_code(cls, v: str) -> str:
        return validate_country_code(v)


class PortUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    unlocode: str | None = None
    country: str | None = None
    country_code: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    timezone: str | None = None
    is_verified: bool | None = None
    is_active: bool | None = None

    @field_validator("unlocode")
    @classmethod
    def _unlocode(cls, v: str | None) -> str | None:
        return validate_unlocode(v) if v else v

    @field_validator("country_code")
    @classmethod
    def _country_code(cls, v: str | None) -> str | None:
        return validate_country_code(v) if v else v


class PortOut(BaseModel):
    id: str
    name: str
    unlocode: str | None
    country: str
    country_code: str
    latitude: float | None
    longitude: float | None
    timezone: str | None
    is_verified: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PortRef(BaseModel):
    id: str
    name: str
    country: str | None = None
    unlocode: str | None = None

    model_config = {"from_attributes": True}
