"""Pydantic schemas for Order operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

OrderType = Literal["buy", "sell", "charter"]
OrderStage = Literal["offer", "active", "negotiating", "pending"]
FreightRateType = Literal["worldscale", "lumpsum", "per-tonne"]


class _OrderTerms(BaseModel):
    title: str | None = Field(None, max_length=255)
    description: str | None = None
    cargo_type_id: str | None = None
    quantity: float | None = Field(None, ge=0)
    quantity_unit: str | None = None
    laycan_start: datetime | None = None
    laycan_end: datetime | None = None
    load_port_id: str | None = None
    discharge_port_id: str | None = None
    freight_rate: str | None = None
    freight_rate_type: FreightRateType | None = None
    demurrage_rate: str | None = None
    despatch_rate: str | None = None
    tce: str | None = None
    validity_hours: int | None = Field(None, ge=0)
    charterer_id: str | None = None
    owner_id: str | None = None
    broker_id: str | None = None

    @model_validator(mode="after")
    def laycan_order(self):
        if self.laycan_start and self.laycan_end and self.laycan_end < self.laycan_start:
            raise ValueError("laycan_end must not be before laycan_start")
        return self


class OrderCreate(_OrderTerms):
    type: OrderType
    stage: OrderStage = "offer"


class OrderUpdate(_OrderTerms):
    type: OrderType | None = None
    stage: OrderStage | None = None
    change_reason: str | None = None


class OrderOut(BaseModel):
    id: str
    order_number: str
    title: str | None
    description: str | None
    type: str
    stage: str
    status: str
    cargo_type_id: str | None
    quantity: float | None
    quantity_unit: str | None
    laycan_start: datetime | None
    laycan_end: datetime | None
    load_port_id: str | None
    discharge_port_id: str | None
    freight_rate: str | None
    freight_rate_type: str | None
    demurrage_rate: str | None
    despatch_rate: str | None
    tce: str | None
    validity_hours: int | None
    charterer_id: str | None
    owner_id: str | None
    broker_id: str | None
    organization_id: str
    created_by_user_id: str | None
    approval_status: str | None
    created_at: datetime
    updated_at: datetime | None
    distributed_at: datetime | None
    withdrawn_at: datetime | None

    model_config = {"from_attributes": True}
