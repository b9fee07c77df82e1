"""Pydantic schemas for Negotiation operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from charterdesk.schemas.auth import UserSummary
from charterdesk.schemas.company import CompanyRef
from charterdesk.schemas.vessel import VesselRef

NegotiationStatus = Literal[
    "indicative-offer",
    "indicative-bid",
    "firm-offer",
    "firm-bid",
    "firm",
    "on-subs",
    "fixed",
    "firm-offer-expired",
    "withdrawn",
    "firm-amendment",
    "subs-expired",
    "subs-failed",
    "on-subs-amendment",
]


class _NegotiationTerms(BaseModel):
    broker_id: str | None = None
    vessel_id: str | None = None
    person_in_charge_id: str | None = None
    deal_capture_user_id: str | None = None
    bid_price: str | None = None
    offer_price: str | None = None
    freight_rate: str | None = None
    demurrage_rate: str | None = None
    tce: str | None = None
    validity: str | None = None
    load_delivery_type: str | None = None
    discharge_redelivery_type: str | None = None
    laycan_start: datetime | None = None
    laycan_end: datetime | None = None
    quantity: float | None = Field(None, ge=0)
    market_index: float | None = None
    market_index_name: str | None = None
    address_commission_percent: float | None = Field(None, ge=0, le=100)
    address_commission_total: float | None = None
    broker_commission_percent: float | None = Field(None, ge=0, le=100)
    broker_commission_total: float | None = None
    gross_freight: float | None = None


class NegotiationCreate(_NegotiationTerms):
    order_id: str
    counterparty_id: str
    status: NegotiationStatus = "indicative-offer"


class NegotiationUpdate(_NegotiationTerms):
    counterparty_id: str | None = None
    change_reason: str | None = None


class NegotiationStatusUpdate(BaseModel):
    status: NegotiationStatus
    description: str | None = None


class NegotiationOut(BaseModel):
    id: str
    negotiation_number: str
    order_id: str
    counterparty_id: str
    broker_id: str | None
    vessel_id: str | None
    person_in_charge_id: str | None
    deal_capture_user_id: str | None
    created_by_user_id: str | None
    status: str
    bid_price: str | None
    offer_price: str | None
    freight_rate: str | None
    demurrage_rate: str | None
    tce: str | None
    validity: str | None
    load_delivery_type: str | None
    discharge_redelivery_type: str | None
    laycan_start: datetime | None
    laycan_end: datetime | None
    quantity: float | None
    market_index: float | None
    market_index_name: str | None
    address_commission_percent: float | None
    address_commission_total: float | None
    broker_commission_percent: float | None
    broker_commission_total: float | None
    gross_freight: float | None
    highest_freight_rate_indication: float | None
    lowest_freight_rate_indication: float | None
    first_freight_rate_indication: float | None
    highest_freight_rate_last_day: float | None
    lowest_freight_rate_last_day: float | None
    first_freight_rate_last_day: float | None
    highest_demurrage_indication: float | None
    lowest_demurrage_indication: float | None
    first_demurrage_indication: float | None
    highest_demurrage_last_day: float | None
    lowest_demurrage_last_day: float | None
    first_demurrage_last_day: float | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class NegotiationEnriched(NegotiationOut):
    counterparty: CompanyRef | None = None
    broker: CompanyRef | None = None
    vessel: VesselRef | None = None
    person_in_charge: UserSummary | None = None


class NegotiationAnalytics(BaseModel):
    highest_freight_rate_indication: float | None = None
    lowest_freight_rate_indication: float | None = None
    first_freight_rate_indication: float | None = None
    highest_freight_rate_last_day: float | None = None
    lowest_freight_rate_last_day: float | None = None
    first_freight_rate_last_day: float | None = None
    highest_demurrage_indication: float | None = None
    lowest_demurrage_indication: float | None = None
    first_demurrage_indication: float | None = None
    highest_demurrage_last_day: float | None = None
    lowest_demurrage_last_day: float | None = None
    first_demurrage_last_day: float | None = None
