"""Pydantic schemas for fixtures and the fixture aggregation view."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from charterdesk.schemas.contract import ContractEnriched
from charterdesk.schemas.negotiation import NegotiationOut
from charterdesk.schemas.order import OrderOut
from charterdesk.schemas.recap_manager import RecapEnriched

FixtureStatus = Literal["draft", "working-copy", "final", "on-subs", "fully-fixed", "canceled"]


# ── CRUD ─────────────────────────────────────────────────────

class FixtureCreate(BaseModel):
    order_id: str | None = None
    title: str | None = Field(None, max_length=255)
    status: FixtureStatus = "draft"


class FixtureUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    status: FixtureStatus | None = None


class FixtureOut(BaseModel):
    id: str
    fixture_number: str
    order_id: str | None
    title: str | None
    organization_id: str
    status: str
    last_updated: datetime | None
    search_text: str | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class FixtureDetails(FixtureOut):
    order: OrderOut | None = None
    contracts: list[ContractEnriched] = []
    recap_managers: list[RecapEnriched] = []
    negotiations: list[NegotiationOut] = []


# ── Wide row ─────────────────────────────────────────────────

class FixtureRow(BaseModel):
    """One fixture flattened for the fixtures table.

    Contract-level columns come from the primary contract (the first
    contract, or the first recap when there are no contracts).
    """
    id: str
    fixture_number: str
    title: str | None = None
    status: str
    organization_id: str
    created_at: datetime
    last_updated: datetime | None = None

    # Primary agreement
    contract_id: str | None = None
    contract_number: str | None = None
    contract_type: str | None = None
    contract_status: str | None = None
    cp_date: datetime | None = None
    vessel_name: str | None = None
    vessel_imo: str | None = None
    owner_name: str | None = None
    owner_avatar_url: str | None = None
    charterer_name: str | None = None
    charterer_avatar_url: str | None = None
    broker_name: str | None = None
    broker_avatar_url: str | None = None
    load_port_name: str | None = None
    load_port_country: str | None = None
    discharge_port_name: str | None = None
    discharge_port_country: str | None = None
    load_delivery_type: str | None = None
    discharge_redelivery_type: str | None = None
    cargo_type_name: str | None = None
    cargo_quantity: float | None = None
    laycan_start: datetime | None = None
    laycan_end: datetime | None = None
    freight_rate: str | None = None
    demurrage_rate: str | None = None
    final_freight_rate: float | None = None
    final_demurrage_rate: float | None = None
    working_copy_date: datetime | None = None
    final_date: datetime | None = None
    fully_signed_date: datetime | None = None

    # Negotiation
    negotiation_number: str | None = None
    market_index_name: str | None = None
    market_index: float | None = None
    highest_freight_rate_indication: float | None = None
    lowest_freight_rate_indication: float | None = None
    first_freight_rate_indication: float | None = None
    highest_demurrage_indication: float | None = None
    lowest_demurrage_indication: float | None = None
    first_demurrage_indication: float | None = None
    address_commission_percent: float | None = None
    address_commission_total: float | None = None
    broker_commission_percent: float | None = None
    broker_commission_total: float | None = None
    gross_freight: float | None = None
    deal_capture_user: str | None = None

    # Order
    order_number: str | None = None
    stage: str | None = None
    order_created_by: str | None = None

    # Approvals / signatures of the primary contract
    owner_approval_status: str | None = None
    owner_approved_by: str | None = None
    owner_approval_date: datetime | None = None
    charterer_approval_status: str | None = None
    charterer_approved_by: str | None = None
    charterer_approval_date: datetime | None = None
    owner_signature_status: str | None = None
    owner_signed_by: str | None = None
    owner_signature_date: datetime | None = None
    charterer_signature_status: str | None = None
    charterer_signed_by: str | None = None
    charterer_signature_date: datetime | None = None

    # Derived
    freight_savings_percent: float | None = None
    demurrage_savings_percent: float | None = None
    freight_vs_market_percent: float | None = None
    days_to_working_copy: int | None = None
    days_to_final: int | None = None
    days_to_signed: int | None = None


class NumericRange(BaseModel):
    min: float
    max: float


class DateRange(BaseModel):
    earliest: datetime
    latest: datetime


class GroupSummary(BaseModel):
    """Collapsed view of a group of fixture rows."""
    count: int
    numeric: dict[str, NumericRange | None] = {}
    dates: dict[str, DateRange | None] = {}
    text: dict[str, str | None] = {}
    last_updated: datetime | None = None


# ── Listing ──────────────────────────────────────────────────

class RangeFilter(BaseModel):
    min: float
    max: float


class DateRangeFilter(BaseModel):
    min: datetime
    max: datetime


class FixtureFilters(BaseModel):
    status: list[str] | None = None
    cp_date: DateRangeFilter | None = None

    vessels: list[str] | None = None
    owner: list[str] | None = None
    charterer: list[str] | None = None
    broker: list[str] | None = None
    load_port_name: list[str] | None = None
    load_port_country: list[str] | None = None
    load_delivery_type: list[str] | None = None
    discharge_port_name: list[str] | None = None
    discharge_port_country: list[str] | None = None
    discharge_redelivery_type: list[str] | None = None
    cargo_type_name: list[str] | None = None
    market_index_name: list[str] | None = None
    contract_type: list[str] | None = None
    contract_status: list[str] | None = None

    cargo_quantity: RangeFilter | None = None
    final_freight_rate: RangeFilter | None = None
    laycan_start: DateRangeFilter | None = None


class FixturePageRequest(BaseModel):
    limit: int = Field(50, ge=1, le=200)
    cursor: str | None = None
    filters: FixtureFilters | None = None
    sort_direction: Literal["asc", "desc"] = "desc"
    search_terms: list[str] | None = None


class FilterOption(BaseModel):
    value: str
    label: str


class FilterOptions(BaseModel):
    vessels: list[FilterOption] = []
    owners: list[FilterOption] = []
    charterers: list[FilterOption] = []
    brokers: list[FilterOption] = []
    load_ports: list[FilterOption] = []
    load_countries: list[FilterOption] = []
    discharge_ports: list[FilterOption] = []
    discharge_countries: list[FilterOption] = []
    cargo_types: list[FilterOption] = []
    contract_types: list[FilterOption] = []
    contract_statuses: list[FilterOption] = []
    load_delivery_types: list[FilterOption] = []
    discharge_redelivery_types: list[FilterOption] = []
    market_index_names: list[FilterOption] = []
    status: list[FilterOption] = []
    stages: list[FilterOption] = []
    approval_statuses: list[FilterOption] = []
    owner_approval_statuses: list[FilterOption] = []
    charterer_approval_statuses: list[FilterOption] = []
    owner_signature_statuses: list[FilterOption] = []
    charterer_signature_statuses: list[FilterOption] = []
    deal_capture_users: list[FilterOption] = []
    order_created_by: list[FilterOption] = []
    negotiation_created_by: list[FilterOption] = []
