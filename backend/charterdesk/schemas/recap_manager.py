"""Pydantic schemas for RecapManager operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from charterdesk.schemas.addenda import AddendumOut
from charterdesk.schemas.auth import UserSummary
from charterdesk.schemas.cargo_type import CargoTypeRef
from charterdesk.schemas.company import CompanyRef
from charterdesk.schemas.contract import ContractType, AgreementTerms
from charterdesk.schemas.negotiation import NegotiationOut
from charterdesk.schemas.order import OrderOut
from charterdesk.schemas.port import PortRef
from charterdesk.schemas.vessel import VesselRef

RecapStatus = Literal["draft", "on-subs", "fully-fixed", "canceled", "failed"]


class RecapCreate(AgreementTerms):
    contract_type: ContractType
    charterer_id: str
    order_id: str | None = None
    negotiation_id: str | None = None
    parent_recap_id: str | None = None
    status: RecapStatus = "draft"


class RecapUpdate(AgreementTerms):
    contract_type: ContractType | None = None
    charterer_id: str | None = None
    parent_recap_id: str | None = None
    approval_status: str | None = None
    change_reason: str | None = None


class RecapStatusUpdate(BaseModel):
    status: RecapStatus


class RecapOut(BaseModel):
    id: str
    recap_number: str
    fixture_id: str | None
    order_id: str | None
    negotiation_id: str | None
    parent_recap_id: str | None
    contract_type: str
    status: str
    approval_status: str | None
    owner_id: str | None
    charterer_id: str
    broker_id: str | None
    vessel_id: str | None
    load_port_id: str | None
    discharge_port_id: str | None
    load_delivery_type: str | None
    discharge_redelivery_type: str | None
    laycan_start: datetime | None
    laycan_end: datetime | None
    cargo_type_id: str | None
    quantity: float | None
    quantity_unit: str | None
    freight_rate: str | None
    freight_rate_type: str | None
    demurrage_rate: str | None
    despatch_rate: str | None
    fixed_at: datetime | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class RecapEnriched(RecapOut):
    owner: CompanyRef | None = None
    charterer: CompanyRef | None = None
    broker: CompanyRef | None = None
    vessel: VesselRef | None = None
    load_port: PortRef | None = None
    discharge_port: PortRef | None = None
    cargo_type: CargoTypeRef | None = None
    negotiation: NegotiationOut | None = None
    order: OrderOut | None = None
    person_in_charge: UserSummary | None = None


class RecapDetail(RecapEnriched):
    addenda: list[AddendumOut] = []
    child_voyages: list[RecapOut] = []
