"""Pydantic schemas for Contract (charter party) operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from charterdesk.schemas.addenda import AddendumOut
from charterdesk.schemas.approval import ApprovalOut, ApprovalSummary
from charterdesk.schemas.auth import UserSummary
from charterdesk.schemas.cargo_type import CargoTypeRef
from charterdesk.schemas.company import CompanyRef
from charterdesk.schemas.negotiation import NegotiationOut
from charterdesk.schemas.order import OrderOut
from charterdesk.schemas.port import PortRef
from charterdesk.schemas.signature import SignatureOut, SignatureSummary
from charterdesk.schemas.vessel import VesselRef

ContractType = Literal["voyage-charter", "time-charter", "bareboat", "coa"]
FreightRateType = Literal["worldscale", "lumpsum", "per-tonne"]
ContractStatus = Literal["draft", "working-copy", "final", "rejected"]


class AgreementTerms(BaseModel):
    """Fields shared by contracts and recap managers."""
    fixture_id: str | None = None
    owner_id: str | None = None
    broker_id: str | None = None
    vessel_id: str | None = None
    load_port_id: str | None = None
    discharge_port_id: str | None = None
    load_delivery_type: str | None = None
    discharge_redelivery_type: str | None = None
    laycan_start: datetime | None = None
    laycan_end: datetime | None = None
    cargo_type_id: str | None = None
    quantity: float | None = Field(None, ge=0)
    quantity_unit: str | None = None
    freight_rate: str | None = None
    freight_rate_type: FreightRateType | None = None
    demurrage_rate: str | None = None
    despatch_rate: str | None = None

    @model_validator(mode="after")
    def laycan_order(self):
        if self.laycan_start and self.laycan_end and self.laycan_end < self.laycan_start:
            raise ValueError("laycan_end must not be before laycan_start")
        return self


class _ContractTerms(AgreementTerms):
    address_commission: str | None = None
    broker_commission: str | None = None
    full_cp_chain_storage_id: str | None = None
    itinerary_storage_id: str | None = None
    cp_url: str | None = None
    working_copy_date: datetime | None = None
    final_date: datetime | None = None
    fully_signed_date: datetime | None = None


class ContractCreate(_ContractTerms):
    contract_type: ContractType
    charterer_id: str
    order_id: str | None = None
    negotiation_id: str | None = None
    parent_contract_id: str | None = None
    status: ContractStatus = "draft"


class ContractUpdate(_ContractTerms):
    contract_type: ContractType | None = None
    charterer_id: str | None = None
    parent_contract_id: str | None = None
    approval_status: str | None = None
    change_reason: str | None = None


class ContractStatusUpdate(BaseModel):
    status: ContractStatus


class ContractOut(BaseModel):
    id: str
    contract_number: str
    fixture_id: str | None
    order_id: str | None
    negotiation_id: str | None
    parent_contract_id: str | None
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
    address_commission: str | None
    broker_commission: str | None
    full_cp_chain_storage_id: str | None
    itinerary_storage_id: str | None
    cp_url: str | None
    working_copy_date: datetime | None
    final_date: datetime | None
    fully_signed_date: datetime | None
    signed_at: datetime | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class ContractEnriched(ContractOut):
    """Contract with its parties, route and lineage resolved."""
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


class ContractDetail(ContractEnriched):
    addenda: list[AddendumOut] = []
    child_voyages: list[ContractOut] = []
    approvals: list[ApprovalOut] = []
    approval_summary: ApprovalSummary
    signatures: list[SignatureOut] = []
    signature_summary: SignatureSummary
