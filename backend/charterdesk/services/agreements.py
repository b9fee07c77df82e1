"""Helpers shared by contracts and recap managers.

Both carry the same parties, route, cargo and lineage columns, so their
reference checks and enrichment live here; status handling stays in
services.contracts and services.recaps.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.cargo_type import CargoType
from charterdesk.models.company import Company
from charterdesk.models.negotiation import Negotiation
from charterdesk.models.order import Order
from charterdesk.models.port import Port
from charterdesk.models.user import User
from charterdesk.models.vessel import Vessel
from charterdesk.schemas.negotiation import NegotiationOut
from charterdesk.schemas.order import OrderOut
from charterdesk.services.fixtures import get_fixture
from charterdesk.services.lookups import Lookups, ensure_exists, load_agreement_references

LINEAGE_ERROR = "orderId and negotiationId must both be present or both be empty"


def check_lineage(order_id: str | None, negotiation_id: str | None) -> None:
    if bool(order_id) != bool(negotiation_id):
        raise BusinessLogicError(LINEAGE_ERROR)


async def check_references(db: AsyncSession, caller: Caller, values: dict) -> None:
    if values.get("fixture_id"):
        await get_fixture(db, caller, values["fixture_id"])
    for key in ("owner_id", "charterer_id", "broker_id"):
        await ensure_exists(db, Company, values.get(key), "Company")
    await ensure_exists(db, Vessel, values.get("vessel_id"), "Vessel")
    for key in ("load_port_id", "discharge_port_id"):
        await ensure_exists(db, Port, values.get(key), "Port")
    await ensure_exists(db, CargoType, values.get("cargo_type_id"), "Cargo type")
    await ensure_exists(db, Order, values.get("order_id"), "Order")
    await ensure_exists(db, Negotiation, values.get("negotiation_id"), "Negotiation")


async def load_lineage(lookups: Lookups, agreements: list) -> None:
    """Load negotiations, orders and persons in charge for `agreements`."""
    await load_agreement_references(lookups, agreements)
    await lookups.load(Negotiation, [a.negotiation_id for a in agreements])
    await lookups.load(Order, [a.order_id for a in agreements])
    await lookups.load(
        User,
        [
            n.person_in_charge_id
            for n in (lookups.get(Negotiation, a.negotiation_id) for a in agreements)
            if n is not None
        ],
    )


def enrichment_fields(lookups: Lookups, agreement) -> dict:
    negotiation = lookups.get(Negotiation, agreement.negotiation_id)
    order = lookups.get(Order, agreement.order_id)
    return {
        "owner": lookups.company_ref(agreement.owner_id),
        "charterer": lookups.company_ref(agreement.charterer_id),
        "broker": lookups.company_ref(agreement.broker_id),
        "vessel": lookups.vessel_ref(agreement.vessel_id),
        "load_port": lookups.port_ref(agreement.load_port_id),
        "discharge_port": lookups.port_ref(agreement.discharge_port_id),
        "cargo_type": lookups.cargo_type_ref(agreement.cargo_type_id),
        "negotiation": NegotiationOut.model_validate(negotiation) if negotiation else None,
        "order": OrderOut.model_validate(order) if order else None,
        "person_in_charge": (
            lookups.user_summary(negotiation.person_in_charge_id) if negotiation else None
        ),
    }


async def enrich(db: AsyncSession, agreements: list, out_schema, enriched_schema) -> list:
    lookups = Lookups(db)
    await load_lineage(lookups, agreements)
    return [
        enriched_schema(
            **out_schema.model_validate(a).model_dump(),
            **enrichment_fields(lookups, a),
        )
        for a in agreements
    ]
