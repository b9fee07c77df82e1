"""Fixture aggregation view: one wide row per fixture for the fixtures table.

The primary agreement of a fixture is its first contract, or its first
recap when it has no contracts. Row columns come from the primary
agreement, its negotiation, the fixture's order, and the approvals and
signatures of the primary contract.

Listing is cursor-paginated on (created_at, id). Fixture-level filters
and search terms run in SQL; filters on joined columns are applied to the
built rows, so a page is filled by scanning fixtures in batches until
limit + 1 rows match.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.approval import ContractApproval
from charterdesk.models.cargo_type import CargoType
from charterdesk.models.company import Company
from charterdesk.models.contract import Contract
from charterdesk.models.fixture import FIXTURE_STATUSES, Fixture
from charterdesk.models.negotiation import Negotiation
from charterdesk.models.order import Order
from charterdesk.models.port import Port
from charterdesk.models.recap_manager import RecapManager
from charterdesk.models.signature import ContractSignature
from charterdesk.models.user import User
from charterdesk.models.vessel import Vessel
from charterdesk.schemas.common import CursorPaginatedResponse
from charterdesk.schemas.fixture import (
    DateRange,
    FilterOption,
    FilterOptions,
    FixtureDetails,
    FixtureFilters,
    FixtureOut,
    FixturePageRequest,
    FixtureRow,
    GroupSummary,
    NumericRange,
)
from charterdesk.schemas.negotiation import NegotiationOut
from charterdesk.schemas.order import OrderOut
from charterdesk.services import contracts as contract_service
from charterdesk.services import recaps as recap_service
from charterdesk.services.audit import title_case
from charterdesk.services.fixtures import get_fixture
from charterdesk.services.lookups import Lookups, load_agreement_references
from charterdesk.utils.dates import days_between, from_epoch_ms, to_epoch_ms
from charterdesk.utils.numbers import first_number, percent_change

logger = logging.getLogger(__name__)

STAGES = ("inquiry", "indication", "recap", "firm", "subjects", "main-terms")
APPROVAL_STATUSES = ("pending", "partially-approved", "approved", "rejected")
PARTY_APPROVAL_STATUSES = ("pending", "approved", "rejected")
SIGNATURE_STATUSES = ("not-sent", "sent", "signed")

# Signature row status → table status
_SIGNATURE_DISPLAY = {"pending": "sent", "signed": "signed", "rejected": "rejected"}

# Filter field → row column, for multi-select filters on joined data
_SELECT_FILTERS = {
    "vessels": "vessel_name",
    "owner": "owner_name",
    "charterer": "charterer_name",
    "broker": "broker_name",
    "load_port_name": "load_port_name",
    "load_port_country": "load_port_country",
    "load_delivery_type": "load_delivery_type",
    "discharge_port_name": "discharge_port_name",
    "discharge_port_country": "discharge_port_country",
    "discharge_redelivery_type": "discharge_redelivery_type",
    "cargo_type_name": "cargo_type_name",
    "market_index_name": "market_index_name",
    "contract_type": "contract_type",
    "contract_status": "contract_status",
}
_RANGE_FILTERS = {
    "cargo_quantity": "cargo_quantity",
    "final_freight_rate": "final_freight_rate",
    "laycan_start": "laycan_start",
}

NUMERIC_COLUMNS = (
    "cargo_quantity",
    "final_freight_rate",
    "final_demurrage_rate",
    "market_index",
    "highest_freight_rate_indication",
    "lowest_freight_rate_indication",
    "first_freight_rate_indication",
    "highest_demurrage_indication",
    "lowest_demurrage_indication",
    "first_demurrage_indication",
    "address_commission_percent",
    "address_commission_total",
    "broker_commission_percent",
    "broker_commission_total",
    "gross_freight",
    "freight_savings_percent",
    "demurrage_savings_percent",
    "freight_vs_market_percent",
    "days_to_working_copy",
    "days_to_final",
    "days_to_signed",
)
DATE_COLUMNS = (
    "created_at",
    "cp_date",
    "laycan_start",
    "laycan_end",
    "working_copy_date",
    "final_date",
    "fully_signed_date",
)
TEXT_COLUMNS = (
    "status",
    "vessel_name",
    "owner_name",
    "charterer_name",
    "broker_name",
    "load_port_name",
    "load_port_country",
    "discharge_port_name",
    "discharge_port_country",
    "cargo_type_name",
    "contract_type",
    "contract_status",
    "market_index_name",
    "stage",
)

SCAN_BATCH = 100


# ── Row building ────────────────────────────────────────────

def _savings_percent(highest: float | None, final: float | None) -> float | None:
    """(highest - final) / highest * 100"""
    change = percent_change(highest, final)
    return -change if change is not None else None


def _latest_by_role(rows: list) -> dict[str, object]:
    latest: dict[str, object] = {}
    for row in sorted(rows, key=lambda r: r.updated_at or r.created_at):
        latest[row.party_role] = row
    return latest


async def _group_by_fixture(db: AsyncSession, model, fixture_ids: list[str]) -> dict[str, list]:
    grouped: dict[str, list] = defaultdict(list)
    if not fixture_ids:
        return grouped
    result = await db.execute(
        select(model)
        .where(model.fixture_id.in_(fixture_ids))
        .order_by(model.created_at, model.id)
    )
    for row in result.scalars().all():
        grouped[row.fixture_id].append(row)
    return grouped


async def _group_by_contract(db: AsyncSession, model, contract_ids: list[str]) -> dict[str, list]:
    grouped: dict[str, list] = defaultdict(list)
    if not contract_ids:
        return grouped
    result = await db.execute(select(model).where(model.contract_id.in_(contract_ids)))
    for row in result.scalars().all():
        grouped[row.contract_id].append(row)
    return grouped


async def build_fixture_rows(db: AsyncSession, fixtures: list[Fixture]) -> list[FixtureRow]:
    fixture_ids = [f.id for f in fixtures]
    contracts = await _group_by_fixture(db, Contract, fixture_ids)
    recaps = await _group_by_fixture(db, RecapManager, fixture_ids)

    primaries: dict[str, Contract | RecapManager | None] = {}
    for fixture in fixtures:
        children = contracts.get(fixture.id) or recaps.get(fixture.id) or []
        primaries[fixture.id] = children[0] if children else None
    agreements = [p for p in primaries.values() if p is not None]
    primary_contract_ids = [p.id for p in agreements if isinstance(p, Contract)]

    approvals = await _group_by_contract(db, ContractApproval, primary_contract_ids)
    signatures = await _group_by_contract(db, ContractSignature, primary_contract_ids)

    lookups = Lookups(db)
    await load_agreement_references(lookups, agreements)
    await lookups.load(Negotiation, [a.negotiation_id for a in agreements])
    await lookups.load(
        Order, [f.order_id for f in fixtures] + [a.order_id for a in agreements]
    )
    negotiations = [lookups.get(Negotiation, a.negotiation_id) for a in agreements]
    orders = [lookups.get(Order, f.order_id) for f in fixtures]
    await lookups.load(
        User,
        [n.deal_capture_user_id for n in negotiations if n]
        + [o.created_by_user_id for o in orders if o]
        + [a.approved_by for rows in approvals.values() for a in rows]
        + [s.signed_by for rows in signatures.values() for s in rows],
    )

    rows = []
    for fixture in fixtures:
        primary = primaries[fixture.id]
        rows.append(_build_row(
            fixture,
            primary,
            lookups,
            approvals.get(primary.id, []) if isinstance(primary, Contract) else None,
            signatures.get(primary.id, []) if isinstance(primary, Contract) else None,
        ))
    return rows


def _build_row(
    fixture: Fixture,
    primary: Contract | RecapManager | None,
    lookups: Lookups,
    approvals: list | None,
    signatures: list | None,
) -> FixtureRow:
    row = FixtureRow(
        id=fixture.id,
        fixture_number=fixture.fixture_number,
        title=fixture.title,
        status=fixture.status,
        organization_id=fixture.organization_id,
        created_at=fixture.created_at,
        last_updated=fixture.last_updated,
    )

    order = lookups.get(Order, fixture.order_id) or (
        lookups.get(Order, primary.order_id) if primary else None
    )
    if order is not None:
        row.order_number = order.order_number
        row.stage = order.stage
        row.order_created_by = lookups.name_of(User, order.created_by_user_id)

    if primary is None:
        return row

    is_contract = isinstance(primary, Contract)
    vessel = lookups.get(Vessel, primary.vessel_id)
    load_port = lookups.get(Port, primary.load_port_id)
    discharge_port = lookups.get(Port, primary.discharge_port_id)
    owner = lookups.company_ref(primary.owner_id)
    charterer = lookups.company_ref(primary.charterer_id)
    broker = lookups.company_ref(primary.broker_id)

    row.contract_id = primary.id
    row.contract_number = primary.contract_number if is_contract else primary.recap_number
    row.contract_type = primary.contract_type
    row.contract_status = primary.status
    row.cp_date = primary.created_at
    row.vessel_name = vessel.name if vessel else None
    row.vessel_imo = vessel.imo_number if vessel else None
    row.owner_name = owner.name if owner else None
    row.owner_avatar_url = owner.avatar_url if owner else None
    row.charterer_name = charterer.name if charterer else None
    row.charterer_avatar_url = charterer.avatar_url if charterer else None
    row.broker_name = broker.name if broker else None
    row.broker_avatar_url = broker.avatar_url if broker else None
    row.load_port_name = load_port.name if load_port else None
    row.load_port_country = load_port.country if load_port else None
    row.discharge_port_name = discharge_port.name if discharge_port else None
    row.discharge_port_country = discharge_port.country if discharge_port else None
    row.load_delivery_type = primary.load_delivery_type
    row.discharge_redelivery_type = primary.discharge_redelivery_type
    row.cargo_type_name = lookups.name_of(CargoType, primary.cargo_type_id)
    row.cargo_quantity = primary.quantity
    row.laycan_start = primary.laycan_start
    row.laycan_end = primary.laycan_end
    row.freight_rate = primary.freight_rate
    row.demurrage_rate = primary.demurrage_rate
    row.final_freight_rate = first_number(primary.freight_rate)
    row.final_demurrage_rate = first_number(primary.demurrage_rate)
    if is_contract:
        row.working_copy_date = primary.working_copy_date
        row.final_date = primary.final_date
        row.fully_signed_date = primary.fully_signed_date or primary.signed_at

    negotiation = lookups.get(Negotiation, primary.negotiation_id)
    if negotiation is not None:
        row.negotiation_number = negotiation.negotiation_number
        row.market_index_name = negotiation.market_index_name
        row.market_index = negotiation.market_index
        for column in (
            "highest_freight_rate_indication",
            "lowest_freight_rate_indication",
            "first_freight_rate_indication",
            "highest_demurrage_indication",
            "lowest_demurrage_indication",
            "first_demurrage_indication",
            "address_commission_percent",
            "address_commission_total",
            "broker_commission_percent",
            "broker_commission_total",
            "gross_freight",
        ):
            setattr(row, column, getattr(negotiation, column))
        row.deal_capture_user = lookups.name_of(User, negotiation.deal_capture_user_id)

    if approvals is not None:
        by_role = _latest_by_role(approvals)
        for role in ("owner", "charterer"):
            approval = by_role.get(role)
            if approval is not None:
                setattr(row, f"{role}_approval_status", approval.status)
                setattr(row, f"{role}_approved_by", lookups.name_of(User, approval.approved_by))
                setattr(row, f"{role}_approval_date", approval.approved_at)

    if signatures is not None:
        by_role = _latest_by_role(signatures)
        for role in ("owner", "charterer"):
            signature = by_role.get(role)
            if signature is None:
                setattr(row, f"{role}_signature_status", "not-sent")
                continue
            setattr(row, f"{role}_signature_status", _SIGNATURE_DISPLAY.get(signature.status))
            setattr(row, f"{role}_signed_by", lookups.name_of(User, signature.signed_by))
            setattr(row, f"{role}_signature_date", signature.signed_at)

    row.freight_savings_percent = _savings_percent(
        row.highest_freight_rate_indication, row.final_freight_rate
    )
    row.demurrage_savings_percent = _savings_percent(
        row.highest_demurrage_indication, row.final_demurrage_rate
    )
    row.freight_vs_market_percent = percent_change(row.market_index, row.final_freight_rate)
    row.days_to_working_copy = days_between(row.cp_date, row.working_copy_date)
    row.days_to_final = days_between(row.cp_date, row.final_date)
    row.days_to_signed = days_between(row.cp_date, row.fully_signed_date)
    return row


# ── Grouping ────────────────────────────────────────────────

def summarize_rows(rows: list[FixtureRow]) -> GroupSummary:
    """Collapse a group of rows: ranges for numbers and dates, text when unanimous."""
    numeric: dict[str, NumericRange | None] = {}
    for column in NUMERIC_COLUMNS:
        values = [v for v in (getattr(r, column) for r in rows) if v is not None]
        numeric[column] = NumericRange(min=min(values), max=max(values)) if values else None

    dates: dict[str, DateRange | None] = {}
    for column in DATE_COLUMNS:
        values = [v for v in (getattr(r, column) for r in rows) if v is not None]
        dates[column] = DateRange(earliest=min(values), latest=max(values)) if values else None

    text: dict[str, str | None] = {}
    for column in TEXT_COLUMNS:
        distinct = {v for v in (getattr(r, column) for r in rows) if v is not None}
        if not distinct:
            text[column] = None
        elif len(distinct) == 1:
            text[column] = distinct.pop()
        else:
            text[column] = f"{len(distinct)} distinct"

    last_updated = [r.last_updated for r in rows if r.last_updated is not None]
    return GroupSummary(
        count=len(rows),
        numeric=numeric,
        dates=dates,
        text=text,
        last_updated=max(last_updated) if last_updated else None,
    )


# ── Listing ─────────────────────────────────────────────────

def encode_cursor(created_at: datetime, fixture_id: str) -> str:
    return f"{to_epoch_ms(created_at)}:{fixture_id}"


def decode_cursor(cursor: str) -> tuple[datetime, str]:
    timestamp, _, fixture_id = cursor.partition(":")
    try:
        return from_epoch_ms(int(timestamp)), fixture_id
    except (ValueError, OverflowError):
        raise BusinessLogicError(f"Invalid cursor: {cursor}") from None


def has_row_filters(filters: FixtureFilters | None) -> bool:
    if filters is None:
        return False
    return any(getattr(filters, f) for f in (*_SELECT_FILTERS, *_RANGE_FILTERS))


def row_matches(row: FixtureRow, filters: FixtureFilters | None) -> bool:
    if filters is None:
        return True
    for field, column in _SELECT_FILTERS.items():
        wanted = getattr(filters, field)
        if wanted and getattr(row, column) not in wanted:
            return False
    for field, column in _RANGE_FILTERS.items():
        bounds = getattr(filters, field)
        if bounds is None:
            continue
        value = getattr(row, column)
        if value is None or value < bounds.min or value > bounds.max:
            return False
    return True


def _page_query(caller: Caller, request: FixturePageRequest):
    query = select(Fixture).where(Fixture.organization_id == caller.require_organization())
    filters = request.filters
    if filters and filters.status:
        query = query.where(Fixture.status.in_(filters.status))
    if filters and filters.cp_date:
        query = query.where(
            Fixture.created_at >= filters.cp_date.min,
            Fixture.created_at <= filters.cp_date.max,
        )
    for term in request.search_terms or []:
        term = term.strip().lower()
        if term:
            query = query.where(Fixture.search_text.contains(term, autoescape=True))
    return query


def _after(created_at: datetime, fixture_id: str, descending: bool):
    if descending:
        return or_(
            Fixture.created_at < created_at,
            and_(Fixture.created_at == created_at, Fixture.id < fixture_id),
        )
    return or_(
        Fixture.created_at > created_at,
        and_(Fixture.created_at == created_at, Fixture.id > fixture_id),
    )


async def list_fixtures_page(
    db: AsyncSession, caller: Caller, request: FixturePageRequest
) -> CursorPaginatedResponse[FixtureRow]:
    descending = request.sort_direction == "desc"
    base = _page_query(caller, request)
    if descending:
        base = base.order_by(Fixture.created_at.desc(), Fixture.id.desc())
    else:
        base = base.order_by(Fixture.created_at.asc(), Fixture.id.asc())

    position = decode_cursor(request.cursor) if request.cursor else None
    batch_size = request.limit + 1
    if has_row_filters(request.filters):
        batch_size = max(batch_size, SCAN_BATCH)

    matched: list[FixtureRow] = []
    while len(matched) <= request.limit:
        query = base if position is None else base.where(_after(*position, descending))
        batch = list((await db.execute(query.limit(batch_size))).scalars().all())
        if not batch:
            break
        rows = await build_fixture_rows(db, batch)
        matched.extend(r for r in rows if row_matches(r, request.filters))
        position = (batch[-1].created_at, batch[-1].id)
        if len(batch) < batch_size:
            break

    has_more = len(matched) > request.limit
    items = matched[:request.limit]
    next_cursor = encode_cursor(items[-1].created_at, items[-1].id) if has_more and items else None

    total = None
    if not has_row_filters(request.filters):
        total = await db.scalar(
            select(func.count()).select_from(_page_query(caller, request).subquery())
        )
    return CursorPaginatedResponse[FixtureRow](
        items=items,
        limit=request.limit,
        next_cursor=next_cursor,
        has_more=has_more,
        total=total,
    )


# ── Filter options ──────────────────────────────────────────

def _options(values, label=lambda v: v) -> list[FilterOption]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return [FilterOption(value=v, label=label(v)) for v in seen]


async def get_filter_options(db: AsyncSession, caller: Caller) -> FilterOptions:
    vessels = (await db.execute(select(Vessel).order_by(Vessel.name))).scalars().all()
    companies = (await db.execute(select(Company).order_by(Company.name))).scalars().all()
    ports = (await db.execute(select(Port).order_by(Port.name))).scalars().all()
    cargo_types = (await db.execute(select(CargoType).order_by(CargoType.name))).scalars().all()
    users = (await db.execute(select(User).order_by(User.name))).scalars().all()

    # Agreement-level values are sampled from the first contract of recent fixtures
    fixture_ids = list((await db.execute(
        select(Fixture.id)
        .where(Fixture.organization_id == caller.require_organization())
        .order_by(Fixture.created_at.desc())
        .limit(50)
    )).scalars().all())
    grouped = await _group_by_fixture(db, Contract, fixture_ids)
    sample = [grouped[f][0] for f in fixture_ids if grouped.get(f)]
    negotiation_ids = [c.negotiation_id for c in sample if c.negotiation_id]
    negotiations = []
    if negotiation_ids:
        negotiations = (await db.execute(
            select(Negotiation).where(Negotiation.id.in_(negotiation_ids))
        )).scalars().all()

    def with_role(role: str) -> list[FilterOption]:
        return _options(c.name for c in companies if role in (c.roles or []))

    countries = sorted({p.country for p in ports if p.country})
    user_names = _options(u.name for u in users)
    return FilterOptions(
        vessels=_options(v.name for v in vessels),
        owners=with_role("owner"),
        charterers=with_role("charterer"),
        brokers=with_role("broker"),
        load_ports=_options(p.name for p in ports),
        load_countries=_options(countries),
        discharge_ports=_options(p.name for p in ports),
        discharge_countries=_options(countries),
        cargo_types=_options(ct.name for ct in cargo_types),
        contract_types=_options((c.contract_type for c in sample), title_case),
        contract_statuses=_options((c.status for c in sample), title_case),
        load_delivery_types=_options(c.load_delivery_type for c in sample),
        discharge_redelivery_types=_options(c.discharge_redelivery_type for c in sample),
        market_index_names=_options(n.market_index_name for n in negotiations),
        status=_options(FIXTURE_STATUSES, title_case),
        stages=_options(STAGES, title_case),
        approval_statuses=_options(APPROVAL_STATUSES, title_case),
        owner_approval_statuses=_options(PARTY_APPROVAL_STATUSES, title_case),
        charterer_approval_statuses=_options(PARTY_APPROVAL_STATUSES, title_case),
        owner_signature_statuses=_options(SIGNATURE_STATUSES, title_case),
        charterer_signature_statuses=_options(SIGNATURE_STATUSES, title_case),
        deal_capture_users=user_names,
        order_created_by=user_names,
        negotiation_created_by=user_names,
    )


# ── Details ─────────────────────────────────────────────────

async def get_fixture_details(db: AsyncSession, caller: Caller, fixture_id: str) -> FixtureDetails:
    fixture = await get_fixture(db, caller, fixture_id)
    grouped_contracts = await _group_by_fixture(db, Contract, [fixture.id])
    grouped_recaps = await _group_by_fixture(db, RecapManager, [fixture.id])

    order = await db.get(Order, fixture.order_id) if fixture.order_id else None
    negotiations = []
    if order is not None:
        negotiations = (await db.execute(
            select(Negotiation)
            .where(Negotiation.order_id == order.id)
            .order_by(Negotiation.created_at)
        )).scalars().all()

    return FixtureDetails(
        **FixtureOut.model_validate(fixture).model_dump(),
        order=OrderOut.model_validate(order) if order else None,
        contracts=await contract_service.enrich(db, grouped_contracts.get(fixture.id, [])),
        recap_managers=await recap_service.enrich(db, grouped_recaps.get(fixture.id, [])),
        negotiations=[NegotiationOut.model_validate(n) for n in negotiations],
    )
