"""Tests for the aggregated fixture table."""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.contract import Contract
from charterdesk.models.fixture import Fixture
from charterdesk.models.negotiation import Negotiation
from charterdesk.models.recap_manager import RecapManager
from charterdesk.models.signature import ContractSignature
from charterdesk.models.vessel import Vessel
from charterdesk.schemas.fixture import FixtureFilters, FixtureRow, RangeFilter
from charterdesk.services.fixture_view import (
    decode_cursor,
    encode_cursor,
    row_matches,
    summarize_rows,
)
from charterdesk.services.rollup import recompute_fixture_derived
from tests.factories import headers_for, make_user

BASE = datetime(2026, 2, 1)


async def _fixture(db: AsyncSession, organization, number: str, minutes: int) -> Fixture:
    fixture = Fixture(
        fixture_number=number,
        organization_id=organization.id,
        created_at=BASE + timedelta(minutes=minutes),
    )
    db.add(fixture)
    await db.flush()
    return fixture


async def _page(client: AsyncClient, headers: dict, **body) -> dict:
    response = await client.post("/api/fixtures/page", json=body, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.integration
@pytest.mark.asyncio
class TestFixturePage:
    async def test_cursor_pagination(self, client: AsyncClient, db_session: AsyncSession,
                                     auth_headers: dict, test_organization):
        for minutes, number in ((1, "FIX001"), (2, "FIX002"), (3, "FIX003")):
            await _fixture(db_session, test_organization, number, minutes)

        first = await _page(client, auth_headers, limit=2)
        second = await _page(client, auth_headers, limit=2, cursor=first["next_cursor"])

        assert [r["fixture_number"] for r in first["items"]] == ["FIX003", "FIX002"]
        assert first["has_more"] is True
        assert first["total"] == 3
        assert [r["fixture_number"] for r in second["items"]] == ["FIX001"]
        assert second["has_more"] is False
        assert second["next_cursor"] is None

    async def test_ascending_order(self, client: AsyncClient, db_session: AsyncSession,
                                   auth_headers: dict, test_organization):
        for minutes, number in ((1, "FIX001"), (2, "FIX002")):
            await _fixture(db_session, test_organization, number, minutes)

        page = await _page(client, auth_headers, sort_direction="asc")

        assert [r["fixture_number"] for r in page["items"]] == ["FIX001", "FIX002"]

    async def test_invalid_cursor(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/fixtures/page", json={"cursor": "yesterday:abc"}, headers=auth_headers
        )

        assert response.status_code == 422

    async def test_primary_contract_columns(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict,
        test_organization, charterer, owner
    ):
        fixture = await _fixture(db_session, test_organization, "FIX010", 1)
        vessel = Vessel(name="Nordic Star", imo_number="9321483", current_owner_id=owner.id)
        db_session.add(vessel)
        await db_session.flush()
        negotiation = Negotiation(
            negotiation_number="NEG010",
            order_id="order-1",
            counterparty_id=owner.id,
            status="fixed",
            highest_freight_rate_indication=100.0,
            market_index=80.0,
        )
        db_session.add(negotiation)
        await db_session.flush()
        contract = Contract(
            contract_number="CP010",
            fixture_id=fixture.id,
            contract_type="voyage-charter",
            charterer_id=charterer.id,
            owner_id=owner.id,
            vessel_id=vessel.id,
            order_id="order-1",
            negotiation_id=negotiation.id,
            freight_rate="WS 90",
            quantity=80000,
            created_at=BASE,
            working_copy_date=BASE + timedelta(days=2),
        )
        db_session.add(contract)
        await db_session.flush()
        db_session.add(ContractSignature(
            contract_id=contract.id, party_role="owner", company_id=owner.id, status="pending",
        ))
        await db_session.flush()

        row = (await _page(client, auth_headers))["items"][0]

        assert row["contract_number"] == "CP010"
        assert row["vessel_name"] == "Nordic Star"
        assert row["owner_name"] == "Nordic Tankers"
        assert row["negotiation_number"] == "NEG010"
        assert row["final_freight_rate"] == 90.0
        assert row["freight_savings_percent"] == pytest.approx(10.0)
        assert row["freight_vs_market_percent"] == pytest.approx(12.5)
        assert row["days_to_working_copy"] == 2
        assert row["owner_signature_status"] == "sent"
        assert row["charterer_signature_status"] == "not-sent"

    async def test_recap_is_primary_without_contracts(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict,
        test_organization, charterer
    ):
        fixture = await _fixture(db_session, test_organization, "FIX020", 1)
        db_session.add(RecapManager(
            recap_number="RCP020",
            fixture_id=fixture.id,
            contract_type="time-charter",
            charterer_id=charterer.id,
        ))
        await db_session.flush()

        row = (await _page(client, auth_headers))["items"][0]

        assert row["contract_number"] == "RCP020"
        assert row["contract_type"] == "time-charter"
        assert row["owner_signature_status"] is None

    async def test_search_terms_all_must_match(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict,
        test_organization, charterer
    ):
        for minutes, number, contract_type in ((1, "FIX031", "voyage-charter"), (2, "FIX032", "bareboat")):
            fixture = await _fixture(db_session, test_organization, number, minutes)
            db_session.add(Contract(
                contract_number=f"CP{number[-3:]}",
                fixture_id=fixture.id,
                contract_type=contract_type,
                charterer_id=charterer.id,
            ))
            await db_session.flush()
            await recompute_fixture_derived(db_session, fixture.id)

        both = await _page(client, auth_headers, search_terms=["Atlas"])
        one = await _page(client, auth_headers, search_terms=["atlas", "BAREBOAT"])
        none = await _page(client, auth_headers, search_terms=["atlas", "coa"])

        assert len(both["items"]) == 2
        assert [r["fixture_number"] for r in one["items"]] == ["FIX032"]
        assert none["items"] == []

    async def test_row_filter_scans_past_non_matching(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict,
        test_organization, charterer
    ):
        for minutes in range(5):
            fixture = await _fixture(db_session, test_organization, f"FIX04{minutes}", minutes)
            db_session.add(Contract(
                contract_number=f"CP04{minutes}",
                fixture_id=fixture.id,
                contract_type="coa" if minutes == 0 else "voyage-charter",
                charterer_id=charterer.id,
            ))
        await db_session.flush()

        page = await _page(
            client, auth_headers, limit=1, filters={"contract_type": ["coa"]}
        )

        assert [r["fixture_number"] for r in page["items"]] == ["FIX040"]
        assert page["has_more"] is False
        assert page["total"] is None

    async def test_status_filter(self, client: AsyncClient, db_session: AsyncSession,
                                 auth_headers: dict, test_organization):
        draft = await _fixture(db_session, test_organization, "FIX050", 1)
        final = await _fixture(db_session, test_organization, "FIX051", 2)
        final.status = "final"
        await db_session.flush()

        page = await _page(client, auth_headers, filters={"status": ["draft"]})

        assert [r["id"] for r in page["items"]] == [draft.id]

    async def test_other_organization_is_hidden(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_organization
    ):
        fixture = await _fixture(db_session, test_organization, "FIX060", 1)
        outsider = await make_user(db_session, "outsider@example.com", "Outsider")
        other_org = (await client.post(
            "/api/organizations/", json={"name": "Other Desk"}, headers=headers_for(outsider)
        )).json()
        outsider_headers = {**headers_for(outsider), "X-Organization-Id": other_org["id"]}

        detail = await client.get(f"/api/fixtures/{fixture.id}", headers=outsider_headers)
        page = await _page(client, outsider_headers)

        assert detail.status_code == 404
        assert page["items"] == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestFixtureEndpoints:
    async def test_create_and_details(self, client: AsyncClient, auth_headers: dict):
        created = await client.post("/api/fixtures/", json={"title": "Spot TD3C"}, headers=auth_headers)
        assert created.status_code == 201
        fixture = created.json()

        detail = (await client.get(f"/api/fixtures/{fixture['id']}", headers=auth_headers)).json()

        assert detail["fixture_number"].startswith("FIX")
        assert detail["search_text"] == fixture["fixture_number"].lower()
        assert detail["contracts"] == []
        assert detail["order"] is None

    async def test_filter_options(self, client: AsyncClient, auth_headers: dict, charterer, owner):
        options = (await client.get("/api/fixtures/filter-options", headers=auth_headers)).json()

        assert options["owners"] == [{"value": "Nordic Tankers", "label": "Nordic Tankers"}]
        assert options["charterers"] == [{"value": "Atlas Energy Trading", "label": "Atlas Energy Trading"}]
        assert {"value": "not-sent", "label": "Not Sent"} in options["owner_signature_statuses"]


@pytest.mark.unit
class TestRowHelpers:
    def _row(self, **fields) -> FixtureRow:
        return FixtureRow(
            id=fields.pop("id", "f1"),
            fixture_number=fields.pop("fixture_number", "FIX001"),
            status=fields.pop("status", "draft"),
            organization_id="org",
            created_at=fields.pop("created_at", BASE),
            **fields,
        )

    def test_cursor_round_trip(self):
        stamp = datetime(2026, 3, 4, 5, 6, 7, 123000)

        assert decode_cursor(encode_cursor(stamp, "abc")) == (stamp, "abc")

    def test_range_filter_excludes_missing_values(self):
        filters = FixtureFilters(cargo_quantity=RangeFilter(min=50000, max=90000))

        assert row_matches(self._row(cargo_quantity=80000), filters)
        assert not row_matches(self._row(cargo_quantity=100000), filters)
        assert not row_matches(self._row(), filters)

    def test_summarize_rows(self):
        rows = [
            self._row(id="a", cargo_quantity=80000, owner_name="Nordic Tankers", contract_type="coa",
                      last_updated=BASE),
            self._row(id="b", cargo_quantity=60000, owner_name="Nordic Tankers", contract_type="bareboat",
                      created_at=BASE + timedelta(days=1), last_updated=BASE + timedelta(hours=5)),
        ]

        summary = summarize_rows(rows)

        assert summary.count == 2
        assert summary.numeric["cargo_quantity"].min == 60000
        assert summary.numeric["cargo_quantity"].max == 80000
        assert summary.numeric["gross_freight"] is None
        assert summary.dates["created_at"].latest == BASE + timedelta(days=1)
        assert summary.text["owner_name"] == "Nordic Tankers"
        assert summary.text["contract_type"] == "2 distinct"
        assert summary.last_updated == BASE + timedelta(hours=5)
