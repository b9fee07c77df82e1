"""Tests for the fixture derived-field rollup."""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.company import Company
from charterdesk.models.contract import Contract
from charterdesk.models.fixture import Fixture
from charterdesk.models.negotiation import Negotiation
from charterdesk.models.order import Order
from charterdesk.models.recap_manager import RecapManager
from charterdesk.models.vessel import Vessel
from charterdesk.services.enrichment import Failed, Ok, guarded
from charterdesk.services.rollup import recompute_all_fixtures, recompute_fixture_derived

BASE = datetime(2026, 1, 1)


def at(seconds: int) -> datetime:
    return BASE + timedelta(seconds=seconds)


@pytest.fixture
def fixture_row(test_organization):
    return Fixture(
        fixture_number="FIX001",
        organization_id=test_organization.id,
        created_at=at(50),
    )


@pytest.mark.rollup
@pytest.mark.asyncio
class TestLastUpdated:
    async def test_latest_child_wins(self, db_session: AsyncSession, fixture_row, charterer):
        db_session.add(fixture_row)
        await db_session.flush()
        db_session.add_all([
            Contract(
                contract_number="CP001",
                fixture_id=fixture_row.id,
                contract_type="voyage-charter",
                charterer_id=charterer.id,
                created_at=at(60),
                updated_at=at(100),
            ),
            RecapManager(
                recap_number="RCP001",
                fixture_id=fixture_row.id,
                contract_type="voyage-charter",
                charterer_id=charterer.id,
                created_at=at(70),
                updated_at=at(200),
            ),
        ])
        await db_session.flush()

        await recompute_fixture_derived(db_session, fixture_row.id)

        assert fixture_row.last_updated == at(200)

    async def test_childless_fixture_uses_own_timestamps(self, db_session: AsyncSession, fixture_row):
        fixture_row.updated_at = at(75)
        db_session.add(fixture_row)
        await db_session.flush()

        await recompute_fixture_derived(db_session, fixture_row.id)

        assert fixture_row.last_updated == at(75)
        assert fixture_row.search_text == "fix001"

    async def test_child_without_updated_at_falls_back_to_created_at(
        self, db_session: AsyncSession, fixture_row, charterer
    ):
        db_session.add(fixture_row)
        await db_session.flush()
        db_session.add(Contract(
            contract_number="CP002",
            fixture_id=fixture_row.id,
            contract_type="time-charter",
            charterer_id=charterer.id,
            created_at=at(300),
        ))
        await db_session.flush()

        await recompute_fixture_derived(db_session, fixture_row.id)

        assert fixture_row.last_updated == at(300)

    async def test_negotiations_of_the_order_count(
        self, db_session: AsyncSession, test_organization, fixture_row, charterer
    ):
        order = Order(
            order_number="ORD001",
            type="charter",
            organization_id=test_organization.id,
            created_at=at(10),
        )
        db_session.add(order)
        await db_session.flush()
        fixture_row.order_id = order.id
        db_session.add(fixture_row)
        db_session.add(Negotiation(
            negotiation_number="NEG001",
            order_id=order.id,
            counterparty_id=charterer.id,
            market_index_name="TD3C",
            created_at=at(20),
            updated_at=at(500),
        ))
        await db_session.flush()

        await recompute_fixture_derived(db_session, fixture_row.id)

        assert fixture_row.last_updated == at(500)
        assert "neg001" in fixture_row.search_text.split()
        assert "td3c" in fixture_row.search_text.split()

    async def test_missing_fixture_is_a_no_op(self, db_session: AsyncSession):
        await recompute_fixture_derived(db_session, "does-not-exist")
        await recompute_fixture_derived(db_session, None)


@pytest.mark.rollup
@pytest.mark.asyncio
class TestSearchText:
    async def test_contents(self, db_session: AsyncSession, fixture_row, charterer, owner):
        vessel = Vessel(name="Nordic Star", imo_number="9321483")
        db_session.add_all([fixture_row, vessel])
        await db_session.flush()
        db_session.add(Contract(
            contract_number="CP001",
            fixture_id=fixture_row.id,
            contract_type="voyage-charter",
            charterer_id=charterer.id,
            owner_id=owner.id,
            vessel_id=vessel.id,
            load_delivery_type="FOB",
        ))
        await db_session.flush()

        await recompute_fixture_derived(db_session, fixture_row.id)

        text = fixture_row.search_text
        for fragment in (
            "fix001", "cp001", "voyage-charter", "fob", "nordic star", "9321483",
            "nordic tankers", "atlas energy trading",
        ):
            assert fragment in text
        assert text == text.lower()

    async def test_other_fixtures_children_excluded(
        self, db_session: AsyncSession, test_organization, fixture_row, charterer
    ):
        other = Fixture(fixture_number="FIX002", organization_id=test_organization.id)
        db_session.add_all([fixture_row, other])
        await db_session.flush()
        db_session.add(Contract(
            contract_number="CP999",
            fixture_id=other.id,
            contract_type="bareboat",
            charterer_id=charterer.id,
        ))
        await db_session.flush()

        await recompute_fixture_derived(db_session, fixture_row.id)

        assert "cp999" not in fixture_row.search_text
        assert "bareboat" not in fixture_row.search_text

    async def test_idempotent(self, db_session: AsyncSession, fixture_row, charterer):
        db_session.add(fixture_row)
        await db_session.flush()
        db_session.add(Contract(
            contract_number="CP001",
            fixture_id=fixture_row.id,
            contract_type="coa",
            charterer_id=charterer.id,
            updated_at=at(100),
        ))
        await db_session.flush()

        await recompute_fixture_derived(db_session, fixture_row.id)
        first = (fixture_row.last_updated, fixture_row.search_text)
        await recompute_fixture_derived(db_session, fixture_row.id)

        assert (fixture_row.last_updated, fixture_row.search_text) == first

    async def test_recompute_all(self, db_session: AsyncSession, test_organization):
        db_session.add_all([
            Fixture(fixture_number="FIX101", organization_id=test_organization.id),
            Fixture(fixture_number="FIX102", organization_id=test_organization.id),
        ])
        await db_session.flush()

        assert await recompute_all_fixtures(db_session) == 2


@pytest.mark.rollup
@pytest.mark.integration
@pytest.mark.asyncio
class TestRollupThroughApi:
    async def test_contract_write_refreshes_fixture(
        self, client: AsyncClient, auth_headers: dict, charterer
    ):
        fixture = (await client.post("/api/fixtures/", json={"title": "Q1 crude"}, headers=auth_headers)).json()

        created = await client.post(
            "/api/contracts/",
            json={
                "contract_type": "voyage-charter",
                "charterer_id": charterer.id,
                "fixture_id": fixture["id"],
            },
            headers=auth_headers,
        )
        assert created.status_code == 201
        contract_number = created.json()["contract_number"]

        refreshed = (await client.get(f"/api/fixtures/{fixture['id']}", headers=auth_headers)).json()
        assert contract_number.lower() in refreshed["search_text"]
        assert "atlas energy trading" in refreshed["search_text"]
        assert refreshed["last_updated"] is not None

    async def test_moving_a_contract_refreshes_both_fixtures(
        self, client: AsyncClient, auth_headers: dict, charterer
    ):
        first = (await client.post("/api/fixtures/", json={}, headers=auth_headers)).json()
        second = (await client.post("/api/fixtures/", json={}, headers=auth_headers)).json()
        contract = (await client.post(
            "/api/contracts/",
            json={"contract_type": "coa", "charterer_id": charterer.id, "fixture_id": first["id"]},
            headers=auth_headers,
        )).json()

        moved = await client.patch(
            f"/api/contracts/{contract['id']}",
            json={"fixture_id": second["id"]},
            headers=auth_headers,
        )
        assert moved.status_code == 200

        old = (await client.get(f"/api/fixtures/{first['id']}", headers=auth_headers)).json()
        new = (await client.get(f"/api/fixtures/{second['id']}", headers=auth_headers)).json()
        number = contract["contract_number"].lower()
        assert number not in old["search_text"]
        assert number in new["search_text"]

    async def test_negotiation_writes_refresh_fixture(
        self, client: AsyncClient, auth_headers: dict, owner
    ):
        order = (await client.post("/api/orders/", json={"type": "charter"}, headers=auth_headers)).json()
        fixture = (await client.post(f"/api/orders/{order['id']}/fixture", headers=auth_headers)).json()
        negotiation = (await client.post(
            "/api/negotiations/",
            json={"order_id": order["id"], "counterparty_id": owner.id, "market_index_name": "TD3C"},
            headers=auth_headers,
        )).json()
        number = negotiation["negotiation_number"].lower()

        created = (await client.get(f"/api/fixtures/{fixture['id']}", headers=auth_headers)).json()
        await client.patch(
            f"/api/negotiations/{negotiation['id']}",
            json={"market_index_name": "TD2"},
            headers=auth_headers,
        )
        updated = (await client.get(f"/api/fixtures/{fixture['id']}", headers=auth_headers)).json()
        recomputed = await client.post(f"/api/fixtures/{fixture['id']}/recompute", headers=auth_headers)

        assert number in created["search_text"]
        assert "td3c" in created["search_text"]
        assert "nordic tankers" in created["search_text"]
        assert "td2" in updated["search_text"]
        assert "td3c" not in updated["search_text"]
        assert recomputed.status_code == 200
        assert recomputed.json()["search_text"] == updated["search_text"]

    async def test_negotiation_status_change_moves_last_updated(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, owner
    ):
        order = (await client.post("/api/orders/", json={"type": "charter"}, headers=auth_headers)).json()
        fixture = (await client.post(f"/api/orders/{order['id']}/fixture", headers=auth_headers)).json()
        negotiation = (await client.post(
            "/api/negotiations/",
            json={"order_id": order["id"], "counterparty_id": owner.id},
            headers=auth_headers,
        )).json()
        changed = await client.post(
            f"/api/negotiations/{negotiation['id']}/status",
            json={"status": "firm-bid"},
            headers=auth_headers,
        )
        row = await db_session.get(Negotiation, negotiation["id"])
        refreshed = await db_session.get(Fixture, fixture["id"])

        assert changed.status_code == 200
        assert refreshed.last_updated == row.updated_at


@pytest.mark.rollup
@pytest.mark.asyncio
class TestBestEffortLookups:
    async def test_failed_read_rolls_back_only_its_savepoint(self, db_session: AsyncSession):
        db_session.add(Company(name="Kept Shipping", company_type="operator", roles=[]))
        await db_session.flush()

        async def broken_read():
            db_session.add(Company(name="Discarded Shipping", company_type="operator", roles=[]))
            await db_session.flush()
            return await db_session.execute(text("SELECT * FROM no_such_table"))

        result = await guarded(db_session, "broken read", broken_read)
        names = (await db_session.execute(select(Company.name))).scalars().all()

        assert isinstance(result, Failed)
        assert names == ["Kept Shipping"]

    async def test_successful_read_is_ok(self, db_session: AsyncSession, charterer):
        result = await guarded(
            db_session, "company read", lambda: db_session.get(Company, charterer.id)
        )

        assert result == Ok(charterer)

    async def test_rollup_skips_a_failing_lookup(
        self, db_session: AsyncSession, fixture_row, charterer, monkeypatch
    ):
        vessel = Vessel(name="Nordic Star", imo_number="9321483")
        db_session.add_all([fixture_row, vessel])
        await db_session.flush()
        db_session.add(Contract(
            contract_number="CP001",
            fixture_id=fixture_row.id,
            contract_type="voyage-charter",
            charterer_id=charterer.id,
            vessel_id=vessel.id,
        ))
        await db_session.flush()
        real_get = db_session.get

        async def flaky_get(model, ident, **kwargs):
            if model is Vessel:
                raise OperationalError("SELECT vessels", {}, Exception("connection reset"))
            return await real_get(model, ident, **kwargs)

        monkeypatch.setattr(db_session, "get", flaky_get)

        await recompute_fixture_derived(db_session, fixture_row.id)
        monkeypatch.undo()
        fixtures = await db_session.scalar(select(func.count(Fixture.id)))

        assert "nordic star" not in fixture_row.search_text
        assert "atlas energy trading" in fixture_row.search_text
        assert "cp001" in fixture_row.search_text
        assert fixtures == 1
