"""Tests for field changes and the activity log."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.activity_log import ActivityLog
from charterdesk.models.contract import Contract
from charterdesk.models.user import User
from charterdesk.schemas.audit import CustomMetadata, StatusChangeMetadata, parse_metadata
from charterdesk.services import audit
from charterdesk.utils.dates import utcnow


@pytest.mark.audit
@pytest.mark.asyncio
class TestFieldChanges:
    async def test_logged_change_is_enriched(
        self, client: AsyncClient, auth_headers: dict, test_user: User
    ):
        created = await client.post(
            "/api/audit/field-changes",
            json={
                "entity_type": "contract",
                "entity_id": "abc",
                "field_name": "freightRate",
                "old_value": "WS 85",
                "new_value": "WS 90",
            },
            headers=auth_headers,
        )
        assert created.status_code == 201

        response = await client.get("/api/audit/field-changes/contract/abc", headers=auth_headers)

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["old_value"] == "WS 85"
        assert rows[0]["new_value"] == "WS 90"
        assert rows[0]["user"]["name"] == test_user.name
        assert rows[0]["user"]["email"] == test_user.email

    async def test_newest_first(self, db_session: AsyncSession, test_user: User):
        now = utcnow()
        for minutes, value in ((2, "WS 80"), (0, "WS 90"), (1, "WS 85")):
            change = audit.record_field_change(
                db_session,
                entity_type="contract",
                entity_id="abc",
                field_name="freightRate",
                old_value=None,
                new_value=value,
                user_id=test_user.id,
            )
            change.timestamp = now - timedelta(minutes=minutes)
        await db_session.flush()

        rows = await audit.get_field_changes(db_session, "contract", "abc")

        assert [r.new_value for r in rows] == ["WS 90", "WS 85", "WS 80"]

    async def test_unknown_user_renders_none(self, db_session: AsyncSession):
        audit.record_field_change(
            db_session,
            entity_type="order",
            entity_id="o1",
            field_name="title",
            old_value="a",
            new_value="b",
            user_id="ghost",
        )
        await db_session.flush()

        rows = await audit.get_field_changes(db_session, "order", "o1")

        assert rows[0].user is None

    async def test_snapshot_diff_records_only_changes(self, db_session: AsyncSession, test_user: User):
        changes = audit.record_field_changes(
            db_session,
            entity_type="order",
            entity_id="o1",
            before={"title": "Old", "quantity": 1000.0, "stage": "offer"},
            after={"title": "New", "quantity": 1000.0, "stage": "active"},
            user_id=test_user.id,
            change_reason="client call",
        )

        assert sorted(c.field_name for c in changes) == ["stage", "title"]
        assert all(c.change_reason == "client call" for c in changes)

    async def test_order_edit_is_audited(self, client: AsyncClient, auth_headers: dict):
        order = (await client.post(
            "/api/orders/", json={"type": "charter", "title": "Before"}, headers=auth_headers
        )).json()

        await client.patch(
            f"/api/orders/{order['id']}", json={"title": "After"}, headers=auth_headers
        )
        changes = (await client.get(
            f"/api/audit/field-changes/order/{order['id']}", headers=auth_headers
        )).json()
        activity = (await client.get(
            f"/api/audit/activity/order/{order['id']}", headers=auth_headers
        )).json()

        assert [(c["field_name"], c["old_value"], c["new_value"]) for c in changes] == [
            ("title", "Before", "After")
        ]
        assert {a["action"] for a in activity} == {"created", "updated"}


@pytest.mark.audit
@pytest.mark.asyncio
class TestActivityLog:
    async def test_negotiation_snapshot_attached(
        self, db_session: AsyncSession, charterer, test_user: User
    ):
        contract = Contract(
            contract_number="CP001",
            negotiation_id="neg-1",
            contract_type="voyage-charter",
            charterer_id=charterer.id,
            freight_rate="WS 85",
            quantity=80000.0,
        )
        db_session.add(contract)
        await db_session.flush()

        entry = await audit.record_activity(
            db_session,
            entity_type="negotiation",
            entity_id="neg-1",
            action="status-changed",
            description="Firm offer",
            user_id=test_user.id,
        )

        rows = {row["label"]: row["value"] for row in entry.expandable["data"]}
        assert rows == {
            "Freight Rate": "WS 85",
            "Laycan": "Not specified",
            "Quantity": "80000 MT",
            "Demurrage": "Not specified",
        }

    async def test_no_contract_no_snapshot(self, db_session: AsyncSession):
        entry = await audit.record_activity(
            db_session,
            entity_type="negotiation",
            entity_id="neg-without-contract",
            action="created",
            description="Negotiation created",
        )

        assert entry.expandable is None

    async def test_other_entities_get_no_snapshot(self, db_session: AsyncSession):
        entry = await audit.record_activity(
            db_session,
            entity_type="order",
            entity_id="o1",
            action="created",
            description="Order created",
        )

        assert entry.expandable is None

    async def test_manual_entry_round_trip(self, client: AsyncClient, auth_headers: dict, test_user: User):
        created = await client.post(
            "/api/audit/activity",
            json={
                "entity_type": "contract",
                "entity_id": "c1",
                "action": "commented",
                "description": "Owners asked for WS 92",
                "status": {"value": "working-copy", "label": "Working Copy"},
                "metadata": {"kind": "custom", "data": {"source": "email"}},
            },
            headers=auth_headers,
        )
        assert created.status_code == 201

        recent = (await client.get("/api/audit/activity/recent", headers=auth_headers)).json()
        by_user = (await client.get(
            f"/api/audit/activity/by-user/{test_user.id}", headers=auth_headers
        )).json()

        assert recent[0]["description"] == "Owners asked for WS 92"
        assert recent[0]["metadata"] == {"kind": "custom", "data": {"source": "email"}}
        assert recent[0]["user"]["id"] == test_user.id
        assert len(by_user) == 1

    async def test_recent_limit_bounds(self, client: AsyncClient, auth_headers: dict):
        response = await client.get(
            "/api/audit/activity/recent", params={"limit": 0}, headers=auth_headers
        )

        assert response.status_code == 422

    async def test_stored_at_ordering(self, db_session: AsyncSession):
        now = utcnow()
        for minutes in (5, 1, 3):
            db_session.add(ActivityLog(
                entity_type="order",
                entity_id="o2",
                action="updated",
                description=f"{minutes} minutes ago",
                timestamp=now - timedelta(minutes=minutes),
            ))
        await db_session.flush()

        rows = await audit.get_activity_log(db_session, "order", "o2")

        assert [r.description for r in rows] == ["1 minutes ago", "3 minutes ago", "5 minutes ago"]


@pytest.mark.unit
class TestActivityMetadata:
    def test_known_variant(self):
        parsed = parse_metadata({"kind": "status_change", "from_status": "draft", "to_status": "final"})

        assert isinstance(parsed, StatusChangeMetadata)
        assert parsed.to_status == "final"

    def test_free_form_falls_back_to_custom(self):
        parsed = parse_metadata({"whatever": 1})

        assert isinstance(parsed, CustomMetadata)
        assert parsed.data == {"whatever": 1}

    def test_none(self):
        assert parse_metadata(None) is None

    def test_status_label(self):
        assert audit.status_label("firm-offer") == {"value": "firm-offer", "label": "Firm Offer"}
