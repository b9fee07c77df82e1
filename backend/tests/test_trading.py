"""Tests for orders, negotiations, contracts, approvals and signatures."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.activity_log import ActivityLog
from charterdesk.models.organization import MemberRole, Organization
from charterdesk.services.agreements import LINEAGE_ERROR
from charterdesk.utils.dates import utcnow
from tests.factories import add_membership, headers_for, make_user


async def _order(client: AsyncClient, headers: dict, **fields) -> dict:
    response = await client.post("/api/orders/", json={"type": "charter", **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _negotiation(client: AsyncClient, headers: dict, order_id: str, counterparty_id: str, **fields) -> dict:
    response = await client.post(
        "/api/negotiations/",
        json={"order_id": order_id, "counterparty_id": counterparty_id, **fields},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _snapshot(freight: str, demurrage: str | None = None) -> dict:
    rows = [{"label": "Freight Rate", "value": freight}]
    if demurrage:
        rows.append({"label": "Demurrage", "value": demurrage})
    return {"data": rows}


@pytest.mark.integration
@pytest.mark.asyncio
class TestOrders:
    async def test_create_numbers_and_drafts(self, client: AsyncClient, auth_headers: dict, test_organization):
        order = await _order(client, auth_headers, title="TD3C cargo")

        assert order["order_number"].startswith("ORD")
        assert len(order["order_number"]) == 8
        assert order["status"] == "draft"
        assert order["organization_id"] == test_organization.id

    async def test_laycan_must_be_ordered(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/orders/",
            json={
                "type": "charter",
                "laycan_start": "2026-03-10T00:00:00",
                "laycan_end": "2026-03-01T00:00:00",
            },
            headers=auth_headers,
        )

        assert response.status_code == 422

    async def test_unknown_port_rejected(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/orders/", json={"type": "charter", "load_port_id": "nowhere"}, headers=auth_headers
        )

        assert response.status_code == 404

    async def test_distribute_then_withdraw(self, client: AsyncClient, auth_headers: dict):
        order = await _order(client, auth_headers)

        distributed = (await client.post(f"/api/orders/{order['id']}/distribute", headers=auth_headers)).json()
        withdrawn = (await client.post(f"/api/orders/{order['id']}/withdraw", headers=auth_headers)).json()
        again = await client.post(f"/api/orders/{order['id']}/distribute", headers=auth_headers)

        assert distributed["status"] == "distributed"
        assert distributed["distributed_at"] is not None
        assert withdrawn["status"] == "withdrawn"
        assert again.status_code == 422

    async def test_other_organization_cannot_see_order(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict
    ):
        order = await _order(client, auth_headers)
        outsider = await make_user(db_session, "outsider@example.com", "Outsider")
        other_org = (await client.post(
            "/api/organizations/", json={"name": "Other Desk"}, headers=headers_for(outsider)
        )).json()

        response = await client.get(
            f"/api/orders/{order['id']}",
            headers={**headers_for(outsider), "X-Organization-Id": other_org["id"]},
        )

        assert response.status_code == 404

    async def test_fixture_from_order(self, client: AsyncClient, auth_headers: dict):
        order = await _order(client, auth_headers, title="Q2 program")

        response = await client.post(f"/api/orders/{order['id']}/fixture", headers=auth_headers)

        assert response.status_code == 201
        fixture = response.json()
        assert fixture["order_id"] == order["id"]
        assert fixture["title"] == "Q2 program"
        assert fixture["fixture_number"].startswith("FIX")


@pytest.mark.integration
@pytest.mark.asyncio
class TestNegotiations:
    async def test_list_requires_a_selector(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/negotiations/", headers=auth_headers)

        assert response.status_code == 400

    async def test_list_by_order_is_enriched(self, client: AsyncClient, auth_headers: dict, charterer):
        order = await _order(client, auth_headers)
        await _negotiation(client, auth_headers, order["id"], charterer.id)

        rows = (await client.get(
            "/api/negotiations/", params={"order_id": order["id"]}, headers=auth_headers
        )).json()

        assert len(rows) == 1
        assert rows[0]["counterparty"]["name"] == charterer.name
        assert rows[0]["negotiation_number"].startswith("NEG")

    async def test_status_change_is_logged(self, client: AsyncClient, auth_headers: dict, charterer):
        order = await _order(client, auth_headers)
        negotiation = await _negotiation(client, auth_headers, order["id"], charterer.id)

        updated = await client.post(
            f"/api/negotiations/{negotiation['id']}/status",
            json={"status": "firm-offer"},
            headers=auth_headers,
        )
        activity = (await client.get(
            f"/api/audit/activity/negotiation/{negotiation['id']}", headers=auth_headers
        )).json()

        changed = next(a for a in activity if a["action"] == "status-changed")
        assert updated.json()["status"] == "firm-offer"
        assert changed["status"] == {"value": "firm-offer", "label": "Firm Offer"}
        assert changed["metadata"]["to_status"] == "firm-offer"

    async def test_analytics_from_activity_snapshots(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, charterer
    ):
        order = await _order(client, auth_headers)
        negotiation = await _negotiation(client, auth_headers, order["id"], charterer.id)
        start = utcnow() - timedelta(hours=40)
        for hours, freight, demurrage in ((0, "WS 85", "$20,000"), (10, "WS 95", None), (30, "WS 90", "$22,500")):
            db_session.add(ActivityLog(
                entity_type="negotiation",
                entity_id=negotiation["id"],
                action="updated",
                description="Counter",
                expandable=_snapshot(freight, demurrage),
                timestamp=start + timedelta(hours=hours),
            ))
        await db_session.flush()

        response = await client.post(
            f"/api/negotiations/{negotiation['id']}/analytics", headers=auth_headers
        )

        data = response.json()
        assert (data["highest_freight_rate_indication"], data["lowest_freight_rate_indication"],
                data["first_freight_rate_indication"]) == (95.0, 85.0, 85.0)
        assert (data["highest_freight_rate_last_day"], data["lowest_freight_rate_last_day"],
                data["first_freight_rate_last_day"]) == (95.0, 90.0, 95.0)
        assert data["highest_demurrage_indication"] == 22500.0
        assert data["first_demurrage_indication"] == 20000.0
        assert data["first_demurrage_last_day"] == 22500.0

        stored = (await client.get(f"/api/negotiations/{negotiation['id']}", headers=auth_headers)).json()
        assert stored["highest_freight_rate_indication"] == 95.0

    async def test_analytics_fall_back_to_own_rates(self, client: AsyncClient, auth_headers: dict, charterer):
        order = await _order(client, auth_headers)
        negotiation = await _negotiation(
            client, auth_headers, order["id"], charterer.id,
            freight_rate="WS 77.5", demurrage_rate="USD 25,000 PDPR",
        )

        data = (await client.post(
            f"/api/negotiations/{negotiation['id']}/analytics", headers=auth_headers
        )).json()

        assert data["highest_freight_rate_indication"] == 77.5
        assert data["lowest_freight_rate_last_day"] == 77.5
        assert data["first_demurrage_indication"] == 25000.0


@pytest.mark.integration
@pytest.mark.asyncio
class TestContracts:
    async def test_lineage_must_be_paired(self, client: AsyncClient, auth_headers: dict, charterer):
        order = await _order(client, auth_headers)

        response = await client.post(
            "/api/contracts/",
            json={"contract_type": "voyage-charter", "charterer_id": charterer.id, "order_id": order["id"]},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["message"] == LINEAGE_ERROR

    async def test_recap_lineage_must_be_paired(self, client: AsyncClient, auth_headers: dict, charterer):
        response = await client.post(
            "/api/recap-managers/",
            json={"contract_type": "voyage-charter", "charterer_id": charterer.id, "negotiation_id": "n1"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["message"] == LINEAGE_ERROR

    async def test_status_milestones(self, client: AsyncClient, auth_headers: dict, charterer):
        contract = (await client.post(
            "/api/contracts/",
            json={"contract_type": "time-charter", "charterer_id": charterer.id},
            headers=auth_headers,
        )).json()
        assert contract["contract_number"].startswith("CP")

        working = (await client.post(
            f"/api/contracts/{contract['id']}/status", json={"status": "working-copy"}, headers=auth_headers
        )).json()
        final = (await client.post(
            f"/api/contracts/{contract['id']}/status", json={"status": "final"}, headers=auth_headers
        )).json()

        assert working["working_copy_date"] is not None
        assert final["working_copy_date"] == working["working_copy_date"]
        assert final["final_date"] is not None
        assert final["signed_at"] is not None

    async def test_detail_with_lineage_and_children(
        self, client: AsyncClient, auth_headers: dict, charterer, owner
    ):
        order = await _order(client, auth_headers)
        negotiation = await _negotiation(client, auth_headers, order["id"], owner.id)
        parent = (await client.post(
            "/api/contracts/",
            json={
                "contract_type": "coa",
                "charterer_id": charterer.id,
                "owner_id": owner.id,
                "order_id": order["id"],
                "negotiation_id": negotiation["id"],
            },
            headers=auth_headers,
        )).json()
        await client.post(
            "/api/contracts/",
            json={"contract_type": "voyage-charter", "charterer_id": charterer.id,
                  "parent_contract_id": parent["id"]},
            headers=auth_headers,
        )

        detail = (await client.get(f"/api/contracts/{parent['id']}", headers=auth_headers)).json()

        assert detail["owner"]["name"] == owner.name
        assert detail["charterer"]["name"] == charterer.name
        assert detail["negotiation"]["id"] == negotiation["id"]
        assert detail["order"]["id"] == order["id"]
        assert len(detail["child_voyages"]) == 1
        assert detail["approval_summary"] == {"total": 0, "approved": 0, "pending": 0, "rejected": 0}

    async def test_by_negotiation_and_order(self, client: AsyncClient, auth_headers: dict, charterer):
        order = await _order(client, auth_headers)
        negotiation = await _negotiation(client, auth_headers, order["id"], charterer.id)
        await client.post(
            "/api/contracts/",
            json={"contract_type": "coa", "charterer_id": charterer.id,
                  "order_id": order["id"], "negotiation_id": negotiation["id"]},
            headers=auth_headers,
        )

        by_negotiation = (await client.get(
            f"/api/contracts/by-negotiation/{negotiation['id']}", headers=auth_headers
        )).json()
        by_order = (await client.get(f"/api/contracts/by-order/{order['id']}", headers=auth_headers)).json()

        assert len(by_negotiation) == 1
        assert by_negotiation == by_order


@pytest.mark.integration
@pytest.mark.asyncio
class TestApprovalsAndSignatures:
    async def _contract(self, client: AsyncClient, headers: dict, charterer_id: str) -> dict:
        return (await client.post(
            "/api/contracts/",
            json={"contract_type": "voyage-charter", "charterer_id": charterer_id},
            headers=headers,
        )).json()

    async def test_approval_decided_once(self, client: AsyncClient, auth_headers: dict, charterer, test_user):
        contract = await self._contract(client, auth_headers, charterer.id)
        approval = (await client.post(
            f"/api/approvals/contracts/{contract['id']}",
            json={"party_role": "charterer", "company_id": charterer.id},
            headers=auth_headers,
        )).json()
        assert approval["status"] == "pending"

        approved = (await client.post(
            f"/api/approvals/contract/{approval['id']}/approve",
            json={"notes": "Terms agreed"},
            headers=auth_headers,
        )).json()
        again = await client.post(
            f"/api/approvals/contract/{approval['id']}/reject", json={}, headers=auth_headers
        )
        summary = (await client.get(
            f"/api/approvals/contracts/{contract['id']}/summary", headers=auth_headers
        )).json()

        assert approved["status"] == "approved"
        assert approved["user"]["id"] == test_user.id
        assert approved["notes"] == "Terms agreed"
        assert again.status_code == 422
        assert summary == {"total": 1, "approved": 1, "pending": 0, "rejected": 0}

    async def test_signature_flow(self, client: AsyncClient, auth_headers: dict, charterer, owner):
        contract = await self._contract(client, auth_headers, charterer.id)
        owner_sig = (await client.post(
            f"/api/signatures/contracts/{contract['id']}",
            json={"party_role": "owner", "company_id": owner.id},
            headers=auth_headers,
        )).json()
        charterer_sig = (await client.post(
            f"/api/signatures/contracts/{contract['id']}",
            json={"party_role": "charterer", "company_id": charterer.id},
            headers=auth_headers,
        )).json()

        signed = (await client.post(
            f"/api/signatures/contract/{owner_sig['id']}/sign",
            json={"signing_method": "docusign"},
            headers=auth_headers,
        )).json()
        rejected = (await client.post(
            f"/api/signatures/contract/{charterer_sig['id']}/reject", headers=auth_headers
        )).json()
        summary = (await client.get(
            f"/api/signatures/contracts/{contract['id']}/summary", headers=auth_headers
        )).json()

        assert signed["status"] == "signed"
        assert signed["signed_at"] is not None
        assert rejected["status"] == "rejected"
        assert summary == {"total": 2, "signed": 1, "pending": 0, "rejected": 1}

    async def test_addendum_approval_and_signature(
        self, client: AsyncClient, auth_headers: dict, charterer
    ):
        contract = await self._contract(client, auth_headers, charterer.id)
        addendum = (await client.post(
            f"/api/addenda/contract/by-parent/{contract['id']}",
            json={"title": "Extra load port"},
            headers=auth_headers,
        )).json()
        party = {"party_role": "charterer", "company_id": charterer.id}
        approval = (await client.post(
            f"/api/approvals/addenda/contract/{addendum['id']}", json=party, headers=auth_headers
        )).json()
        signature = (await client.post(
            f"/api/signatures/addenda/contract/{addendum['id']}", json=party, headers=auth_headers
        )).json()

        approved = await client.post(
            f"/api/approvals/addenda/{approval['id']}/approve", json={}, headers=auth_headers
        )
        signed = await client.post(
            f"/api/signatures/addenda/{signature['id']}/sign", json={}, headers=auth_headers
        )

        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"
        assert signed.status_code == 200
        assert signed.json()["status"] == "signed"

    async def test_viewer_cannot_sign(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict,
        test_organization: Organization, charterer
    ):
        contract = await self._contract(client, auth_headers, charterer.id)
        viewer = await make_user(db_session, "viewer@example.com", "Viewer")
        await add_membership(db_session, viewer, test_organization, MemberRole.VIEWER)

        response = await client.post(
            f"/api/signatures/contracts/{contract['id']}",
            json={"party_role": "charterer", "company_id": charterer.id},
            headers=headers_for(viewer, test_organization),
        )

        assert response.status_code == 403


@pytest.mark.integration
@pytest.mark.asyncio
class TestRecapsAndAddenda:
    async def test_recap_fully_fixed_stamps_fixed_at(self, client: AsyncClient, auth_headers: dict, charterer):
        recap = (await client.post(
            "/api/recap-managers/",
            json={"contract_type": "voyage-charter", "charterer_id": charterer.id},
            headers=auth_headers,
        )).json()
        assert recap["recap_number"].startswith("RCP")

        fixed = (await client.post(
            f"/api/recap-managers/{recap['id']}/status",
            json={"status": "fully-fixed"},
            headers=auth_headers,
        )).json()

        assert fixed["status"] == "fully-fixed"
        assert fixed["fixed_at"] is not None

    async def test_contract_addenda(self, client: AsyncClient, auth_headers: dict, charterer):
        contract = (await client.post(
            "/api/contracts/",
            json={"contract_type": "voyage-charter", "charterer_id": charterer.id},
            headers=auth_headers,
        )).json()

        created = await client.post(
            f"/api/addenda/contract/by-parent/{contract['id']}",
            json={"title": "Extra load port"},
            headers=auth_headers,
        )
        detail = (await client.get(f"/api/contracts/{contract['id']}", headers=auth_headers)).json()

        assert created.status_code == 201
        addendum = created.json()
        assert addendum["addendum_number"].startswith("ADD")
        assert addendum["parent_id"] == contract["id"]
        assert [a["id"] for a in detail["addenda"]] == [addendum["id"]]

    async def test_addendum_needs_existing_parent(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/addenda/recap/by-parent/missing", json={"title": "Speed warranty"}, headers=auth_headers
        )

        assert response.status_code == 404
