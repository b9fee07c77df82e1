"""Tests for organizations and memberships."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.organization import MemberRole
from tests.factories import add_membership, headers_for, make_user


async def _members(client: AsyncClient, headers: dict) -> list[dict]:
    response = await client.get("/api/organizations/members", headers=headers)
    assert response.status_code == 200
    return response.json()


async def _me(client: AsyncClient, headers: dict) -> dict:
    return next(m for m in await _members(client, headers) if m["email"] == "test@example.com")


@pytest.mark.integration
@pytest.mark.asyncio
class TestOrganizations:
    async def test_create_makes_caller_admin(self, client: AsyncClient, test_user, test_organization):
        response = await client.post(
            "/api/organizations/", json={"name": "Baltic Desk"}, headers=headers_for(test_user)
        )

        assert response.status_code == 201
        assert response.json()["role"] == "admin"

        mine = (await client.get("/api/organizations/", headers=headers_for(test_user))).json()
        assert {o["name"] for o in mine} == {"Test Chartering", "Baltic Desk"}

    async def test_get_requires_membership(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_organization
    ):
        outsider = await make_user(db_session, "outsider@example.com", "Outsider")
        own = (await client.post(
            "/api/organizations/", json={"name": "Solo"}, headers=headers_for(outsider)
        )).json()

        mine = await client.get(f"/api/organizations/{test_organization.id}", headers=auth_headers)
        theirs = await client.get(f"/api/organizations/{own['id']}", headers=auth_headers)

        assert mine.status_code == 200
        assert theirs.status_code == 404


@pytest.mark.integration
@pytest.mark.asyncio
class TestMembers:
    async def test_add_and_list(self, client: AsyncClient, db_session: AsyncSession,
                                auth_headers: dict):
        colleague = await make_user(db_session, "colleague@example.com", "Colleague")

        added = await client.post(
            "/api/organizations/members",
            json={"user_id": colleague.id, "role": "broker"},
            headers=auth_headers,
        )
        duplicate = await client.post(
            "/api/organizations/members", json={"user_id": colleague.id}, headers=auth_headers
        )

        assert added.status_code == 201
        assert added.json()["role"] == "broker"
        assert duplicate.status_code == 422
        members = await _members(client, auth_headers)
        assert {m["email"] for m in members} == {"test@example.com", "colleague@example.com"}

    async def test_only_admin_cannot_be_downgraded(self, client: AsyncClient, auth_headers: dict):
        me = await _me(client, auth_headers)

        response = await client.patch(
            f"/api/organizations/members/{me['membership_id']}",
            json={"role": "trader"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["message"] == (
            "Cannot downgrade the only admin. Promote another member first."
        )

    async def test_only_admin_cannot_leave(self, client: AsyncClient, auth_headers: dict):
        me = await _me(client, auth_headers)

        response = await client.delete(
            f"/api/organizations/members/{me['membership_id']}", headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["message"] == (
            "Cannot remove yourself as the only admin. Transfer admin role first."
        )

    async def test_second_admin_allows_downgrade(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_organization
    ):
        deputy = await make_user(db_session, "deputy@example.com", "Deputy")
        await add_membership(db_session, deputy, test_organization, MemberRole.ADMIN)
        me = await _me(client, auth_headers)

        response = await client.patch(
            f"/api/organizations/members/{me['membership_id']}",
            json={"role": "viewer"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["role"] == "viewer"

    async def test_remove_member(self, client: AsyncClient, db_session: AsyncSession,
                                 auth_headers: dict, test_organization):
        trader = await make_user(db_session, "trader@example.com", "Trader")
        membership = await add_membership(db_session, trader, test_organization, MemberRole.TRADER)

        response = await client.delete(
            f"/api/organizations/members/{membership.id}", headers=auth_headers
        )

        assert response.status_code == 204
        assert len(await _members(client, auth_headers)) == 1

    async def test_non_admin_cannot_manage(self, client: AsyncClient, db_session: AsyncSession,
                                           test_organization):
        trader = await make_user(db_session, "trader@example.com", "Trader")
        await add_membership(db_session, trader, test_organization, MemberRole.TRADER)
        headers = headers_for(trader, test_organization)

        listed = await client.get("/api/organizations/members", headers=headers)
        added = await client.post(
            "/api/organizations/members", json={"user_id": trader.id}, headers=headers
        )

        assert listed.status_code == 200
        assert added.status_code == 403
