"""Tests for organization invitations and password reset tokens."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.models.invitation import Invitation
from charterdesk.models.organization import MemberRole, Membership, Organization
from charterdesk.models.password_reset import PasswordResetToken
from charterdesk.models.user import User
from charterdesk.services import password_reset
from charterdesk.utils.dates import utcnow
from tests.factories import TEST_PASSWORD, add_membership, headers_for, make_user


async def _invite(client: AsyncClient, headers: dict, email: str, role: str = "trader") -> dict:
    response = await client.post(
        "/api/invitations/", json={"email": email, "role": role}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.tokens
@pytest.mark.asyncio
class TestInvitations:
    async def test_create_and_lookup(self, client: AsyncClient, auth_headers: dict, test_organization):
        created = await _invite(client, auth_headers, "Broker@Example.com", "broker")

        assert created["email"] == "broker@example.com"
        assert created["status"] == "pending"
        assert len(created["token"]) == 64
        assert created["accept_url"].endswith(f"token={created['token']}")

        lookup = await client.get(f"/api/invitations/token/{created['token']}")
        assert lookup.status_code == 200
        assert lookup.json()["organization_name"] == test_organization.name
        assert lookup.json()["invited_by_name"] == "Test User"

    async def test_duplicate_pending_rejected(self, client: AsyncClient, auth_headers: dict):
        await _invite(client, auth_headers, "dup@example.com")

        response = await client.post(
            "/api/invitations/", json={"email": "DUP@example.com"}, headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["message"] == "An invitation has already been sent to this email"

    async def test_same_email_other_organization_allowed(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_user: User
    ):
        other = Organization(name="Second Desk")
        db_session.add(other)
        await db_session.flush()
        await add_membership(db_session, test_user, other, MemberRole.ADMIN)

        first = await client.post(
            "/api/invitations/", json={"email": "shared@example.com"}, headers=auth_headers
        )
        second = await client.post(
            "/api/invitations/",
            json={"email": "shared@example.com"},
            headers=headers_for(test_user, other),
        )

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["organization_id"] != second.json()["organization_id"]

    async def test_existing_member_rejected(self, client: AsyncClient, auth_headers: dict, test_user: User):
        response = await client.post(
            "/api/invitations/", json={"email": test_user.email}, headers=auth_headers
        )

        assert response.status_code == 422
        assert "already a member" in response.json()["error"]["message"]

    async def test_viewer_cannot_invite(
        self, client: AsyncClient, db_session: AsyncSession, test_organization
    ):
        viewer = await make_user(db_session, "viewer@example.com", "Viewer")
        await add_membership(db_session, viewer, test_organization, MemberRole.VIEWER)

        response = await client.post(
            "/api/invitations/",
            json={"email": "someone@example.com"},
            headers=headers_for(viewer, test_organization),
        )

        assert response.status_code == 403

    async def test_accept_creates_membership_once(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict, test_organization
    ):
        created = await _invite(client, auth_headers, "invitee@example.com", "broker")
        invitee = await make_user(db_session, "invitee@example.com", "Invitee")
        headers = headers_for(invitee)

        accepted = await client.post(
            "/api/invitations/accept", json={"token": created["token"]}, headers=headers
        )
        assert accepted.status_code == 200
        assert accepted.json() == {
            "success": True,
            "organization_id": test_organization.id,
            "already_member": False,
        }

        again = await client.post(
            "/api/invitations/accept", json={"token": created["token"]}, headers=headers
        )
        assert again.status_code == 200
        assert again.json()["already_member"] is True

        count = await db_session.scalar(
            select(func.count(Membership.id)).where(Membership.user_id == invitee.id)
        )
        membership = await db_session.scalar(select(Membership).where(Membership.user_id == invitee.id))
        assert count == 1
        assert membership.role == MemberRole.BROKER

    async def test_accept_again_after_removal_rejected(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict
    ):
        created = await _invite(client, auth_headers, "former@example.com")
        former = await make_user(db_session, "former@example.com", "Former")
        headers = headers_for(former)
        await client.post("/api/invitations/accept", json={"token": created["token"]}, headers=headers)
        membership = await db_session.scalar(select(Membership).where(Membership.user_id == former.id))
        await db_session.delete(membership)
        await db_session.flush()

        response = await client.post(
            "/api/invitations/accept", json={"token": created["token"]}, headers=headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["message"] == "This invitation has already been accepted"

    async def test_accept_when_already_member(
        self, client: AsyncClient, db_session: AsyncSession, test_organization, test_user: User
    ):
        invitation = Invitation(
            email=test_user.email,
            organization_id=test_organization.id,
            role="trader",
            invited_by_user_id=test_user.id,
            token="a" * 64,
            status="pending",
            expires_at=utcnow() + timedelta(days=1),
        )
        db_session.add(invitation)
        await db_session.flush()

        response = await client.post(
            "/api/invitations/accept", json={"token": "a" * 64}, headers=headers_for(test_user)
        )

        assert response.status_code == 200
        assert response.json()["already_member"] is True

    async def test_accept_wrong_email(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict
    ):
        created = await _invite(client, auth_headers, "right@example.com")
        wrong = await make_user(db_session, "wrong@example.com", "Wrong")

        response = await client.post(
            "/api/invitations/accept", json={"token": created["token"]}, headers=headers_for(wrong)
        )

        assert response.status_code == 422
        assert "right@example.com" in response.json()["error"]["message"]

    async def test_accept_expired(
        self, client: AsyncClient, db_session: AsyncSession, test_organization, test_user: User
    ):
        invitee = await make_user(db_session, "late@example.com", "Late")
        invitation = Invitation(
            email="late@example.com",
            organization_id=test_organization.id,
            role="viewer",
            invited_by_user_id=test_user.id,
            token="b" * 64,
            status="pending",
            expires_at=utcnow() - timedelta(minutes=1),
        )
        db_session.add(invitation)
        await db_session.flush()

        response = await client.post(
            "/api/invitations/accept", json={"token": "b" * 64}, headers=headers_for(invitee)
        )

        assert response.status_code == 422
        assert response.json()["error"]["message"] == "This invitation has expired"
        assert invitation.status == "expired"

        await db_session.rollback()
        await db_session.refresh(invitation)
        assert invitation.status == "expired"

    async def test_unknown_token(self, client: AsyncClient):
        response = await client.get("/api/invitations/token/nope")

        assert response.status_code == 404

    async def test_revoke_then_delete(self, client: AsyncClient, auth_headers: dict):
        created = await _invite(client, auth_headers, "gone@example.com")

        pending_delete = await client.delete(f"/api/invitations/{created['id']}", headers=auth_headers)
        assert pending_delete.status_code == 422

        revoked = await client.post(f"/api/invitations/{created['id']}/revoke", headers=auth_headers)
        assert revoked.json()["status"] == "revoked"

        revoke_again = await client.post(
            f"/api/invitations/{created['id']}/revoke", headers=auth_headers
        )
        assert revoke_again.json()["error"]["message"] == (
            "Cannot revoke an invitation that has been revoked"
        )

        deleted = await client.delete(f"/api/invitations/{created['id']}", headers=auth_headers)
        assert deleted.status_code == 204

        listing = (await client.get("/api/invitations/", headers=auth_headers)).json()
        assert listing == []

    async def test_mine_lists_pending_only(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict
    ):
        await _invite(client, auth_headers, "mine@example.com")
        invitee = await make_user(db_session, "mine@example.com", "Mine")

        response = await client.get("/api/invitations/mine", headers=headers_for(invitee))

        assert [i["email"] for i in response.json()] == ["mine@example.com"]


@pytest.mark.tokens
@pytest.mark.asyncio
class TestPasswordReset:
    async def test_request_is_silent_for_unknown_email(self, client: AsyncClient, db_session: AsyncSession):
        response = await client.post(
            "/api/auth/password-reset/request", json={"email": "nobody@example.com"}
        )

        assert response.status_code == 202
        assert await db_session.scalar(select(func.count(PasswordResetToken.id))) == 0

    async def test_second_token_invalidates_first(self, db_session: AsyncSession, test_user: User):
        first = await password_reset.create_reset_token(db_session, test_user)
        second = await password_reset.create_reset_token(db_session, test_user)
        await db_session.refresh(first)

        first_check = await password_reset.verify_reset_token(db_session, first.token)
        second_check = await password_reset.verify_reset_token(db_session, second.token)

        assert first_check.valid is False
        assert first_check.error == password_reset.ALREADY_USED
        assert second_check.valid is True
        assert second_check.email == test_user.email

    async def test_expired_token(self, db_session: AsyncSession, test_user: User):
        reset = await password_reset.create_reset_token(db_session, test_user)
        reset.expires_at = utcnow() - timedelta(seconds=1)
        await db_session.flush()

        check = await password_reset.verify_reset_token(db_session, reset.token)

        assert check.error == password_reset.EXPIRED

    async def test_unknown_token(self, client: AsyncClient):
        response = await client.get("/api/auth/password-reset/verify", params={"token": "nope"})

        assert response.json() == {"valid": False, "email": None, "error": "Invalid reset token"}

    async def test_confirm_sets_password_once(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        reset = await password_reset.create_reset_token(db_session, test_user)

        confirmed = await client.post(
            "/api/auth/password-reset/confirm",
            json={"token": reset.token, "new_password": "BrandNewPassword1"},
        )
        assert confirmed.status_code == 200

        old_login = await client.post(
            "/api/auth/login", json={"email": test_user.email, "password": TEST_PASSWORD}
        )
        new_login = await client.post(
            "/api/auth/login", json={"email": test_user.email, "password": "BrandNewPassword1"}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200

        reused = await client.post(
            "/api/auth/password-reset/confirm",
            json={"token": reset.token, "new_password": "AnotherPassword1"},
        )
        assert reused.status_code == 400
        assert reused.json()["error"]["message"] == password_reset.ALREADY_USED

    async def test_confirm_rejects_weak_password(self, client: AsyncClient, db_session: AsyncSession, test_user: User):
        reset = await password_reset.create_reset_token(db_session, test_user)

        response = await client.post(
            "/api/auth/password-reset/confirm",
            json={"token": reset.token, "new_password": "short"},
        )

        assert response.status_code == 400
        assert "at least 8 characters" in response.json()["error"]["message"]
