"""Small builders shared by the test modules."""

from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.jwt import create_access_token
from charterdesk.auth.password import hash_password
from charterdesk.models.organization import MemberRole, Membership, Organization
from charterdesk.models.user import User

TEST_PASSWORD = "testpassword123"


async def make_user(db: AsyncSession, email: str, name: str = "Test User") -> User:
    user = User(email=email, name=name, hashed_password=hash_password(TEST_PASSWORD))
    db.add(user)
    await db.flush()
    return user


async def add_membership(
    db: AsyncSession, user: User, organization: Organization, role: MemberRole
) -> Membership:
    membership = Membership(user_id=user.id, organization_id=organization.id, role=role)
    db.add(membership)
    await db.flush()
    return membership


def headers_for(user: User, organization: Organization | None = None) -> dict:
    token = create_access_token(user_id=user.id, email=user.email)
    headers = {"Authorization": f"Bearer {token}"}
    if organization is not None:
        headers["X-Organization-Id"] = organization.id
    return headers
