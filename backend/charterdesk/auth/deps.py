"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_user        → decode JWT, load user from DB, return User
  get_caller              → User + active organization membership, as a Caller
  require_permission(...) → Caller that holds ALL listed permissions
  require_admin           → Caller whose membership role is admin
"""

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.jwt import decode_token
from charterdesk.auth.revocation import TokenRevocation
from charterdesk.database import get_db
from charterdesk.models.organization import Membership
from charterdesk.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


# ── Core user dependency ────────────────────────────────────

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the access token and load the user it names."""
    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await TokenRevocation.is_revoked(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Password reset revokes everything issued before it
    if await TokenRevocation.is_user_revoked(user_id, payload.get("iat")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


# ── Caller (user + organization context) ────────────────────

async def get_caller(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    x_organization_id: str | None = Header(default=None),
) -> Caller:
    """Resolve the organization the request acts in.

    With an X-Organization-Id header the user must be a member of that
    organization. Without one, the user's oldest membership is used; a
    user with no memberships gets a Caller with no organization.
    """
    query = select(Membership).where(Membership.user_id == user.id)
    if x_organization_id:
        query = query.where(Membership.organization_id == x_organization_id)
    result = await db.execute(query.order_by(Membership.created_at).limit(1))
    membership = result.scalar_one_or_none()

    if x_organization_id and not membership:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this organization",
        )
    if not membership:
        return Caller.for_member(user, None, None)

    return Caller.for_member(user, membership.organization_id, membership.role.value)


# ── Permission-based access control ─────────────────────────

def require_permission(*perms: str):
    """Dependency factory: restrict to callers who hold ALL listed permissions.

    Usage:
        @router.post("/")
        async def create_order(caller: Caller = Depends(require_permission("orders.write"))):
            ...
    """
    async def _check(caller: Caller = Depends(get_caller)) -> Caller:
        missing = [p for p in perms if p not in caller.permissions]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return caller

    return _check


async def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    """Restrict endpoint to organization admins."""
    if not caller.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization admin access required",
        )
    return caller
