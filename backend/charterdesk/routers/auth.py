"""Auth routes: register, login, refresh, logout, profile, password reset.

Route overview:
  POST /register                 self-registration, returns tokens
  POST /login                    email + password login
  POST /refresh                  exchange a refresh token for a new pair
  POST /logout                   revoke the presented access token
  GET  /me                       current user + active organization/role
  GET  /exists?email=            whether an account exists for an email
  POST /password-reset/request   issue a reset link (always succeeds)
  GET  /password-reset/verify    check a reset token
  POST /password-reset/confirm   set a new password with a reset token
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import get_caller, oauth2_scheme
from charterdesk.auth.jwt import create_access_token, create_refresh_token, decode_token
from charterdesk.auth.password import hash_password, verify_password
from charterdesk.auth.revocation import TokenRevocation
from charterdesk.config import settings
from charterdesk.database import get_db
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.user import User
from charterdesk.schemas.auth import (
    LoginRequest,
    MeOut,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetVerifyOut,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserExistsOut,
    UserOut,
)
from charterdesk.services import password_reset
from charterdesk.services.enrichment import avatar_url

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _build_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        avatar_url=avatar_url(user.avatar_storage_id),
        is_active=user.is_active,
        created_at=user.created_at,
    )


def _build_token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user_id=user.id, email=user.email),
        refresh_token=create_refresh_token(user_id=user.id, email=user.email),
        user=_build_user_out(user),
    )


async def _find_user(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


# ── POST /register ──────────────────────────────────────────

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a local account. Organizations are created or joined afterwards."""
    if await _find_user(db, body.email):
        raise HTTPException(status_code=400, detail="User with this email already exists")
    if len(body.password) < settings.min_password_length:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.min_password_length} characters long",
        )

    user = User(
        email=body.email.lower(),
        name=body.name,
        hashed_password=hash_password(body.password),
    )
    db.add(user)
    await db.flush()
    return _build_token_response(user)


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await _find_user(db, body.email)
    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account deactivated")
    return _build_token_response(user)


# ── POST /refresh ────────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new access + refresh token pair."""
    payload = decode_token(body.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user_id = payload.get("sub")
    if await TokenRevocation.is_user_revoked(user_id, payload.get("iat")):
        raise HTTPException(status_code=401, detail="Session expired. Please log in again.")

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _build_token_response(user)


# ── POST /logout ─────────────────────────────────────────────

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(token: str = Depends(oauth2_scheme)):
    """Blacklist the presented access token until it would have expired."""
    payload = decode_token(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    await TokenRevocation.revoke_token(token, float(payload["exp"]))


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=MeOut)
async def me(caller: Caller = Depends(get_caller)):
    """Current user plus the organization this request acts in."""
    return MeOut(
        **_build_user_out(caller.user).model_dump(),
        organization_id=caller.organization_id,
        role=caller.role,
        permissions=caller.permissions,
    )


# ── GET /exists ──────────────────────────────────────────────

@router.get("/exists", response_model=UserExistsOut)
async def user_exists(email: str, db: AsyncSession = Depends(get_db)):
    return UserExistsOut(exists=await _find_user(db, email) is not None)


# ── Password reset ──────────────────────────────────────────

@router.post("/password-reset/request", status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(body: PasswordResetRequest, db: AsyncSession = Depends(get_db)):
    # Don't reveal whether an email exists
    await password_reset.request_password_reset(db, body.email)
    return {"message": "If this email is registered, a reset link has been sent"}


@router.get("/password-reset/verify", response_model=PasswordResetVerifyOut)
async def verify_password_reset(token: str, db: AsyncSession = Depends(get_db)):
    return await password_reset.verify_reset_token(db, token)


@router.post("/password-reset/confirm")
async def confirm_password_reset(body: PasswordResetConfirm, db: AsyncSession = Depends(get_db)):
    try:
        await password_reset.reset_password(db, body.token, body.new_password)
    except BusinessLogicError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {"message": "Password has been reset. Please log in again."}
