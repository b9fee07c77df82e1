"""Password reset tokens.

One live token per user: issuing a token marks every earlier unused token
as used. Tokens are single-use and expire after
settings.password_reset_expiry_minutes.
"""

import logging
import secrets
from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.password import hash_password
from charterdesk.auth.revocation import TokenRevocation
from charterdesk.config import settings
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.password_reset import PasswordResetToken
from charterdesk.models.user import User
from charterdesk.schemas.auth import PasswordResetVerifyOut
from charterdesk.utils.dates import utcnow

logger = logging.getLogger(__name__)

INVALID = "Invalid reset token"
ALREADY_USED = "This reset link has already been used"
EXPIRED = "This reset link has expired"


def reset_url(token: str) -> str:
    return f"{settings.app_base_url.rstrip('/')}/reset-password?token={token}"


def check_password_strength(password: str) -> None:
    if len(password) < settings.min_password_length:
        raise BusinessLogicError(
            f"Password must be at least {settings.min_password_length} characters long"
        )


async def create_reset_token(db: AsyncSession, user: User) -> PasswordResetToken:
    await db.execute(
        update(PasswordResetToken)
        .where(PasswordResetToken.user_id == user.id, PasswordResetToken.used.is_(False))
        .values(used=True)
    )
    now = utcnow()
    reset = PasswordResetToken(
        user_id=user.id,
        email=user.email,
        token=secrets.token_hex(32),
        expires_at=now + timedelta(minutes=settings.password_reset_expiry_minutes),
        used=False,
        created_at=now,
    )
    db.add(reset)
    await db.flush()
    return reset


async def request_password_reset(db: AsyncSession, email: str) -> None:
    """Issue a token if the email belongs to a user. Silent either way."""
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Password reset requested for unknown email")
        return
    reset = await create_reset_token(db, user)
    logger.info("Password reset link issued for %s: %s", user.email, reset_url(reset.token))


async def _find(db: AsyncSession, token: str) -> PasswordResetToken | None:
    result = await db.execute(
        select(PasswordResetToken).where(PasswordResetToken.token == token)
    )
    return result.scalar_one_or_none()


def _problem(reset: PasswordResetToken | None) -> str | None:
    if reset is None:
        return INVALID
    if reset.used:
        return ALREADY_USED
    if utcnow() > reset.expires_at:
        return EXPIRED
    return None


async def verify_reset_token(db: AsyncSession, token: str) -> PasswordResetVerifyOut:
    reset = await _find(db, token)
    problem = _problem(reset)
    if problem:
        return PasswordResetVerifyOut(valid=False, error=problem)
    return PasswordResetVerifyOut(valid=True, email=reset.email)


async def mark_token_used(db: AsyncSession, token: str) -> None:
    reset = await _find(db, token)
    if reset is not None:
        reset.used = True
        await db.flush()


async def reset_password(db: AsyncSession, token: str, new_password: str) -> User:
    reset = await _find(db, token)
    problem = _problem(reset)
    if problem:
        raise BusinessLogicError(problem)
    check_password_strength(new_password)

    user = await db.get(User, reset.user_id)
    if user is None:
        raise BusinessLogicError(INVALID)
    user.hashed_password = hash_password(new_password)
    reset.used = True
    await db.flush()

    await TokenRevocation.revoke_all_user_tokens(user.id)
    logger.info("Password reset completed for %s", user.email)
    return user
