"""JWT token creation and decoding.

Token claims:
  - sub:    user ID
  - email:  user email (display only, never trusted for lookups)
  - type:   "access" | "refresh"
  - iat:    issued-at (compared against per-user revocation)
  - exp:    expiry timestamp

The active organization is NOT a claim: users switch organizations
per request via the X-Organization-Id header, and membership is
re-checked on every call (see auth.deps.get_caller).
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from charterdesk.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    user_id: str,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": user_id,
        "email": email,
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def create_refresh_token(user_id: str, email: str) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=settings.refresh_token_expire_days)
    payload = {
        "sub": user_id,
        "email": email,
        "type": "refresh",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
