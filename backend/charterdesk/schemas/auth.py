from datetime import datetime

from pydantic import BaseModel, EmailStr


# ── Users ────────────────────────────────────────────────────

class UserSummary(BaseModel):
    """Shallow user lookup attached to audit rows, approvals, signatures."""
    id: str
    name: str
    email: str
    avatar_url: str | None = None


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    avatar_url: str | None = None
    is_active: bool
    created_at: datetime | None = None


class MeOut(UserOut):
    organization_id: str | None = None
    role: str | None = None
    permissions: list[str] = []


# ── Registration ─────────────────────────────────────────────

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: str


# ── Login ────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


# ── Token refresh ────────────────────────────────────────────

class RefreshRequest(BaseModel):
    refresh_token: str


class UserExistsOut(BaseModel):
    exists: bool


# ── Password reset ───────────────────────────────────────────

class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetVerifyOut(BaseModel):
    valid: bool
    email: str | None = None
    error: str | None = None


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str
