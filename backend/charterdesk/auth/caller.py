"""Explicit caller identity handed to every service operation.

Routers build a Caller from the request (JWT + X-Organization-Id) and pass
it down; services never look up "the current user" on their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from charterdesk.auth.permissions import has_permission, resolve_permissions
from charterdesk.middleware.exceptions import PermissionDeniedError
from charterdesk.models.user import User


@dataclass
class Caller:
    user: User
    organization_id: str | None = None
    role: str | None = None
    permissions: list[str] = field(default_factory=list)

    @classmethod
    def for_member(cls, user: User, organization_id: str | None, role: str | None) -> "Caller":
        return cls(
            user=user,
            organization_id=organization_id,
            role=role,
            permissions=resolve_permissions(role),
        )

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"

    def require(self, permission: str) -> None:
        if not has_permission(self.permissions, permission):
            raise PermissionDeniedError(f"Missing permission: {permission}")

    def require_organization(self) -> str:
        if not self.organization_id:
            raise PermissionDeniedError(
                "No organization context: create or join an organization first"
            )
        return self.organization_id
