"""Membership-role permissions.

Each organization membership carries one role; the role maps to a fixed
permission set. Checks happen against the Caller built per request, so a
role change takes effect on the very next call.

Permission naming: `<resource>.<action>`
  Resources: members, invitations, reference, orders, negotiations,
             fixtures, contracts, approvals, audit
  Actions:   read, write, manage
"""

from __future__ import annotations


# ── All known permissions ───────────────────────────────────

ALL_PERMISSIONS: set[str] = {
    # Organization administration
    "members.read",
    "members.manage",
    "invitations.manage",

    # Reference data (companies, vessels, ports, cargo types)
    "reference.read",
    "reference.write",

    # Trading
    "orders.read",
    "orders.write",
    "negotiations.read",
    "negotiations.write",
    "fixtures.read",
    "fixtures.write",
    "contracts.read",
    "contracts.write",

    # Workflow
    "approvals.write",
    "signatures.write",

    # Audit trail
    "audit.read",
    "audit.write",
    "audit.manage",
}

_READ_ONLY = {p for p in ALL_PERMISSIONS if p.endswith(".read")}


# ── Role → permissions ──────────────────────────────────────

ROLE_DEFAULTS: dict[str, set[str]] = {
    "admin": ALL_PERMISSIONS.copy(),

    "trader": _READ_ONLY | {
        "reference.write",
        "orders.write",
        "negotiations.write",
        "fixtures.write",
        "contracts.write",
        "approvals.write",
        "signatures.write",
        "audit.write",
    },

    "broker": _READ_ONLY | {
        "negotiations.write",
        "contracts.write",
        "audit.write",
    },

    "viewer": _READ_ONLY,
}


# ── Resolution ──────────────────────────────────────────────

def resolve_permissions(role: str | None) -> list[str]:
    """Return the sorted permission list for a membership role."""
    if not role:
        return []
    return sorted(ROLE_DEFAULTS.get(role.lower(), set()))


def has_permission(user_permissions: list[str] | set[str], required: str) -> bool:
    """Check whether a permission set satisfies a requirement."""
    return required in user_permissions
