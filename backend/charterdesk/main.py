import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from charterdesk.config import settings
from charterdesk.middleware.exceptions import register_exception_handlers
from charterdesk.middleware.rate_limit import RateLimitMiddleware
from charterdesk.middleware.security import (
    HTTPSRedirectMiddleware,
    SecureCookieMiddleware,
    SecurityHeadersMiddleware,
)
from charterdesk.routers import (
    addenda,
    approvals,
    audit,
    auth,
    cargo_types,
    companies,
    contracts,
    fixtures,
    health,
    invitations,
    negotiations,
    orders,
    organizations,
    ports,
    recap_managers,
    signatures,
    vessels,
)
from charterdesk.services.lifespan import lifespan

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="CharterDesk",
    description="Maritime chartering back office: orders, negotiations, fixtures, charter parties",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware (outermost first) ─────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(HTTPSRedirectMiddleware, force_https=False)
app.add_middleware(SecureCookieMiddleware)

if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        default_limit=100,  # per minute, anonymous/IP
        authenticated_limit=500,  # per minute, JWT user
        default_window=60,
        exempt_paths=["/health", "/health/ready", "/docs", "/openapi.json"],
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)

# Identity
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(organizations.router, prefix="/api/organizations", tags=["organizations"])
app.include_router(invitations.router, prefix="/api/invitations", tags=["invitations"])

# Reference data
app.include_router(companies.router, prefix="/api/companies", tags=["companies"])
app.include_router(vessels.router, prefix="/api/vessels", tags=["vessels"])
app.include_router(ports.router, prefix="/api/ports", tags=["ports"])
app.include_router(cargo_types.router, prefix="/api/cargo-types", tags=["cargo-types"])

# Trading
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(negotiations.router, prefix="/api/negotiations", tags=["negotiations"])
app.include_router(fixtures.router, prefix="/api/fixtures", tags=["fixtures"])
app.include_router(contracts.router, prefix="/api/contracts", tags=["contracts"])
app.include_router(recap_managers.router, prefix="/api/recap-managers", tags=["recap-managers"])
app.include_router(addenda.router, prefix="/api/addenda", tags=["addenda"])
app.include_router(approvals.router, prefix="/api/approvals", tags=["approvals"])
app.include_router(signatures.router, prefix="/api/signatures", tags=["signatures"])

# Audit trail
app.include_router(audit.router, prefix="/api/audit", tags=["audit"])
