"""Management CLI.

Usage:
    python -m charterdesk.cli seed                                  # Reference data
    python -m charterdesk.cli recompute-fixtures                    # Rerun the fixture rollup
    python -m charterdesk.cli create-invitation EMAIL ORG_ID [ROLE] # Print an accept link
    python -m charterdesk.cli clear-trading-data                    # Delete all trading rows
    python -m charterdesk.cli verify-unique-numbers                 # Report duplicate CP/RCP numbers

Configuration comes from the environment (DATABASE_URL etc.), as for the API.
"""

import asyncio
import logging
import sys

from sqlalchemy import delete, func, select

from charterdesk.config import settings
from charterdesk.database import async_session, engine
from charterdesk.middleware.exceptions import BusinessLogicError
from charterdesk.models.activity_log import ActivityLog
from charterdesk.models.addenda import ContractAddendum, RecapAddendum
from charterdesk.models.approval import AddendaApproval, ContractApproval
from charterdesk.models.cargo_type import CargoType
from charterdesk.models.company import Company
from charterdesk.models.contract import Contract
from charterdesk.models.field_change import FieldChange
from charterdesk.models.fixture import Fixture
from charterdesk.models.negotiation import Negotiation
from charterdesk.models.order import Order
from charterdesk.models.organization import MemberRole, Membership
from charterdesk.models.port import Port
from charterdesk.models.recap_manager import RecapManager
from charterdesk.models.signature import AddendaSignature, ContractSignature
from charterdesk.models.vessel import Vessel
from charterdesk.schemas.cargo_type import CargoTypeCreate
from charterdesk.schemas.company import CompanyCreate
from charterdesk.schemas.port import PortCreate
from charterdesk.schemas.vessel import VesselCreate
from charterdesk.services.invitations import create_invitation
from charterdesk.services.rollup import recompute_all_fixtures

logger = logging.getLogger("charterdesk.cli")


# ── Seed data ───────────────────────────────────────────────

SEED_CARGO_TYPES = [
    CargoTypeCreate(name="Crude Oil", category="crude-oil", unit_type="mt"),
    CargoTypeCreate(name="Fuel Oil", category="crude-oil", unit_type="mt"),
    CargoTypeCreate(name="Iron Ore Fines", category="iron-ore", unit_type="mt"),
    CargoTypeCreate(name="Steam Coal", category="coal", unit_type="mt"),
    CargoTypeCreate(name="Wheat", category="grain", unit_type="mt"),
    CargoTypeCreate(name="LNG", category="lng", unit_type="cbm"),
]

SEED_PORTS = [
    PortCreate(name="Rotterdam", unlocode="NLRTM", country="Netherlands", country_code="NL",
               latitude=51.95, longitude=4.13, timezone="Europe/Amsterdam"),
    PortCreate(name="Singapore", unlocode="SGSIN", country="Singapore", country_code="SG",
               latitude=1.26, longitude=103.84, timezone="Asia/Singapore"),
    PortCreate(name="Ras Tanura", unlocode="SARTA", country="Saudi Arabia", country_code="SA",
               latitude=26.64, longitude=50.16, timezone="Asia/Riyadh"),
    PortCreate(name="Houston", unlocode="USHOU", country="United States", country_code="US",
               latitude=29.73, longitude=-95.27, timezone="America/Chicago"),
    PortCreate(name="Qingdao", unlocode="CNTAO", country="China", country_code="CN",
               latitude=36.07, longitude=120.32, timezone="Asia/Shanghai"),
]

SEED_COMPANIES = [
    CompanyCreate(name="Nordic Tankers", company_type="shipping-company", roles=["owner"]),
    CompanyCreate(name="Atlas Energy Trading", company_type="operator", roles=["charterer"]),
    CompanyCreate(name="Harbour Chartering", company_type="broker", roles=["broker"]),
]

# (vessel, owner company name)
SEED_VESSELS = [
    (VesselCreate(name="Nordic Star", imo_number="9321483", dwt=105000, flag="Norway",
                  vessel_class="Aframax"), "Nordic Tankers"),
    (VesselCreate(name="Nordic Wind", imo_number="9074729", dwt=158000, flag="Norway",
                  vessel_class="Suezmax"), "Nordic Tankers"),
    (VesselCreate(name="Atlas Spirit", imo_number="9176187", dwt=74000, flag="Liberia",
                  vessel_class="Panamax"), "Atlas Energy Trading"),
]


async def _missing(db, column, value) -> bool:
    return await db.scalar(select(column).where(column == value).limit(1)) is None


async def seed():
    """Insert the seed reference data. Existing rows (by name/code) are left alone."""
    created = 0
    async with async_session() as db:
        for body in SEED_CARGO_TYPES:
            if await _missing(db, CargoType.name, body.name):
                db.add(CargoType(**body.model_dump()))
                created += 1
        for body in SEED_PORTS:
            if await _missing(db, Port.unlocode, body.unlocode):
                db.add(Port(**body.model_dump()))
                created += 1
        for body in SEED_COMPANIES:
            if await _missing(db, Company.name, body.name):
                db.add(Company(**body.model_dump()))
                created += 1
        await db.flush()

        for body, owner_name in SEED_VESSELS:
            if not await _missing(db, Vessel.imo_number, body.imo_number):
                continue
            owner_id = await db.scalar(select(Company.id).where(Company.name == owner_name))
            db.add(Vessel(**body.model_dump(exclude={"current_owner_id"}), current_owner_id=owner_id))
            created += 1
        await db.commit()
    print(f"Seeded {created} record(s).")


# ── Fixtures ────────────────────────────────────────────────

async def recompute_fixtures():
    async with async_session() as db:
        count = await recompute_all_fixtures(db)
        await db.commit()
    print(f"Recomputed {count} fixture(s).")


# ── Invitations ─────────────────────────────────────────────

async def invite(email: str, organization_id: str, role: str = "trader"):
    if role not in {r.value for r in MemberRole}:
        print(f"Invalid role. Choose: {', '.join(r.value for r in MemberRole)}")
        return 1

    async with async_session() as db:
        # The invitation is attributed to the organization's oldest admin
        inviter_id = await db.scalar(
            select(Membership.user_id)
            .where(
                Membership.organization_id == organization_id,
                Membership.role == MemberRole.ADMIN,
            )
            .order_by(Membership.created_at)
            .limit(1)
        )
        if inviter_id is None:
            print(f"Organization {organization_id} not found or has no admin.")
            return 1
        try:
            created = await create_invitation(db, organization_id, email, role, inviter_id)
        except BusinessLogicError as e:
            print(f"FAILED: {e.message}")
            return 1
        await db.commit()
    print(created.accept_url)
    return 0


# ── Maintenance ─────────────────────────────────────────────

# Children before parents
TRADING_TABLES = [
    AddendaApproval,
    AddendaSignature,
    ContractApproval,
    ContractSignature,
    ContractAddendum,
    RecapAddendum,
    Contract,
    RecapManager,
    Fixture,
    Negotiation,
    Order,
    FieldChange,
    ActivityLog,
]


async def clear_trading_data():
    async with async_session() as db:
        for model in TRADING_TABLES:
            result = await db.execute(delete(model))
            print(f"  {model.__tablename__}: {result.rowcount} deleted")
        await db.commit()


async def _duplicates(db, column) -> list[tuple[str, int]]:
    result = await db.execute(
        select(column, func.count())
        .group_by(column)
        .having(func.count() > 1)
        .order_by(column)
    )
    return [(number, count) for number, count in result.all()]


async def verify_unique_numbers() -> int:
    found = 0
    async with async_session() as db:
        for label, column in (("CP", Contract.contract_number), ("RCP", RecapManager.recap_number)):
            duplicates = await _duplicates(db, column)
            for number, count in duplicates:
                print(f"  {label} duplicate: {number} x{count}")
            found += len(duplicates)
    print("All contract and recap numbers are unique." if not found else f"\n{found} duplicate(s)")
    return 1 if found else 0


# ── Entry point ─────────────────────────────────────────────

USAGE = (
    "Usage: python -m charterdesk.cli "
    "[seed|recompute-fixtures|create-invitation EMAIL ORG_ID [ROLE]|"
    "clear-trading-data|verify-unique-numbers]"
)


async def _run(argv: list[str]) -> int:
    cmd = argv[0] if argv else ""
    try:
        if cmd == "seed":
            await seed()
        elif cmd == "recompute-fixtures":
            await recompute_fixtures()
        elif cmd == "create-invitation" and len(argv) in (3, 4):
            return await invite(*argv[1:])
        elif cmd == "clear-trading-data":
            await clear_trading_data()
        elif cmd == "verify-unique-numbers":
            return await verify_unique_numbers()
        else:
            print(USAGE)
            return 2
        return 0
    finally:
        await engine.dispose()


def main() -> int:
    logging.basicConfig(level=settings.log_level.upper())
    return asyncio.run(_run(sys.argv[1:]))


if __name__ == "__main__":
    sys.exit(main())
