"""Fixture routes, including the aggregated fixture table.

Endpoints:
    POST   /api/fixtures/page               Cursor page of aggregated fixture rows
    GET    /api/fixtures/filter-options     Distinct values for the table filters
    GET    /api/fixtures/                   Plain fixture list
    POST   /api/fixtures/                   Create fixture
    GET    /api/fixtures/{id}               Fixture with order, contracts, recaps, negotiations
    PATCH  /api/fixtures/{id}               Update title/status
    DELETE /api/fixtures/{id}               Remove fixture (children are detached)
    POST   /api/fixtures/{id}/recompute     Rerun the derived-field rollup
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.schemas.common import CursorPaginatedResponse
from charterdesk.schemas.fixture import (
    FilterOptions,
    FixtureCreate,
    FixtureDetails,
    FixtureOut,
    FixturePageRequest,
    FixtureRow,
    FixtureUpdate,
)
from charterdesk.services import fixture_view, fixtures

router = APIRouter()


@router.post("/page", response_model=CursorPaginatedResponse[FixtureRow])
async def list_fixture_rows(
    body: FixturePageRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.read")),
):
    """One wide row per fixture; filters and search terms travel in the body."""
    return await fixture_view.list_fixtures_page(db, caller, body)


@router.get("/filter-options", response_model=FilterOptions)
async def get_filter_options(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.read")),
):
    return await fixture_view.get_filter_options(db, caller)


@router.get("/", response_model=list[FixtureOut])
async def list_fixtures(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.read")),
):
    return await fixtures.list_fixtures(db, caller)


@router.post("/", response_model=FixtureOut, status_code=201)
async def create_fixture(
    body: FixtureCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.write")),
):
    return await fixtures.create_fixture(db, caller, body)


@router.get("/{fixture_id}", response_model=FixtureDetails)
async def get_fixture(
    fixture_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.read")),
):
    return await fixture_view.get_fixture_details(db, caller, fixture_id)


@router.patch("/{fixture_id}", response_model=FixtureOut)
async def update_fixture(
    fixture_id: str,
    body: FixtureUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.write")),
):
    return await fixtures.update_fixture(db, caller, fixture_id, body)


@router.delete("/{fixture_id}", status_code=204)
async def delete_fixture(
    fixture_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.write")),
):
    await fixtures.delete_fixture(db, caller, fixture_id)


@router.post("/{fixture_id}/recompute", response_model=FixtureOut)
async def recompute_fixture(
    fixture_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("fixtures.write")),
):
    return await fixtures.recompute_fixture(db, caller, fixture_id)
