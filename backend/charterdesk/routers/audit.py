"""Audit trail routes.

Endpoints:
    GET  /api/audit/field-changes/recent                     Latest field changes
    GET  /api/audit/field-changes/by-user/{user_id}          Field changes by a user
    GET  /api/audit/field-changes/{entity_type}/{entity_id}  Field changes of an entity
    POST /api/audit/field-changes                            Log a field change
    GET  /api/audit/activity/recent                          Latest activity
    GET  /api/audit/activity/by-user/{user_id}               Activity by a user
    GET  /api/audit/activity/{entity_type}/{entity_id}       Activity of an entity
    POST /api/audit/activity                                 Log an activity entry

All reads are newest first and carry the acting user's name/email.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.auth.caller import Caller
from charterdesk.auth.deps import require_permission
from charterdesk.database import get_db
from charterdesk.schemas.audit import (
    ActivityCreate,
    ActivityLogOut,
    FieldChangeCreate,
    FieldChangeOut,
)
from charterdesk.services import audit

router = APIRouter()


# ── Field changes ───────────────────────────────────────────

@router.get("/field-changes/recent", response_model=list[FieldChangeOut])
async def recent_field_changes(
    limit: int = Query(audit.DEFAULT_LIMIT, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("audit.read")),
):
    return await audit.get_recent_field_changes(db, limit=limit)


@router.get("/field-changes/by-user/{user_id}", response_model=list[FieldChangeOut])
async def field_changes_by_user(
    user_id: str,
    limit: int = Query(audit.DEFAULT_LIMIT, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("audit.read")),
):
    return await audit.get_field_changes_by_user(db, user_id, limit=limit)


@router.get("/field-changes/{entity_type}/{entity_id}", response_model=list[FieldChangeOut])
async def field_changes_for_entity(
    entity_type: str,
    entity_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("audit.read")),
):
    return await audit.get_field_changes(db, entity_type, entity_id)


@router.post("/field-changes", response_model=FieldChangeOut, status_code=201)
async def log_field_change(
    body: FieldChangeCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("audit.write")),
):
    return await audit.log_field_change(db, caller.user_id, body)


# ── Activity ────────────────────────────────────────────────

@router.get("/activity/recent", response_model=list[ActivityLogOut])
async def recent_activity(
    limit: int = Query(audit.DEFAULT_LIMIT, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("audit.read")),
):
    return await audit.get_recent_activity(db, limit=limit)


@router.get("/activity/by-user/{user_id}", response_model=list[ActivityLogOut])
async def activity_by_user(
    user_id: str,
    limit: int = Query(audit.DEFAULT_LIMIT, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("audit.read")),
):
    return await audit.get_activity_by_user(db, user_id, limit=limit)


@router.get("/activity/{entity_type}/{entity_id}", response_model=list[ActivityLogOut])
async def activity_for_entity(
    entity_type: str,
    entity_id: str,
    db: AsyncSession = Depends(get_db),
    _caller: Caller = Depends(require_permission("audit.read")),
):
    return await audit.get_activity_log(db, entity_type, entity_id)


@router.post("/activity", response_model=ActivityLogOut, status_code=201)
async def log_activity(
    body: ActivityCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_permission("audit.write")),
):
    return await audit.log_activity(db, caller.user_id, body)
