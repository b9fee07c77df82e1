"""Best-effort enrichment results.

Lookups that only decorate a response (avatar URLs, the activity snapshot)
return an Enrichment instead of raising. Call sites collapse it with
`.optional()`, which logs the failure once and yields None.

    snapshot = (await build_negotiation_snapshot(db, neg_id)).optional()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, TypeVar, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from charterdesk.config import settings
from charterdesk.models.user import User
from charterdesk.schemas.auth import UserSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def optional(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failed:
    reason: str
    error: Exception | None = None

    def optional(self) -> None:
        logger.warning("Enrichment skipped: %s", self.reason, exc_info=self.error)
        return None


Enrichment = Union[Ok[T], Failed]


async def guarded(
    db: AsyncSession, reason: str, load: Callable[[], Awaitable[T]]
) -> Enrichment[T]:
    """Run a best-effort read inside a savepoint.

    A database error rolls back only the savepoint, so the request
    transaction stays usable for the write that asked for the read.
    Pending writes are flushed first and raise normally.
    """
    await db.flush()
    try:
        async with db.begin_nested():
            return Ok(await load())
    except SQLAlchemyError as e:
        return Failed(reason, e)


def resolve_storage_url(storage_id: str | None) -> Enrichment[str | None]:
    """Turn an opaque storage id into a public URL.

    A record without an avatar is not a failure; a configured storage
    without a base URL is.
    """
    if not storage_id:
        return Ok(None)
    if storage_id.startswith(("http://", "https://")):
        return Ok(storage_id)
    base = settings.storage_public_base_url
    if not base:
        return Failed(f"no public storage URL configured for {storage_id}")
    return Ok(f"{base.rstrip('/')}/{storage_id}")


def storage_url(storage_id: str | None) -> str | None:
    return resolve_storage_url(storage_id).optional()


avatar_url = storage_url


async def fetch_user_summaries(
    db: AsyncSession, user_ids: Iterable[str | None]
) -> Enrichment[dict[str, UserSummary]]:
    """Batch-load {id, name, email, avatar_url} for display.

    Missing users are simply absent from the mapping.
    """
    ids = {uid for uid in user_ids if uid}
    if not ids:
        return Ok({})
    async def load() -> list[User]:
        return list((await db.scalars(select(User).where(User.id.in_(ids)))).all())

    loaded = await guarded(db, "user lookup failed", load)
    if isinstance(loaded, Failed):
        return loaded
    return Ok({
        user.id: UserSummary(
            id=user.id,
            name=user.name,
            email=user.email,
            avatar_url=avatar_url(user.avatar_storage_id),
        )
        for user in loaded.value
    })


async def user_summaries(db: AsyncSession, user_ids: Iterable[str | None]) -> dict[str, UserSummary]:
    return (await fetch_user_summaries(db, user_ids)).optional() or {}
