"""Shared number generation for trading entities.

Display numbers are a fixed prefix plus five random digits:

  fixture:   FIX12345
  order:     ORD12345
  negotiation: NEG12345
  contract:  CP12345
  recap:     RCP12345
  addendum:  ADD12345

A candidate is checked against the target column before it is returned;
on collision another one is drawn. The unique index on each column still
guards against two concurrent requests drawing the same number.
"""

import random

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

PREFIXES = {
    "fixture": "FIX",
    "order": "ORD",
    "negotiation": "NEG",
    "contract": "CP",
    "recap": "RCP",
    "addendum": "ADD",
}

MAX_ATTEMPTS = 20


def _candidate(prefix: str) -> str:
    return f"{prefix}{random.randint(10000, 99999)}"


async def generate_number(db: AsyncSession, column, entity: str) -> str:
    """Generate a number for `entity` that is not yet used in `column`.

    Args:
        db: Database session
        column: Mapped column holding the numbers, e.g. Contract.contract_number
        entity: One of the PREFIXES keys

    Raises:
        RuntimeError if no free number was found in MAX_ATTEMPTS draws.
    """
    prefix = PREFIXES[entity]
    for _ in range(MAX_ATTEMPTS):
        candidate = _candidate(prefix)
        taken = await db.scalar(select(column).where(column == candidate).limit(1))
        if taken is None:
            return candidate
    raise RuntimeError(f"Could not allocate a unique {entity} number")
