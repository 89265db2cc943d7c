"""
Contribution Ledger

Tracks how many patterns each contributor has submitted, keyed by identity.
This is the only table that holds identities, and it never stores or
returns anything about individual submissions.
"""

from typing import List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from core.db import Database
from core.errors import StorageError
from core.logging import get_logger
from core.models import LeaderboardRow, LedgerEntry
from core.models_sql import ContributionLedgerEntry
from core.timestamp import Clock, ensure_utc, utc_now
from core.validation import validate_identity, validate_limit

logger = get_logger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def to_entry(row: ContributionLedgerEntry) -> LedgerEntry:
    return LedgerEntry(
        username=row.username,
        contribution_count=row.contribution_count,
        opted_out=row.opted_out,
        updated_at=ensure_utc(row.updated_at),
    )


class ContributionLedger:
    """Reads and writes the ``contribution_ledger`` table."""

    def __init__(self, db: Database, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    async def increment_in(
        self,
        session: AsyncSession,
        identity: str,
        opted_out: bool = False,
    ) -> LedgerEntry:
        """
        Add one contribution for ``identity`` inside an open transaction.

        A single ``INSERT .. ON CONFLICT DO UPDATE`` creates the entry with a
        count of 1 or bumps the existing count, so concurrent increments for
        the same identity cannot lose updates. ``opted_out`` is overwritten
        on every call.
        """
        identity = validate_identity(identity)
        insert = _UPSERT_DIALECTS.get(self.db.dialect)
        if insert is None:
            raise StorageError(f"Ledger upsert is not supported on {self.db.dialect}")

        table = ContributionLedgerEntry.__table__
        stmt = insert(table).values(
            username=identity,
            contribution_count=1,
            opted_out=opted_out,
            updated_at=self.clock(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.username],
            set_={
                "contribution_count": table.c.contribution_count + 1,
                "opted_out": stmt.excluded.opted_out,
                "updated_at": stmt.excluded.updated_at,
            }
        )
        await session.execute(stmt)

        result = await session.execute(
            select(ContributionLedgerEntry)
            .where(ContributionLedgerEntry.username == identity)
            .execution_options(populate_existing=True)
        )
        return to_entry(result.scalar_one())

    async def increment(self, identity: str, opted_out: bool = False) -> LedgerEntry:
        """Add one contribution for ``identity`` in its own transaction."""
        async with self.db.transaction("increment ledger") as session:
            entry = await self.increment_in(session, identity, opted_out)
        logger.info(
            "Contribution recorded",
            extra={"contribution_count": entry.contribution_count, "opted_out": entry.opted_out}
        )
        return entry

    async def get(self, identity: str) -> Optional[LedgerEntry]:
        """Current ledger state for one identity, or None if never credited."""
        identity = validate_identity(identity)
        async with self.db.transaction("load ledger entry") as session:
            result = await session.execute(
                select(ContributionLedgerEntry)
                .where(ContributionLedgerEntry.username == identity)
            )
            row = result.scalar_one_or_none()
            return to_entry(row) if row else None

    async def get_leaderboard(self, limit: int = 10) -> List[LeaderboardRow]:
        """
        Top contributors who have not opted out.

        Ordered by count (highest first); equal counts rank the entry that
        reached its count earliest first.

        Raises:
            ValidationError: if ``limit`` is outside [1, 100]
        """
        limit = validate_limit(limit)
        query = (
            select(ContributionLedgerEntry.username, ContributionLedgerEntry.contribution_count)
            .where(
                ContributionLedgerEntry.opted_out == False,  # noqa: E712
                ContributionLedgerEntry.contribution_count > 0,
            )
            .order_by(
                ContributionLedgerEntry.contribution_count.desc(),
                ContributionLedgerEntry.updated_at.asc(),
                ContributionLedgerEntry.id.asc(),
            )
            .limit(limit)
        )
        async with self.db.transaction("load leaderboard") as session:
            result = await session.execute(query)
            return [
                LeaderboardRow(identity=username, contribution_count=count)
                for username, count in result.all()
            ]
