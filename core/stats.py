"""
Aggregation Queries

Read-only views over the submission store and the contribution ledger:
the public totals shown next to the leaderboard and the admin monitoring
view.
"""

from typing import Optional

from sqlalchemy import func, select, text

from core.db import Database
from core.logging import get_logger
from core.models import DatabaseStats, TotalStats
from core.models_sql import ContributionLedgerEntry, Submission
from core.timestamp import Clock, ensure_utc, timestamp_bucket, utc_now

logger = get_logger(__name__)


def _submission_count():
    return select(func.count()).select_from(Submission).scalar_subquery()


def _contributor_count():
    return (
        select(func.count())
        .select_from(ContributionLedgerEntry)
        .where(ContributionLedgerEntry.contribution_count > 0)
        .scalar_subquery()
    )


def _recent_count(bucket: str):
    return (
        select(func.count())
        .select_from(Submission)
        .where(Submission.timestamp_bucket == bucket)
        .scalar_subquery()
    )


async def _database_size_bytes(db: Database, session) -> int:
    if db.dialect == "sqlite":
        page_count = (await session.execute(text("PRAGMA page_count"))).scalar() or 0
        page_size = (await session.execute(text("PRAGMA page_size"))).scalar() or 0
        return int(page_count) * int(page_size)
    if db.dialect == "postgresql":
        size = (await session.execute(text("SELECT pg_database_size(current_database())"))).scalar()
        return int(size or 0)
    return 0


def _iso(value) -> Optional[str]:
    return ensure_utc(value).isoformat() if value is not None else None


class AggregationQueries:
    """Totals and monitoring stats across both stores."""

    def __init__(self, submissions_db: Database, ledger_db: Database, clock: Clock = utc_now):
        self.submissions_db = submissions_db
        self.ledger_db = ledger_db
        self.clock = clock

    @property
    def shared_database(self) -> bool:
        return self.submissions_db is self.ledger_db

    async def get_total_stats(self) -> TotalStats:
        """
        Submission total, active contributors and submissions this month.

        With a shared database the three counts come from one SELECT, so they
        always describe the same moment even while a write is in flight.
        """
        bucket = timestamp_bucket(self.clock())

        if self.shared_database:
            query = select(
                _submission_count().label("total_submissions"),
                _contributor_count().label("total_contributors"),
                _recent_count(bucket).label("recent_submissions"),
            )
            async with self.submissions_db.transaction("load total stats") as session:
                row = (await session.execute(query)).one()
            return TotalStats(
                total_submissions=row.total_submissions,
                total_contributors=row.total_contributors,
                recent_submissions=row.recent_submissions,
            )

        query = select(
            _submission_count().label("total_submissions"),
            _recent_count(bucket).label("recent_submissions"),
        )
        async with self.submissions_db.transaction("load submission stats") as session:
            row = (await session.execute(query)).one()
        async with self.ledger_db.transaction("load contributor stats") as session:
            contributors = (await session.execute(select(_contributor_count()))).scalar_one()
        return TotalStats(
            total_submissions=row.total_submissions,
            total_contributors=contributors,
            recent_submissions=row.recent_submissions,
        )

    async def get_database_stats(self) -> DatabaseStats:
        """Admin view: totals, storage footprint and submission time range."""
        query = select(
            _submission_count().label("total_submissions"),
            select(func.min(Submission.created_at)).scalar_subquery().label("oldest"),
            select(func.max(Submission.created_at)).scalar_subquery().label("newest"),
        )
        async with self.submissions_db.transaction("load database stats") as session:
            row = (await session.execute(query)).one()
            size_bytes = await _database_size_bytes(self.submissions_db, session)

        async with self.ledger_db.transaction("load ledger stats") as session:
            contributors = (await session.execute(select(_contributor_count()))).scalar_one()
            if not self.shared_database:
                size_bytes += await _database_size_bytes(self.ledger_db, session)

        return DatabaseStats(
            total_submissions=row.total_submissions,
            total_contributors=contributors,
            database_size_kb=round(size_bytes / 1024),
            oldest_submission=_iso(row.oldest),
            newest_submission=_iso(row.newest),
        )
