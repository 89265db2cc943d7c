"""
Submission Store

Append-only storage of anonymous patterns and their features. Nothing in
this module accepts or returns a contributor identity.
"""

from typing import List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from core.db import Database
from core.logging import get_logger
from core.models import Coordinate, FeatureVector, SubmissionRecord
from core.models_sql import Submission
from core.timestamp import Clock, ensure_utc, timestamp_bucket, utc_now

logger = get_logger(__name__)

HUMAN_LABEL = "human"


def to_record(row: Submission) -> SubmissionRecord:
    """Convert a table row into the immutable record model."""
    return SubmissionRecord(
        id=row.id,
        points=[Coordinate(x=p["x"], y=p["y"]) for p in row.points],
        label=row.label,
        grid_size=row.grid_size,
        features=FeatureVector(**row.features),
        timestamp_bucket=row.timestamp_bucket,
        opted_in_for_credit=row.opted_in_for_credit,
        created_at=ensure_utc(row.created_at),
    )


class SubmissionStore:
    """Reads and writes the ``submissions`` table."""

    def __init__(self, db: Database, grid_label: str = "32x32", clock: Clock = utc_now):
        self.db = db
        self.grid_label = grid_label
        self.clock = clock

    async def add(
        self,
        session: AsyncSession,
        points: Sequence[Tuple[int, int]],
        features: FeatureVector,
        opted_in_for_credit: bool,
    ) -> SubmissionRecord:
        """
        Stage a submission in an open transaction and return its record.

        The caller owns the transaction; the row is flushed so its id is
        known, but nothing is committed here.
        """
        now = self.clock()
        row = Submission(
            points=[{"x": x, "y": y} for x, y in points],
            label=HUMAN_LABEL,
            grid_size=self.grid_label,
            features=features.as_dict(),
            timestamp_bucket=timestamp_bucket(now),
            opted_in_for_credit=opted_in_for_credit,
            created_at=now,
        )
        session.add(row)
        await session.flush()
        return to_record(row)

    async def create(
        self,
        points: Sequence[Tuple[int, int]],
        features: FeatureVector,
        opted_in_for_credit: bool,
    ) -> SubmissionRecord:
        """Persist one submission in its own transaction."""
        async with self.db.transaction("store submission") as session:
            record = await self.add(session, points, features, opted_in_for_credit)
        logger.info(
            f"Stored submission {record.id}",
            extra={"submission_id": record.id, "n_points": features.n_points}
        )
        return record

    async def get(self, submission_id: int) -> Optional[SubmissionRecord]:
        async with self.db.transaction("load submission") as session:
            row = await session.get(Submission, submission_id)
            return to_record(row) if row else None

    async def list_records(self, limit: Optional[int] = None) -> List[SubmissionRecord]:
        """All submissions in insertion order, oldest first."""
        query = select(Submission).order_by(Submission.id)
        if limit is not None:
            query = query.limit(limit)
        async with self.db.transaction("list submissions") as session:
            result = await session.execute(query)
            return [to_record(row) for row in result.scalars().all()]
