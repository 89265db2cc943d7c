"""
Ingestion Coordinator

Validates incoming patterns, computes their features, writes the anonymous
submission and, when the contributor opted in, bumps their ledger count.
Also owns the administrative reset of both stores.

Example usage:
    coordinator = IngestionCoordinator(store, ledger)
    result = await coordinator.submit(points, contributor="octocat")
    print(result.record.id, result.ledger_entry.contribution_count)
"""

from typing import Any, Iterable, Optional

from sqlalchemy import text

from core.config import DEFAULT_GRID_SIZE, MAX_POINTS, MIN_POINTS
from core.db import Database
from core.errors import ConsistencyError, StorageError
from core.features import compute_features
from core.ledger import ContributionLedger
from core.logging import get_logger
from core.models import LedgerEntry, SubmissionRecord, SubmissionResult
from core.models_sql import LEDGER_TABLES, SUBMISSION_TABLES
from core.store import SubmissionStore
from core.validation import validate_identity, validate_pattern

logger = get_logger(__name__)


async def _empty_tables(db: Database, tables) -> None:
    """Remove every row from ``tables`` in a single transaction."""
    names = [table.name for table in tables]
    async with db.transaction("reset stores") as session:
        if db.dialect == "postgresql":
            await session.execute(text(f"TRUNCATE TABLE {', '.join(names)} RESTART IDENTITY"))
        else:
            for name in names:
                await session.execute(text(f"DELETE FROM {name}"))


class IngestionCoordinator:
    """Entry point for every write to the submission store and the ledger."""

    def __init__(
        self,
        store: SubmissionStore,
        ledger: ContributionLedger,
        grid_size: int = DEFAULT_GRID_SIZE,
        min_points: int = MIN_POINTS,
        max_points: int = MAX_POINTS,
    ):
        self.store = store
        self.ledger = ledger
        self.grid_size = grid_size
        self.min_points = min_points
        self.max_points = max_points

    @property
    def shared_database(self) -> bool:
        return self.store.db is self.ledger.db

    def _validate(self, points: Iterable[Any]):
        return validate_pattern(
            points,
            grid_size=self.grid_size,
            min_points=self.min_points,
            max_points=self.max_points,
        )

    async def submit_pattern(self, points: Iterable[Any], opted_in_for_credit: bool = True) -> SubmissionRecord:
        """
        Store one anonymous pattern.

        Raises:
            ValidationError: if the pattern breaks a submission constraint
            StorageError: if the write fails (nothing is stored)
        """
        coords = self._validate(points)
        features = compute_features(coords, grid_size=self.grid_size)
        return await self.store.create(coords, features, opted_in_for_credit)

    async def record_contribution(self, identity: str, opted_out: bool = False) -> LedgerEntry:
        """Credit one contribution to ``identity``; not linked to any submission."""
        return await self.ledger.increment(identity, opted_out=opted_out)

    async def submit(
        self,
        points: Iterable[Any],
        opted_in_for_credit: bool = True,
        contributor: Optional[str] = None,
        opted_out: bool = False,
    ) -> SubmissionResult:
        """
        Store a pattern and, if credit is wanted, update the ledger.

        The ledger is touched only when ``opted_in_for_credit`` is true and a
        contributor identity is given. When both tables share a database the
        two writes commit or roll back together. With a separate ledger
        database the pattern is committed first; if the ledger write then
        fails a ``ConsistencyError`` reports the stored submission id.
        """
        coords = self._validate(points)
        credit = opted_in_for_credit and contributor is not None
        if credit:
            contributor = validate_identity(contributor)
        features = compute_features(coords, grid_size=self.grid_size)

        if not credit:
            record = await self.store.create(coords, features, opted_in_for_credit)
            return SubmissionResult(record=record)

        if self.shared_database:
            async with self.store.db.transaction("store credited submission") as session:
                record = await self.store.add(session, coords, features, opted_in_for_credit)
                entry = await self.ledger.increment_in(session, contributor, opted_out)
            logger.info(
                f"Stored submission {record.id}",
                extra={"submission_id": record.id, "n_points": features.n_points}
            )
            logger.info(
                "Contribution recorded",
                extra={"contribution_count": entry.contribution_count, "opted_out": entry.opted_out}
            )
            return SubmissionResult(record=record, ledger_entry=entry)

        record = await self.store.create(coords, features, opted_in_for_credit)
        try:
            entry = await self.ledger.increment(contributor, opted_out=opted_out)
        except StorageError as e:
            raise ConsistencyError(
                f"Submission {record.id} was stored but the contribution was not recorded",
                submission_id=record.id
            ) from e
        return SubmissionResult(record=record, ledger_entry=entry)

    async def reset_all(self) -> None:
        """
        Irrecoverably empty both stores.

        Tables are created first if missing. Each database is emptied in one
        transaction, so readers see either all rows or none.
        """
        if self.shared_database:
            db = self.store.db
            await db.create_tables(SUBMISSION_TABLES + LEDGER_TABLES)
            await _empty_tables(db, SUBMISSION_TABLES + LEDGER_TABLES)
        else:
            for db, tables in ((self.store.db, SUBMISSION_TABLES), (self.ledger.db, LEDGER_TABLES)):
                await db.create_tables(tables)
                await _empty_tables(db, tables)
        logger.warning("All submissions and ledger entries were deleted")
