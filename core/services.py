"""Wiring of databases, stores and queries from Settings."""

from dataclasses import dataclass

from core.config import Settings
from core.db import Database
from core.ingest import IngestionCoordinator
from core.ledger import ContributionLedger
from core.logging import get_logger
from core.models_sql import LEDGER_TABLES, SUBMISSION_TABLES
from core.stats import AggregationQueries
from core.store import SubmissionStore
from core.timestamp import Clock, utc_now

logger = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    submissions_db: Database
    ledger_db: Database
    store: SubmissionStore
    ledger: ContributionLedger
    queries: AggregationQueries
    coordinator: IngestionCoordinator

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utc_now) -> "Services":
        submissions_db = Database(settings.database_url, echo=settings.db_echo)
        if settings.ledger_database_url:
            ledger_db = Database(settings.ledger_database_url, echo=settings.db_echo)
        else:
            ledger_db = submissions_db

        store = SubmissionStore(submissions_db, grid_label=settings.grid_label, clock=clock)
        ledger = ContributionLedger(ledger_db, clock=clock)
        return cls(
            settings=settings,
            submissions_db=submissions_db,
            ledger_db=ledger_db,
            store=store,
            ledger=ledger,
            queries=AggregationQueries(submissions_db, ledger_db, clock=clock),
            coordinator=IngestionCoordinator(
                store,
                ledger,
                grid_size=settings.grid_size,
                min_points=settings.min_points,
                max_points=settings.max_points,
            ),
        )

    async def init(self) -> None:
        """Create missing tables. Should be called once at startup."""
        if self.ledger_db is self.submissions_db:
            await self.submissions_db.create_tables(SUBMISSION_TABLES + LEDGER_TABLES)
        else:
            await self.submissions_db.create_tables(SUBMISSION_TABLES)
            await self.ledger_db.create_tables(LEDGER_TABLES)
        logger.info("Database initialized", extra={"dialect": self.submissions_db.dialect})

    async def dispose(self) -> None:
        await self.submissions_db.dispose()
        if self.ledger_db is not self.submissions_db:
            await self.ledger_db.dispose()
