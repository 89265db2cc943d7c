"""
SQLModel database tables for DotPrint

Two independent tables:
- ``submissions``: anonymous pattern content and derived features
- ``contribution_ledger``: per-contributor counts

There is no foreign key, shared key or join column between
them, so a stored pattern cannot be traced back to whoever drew it.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field, SQLModel

from core.timestamp import utc_now


class Submission(SQLModel, table=True):
    __tablename__ = "submissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    points: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    label: str = Field(default="human")
    grid_size: str = Field(default="32x32")
    features: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    timestamp_bucket: str = Field(index=True)  # Format: "2025-08"
    opted_in_for_credit: bool = Field(default=True)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class ContributionLedgerEntry(SQLModel, table=True):
    __tablename__ = "contribution_ledger"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    contribution_count: int = Field(default=0)
    opted_out: bool = Field(default=False)
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )


SUBMISSION_TABLES = [Submission.__table__]
LEDGER_TABLES = [ContributionLedgerEntry.__table__]
