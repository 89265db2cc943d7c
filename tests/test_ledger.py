"""
Contribution Ledger Tests

Tests per-identity counting, opt-out handling and leaderboard ordering
against a real SQLite database.

Example usage:
    pytest tests/test_ledger.py -v
"""

import asyncio

import pytest

from core.errors import ValidationError
from core.models_sql import ContributionLedgerEntry


class TestIncrement:
    """Test creation and growth of ledger entries."""

    async def test_first_increment_creates_entry(self, services, clock):
        entry = await services.ledger.increment("alice")

        assert entry.username == "alice"
        assert entry.contribution_count == 1
        assert entry.opted_out is False
        assert entry.updated_at == clock()

    async def test_repeat_increments_accumulate(self, services, clock):
        await services.ledger.increment("alice")
        clock.advance(60)
        entry = await services.ledger.increment("alice")

        assert entry.contribution_count == 2
        assert entry.updated_at == clock()
        assert (await services.ledger.get("alice")).contribution_count == 2

    async def test_opted_out_follows_latest_call(self, services):
        await services.ledger.increment("alice", opted_out=True)
        entry = await services.ledger.increment("alice", opted_out=False)
        assert entry.opted_out is False

        entry = await services.ledger.increment("alice", opted_out=True)
        assert entry.opted_out is True
        assert entry.contribution_count == 3

    async def test_identities_are_not_normalized(self, services):
        await services.ledger.increment("alice")
        await services.ledger.increment("alice ")
        await services.ledger.increment("alice ")

        assert (await services.ledger.get("alice")).contribution_count == 1
        spaced = await services.ledger.get("alice ")
        assert spaced.username == "alice "
        assert spaced.contribution_count == 2

    async def test_unknown_identity_returns_none(self, services):
        assert await services.ledger.get("nobody") is None

    async def test_invalid_identity_rejected(self, services):
        with pytest.raises(ValidationError) as exc_info:
            await services.ledger.increment("   ")
        assert exc_info.value.constraint == "identity"

    async def test_concurrent_increments_are_not_lost(self, services):
        await asyncio.gather(*(services.ledger.increment("busy") for _ in range(5)))

        entry = await services.ledger.get("busy")
        assert entry.contribution_count == 5

    def test_ledger_holds_no_submission_reference(self):
        columns = set(ContributionLedgerEntry.__table__.columns.keys())
        assert columns == {"id", "username", "contribution_count", "opted_out", "updated_at"}
        assert not ContributionLedgerEntry.__table__.foreign_keys


class TestLeaderboard:
    """Test ranking, filtering and limits."""

    async def test_ordered_by_count_then_earliest(self, services, clock):
        # A reaches 5 before B does; C reaches 7; D trails and falls off the top 3
        for identity, count in [("A", 5), ("B", 5), ("C", 7), ("D", 1)]:
            for _ in range(count):
                clock.advance(1)
                await services.ledger.increment(identity)

        rows = await services.ledger.get_leaderboard(3)

        assert [(r.identity, r.contribution_count) for r in rows] == [("C", 7), ("A", 5), ("B", 5)]

    async def test_limit_truncates(self, services, clock):
        for identity in ["A", "B", "C"]:
            clock.advance(1)
            await services.ledger.increment(identity)

        rows = await services.ledger.get_leaderboard(2)
        assert [r.identity for r in rows] == ["A", "B"]

    async def test_opted_out_entries_hidden(self, services, clock):
        await services.ledger.increment("visible")
        clock.advance(1)
        await services.ledger.increment("hidden", opted_out=True)
        await services.ledger.increment("hidden", opted_out=True)

        rows = await services.ledger.get_leaderboard(10)
        assert [r.identity for r in rows] == ["visible"]

        # Opting back in restores the entry with its full count
        await services.ledger.increment("hidden", opted_out=False)
        rows = await services.ledger.get_leaderboard(10)
        assert [(r.identity, r.contribution_count) for r in rows] == [("hidden", 3), ("visible", 1)]

    async def test_empty_ledger(self, services):
        assert await services.ledger.get_leaderboard(10) == []

    @pytest.mark.parametrize("limit", [0, 101])
    async def test_limit_out_of_range(self, services, limit):
        with pytest.raises(ValidationError) as exc_info:
            await services.ledger.get_leaderboard(limit)
        assert exc_info.value.constraint == "limit"
