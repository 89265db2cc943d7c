"""
Aggregation Query Tests

Tests the public totals and the admin database view on shared and
separate databases.

Example usage:
    pytest tests/test_stats.py -v
"""

from datetime import datetime, timezone

from core.models import DatabaseStats, TotalStats
from tests.helpers import row_major_pattern


class TestTotalStats:

    async def test_empty_database(self, services):
        assert await services.queries.get_total_stats() == TotalStats()

    async def test_counts(self, services, clock):
        await services.coordinator.submit(row_major_pattern(80), contributor="alice")
        await services.coordinator.submit(row_major_pattern(81), contributor="alice")
        await services.coordinator.submit(row_major_pattern(82), contributor="bob")
        await services.coordinator.submit(row_major_pattern(83))

        stats = await services.queries.get_total_stats()

        assert stats.total_submissions == 4
        assert stats.total_contributors == 2
        assert stats.recent_submissions == 4

    async def test_recent_counts_current_month_only(self, services, clock):
        await services.coordinator.submit_pattern(row_major_pattern(80))
        await services.coordinator.submit_pattern(row_major_pattern(81))

        clock.set(datetime(2025, 9, 2, 8, 0, tzinfo=timezone.utc))
        await services.coordinator.submit_pattern(row_major_pattern(82))

        stats = await services.queries.get_total_stats()
        assert stats.total_submissions == 3
        assert stats.recent_submissions == 1

        clock.set(datetime(2025, 10, 1, tzinfo=timezone.utc))
        stats = await services.queries.get_total_stats()
        assert stats.recent_submissions == 0

    async def test_separate_databases(self, split_services):
        await split_services.coordinator.submit(row_major_pattern(80), contributor="alice")
        await split_services.coordinator.submit(row_major_pattern(81))

        stats = await split_services.queries.get_total_stats()

        assert stats == TotalStats(total_submissions=2, total_contributors=1, recent_submissions=2)


class TestDatabaseStats:

    async def test_empty_database(self, services):
        stats = await services.queries.get_database_stats()

        assert stats.total_submissions == 0
        assert stats.total_contributors == 0
        assert stats.oldest_submission is None
        assert stats.newest_submission is None
        assert stats.database_size_kb >= 0

    async def test_time_range_and_size(self, services, clock):
        first_at = clock()
        await services.coordinator.submit(row_major_pattern(80), contributor="alice")
        last_at = clock.advance(3600)
        await services.coordinator.submit(row_major_pattern(81))

        stats = await services.queries.get_database_stats()

        assert isinstance(stats, DatabaseStats)
        assert stats.total_submissions == 2
        assert stats.total_contributors == 1
        assert stats.oldest_submission == first_at.isoformat()
        assert stats.newest_submission == last_at.isoformat()
        assert stats.database_size_kb > 0

    async def test_separate_databases_sum_sizes(self, split_services):
        await split_services.coordinator.submit(row_major_pattern(80), contributor="alice")

        stats = await split_services.queries.get_database_stats()

        assert stats.total_submissions == 1
        assert stats.total_contributors == 1
        assert stats.database_size_kb > 0
