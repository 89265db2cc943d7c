"""
DotPrint Test Configuration and Shared Fixtures

Every test that touches storage gets its own SQLite file under ``tmp_path``.

Example usage:
    async def test_store(services, clock):
        record = await services.coordinator.submit_pattern(row_major_pattern(80))
"""

from datetime import datetime, timezone

import pytest

from core.config import Settings
from core.services import Services
from tests.helpers import FakeClock

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'dotprint.db'}",
        admin_token=ADMIN_TOKEN,
    )


@pytest.fixture
def split_settings(tmp_path) -> Settings:
    """Settings with the ledger in a separate database file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'submissions.db'}",
        ledger_database_url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        admin_token=ADMIN_TOKEN,
    )


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at mid-August 2025 until advanced."""
    return FakeClock(datetime(2025, 8, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
async def services(settings, clock):
    """Initialized services on a fresh database."""
    services = Services.from_settings(settings, clock=clock)
    await services.init()
    yield services
    await services.dispose()


@pytest.fixture
async def split_services(split_settings, clock):
    """Initialized services with submissions and ledger in separate databases."""
    services = Services.from_settings(split_settings, clock=clock)
    await services.init()
    yield services
    await services.dispose()
