"""Shared test fixtures."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db() -> AsyncMock:
    """Mock AsyncSession: commit/rollback/execute are awaitable."""
    return AsyncMock()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW
