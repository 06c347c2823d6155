from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from jobqueue.adapters import models  # noqa: F401
from jobqueue.adapters.base import BaseAdapter
from jobqueue.adapters.sql import SQLAlchemyAdapter
from jobqueue.config.settings import Settings
from jobqueue.core.registries import JobRegistry
from jobqueue.infra.database import Database
from jobqueue.jobs.schemas import ClaimedJob


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back without tzinfo; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def make_claimed_job(**overrides) -> ClaimedJob:
    data = {
        "id": 1,
        "attempts": 1,
        "handler": '{"name": "greet", "path": "app.jobs", "args": []}',
        "queue": "default",
        "priority": 50,
        "name": "greet",
        "path": "app.jobs",
        "args": [],
    }
    data.update(overrides)
    return ClaimedJob(**data)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'jobs.db'}",
    )


@pytest.fixture
async def database(settings):
    """A database with the job table created, disposed after the test."""
    database = Database(settings)
    await database.create_all()
    yield database
    await database.close()


@pytest.fixture
def mock_logger():
    return MagicMock()


@pytest.fixture
def adapter(database, mock_logger) -> SQLAlchemyAdapter:
    return SQLAlchemyAdapter(database, logger=mock_logger)


@pytest.fixture
def mock_adapter():
    """Adapter double; async contract methods become AsyncMocks through spec=BaseAdapter."""
    adapter = MagicMock(spec=BaseAdapter)
    adapter.find.return_value = None
    adapter.backoff_milliseconds.side_effect = lambda attempts: 1000 * attempts**4
    return adapter


@pytest.fixture
def registry() -> JobRegistry:
    return JobRegistry()
