"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime

import pytest

from taskpulse.domain.create_models import TaskCreate
from taskpulse.services import analytics_service, progress_service, task_service
from tests.unit.mocks import InMemoryDBClient


FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)  # a Friday


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches taskpulse.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("taskpulse.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("taskpulse.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr(
        "taskpulse.core.db_client.compare_and_update_record", in_memory_db.compare_and_update_record
    )
    monkeypatch.setattr("taskpulse.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("taskpulse.core.db_client.list_records", in_memory_db.list_records)

    return in_memory_db


@pytest.fixture
def fixed_now(monkeypatch):
    """Pins the service clocks to FIXED_NOW."""
    monkeypatch.setattr(progress_service, "_utcnow", lambda: FIXED_NOW)
    monkeypatch.setattr(analytics_service, "_utcnow", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture
def sample_task_data():
    """Returns sample task creation data for testing."""
    return {
        "title": "Prepare quarterly report",
        "description": "Collect figures from every team",
        "priority": "high",
        "assignee_ids": ["alice", "bob"],
    }


@pytest.fixture
async def sample_task(patched_db, sample_task_data):
    """Creates a task assigned to alice and bob."""
    return await task_service.create_task(params=TaskCreate(**sample_task_data))
