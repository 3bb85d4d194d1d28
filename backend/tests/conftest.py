"""Shared fixtures for tests.

Design goal: avoid async fixture loop injection and keep test boundaries explicit.
"""
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

# Must be set before importing app modules.
os.environ["TASK_STORE_URL"] = "https://store.test"
os.environ["TASK_STORE_ANON_KEY"] = "anon_key"
os.environ["AUTOMATION_WEBHOOK_URL"] = "https://automation.test/webhook/todo"

from api.main import app, get_automation_client, get_task_store
from common.records import TaskRecord

BASE_TIME = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_task():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        values = {
            "id": f"task_{n}",
            "user_identifier": "alice",
            "title": f"Task {n}",
            "description": None,
            "completed": False,
            "created_at": BASE_TIME + timedelta(minutes=n),
            "updated_at": BASE_TIME + timedelta(minutes=n),
        }
        values.update(overrides)
        return TaskRecord(**values)

    return _make


@pytest.fixture
def mock_store(make_task):
    store = AsyncMock()
    store.create_task = AsyncMock(side_effect=lambda payload: make_task(
        user_identifier=payload.user_identifier,
        title=payload.title,
        description=payload.description,
        completed=payload.completed,
    ))
    store.list_tasks = AsyncMock(return_value=[])
    store.delete_task = AsyncMock(return_value=True)
    return store


@pytest.fixture
def mock_automation():
    client = AsyncMock()
    client.submit = AsyncMock(return_value={"reply": "ok", "taskCreated": False})
    return client


@pytest.fixture
def app_with_fakes(mock_store, mock_automation):
    app.dependency_overrides[get_task_store] = lambda: mock_store
    app.dependency_overrides[get_automation_client] = lambda: mock_automation
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def app_unconfigured():
    app.dependency_overrides[get_task_store] = lambda: None
    app.dependency_overrides[get_automation_client] = lambda: None
    yield app
    app.dependency_overrides.clear()
