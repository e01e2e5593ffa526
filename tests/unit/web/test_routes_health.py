"""Tests for structrack.web.routes.health."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from structrack.db.connection import get_db
from structrack.db.models import Base
from structrack.web.routes import health


@pytest.fixture
def mock_db_session():
    session = AsyncMock()
    session.execute = AsyncMock()
    session.run_sync = AsyncMock()
    return session


@pytest.fixture
def client(mock_db_session):
    test_app = FastAPI()
    test_app.include_router(health.router)

    async def override_get_db():
        yield mock_db_session

    test_app.dependency_overrides[get_db] = override_get_db
    return TestClient(test_app)


def test_health_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "connected"}


def test_health_database_down(client, mock_db_session):
    mock_db_session.execute.side_effect = ConnectionError("refused")

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "disconnected"


def test_schema_complete(client, mock_db_session):
    mock_db_session.run_sync.return_value = set(Base.metadata.tables)

    response = client.get("/health/schema")

    assert response.json() == {"status": "ok", "missing_tables": []}


def test_schema_missing_optional_tables(client, mock_db_session):
    mock_db_session.run_sync.return_value = set(Base.metadata.tables) - {
        "progress_items",
        "structure_layers",
    }

    response = client.get("/health/schema")

    assert response.json()["status"] == "incomplete"
    assert response.json()["missing_tables"] == ["progress_items", "structure_layers"]
