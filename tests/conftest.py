from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from battleid.config import Settings
from battleid.db import build_engine
from battleid.main import create_app


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'battleid_test.db'}"


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(database_url=database_url)


@pytest.fixture
def client(settings):
    # Entering the client runs the lifespan, so bootstrap has created the tables.
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def engine(database_url):
    engine = build_engine(database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def db(client):
    session = client.app.state.store.session()
    yield session
    session.close()

