"""Fixtures for API tests: the real app over SQLite, with a fake remote."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from possync.api.main import create_app
from possync.application.services import SyncServices, build_services
from possync.config.settings import Settings
from tests.fakes import FakeNetwork, FakeRemoteApi


@pytest.fixture
def services(
    test_settings: Settings,
    remote: FakeRemoteApi,
    network: FakeNetwork,
) -> SyncServices:
    # Let submit wait for the replay so assertions see the settled queue
    test_settings.sync.submit_timeout = 5.0
    return build_services(test_settings, remote=remote, network=network)


@pytest.fixture
def client(services: SyncServices) -> Iterator[TestClient]:
    """Sync test client; entering it runs the app lifespan."""
    app = create_app(services, start_monitor=False)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def open_session(client: TestClient) -> dict:
    response = client.post(
        "/api/cash-sessions",
        json={"user_id": "user-1", "opening_amount": 100.0},
    )
    assert response.status_code == 201
    return response.json()["session"]
