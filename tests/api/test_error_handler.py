"""Tests for the error envelope returned by the local API."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from possync.api.middleware import ErrorHandlerMiddleware
from possync.api.middleware.error_handler import (
    RETRY_AFTER_SECONDS,
    error_status,
    setup_exception_handlers,
)
from possync.core.exceptions import (
    ApplicationError,
    QueuePersistenceError,
    RemoteErrorKind,
    SaleNotFoundError,
    SyncInProgressError,
    TransientNetworkError,
)


@pytest.fixture
def error_client() -> TestClient:
    """Bare app whose routes raise on demand."""
    app = FastAPI()
    app.add_middleware(ErrorHandlerMiddleware)
    setup_exception_handlers(app)

    @app.get("/sale")
    async def missing_sale():
        raise SaleNotFoundError("sale-9")

    @app.get("/remote")
    async def remote_down():
        raise TransientNetworkError("timed out", RemoteErrorKind.TIMEOUT)

    @app.get("/busy")
    async def busy():
        raise SyncInProgressError()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    return TestClient(app, raise_server_exceptions=False)


class TestErrorStatus:
    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (SaleNotFoundError("s"), 404),
            (SyncInProgressError(), 409),
            (QueuePersistenceError("op", "disk full"), 507),
            (TransientNetworkError("down"), 503),
            (ApplicationError("bad", 422), 502),
            (ValueError("x"), 400),
            (RuntimeError("x"), 500),
        ],
    )
    def test_mapping(self, exc, expected):
        assert error_status(exc) == expected


class TestErrorEnvelope:
    def test_domain_error_carries_details(self, error_client):
        response = error_client.get("/sale")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "SALE_NOT_FOUND"
        assert data["message"] == "Sale not found: sale-9"
        assert data["details"] == {"sale_id": "sale-9"}
        assert data["path"] == "/sale"
        assert data["hint"]

    def test_remote_unavailable_sets_retry_after(self, error_client):
        response = error_client.get("/remote")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == str(RETRY_AFTER_SECONDS)
        assert response.json()["details"]["kind"] == "timeout"

    def test_busy_sync_sets_retry_after(self, error_client):
        response = error_client.get("/busy")

        assert response.status_code == 409
        assert response.headers["Retry-After"] == str(RETRY_AFTER_SECONDS)

    def test_unexpected_error_is_500(self, error_client):
        response = error_client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error_code"] == "RuntimeError"
        assert "Retry-After" not in response.headers

    def test_unknown_route(self, error_client):
        response = error_client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_wrong_method(self, error_client):
        response = error_client.post("/sale")

        assert response.status_code == 405
        assert response.json()["error_code"] == "METHOD_NOT_ALLOWED"
