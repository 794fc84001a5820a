"""
Unit tests for the application factory.

Runs the real lifespan with the in-memory store backend.
"""

import logging
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from src.adapters.repository.memory import InMemoryAccountStore
from src.api.dependencies import get_account_service
from src.api.main import app
from src.config.settings import Settings, get_settings
from src.domain.accounts import AccountStateMachine
from src.domain.exceptions import AccountStoreError


@pytest.fixture
def memory_backend(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("BCRYPT_COST", "4")
    monkeypatch.setenv("SMTP_HOST", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client(memory_backend) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


class TestLifespan:
    """Startup wiring."""

    def test_startup_wires_service(self, client: TestClient) -> None:
        assert isinstance(app.state.store, InMemoryAccountStore)
        assert isinstance(app.state.account_service, AccountStateMachine)
        assert app.state.account_service.store is app.state.store

    def test_settings_applied(self, client: TestClient) -> None:
        service = app.state.account_service
        assert service.code_ttl_seconds == 600
        assert service.max_write_retries == 3


class TestHealth:
    def test_health_ok(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_health_store_down(self, client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken_ping() -> None:
            raise AccountStoreError("connection refused")

        monkeypatch.setattr(app.state.store, "ping", broken_ping)

        response = client.get("/health")

        assert response.status_code == 503


class TestFullFlow:
    """Register, verify and log in through the assembled app."""

    def test_flow_with_console_notifier(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="src.adapters.smtp.console"):
            response = client.post(
                "/v1/register",
                json={
                    "email": "flow@example.com",
                    "college": "MIT",
                    "committee": "Events",
                    "contact": "5551234567",
                    "password": "secret1",
                    "confirmPassword": "secret1",
                },
            )
        assert response.status_code == 201

        record = next(r for r in caplog.records if "[VERIFICATION]" in r.getMessage())
        code = record.getMessage().rsplit("Code: ", 1)[1]

        verify = client.post("/v1/verify", json={"email": "flow@example.com", "code": code})
        assert verify.status_code == 200

        login = client.post("/v1/login", json={"email": "flow@example.com", "password": "secret1"})
        assert login.status_code == 200

    def test_validation_error_shape(self, client: TestClient) -> None:
        """Malformed bodies report validation_failed with field errors."""
        response = client.post("/v1/login", json={"email": "nope"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_failed"
        assert body["errors"]


class TestUnhandledErrors:
    """Faults outside the domain's error taxonomy."""

    def test_unexpected_exception_returns_internal_error(
        self, memory_backend, caplog: pytest.LogCaptureFixture
    ) -> None:
        mock_service = MagicMock(spec=AccountStateMachine)
        mock_service.register.side_effect = RuntimeError("mail library exploded")
        app.dependency_overrides[get_account_service] = lambda: mock_service
        try:
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.post(
                    "/v1/register",
                    json={
                        "email": "boom@example.com",
                        "college": "MIT",
                        "committee": "Events",
                        "contact": "5551234567",
                        "password": "secret1",
                        "confirmPassword": "secret1",
                    },
                )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"error": "internal_error", "detail": "Server error"}
        assert "mail library exploded" not in response.text
        assert any("Unhandled error" in r.getMessage() for r in caplog.records)


class TestSettings:
    def test_jwt_secret_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("JWT_SECRET", raising=False)

        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None)
        assert "jwt_secret" in str(exc_info.value)

    def test_short_jwt_secret_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWT_SECRET", "too-short")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)
