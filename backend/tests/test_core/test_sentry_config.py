"""Tests for Sentry SDK configuration."""

import os
from typing import Any
from unittest.mock import patch

import pytest

from core.sentry_config import (
    _before_send,
    _before_send_transaction,
    _traces_sampler,
    init_sentry,
)


class TestBeforeSend:
    """Tests for PII scrubbing in _before_send."""

    def test_keeps_only_user_id(self) -> None:
        event: dict[str, Any] = {
            "user": {
                "id": "42",
                "email": "reader@example.com",
                "username": "reader",
                "ip_address": "10.0.0.7",
            }
        }

        result = _before_send(event, {})  # type: ignore[arg-type]

        assert result is not None
        assert result["user"] == {"id": "42", "ip_address": "{{auto}}"}  # type: ignore[typeddict-item]

    def test_scrubs_request_credentials(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "url": "/api/library/3",
                "cookies": {"session": "secret"},
                "headers": {
                    "Authorization": "Bearer token",
                    "Content-Type": "application/json",
                },
            }
        }

        result = _before_send(event, {})  # type: ignore[arg-type]

        request = result["request"]  # type: ignore[index, typeddict-item]
        assert "cookies" not in request
        assert request["headers"]["Authorization"] == "[Filtered]"
        assert request["headers"]["Content-Type"] == "application/json"

    def test_event_without_user_or_request(self) -> None:
        event: dict[str, Any] = {"message": "Test error"}
        assert _before_send(event, {}) == {"message": "Test error"}  # type: ignore[arg-type]


class TestBeforeSendTransaction:
    """Tests for transaction filtering."""

    @pytest.mark.parametrize("name", ["/api/health", "GET /api/health", "/health"])
    def test_drops_health_checks(self, name: str) -> None:
        event: dict[str, Any] = {"transaction": name}
        assert _before_send_transaction(event, {}) is None  # type: ignore[arg-type]

    def test_keeps_library_transactions(self) -> None:
        event: dict[str, Any] = {"transaction": "/api/library/{book_id}"}
        assert _before_send_transaction(event, {}) is event  # type: ignore[arg-type]


class TestTracesSampler:
    """Tests for endpoint-aware trace sampling."""

    @pytest.mark.parametrize(
        ("path", "rate"),
        [
            ("/api/health", 0.0),
            ("/api/admin/moderation/users/3/strikes", 0.5),
            ("/api/auth/login", 0.5),
            ("/api/reports", 0.5),
            ("/api/library", 0.1),
            ("/api/users/me/activity", 0.1),
            ("/api/users/me/ban-status", 0.2),
        ],
    )
    def test_rates(self, path: str, rate: float) -> None:
        assert _traces_sampler({"asgi_scope": {"path": path}}) == rate

    @pytest.mark.parametrize(
        ("method", "rate"),
        [("GET", 0.1), ("POST", 0.3), ("PATCH", 0.3), ("DELETE", 0.3)],
    )
    def test_library_writes_sampled_more(self, method: str, rate: float) -> None:
        context = {"asgi_scope": {"path": "/api/library/12", "method": method}}
        assert _traces_sampler(context) == rate

    def test_respects_parent_sampling(self) -> None:
        context = {"parent_sampled": True, "asgi_scope": {"path": "/api/library"}}
        assert _traces_sampler(context) == 1.0

    def test_missing_scope(self) -> None:
        assert _traces_sampler({}) == 0.2


class TestInitSentry:
    """Tests for Sentry initialization."""

    def test_disabled_without_dsn(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, {}, clear=True):
                init_sentry()
        mock_init.assert_not_called()

    def test_uses_environment(self) -> None:
        env_vars = {
            "SENTRY_DSN": "https://test@o0.ingest.sentry.io/0",
            "ENVIRONMENT": "production",
            "SENTRY_RELEASE": "readtrack@1.0.0",
        }
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, env_vars):
                init_sentry()

        kwargs = mock_init.call_args.kwargs
        assert kwargs["dsn"] == env_vars["SENTRY_DSN"]
        assert kwargs["environment"] == "production"
        assert kwargs["release"] == "readtrack@1.0.0"
        assert kwargs["send_default_pii"] is False
