"""Tests for Sentry event scrubbing, sampling and initialization."""

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

TEST_DSN = "https://test@o0.ingest.sentry.io/0"


class TestBeforeSend:
    """Events must leave the process without credentials or PII."""

    def test_scrubs_user_identity(self) -> None:
        event: dict[str, Any] = {
            "user": {
                "id": "123",
                "email": "user@example.com",
                "username": "someone",
                "ip_address": "192.168.1.100",
            }
        }

        result = _before_send(event, {})  # type: ignore[arg-type]

        assert result is not None
        assert result["user"] == {"id": "123", "ip_address": "{{auto}}"}  # type: ignore[typeddict-item]

    def test_filters_session_headers_and_cookies(self) -> None:
        event: dict[str, Any] = {
            "request": {
                "headers": {
                    "Authorization": "Bearer abc",
                    "Cookie": "token=abc",
                    "User-Agent": "pytest",
                },
                "cookies": {"token": "abc"},
            }
        }

        result = _before_send(event, {})  # type: ignore[arg-type]

        request = result["request"]  # type: ignore[index]
        assert "cookies" not in request
        assert request["headers"] == {
            "Authorization": "[Filtered]",
            "Cookie": "[Filtered]",
            "User-Agent": "pytest",
        }

    def test_drops_request_body(self) -> None:
        event: dict[str, Any] = {
            "request": {"data": {"email": "a@b.c", "password": "secret123"}}
        }

        result = _before_send(event, {})  # type: ignore[arg-type]

        assert "data" not in result["request"]  # type: ignore[index]

    def test_passes_plain_events_through(self) -> None:
        event: dict[str, Any] = {"message": "Test error"}

        assert _before_send(event, {}) == {"message": "Test error"}  # type: ignore[arg-type]


class TestBeforeSendTransaction:
    @pytest.mark.parametrize("path", ["/health", "/api/health", "GET /api/health"])
    def test_filters_health_checks(self, path: str) -> None:
        event: dict[str, Any] = {"transaction": path}

        assert _before_send_transaction(event, {}) is None  # type: ignore[arg-type]

    def test_keeps_other_transactions(self) -> None:
        event: dict[str, Any] = {"transaction": "/api/posts/"}

        assert _before_send_transaction(event, {}) is event  # type: ignore[arg-type]


class TestTracesSampler:
    @pytest.mark.parametrize(
        "path,rate",
        [
            ("/api/health", 0.0),
            ("/api/admin/dashboard", 0.5),
            ("/api/auth/login", 0.5),
            ("/api/posts/", 0.2),
        ],
    )
    def test_rate_by_path(self, path: str, rate: float) -> None:
        assert _traces_sampler({"asgi_scope": {"path": path}}) == rate

    def test_follows_sampled_parent(self) -> None:
        context: dict[str, Any] = {
            "parent_sampled": True,
            "asgi_scope": {"path": "/api/health"},
        }
        assert _traces_sampler(context) == 1.0

    def test_missing_scope_uses_default(self) -> None:
        assert _traces_sampler({}) == 0.2


class TestInitSentry:
    def test_disabled_without_dsn(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, {}, clear=True):
                assert init_sentry() is False
        mock_init.assert_not_called()

    def test_initializes_from_environment(self) -> None:
        env_vars = {
            "SENTRY_DSN": TEST_DSN,
            "ENVIRONMENT": "production",
            "SENTRY_RELEASE": "1.2.3",
        }
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, env_vars):
                assert init_sentry() is True

        kwargs = mock_init.call_args.kwargs
        assert kwargs["dsn"] == TEST_DSN
        assert kwargs["environment"] == "production"
        assert kwargs["release"] == "1.2.3"
        assert kwargs["send_default_pii"] is False

    def test_defaults(self) -> None:
        with patch("sentry_sdk.init") as mock_init:
            with patch.dict(os.environ, {"SENTRY_DSN": TEST_DSN}, clear=True):
                init_sentry()

        kwargs = mock_init.call_args.kwargs
        assert kwargs["environment"] == "development"
        assert kwargs["release"] == "unknown"
