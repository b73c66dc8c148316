"""Tests for the security headers middleware."""

from unittest.mock import patch

import pytest

from helpers.security_headers import API_HEADERS


class TestSecurityHeaders:
    @pytest.mark.parametrize("name,value", list(API_HEADERS.items()))
    def test_api_headers(self, client, name, value):
        response = client.get("/api/health")

        assert response.headers[name] == value

    def test_error_responses_also_protected(self, client):
        response = client.get("/api/posts/999")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Cache-Control"] == "no-store"

    def test_no_hsts_outside_production(self, client):
        response = client.get("/api/health")

        assert "Strict-Transport-Security" not in response.headers

    def test_hsts_in_production(self, client):
        with patch("helpers.security_headers.settings.ENVIRONMENT", "production"):
            response = client.get("/api/health")

        assert response.headers["Strict-Transport-Security"].startswith("max-age=")
