"""Tests for correlation ID generation, context and request propagation."""

import re

import pytest

from core.correlation import (
    CORRELATION_HEADER,
    correlation_id_var,
    current_or_new_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)


class TestGenerateCorrelationId:
    """Tests for generate_correlation_id function."""

    def test_returns_8_lowercase_hex_characters(self) -> None:
        assert re.match(r"^[0-9a-f]{8}$", generate_correlation_id())

    def test_generates_unique_ids(self) -> None:
        ids = {generate_correlation_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestCorrelationIdContext:
    """Tests for correlation ID context management."""

    def setup_method(self) -> None:
        correlation_id_var.set("")

    def test_set_and_get(self) -> None:
        set_correlation_id("abc12345")
        assert get_correlation_id() == "abc12345"

    def test_empty_when_not_set(self) -> None:
        assert get_correlation_id() == ""

    def test_current_or_new(self) -> None:
        assert len(current_or_new_correlation_id()) == 8

        set_correlation_id("ctx-1234")
        assert current_or_new_correlation_id() == "ctx-1234"


class TestResolveCorrelationId:
    """Incoming header values are reused only when they look safe."""

    def test_accepts_well_formed_id(self) -> None:
        assert resolve_correlation_id("client-req_42") == "client-req_42"

    @pytest.mark.parametrize(
        "incoming", [None, "", "abc", "has space", "x" * 65, "line\nbreak", "{bad}"]
    )
    def test_replaces_unusable_id(self, incoming: str | None) -> None:
        resolved = resolve_correlation_id(incoming)

        assert resolved != incoming
        assert re.match(r"^[0-9a-f]{8}$", resolved)


class TestRequestPropagation:
    """Correlation IDs flow through the HTTP layer."""

    def test_response_header_generated(self, client) -> None:
        response = client.get("/api/health")

        assert re.match(r"^[0-9a-f]{8}$", response.headers[CORRELATION_HEADER])

    def test_incoming_header_echoed(self, client) -> None:
        response = client.get("/api/health", headers={CORRELATION_HEADER: "trace-0001"})

        assert response.headers[CORRELATION_HEADER] == "trace-0001"

    def test_error_body_matches_header(self, client) -> None:
        response = client.get("/api/posts/999", headers={CORRELATION_HEADER: "trace-0002"})

        assert response.status_code == 404
        assert response.json()["correlation_id"] == "trace-0002"
        assert response.headers[CORRELATION_HEADER] == "trace-0002"
