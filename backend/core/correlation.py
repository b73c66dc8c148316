"""
Request correlation IDs.

Each request gets a short ID that ends up in every log line, in Sentry tags,
in error responses and in the ``X-Correlation-ID`` response header.
"""

import re
import uuid
from contextvars import ContextVar

CORRELATION_HEADER = "X-Correlation-ID"

# Incoming IDs are echoed into logs and headers, so only accept a safe charset
_VALID_INCOMING_ID = re.compile(r"^[A-Za-z0-9_-]{4,64}$")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Return a new 8-character hexadecimal ID."""
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Return the current request's correlation ID, or an empty string."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def current_or_new_correlation_id() -> str:
    return get_correlation_id() or generate_correlation_id()


def resolve_correlation_id(incoming: str | None) -> str:
    """
    Pick the correlation ID for a request.

    Args:
        incoming: Value of the ``X-Correlation-ID`` request header, if any.

    Returns:
        The incoming ID when it is well formed, otherwise a fresh one.
    """
    if incoming and _VALID_INCOMING_ID.match(incoming):
        return incoming
    return generate_correlation_id()
