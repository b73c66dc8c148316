"""
Sentry SDK setup.

Disabled unless SENTRY_DSN is set. Events are scrubbed of emails, cookies and
session tokens before they leave the process.
"""

import os
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.types import Event, Hint

HEALTH_PATHS = ("/health", "/api/health")
SENSITIVE_HEADERS = ("authorization", "cookie")


def _before_send(event: Event, hint: Hint) -> Event | None:
    """Strip PII from error events, keeping only the user id."""
    user = event.get("user")
    if user:
        user.pop("email", None)
        user.pop("username", None)
        if "ip_address" in user:
            user["ip_address"] = "{{auto}}"

    request = event.get("request")
    if request and isinstance(request, dict):
        request.pop("cookies", None)
        headers = request.get("headers")
        if isinstance(headers, dict):
            for key in list(headers):
                if key.lower() in SENSITIVE_HEADERS:
                    headers[key] = "[Filtered]"
        # Login, register and password bodies carry credentials
        request.pop("data", None)

    return event


def _before_send_transaction(event: Event, hint: Hint) -> Event | None:
    transaction_name = event.get("transaction", "")
    if any(transaction_name.endswith(path) for path in HEALTH_PATHS):
        return None
    return event


def _traces_sampler(sampling_context: dict[str, Any]) -> float:
    """
    Per-request trace sampling.

    Health checks are never traced; admin and auth traffic is sampled more
    heavily than public browsing.
    """
    if sampling_context.get("parent_sampled") is True:
        return 1.0

    asgi_scope = sampling_context.get("asgi_scope", {})
    path = asgi_scope.get("path", "")

    if path in HEALTH_PATHS:
        return 0.0
    if path.startswith("/api/admin") or path.startswith("/api/auth"):
        return 0.5
    return 0.2


def init_sentry() -> bool:
    """
    Initialize Sentry with FastAPI, SQLAlchemy and Loguru integrations.

    Call this before creating the FastAPI app instance.

    Returns:
        True if Sentry was initialized.
    """
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("SENTRY_RELEASE", "unknown"),
        send_default_pii=False,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoguruIntegration(),
        ],
        traces_sampler=_traces_sampler,
        sample_rate=1.0,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        ignore_errors=[KeyboardInterrupt, SystemExit],
    )
    return True
