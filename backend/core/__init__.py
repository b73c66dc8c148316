"""Core infrastructure: logging, correlation IDs, Sentry and background jobs."""

from core.correlation import (
    correlation_id_var,
    current_or_new_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.sentry_config import init_sentry

__all__ = [
    "init_sentry",
    "configure_logging",
    "current_or_new_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "resolve_correlation_id",
    "set_correlation_id",
    "correlation_id_var",
]
