"""Observability: structured logging and MLflow tracing setup."""

from recoveryfinder.observability.logging import correlation_id, get_correlation_id, setup_logging
from recoveryfinder.observability.tracing import configure_tracing

__all__ = ["configure_tracing", "correlation_id", "get_correlation_id", "setup_logging"]
