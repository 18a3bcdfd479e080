"""Logging and metrics."""

from folio.observability.logging import LogContext, configure_logging
from folio.observability.metrics import get_metrics

__all__ = ["LogContext", "configure_logging", "get_metrics"]
