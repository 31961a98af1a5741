"""Observability: logging, metrics."""

from trade_ops.observability.logging import (
    LOG_TAG_ACCOUNT,
    LOG_TAG_CLOSE,
    LOG_TAG_ORDER,
    get_logger,
    setup_logging,
)
from trade_ops.observability.metrics import (
    record_close_all_batch,
    record_close_operation,
    record_order_submission,
    track_close_duration,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "LOG_TAG_CLOSE",
    "LOG_TAG_ORDER",
    "LOG_TAG_ACCOUNT",
    # Metrics helpers
    "record_close_operation",
    "record_order_submission",
    "record_close_all_batch",
    "track_close_duration",
]
