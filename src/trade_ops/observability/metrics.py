"""
Prometheus metrics for observability.

Provides metrics for monitoring close operations and order submissions.

Usage:
    from trade_ops.observability.metrics import track_close_duration

    with track_close_duration("ETH", "market_close") as ctx:
        ...
        ctx["outcome"] = "done"
"""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from prometheus_client import Counter, Histogram

# =============================================================================
# Metric Definitions
# =============================================================================

close_operations_total = Counter(
    "trade_ops_close_operations_total",
    "Total number of close operations",
    ["symbol", "operation", "outcome"],  # outcome: done, noop, failed
)

close_duration_seconds = Histogram(
    "trade_ops_close_duration_seconds",
    "Duration of close operations in seconds",
    ["operation"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
)

order_submissions_total = Counter(
    "trade_ops_order_submissions_total",
    "Total slippage-protected order submissions",
    ["side", "reduce_only", "outcome"],  # outcome: accepted, rejected, error
)

close_all_batches_total = Counter(
    "trade_ops_close_all_batches_total",
    "Bulk close invocations by aggregate result",
    ["result"],  # result: empty, ok, partial, failed
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_close_operation(symbol: str, operation: str, outcome: str, duration_seconds: float) -> None:
    """
    Record a close operation in metrics.

    Args:
        symbol: Trading symbol (e.g., "ETH")
        operation: "market_close" or "close_all"
        outcome: "done", "noop" or "failed"
        duration_seconds: Time taken to complete the close
    """
    close_operations_total.labels(symbol=symbol, operation=operation, outcome=outcome).inc()
    close_duration_seconds.labels(operation=operation).observe(duration_seconds)


def record_order_submission(side: str, reduce_only: bool, outcome: str) -> None:
    """Record one order submission attempt."""
    order_submissions_total.labels(side=side, reduce_only=str(reduce_only).lower(), outcome=outcome).inc()


def record_close_all_batch(result: str) -> None:
    """Record the aggregate result of a bulk close."""
    close_all_batches_total.labels(result=result).inc()


@contextmanager
def track_close_duration(symbol: str, operation: str) -> Generator[dict[str, Any], None, None]:
    """
    Context manager to track close operation duration.

    Usage:
        with track_close_duration("ETH", "market_close") as ctx:
            # perform close operation
            ctx["outcome"] = "done"

    Yields:
        Dict to store the operation outcome
    """
    start_time = time.monotonic()
    ctx: dict[str, Any] = {"outcome": "failed"}

    try:
        yield ctx
    finally:
        record_close_operation(
            symbol=symbol,
            operation=operation,
            outcome=ctx.get("outcome", "failed"),
            duration_seconds=time.monotonic() - start_time,
        )
