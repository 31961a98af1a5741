"""
Slippage-protected order submission.
"""

from __future__ import annotations

from trade_ops.services.orders.slippage import (
    SlippageMarketOrder,
    protected_price,
    round_price_to_tick,
    validate_size,
    validate_slippage,
)

__all__ = [
    "SlippageMarketOrder",
    "protected_price",
    "round_price_to_tick",
    "validate_size",
    "validate_slippage",
]
