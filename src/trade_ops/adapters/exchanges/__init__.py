"""Exchange adapters: Hyperliquid and paper implementations."""

from trade_ops.adapters.exchanges.hyperliquid.adapter import HyperliquidAdapter
from trade_ops.adapters.exchanges.paper import PaperExchange

__all__ = ["HyperliquidAdapter", "PaperExchange"]
