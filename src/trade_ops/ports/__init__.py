"""
Ports: Abstract interfaces for external dependencies.

This follows the Ports & Adapters (Hexagonal) architecture pattern.
Business logic depends only on these interfaces, not on concrete implementations.
"""

from trade_ops.ports.exchange import (
    ExchangePort,
    MarketDataPort,
    OrderPort,
    PositionQueryPort,
    SymbolMetadataPort,
)
from trade_ops.ports.identity import IdentityPort

__all__ = [
    "ExchangePort",
    "IdentityPort",
    "MarketDataPort",
    "OrderPort",
    "PositionQueryPort",
    "SymbolMetadataPort",
]
