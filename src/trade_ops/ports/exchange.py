"""
Exchange Ports: Abstract interfaces for exchange collaborators.

All exchange-specific implementations must implement these interfaces.
The interfaces use only domain types - no SDK types leak through.

Every method that takes an address acts on exactly that address; adapters
must not substitute the signer's own wallet.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from trade_ops.domain.identity import Address
from trade_ops.domain.models import ClearinghouseState, Order, OrderRequest


class PositionQueryPort(ABC):
    """Position and margin queries."""

    @abstractmethod
    async def get_clearinghouse_state(self, address: Address) -> ClearinghouseState:
        """
        Get the positions and margin of `address`.

        Raises:
            UpstreamUnavailableError if the snapshot cannot be fetched.
        """
        ...


class MarketDataPort(ABC):
    """Market data queries."""

    @abstractmethod
    async def get_reference_price(self, symbol: str) -> Decimal | None:
        """
        Get the current reference (mid) price for a symbol.

        Returns None if no price is available.
        """
        ...


class OrderPort(ABC):
    """Order placement."""

    @abstractmethod
    async def place_order(self, request: OrderRequest) -> Order:
        """
        Place an order attributed to `request.acting_address`.

        Returns:
            Order object with order_id and initial status.

        Raises:
            OrderRejectedError if the exchange rejects the order.
            UpstreamUnavailableError / ExchangeTimeoutError on transport failure.
        """
        ...

    @abstractmethod
    async def cancel_all_orders(self, address: Address, symbol: str | None = None) -> int:
        """
        Cancel all open orders of `address`, optionally filtered by symbol.

        Returns number of orders cancelled.
        """
        ...


class SymbolMetadataPort(ABC):
    """Instrument metadata."""

    @abstractmethod
    async def get_tick_size(self, symbol: str, price: Decimal | None = None) -> Decimal:
        """
        Get the minimum price increment for a symbol.

        Venues whose precision depends on the price level (significant-figure
        limits) return the increment valid at `price` when it is given.
        """
        ...


class ExchangePort(PositionQueryPort, MarketDataPort, OrderPort, SymbolMetadataPort):
    """
    Full exchange interface used by the operations layer.

    All methods are async and use domain types.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the exchange identifier."""
        ...

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the adapter.

        Load markets, establish connections, etc.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close all connections and cleanup resources."""
        ...
