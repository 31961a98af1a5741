"""
Domain Layer: Core entities, value objects, and errors.

This layer has NO external dependencies (no SDK types, no HTTP types).
All types here are canonical and used throughout the application.
"""

from trade_ops.domain.errors import (
    CloseAllFailedError,
    DomainError,
    ExchangeError,
    ExchangeTimeoutError,
    InsufficientMarketDataError,
    InvalidAddressError,
    InvalidPriceError,
    InvalidSideError,
    InvalidSizeError,
    InvalidSlippageError,
    OrderRejectedError,
    PartialFailureError,
    PositionNotFoundError,
    UpstreamUnavailableError,
    ValidationError,
)
from trade_ops.domain.identity import Address, AuthStatus, resolve_acting_address
from trade_ops.domain.models import (
    ClearinghouseState,
    CloseState,
    MarginSummary,
    Order,
    OrderRequest,
    OrderStatus,
    Position,
    Side,
    TimeInForce,
)

__all__ = [
    # Identity
    "Address",
    "AuthStatus",
    "resolve_acting_address",
    # Enums
    "Side",
    "TimeInForce",
    "OrderStatus",
    "CloseState",
    # Models
    "Position",
    "MarginSummary",
    "ClearinghouseState",
    "Order",
    "OrderRequest",
    # Errors
    "DomainError",
    "ValidationError",
    "InvalidAddressError",
    "InvalidSizeError",
    "InvalidSlippageError",
    "InvalidSideError",
    "InvalidPriceError",
    "PositionNotFoundError",
    "InsufficientMarketDataError",
    "OrderRejectedError",
    "ExchangeError",
    "UpstreamUnavailableError",
    "ExchangeTimeoutError",
    "PartialFailureError",
    "CloseAllFailedError",
]
