"""
Domain Error Taxonomy.

All domain-specific exceptions with clear categorization.

Contract violations (ValidationError subclasses) are raised before any network
call. Exchange and transport errors propagate unchanged so callers can apply
their own retry policy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from trade_ops.services.positions.close import CloseAllResult


class DomainError(Exception):
    """
    Base class for all domain errors.

    Includes structured error info for logging and debugging.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        symbol: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.symbol = symbol
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "symbol": self.symbol,
            "details": self.details,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(DomainError):
    """Invalid input or state."""

    error_code = "VALIDATION_ERROR"


class InvalidAddressError(ValidationError):
    """Address missing or not a well-formed account identifier."""

    error_code = "INVALID_ADDRESS"


class InvalidSizeError(ValidationError):
    """Order size outside allowed bounds."""

    error_code = "INVALID_SIZE"


class InvalidSlippageError(ValidationError):
    """Slippage tolerance outside [0, 1)."""

    error_code = "INVALID_SLIPPAGE"


class InvalidSideError(ValidationError):
    """Unknown order side."""

    error_code = "INVALID_SIDE"


class InvalidPriceError(ValidationError):
    """Price outside allowed bounds."""

    error_code = "INVALID_PRICE"


# =============================================================================
# Lookup / Market Data Errors
# =============================================================================


class PositionNotFoundError(DomainError):
    """No open (non-zero) position for the symbol at the acting address."""

    error_code = "POSITION_NOT_FOUND"

    def __init__(self, message: str, *, address: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.address = address
        if address:
            self.details["address"] = address


class InsufficientMarketDataError(DomainError):
    """No usable reference price for the symbol."""

    error_code = "INSUFFICIENT_MARKET_DATA"


# =============================================================================
# Order Errors
# =============================================================================


class OrderError(DomainError):
    """Base class for order-related errors."""

    error_code = "ORDER_ERROR"


class OrderRejectedError(OrderError):
    """Order rejected by exchange (margin, size limits, ...)."""

    error_code = "ORDER_REJECTED"

    def __init__(self, message: str, *, reason: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.reason = reason or message
        self.details["reason"] = self.reason


# =============================================================================
# Exchange/API Errors
# =============================================================================


class ExchangeError(DomainError):
    """Error from exchange API."""

    error_code = "EXCHANGE_ERROR"


class UpstreamUnavailableError(ExchangeError):
    """Exchange could not be reached or answered with a transport-level failure."""

    error_code = "UPSTREAM_UNAVAILABLE"


class ExchangeTimeoutError(UpstreamUnavailableError):
    """Exchange call timed out. The outcome of a write is unknown."""

    error_code = "TIMEOUT"


# =============================================================================
# Aggregate Errors
# =============================================================================


class PartialFailureError(DomainError):
    """One or more symbols failed during a bulk close."""

    error_code = "PARTIAL_FAILURE"

    def __init__(self, message: str, *, result: CloseAllResult, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.result = result
        self.details["failed"] = {o.symbol: o.error_code for o in result.failed}
        self.details["succeeded"] = [o.symbol for o in result.succeeded]


class CloseAllFailedError(PartialFailureError):
    """Every close submission of a bulk close failed."""

    error_code = "CLOSE_ALL_FAILED"
