"""
Slippage-protected market orders.

A "market" order is sent as an IOC limit order whose price is the reference
price moved by the slippage tolerance against the trader. It fills like a
market order but never beyond the tolerance.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from trade_ops.domain.errors import (
    InsufficientMarketDataError,
    InvalidPriceError,
    InvalidSizeError,
    InvalidSlippageError,
    OrderRejectedError,
    ValidationError,
)
from trade_ops.domain.identity import Address
from trade_ops.domain.models import Order, OrderRequest, OrderStatus, Side, TimeInForce
from trade_ops.observability.logging import LOG_TAG_ORDER, get_logger
from trade_ops.observability.metrics import record_order_submission
from trade_ops.ports.exchange import MarketDataPort, OrderPort, SymbolMetadataPort
from trade_ops.utils.decimals import round_to_increment

logger = get_logger(__name__)


# =============================================================================
# Pricing helpers
# =============================================================================


def _to_decimal(value: Any, error_cls: type[ValidationError], name: str) -> Decimal:
    if isinstance(value, bool):
        raise error_cls(f"{name} must be numeric, got bool")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise error_cls(f"{name} is not a number: {value!r}") from e
    if result.is_nan() or result.is_infinite():
        raise error_cls(f"{name} must be finite, got {value!r}")
    return result


def validate_size(size: Any) -> Decimal:
    """Size must be a finite number > 0."""
    result = _to_decimal(size, InvalidSizeError, "size")
    if result <= 0:
        raise InvalidSizeError(f"size must be > 0, got {result}", details={"size": str(result)})
    return result


def validate_slippage(slippage: Any) -> Decimal:
    """Slippage is a fraction in [0, 1); 0.05 = 5%."""
    result = _to_decimal(slippage, InvalidSlippageError, "slippage")
    if result < 0 or result >= 1:
        raise InvalidSlippageError(
            f"slippage must be in [0, 1), got {result}",
            details={"slippage": str(result)},
        )
    return result


def protected_price(reference_price: Decimal, side: Side, slippage: Decimal) -> Decimal:
    """Worst price the order may fill at: above reference for buys, below for sells."""
    if side == Side.BUY:
        return reference_price * (Decimal("1") + slippage)
    return reference_price * (Decimal("1") - slippage)


def round_price_to_tick(price: Decimal, tick: Decimal, side: Side) -> Decimal:
    """
    Round to the nearest tick.

    Exact ties go the trader's way: a buy limit rounds down, a sell limit rounds up.
    """
    return round_to_increment(price, tick, rounding="half_down" if side == Side.BUY else "half_up")


# =============================================================================
# Order submission
# =============================================================================


class SlippageMarketOrder:
    """
    Builds and submits one slippage-protected order per call.

    No idempotency: calling twice for the same intent submits twice.
    """

    def __init__(
        self,
        market_data: MarketDataPort,
        orders: OrderPort,
        symbols: SymbolMetadataPort,
    ):
        self.market_data = market_data
        self.orders = orders
        self.symbols = symbols

    async def limit_price_for(self, symbol: str, side: Side, slippage: Decimal) -> Decimal:
        """Fetch the reference price and turn it into a tick-aligned protected limit."""
        reference = await self.market_data.get_reference_price(symbol)
        if reference is None or reference <= 0:
            raise InsufficientMarketDataError(
                f"No reference price available for {symbol}",
                symbol=symbol,
                details={"reference_price": str(reference)},
            )

        unrounded = protected_price(reference, side, slippage)
        tick = await self.symbols.get_tick_size(symbol, unrounded)
        limit_price = round_price_to_tick(unrounded, tick, side)
        if limit_price <= 0:
            raise InvalidPriceError(
                f"Protected price for {symbol} rounds to {limit_price} (tick {tick})",
                symbol=symbol,
                details={"reference_price": str(reference), "tick_size": str(tick)},
            )
        return limit_price

    async def submit(
        self,
        acting_address: Address,
        symbol: str,
        side: Side | str,
        size: Decimal | str | float,
        slippage: Decimal | str | float,
        *,
        reduce_only: bool = False,
        client_order_id: str | None = None,
    ) -> Order:
        """
        Submit an IOC order priced at reference +/- slippage.

        Contract violations raise before any network call.

        Raises:
            InvalidSideError / InvalidSizeError / InvalidSlippageError
            InsufficientMarketDataError: no reference price.
            OrderRejectedError: exchange rejected the order.
        """
        order_side = Side.from_string(side)
        order_size = validate_size(size)
        order_slippage = validate_slippage(slippage)

        limit_price = await self.limit_price_for(symbol, order_side, order_slippage)

        request = OrderRequest(
            symbol=symbol,
            side=order_side,
            size=order_size,
            limit_price=limit_price,
            acting_address=acting_address,
            reduce_only=reduce_only,
            time_in_force=TimeInForce.IOC,
            client_order_id=client_order_id,
        )

        logger.info(
            f"{LOG_TAG_ORDER} {order_side.value} {order_size} {symbol} @ {limit_price} "
            f"(slippage={order_slippage}, reduce_only={reduce_only}) for {acting_address.short}"
        )

        try:
            order = await self.orders.place_order(request)
        except OrderRejectedError:
            record_order_submission(order_side.value, reduce_only, "rejected")
            raise
        except Exception:
            record_order_submission(order_side.value, reduce_only, "error")
            raise

        if order.status == OrderStatus.REJECTED:
            record_order_submission(order_side.value, reduce_only, "rejected")
            raise OrderRejectedError(
                f"Order for {symbol} rejected",
                symbol=symbol,
                reason="rejected status returned by exchange",
            )

        record_order_submission(order_side.value, reduce_only, "accepted")
        logger.info(
            f"{LOG_TAG_ORDER} {symbol} order {order.order_id} status={order.status.value} "
            f"filled={order.filled_size}/{order.size} avg_px={order.avg_fill_price}"
        )
        return order
