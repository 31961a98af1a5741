"""
Unit tests for slippage-protected market orders.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from tests.mocks.exchange import SIGNER, VAULT, MockExchange
from trade_ops.domain.errors import (
    InsufficientMarketDataError,
    InvalidPriceError,
    InvalidSideError,
    InvalidSizeError,
    InvalidSlippageError,
    OrderRejectedError,
    UpstreamUnavailableError,
)
from trade_ops.domain.models import Order, OrderStatus, Side, TimeInForce
from trade_ops.services.orders.slippage import (
    SlippageMarketOrder,
    protected_price,
    round_price_to_tick,
    validate_size,
    validate_slippage,
)

pytestmark = pytest.mark.unit


def D(x: str) -> Decimal:
    return Decimal(x)


def _order_builder(exchange: MockExchange) -> SlippageMarketOrder:
    return SlippageMarketOrder(exchange, exchange, exchange)


class TestPricing:
    def test_buy_protected_price_above_reference(self):
        assert protected_price(D("100"), Side.BUY, D("0.05")) == D("105")

    def test_sell_protected_price_below_reference(self):
        assert protected_price(D("100"), Side.SELL, D("0.05")) == D("95")

    def test_zero_slippage_is_reference(self):
        assert protected_price(D("100"), Side.BUY, D("0")) == D("100")

    def test_rounds_to_nearest_tick(self):
        assert round_price_to_tick(D("105.004"), D("0.01"), Side.BUY) == D("105.00")
        assert round_price_to_tick(D("105.006"), D("0.01"), Side.SELL) == D("105.01")

    def test_buy_tie_rounds_down(self):
        assert round_price_to_tick(D("105.005"), D("0.01"), Side.BUY) == D("105.00")

    def test_sell_tie_rounds_up(self):
        assert round_price_to_tick(D("94.995"), D("0.01"), Side.SELL) == D("95.00")

    def test_non_power_of_ten_tick(self):
        assert round_price_to_tick(D("107"), D("5"), Side.BUY) == D("105")

    def test_result_is_multiple_of_tick(self):
        price = round_price_to_tick(D("1234.56789"), D("0.1"), Side.SELL)
        assert price % D("0.1") == 0


class TestValidation:
    @pytest.mark.parametrize("size", ["0", "-1", 0, "abc", "NaN", "Infinity", True])
    def test_invalid_size(self, size):
        with pytest.raises(InvalidSizeError):
            validate_size(size)

    @pytest.mark.parametrize("slippage", ["1", "1.2", "-0.01", "nope", "NaN", False])
    def test_invalid_slippage(self, slippage):
        with pytest.raises(InvalidSlippageError):
            validate_slippage(slippage)

    @pytest.mark.parametrize("slippage", ["0", "0.05", "0.999"])
    def test_valid_slippage(self, slippage):
        assert validate_slippage(slippage) == D(slippage)

    def test_float_converted_via_str(self):
        assert validate_slippage(0.05) == D("0.05")


class TestSubmit:
    @pytest.mark.asyncio
    async def test_buy_priced_at_reference_plus_slippage(self):
        exchange = MockExchange(prices={"BTC": D("100")})
        order = await _order_builder(exchange).submit(SIGNER, "BTC", Side.BUY, D("1"), D("0.05"))

        assert len(exchange.placed) == 1
        req = exchange.placed[0]
        assert req.limit_price == D("105")
        assert req.time_in_force == TimeInForce.IOC
        assert req.reduce_only is False
        assert req.acting_address == SIGNER
        assert order.status == OrderStatus.FILLED

    @pytest.mark.asyncio
    async def test_sell_priced_at_reference_minus_slippage(self):
        exchange = MockExchange(prices={"BTC": D("100")})
        await _order_builder(exchange).submit(VAULT, "BTC", "sell", "2", "0.05", reduce_only=True)

        req = exchange.placed[0]
        assert req.limit_price == D("95")
        assert req.side == Side.SELL
        assert req.reduce_only is True
        assert req.acting_address == VAULT

    @pytest.mark.asyncio
    async def test_tick_size_requested_at_protected_price(self):
        exchange = MockExchange(prices={"ETH": D("3000")})
        await _order_builder(exchange).submit(SIGNER, "ETH", "buy", "1", "0.05")
        assert exchange.tick_calls == [("ETH", D("3150"))]

    @pytest.mark.asyncio
    async def test_client_order_id_passed_through(self):
        exchange = MockExchange()
        cloid = "0x" + "1" * 32
        await _order_builder(exchange).submit(SIGNER, "BTC", Side.BUY, "1", "0.01", client_order_id=cloid)
        assert exchange.placed[0].client_order_id == cloid

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("side", "size", "slippage", "error"),
        [
            (Side.BUY, "0", "0.05", InvalidSizeError),
            (Side.BUY, "-1", "0.05", InvalidSizeError),
            (Side.BUY, "1", "1.2", InvalidSlippageError),
            (Side.BUY, "1", "-0.1", InvalidSlippageError),
            ("up", "1", "0.05", InvalidSideError),
        ],
    )
    async def test_contract_violations_fail_before_any_io(self, side, size, slippage, error):
        exchange = MockExchange()
        with pytest.raises(error):
            await _order_builder(exchange).submit(SIGNER, "BTC", side, size, slippage)
        assert exchange.price_calls == []
        assert exchange.placed == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [None, D("0"), D("-5")])
    async def test_missing_reference_price(self, price):
        exchange = MockExchange(prices={"BTC": price})
        with pytest.raises(InsufficientMarketDataError):
            await _order_builder(exchange).submit(SIGNER, "BTC", Side.BUY, "1", "0.05")
        assert exchange.placed == []

    @pytest.mark.asyncio
    async def test_price_rounding_to_zero_is_rejected_locally(self):
        exchange = MockExchange(prices={"DUST": D("0.004")}, tick_sizes={"DUST": D("0.01")})
        with pytest.raises(InvalidPriceError):
            await _order_builder(exchange).submit(SIGNER, "DUST", Side.SELL, "1", "0.5")
        assert exchange.placed == []

    @pytest.mark.asyncio
    async def test_rejection_propagates_without_retry(self):
        exchange = MockExchange()
        exchange.reject_symbols["BTC"] = "Insufficient margin"
        with pytest.raises(OrderRejectedError) as exc_info:
            await _order_builder(exchange).submit(SIGNER, "BTC", Side.BUY, "1", "0.05")
        assert exc_info.value.reason == "Insufficient margin"
        assert len(exchange.placed) == 1

    @pytest.mark.asyncio
    async def test_rejected_status_raises(self):
        exchange = MockExchange()
        exchange.place_order = AsyncMock(
            return_value=Order(
                order_id="x",
                symbol="BTC",
                side=Side.BUY,
                size=D("1"),
                acting_address=SIGNER,
                status=OrderStatus.REJECTED,
            )
        )
        with pytest.raises(OrderRejectedError):
            await _order_builder(exchange).submit(SIGNER, "BTC", Side.BUY, "1", "0.05")
        exchange.place_order.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transport_error_propagates_unchanged(self):
        exchange = MockExchange()
        exchange.place_order = AsyncMock(side_effect=UpstreamUnavailableError("down"))
        with pytest.raises(UpstreamUnavailableError):
            await _order_builder(exchange).submit(SIGNER, "BTC", Side.BUY, "1", "0.05")
        exchange.place_order.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_idempotency_two_calls_two_orders(self):
        exchange = MockExchange()
        builder = _order_builder(exchange)
        await builder.submit(SIGNER, "BTC", Side.BUY, "1", "0.05")
        await builder.submit(SIGNER, "BTC", Side.BUY, "1", "0.05")
        assert len(exchange.placed) == 2
        assert exchange.placed[0].client_order_id != exchange.placed[1].client_order_id
