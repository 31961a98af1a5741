"""
Unit tests for domain models.
"""

from decimal import Decimal

import pytest

from trade_ops.domain.errors import InvalidSideError
from trade_ops.domain.identity import Address
from trade_ops.domain.models import (
    ClearinghouseState,
    CloseState,
    Order,
    OrderRequest,
    OrderStatus,
    Position,
    Side,
    TimeInForce,
)

pytestmark = pytest.mark.unit

ADDR = Address("0x" + "c" * 40)


class TestSide:
    @pytest.mark.parametrize("raw", ["buy", "BUY", " long ", "b", Side.BUY])
    def test_buy_aliases(self, raw):
        assert Side.from_string(raw) == Side.BUY

    @pytest.mark.parametrize("raw", ["sell", "SHORT", "s", "a", Side.SELL])
    def test_sell_aliases(self, raw):
        assert Side.from_string(raw) == Side.SELL

    def test_unknown_side(self):
        with pytest.raises(InvalidSideError):
            Side.from_string("sideways")

    def test_inverse(self):
        assert Side.BUY.inverse() == Side.SELL
        assert Side.SELL.inverse() == Side.BUY


class TestPosition:
    def test_long_closes_with_sell(self):
        p = Position(symbol="BTC", size=Decimal("2.5"))
        assert p.is_long and p.is_open
        assert p.close_side == Side.SELL
        assert p.abs_size == Decimal("2.5")

    def test_short_closes_with_buy(self):
        p = Position(symbol="ETH", size=Decimal("-3"))
        assert p.is_short
        assert p.close_side == Side.BUY
        assert p.abs_size == Decimal("3")

    def test_zero_size_is_not_open(self):
        assert not Position(symbol="SOL", size=Decimal("0")).is_open


class TestClearinghouseState:
    def test_open_positions_skip_zero(self):
        state = ClearinghouseState(
            address=ADDR,
            positions=(
                Position(symbol="BTC", size=Decimal("1")),
                Position(symbol="SOL", size=Decimal("0")),
                Position(symbol="ETH", size=Decimal("-3")),
            ),
        )
        assert [p.symbol for p in state.open_positions()] == ["BTC", "ETH"]

    def test_position_for_is_exact_and_case_sensitive(self):
        state = ClearinghouseState(address=ADDR, positions=(Position(symbol="BTC", size=Decimal("1")),))
        assert state.position_for("BTC") is not None
        assert state.position_for("btc") is None
        assert state.position_for("BTC-PERP") is None

    def test_position_for_ignores_zero_size(self):
        state = ClearinghouseState(address=ADDR, positions=(Position(symbol="BTC", size=Decimal("0")),))
        assert state.position_for("BTC") is None


class TestOrders:
    def test_request_defaults_to_ioc_with_client_id(self):
        req = OrderRequest(
            symbol="BTC",
            side=Side.SELL,
            size=Decimal("1"),
            limit_price=Decimal("95"),
            acting_address=ADDR,
        )
        assert req.time_in_force == TimeInForce.IOC
        assert req.client_order_id is not None
        assert req.client_order_id.startswith("0x") and len(req.client_order_id) == 34

    def test_each_request_gets_fresh_client_id(self):
        kwargs = dict(symbol="BTC", side=Side.BUY, size=Decimal("1"), limit_price=Decimal("1"), acting_address=ADDR)
        assert OrderRequest(**kwargs).client_order_id != OrderRequest(**kwargs).client_order_id

    def test_order_remaining_size(self):
        order = Order(
            order_id="1",
            symbol="BTC",
            side=Side.BUY,
            size=Decimal("2"),
            acting_address=ADDR,
            status=OrderStatus.PARTIALLY_FILLED,
            filled_size=Decimal("0.5"),
        )
        assert order.remaining_size == Decimal("1.5")
        assert not order.is_filled


def test_close_state_terminal():
    assert CloseState.DONE.is_terminal()
    assert CloseState.DONE_NOOP.is_terminal()
    assert CloseState.FAILED.is_terminal()
    assert not CloseState.LOCATE.is_terminal()
