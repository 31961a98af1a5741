"""
Paper exchange: live reads, simulated writes.

Positions, prices and tick sizes come from the wrapped live adapter, so a
paper run prices orders exactly like a live one. Orders are never sent;
each one is reported as filled in full at its limit price.
"""

from __future__ import annotations

import itertools
from decimal import Decimal

from trade_ops.domain.identity import Address, AuthStatus
from trade_ops.domain.models import ClearinghouseState, Order, OrderRequest, OrderStatus
from trade_ops.observability.logging import LOG_TAG_ORDER, get_logger
from trade_ops.ports.exchange import ExchangePort
from trade_ops.ports.identity import IdentityPort

logger = get_logger(__name__)


class PaperExchange(ExchangePort, IdentityPort):
    """ExchangePort that delegates reads to `live` and simulates order placement."""

    def __init__(self, live: ExchangePort, identity: IdentityPort | None = None):
        self.live = live
        self.identity = identity if identity is not None else live  # type: ignore[assignment]
        self._order_ids = itertools.count(1)
        self.submitted: list[OrderRequest] = []

    @property
    def name(self) -> str:
        return f"PAPER:{self.live.name}"

    def signer_address(self) -> Address | None:
        return self.identity.signer_address()

    def auth_status(self) -> AuthStatus:
        return self.identity.auth_status()

    async def initialize(self) -> None:
        await self.live.initialize()

    async def close(self) -> None:
        await self.live.close()

    async def get_clearinghouse_state(self, address: Address) -> ClearinghouseState:
        return await self.live.get_clearinghouse_state(address)

    async def get_reference_price(self, symbol: str) -> Decimal | None:
        return await self.live.get_reference_price(symbol)

    async def get_tick_size(self, symbol: str, price: Decimal | None = None) -> Decimal:
        return await self.live.get_tick_size(symbol, price)

    async def place_order(self, request: OrderRequest) -> Order:
        self.submitted.append(request)
        order = Order(
            order_id=f"paper-{next(self._order_ids)}",
            symbol=request.symbol,
            side=request.side,
            size=request.size,
            acting_address=request.acting_address,
            limit_price=request.limit_price,
            reduce_only=request.reduce_only,
            status=OrderStatus.FILLED,
            filled_size=request.size,
            avg_fill_price=request.limit_price,
            client_order_id=request.client_order_id,
        )
        logger.warning(
            f"{LOG_TAG_ORDER} PAPER fill (not sent): {request.side.value} {request.size} {request.symbol} "
            f"@ {request.limit_price} reduce_only={request.reduce_only} for {request.acting_address.short}"
        )
        return order

    async def cancel_all_orders(self, address: Address, symbol: str | None = None) -> int:
        logger.warning(f"PAPER cancel-all for {address.short}{f' {symbol}' if symbol else ''}: nothing sent")
        return 0
