"""
Position lookup for an acting address.
"""

from __future__ import annotations

from trade_ops.domain.errors import ExchangeError, PositionNotFoundError
from trade_ops.domain.identity import Address
from trade_ops.domain.models import ClearinghouseState, Position
from trade_ops.observability.logging import LOG_TAG_ACCOUNT, get_logger
from trade_ops.ports.exchange import PositionQueryPort

logger = get_logger(__name__)


class PositionLocator:
    """
    Finds open positions of one address.

    Symbols are matched exactly (case-sensitive, canonical exchange form).
    Transport errors from the position query propagate; nothing is retried here.
    """

    def __init__(self, positions: PositionQueryPort):
        self.positions = positions

    async def snapshot(self, acting_address: Address) -> ClearinghouseState:
        """Fetch the clearinghouse state of `acting_address` (one round trip)."""
        state = await self.positions.get_clearinghouse_state(acting_address)
        if state.address != acting_address:
            raise ExchangeError(
                f"Position query returned state for {state.address}, expected {acting_address}",
                details={"expected": str(acting_address), "received": str(state.address)},
            )
        logger.debug(
            f"{LOG_TAG_ACCOUNT} snapshot {acting_address.short}: "
            f"{len(state.open_positions())} open positions, account_value={state.margin.account_value}"
        )
        return state

    def locate_in(self, state: ClearinghouseState, symbol: str) -> Position:
        """Match `symbol` against an already fetched snapshot."""
        position = state.position_for(symbol)
        if position is None:
            raise PositionNotFoundError(
                f"No open position for {symbol} at {state.address}",
                symbol=symbol,
                address=str(state.address),
            )
        return position

    async def find_position(self, acting_address: Address, symbol: str) -> Position:
        """
        Return the open position for `symbol` held by `acting_address`.

        Raises:
            PositionNotFoundError: no matching non-zero position.
            UpstreamUnavailableError: snapshot fetch failed.
        """
        state = await self.snapshot(acting_address)
        return self.locate_in(state, symbol)
