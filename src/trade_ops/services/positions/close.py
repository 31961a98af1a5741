"""
Market-price close of one symbol or of every open position.

State machine per close (scoped to the call, never persisted):

    START -> LOCATE -> FOUND -> CLOSE -> DONE
                    -> NOT_FOUND -> DONE_NOOP
    CLOSE -> FAILED on order failure
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal

from trade_ops.config.settings import Settings
from trade_ops.domain.errors import (
    CloseAllFailedError,
    DomainError,
    PartialFailureError,
    PositionNotFoundError,
)
from trade_ops.domain.identity import Address
from trade_ops.domain.models import CloseState, Order, Position
from trade_ops.observability.logging import LOG_TAG_CLOSE, get_logger
from trade_ops.observability.metrics import record_close_all_batch, track_close_duration
from trade_ops.services.orders.slippage import (
    SlippageMarketOrder,
    validate_size,
    validate_slippage,
)
from trade_ops.services.positions.locator import PositionLocator

logger = get_logger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class CloseOutcome:
    """Result of closing one symbol."""

    symbol: str
    state: CloseState = CloseState.START
    position: Position | None = None
    order: Order | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state in (CloseState.DONE, CloseState.DONE_NOOP)

    @property
    def is_noop(self) -> bool:
        return self.state == CloseState.DONE_NOOP

    def _advance(self, state: CloseState) -> None:
        logger.debug(f"{self.symbol}: {self.state.value} -> {state.value}")
        self.state = state

    def _fail(self, exc: Exception) -> None:
        self._advance(CloseState.FAILED)
        self.error = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        self.error_code = getattr(exc, "error_code", "UNEXPECTED_ERROR")


@dataclass
class CloseAllResult:
    """Per-symbol outcomes of a bulk close against one acting address."""

    acting_address: Address
    outcomes: list[CloseOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[CloseOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[CloseOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def is_empty(self) -> bool:
        return not self.outcomes

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    @property
    def is_partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    def outcome_for(self, symbol: str) -> CloseOutcome | None:
        for o in self.outcomes:
            if o.symbol == symbol:
                return o
        return None

    def raise_for_failures(self) -> None:
        """Raise PartialFailureError if any symbol failed."""
        if self.failed:
            raise PartialFailureError(
                f"{len(self.failed)}/{len(self.outcomes)} closes failed: "
                + ", ".join(f"{o.symbol}={o.error_code}" for o in self.failed),
                result=self,
            )


# =============================================================================
# Close Operations
# =============================================================================


class CloseOperations:
    """
    Closes positions at market price, bounded by slippage.

    Every close order is reduce-only so it cannot open or flip a position
    if fills happen between the position query and the submission.
    """

    def __init__(
        self,
        locator: PositionLocator,
        market_order: SlippageMarketOrder,
        settings: Settings,
    ):
        self.locator = locator
        self.market_order = market_order
        self.settings = settings

    async def market_close(
        self,
        acting_address: Address,
        symbol: str,
        slippage: Decimal | str | float,
        *,
        size: Decimal | str | float | None = None,
    ) -> CloseOutcome:
        """
        Close the position in `symbol` held by `acting_address`.

        No position is a successful no-op (no order is sent). `size` closes
        only part of the position and is capped at the open size.

        Raises:
            InvalidSlippageError / InvalidSizeError before any network call.
            UpstreamUnavailableError if the position query fails.
            OrderRejectedError / InsufficientMarketDataError if the close order fails.
        """
        close_slippage = validate_slippage(slippage)
        close_size = validate_size(size) if size is not None else None

        outcome = CloseOutcome(symbol=symbol)
        with track_close_duration(symbol, "market_close") as ctx:
            outcome._advance(CloseState.LOCATE)
            try:
                position = await self.locator.find_position(acting_address, symbol)
            except PositionNotFoundError:
                outcome._advance(CloseState.NOT_FOUND)
                outcome._advance(CloseState.DONE_NOOP)
                ctx["outcome"] = "noop"
                logger.info(f"{LOG_TAG_CLOSE} {symbol}: no open position at {acting_address.short}, nothing to close")
                return outcome

            outcome._advance(CloseState.FOUND)
            try:
                await self._close_position(acting_address, position, close_slippage, outcome, size=close_size)
            except Exception as e:
                outcome._fail(e)
                logger.error(f"{LOG_TAG_CLOSE} {symbol}: close failed: {outcome.error_code} {outcome.error}")
                raise
            ctx["outcome"] = "done"
        return outcome

    async def close_all_positions(
        self,
        acting_address: Address,
        slippage: Decimal | str | float,
        *,
        concurrent: bool | None = None,
    ) -> CloseAllResult:
        """
        Close every open position held by `acting_address`.

        One snapshot is taken before any submission; each position gets an
        independent reduce-only close. A failing symbol does not stop the others.

        Returns:
            CloseAllResult with one outcome per open position (empty if flat).

        Raises:
            InvalidSlippageError before any network call.
            UpstreamUnavailableError if the snapshot cannot be fetched.
            CloseAllFailedError if every close failed.
        """
        close_slippage = validate_slippage(slippage)
        if concurrent is None:
            concurrent = self.settings.trading.close_all_concurrent

        state = await self.locator.snapshot(acting_address)
        positions = state.open_positions()
        result = CloseAllResult(acting_address=acting_address)

        if not positions:
            logger.info(f"{LOG_TAG_CLOSE} no open positions at {acting_address.short}, nothing to close")
            record_close_all_batch("empty")
            return result

        logger.info(
            f"{LOG_TAG_CLOSE} closing {len(positions)} positions at {acting_address.short} "
            f"({'concurrent' if concurrent else 'sequential'}): {', '.join(p.symbol for p in positions)}"
        )

        if concurrent:
            limit = asyncio.Semaphore(self.settings.trading.close_all_max_concurrency)

            async def close_with_limit(position: Position) -> CloseOutcome:
                async with limit:
                    return await self._close_one_of_many(acting_address, position, close_slippage)

            result.outcomes = list(await asyncio.gather(*(close_with_limit(p) for p in positions)))
        else:
            for position in positions:
                result.outcomes.append(await self._close_one_of_many(acting_address, position, close_slippage))

        if result.all_succeeded:
            record_close_all_batch("ok")
            logger.info(f"{LOG_TAG_CLOSE} all {len(result.outcomes)} closes submitted")
            return result

        if not result.succeeded:
            record_close_all_batch("failed")
            logger.error(f"{LOG_TAG_CLOSE} all {len(result.outcomes)} closes failed")
            raise CloseAllFailedError(
                f"All {len(result.outcomes)} closes failed at {acting_address}",
                result=result,
            )

        record_close_all_batch("partial")
        logger.warning(
            f"{LOG_TAG_CLOSE} partial close: {len(result.succeeded)} ok, {len(result.failed)} failed "
            f"({', '.join(o.symbol for o in result.failed)})"
        )
        return result

    async def _close_one_of_many(
        self,
        acting_address: Address,
        position: Position,
        slippage: Decimal,
    ) -> CloseOutcome:
        """Close one snapshot position, capturing any failure in the outcome."""
        outcome = CloseOutcome(symbol=position.symbol)
        with track_close_duration(position.symbol, "close_all") as ctx:
            outcome._advance(CloseState.LOCATE)
            outcome._advance(CloseState.FOUND)
            try:
                await self._close_position(acting_address, position, slippage, outcome)
            except DomainError as e:
                outcome._fail(e)
                logger.error(f"{LOG_TAG_CLOSE} {position.symbol}: close failed: {e.error_code} {e.message}")
            except Exception as e:
                outcome._fail(e)
                logger.exception(f"{LOG_TAG_CLOSE} {position.symbol}: unexpected close failure: {e}")
            else:
                ctx["outcome"] = "done"
        return outcome

    async def _close_position(
        self,
        acting_address: Address,
        position: Position,
        slippage: Decimal,
        outcome: CloseOutcome,
        *,
        size: Decimal | None = None,
    ) -> None:
        outcome.position = position
        close_size = position.abs_size
        if size is not None:
            if size > close_size:
                logger.warning(
                    f"{LOG_TAG_CLOSE} {position.symbol}: requested {size} exceeds open size {close_size}, capping"
                )
            close_size = min(size, close_size)

        outcome._advance(CloseState.CLOSE)
        logger.info(
            f"{LOG_TAG_CLOSE} {position.symbol}: position {position.size} -> "
            f"{position.close_side.value} {close_size} reduce-only"
        )
        outcome.order = await self.market_order.submit(
            acting_address,
            position.symbol,
            position.close_side,
            close_size,
            slippage,
            reduce_only=True,
        )
        outcome._advance(CloseState.DONE)
