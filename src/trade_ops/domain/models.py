"""
Canonical Domain Models.

All financial values use Decimal for precision.
These models are the single source of truth - SDK payloads are mapped to these.
Position and clearinghouse records are read-only snapshots of exchange state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from trade_ops.domain.errors import InvalidSideError
from trade_ops.domain.identity import Address

# =============================================================================
# ENUMS
# =============================================================================


class Side(str, Enum):
    """Order side."""

    BUY = "BUY"
    SELL = "SELL"

    def inverse(self) -> Side:
        """Return the opposite side."""
        return Side.SELL if self == Side.BUY else Side.BUY

    @property
    def is_buy(self) -> bool:
        return self == Side.BUY

    @classmethod
    def from_string(cls, value: str | Side) -> Side:
        """Parse side from various string formats."""
        if isinstance(value, Side):
            return value
        if not isinstance(value, str):
            raise InvalidSideError(f"Unknown side: {value!r}")
        normalized = value.upper().strip()
        if normalized in ("BUY", "LONG", "B"):
            return cls.BUY
        if normalized in ("SELL", "SHORT", "S", "A"):
            return cls.SELL
        raise InvalidSideError(f"Unknown side: {value}")


class TimeInForce(str, Enum):
    """Time in force options."""

    GTC = "GTC"  # Good till cancelled
    IOC = "IOC"  # Immediate or cancel
    POST_ONLY = "POST_ONLY"  # Maker only


class OrderStatus(str, Enum):
    """Order status."""

    PENDING = "PENDING"
    OPEN = "OPEN"
    PARTIALLY_FILLED = "PARTIALLY_FILLED"
    FILLED = "FILLED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"

    def is_terminal(self) -> bool:
        """Check if this is a final state."""
        return self in (
            OrderStatus.FILLED,
            OrderStatus.CANCELLED,
            OrderStatus.REJECTED,
        )


class CloseState(str, Enum):
    """Per-call close state machine."""

    START = "START"
    LOCATE = "LOCATE"
    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    CLOSE = "CLOSE"
    DONE = "DONE"
    DONE_NOOP = "DONE_NOOP"
    FAILED = "FAILED"

    def is_terminal(self) -> bool:
        return self in (CloseState.DONE, CloseState.DONE_NOOP, CloseState.FAILED)


# =============================================================================
# VALUE OBJECTS & MODELS
# =============================================================================


def _new_client_order_id() -> str:
    # 16-byte hex, the form the exchange accepts as a client order id.
    return f"0x{uuid.uuid4().hex}"


@dataclass(frozen=True, slots=True)
class Position:
    """
    Exchange position.

    Always a live snapshot from the exchange. `size` is signed:
    positive = long, negative = short.
    """

    symbol: str
    size: Decimal
    entry_price: Decimal = Decimal("0")
    unrealized_pnl: Decimal = Decimal("0")
    leverage: Decimal = Decimal("1")
    liquidation_price: Decimal | None = None
    margin_used: Decimal = Decimal("0")

    @property
    def is_open(self) -> bool:
        return self.size != 0

    @property
    def is_long(self) -> bool:
        return self.size > 0

    @property
    def is_short(self) -> bool:
        return self.size < 0

    @property
    def abs_size(self) -> Decimal:
        return abs(self.size)

    @property
    def close_side(self) -> Side:
        """Side of the order that flattens this position."""
        return Side.SELL if self.is_long else Side.BUY


@dataclass(frozen=True, slots=True)
class MarginSummary:
    """Account-level margin figures."""

    account_value: Decimal = Decimal("0")
    total_margin_used: Decimal = Decimal("0")
    total_notional: Decimal = Decimal("0")
    withdrawable: Decimal = Decimal("0")


@dataclass(frozen=True, slots=True)
class ClearinghouseState:
    """Point-in-time snapshot of one address's positions and margin."""

    address: Address
    positions: tuple[Position, ...] = ()
    margin: MarginSummary = field(default_factory=MarginSummary)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def open_positions(self) -> list[Position]:
        """Positions with non-zero size, in snapshot order."""
        return [p for p in self.positions if p.is_open]

    def position_for(self, symbol: str) -> Position | None:
        """Exact (case-sensitive) match; zero-size entries count as absent."""
        for p in self.positions:
            if p.symbol == symbol and p.is_open:
                return p
        return None


@dataclass(slots=True)
class OrderRequest:
    """Request to place an order. Built fresh for every submission."""

    symbol: str
    side: Side
    size: Decimal
    limit_price: Decimal
    acting_address: Address
    reduce_only: bool = False
    time_in_force: TimeInForce = TimeInForce.IOC
    client_order_id: str | None = None

    def __post_init__(self) -> None:
        if self.client_order_id is None:
            self.client_order_id = _new_client_order_id()


@dataclass(slots=True)
class Order:
    """
    Order with fill information.

    Created after an order is submitted.
    """

    order_id: str
    symbol: str
    side: Side
    size: Decimal
    acting_address: Address
    limit_price: Decimal | None = None
    reduce_only: bool = False
    status: OrderStatus = OrderStatus.PENDING
    filled_size: Decimal = Decimal("0")
    avg_fill_price: Decimal = Decimal("0")
    client_order_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_filled(self) -> bool:
        return self.status == OrderStatus.FILLED

    @property
    def remaining_size(self) -> Decimal:
        return self.size - self.filled_size
