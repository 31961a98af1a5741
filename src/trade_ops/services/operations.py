"""
Trading operations facade.

Wires the locator, the slippage order builder and the close operations
around one acting address, resolved from the signer and the configured vault.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from trade_ops.config.settings import Settings
from trade_ops.domain.identity import Address, AuthStatus, resolve_acting_address
from trade_ops.domain.models import ClearinghouseState, Order, Side
from trade_ops.observability.logging import LOG_TAG_ACCOUNT, get_logger
from trade_ops.ports.exchange import ExchangePort
from trade_ops.ports.identity import IdentityPort
from trade_ops.services.orders.slippage import SlippageMarketOrder, validate_slippage
from trade_ops.services.positions.close import CloseAllResult, CloseOperations, CloseOutcome
from trade_ops.services.positions.locator import PositionLocator

logger = get_logger(__name__)


@dataclass(frozen=True)
class OperationsConfig:
    """Everything the facade needs. Vault is an Address or None, never a flag."""

    identity: IdentityPort
    exchange: ExchangePort
    settings: Settings
    vault_address: Address | None = None


class TradingOperations:
    """
    High-level trading operations for one acting address.

    The acting address is the configured vault when present, otherwise the
    signer's wallet. It is resolved once and cached; `set_vault_address`
    is the only way to change it.
    """

    def __init__(self, config: OperationsConfig):
        self.config = config
        self.settings = config.settings
        self._vault_address = config.vault_address
        self._acting_address: Address | None = None

        self.locator = PositionLocator(config.exchange)
        self.market_order = SlippageMarketOrder(config.exchange, config.exchange, config.exchange)
        self.closer = CloseOperations(self.locator, self.market_order, config.settings)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def vault_address(self) -> Address | None:
        return self._vault_address

    def acting_address(self) -> Address:
        if self._acting_address is None:
            self._acting_address = resolve_acting_address(
                self.config.identity.signer_address(),
                self._vault_address,
            )
            logger.info(
                f"{LOG_TAG_ACCOUNT} acting address {self._acting_address} "
                f"({'vault' if self._vault_address else 'signer'})"
            )
        return self._acting_address

    def set_vault_address(self, vault: Address | str | None) -> Address:
        """Switch vault (None = signer's own wallet). Returns the new acting address."""
        new_vault = vault if isinstance(vault, Address) else Address.parse_optional(vault)
        self._vault_address = new_vault
        self._acting_address = None
        return self.acting_address()

    def auth_status(self) -> AuthStatus:
        return self.config.identity.auth_status()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _slippage(self, slippage: Decimal | str | float | None) -> Decimal:
        if slippage is None:
            return self.settings.trading.default_slippage
        return validate_slippage(slippage)

    async def account_state(self) -> ClearinghouseState:
        return await self.locator.snapshot(self.acting_address())

    async def market_open(
        self,
        symbol: str,
        side: Side | str,
        size: Decimal | str | float,
        slippage: Decimal | str | float | None = None,
    ) -> Order:
        """Open or add to a position with a slippage-protected IOC order."""
        return await self.market_order.submit(
            self.acting_address(),
            symbol,
            side,
            size,
            self._slippage(slippage),
        )

    async def market_close(
        self,
        symbol: str,
        slippage: Decimal | str | float | None = None,
        size: Decimal | str | float | None = None,
    ) -> CloseOutcome:
        return await self.closer.market_close(
            self.acting_address(),
            symbol,
            self._slippage(slippage),
            size=size,
        )

    async def close_all_positions(
        self,
        slippage: Decimal | str | float | None = None,
        concurrent: bool | None = None,
    ) -> CloseAllResult:
        return await self.closer.close_all_positions(
            self.acting_address(),
            self._slippage(slippage),
            concurrent=concurrent,
        )

    async def cancel_all_orders(self, symbol: str | None = None) -> int:
        acting = self.acting_address()
        cancelled = await self.config.exchange.cancel_all_orders(acting, symbol)
        logger.info(f"{LOG_TAG_ACCOUNT} cancelled {cancelled} open orders at {acting.short}")
        return cancelled
