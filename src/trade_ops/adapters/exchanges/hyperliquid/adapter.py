"""
Hyperliquid Exchange Adapter.

Implements ExchangePort and IdentityPort.
Reads go over aiohttp against the public `/info` endpoint; order writes are
signed by the official SDK (`hyperliquid-python-sdk`) and run in a worker
thread because the SDK is synchronous.

SDK: https://github.com/hyperliquid-dex/hyperliquid-python-sdk
"""

from __future__ import annotations

import asyncio
import os
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import aiohttp
import eth_account
import requests
from hyperliquid.exchange import Exchange
from hyperliquid.utils.error import ClientError, ServerError
from hyperliquid.utils.types import Cloid

from trade_ops.config.settings import Settings
from trade_ops.domain.errors import (
    ExchangeError,
    ExchangeTimeoutError,
    InsufficientMarketDataError,
    OrderRejectedError,
    UpstreamUnavailableError,
)
from trade_ops.domain.identity import Address, AuthStatus
from trade_ops.domain.models import (
    ClearinghouseState,
    MarginSummary,
    Order,
    OrderRequest,
    OrderStatus,
    Position,
    TimeInForce,
)
from trade_ops.observability.logging import LOG_TAG_ORDER, get_logger
from trade_ops.ports.exchange import ExchangePort
from trade_ops.ports.identity import IdentityPort
from trade_ops.utils.decimals import safe_decimal as _safe_decimal

logger = get_logger(__name__)

# Perp prices carry at most MAX_DECIMALS - szDecimals decimal places.
PERP_MAX_DECIMALS = 6
# Non-integer prices carry at most this many significant figures.
MAX_SIGNIFICANT_FIGURES = 5

_TIF_TO_SDK = {
    TimeInForce.IOC: "Ioc",
    TimeInForce.GTC: "Gtc",
    TimeInForce.POST_ONLY: "Alo",
}


def _tick_size_for(sz_decimals: int, price: Decimal | None = None) -> Decimal:
    """
    Price increment for a perp market.

    Without a price only the decimal-places limit applies. With a price the
    significant-figure limit can make it coarser, capped at 1 because integer
    prices are always accepted.
    """
    tick = Decimal(1).scaleb(-max(PERP_MAX_DECIMALS - sz_decimals, 0))
    if price is None or price <= 0:
        return tick
    sig_fig_tick = min(Decimal(1).scaleb(price.adjusted() - (MAX_SIGNIFICANT_FIGURES - 1)), Decimal(1))
    return max(tick, sig_fig_tick)


def _parse_position(raw: dict[str, Any]) -> Position:
    leverage = raw.get("leverage") or {}
    liq = raw.get("liquidationPx")
    return Position(
        symbol=str(raw.get("coin", "")),
        size=_safe_decimal(raw.get("szi")),
        entry_price=_safe_decimal(raw.get("entryPx")),
        unrealized_pnl=_safe_decimal(raw.get("unrealizedPnl")),
        leverage=_safe_decimal(leverage.get("value") if isinstance(leverage, dict) else leverage, Decimal("1")),
        liquidation_price=_safe_decimal(liq) if liq is not None else None,
        margin_used=_safe_decimal(raw.get("marginUsed")),
    )


def _parse_clearinghouse_state(address: Address, data: dict[str, Any]) -> ClearinghouseState:
    positions = tuple(
        _parse_position(item.get("position") or {})
        for item in data.get("assetPositions") or []
        if isinstance(item, dict)
    )
    summary = data.get("marginSummary") or {}
    time_ms = data.get("time")
    return ClearinghouseState(
        address=address,
        positions=positions,
        margin=MarginSummary(
            account_value=_safe_decimal(summary.get("accountValue")),
            total_margin_used=_safe_decimal(summary.get("totalMarginUsed")),
            total_notional=_safe_decimal(summary.get("totalNtlPos")),
            withdrawable=_safe_decimal(data.get("withdrawable")),
        ),
        timestamp=datetime.fromtimestamp(time_ms / 1000, UTC) if isinstance(time_ms, int) else datetime.now(UTC),
    )


def _parse_order_response(request: OrderRequest, response: Any) -> Order:
    """
    Map an SDK order response to a domain Order.

    Shape: {"status": "ok", "response": {"data": {"statuses": [{"filled": {...}} | {"resting": {...}} | {"error": str}]}}}
    """
    if not isinstance(response, dict) or response.get("status") != "ok":
        reason = response.get("response") if isinstance(response, dict) else response
        raise OrderRejectedError(
            f"Hyperliquid rejected order for {request.symbol}: {reason}",
            symbol=request.symbol,
            reason=str(reason),
        )

    statuses = ((response.get("response") or {}).get("data") or {}).get("statuses") or []
    if not statuses:
        raise ExchangeError(
            f"Empty order status list for {request.symbol}",
            symbol=request.symbol,
            details={"response": response},
        )
    status = statuses[0]

    if "error" in status:
        raise OrderRejectedError(
            f"Hyperliquid rejected order for {request.symbol}: {status['error']}",
            symbol=request.symbol,
            reason=str(status["error"]),
        )

    order = Order(
        order_id="",
        symbol=request.symbol,
        side=request.side,
        size=request.size,
        acting_address=request.acting_address,
        limit_price=request.limit_price,
        reduce_only=request.reduce_only,
        client_order_id=request.client_order_id,
    )

    if "filled" in status:
        filled = status["filled"]
        order.order_id = str(filled.get("oid", ""))
        order.filled_size = _safe_decimal(filled.get("totalSz"))
        order.avg_fill_price = _safe_decimal(filled.get("avgPx"))
        order.status = OrderStatus.FILLED if order.filled_size >= request.size else OrderStatus.PARTIALLY_FILLED
    elif "resting" in status:
        order.order_id = str(status["resting"].get("oid", ""))
        order.status = OrderStatus.OPEN
    else:
        raise ExchangeError(
            f"Unknown order status for {request.symbol}: {status}",
            symbol=request.symbol,
            details={"status": status},
        )
    return order


class HyperliquidAdapter(ExchangePort, IdentityPort):
    """
    Hyperliquid perpetuals adapter.

    One SDK `Exchange` client is kept per acting address: when the acting
    address is not the signer's own account, the client is built with
    `vault_address` so orders are attributed to the vault.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._base_url = settings.exchange.base_url.rstrip("/")
        self._private_key = settings.exchange.private_key or os.getenv("HYPERLIQUID_PRIVATE_KEY", "")
        self._timeout = aiohttp.ClientTimeout(total=float(settings.exchange.request_timeout_seconds))

        self._wallet: Any = eth_account.Account.from_key(self._private_key) if self._private_key else None
        # API wallets sign for a main account; otherwise the key's own address is the account.
        self._account_address = Address.parse_optional(settings.exchange.account_address)
        if self._account_address is None and self._wallet is not None:
            self._account_address = Address(self._wallet.address)

        self._http_session: aiohttp.ClientSession | None = None
        self._sdk_clients: dict[Address, Exchange] = {}
        self._sdk_lock = asyncio.Lock()
        self._sz_decimals: dict[str, int] = {}
        self._connected = False

    @property
    def name(self) -> str:
        return "HYPERLIQUID"

    @property
    def is_connected(self) -> bool:
        return self._connected

    # =========================================================================
    # Identity
    # =========================================================================

    def signer_address(self) -> Address | None:
        return self._account_address

    def auth_status(self) -> AuthStatus:
        return AuthStatus.AUTHENTICATED if self._wallet is not None else AuthStatus.READ_ONLY

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """Open the HTTP session and load market metadata."""
        if self._connected:
            return

        logger.info(f"Initializing Hyperliquid adapter ({self._base_url}, {self.auth_status().value})...")
        try:
            await self._load_meta()
            self._connected = True
            logger.info(f"Hyperliquid adapter initialized with {len(self._sz_decimals)} markets")
        except Exception as e:
            logger.exception(f"Failed to initialize Hyperliquid adapter: {e}")
            await self.close()
            raise

    async def close(self) -> None:
        if self._http_session and not self._http_session.closed:
            await self._http_session.close()
        self._http_session = None
        self._sdk_clients.clear()
        self._connected = False

    # =========================================================================
    # Info endpoint (reads)
    # =========================================================================

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(timeout=self._timeout)
        return self._http_session

    async def _post_info(self, payload: dict[str, Any]) -> Any:
        session = await self._get_session()
        url = f"{self._base_url}/info"
        try:
            async with session.post(url, json=payload) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise UpstreamUnavailableError(
                        f"Hyperliquid info {payload.get('type')} returned HTTP {resp.status}",
                        details={"status": resp.status, "body": body[:500]},
                    )
                return await resp.json()
        except TimeoutError as e:
            raise ExchangeTimeoutError(
                f"Hyperliquid info {payload.get('type')} timed out",
                details={"timeout_seconds": str(self.settings.exchange.request_timeout_seconds)},
            ) from e
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(
                f"Hyperliquid info {payload.get('type')} failed: {e}",
                details={"error": type(e).__name__},
            ) from e

    async def _load_meta(self) -> None:
        meta = await self._post_info({"type": "meta"})
        self._sz_decimals = {
            str(asset["name"]): int(asset.get("szDecimals", 0))
            for asset in (meta or {}).get("universe") or []
            if isinstance(asset, dict) and "name" in asset
        }

    async def get_clearinghouse_state(self, address: Address) -> ClearinghouseState:
        data = await self._post_info({"type": "clearinghouseState", "user": str(address)})
        if not isinstance(data, dict):
            raise UpstreamUnavailableError(
                f"Unexpected clearinghouseState payload for {address}",
                details={"payload_type": type(data).__name__},
            )
        return _parse_clearinghouse_state(address, data)

    async def get_reference_price(self, symbol: str) -> Decimal | None:
        mids = await self._post_info({"type": "allMids"})
        raw = (mids or {}).get(symbol)
        if raw is None:
            return None
        price = _safe_decimal(raw)
        return price if price > 0 else None

    async def get_tick_size(self, symbol: str, price: Decimal | None = None) -> Decimal:
        if symbol not in self._sz_decimals:
            await self._load_meta()
        if symbol not in self._sz_decimals:
            raise InsufficientMarketDataError(f"Unknown Hyperliquid market: {symbol}", symbol=symbol)
        return _tick_size_for(self._sz_decimals[symbol], price)

    async def _open_orders(self, address: Address) -> list[dict[str, Any]]:
        orders = await self._post_info({"type": "openOrders", "user": str(address)})
        return [o for o in orders or [] if isinstance(o, dict)]

    # =========================================================================
    # Exchange endpoint (signed writes)
    # =========================================================================

    async def _sdk_for(self, acting_address: Address) -> Exchange:
        if self._wallet is None:
            raise ExchangeError("No private key configured; this session is read-only")

        async with self._sdk_lock:
            client = self._sdk_clients.get(acting_address)
            if client is None:
                vault = None if acting_address == self._account_address else str(acting_address)
                account = str(self._account_address) if self._account_address else None
                # Exchange() fetches metadata on construction, so keep it off the event loop.
                client = await asyncio.to_thread(
                    Exchange,
                    self._wallet,
                    self._base_url,
                    vault_address=vault,
                    account_address=account,
                    timeout=float(self.settings.exchange.request_timeout_seconds),
                )
                self._sdk_clients[acting_address] = client
            return client

    async def _sdk_call(self, operation_name: str, fn: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except ClientError as e:
            raise ExchangeError(
                f"Hyperliquid {operation_name} rejected: {e.error_message}",
                details={"status_code": e.status_code, "error_code": e.error_code},
            ) from e
        except ServerError as e:
            raise UpstreamUnavailableError(
                f"Hyperliquid {operation_name} server error: {e.message}",
                details={"status_code": e.status_code},
            ) from e
        except (TimeoutError, requests.Timeout) as e:
            raise ExchangeTimeoutError(
                f"Hyperliquid {operation_name} timed out; outcome unknown",
                details={"timeout_seconds": str(self.settings.exchange.request_timeout_seconds)},
            ) from e
        except OSError as e:
            raise UpstreamUnavailableError(f"Hyperliquid {operation_name} failed: {e}") from e
        except (KeyError, ValueError) as e:
            # Raised by the SDK before sending: unknown coin, or a price/size float_to_wire cannot encode.
            raise ExchangeError(
                f"Hyperliquid {operation_name} could not be built: {e}",
                details={"error": type(e).__name__},
            ) from e

    async def place_order(self, request: OrderRequest) -> Order:
        """Place a limit order attributed to `request.acting_address`."""
        client = await self._sdk_for(request.acting_address)
        order_type = {"limit": {"tif": _TIF_TO_SDK[request.time_in_force]}}
        cloid = Cloid.from_str(request.client_order_id) if request.client_order_id else None

        logger.debug(
            f"{LOG_TAG_ORDER} Hyperliquid order: {request.side.value} {request.size} {request.symbol} "
            f"@ {request.limit_price} tif={order_type['limit']['tif']} reduce_only={request.reduce_only}"
        )
        response = await self._sdk_call(
            "order",
            client.order,
            request.symbol,
            request.side.is_buy,
            float(request.size),
            float(request.limit_price),
            order_type,
            reduce_only=request.reduce_only,
            cloid=cloid,
        )
        return _parse_order_response(request, response)

    async def cancel_all_orders(self, address: Address, symbol: str | None = None) -> int:
        """Cancel open orders of `address` (optionally one symbol). Returns number cancelled."""
        open_orders = [o for o in await self._open_orders(address) if symbol is None or o.get("coin") == symbol]
        if not open_orders:
            return 0

        client = await self._sdk_for(address)
        cancels = [{"coin": o["coin"], "oid": int(o["oid"])} for o in open_orders if "oid" in o]
        response = await self._sdk_call("bulk_cancel", client.bulk_cancel, cancels)

        if not isinstance(response, dict) or response.get("status") != "ok":
            raise ExchangeError(f"Hyperliquid bulk cancel failed: {response}")
        statuses = ((response.get("response") or {}).get("data") or {}).get("statuses") or []
        cancelled = sum(1 for s in statuses if s == "success")
        failed = len(statuses) - cancelled
        if failed:
            logger.warning(f"{failed}/{len(statuses)} Hyperliquid cancels failed: {statuses}")
        return cancelled
