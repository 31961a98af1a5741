"""
Entry points for CLI commands.

Each command loads settings, applies the run-safety gate, wires the
operations facade and renders the result.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

# Load .env file BEFORE importing settings
from dotenv import load_dotenv

for env_path in [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent.parent / ".env",  # Project root
]:
    if env_path.exists():
        load_dotenv(env_path)
        break
else:
    load_dotenv()

from rich import box  # noqa: E402
from rich.console import Console  # noqa: E402
from rich.table import Table  # noqa: E402
from rich.text import Text  # noqa: E402

from trade_ops.app.run_safety import RunMode, RunSafetyDecision, apply_run_safety  # noqa: E402
from trade_ops.config.settings import Settings, get_settings  # noqa: E402
from trade_ops.domain.errors import CloseAllFailedError, DomainError  # noqa: E402
from trade_ops.domain.identity import Address  # noqa: E402
from trade_ops.observability.logging import get_logger, setup_logging  # noqa: E402
from trade_ops.ports.exchange import ExchangePort  # noqa: E402
from trade_ops.services.operations import OperationsConfig, TradingOperations  # noqa: E402
from trade_ops.services.positions.close import CloseAllResult  # noqa: E402

console = Console()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PARTIAL = 2


def _prepare(
    env: str,
    mode_override: RunMode | None,
    confirm_live: bool,
) -> RunSafetyDecision | None:
    settings = get_settings(env)
    decision = apply_run_safety(settings, mode_override=mode_override, confirm_live_flag=confirm_live)
    setup_logging(decision.settings)
    logger = get_logger(__name__)

    logger.warning(
        f"mode={decision.mode.upper()} ({'REAL ORDERS' if decision.is_live else 'no orders sent'}) "
        f"| env={env} | exchange={decision.settings.exchange.base_url}"
    )
    for warning in decision.warnings:
        logger.warning(warning)
    if decision.errors:
        for error in decision.errors:
            logger.error(error)
        logger.error("Aborting due to run-safety errors.")
        return None
    return decision


def _build_operations(settings: Settings, *, live: bool) -> tuple[TradingOperations, ExchangePort]:
    from trade_ops.adapters.exchanges.hyperliquid.adapter import HyperliquidAdapter
    from trade_ops.adapters.exchanges.paper import PaperExchange

    adapter = HyperliquidAdapter(settings)
    exchange: ExchangePort = adapter if live else PaperExchange(adapter)
    ops = TradingOperations(
        OperationsConfig(
            identity=adapter,
            exchange=exchange,
            settings=settings,
            vault_address=Address.parse_optional(settings.exchange.vault_address),
        )
    )
    return ops, exchange


def _render_close_all(result: CloseAllResult) -> None:
    table = Table(title=f"close-all @ {result.acting_address}", box=box.MINIMAL_DOUBLE_HEAD)
    table.add_column("Symbol", style="bold")
    table.add_column("State")
    table.add_column("Position", justify="right")
    table.add_column("Order", justify="right")
    table.add_column("Error")
    for outcome in result.outcomes:
        order = outcome.order
        table.add_row(
            outcome.symbol,
            Text(outcome.state.value, style="green" if outcome.succeeded else "red"),
            str(outcome.position.size) if outcome.position else "-",
            f"{order.side.value} {order.size} @ {order.limit_price} ({order.status.value})" if order else "-",
            f"{outcome.error_code}: {outcome.error}" if outcome.error_code else "",
        )
    console.print(table)


async def run_positions(
    env: str = "development",
    *,
    mode_override: RunMode | None = None,
    confirm_live: bool = False,
) -> int:
    """Show the acting address and its open positions."""
    decision = _prepare(env, mode_override, confirm_live)
    if decision is None:
        return EXIT_FAILED
    logger = get_logger(__name__)

    ops, exchange = _build_operations(decision.settings, live=decision.is_live)
    try:
        await exchange.initialize()
        state = await ops.account_state()
    except DomainError as e:
        logger.error(f"{e.error_code}: {e.message}")
        return EXIT_FAILED
    finally:
        await exchange.close()

    table = Table(title=f"{state.address} ({ops.auth_status().value})", box=box.MINIMAL_DOUBLE_HEAD)
    table.add_column("Symbol", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Entry", justify="right")
    table.add_column("uPnL", justify="right")
    table.add_column("Lev", justify="right")
    table.add_column("Liq", justify="right")
    for p in state.open_positions():
        table.add_row(
            p.symbol,
            Text(str(p.size), style="green" if p.is_long else "red"),
            str(p.entry_price),
            Text(f"{p.unrealized_pnl:.2f}", style="green" if p.unrealized_pnl >= 0 else "red"),
            f"{p.leverage}x",
            str(p.liquidation_price) if p.liquidation_price is not None else "-",
        )
    console.print(table)
    console.print(
        f"account value {state.margin.account_value} | margin used {state.margin.total_margin_used} "
        f"| withdrawable {state.margin.withdrawable}"
    )
    return EXIT_OK


async def run_close(
    symbol: str,
    env: str = "development",
    *,
    size: Decimal | None = None,
    slippage: Decimal | None = None,
    mode_override: RunMode | None = None,
    confirm_live: bool = False,
) -> int:
    """Market-close one symbol. No position is a successful no-op."""
    decision = _prepare(env, mode_override, confirm_live)
    if decision is None:
        return EXIT_FAILED
    logger = get_logger(__name__)

    ops, exchange = _build_operations(decision.settings, live=decision.is_live)
    try:
        await exchange.initialize()
        outcome = await ops.market_close(symbol, slippage=slippage, size=size)
    except DomainError as e:
        logger.error(f"close {symbol} failed: {e.error_code}: {e.message}")
        return EXIT_FAILED
    finally:
        await exchange.close()

    if outcome.is_noop:
        console.print(f"{symbol}: no open position at {ops.acting_address()}, nothing to do")
    elif outcome.order is not None:
        order = outcome.order
        console.print(
            f"{symbol}: {order.side.value} {order.size} @ {order.limit_price} reduce-only "
            f"-> {order.status.value} (filled {order.filled_size}, avg {order.avg_fill_price})"
        )
    return EXIT_OK


async def run_close_all(
    env: str = "development",
    *,
    slippage: Decimal | None = None,
    cancel_orders: bool = False,
    sequential: bool = False,
    mode_override: RunMode | None = None,
    confirm_live: bool = False,
) -> int:
    """
    Close every open position of the acting address.

    Returns:
        0 if every close succeeded (or nothing was open), 2 on partial
        failure, 1 if every close failed or the snapshot could not be read.
    """
    decision = _prepare(env, mode_override, confirm_live)
    if decision is None:
        return EXIT_FAILED
    logger = get_logger(__name__)

    logger.warning("========================================")
    logger.warning("CLOSE-ALL INITIATED")
    logger.warning("========================================")

    ops, exchange = _build_operations(decision.settings, live=decision.is_live)
    try:
        await exchange.initialize()
        if cancel_orders:
            await ops.cancel_all_orders()
        result = await ops.close_all_positions(slippage=slippage, concurrent=False if sequential else None)
    except CloseAllFailedError as e:
        _render_close_all(e.result)
        logger.error(f"close-all failed: {e.message}")
        return EXIT_FAILED
    except DomainError as e:
        logger.error(f"close-all aborted: {e.error_code}: {e.message}")
        return EXIT_FAILED
    finally:
        await exchange.close()

    if result.is_empty:
        console.print(f"No open positions at {result.acting_address}")
        return EXIT_OK

    _render_close_all(result)
    if result.is_partial:
        logger.warning(f"close-all partial: failed {', '.join(o.symbol for o in result.failed)}")
        return EXIT_PARTIAL
    logger.warning("CLOSE-ALL COMPLETE")
    return EXIT_OK


async def run_doctor(env: str = "development") -> int:
    """Run preflight checks."""
    settings = get_settings(env)
    setup_logging(settings)
    logger = get_logger(__name__)

    logger.info("Running preflight checks...")

    checks_passed = 0
    checks_failed = 0

    key = settings.exchange.private_key or os.getenv("HYPERLIQUID_PRIVATE_KEY", "")
    if key:
        logger.info("[OK] Hyperliquid private key configured")
        checks_passed += 1
    elif settings.exchange.account_address:
        logger.warning("[OK] No private key, read-only account configured")
        checks_passed += 1
    else:
        logger.error("[FAIL] Neither private key nor account address configured")
        checks_failed += 1

    for label, raw in (
        ("vault address", settings.exchange.vault_address),
        ("account address", settings.exchange.account_address),
    ):
        try:
            parsed = Address.parse_optional(raw)
        except DomainError as e:
            logger.error(f"[FAIL] {label} malformed: {e.message}")
            checks_failed += 1
            continue
        logger.info(f"[OK] {label}: {parsed if parsed else 'not set'}")
        checks_passed += 1

    if settings.live_trading:
        errors = settings.validate_for_live_trading()
        if errors:
            for error in errors:
                logger.error(f"[FAIL] {error}")
            checks_failed += 1
        else:
            logger.info("[OK] live trading configuration")
            checks_passed += 1

    logs_dir = Path(settings.logging.log_dir)
    if not logs_dir.exists():
        logs_dir.mkdir(parents=True, exist_ok=True)
    logger.info("[OK] Logs directory ready")
    checks_passed += 1

    logger.info(f"Preflight: {checks_passed} passed, {checks_failed} failed")
    return 0 if checks_failed == 0 else 1
