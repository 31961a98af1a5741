"""
Unit tests for CLI commands (exchange wiring replaced by the in-memory mock).
"""

from decimal import Decimal

import pytest

from tests.mocks.exchange import SIGNER, VAULT, MockExchange
from trade_ops import __main__ as cli
from trade_ops.app import run
from trade_ops.app.run_safety import RunSafetyDecision
from trade_ops.config.settings import Settings
from trade_ops.services.operations import OperationsConfig, TradingOperations

pytestmark = pytest.mark.unit


@pytest.fixture
def wired(monkeypatch):
    """Patch settings/safety and exchange wiring; return the mock exchange."""
    exchange = MockExchange()
    settings = Settings()

    def fake_prepare(env, mode_override, confirm_live):
        return RunSafetyDecision(settings=settings, mode="paper", live_confirmed=False, errors=[], warnings=[])

    def fake_build(settings, *, live):
        ops = TradingOperations(
            OperationsConfig(identity=exchange, exchange=exchange, settings=settings, vault_address=VAULT)
        )
        return ops, exchange

    monkeypatch.setattr(run, "_prepare", fake_prepare)
    monkeypatch.setattr(run, "_build_operations", fake_build)
    return exchange


class TestCloseAllExitCodes:
    @pytest.mark.asyncio
    async def test_empty_is_success(self, wired):
        assert await run.run_close_all() == run.EXIT_OK
        assert wired.placed == []

    @pytest.mark.asyncio
    async def test_all_ok(self, wired):
        wired.set_position(VAULT, "BTC", "1")
        wired.set_position(VAULT, "ETH", "-3")
        assert await run.run_close_all() == run.EXIT_OK
        assert len(wired.placed) == 2

    @pytest.mark.asyncio
    async def test_partial(self, wired):
        wired.set_position(VAULT, "BTC", "1")
        wired.set_position(VAULT, "ETH", "-3")
        wired.reject_symbols["ETH"] = "Insufficient margin"
        assert await run.run_close_all() == run.EXIT_PARTIAL

    @pytest.mark.asyncio
    async def test_all_failed(self, wired):
        wired.set_position(VAULT, "BTC", "1")
        wired.reject_symbols["BTC"] = "Insufficient margin"
        assert await run.run_close_all() == run.EXIT_FAILED

    @pytest.mark.asyncio
    async def test_cancel_orders_first(self, wired):
        wired.open_orders[VAULT] = ["BTC"]
        await run.run_close_all(cancel_orders=True)
        assert wired.cancel_calls == [(VAULT, None)]

    @pytest.mark.asyncio
    async def test_safety_abort(self, monkeypatch):
        monkeypatch.setattr(run, "_prepare", lambda env, mode_override, confirm_live: None)
        assert await run.run_close_all() == run.EXIT_FAILED


@pytest.mark.asyncio
async def test_close_single_symbol(wired):
    wired.set_position(VAULT, "BTC", "2")
    assert await run.run_close("BTC", size=Decimal("0.5")) == run.EXIT_OK
    assert wired.placed[0].size == Decimal("0.5")
    assert wired.placed[0].reduce_only


@pytest.mark.asyncio
async def test_close_rejects_bad_slippage(wired):
    wired.set_position(VAULT, "BTC", "2")
    assert await run.run_close("BTC", slippage=Decimal("1.2")) == run.EXIT_FAILED
    assert wired.snapshot_calls == []


@pytest.mark.asyncio
async def test_positions(wired):
    wired.set_position(VAULT, "BTC", "1")
    assert await run.run_positions() == run.EXIT_OK
    assert wired.snapshot_calls == [VAULT]
    assert SIGNER not in wired.snapshot_calls


class TestArgParsing:
    def test_close_all_flags(self):
        args = cli._build_parser().parse_args(["--slippage", "0.02", "close-all", "--cancel-orders", "--sequential"])
        assert args.command == "close-all"
        assert args.slippage == Decimal("0.02")
        assert args.cancel_orders and args.sequential

    def test_close_with_size(self):
        args = cli._build_parser().parse_args(["--mode", "live", "--confirm-live", "close", "BTC", "--size", "0.5"])
        assert args.symbol == "BTC"
        assert args.size == Decimal("0.5")
        assert args.mode == "live" and args.confirm_live

    def test_non_numeric_slippage_rejected(self):
        with pytest.raises(SystemExit):
            cli._build_parser().parse_args(["--slippage", "lots", "positions"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli._build_parser().parse_args([])
