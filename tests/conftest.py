"""
Shared fixtures.
"""

from decimal import Decimal

import pytest

from tests.mocks.exchange import SIGNER, VAULT, MockExchange
from trade_ops.config.settings import Settings, TradingSettings
from trade_ops.services.operations import OperationsConfig, TradingOperations


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep unit tests independent of the developer's .env / shell."""
    for var in (
        "HYPERLIQUID_PRIVATE_KEY",
        "HYPERLIQUID_VAULT_ADDRESS",
        "HYPERLIQUID_BASE_URL",
        "HYPERLIQUID_ACCOUNT_ADDRESS",
        "TRADE_OPS_CONFIRM_LIVE",
        "TRADE_OPS_ALLOW_TESTING_LIVE",
        "TRADE_OPS_ENV",
    ):
        monkeypatch.delenv(var, raising=False)
    return True


@pytest.fixture
def settings():
    return Settings(trading=TradingSettings(default_slippage=Decimal("0.05")))


@pytest.fixture
def exchange():
    return MockExchange()


@pytest.fixture
def signer():
    return SIGNER


@pytest.fixture
def vault():
    return VAULT


@pytest.fixture
def make_ops(exchange, settings):
    """Build a TradingOperations around the mock exchange."""

    def _make(vault_address=None, **overrides):
        config = OperationsConfig(
            identity=overrides.get("identity", exchange),
            exchange=overrides.get("exchange", exchange),
            settings=overrides.get("settings", settings),
            vault_address=vault_address,
        )
        return TradingOperations(config)

    return _make
