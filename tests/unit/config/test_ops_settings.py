"""
Unit tests for Settings loading and live-trading validation (offline-only).
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from trade_ops.config.settings import ExchangeSettings, Settings, TradingSettings

pytestmark = pytest.mark.unit

KEY = "0x" + "1" * 64


class TestTradingSettings:
    def test_defaults(self):
        trading = TradingSettings()
        assert trading.default_slippage == Decimal("0.05")
        assert trading.close_all_concurrent is True
        assert trading.close_all_max_concurrency >= 1

    @pytest.mark.parametrize("slippage", ["1", "1.5", "-0.01"])
    def test_default_slippage_out_of_range(self, slippage):
        with pytest.raises(ValidationError):
            TradingSettings(default_slippage=Decimal(slippage))

    def test_max_concurrency_must_be_positive(self):
        with pytest.raises(ValidationError):
            TradingSettings(close_all_max_concurrency=0)


class TestExchangeValidation:
    def test_missing_key_reported(self):
        errors = ExchangeSettings().validate_for_live_trading()
        assert any("private_key" in e for e in errors)

    def test_key_from_env_accepted(self, monkeypatch):
        monkeypatch.setenv("HYPERLIQUID_PRIVATE_KEY", KEY)
        assert ExchangeSettings().validate_for_live_trading() == []

    def test_malformed_vault_reported(self):
        errors = ExchangeSettings(private_key=KEY, vault_address="true").validate_for_live_trading()
        assert any("vault_address" in e for e in errors)

    def test_valid_vault_accepted(self):
        assert ExchangeSettings(private_key=KEY, vault_address="0x" + "b" * 40).validate_for_live_trading() == []


class TestFromYaml:
    def test_loads_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "exchange:\n"
            "  base_url: https://api.hyperliquid-testnet.xyz\n"
            "  vault_address: '0x" + "b" * 40 + "'\n"
            "trading:\n"
            "  default_slippage: 0.02\n"
            "  close_all_concurrent: false\n",
            encoding="utf-8",
        )
        settings = Settings.from_yaml(env="test", path=path)
        assert settings.env == "test"
        assert settings.exchange.base_url == "https://api.hyperliquid-testnet.xyz"
        assert settings.exchange.vault_address == "0x" + "b" * 40
        assert settings.trading.default_slippage == Decimal("0.02")
        assert settings.trading.close_all_concurrent is False

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("exchange:\n  vault_address: '0x" + "b" * 40 + "'\n", encoding="utf-8")
        monkeypatch.setenv("HYPERLIQUID_PRIVATE_KEY", KEY)
        monkeypatch.setenv("HYPERLIQUID_BASE_URL", "https://example.invalid")
        monkeypatch.setenv("HYPERLIQUID_ACCOUNT_ADDRESS", "0x" + "c" * 40)

        settings = Settings.from_yaml(path=path)

        assert settings.exchange.private_key == KEY
        assert settings.exchange.base_url == "https://example.invalid"
        assert settings.exchange.account_address == "0x" + "c" * 40

    def test_empty_vault_env_clears_yaml_vault(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("exchange:\n  vault_address: '0x" + "b" * 40 + "'\n", encoding="utf-8")
        monkeypatch.setenv("HYPERLIQUID_VAULT_ADDRESS", "")
        assert Settings.from_yaml(path=path).exchange.vault_address == ""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = Settings.from_yaml(path=tmp_path / "absent.yaml")
        assert settings.live_trading is False
        assert settings.trading.default_slippage == Decimal("0.05")

    def test_unknown_keys_are_warned(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("trading:\n  default_slipage: 0.02\n", encoding="utf-8")
        with caplog.at_level("WARNING"):
            Settings.from_yaml(path=path)
        assert "trading.default_slipage" in caplog.text

    def test_packaged_config_is_valid(self):
        settings = Settings.from_yaml()
        assert settings.exchange.private_key == ""
        assert settings.trading.close_all_max_concurrency >= 1


def test_live_validation_requires_positive_slippage():
    settings = Settings(
        exchange=ExchangeSettings(private_key=KEY),
        trading=TradingSettings(default_slippage=Decimal("0")),
    )
    assert any("default_slippage" in e for e in settings.validate_for_live_trading())
