"""
Settings management using Pydantic.

Loads configuration from YAML files and environment variables.
Environment variables override YAML values.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

MAINNET_API_URL = "https://api.hyperliquid.xyz"
TESTNET_API_URL = "https://api.hyperliquid-testnet.xyz"


class ExchangeSettings(BaseModel):
    """Exchange connection and account settings."""

    base_url: str = MAINNET_API_URL
    private_key: str = Field(default="", description="Private key for signing orders")
    # Wallet to read when no private key is configured (read-only mode).
    account_address: str = ""
    # Vault the signer trades on behalf of. Empty = trade the signer's own wallet.
    vault_address: str = ""
    request_timeout_seconds: Decimal = Field(default=Decimal("10"), gt=Decimal("0"))

    def validate_for_live_trading(self) -> list[str]:
        """
        Validate that required credentials are present for live trading.

        Returns a list of validation errors. Empty list means validation passed.
        """
        errors = []

        if not self.base_url:
            errors.append("exchange.base_url is required")

        if not (self.private_key or os.getenv("HYPERLIQUID_PRIVATE_KEY")):
            errors.append("exchange.private_key is required for trading")

        if self.vault_address:
            from trade_ops.domain.errors import InvalidAddressError
            from trade_ops.domain.identity import Address

            try:
                Address(self.vault_address)
            except InvalidAddressError as e:
                errors.append(f"exchange.vault_address is malformed: {e.message}")

        return errors


class TradingSettings(BaseModel):
    """Execution parameters for market-like orders."""

    # 0.05 = accept up to 5% away from the reference price
    default_slippage: Decimal = Decimal("0.05")
    close_all_concurrent: bool = True
    close_all_max_concurrency: int = Field(default=4, ge=1)

    @field_validator("default_slippage")
    @classmethod
    def _slippage_in_range(cls, v: Decimal) -> Decimal:
        if v < 0 or v >= 1:
            raise ValueError("default_slippage must be in [0, 1)")
        return v


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    log_dir: str = "logs"
    json_enabled: bool = True
    json_file: str = "logs/trade_ops_json.jsonl"
    # Rotate JSONL log to prevent unbounded growth (disk + I/O).
    # Set to 0 to disable rotation.
    json_max_bytes: int = 50_000_000
    json_backup_count: int = 3


class Settings(BaseSettings):
    """
    Main settings container.

    Loads from YAML file, then applies env var overrides.
    """

    # Environment
    env: str = Field(default="development", alias="TRADE_OPS_ENV")

    # Live trading toggle
    live_trading: bool = False
    testing_mode: bool = False

    # Sub-settings
    exchange: ExchangeSettings = Field(default_factory=ExchangeSettings)
    trading: TradingSettings = Field(default_factory=TradingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {
        "env_prefix": "TRADE_OPS_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
        "populate_by_name": True,
    }

    def validate_for_live_trading(self) -> list[str]:
        """
        Validate that all required settings are present for live trading.

        Returns:
            List of validation error messages. Empty list means all validations passed.
        """
        errors = []
        errors.extend(self.exchange.validate_for_live_trading())

        if self.trading.default_slippage <= 0:
            errors.append("trading.default_slippage must be positive for live market orders")

        return errors

    @classmethod
    def from_yaml(cls, env: str = "development", path: Path | None = None) -> Settings:
        """
        Load settings from config.yaml.

        The 'env' parameter sets `settings.env` (for banners/logging).
        """
        yaml_file = path or Path(__file__).parent / "config.yaml"

        data: dict = {}
        if yaml_file.exists():
            with open(yaml_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        # Apply environment variable overrides for exchange settings
        if "exchange" not in data or data["exchange"] is None:
            data["exchange"] = {}
        if os.getenv("HYPERLIQUID_PRIVATE_KEY"):
            data["exchange"]["private_key"] = os.getenv("HYPERLIQUID_PRIVATE_KEY")
        if os.getenv("HYPERLIQUID_VAULT_ADDRESS") is not None:
            # Explicitly empty env var clears a vault set in YAML
            data["exchange"]["vault_address"] = os.getenv("HYPERLIQUID_VAULT_ADDRESS", "").strip()
        if os.getenv("HYPERLIQUID_ACCOUNT_ADDRESS"):
            data["exchange"]["account_address"] = os.getenv("HYPERLIQUID_ACCOUNT_ADDRESS", "").strip()
        if os.getenv("HYPERLIQUID_BASE_URL"):
            data["exchange"]["base_url"] = os.getenv("HYPERLIQUID_BASE_URL")

        data["env"] = env

        # Warn about unknown keys before creating model (helps catch typos in config.yaml)
        _warn_unknown_keys(data, cls)

        return cls(**data)


def _collect_all_keys(data: dict, prefix: str = "") -> set[str]:
    """
    Recursively collect all keys from a nested dict.

    Returns keys in dot-notation format (e.g., "trading.default_slippage").
    """
    keys = set()
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        keys.add(full_key)
        if isinstance(value, dict):
            keys.update(_collect_all_keys(value, full_key))
    return keys


def _collect_model_fields(model_class: type[BaseModel], prefix: str = "") -> set[str]:
    """Recursively collect all field names from a Pydantic model, in dot-notation."""
    fields = set()
    for field_name, field_info in model_class.model_fields.items():
        full_key = f"{prefix}.{field_name}" if prefix else field_name
        fields.add(full_key)
        annotation = field_info.annotation
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            fields.update(_collect_model_fields(annotation, full_key))
    return fields


def _warn_unknown_keys(data: dict, model_class: type[BaseModel]) -> None:
    """Warn about unknown keys in YAML config that don't match model fields."""
    unknown_keys = _collect_all_keys(data) - _collect_model_fields(model_class)

    if unknown_keys:
        logger.warning(
            f"Unknown configuration keys found (will be ignored due to extra='ignore'): {sorted(unknown_keys)}. "
            f"This may indicate typos in config.yaml or outdated config keys."
        )


@lru_cache(maxsize=4)
def get_settings(env: str | None = None) -> Settings:
    """Get cached settings instance."""
    resolved_env = env or os.getenv("TRADE_OPS_ENV", "development")
    return Settings.from_yaml(env=resolved_env)
