"""Configuration: YAML + environment settings."""

from trade_ops.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
