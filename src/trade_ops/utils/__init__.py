"""Shared utility helpers."""

from trade_ops.utils.decimals import round_to_increment, safe_decimal

__all__ = ["safe_decimal", "round_to_increment"]
