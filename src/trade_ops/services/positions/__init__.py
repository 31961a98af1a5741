"""
Position close package (facade).
"""

from __future__ import annotations

from trade_ops.services.positions.close import CloseAllResult, CloseOperations, CloseOutcome
from trade_ops.services.positions.locator import PositionLocator

__all__ = ["CloseOperations", "CloseOutcome", "CloseAllResult", "PositionLocator"]
