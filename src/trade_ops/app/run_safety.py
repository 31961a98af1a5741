"""
Run-safety gate for PAPER vs LIVE mode.

Paper is the default. Live order submission needs an explicit confirmation
and a configuration that passes `Settings.validate_for_live_trading()`.
Blocked combinations:
- live_trading=true without confirmation
- live_trading=true + testing_mode=true (unless explicitly allowed)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from trade_ops.config.settings import Settings

RunMode = Literal["paper", "live"]

CONFIRM_LIVE_ENV = "TRADE_OPS_CONFIRM_LIVE"
ALLOW_TESTING_LIVE_ENV = "TRADE_OPS_ALLOW_TESTING_LIVE"


@dataclass(frozen=True)
class RunSafetyDecision:
    settings: Settings
    mode: RunMode
    live_confirmed: bool
    errors: list[str]
    warnings: list[str]

    @property
    def is_live(self) -> bool:
        return self.mode == "live"


def _env_is_yes(var_name: str) -> bool:
    return os.getenv(var_name, "").strip().upper() in {"YES", "I_UNDERSTAND"}


def apply_run_safety(
    settings: Settings,
    *,
    mode_override: RunMode | None,
    confirm_live_flag: bool,
    allow_testing_live_flag: bool = False,
) -> RunSafetyDecision:
    """Resolve the run mode and collect blocking errors. Never mutates `settings`."""
    updated = settings.model_copy(deep=True)

    if mode_override is not None:
        updated.live_trading = mode_override == "live"

    mode: RunMode = "live" if updated.live_trading else "paper"
    errors: list[str] = []
    warnings: list[str] = []
    live_confirmed = False

    if mode == "live":
        live_confirmed = confirm_live_flag or _env_is_yes(CONFIRM_LIVE_ENV)
        if not live_confirmed:
            errors.append(f"LIVE mode requested but not confirmed. Use --confirm-live or set {CONFIRM_LIVE_ENV}=YES.")

        allow_testing_live = allow_testing_live_flag or _env_is_yes(ALLOW_TESTING_LIVE_ENV)
        if updated.testing_mode and not allow_testing_live:
            errors.append(
                f"testing_mode=true is blocked in LIVE mode. Disable it or set {ALLOW_TESTING_LIVE_ENV}=YES."
            )

        config_errors = updated.validate_for_live_trading()
        if config_errors:
            errors.append("Live trading requires proper configuration:")
            errors.extend(f"  - {e}" for e in config_errors)

    if mode == "paper" and confirm_live_flag:
        warnings.append("--confirm-live was provided but mode is PAPER; ignoring.")

    return RunSafetyDecision(
        settings=updated,
        mode=mode,
        live_confirmed=live_confirmed,
        errors=errors,
        warnings=warnings,
    )
