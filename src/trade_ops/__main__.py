"""
Entry point for running trade_ops as a module.

Usage:
    python -m trade_ops <command> [options]

Commands:
    positions               Show the acting address and its open positions
    close SYMBOL            Market-close one symbol (--size for a partial close)
    close-all               Close every open position
    doctor                  Run preflight checks

Options:
    --env ENV           Environment (development/production)
    --mode MODE         Override mode (paper/live)
    --confirm-live      Confirm live trading (required for live mode)
    --slippage FRAC     Slippage tolerance, e.g. 0.05 for 5%
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from e


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trade_ops",
        description="Hyperliquid trading operations (market close, close-all)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--env", default="development", help="Environment (development/production)")
    parser.add_argument("--mode", choices=["paper", "live"], default=None, help="Override trading mode")
    parser.add_argument("--confirm-live", action="store_true", help="Confirm live trading mode")
    parser.add_argument(
        "--slippage",
        type=_decimal_arg,
        default=None,
        help="Slippage tolerance as a fraction (default: trading.default_slippage)",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("positions", help="Show open positions of the acting address")

    close = sub.add_parser("close", help="Market-close one symbol")
    close.add_argument("symbol", help="Exchange symbol, e.g. BTC")
    close.add_argument("--size", type=_decimal_arg, default=None, help="Close only this much")

    close_all = sub.add_parser("close-all", help="Close every open position")
    close_all.add_argument("--cancel-orders", action="store_true", help="Cancel open orders first")
    close_all.add_argument("--sequential", action="store_true", help="Close one symbol at a time")

    sub.add_parser("doctor", help="Run preflight checks")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = _build_parser().parse_args(argv)

    # Import here to avoid slow startup for --help
    from trade_ops.app.run import run_close, run_close_all, run_doctor, run_positions

    common = {"env": args.env, "mode_override": args.mode, "confirm_live": args.confirm_live}
    try:
        if args.command == "positions":
            return asyncio.run(run_positions(**common))
        elif args.command == "close":
            return asyncio.run(run_close(args.symbol, size=args.size, slippage=args.slippage, **common))
        elif args.command == "close-all":
            return asyncio.run(
                run_close_all(
                    slippage=args.slippage,
                    cancel_orders=args.cancel_orders,
                    sequential=args.sequential,
                    **common,
                )
            )
        elif args.command == "doctor":
            return asyncio.run(run_doctor(env=args.env))
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
