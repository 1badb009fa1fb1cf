#!/usr/bin/env python3
"""
Demo arbitrage bot CLI.

Loads settings from the environment (and ``.env``), runs the demo swap,
then scans on a fixed interval until the run time elapses or the process
receives SIGINT/SIGTERM.

Usage:
    python3 run_bot.py
    python3 run_bot.py --duration 1
    python3 run_bot.py --env-file .env.testnet --once
"""

import argparse
import asyncio
import sys

import logging_config
from arb.runner import build_bot
from sui_flashloan.config_loader import load_settings
from sui_flashloan.exceptions import ConfigurationError, FlashLoanBotError
from sui_flashloan.metrics import BotMetrics


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sui flash-loan demo arbitrage bot")
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Run time in minutes (default: DEMO_RUN_TIME_MINS or 5; 0 = until stopped)",
    )
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Initialize, run a single scan and exit",
    )
    return parser.parse_args()


async def _run(settings, duration, once: bool) -> None:
    bot = build_bot(settings, metrics=BotMetrics())
    await bot.initialize()
    if once:
        await bot.orchestrator.scan()
        await bot.swap_executor.close()
        await bot.store.disconnect()
        return
    await bot.run_until_stopped(duration)


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args()

    try:
        settings = load_settings(dotenv_path=args.env_file)
    except ConfigurationError as e:
        print(f"❌ Config error: {e} {e.details}", file=sys.stderr)
        return 1

    logging_config.setup(settings.log_level)
    duration = args.duration if args.duration is not None else settings.bot.run_time_minutes

    try:
        asyncio.run(_run(settings, duration, args.once))
    except KeyboardInterrupt:
        print("\n\n⏸ Stopped by user")
        return 0
    except FlashLoanBotError as e:
        print(f"❌ Bot failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
