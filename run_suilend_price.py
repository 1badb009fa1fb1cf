#!/usr/bin/env python3
"""
SuiLend price discovery demo.

Prints fallback price info for a few pairs and whether each pair is
considered tradable.

Usage:
    python3 run_suilend_price.py
    python3 run_suilend_price.py --pair SUI USDC --amount 10
"""

import argparse
import asyncio
import sys
from decimal import Decimal

import logging_config
from arb.fallback import FallbackEstimator
from arb.price_executor import PriceDiscoveryExecutor
from arb.types import PriceParams
from sui_flashloan.config_loader import load_settings
from sui_flashloan.exceptions import ConfigurationError, FlashLoanBotError
from sui_flashloan.tokens import TokenResolver

DEFAULT_PAIRS = [("SUI", "USDC"), ("USDC", "SUI"), ("BTC", "USDC"), ("USDC", "USDT")]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SuiLend price discovery demo")
    parser.add_argument("--pair", nargs=2, metavar=("INPUT", "OUTPUT"), default=None)
    parser.add_argument("--amount", default="1", help="Input amount (default: 1)")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    return parser.parse_args()


async def _run(settings, pairs, amount: Decimal) -> None:
    resolver = TokenResolver()
    executor = PriceDiscoveryExecutor(
        FallbackEstimator(resolver),
        resolver,
        retry_attempts=settings.suilend.retry_attempts,
        retry_delay_ms=settings.suilend.retry_delay_ms,
    )
    for input_token, output_token in pairs:
        tradable = await executor.can_trade_pair(input_token, output_token)
        info = await executor.get_price_info(PriceParams(input_token, output_token, amount))
        print(
            f"{input_token:>5} -> {output_token:<5} tradable={tradable!s:<5} "
            f"out={info.expected_output:.8f} rate={info.exchange_rate:.8f} "
            f"impact={info.price_impact} source={info.source}"
        )


def main() -> int:
    args = parse_args()

    try:
        settings = load_settings(dotenv_path=args.env_file)
    except ConfigurationError as e:
        print(f"❌ Config error: {e} {e.details}", file=sys.stderr)
        return 1

    logging_config.setup(settings.log_level)
    pairs = [tuple(args.pair)] if args.pair else DEFAULT_PAIRS

    try:
        amount = Decimal(args.amount)
    except ArithmeticError:
        print(f"❌ Invalid amount: {args.amount}", file=sys.stderr)
        return 1

    try:
        asyncio.run(_run(settings, pairs, amount))
    except FlashLoanBotError as e:
        print(f"❌ Price discovery failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
