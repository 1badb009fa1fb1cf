#!/usr/bin/env python3
"""
SuiLend flash-loan example.

Creates an obligation, borrows from the reserve for SUILEND_COIN_TYPE and
repays within one transaction.

Usage:
    python3 run_suilend_flashloan.py
"""

import argparse
import asyncio
import sys

import logging_config
from sui_flashloan.config_loader import load_settings
from sui_flashloan.exceptions import ConfigurationError, FlashLoanBotError
from sui_flashloan.flashloan import SuilendFlashLoan
from sui_flashloan.sui import SuiClient, SuiKeypair


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SuiLend flash-loan example")
    parser.add_argument("--amount", type=int, default=None, help="Borrow amount in base units")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    return parser.parse_args()


async def _run(settings, amount) -> bool:
    keypair = SuiKeypair.from_settings(settings.sui.mnemonic, settings.sui.private_key)
    async with SuiClient(
        [settings.sui.rpc_url] + settings.sui.fallback_rpc_urls, keypair
    ) as client:
        flow = SuilendFlashLoan(client, settings.suilend, settings.sui)
        return await flow.execute(amount) is not None


def main() -> int:
    args = parse_args()

    try:
        settings = load_settings(dotenv_path=args.env_file)
    except ConfigurationError as e:
        print(f"❌ Config error: {e} {e.details}", file=sys.stderr)
        return 1

    logging_config.setup(settings.log_level)
    if not settings.sui.has_signer():
        print(
            "❌ SUI_MNEMONIC environment variable is not set. Please set it in your .env file.",
            file=sys.stderr,
        )
        return 1

    try:
        executed = asyncio.run(_run(settings, args.amount))
    except FlashLoanBotError as e:
        print(f"❌ Flash loan failed: {e}", file=sys.stderr)
        return 1

    return 0 if executed else 1


if __name__ == "__main__":
    sys.exit(main())
