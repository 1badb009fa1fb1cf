"""
Sui flash-loan toolkit.

Example flows for borrowing from Sui lending protocols inside a single
programmable transaction, plus the shared plumbing (configuration, token
resolution, a thin Sui RPC/transaction adapter) used by the demo
arbitrage bot in the ``arb`` package.
"""

PROJECT_NAME = "sui-flashloan-bot"

from sui_flashloan.version import __version__
from sui_flashloan.exceptions import (
    FlashLoanBotError,
    ConfigurationError,
    ValidationError,
    InvalidTokenFormat,
    NoRouteFound,
    QuoteUnavailable,
    PriceDiscoveryError,
    TransactionExecutionFailed,
    SwapExecutionFailed,
    KeypairInitializationError,
    NetworkError,
    RpcError,
)

VERSION = __version__

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "FlashLoanBotError",
    "ConfigurationError",
    "ValidationError",
    "InvalidTokenFormat",
    "NoRouteFound",
    "QuoteUnavailable",
    "PriceDiscoveryError",
    "TransactionExecutionFailed",
    "SwapExecutionFailed",
    "KeypairInitializationError",
    "NetworkError",
    "RpcError",
]
