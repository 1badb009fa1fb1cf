"""
Exception hierarchy for the Sui flash-loan toolkit and demo bot.

Every error carries a human readable message plus an optional ``details``
dict so callers can log structured context without parsing strings.
"""

from typing import Optional, Dict, Any


class FlashLoanBotError(Exception):
    """Base exception for all flash-loan toolkit errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(FlashLoanBotError):
    """Raised when environment or file configuration is missing or invalid."""

    pass


class ValidationError(FlashLoanBotError):
    """Raised when input data fails validation."""

    pass


class InvalidTokenFormat(ValidationError):
    """Raised when a token cannot be resolved to a ``0x..::module::NAME`` type."""

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token = token


class NoRouteFound(FlashLoanBotError):
    """Raised when the aggregator answers but has no route for a pair."""

    def __init__(
        self,
        message: str,
        input_token: Optional[str] = None,
        output_token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.input_token = input_token
        self.output_token = output_token


class QuoteUnavailable(FlashLoanBotError):
    """Raised when a live quote cannot be obtained or used."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.source = source


class PriceDiscoveryError(FlashLoanBotError):
    """Raised when price discovery fails beyond the fallback path."""

    def __init__(
        self,
        message: str,
        input_token: Optional[str] = None,
        output_token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.input_token = input_token
        self.output_token = output_token


class TransactionExecutionFailed(FlashLoanBotError):
    """Raised when a submitted transaction does not finish with status ``success``."""

    def __init__(
        self,
        message: str,
        digest: Optional[str] = None,
        status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.digest = digest
        self.status = status


class SwapExecutionFailed(TransactionExecutionFailed):
    """Raised when an aggregator swap transaction fails on chain."""

    pass


class KeypairInitializationError(FlashLoanBotError):
    """Raised when a signing key cannot be decoded or derived."""

    def __init__(
        self,
        message: str,
        key_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.key_type = key_type


class NetworkError(FlashLoanBotError):
    """Raised when network or connectivity issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class RpcError(NetworkError):
    """Raised when a fullnode rejects a request."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        code: Optional[int] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, endpoint=endpoint, details=details)
        self.method = method
        self.code = code
