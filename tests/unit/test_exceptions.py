"""Tests for the exceptions module."""

from sui_flashloan.exceptions import (
    ConfigurationError,
    FlashLoanBotError,
    InvalidTokenFormat,
    KeypairInitializationError,
    NetworkError,
    NoRouteFound,
    PriceDiscoveryError,
    QuoteUnavailable,
    RpcError,
    SwapExecutionFailed,
    TransactionExecutionFailed,
    ValidationError,
)


def test_base_exception():
    error = FlashLoanBotError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = FlashLoanBotError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    error = ConfigurationError("Config error", {"var": "GAS_BUDGET"})
    assert error.details["var"] == "GAS_BUDGET"
    assert isinstance(error, FlashLoanBotError)


def test_invalid_token_format_is_validation_error():
    error = InvalidTokenFormat("bad token", token="nope")
    assert error.token == "nope"
    assert isinstance(error, ValidationError)


def test_no_route_found_carries_pair():
    error = NoRouteFound("No swap routes found", input_token="a", output_token="b")
    assert (error.input_token, error.output_token) == ("a", "b")


def test_quote_unavailable_source():
    assert QuoteUnavailable("down", source="aggregator").source == "aggregator"


def test_price_discovery_error():
    error = PriceDiscoveryError("failed", input_token="SUI", output_token="USDC")
    assert error.input_token == "SUI"
    assert isinstance(error, FlashLoanBotError)


def test_swap_execution_failed_hierarchy():
    error = SwapExecutionFailed("failed", digest="abc", status="failure")
    assert isinstance(error, TransactionExecutionFailed)
    assert error.digest == "abc"
    assert error.status == "failure"


def test_keypair_error_key_type():
    assert KeypairInitializationError("bad", key_type="hex").key_type == "hex"


def test_rpc_error_is_network_error():
    error = RpcError("boom", method="sui_getObject", code=-32602, endpoint="http://node")
    assert isinstance(error, NetworkError)
    assert error.method == "sui_getObject"
    assert error.code == -32602
    assert error.endpoint == "http://node"
