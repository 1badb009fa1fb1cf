"""Tests for the local fallback estimators."""

from decimal import Decimal

import pytest
from hypothesis import given, strategies as st

from arb.fallback import FallbackEstimator, classify_token, quantize_amount
from sui_flashloan.exceptions import PriceDiscoveryError, ValidationError
from sui_flashloan.interfaces import ScriptedRandomProvider
from sui_flashloan.tokens import DEFAULT_TOKENS, TokenResolver

SUI = DEFAULT_TOKENS["SUI"]
USDC = DEFAULT_TOKENS["USDC"]
WBTC = DEFAULT_TOKENS["WBTC"]
UNKNOWN_A = "0xaaa::alpha::ALPHA"
UNKNOWN_B = "0xbbb::beta::BETA"


@pytest.fixture
def estimator():
    return FallbackEstimator(TokenResolver(), ScriptedRandomProvider([0.5]))


class TestClassifyToken:
    def test_registry_symbols(self):
        resolver = TokenResolver()
        assert classify_token(SUI, resolver) == "SUI"
        assert classify_token(USDC, resolver) == "USDC"
        assert classify_token(WBTC, resolver) == "BTC"

    def test_markers_without_registry(self):
        assert classify_token("0x2::sui::SUI") == "SUI"
        assert classify_token("0x1::usdc::USDC") == "USDC"
        assert classify_token("0x1::wrapped::BTC") == "BTC"
        assert classify_token(UNKNOWN_A) is None


def test_quantize_rounds_down():
    assert quantize_amount(Decimal("1.123456789")) == Decimal("1.12345678")


class TestSwapQuote:
    def test_sui_to_usdc(self, estimator):
        quote = estimator.swap_quote(SUI, USDC, 1_000_000_000, slippage_pct=0.5)

        assert quote.is_fallback
        assert quote.source == "fallback"
        assert quote.effective_price == Decimal("1.1")
        assert quote.fee_amount == Decimal("3300000")
        assert quote.return_amount == Decimal("1096700000")
        assert quote.amount_out_min == Decimal("1091216500")
        assert quote.routes[0].hops[0].pool_type == "MockPool"
        assert quote.routes[0].hops[0].fee_bps == 30

    def test_unknown_pair_uses_variance(self):
        # uniform(-0.01, 0.01) at its upper edge -> +0.01
        estimator = FallbackEstimator(TokenResolver(), ScriptedRandomProvider([1.0]))
        quote = estimator.swap_quote(UNKNOWN_A, UNKNOWN_B, 1000)
        assert quote.effective_price == Decimal("1.01")

    @pytest.mark.parametrize("amount", [-1, "abc", "NaN", "Infinity"])
    def test_rejects_bad_amounts(self, estimator, amount):
        with pytest.raises(ValidationError):
            estimator.swap_quote(SUI, USDC, amount)

    def test_slippage_is_clamped(self, estimator):
        assert estimator.swap_quote(SUI, USDC, 100, slippage_pct=250).amount_out_min == 0
        negative = estimator.swap_quote(SUI, USDC, 100, slippage_pct=-5)
        assert negative.amount_out_min == negative.return_amount

    @given(
        amount=st.decimals(min_value=0, max_value=10**15, allow_nan=False, allow_infinity=False, places=6),
        slippage=st.floats(min_value=-10, max_value=200, allow_nan=False),
        factor=st.floats(min_value=0, max_value=1, exclude_max=True),
    )
    def test_min_never_exceeds_return(self, amount, slippage, factor):
        estimator = FallbackEstimator(TokenResolver(), ScriptedRandomProvider([factor]))
        for pair in ((SUI, USDC), (UNKNOWN_A, UNKNOWN_B)):
            quote = estimator.swap_quote(*pair, amount, slippage_pct=slippage)
            assert Decimal(0) <= quote.amount_out_min <= quote.return_amount


class TestPriceInfo:
    def test_known_pair(self, estimator):
        info = estimator.price_info(SUI, USDC, 100)
        assert info.exchange_rate == Decimal("0.05")
        assert info.expected_output == Decimal("5.00")
        assert info.min_received == Decimal("4.975")
        assert info.source == "suilend_fallback_sui_usdc"
        assert info.price_impact == Decimal("0.005")
        assert info.is_fallback
        assert info.route_info["path"] == [SUI, USDC]

    def test_generic_pair(self, estimator):
        info = estimator.price_info(UNKNOWN_A, UNKNOWN_B, 10)
        assert info.source == "suilend_fallback_generic"
        assert info.exchange_rate == Decimal(1)

    def test_price_impact_grows_and_caps(self):
        assert FallbackEstimator.price_impact(Decimal(500)) == Decimal("0.005")
        assert FallbackEstimator.price_impact(Decimal(10000)) == Decimal("0.015")
        assert FallbackEstimator.price_impact(Decimal(10**9)) == Decimal(1)

    def test_invalid_amount(self, estimator):
        with pytest.raises(PriceDiscoveryError) as exc_info:
            estimator.price_info(SUI, USDC, "lots")
        assert exc_info.value.input_token == SUI
