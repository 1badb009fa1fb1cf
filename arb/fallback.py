"""
Local price estimators used when no live quote is available.

The rates are illustrative constants for a handful of well-known pairs,
not market data; every result is tagged ``is_fallback``. Unknown pairs get
a small random variance around 1.0 from the injected RandomProvider.
"""

from decimal import ROUND_DOWN, Decimal
from typing import Dict, Optional, Tuple

from sui_flashloan.exceptions import PriceDiscoveryError, ValidationError
from sui_flashloan.interfaces import RandomProvider, SystemRandomProvider
from sui_flashloan.tokens import TokenResolver
from sui_flashloan.utils import clamp

from .types import Hop, PriceInfo, Quote, Route

AMOUNT_PRECISION = Decimal("0.00000001")
SWAP_FEE_RATE = Decimal("0.003")
LENDING_SLIPPAGE = Decimal("0.005")
FALLBACK_POOL_TYPE = "MockPool"

# (input class, output class) -> rate
SWAP_RATES: Dict[Tuple[str, str], Decimal] = {
    ("SUI", "USDC"): Decimal("1.1"),
    ("USDC", "SUI"): Decimal(1) / Decimal("1.1"),
    ("BTC", "USDC"): Decimal(65000),
    ("USDC", "BTC"): Decimal(1) / Decimal(65000),
}
SWAP_VARIANCE = 0.01

LENDING_RATES: Dict[Tuple[str, str], Decimal] = {
    ("SUI", "USDC"): Decimal("0.05"),
    ("USDC", "SUI"): Decimal(20),
    ("BTC", "USDC"): Decimal(65000),
    ("USDC", "BTC"): Decimal("0.000015"),
    ("ETH", "USDC"): Decimal(3500),
    ("USDC", "ETH"): Decimal("0.00029"),
}
LENDING_VARIANCE = 0.05

_SYMBOL_CLASSES = {"WBTC": "BTC", "WETH": "ETH"}


def classify_token(token: str, resolver: Optional[TokenResolver] = None) -> Optional[str]:
    """
    Map a coin type to a coarse asset class (SUI, USDC, BTC, ETH) using the
    registry first, then substring markers in the type itself.
    """
    if resolver is not None:
        symbol = resolver.symbol_for(token)
        if symbol:
            return _SYMBOL_CLASSES.get(symbol, symbol)

    lowered = token.lower()
    if lowered.endswith("::sui::sui"):
        return "SUI"
    if "::usdc::" in lowered or ("coin::coin" in lowered and "5d4b302" in lowered):
        return "USDC"
    if "::btc::" in lowered or "BTC" in token:
        return "BTC"
    if "::eth::" in lowered or "ETH" in token:
        return "ETH"
    return None


def quantize_amount(value: Decimal) -> Decimal:
    """Round down to 8 decimal places."""
    return value.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)


class FallbackEstimator:
    """Produces swap quotes and lending price info from the rate tables."""

    def __init__(
        self,
        resolver: Optional[TokenResolver] = None,
        random_provider: Optional[RandomProvider] = None,
    ):
        self.resolver = resolver
        self.random = random_provider or SystemRandomProvider()

    def _pair_key(self, input_token: str, output_token: str):
        return (
            classify_token(input_token, self.resolver),
            classify_token(output_token, self.resolver),
        )

    def _variance_rate(self, spread: float) -> Decimal:
        return Decimal(1) + Decimal(str(self.random.uniform(-spread, spread)))

    def swap_rate(self, input_token: str, output_token: str) -> Decimal:
        rate = SWAP_RATES.get(self._pair_key(input_token, output_token))
        return rate if rate is not None else self._variance_rate(SWAP_VARIANCE)

    def swap_quote(
        self,
        input_token: str,
        output_token: str,
        amount,
        slippage_pct: float = 0.5,
    ) -> Quote:
        """
        Estimate a swap. The 0.3% fee is charged in output units, and
        ``amount_out_min`` applies the slippage tolerance (clamped to
        0..100%) on top, so it never exceeds ``return_amount``.
        """
        try:
            amount_in = Decimal(str(amount))
        except ArithmeticError:
            raise ValidationError(f"Swap amount is not a number: {amount}")
        if not amount_in.is_finite() or amount_in < 0:
            raise ValidationError(f"Swap amount must be a non-negative number, got {amount}")

        rate = self.swap_rate(input_token, output_token)
        gross = amount_in * rate
        fee = gross * SWAP_FEE_RATE
        slippage = Decimal(str(clamp(float(slippage_pct), 0.0, 100.0))) / Decimal(100)
        return_amount = gross - fee

        return Quote(
            input_token=input_token,
            output_token=output_token,
            amount_in=amount_in,
            return_amount=quantize_amount(return_amount),
            amount_out_min=quantize_amount(return_amount * (Decimal(1) - slippage)),
            effective_price=rate,
            price_impact=SWAP_FEE_RATE,
            fee_amount=quantize_amount(fee),
            routes=[Route(hops=[Hop(pool_type=FALLBACK_POOL_TYPE, fee_bps=30)])],
            is_fallback=True,
            source="fallback",
        )

    def lending_rate(self, input_token: str, output_token: str) -> Tuple[Decimal, str]:
        key = self._pair_key(input_token, output_token)
        rate = LENDING_RATES.get(key)
        if rate is not None:
            return rate, f"suilend_fallback_{key[0].lower()}_{key[1].lower()}"
        return self._variance_rate(LENDING_VARIANCE), "suilend_fallback_generic"

    @staticmethod
    def price_impact(amount: Decimal) -> Decimal:
        """0.5% for small trades, growing linearly past 1000 units (capped at 100%)."""
        if amount > 1000:
            impact = Decimal("0.01") + amount / Decimal(100000) * Decimal("0.05")
            return min(impact, Decimal(1)).quantize(Decimal("0.0001"))
        return Decimal("0.005")

    def price_info(self, input_token: str, output_token: str, amount) -> PriceInfo:
        try:
            amount_in = Decimal(str(amount))
        except ArithmeticError:
            amount_in = None
        if amount_in is None or not amount_in.is_finite():
            raise PriceDiscoveryError(
                f"Invalid amount: {amount}",
                input_token=input_token,
                output_token=output_token,
            )

        rate, source = self.lending_rate(input_token, output_token)
        expected = amount_in * rate
        return PriceInfo(
            input_token=input_token,
            output_token=output_token,
            input_amount=amount_in,
            expected_output=expected,
            exchange_rate=rate,
            min_received=expected * (Decimal(1) - LENDING_SLIPPAGE),
            price_impact=self.price_impact(amount_in),
            fee=SWAP_FEE_RATE,
            source=source,
            is_fallback=True,
            route_info={
                "pools": ["fallback_direct_pool"],
                "path": [input_token, output_token],
            },
        )
