"""
Core data types for the demo arbitrage bot.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TokenPair:
    """
    Ordered pair of coin types the scanner watches.

    Attributes:
        token_a: Full coin type of the first token
        token_b: Full coin type of the second token
    """

    token_a: str
    token_b: str

    def matches(self, a: str, b: str) -> bool:
        """True if ``(a, b)`` is this pair in either order."""
        return {self.token_a, self.token_b} == {a, b}


@dataclass
class Pool:
    """
    A liquidity pool on some DEX.

    Attributes:
        dex: Venue name (e.g. "MockDex", "SevenK")
        pool_id: On-chain object id of the pool
        token_a: Coin type of the first side
        token_b: Coin type of the second side
        reserve_a: Last known reserve of token_a (base units)
        reserve_b: Last known reserve of token_b (base units)
        last_updated: Unix timestamp of the last reserve refresh
    """

    dex: str
    pool_id: str
    token_a: str
    token_b: str
    reserve_a: Optional[Decimal] = None
    reserve_b: Optional[Decimal] = None
    last_updated: float = 0.0

    def holds(self, a: str, b: str) -> bool:
        return {self.token_a, self.token_b} == {a, b}


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """
    Record of one synthesized opportunity. Immutable once logged; an
    execution error is logged as a copy with ``error`` set.

    Attributes:
        estimated_profit: USD estimate as a decimal string, 4 dp
        error: Execution error message, if execution was attempted and failed
        id: Assigned by the opportunity log on append
    """

    token_a: str
    token_b: str
    entry_pool_id: str
    exit_pool_id: str
    entry_dex: str
    exit_dex: str
    profitable_trade: bool
    estimated_profit: str
    timestamp: float
    error: Optional[str] = None
    id: Optional[int] = None

    @property
    def profit_usd(self) -> Decimal:
        return Decimal(self.estimated_profit)


@dataclass(frozen=True)
class Hop:
    pool_type: str
    fee_bps: int


@dataclass(frozen=True)
class Route:
    hops: List[Hop] = field(default_factory=list)


@dataclass(frozen=True)
class Quote:
    """
    Swap quote in output-token base units.

    Attributes:
        return_amount: Expected output after fees
        amount_out_min: Output floor after slippage (<= return_amount)
        effective_price: return_amount / input amount
        price_impact: Fractional price impact estimate
        fee_amount: Fee charged, in output units
        routes: Route description from the aggregator (or a placeholder)
        is_fallback: True when produced by the local estimator
        source: "aggregator" or "fallback"
        raw: Untouched aggregator payload, needed to build the swap
    """

    input_token: str
    output_token: str
    amount_in: Decimal
    return_amount: Decimal
    amount_out_min: Decimal
    effective_price: Decimal
    price_impact: Decimal
    fee_amount: Decimal
    routes: List[Route]
    is_fallback: bool
    source: str
    raw: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Commission:
    partner: str
    commission_bps: int = 0


@dataclass(frozen=True)
class SwapParams:
    """
    Swap request.

    Attributes:
        amount: Input amount in base units
        slippage: Slippage tolerance in percent (0.5 = 0.5%)
        use_all_coins: Spend every input coin object instead of splitting
        dry_run: Simulate through the fullnode instead of submitting
    """

    input_token: str
    output_token: str
    amount: int
    slippage: float = 0.5
    use_all_coins: bool = False
    dry_run: bool = False
    commission: Optional[Commission] = None


@dataclass(frozen=True)
class PriceParams:
    input_token: str
    output_token: str
    amount: Decimal


@dataclass(frozen=True)
class PriceInfo:
    """Read-only price discovery result."""

    input_token: str
    output_token: str
    input_amount: Decimal
    expected_output: Decimal
    exchange_rate: Decimal
    source: str
    is_fallback: bool
    min_received: Optional[Decimal] = None
    price_impact: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    error: Optional[str] = None
    route_info: Optional[Dict[str, Any]] = None
