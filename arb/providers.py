"""
Swap providers: where quotes come from and how swaps get executed.

``LiveProvider`` talks to the aggregator and the fullnode, falling back to
local estimates when the aggregator is unreachable. ``SimulatedProvider``
never touches the network. The bot picks one at start-up.
"""

import asyncio
from typing import Optional, Protocol, runtime_checkable

from sui_flashloan.config_schema import AppSettings
from sui_flashloan.exceptions import (
    ConfigurationError,
    NoRouteFound,
    QuoteUnavailable,
    SwapExecutionFailed,
)
from sui_flashloan.interfaces import (
    RandomProvider,
    SystemRandomProvider,
    SystemTimeProvider,
    TimeProvider,
)
from sui_flashloan.sui import SuiClient, SuiKeypair
from sui_flashloan.sui.client import execution_error, execution_status, transaction_digest
from sui_flashloan.utils import get_logger

from .aggregator import AggregatorClient, quote_from_response
from .fallback import FallbackEstimator
from .types import Quote, SwapParams


@runtime_checkable
class SwapProvider(Protocol):
    """Source of quotes and executor of swaps."""

    name: str

    async def initialize(self) -> None:
        ...

    async def get_quote(
        self, input_token: str, output_token: str, amount, slippage_pct: float
    ) -> Quote:
        ...

    async def execute(self, params: SwapParams, quote: Quote) -> str:
        """Submit the swap and return its transaction digest."""
        ...

    async def close(self) -> None:
        ...


class SimulatedProvider:
    """Quotes from the fallback estimator, synthetic digests on execution."""

    name = "simulated"

    def __init__(
        self,
        estimator: FallbackEstimator,
        time_provider: Optional[TimeProvider] = None,
        random_provider: Optional[RandomProvider] = None,
        logger=None,
    ):
        self.estimator = estimator
        self.time = time_provider or SystemTimeProvider()
        self.random = random_provider or SystemRandomProvider()
        self.logger = logger or get_logger(__name__, context="SimulatedSwap")

    async def initialize(self) -> None:
        self.logger.info("Simulation mode: quotes are local estimates, nothing is submitted")

    async def get_quote(self, input_token, output_token, amount, slippage_pct=0.5) -> Quote:
        return self.estimator.swap_quote(input_token, output_token, amount, slippage_pct)

    async def execute(self, params: SwapParams, quote: Quote) -> str:
        digest = f"simTx_{self.time.current_time_ms()}_{self.random.randint(100000, 999999)}"
        self.logger.info(
            f"Simulated swap {params.amount} {params.input_token} -> "
            f"{quote.return_amount} {params.output_token} digest={digest}"
        )
        return digest

    async def close(self) -> None:
        pass


class LiveProvider:
    """Aggregator-backed quotes and on-chain execution."""

    name = "live"

    def __init__(
        self,
        aggregator: AggregatorClient,
        sui: SuiClient,
        estimator: FallbackEstimator,
        quote_timeout_sec: float = 5.0,
        logger=None,
    ):
        self.aggregator = aggregator
        self.sui = sui
        self.estimator = estimator
        self.quote_timeout_sec = quote_timeout_sec
        self.logger = logger or get_logger(__name__, context="SwapExecutor")

    async def initialize(self) -> None:
        await self.sui.connect()
        self.logger.info(f"Live mode: signer {self.sui.address} via {self.sui.url}")
        if not await self.aggregator.check_health():
            self.logger.warning(
                "Aggregator API is not accessible, quotes will use fallback estimates"
            )

    async def get_quote(self, input_token, output_token, amount, slippage_pct=0.5) -> Quote:
        try:
            payload = await asyncio.wait_for(
                self.aggregator.fetch_quote(input_token, output_token, amount),
                timeout=self.quote_timeout_sec,
            )
        except (QuoteUnavailable, asyncio.TimeoutError) as e:
            self.logger.warning(
                f"Aggregator unreachable ({e or 'timeout'}), using fallback pricing"
            )
            return self.estimator.swap_quote(input_token, output_token, amount, slippage_pct)

        if not payload:
            self.logger.warning("Aggregator returned an empty quote, using fallback pricing")
            return self.estimator.swap_quote(input_token, output_token, amount, slippage_pct)

        if not payload.get("routes"):
            raise NoRouteFound(
                "No swap routes found",
                input_token=input_token,
                output_token=output_token,
            )

        return quote_from_response(payload, input_token, output_token, amount, slippage_pct)

    async def execute(self, params: SwapParams, quote: Quote) -> str:
        if quote.is_fallback:
            raise QuoteUnavailable(
                "Refusing to execute a swap priced by a fallback estimate",
                source=quote.source,
            )

        tx_bytes = await self.aggregator.build_transaction(
            quote.raw,
            self.sui.address,
            params.slippage,
            use_all_coins=params.use_all_coins,
            commission=params.commission,
        )

        if params.dry_run:
            result = await self.sui.dry_run(tx_bytes)
            digest = transaction_digest(result)
            self._check_status(result, digest)
            self.logger.info("Dry run succeeded")
            return digest or ""

        result = await self.sui.sign_and_execute(tx_bytes)
        digest = transaction_digest(result)
        self._check_status(result, digest)
        return digest

    @staticmethod
    def _check_status(result, digest) -> None:
        status = execution_status(result)
        if status != "success":
            error = execution_error(result)
            raise SwapExecutionFailed(
                f"Swap transaction failed: {error or status}",
                digest=digest,
                status=status,
                details={"error": error},
            )

    async def close(self) -> None:
        await self.aggregator.close()
        await self.sui.close()


def build_swap_provider(
    settings: AppSettings,
    estimator: FallbackEstimator,
    sui: Optional[SuiClient] = None,
    aggregator: Optional[AggregatorClient] = None,
    random_provider: Optional[RandomProvider] = None,
) -> SwapProvider:
    """Choose the provider once, from ``SIMULATION_ONLY``."""
    if settings.bot.simulation_only:
        return SimulatedProvider(estimator, random_provider=random_provider)

    if sui is None:
        if not settings.sui.has_signer():
            raise ConfigurationError(
                "Live mode needs SUI_MNEMONIC or PRIVATE_KEY (or set SIMULATION_ONLY=true)"
            )
        keypair = SuiKeypair.from_settings(settings.sui.mnemonic, settings.sui.private_key)
        sui = SuiClient([settings.sui.rpc_url] + settings.sui.fallback_rpc_urls, keypair)

    aggregator = aggregator or AggregatorClient(
        settings.aggregator.api_url, timeout_sec=settings.aggregator.quote_timeout_sec
    )
    return LiveProvider(
        aggregator,
        sui,
        estimator,
        quote_timeout_sec=settings.aggregator.quote_timeout_sec,
    )
