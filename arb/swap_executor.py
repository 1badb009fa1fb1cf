"""
Swap executor: token resolution in front of a SwapProvider.

Callers pass symbols or loosely formatted coin types; the executor
normalizes them, refuses anything still malformed, then delegates quoting
and execution to the provider chosen at start-up.
"""

from dataclasses import replace
from typing import Any, Dict, Optional

from sui_flashloan.exceptions import FlashLoanBotError
from sui_flashloan.metrics import BotMetrics
from sui_flashloan.tokens import TokenResolver
from sui_flashloan.utils import get_logger

from .providers import SwapProvider
from .types import Quote, SwapParams


class SwapExecutor:
    """Quotes and executes swaps through a provider."""

    def __init__(
        self,
        provider: SwapProvider,
        resolver: Optional[TokenResolver] = None,
        metrics: Optional[BotMetrics] = None,
        logger=None,
    ):
        self.provider = provider
        self.resolver = resolver or TokenResolver()
        self.metrics = metrics
        self.logger = logger or get_logger(__name__, context="SwapExecutor")

        self.swaps_attempted = 0
        self.swaps_succeeded = 0
        self.swaps_failed = 0

    @property
    def mode(self) -> str:
        return self.provider.name

    async def initialize(self) -> None:
        await self.provider.initialize()

    async def close(self) -> None:
        await self.provider.close()

    async def get_quote(
        self,
        input_token: str,
        output_token: str,
        amount,
        slippage: float = 0.5,
    ) -> Quote:
        """
        Quote ``amount`` (base units) of ``input_token`` into ``output_token``.

        Raises:
            InvalidTokenFormat: If either token cannot be resolved
            NoRouteFound: If the aggregator has no route for the pair
        """
        resolved_in = self.resolver.require(input_token)
        resolved_out = self.resolver.require(output_token)
        self.logger.debug(f"Quoting {amount} {resolved_in} -> {resolved_out}")

        quote = await self.provider.get_quote(resolved_in, resolved_out, amount, slippage)
        if self.metrics:
            self.metrics.record_quote(quote.source)
        if quote.is_fallback:
            self.logger.info(
                f"Using fallback quote: return={quote.return_amount} min={quote.amount_out_min}"
            )
        return quote

    async def execute_swap(self, params: SwapParams) -> str:
        """
        Resolve tokens, quote, and execute. Returns the transaction digest.

        Raises:
            InvalidTokenFormat, NoRouteFound, QuoteUnavailable,
            SwapExecutionFailed
        """
        resolved = replace(
            params,
            input_token=self.resolver.require(params.input_token),
            output_token=self.resolver.require(params.output_token),
        )
        self.swaps_attempted += 1
        self.logger.info(
            f"Executing swap: {resolved.amount} {resolved.input_token} -> {resolved.output_token} "
            f"(slippage {resolved.slippage}%)"
        )

        try:
            quote = await self.get_quote(
                resolved.input_token, resolved.output_token, resolved.amount, resolved.slippage
            )
            digest = await self.provider.execute(resolved, quote)
        except Exception as e:
            self.swaps_failed += 1
            if self.metrics:
                self.metrics.record_execution("failed")
            self.logger.error(f"Swap failed: {e}")
            raise

        self.swaps_succeeded += 1
        if self.metrics:
            self.metrics.record_execution("success")
        self.logger.info(f"Swap executed successfully, digest={digest}")
        return digest

    async def find_route(self, input_token: str, output_token: str) -> bool:
        """True if a quote with at least one route exists for a unit amount."""
        try:
            quote = await self.get_quote(input_token, output_token, 1)
        except FlashLoanBotError as e:
            self.logger.warning(f"No route for {input_token} -> {output_token}: {e}")
            return False
        return len(quote.routes) > 0

    def get_stats(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "swaps_attempted": self.swaps_attempted,
            "swaps_succeeded": self.swaps_succeeded,
            "swaps_failed": self.swaps_failed,
        }
