"""
Periodic opportunity scanner.

Every ``interval_sec`` the orchestrator walks the watched pairs, looks up
their pools and (for pairs with at least two venues) randomly synthesizes
an opportunity. Opportunities are logged, and profitable ones above the
threshold are handed to the SwapExecutor. This is a demo stand-in for a
real price-discrepancy detector.
"""

import asyncio
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

from sui_flashloan.exceptions import ValidationError
from sui_flashloan.interfaces import (
    RandomProvider,
    SystemRandomProvider,
    SystemTimeProvider,
    TimeProvider,
)
from sui_flashloan.metrics import BotMetrics
from sui_flashloan.utils import get_logger

from .repositories import OpportunityLog, PairRepository, PoolRepository
from .swap_executor import SwapExecutor
from .types import ArbitrageOpportunity, SwapParams, TokenPair


class ArbitrageOrchestrator:
    """Idle -> scanning -> idle loop on a fixed period."""

    def __init__(
        self,
        pairs: PairRepository,
        pools: PoolRepository,
        opportunities: OpportunityLog,
        swap_executor: SwapExecutor,
        interval_sec: float = 30.0,
        min_profit_usd: float = 5.0,
        opportunity_probability: float = 0.25,
        profitable_probability: float = 0.7,
        trade_amount: int = 1_000_000_000,
        slippage: float = 0.5,
        random_provider: Optional[RandomProvider] = None,
        time_provider: Optional[TimeProvider] = None,
        metrics: Optional[BotMetrics] = None,
        logger=None,
    ):
        self.pairs = pairs
        self.pools = pools
        self.opportunities = opportunities
        self.swap_executor = swap_executor
        self.interval_sec = interval_sec
        self.opportunity_probability = opportunity_probability
        self.profitable_probability = profitable_probability
        self.trade_amount = trade_amount
        self.slippage = slippage
        self.random = random_provider or SystemRandomProvider()
        self.time = time_provider or SystemTimeProvider()
        self.metrics = metrics
        self.logger = logger or get_logger(__name__, context="ArbitrageOrchestrator")

        self.min_profit_usd = Decimal("0")
        self.set_min_profit_threshold(min_profit_usd)

        self._running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._current_scan: Optional[asyncio.Future] = None
        self.scan_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self.logger.info(
            f"Orchestrator ready: interval={self.interval_sec}s "
            f"min_profit=${self.min_profit_usd} executor={self.swap_executor.mode}"
        )

    # === LIFECYCLE ===

    async def start(self) -> None:
        """Run one scan immediately, then keep scanning in the background."""
        if self._running:
            self.logger.warning("Scanner is already running")
            return

        self._running = True
        if self.metrics:
            self.metrics.set_scanning(True)
        self.logger.info(f"Starting arbitrage scanner (every {self.interval_sec}s)")

        await self._scan_shielded()
        if self._running:
            self._loop_task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        """Cancel the timer. A scan already in flight is allowed to finish."""
        if not self._running and self._loop_task is None:
            return

        self._running = False
        task, self._loop_task = self._loop_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._current_scan is not None and not self._current_scan.done():
            await self._current_scan

        if self.metrics:
            self.metrics.set_scanning(False)
        self.logger.info("Arbitrage scanner stopped")

    async def _run_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.interval_sec)
            if not self._running:
                break
            await self._scan_shielded()

    async def _scan_shielded(self) -> None:
        self._current_scan = asyncio.ensure_future(self.scan())
        await asyncio.shield(self._current_scan)

    # === SCANNING ===

    async def scan(self) -> int:
        """One pass over all pairs. Returns the number of opportunities found."""
        self.scan_count += 1
        if self.metrics:
            self.metrics.record_scan()
        self.logger.info("Scanning for arbitrage opportunities")

        try:
            pairs = await self.pairs.list_pairs()
        except Exception as e:
            self.logger.error(f"Could not load token pairs: {e}")
            return 0
        self.logger.info(f"Found {len(pairs)} token pairs to scan")

        found = 0
        for pair in pairs:
            try:
                for opportunity in await self.find_opportunities(pair):
                    found += 1
                    await self.process_opportunity(opportunity)
            except Exception as e:
                if self.metrics:
                    self.metrics.record_scan_error()
                self.logger.error(f"Error scanning {pair.token_a} / {pair.token_b}: {e}")

        self.logger.info(f"Scan complete. Found {found} arbitrage opportunities")
        return found

    async def find_opportunities(self, pair: TokenPair) -> List[ArbitrageOpportunity]:
        pools = await self.pools.find_pools(pair.token_a, pair.token_b)
        if len(pools) < 2:
            self.logger.info(
                f"Not enough pools for {pair.token_a} / {pair.token_b} to create arbitrage"
            )
            return []

        for pool in pools:
            await self.pools.refresh_pool(pool.pool_id)

        if self.random.random() >= self.opportunity_probability:
            self.logger.debug(f"No arbitrage opportunities for {pair.token_a} / {pair.token_b}")
            return []

        profitable = self.random.random() < self.profitable_probability
        profit = f"{self.random.uniform(1, 21):.4f}" if profitable else "0.00"
        entry, exit_ = pools[0], pools[1]
        opportunity = ArbitrageOpportunity(
            token_a=pair.token_a,
            token_b=pair.token_b,
            entry_pool_id=entry.pool_id,
            exit_pool_id=exit_.pool_id,
            entry_dex=entry.dex,
            exit_dex=exit_.dex,
            profitable_trade=profitable,
            estimated_profit=profit,
            timestamp=self.time.current_timestamp(),
        )
        self.logger.info(
            f"Found {'profitable' if profitable else 'unprofitable'} opportunity "
            f"{entry.dex}:{entry.pool_id} -> {exit_.dex}:{exit_.pool_id} est. ${profit}"
        )
        return [opportunity]

    async def process_opportunity(self, opportunity: ArbitrageOpportunity) -> Optional[str]:
        """
        Log the opportunity and execute it when it clears the threshold.
        Returns the transaction digest when a swap was executed.
        """
        try:
            await self.opportunities.append(opportunity)
            if self.metrics:
                self.metrics.record_opportunity(opportunity.profitable_trade)

            profit = opportunity.profit_usd
            if not opportunity.profitable_trade or profit < self.min_profit_usd:
                self.logger.info(
                    f"Skipping execution: profit (${profit}) below threshold (${self.min_profit_usd})"
                )
                return None

            self.logger.info(f"Executing opportunity with estimated profit ${profit}")
            return await self.swap_executor.execute_swap(
                SwapParams(
                    input_token=opportunity.token_a,
                    output_token=opportunity.token_b,
                    amount=self.trade_amount,
                    slippage=self.slippage,
                )
            )
        except Exception as e:
            self.logger.error(f"Error processing opportunity: {e}")
            await self.opportunities.append(replace(opportunity, error=str(e)))
            return None

    def set_min_profit_threshold(self, threshold_usd: float) -> None:
        if threshold_usd < 0:
            raise ValidationError(f"Profit threshold must be >= 0, got {threshold_usd}")
        self.min_profit_usd = Decimal(str(threshold_usd))
        if self.metrics:
            self.metrics.set_min_profit(float(threshold_usd))
        self.logger.info(f"Set minimum profit threshold to ${threshold_usd}")
