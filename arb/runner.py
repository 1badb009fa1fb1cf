"""
Demo bot runner: wires settings into the store, executors and scanner and
owns the process lifecycle (start, timed auto-stop, signal handling).
"""

import asyncio
import signal
from typing import Optional

from sui_flashloan.config_schema import AppSettings
from sui_flashloan.health import HealthCheckServer
from sui_flashloan.interfaces import (
    RandomProvider,
    SystemRandomProvider,
    SystemTimeProvider,
    TimeProvider,
)
from sui_flashloan.metrics import BotMetrics
from sui_flashloan.tokens import TokenResolver
from sui_flashloan.utils import format_duration, get_logger

from .fallback import FallbackEstimator
from .orchestrator import ArbitrageOrchestrator
from .providers import SwapProvider, build_swap_provider
from .repositories import InMemoryStore, load_registry
from .swap_executor import SwapExecutor
from .types import SwapParams

DEMO_SWAP_AMOUNT = 1_000_000_000  # 1 SUI in MIST
DEMO_SWAP_SLIPPAGE = 0.5


class ArbitrageBot:
    """Top-level demo application."""

    def __init__(
        self,
        settings: AppSettings,
        store: InMemoryStore,
        swap_executor: SwapExecutor,
        orchestrator: ArbitrageOrchestrator,
        health_server: Optional[HealthCheckServer] = None,
        metrics: Optional[BotMetrics] = None,
        time_provider: Optional[TimeProvider] = None,
        logger=None,
    ):
        self.settings = settings
        self.store = store
        self.swap_executor = swap_executor
        self.orchestrator = orchestrator
        self.health_server = health_server
        self.metrics = metrics
        self.time = time_provider or SystemTimeProvider()
        self.logger = logger or get_logger(__name__, context="Main")

        self.started_at: Optional[float] = None
        self._stop_event = asyncio.Event()
        self._auto_stop: Optional[asyncio.TimerHandle] = None
        self._stopping = False
        self._stop_task: Optional[asyncio.Future] = None

    @property
    def running(self) -> bool:
        return self.started_at is not None

    async def initialize(self) -> None:
        self.logger.info(f"Initializing arbitrage bot ({self.settings.bot.mode} mode)")
        await self.store.connect()
        await self.swap_executor.initialize()
        await self.orchestrator.initialize()
        await self.demo_swap()
        self.logger.info("Arbitrage bot initialized")

    async def demo_swap(self) -> Optional[str]:
        """Route check and quote for 1 SUI -> USDC; execute only if enabled."""
        self.logger.info("Running demo swap SUI -> USDC")
        try:
            if not await self.swap_executor.find_route("SUI", "USDC"):
                self.logger.warning("No route for demo swap SUI -> USDC")
                return None

            quote = await self.swap_executor.get_quote(
                "SUI", "USDC", DEMO_SWAP_AMOUNT, DEMO_SWAP_SLIPPAGE
            )
            self.logger.info(
                f"Demo quote: {DEMO_SWAP_AMOUNT} SUI -> {quote.return_amount} USDC "
                f"(min {quote.amount_out_min}, {'fallback' if quote.is_fallback else 'live'})"
            )

            if not self.settings.bot.demo_execute_swap:
                self.logger.info("DEMO_EXECUTE_SWAP is off, skipping demo execution")
                return None

            return await self.swap_executor.execute_swap(
                SwapParams("SUI", "USDC", DEMO_SWAP_AMOUNT, DEMO_SWAP_SLIPPAGE)
            )
        except Exception as e:
            # The demo is informational; a failure here must not block startup
            self.logger.error(f"Demo swap failed: {e}")
            return None

    async def start(self, duration_minutes: Optional[float] = None) -> None:
        """Start services and the scanner; stop automatically after ``duration_minutes``."""
        if self.running:
            self.logger.warning("Bot is already running")
            return

        self.started_at = self.time.current_timestamp()
        self._stop_event.clear()
        self._stopping = False

        if self.health_server is not None:
            await self.health_server.start()
        if self.metrics is not None and self.settings.bot.metrics_port:
            await self.metrics.start_server(port=self.settings.bot.metrics_port)

        await self.orchestrator.start()

        if duration_minutes:
            self.logger.info(f"Bot will stop automatically after {duration_minutes} minute(s)")
            loop = asyncio.get_running_loop()
            self._auto_stop = loop.call_later(
                duration_minutes * 60, self.request_stop
            )

    def request_stop(self) -> asyncio.Future:
        """Schedule stop() from a loop callback; the task is held until it finishes."""
        if self._stop_task is None or self._stop_task.done():
            self._stop_task = asyncio.ensure_future(self.stop())
            self._stop_task.add_done_callback(self._on_stop_done)
        return self._stop_task

    def _on_stop_done(self, task: asyncio.Future) -> None:
        if task.cancelled():
            self._stop_event.set()
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Shutdown failed: {error}")
            self._stop_event.set()

    async def stop(self) -> None:
        pending = self._stop_task
        if pending is not None and not pending.done() and pending is not asyncio.current_task():
            # A scheduled shutdown is already in flight; wait for it
            await pending
            return
        if not self.running or self._stopping:
            return
        self._stopping = True

        if self._auto_stop is not None:
            self._auto_stop.cancel()
            self._auto_stop = None

        await self.orchestrator.stop()
        if self.metrics is not None:
            await self.metrics.stop_server()
        if self.health_server is not None:
            await self.health_server.stop()
        await self.swap_executor.close()
        await self.store.disconnect()

        elapsed = self.time.current_timestamp() - self.started_at
        self.logger.info(
            f"Bot stopped after {format_duration(elapsed)} "
            f"({self.orchestrator.scan_count} scans, stats={self.swap_executor.get_stats()})"
        )
        self.started_at = None
        self._stop_event.set()

    async def wait_stopped(self) -> None:
        await self._stop_event.wait()

    async def run_until_stopped(self, duration_minutes: Optional[float] = None) -> None:
        """Start, install SIGINT/SIGTERM handlers and block until stopped."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, lambda s=sig: self._on_signal(s))
            except NotImplementedError:
                # Signal handlers are unavailable on some event loops (Windows)
                pass

        await self.start(duration_minutes)
        await self.wait_stopped()

    def _on_signal(self, sig) -> None:
        self.logger.info(f"Received {signal.Signals(sig).name}, shutting down")
        self.request_stop()


def build_bot(
    settings: AppSettings,
    provider: Optional[SwapProvider] = None,
    random_provider: Optional[RandomProvider] = None,
    metrics: Optional[BotMetrics] = None,
) -> ArbitrageBot:
    """Assemble the bot from settings. The swap provider is chosen here, once."""
    random_provider = random_provider or SystemRandomProvider()
    resolver = TokenResolver()
    registry = load_registry(settings.bot.registry_path, resolver)
    store = InMemoryStore(registry, latency_ms=settings.bot.store_latency_ms)

    estimator = FallbackEstimator(resolver, random_provider)
    provider = provider or build_swap_provider(
        settings, estimator, random_provider=random_provider
    )
    swap_executor = SwapExecutor(provider, resolver, metrics=metrics)

    orchestrator = ArbitrageOrchestrator(
        pairs=store,
        pools=store,
        opportunities=store,
        swap_executor=swap_executor,
        interval_sec=settings.bot.scan_interval_sec,
        min_profit_usd=settings.bot.min_profit_usd,
        opportunity_probability=settings.bot.opportunity_probability,
        profitable_probability=settings.bot.profitable_probability,
        trade_amount=settings.bot.trade_amount,
        slippage=settings.bot.trade_slippage_pct,
        random_provider=random_provider,
        metrics=metrics,
    )

    health_server = None
    if settings.bot.health_check_port:
        health_server = HealthCheckServer(
            port=settings.bot.health_check_port, mode=settings.bot.mode
        )

    return ArbitrageBot(
        settings,
        store,
        swap_executor,
        orchestrator,
        health_server=health_server,
        metrics=metrics,
    )
