"""
Prometheus metrics for the demo arbitrage bot.

Counts scans, synthesized opportunities, swap executions and quote sources,
and can expose them over HTTP for scraping.
"""

import logging
from typing import Any, Dict, Optional

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

logger = logging.getLogger(__name__)


class BotMetrics:
    """
    Bot metrics collection and exposure

    Provides Prometheus-compatible metrics for:
    - Scan passes and per-pair scan errors
    - Opportunities found / executed / failed
    - Quote sources (live aggregator vs fallback estimate)
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        self._app = None
        self._runner = None
        self._site = None

    def _initialize_metrics(self):
        self.scans_total = Counter(
            "flashloan_bot_scans_total",
            "Total number of scan passes",
            registry=self.registry,
        )
        self.scan_errors_total = Counter(
            "flashloan_bot_scan_errors_total",
            "Per-pair errors raised during scans",
            registry=self.registry,
        )
        self.opportunities_total = Counter(
            "flashloan_bot_opportunities_total",
            "Opportunities recorded",
            ["profitable"],
            registry=self.registry,
        )
        self.executions_total = Counter(
            "flashloan_bot_executions_total",
            "Swap execution attempts by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.quotes_total = Counter(
            "flashloan_bot_quotes_total",
            "Quotes served by source",
            ["source"],
            registry=self.registry,
        )
        self.min_profit_usd = Gauge(
            "flashloan_bot_min_profit_usd",
            "Current minimum profit threshold in USD",
            registry=self.registry,
        )
        self.scanning = Gauge(
            "flashloan_bot_scanning",
            "1 while the scan loop is running",
            registry=self.registry,
        )

    # === RECORDING ===

    def record_scan(self):
        self.scans_total.inc()

    def record_scan_error(self):
        self.scan_errors_total.inc()

    def record_opportunity(self, profitable: bool):
        self.opportunities_total.labels(profitable=str(profitable).lower()).inc()

    def record_execution(self, outcome: str):
        self.executions_total.labels(outcome=outcome).inc()

    def record_quote(self, source: str):
        self.quotes_total.labels(source=source).inc()

    def set_min_profit(self, value: float):
        self.min_profit_usd.set(value)

    def set_scanning(self, running: bool):
        self.scanning.set(1 if running else 0)

    # === SERVER MANAGEMENT ===

    async def start_server(
        self, port: int = 9100, host: str = "0.0.0.0", path: str = "/metrics"
    ) -> bool:
        """Start Prometheus metrics HTTP server"""
        try:
            self._app = web.Application()
            self._app.router.add_get(path, self._metrics_handler)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, host, port)
            await self._site.start()

            logger.info(f"📊 Metrics server started on http://{host}:{port}{path}")
            return True

        except OSError as e:
            logger.error(f"Failed to start metrics server: {e}")
            return False

    async def stop_server(self):
        """Stop the metrics server"""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("📊 Metrics server stopped")

    async def _metrics_handler(self, request):
        metrics_output = generate_latest(self.registry)
        # aiohttp rejects a charset inside content_type
        content_type = CONTENT_TYPE_LATEST.split(";")[0]
        return web.Response(body=metrics_output, content_type=content_type)

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Current counter values, for log summaries"""
        return {
            "scans": self.registry.get_sample_value("flashloan_bot_scans_total"),
            "scan_errors": self.registry.get_sample_value(
                "flashloan_bot_scan_errors_total"
            ),
            "min_profit_usd": self.registry.get_sample_value(
                "flashloan_bot_min_profit_usd"
            ),
        }
