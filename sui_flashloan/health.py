"""
Liveness endpoint for container health checks.

``GET /health`` answers ``{"status": "ok", "mode": <mode>}``; every other
path or method gets an empty 404.

Usage:
    python -m sui_flashloan.health
"""

import asyncio
import logging
import os
import signal
from typing import Optional

from aiohttp import web

from .utils import parse_bool

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000


def create_app(mode: str = "simulation") -> web.Application:
    """Build the health-check application."""

    async def handle(request: web.Request) -> web.Response:
        if request.method == "GET" and request.path == "/health":
            return web.json_response({"status": "ok", "mode": mode})
        return web.Response(status=404)

    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", handle)
    return app


class HealthCheckServer:
    """Runs the health app on a TCP port alongside the bot."""

    def __init__(self, port: int = DEFAULT_PORT, host: str = "0.0.0.0", mode: str = "simulation"):
        self.port = port
        self.host = host
        self.mode = mode
        self._runner: Optional[web.AppRunner] = None

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        if self._runner is not None:
            return
        runner = web.AppRunner(create_app(self.mode))
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        logger.info(f"Health check server running on port {self.port}")

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("Health check server stopped")


async def _serve_forever(port: int, mode: str) -> None:
    server = HealthCheckServer(port=port, mode=mode)
    await server.start()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)
    try:
        await stop.wait()
    finally:
        await server.stop()


def main() -> int:
    import logging_config

    logging_config.setup()
    port = int(os.getenv("HEALTH_CHECK_PORT", str(DEFAULT_PORT)))
    mode = "simulation" if parse_bool(os.getenv("SIMULATION_ONLY"), True) else "live"
    asyncio.run(_serve_forever(port, mode))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
