"""Tests for simulated and live swap providers."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils, web

from arb.aggregator import AggregatorClient
from arb.fallback import FallbackEstimator
from arb.providers import (
    LiveProvider,
    SimulatedProvider,
    SwapProvider,
    build_swap_provider,
)
from arb.types import SwapParams
from sui_flashloan.config_loader import load_settings
from sui_flashloan.exceptions import (
    ConfigurationError,
    NoRouteFound,
    QuoteUnavailable,
    SwapExecutionFailed,
)
from sui_flashloan.interfaces import DeterministicTimeProvider, ScriptedRandomProvider
from sui_flashloan.sui import SuiClient, SuiKeypair
from sui_flashloan.tokens import DEFAULT_TOKENS, TokenResolver

SUI = DEFAULT_TOKENS["SUI"]
USDC = DEFAULT_TOKENS["USDC"]
ROUTED = {"returnAmount": "1090000", "routes": [{"hops": [{"pool": {"type": "cetus", "fee": 25}}]}]}
SIGNER = "0x" + "ab" * 32


@pytest.fixture
def estimator():
    return FallbackEstimator(TokenResolver(), ScriptedRandomProvider([0.5]))


@pytest.fixture
def sui():
    client = MagicMock()
    client.address = SIGNER
    client.url = "https://fullnode.example"
    client.connect = AsyncMock(return_value=client)
    client.sign_and_execute = AsyncMock(
        return_value={"digest": "LiveDigest", "effects": {"status": {"status": "success"}}}
    )
    client.dry_run = AsyncMock(
        return_value={"effects": {"transactionDigest": "DryDigest", "status": {"status": "success"}}}
    )
    client.close = AsyncMock()
    return client


def live_provider(estimator, sui, fetch=None, build="AAAA", execute=None):
    aggregator = MagicMock()
    aggregator.fetch_quote = fetch or AsyncMock(return_value=ROUTED)
    aggregator.build_transaction = AsyncMock(return_value=build)
    aggregator.check_health = AsyncMock(return_value=True)
    aggregator.close = AsyncMock()

    if execute is not None:
        sui.sign_and_execute.return_value = execute
    return LiveProvider(aggregator, sui, estimator, quote_timeout_sec=0.5)


class TestSimulatedProvider:
    @pytest.mark.asyncio
    async def test_digest_format(self, estimator):
        provider = SimulatedProvider(
            estimator,
            time_provider=DeterministicTimeProvider(start_time=1700000000.0),
            random_provider=ScriptedRandomProvider([0.0]),
        )
        assert isinstance(provider, SwapProvider)
        quote = await provider.get_quote(SUI, USDC, 1000)
        digest = await provider.execute(SwapParams(SUI, USDC, 1000), quote)
        assert digest == "simTx_1700000000000_100000"

    @pytest.mark.asyncio
    async def test_quotes_are_fallback(self, estimator):
        quote = await SimulatedProvider(estimator).get_quote(SUI, USDC, 1000)
        assert quote.is_fallback


class TestLiveQuotes:
    @pytest.mark.asyncio
    async def test_live_quote(self, estimator, sui):
        quote = await live_provider(estimator, sui).get_quote(SUI, USDC, 1_000_000)
        assert quote.source == "aggregator"
        assert not quote.is_fallback

    @pytest.mark.asyncio
    async def test_unavailable_falls_back(self, estimator, sui):
        fetch = AsyncMock(side_effect=QuoteUnavailable("down", source="aggregator"))
        quote = await live_provider(estimator, sui, fetch=fetch).get_quote(SUI, USDC, 1000)
        assert quote.is_fallback

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, estimator, sui):
        async def slow(*args):
            await asyncio.sleep(5)

        quote = await live_provider(estimator, sui, fetch=slow).get_quote(SUI, USDC, 1000)
        assert quote.is_fallback

    @pytest.mark.asyncio
    async def test_empty_payload_falls_back(self, estimator, sui):
        quote = await live_provider(estimator, sui, fetch=AsyncMock(return_value={})).get_quote(SUI, USDC, 1000)
        assert quote.source == "fallback"

    @pytest.mark.asyncio
    async def test_no_routes(self, estimator, sui):
        fetch = AsyncMock(return_value={"returnAmount": "0", "routes": []})
        with pytest.raises(NoRouteFound) as exc_info:
            await live_provider(estimator, sui, fetch=fetch).get_quote(SUI, USDC, 1000)
        assert exc_info.value.input_token == SUI


    @pytest.mark.asyncio
    async def test_html_maintenance_page_falls_back(self, estimator, sui):
        async def quote(request):
            return web.Response(text="<html>maintenance</html>", content_type="text/html")

        app = web.Application()
        app.router.add_get("/quote", quote)
        async with test_utils.TestServer(app) as server:
            aggregator = AggregatorClient(str(server.make_url("/")).rstrip("/"))
            provider = LiveProvider(aggregator, sui, estimator, quote_timeout_sec=2)
            try:
                quote = await provider.get_quote(SUI, USDC, 1000)
            finally:
                await provider.close()

        assert quote.is_fallback
        assert quote.source == "fallback"


class TestLiveExecution:
    @pytest.mark.asyncio
    async def test_initialize_connects_signer(self, estimator, sui):
        provider = live_provider(estimator, sui)
        await provider.initialize()
        sui.connect.assert_awaited_once()
        provider.aggregator.check_health.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_releases_both_clients(self, estimator, sui):
        provider = live_provider(estimator, sui)
        await provider.close()
        provider.aggregator.close.assert_awaited_once()
        sui.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_execute_signs_and_submits(self, estimator, sui):
        provider = live_provider(estimator, sui)
        quote = await provider.get_quote(SUI, USDC, 1000)

        digest = await provider.execute(SwapParams(SUI, USDC, 1000, slippage=1.0), quote)

        assert digest == "LiveDigest"
        provider.aggregator.build_transaction.assert_awaited_once()
        args = provider.aggregator.build_transaction.await_args
        assert args.args[:3] == (ROUTED, SIGNER, 1.0)
        provider.sui.sign_and_execute.assert_awaited_once_with("AAAA")

    @pytest.mark.asyncio
    async def test_dry_run(self, estimator, sui):
        provider = live_provider(estimator, sui)
        quote = await provider.get_quote(SUI, USDC, 1000)
        digest = await provider.execute(SwapParams(SUI, USDC, 1000, dry_run=True), quote)
        assert digest == "DryDigest"
        provider.sui.dry_run.assert_awaited_once_with("AAAA")
        provider.sui.sign_and_execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_status(self, estimator, sui):
        provider = live_provider(
            estimator,
            sui,
            execute={"digest": "Bad", "effects": {"status": {"status": "failure", "error": "slippage"}}},
        )
        quote = await provider.get_quote(SUI, USDC, 1000)
        with pytest.raises(SwapExecutionFailed) as exc_info:
            await provider.execute(SwapParams(SUI, USDC, 1000), quote)
        assert exc_info.value.digest == "Bad"
        assert exc_info.value.status == "failure"

    @pytest.mark.asyncio
    async def test_refuses_fallback_quote(self, estimator, sui):
        provider = live_provider(estimator, sui)
        quote = estimator.swap_quote(SUI, USDC, 1000)
        with pytest.raises(QuoteUnavailable):
            await provider.execute(SwapParams(SUI, USDC, 1000), quote)
        provider.aggregator.build_transaction.assert_not_awaited()


class TestBuildSwapProvider:
    def test_simulation(self, estimator):
        provider = build_swap_provider(load_settings(env={}), estimator)
        assert provider.name == "simulated"

    def test_live_requires_signer(self, estimator):
        settings = load_settings(env={"SIMULATION_ONLY": "false"})
        with pytest.raises(ConfigurationError):
            build_swap_provider(settings, estimator)

    def test_live_with_key(self, estimator):
        settings = load_settings(
            env={"SIMULATION_ONLY": "false", "PRIVATE_KEY": bytes(range(32)).hex()}
        )
        provider = build_swap_provider(settings, estimator)
        assert provider.name == "live"
        assert isinstance(provider.sui, SuiClient)
        assert provider.sui.address == SuiKeypair(bytes(range(32))).address
        assert not provider.sui.connected
