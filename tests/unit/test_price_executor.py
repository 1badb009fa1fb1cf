"""Tests for read-only price discovery."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from arb.fallback import FallbackEstimator
from arb.price_executor import PriceDiscoveryExecutor
from arb.types import PriceInfo, PriceParams
from sui_flashloan.exceptions import InvalidTokenFormat, PriceDiscoveryError
from sui_flashloan.interfaces import ScriptedRandomProvider
from sui_flashloan.tokens import DEFAULT_TOKENS, TokenResolver

SUI = DEFAULT_TOKENS["SUI"]
USDC = DEFAULT_TOKENS["USDC"]


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_executor(source=None, sleep=None, attempts=3):
    estimator = FallbackEstimator(TokenResolver(), ScriptedRandomProvider([0.5]))
    return PriceDiscoveryExecutor(
        estimator,
        source=source,
        retry_attempts=attempts,
        retry_delay_ms=100,
        sleep=sleep or RecordingSleep(),
    )


@pytest.mark.asyncio
async def test_fallback_price():
    info = await make_executor().get_price_info(PriceParams("SUI", "USDC", Decimal(100)))
    assert info.is_fallback
    assert info.input_token == SUI
    assert info.output_token == USDC
    assert info.expected_output == Decimal("5.00")


@pytest.mark.asyncio
async def test_live_source_used_when_healthy():
    live = PriceInfo(SUI, USDC, Decimal(1), Decimal("1.1"), Decimal("1.1"), "suilend", False)
    source = AsyncMock()
    source.get_price = AsyncMock(return_value=live)

    info = await make_executor(source=source).get_price_info(PriceParams("SUI", "USDC", Decimal(1)))

    assert info is live
    source.get_price.assert_awaited_once_with(SUI, USDC, Decimal(1))


@pytest.mark.asyncio
async def test_live_source_retried_then_fallback():
    source = AsyncMock()
    source.get_price = AsyncMock(side_effect=RuntimeError("rpc down"))
    sleep = RecordingSleep()

    info = await make_executor(source=source, sleep=sleep).get_price_info(
        PriceParams("SUI", "USDC", Decimal(1))
    )

    assert info.is_fallback
    assert source.get_price.await_count == 3
    assert sleep.calls == [0.1, 0.2]


@pytest.mark.asyncio
async def test_invalid_token():
    with pytest.raises(InvalidTokenFormat):
        await make_executor().get_price_info(PriceParams("???", "USDC", Decimal(1)))


@pytest.mark.asyncio
async def test_invalid_amount_raises_after_retries():
    sleep = RecordingSleep()
    with pytest.raises(PriceDiscoveryError):
        await make_executor(sleep=sleep, attempts=2).get_price_info(
            PriceParams("SUI", "USDC", "not-a-number")
        )
    assert sleep.calls == [0.1]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "pair,expected",
    [
        (("SUI", "USDC"), True),
        (("WBTC", "USDT"), True),
        (("0x9::usdc::USDC", "0x2::sui::SUI"), True),
        (("SUI", "0xaaa::alpha::ALPHA"), False),
    ],
)
async def test_can_trade_pair(pair, expected):
    assert await make_executor().can_trade_pair(*pair) is expected
