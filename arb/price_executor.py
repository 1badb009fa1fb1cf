"""
Read-only price discovery against a lending venue.

An optional live PriceSource is tried first; when it fails (or none is
configured) the lending fallback table is used, wrapped in the retry
policy.
"""

from typing import Optional, Protocol

from sui_flashloan.exceptions import (
    InvalidTokenFormat,
    PriceDiscoveryError,
)
from sui_flashloan.tokens import TokenResolver
from sui_flashloan.utils import get_logger, with_retry

from .fallback import FallbackEstimator
from .types import PriceInfo, PriceParams

# Markers for pairs the lending venue is known to list
COMMON_TOKEN_MARKERS = ("0x2::sui::SUI", "::usdc::", "::usdt::", "::eth::", "::btc::")
COMMON_SYMBOLS = frozenset({"SUI", "USDC", "USDT", "ETH", "WETH", "BTC", "WBTC"})


class PriceSource(Protocol):
    async def get_price(self, input_token: str, output_token: str, amount) -> PriceInfo:
        ...


class PriceDiscoveryExecutor:
    """Price discovery with retry and fallback."""

    def __init__(
        self,
        estimator: FallbackEstimator,
        resolver: Optional[TokenResolver] = None,
        source: Optional[PriceSource] = None,
        retry_attempts: int = 3,
        retry_delay_ms: int = 1000,
        sleep=None,
        logger=None,
    ):
        self.estimator = estimator
        self.resolver = resolver or estimator.resolver or TokenResolver()
        self.source = source
        self.retry_attempts = retry_attempts
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep
        self.logger = logger or get_logger(__name__, context="SuiLendExecutor")

    async def _retry(self, operation):
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        return await with_retry(
            operation,
            attempts=self.retry_attempts,
            base_delay_ms=self.retry_delay_ms,
            logger=self.logger,
            **kwargs,
        )

    async def get_price_info(self, params: PriceParams) -> PriceInfo:
        """
        Expected output for ``params``. Never submits anything.

        Raises:
            InvalidTokenFormat: If a token cannot be resolved
            PriceDiscoveryError: For any other failure
        """
        input_token = self.resolver.require(params.input_token)
        output_token = self.resolver.require(params.output_token)

        try:
            if self.source is not None:
                try:
                    return await self._retry(
                        lambda: self.source.get_price(input_token, output_token, params.amount)
                    )
                except Exception as e:
                    self.logger.warning(
                        f"Live price discovery failed, falling back to estimates: {e}"
                    )

            self.logger.info(
                f"Generating fallback price info for {params.amount} {input_token} -> {output_token}"
            )
            info = await self._retry(self._fallback(input_token, output_token, params.amount))
        except (InvalidTokenFormat, PriceDiscoveryError):
            raise
        except Exception as e:
            raise PriceDiscoveryError(
                f"Price discovery failed: {e}",
                input_token=params.input_token,
                output_token=params.output_token,
            )

        self.logger.info(
            f"Price info: expected={info.expected_output} rate={info.exchange_rate} "
            f"impact={info.price_impact} source={info.source}"
        )
        return info

    def _fallback(self, input_token: str, output_token: str, amount):
        async def operation():
            return self.estimator.price_info(input_token, output_token, amount)

        return operation

    async def can_trade_pair(self, input_token: str, output_token: str) -> bool:
        """True when both sides look like commonly listed assets."""
        resolved_in = self.resolver.resolve(input_token)
        resolved_out = self.resolver.resolve(output_token)

        def is_common(token: str) -> bool:
            if self.resolver.symbol_for(token) in COMMON_SYMBOLS:
                return True
            lowered = token.lower()
            return any(marker.lower() in lowered for marker in COMMON_TOKEN_MARKERS)

        tradable = is_common(resolved_in) and is_common(resolved_out)
        if tradable:
            self.logger.info(f"Token pair {resolved_in}/{resolved_out} can be traded")
        else:
            self.logger.debug(f"Token pair {resolved_in}/{resolved_out} is not a known market")
        return tradable
