"""
HTTP client for the swap aggregator (quote and transaction build service).

Transport problems (DNS, refused connections, timeouts, 5xx) surface as
QuoteUnavailable so callers can fall back to local estimates; a 4xx is a
request problem and surfaces as NetworkError.
"""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import aiohttp

from sui_flashloan.exceptions import NetworkError, QuoteUnavailable, ValidationError
from sui_flashloan.utils import get_logger

from .fallback import quantize_amount
from .types import Commission, Hop, Quote, Route

logger = get_logger(__name__)


def parse_routes(raw_routes: Optional[List[Dict[str, Any]]]) -> List[Route]:
    routes = []
    for raw in raw_routes or []:
        hops = []
        for hop in raw.get("hops") or []:
            pool = hop.get("pool") or {}
            hops.append(Hop(pool_type=str(pool.get("type", "unknown")), fee_bps=int(pool.get("fee", 0) or 0)))
        routes.append(Route(hops=hops))
    return routes


def _decimal(value, default: str = "0") -> Decimal:
    try:
        return Decimal(str(value)) if value is not None else Decimal(default)
    except InvalidOperation:
        raise ValidationError(f"Aggregator returned a non-numeric amount: {value!r}")


def quote_from_response(
    payload: Dict[str, Any],
    input_token: str,
    output_token: str,
    amount,
    slippage_pct: float,
) -> Quote:
    """Convert an aggregator quote payload into a Quote."""
    amount_in = Decimal(str(amount))
    return_amount = _decimal(payload.get("returnAmount"))
    slippage = Decimal(str(max(0.0, min(float(slippage_pct), 100.0)))) / Decimal(100)

    if payload.get("effectivePrice") is not None:
        effective_price = _decimal(payload["effectivePrice"])
    elif amount_in > 0:
        effective_price = return_amount / amount_in
    else:
        effective_price = Decimal(0)

    return Quote(
        input_token=input_token,
        output_token=output_token,
        amount_in=amount_in,
        return_amount=return_amount,
        amount_out_min=quantize_amount(return_amount * (Decimal(1) - slippage)),
        effective_price=effective_price,
        price_impact=_decimal(payload.get("priceImpact")),
        fee_amount=_decimal(payload.get("feeAmount")),
        routes=parse_routes(payload.get("routes")),
        is_fallback=False,
        source="aggregator",
        raw=payload,
    )


class AggregatorClient:
    """Thin aiohttp wrapper around the aggregator REST API."""

    def __init__(
        self,
        base_url: str,
        timeout_sec: float = 5.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_sec)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, path: str, **kwargs) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{path}"
        try:
            async with self._get_session().request(method, url, **kwargs) as response:
                if response.status >= 500:
                    raise QuoteUnavailable(
                        f"Aggregator returned HTTP {response.status}", source=url
                    )
                if response.status >= 400:
                    text = await response.text()
                    raise NetworkError(
                        f"Aggregator rejected request: HTTP {response.status} {text[:200]}",
                        endpoint=url,
                        status_code=response.status,
                    )
                payload = await response.json(content_type=None)
        except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError) as e:
            raise QuoteUnavailable(f"Aggregator unreachable: {e or type(e).__name__}", source=url)
        except (ValueError, aiohttp.ContentTypeError) as e:
            # Maintenance pages and proxies answer 200 with HTML
            raise QuoteUnavailable(f"Aggregator returned a non-JSON body: {e}", source=url)

        if payload is not None and not isinstance(payload, dict):
            raise QuoteUnavailable(
                f"Aggregator returned {type(payload).__name__} instead of an object", source=url
            )
        return payload

    async def check_health(self) -> bool:
        """True if the API answers at all (any status below 500)."""
        try:
            async with self._get_session().get(self.base_url) as response:
                return response.status < 500
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Aggregator health check failed: {e}")
            return False

    async def fetch_quote(
        self, input_token: str, output_token: str, amount
    ) -> Optional[Dict[str, Any]]:
        """Raw quote payload, or None/{} when the service has nothing to say."""
        return await self._request(
            "GET",
            "/quote",
            params={"from": input_token, "to": output_token, "amount": str(amount)},
        )

    async def build_transaction(
        self,
        quote: Dict[str, Any],
        sender: str,
        slippage_pct: float,
        use_all_coins: bool = False,
        commission: Optional[Commission] = None,
    ) -> str:
        """Ask the build service for base64 transaction bytes for ``quote``."""
        body: Dict[str, Any] = {
            "quoteResponse": quote,
            "accountAddress": sender,
            "slippage": slippage_pct / 100,
            "useAllCoins": use_all_coins,
        }
        if commission is not None:
            body["commission"] = {
                "partner": commission.partner,
                "commissionBps": commission.commission_bps,
            }
        payload = await self._request("POST", "/build", json=body)
        tx_bytes = (payload or {}).get("txBytes")
        if not tx_bytes:
            raise QuoteUnavailable("Aggregator build response has no txBytes", source="build")
        return tx_bytes
