"""
Storage interfaces for pairs, pools and the opportunity log, plus an
in-memory implementation seeded from ``configs/registry.yaml``.

Nothing here is durable; the store lives for one process.
"""

import asyncio
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from sui_flashloan.config_loader import load_yaml_config
from sui_flashloan.exceptions import ConfigurationError, InvalidTokenFormat
from sui_flashloan.interfaces import SystemTimeProvider, TimeProvider
from sui_flashloan.tokens import TokenResolver
from sui_flashloan.utils import get_logger

from .types import ArbitrageOpportunity, Pool, TokenPair

logger = get_logger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).resolve().parent.parent / "configs" / "registry.yaml"


@dataclass(frozen=True)
class TokenRecord:
    symbol: str
    name: str
    address: str


@dataclass
class Registry:
    tokens: List[TokenRecord] = field(default_factory=list)
    pools: List[Pool] = field(default_factory=list)
    pairs: List[TokenPair] = field(default_factory=list)


class PairRepository(Protocol):
    async def list_pairs(self) -> List[TokenPair]:
        ...


class PoolRepository(Protocol):
    async def find_pools(self, token_a: str, token_b: str) -> List[Pool]:
        ...

    async def refresh_pool(self, pool_id: str, reserve_a=None, reserve_b=None) -> Pool:
        ...


class OpportunityLog(Protocol):
    async def append(self, opportunity: ArbitrageOpportunity) -> ArbitrageOpportunity:
        ...

    async def list(self) -> List[ArbitrageOpportunity]:
        ...


def _require_keys(entry: Dict, keys, section: str, index: int) -> None:
    missing = [k for k in keys if not entry.get(k)]
    if missing:
        raise ConfigurationError(
            f"{section}[{index}] is missing {', '.join(missing)}",
            details={"entry": entry},
        )


def load_registry(
    path: Optional[Union[str, Path]] = None,
    resolver: Optional[TokenResolver] = None,
) -> Registry:
    """
    Load tokens, pools and pairs. Tokens listed in the file are added to
    ``resolver`` so pools and pairs can refer to them by symbol.
    """
    data = load_yaml_config(path or DEFAULT_REGISTRY_PATH)
    resolver = resolver or TokenResolver()
    registry = Registry()

    try:
        for i, entry in enumerate(data.get("tokens") or []):
            _require_keys(entry, ("symbol", "address"), "tokens", i)
            address = resolver.add_token(entry["symbol"], entry["address"])
            registry.tokens.append(
                TokenRecord(entry["symbol"].upper(), entry.get("name", entry["symbol"]), address)
            )

        for i, entry in enumerate(data.get("pools") or []):
            _require_keys(entry, ("dex", "pool_id", "token_a", "token_b"), "pools", i)
            registry.pools.append(
                Pool(
                    dex=entry["dex"],
                    pool_id=str(entry["pool_id"]),
                    token_a=resolver.require(entry["token_a"]),
                    token_b=resolver.require(entry["token_b"]),
                )
            )

        for i, entry in enumerate(data.get("pairs") or []):
            if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                raise ConfigurationError(f"pairs[{i}] must be a two-element list")
            registry.pairs.append(
                TokenPair(resolver.require(entry[0]), resolver.require(entry[1]))
            )
    except InvalidTokenFormat as e:
        raise ConfigurationError(f"Invalid token in registry: {e}", details={"token": e.token})

    return registry


class InMemoryStore:
    """
    Pair/pool repositories and opportunity log in process memory.

    ``latency_ms`` adds an artificial await to every call so the async
    flow behaves like a real store.
    """

    def __init__(
        self,
        registry: Optional[Registry] = None,
        latency_ms: int = 0,
        time_provider: Optional[TimeProvider] = None,
    ):
        registry = registry or Registry()
        self._tokens = list(registry.tokens)
        self._pools = {pool.pool_id: pool for pool in registry.pools}
        self._pairs = list(registry.pairs)
        self._opportunities: List[ArbitrageOpportunity] = []
        self.latency_ms = latency_ms
        self.time = time_provider or SystemTimeProvider()
        self.connected = False

        now = self.time.current_timestamp()
        for pool in self._pools.values():
            if not pool.last_updated:
                pool.last_updated = now

    async def _delay(self) -> None:
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000.0)

    async def connect(self) -> None:
        await self._delay()
        self.connected = True
        logger.info(
            f"In-memory store ready: {len(self._pairs)} pairs, {len(self._pools)} pools"
        )

    async def disconnect(self) -> None:
        await self._delay()
        self.connected = False
        logger.info("In-memory store closed")

    # === TOKENS ===

    async def get_token_by_symbol(self, symbol: str) -> Optional[TokenRecord]:
        await self._delay()
        upper = symbol.upper()
        return next((t for t in self._tokens if t.symbol == upper), None)

    async def get_token_by_address(self, address: str) -> Optional[TokenRecord]:
        await self._delay()
        return next((t for t in self._tokens if t.address == address), None)

    # === PAIRS / POOLS ===

    async def list_pairs(self) -> List[TokenPair]:
        await self._delay()
        return list(self._pairs)

    async def find_pools(self, token_a: str, token_b: str) -> List[Pool]:
        await self._delay()
        return [pool for pool in self._pools.values() if pool.holds(token_a, token_b)]

    async def refresh_pool(self, pool_id: str, reserve_a=None, reserve_b=None) -> Pool:
        await self._delay()
        pool = self._pools.get(pool_id)
        if pool is None:
            raise KeyError(pool_id)
        if reserve_a is not None:
            pool.reserve_a = reserve_a
        if reserve_b is not None:
            pool.reserve_b = reserve_b
        pool.last_updated = self.time.current_timestamp()
        return pool

    # === OPPORTUNITIES ===

    async def append(self, opportunity: ArbitrageOpportunity) -> ArbitrageOpportunity:
        """Store a copy with the next id and the store's timestamp."""
        await self._delay()
        stored = replace(
            opportunity,
            id=len(self._opportunities) + 1,
            timestamp=self.time.current_timestamp(),
        )
        self._opportunities.append(stored)
        logger.debug(f"Recorded opportunity #{stored.id}: {stored}")
        return stored

    async def list(self) -> List[ArbitrageOpportunity]:
        await self._delay()
        return list(self._opportunities)
