"""Tests for the registry loader and in-memory store."""

import tempfile
from pathlib import Path

import pytest

from arb.repositories import InMemoryStore, Registry, load_registry
from arb.types import ArbitrageOpportunity, Pool, TokenPair
from sui_flashloan.exceptions import ConfigurationError
from sui_flashloan.interfaces import DeterministicTimeProvider
from sui_flashloan.tokens import DEFAULT_TOKENS, TokenResolver

SUI = DEFAULT_TOKENS["SUI"]
USDC = DEFAULT_TOKENS["USDC"]
USDT = DEFAULT_TOKENS["USDT"]


def write_yaml(content):
    f = tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False)
    f.write(content)
    f.close()
    return f.name


def opportunity(**overrides):
    values = dict(
        token_a=SUI,
        token_b=USDC,
        entry_pool_id="0xp1",
        exit_pool_id="0xp2",
        entry_dex="MockDex",
        exit_dex="SevenK",
        profitable_trade=True,
        estimated_profit="7.5000",
        timestamp=0.0,
    )
    values.update(overrides)
    return ArbitrageOpportunity(**values)


class TestLoadRegistry:
    def test_bundled_registry(self):
        resolver = TokenResolver()
        registry = load_registry(resolver=resolver)

        assert [t.symbol for t in registry.tokens] == ["SUI", "USDC", "USDT", "BTC"]
        assert registry.pairs[0] == TokenPair(SUI, USDC)
        assert len(registry.pairs) == 3
        sui_usdc = [p.pool_id for p in registry.pools if p.holds(SUI, USDC)]
        assert sui_usdc == ["0xmockpool1", "0xmockpool4"]

    def test_custom_tokens_registered_on_resolver(self):
        path = write_yaml(
            "tokens:\n"
            "  - symbol: doge\n"
            "    address: '0xd06e'\n"
            "pools:\n"
            "  - {dex: A, pool_id: p1, token_a: DOGE, token_b: SUI}\n"
            "pairs:\n"
            "  - [DOGE, SUI]\n"
        )
        try:
            resolver = TokenResolver()
            registry = load_registry(path, resolver)
        finally:
            Path(path).unlink()

        assert resolver.lookup("DOGE") == "0xd06e::coin::COIN"
        assert registry.tokens[0].name == "doge"
        assert registry.pools[0].token_a == "0xd06e::coin::COIN"

    @pytest.mark.parametrize(
        "content",
        [
            "pools:\n  - {dex: A, pool_id: p1, token_a: SUI}\n",
            "pairs:\n  - [SUI]\n",
            "pairs:\n  - [SUI, NOPE]\n",
            "tokens:\n  - {symbol: X, address: 'not hex'}\n",
        ],
    )
    def test_bad_entries(self, content):
        path = write_yaml(content)
        try:
            with pytest.raises(ConfigurationError):
                load_registry(path)
        finally:
            Path(path).unlink()


class TestInMemoryStore:
    def make_store(self, clock=None):
        registry = Registry(
            pools=[
                Pool("MockDex", "0xp1", SUI, USDC),
                Pool("SevenK", "0xp2", USDC, SUI),
                Pool("MockDex", "0xp3", SUI, USDT),
            ],
            pairs=[TokenPair(SUI, USDC)],
        )
        return InMemoryStore(registry, time_provider=clock or DeterministicTimeProvider(100.0))

    @pytest.mark.asyncio
    async def test_connect_disconnect(self):
        store = self.make_store()
        await store.connect()
        assert store.connected
        await store.disconnect()
        assert not store.connected

    @pytest.mark.asyncio
    async def test_find_pools_either_order(self):
        store = self.make_store()
        ids = [p.pool_id for p in await store.find_pools(USDC, SUI)]
        assert ids == ["0xp1", "0xp2"]
        assert await store.find_pools(USDC, USDT) == []

    @pytest.mark.asyncio
    async def test_refresh_pool_updates_timestamp(self):
        clock = DeterministicTimeProvider(100.0)
        store = self.make_store(clock)
        clock.advance_time(5)
        pool = await store.refresh_pool("0xp1", reserve_a=10)
        assert pool.last_updated == 105.0
        assert pool.reserve_a == 10
        with pytest.raises(KeyError):
            await store.refresh_pool("0xmissing")

    @pytest.mark.asyncio
    async def test_append_assigns_ids_and_timestamps(self):
        clock = DeterministicTimeProvider(100.0)
        store = self.make_store(clock)

        first = await store.append(opportunity())
        clock.advance_time(1)
        second = await store.append(opportunity(profitable_trade=False, estimated_profit="0.00"))

        assert (first.id, first.timestamp) == (1, 100.0)
        assert (second.id, second.timestamp) == (2, 101.0)
        assert await store.list() == [first, second]

    @pytest.mark.asyncio
    async def test_token_lookup(self):
        resolver = TokenResolver()
        store = InMemoryStore(load_registry(resolver=resolver))
        assert (await store.get_token_by_symbol("usdc")).address == USDC
        assert (await store.get_token_by_address(SUI)).symbol == "SUI"
        assert await store.get_token_by_symbol("DOGE") is None
