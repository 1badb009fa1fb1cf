"""Tests for the pysui-backed client session."""

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from sui_flashloan.exceptions import NetworkError, RpcError, TransactionExecutionFailed
from sui_flashloan.sui.client import (
    SuiClient,
    execution_error,
    execution_status,
    transaction_digest,
)
from sui_flashloan.sui.keypair import SuiKeypair

KEYPAIR = SuiKeypair(bytes(range(32)))
PRIMARY = "https://primary.example"
BACKUP = "https://backup.example"


def rpc_result(data=None, error=None):
    result = MagicMock()
    result.is_ok.return_value = error is None
    result.result_data = data
    result.result_string = error
    return result


def fake_pysui(**methods):
    client = MagicMock()
    client.config.active_address = KEYPAIR.address
    client.close = AsyncMock()
    for name, value in methods.items():
        setattr(client, name, AsyncMock(return_value=value))
    return client


class ScriptedFactory:
    """Builds clients per URL; URLs in ``failing`` raise like an unreachable node."""

    def __init__(self, failing=(), client=None):
        self.failing = set(failing)
        self.client = client or fake_pysui()
        self.calls = []

    def __call__(self, url, keystring):
        self.calls.append((url, keystring))
        if url in self.failing:
            raise ConnectionError(f"{url} refused")
        return self.client


class TestResultHelpers:
    def test_status_from_dicts(self):
        data = {"digest": "D1", "effects": {"status": {"status": "failure", "error": "MoveAbort"}}}
        assert execution_status(data) == "failure"
        assert execution_error(data) == "MoveAbort"
        assert transaction_digest(data) == "D1"

    def test_status_from_objects(self):
        data = SimpleNamespace(
            digest=None,
            effects=SimpleNamespace(status=SimpleNamespace(status="success", error=None), transactionDigest="D2"),
        )
        assert execution_status(data) == "success"
        assert transaction_digest(data) == "D2"

    def test_missing_effects(self):
        assert execution_status({}) == "unknown"
        assert execution_error(None) is None
        assert transaction_digest({}) is None


class TestConnect:
    def test_urls_deduplicated_in_order(self):
        client = SuiClient([PRIMARY, " ", BACKUP, PRIMARY], KEYPAIR)
        assert client.urls == [PRIMARY, BACKUP]
        assert client.address == KEYPAIR.address

    def test_needs_an_endpoint(self):
        with pytest.raises(ValueError):
            SuiClient(["", "  "], KEYPAIR)

    @pytest.mark.asyncio
    async def test_fails_over_to_next_endpoint(self):
        factory = ScriptedFactory(failing=[PRIMARY])
        client = SuiClient([PRIMARY, BACKUP], KEYPAIR, client_factory=factory)

        await client.connect()

        assert client.connected
        assert client.url == BACKUP
        assert [url for url, _ in factory.calls] == [PRIMARY, BACKUP]
        assert factory.calls[0][1] == KEYPAIR.keystring

    @pytest.mark.asyncio
    async def test_all_endpoints_down(self):
        client = SuiClient([PRIMARY, BACKUP], KEYPAIR, client_factory=ScriptedFactory(failing=[PRIMARY, BACKUP]))
        with pytest.raises(NetworkError) as exc_info:
            await client.connect()
        assert set(exc_info.value.details["errors"]) == {PRIMARY, BACKUP}
        assert not client.connected

    @pytest.mark.asyncio
    async def test_health_check(self):
        factory = ScriptedFactory(failing=[BACKUP])
        client = SuiClient([PRIMARY, BACKUP], KEYPAIR, client_factory=factory)
        assert await client.check_endpoint_health(PRIMARY)
        assert not await client.check_endpoint_health(BACKUP)
        factory.client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        factory = ScriptedFactory()
        async with SuiClient(PRIMARY, KEYPAIR, client_factory=factory) as client:
            assert client.connected
        assert not client.connected
        factory.client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_calls_before_connect(self):
        client = SuiClient(PRIMARY, KEYPAIR, client_factory=ScriptedFactory())
        with pytest.raises(NetworkError):
            client.new_transaction()
        with pytest.raises(NetworkError):
            await client.dry_run("AAAA")


class TestRequests:
    async def connected(self, **methods):
        client = SuiClient(PRIMARY, KEYPAIR, client_factory=ScriptedFactory(client=fake_pysui(**methods)))
        await client.connect()
        return client

    @pytest.mark.asyncio
    async def test_get_object_fields(self):
        client = await self.connected(
            get_object=rpc_result({"objectId": "0xf4", "content": {"fields": {"reserves": []}}})
        )
        assert await client.get_object_fields("0xf4") == {"reserves": []}

    @pytest.mark.asyncio
    async def test_get_object_without_content(self):
        client = await self.connected(get_object=rpc_result({"objectId": "0xf4"}))
        assert await client.get_object_fields("0xf4") == {}

    @pytest.mark.asyncio
    async def test_node_error_is_rpc_error(self):
        client = await self.connected(get_object=rpc_result(error="Object deleted"))
        with pytest.raises(RpcError) as exc_info:
            await client.get_object_fields("0xf4")
        assert "Object deleted" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_sign_and_execute_encodes_bytes(self):
        ok = {"digest": "D3", "effects": {"status": {"status": "success"}}}
        client = await self.connected(sign_and_submit=rpc_result(ok))

        assert await client.sign_and_execute(b"\x00\x01") == ok

        pysui = client._client
        pysui.sign_and_submit.assert_awaited_once_with(
            KEYPAIR.address, base64.b64encode(b"\x00\x01").decode()
        )

    @pytest.mark.asyncio
    async def test_dry_run_passes_base64_through(self):
        client = await self.connected(dry_run=rpc_result({"effects": {}}))
        await client.dry_run("AAAA")
        client._client.dry_run.assert_awaited_once_with("AAAA")

    @pytest.mark.asyncio
    async def test_execute_checks_status(self):
        client = await self.connected()
        tx = MagicMock()
        tx.execute = AsyncMock(
            return_value=rpc_result(
                {"digest": "D4", "effects": {"status": {"status": "failure", "error": "InsufficientGas"}}}
            )
        )

        with pytest.raises(TransactionExecutionFailed) as exc_info:
            await client.execute(tx, 1_000)

        tx.execute.assert_awaited_once_with(gas_budget="1000")
        assert exc_info.value.digest == "D4"
        assert exc_info.value.details["error"] == "InsufficientGas"

    @pytest.mark.asyncio
    async def test_execute_rejected_by_node(self):
        client = await self.connected()
        tx = MagicMock()
        tx.execute = AsyncMock(return_value=rpc_result(error="Insufficient gas coins"))
        with pytest.raises(RpcError):
            await client.execute(tx, 1_000)
