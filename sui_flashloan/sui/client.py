"""
Sui fullnode access through pysui, with ordered endpoint failover.

Endpoints are tried in order; the first one whose pysui client comes up
(pysui runs API discovery against the node while connecting) is used for
the rest of the session. Transactions are built with pysui's async
``SuiTransaction`` and signed by the key installed in the pysui config.
"""

import asyncio
import base64
from typing import Any, Callable, Iterable, List, Optional, Union

from pysui import AsyncClient, SuiConfig
from pysui.sui.sui_txn.async_transaction import SuiTransactionAsync as SuiTransaction
from pysui.sui.sui_types.scalars import ObjectID

from ..exceptions import NetworkError, RpcError, TransactionExecutionFailed
from ..utils import get_logger
from .keypair import SuiKeypair

logger = get_logger(__name__)

ClientFactory = Callable[[str, str], Any]


def create_pysui_client(rpc_url: str, keystring: str) -> AsyncClient:
    """pysui AsyncClient for ``rpc_url`` signing with ``keystring``."""
    config = SuiConfig.user_config(rpc_url=rpc_url, prv_keys=[keystring])
    return AsyncClient(config)


def _field(value: Any, name: str, default: Any = None) -> Any:
    """Attribute or key lookup over pysui result objects and plain dicts."""
    if value is None:
        return default
    if isinstance(value, dict):
        return value.get(name, default)
    return getattr(value, name, default)


def execution_status(data: Any) -> str:
    """``effects.status.status`` of an execution result, or "unknown"."""
    status = _field(_field(data, "effects"), "status")
    return _field(status, "status", "unknown") or "unknown"


def execution_error(data: Any) -> Optional[str]:
    return _field(_field(_field(data, "effects"), "status"), "error")


def transaction_digest(data: Any) -> Optional[str]:
    digest = _field(data, "digest")
    if digest is None:
        digest = _field(_field(data, "effects"), "transactionDigest")
    return digest


def _unwrap(result: Any, operation: str, endpoint: Optional[str] = None) -> Any:
    """Result data of a SuiRpcResult, or RpcError with the node's message."""
    if not result.is_ok():
        raise RpcError(
            f"{operation} failed: {result.result_string}",
            method=operation,
            endpoint=endpoint,
        )
    return result.result_data


def _encode_tx_bytes(tx_bytes: Union[bytes, str]) -> str:
    if isinstance(tx_bytes, (bytes, bytearray)):
        return base64.b64encode(bytes(tx_bytes)).decode()
    return tx_bytes


class SuiClient:
    """
    Session against one healthy fullnode, chosen from ``urls`` in order.

    Usage:
        client = SuiClient(urls, keypair)
        await client.connect()
        tx = client.new_transaction()
        ...
        result = await client.execute(tx, gas_budget)
    """

    def __init__(
        self,
        urls: Union[str, Iterable[str]],
        keypair: SuiKeypair,
        client_factory: Optional[ClientFactory] = None,
        logger=None,
    ):
        if isinstance(urls, str):
            urls = [urls]
        # Keep order, drop blanks and duplicates
        self.urls: List[str] = list(dict.fromkeys(u.strip() for u in urls if u and u.strip()))
        if not self.urls:
            raise ValueError("SuiClient needs at least one endpoint URL")
        self.keypair = keypair
        self.client_factory = client_factory or create_pysui_client
        self.logger = logger or get_logger(__name__, context="SuiClient")
        self.url: Optional[str] = None
        self._client = None

    @property
    def address(self) -> str:
        return self.keypair.address

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _open(self, url: str):
        # pysui performs blocking API discovery while constructing the client
        return await asyncio.to_thread(self.client_factory, url, self.keypair.keystring)

    async def check_endpoint_health(self, url: str) -> bool:
        """True if a pysui client can be brought up against ``url``."""
        try:
            client = await self._open(url)
        except Exception as e:
            self.logger.warning(f"Endpoint {url} is unhealthy: {e}")
            return False
        await self._close_client(client)
        return True

    async def connect(self) -> "SuiClient":
        """
        Connect to the first endpoint that answers.

        Raises:
            NetworkError: Every endpoint failed
        """
        if self._client is not None:
            return self

        errors = {}
        for url in self.urls:
            try:
                self._client = await self._open(url)
            except Exception as e:
                errors[url] = str(e)
                self.logger.warning(f"RPC endpoint {url} failed: {e}")
                continue
            self.url = url
            self.logger.info(f"Connected to {url} as {self.address}")
            return self

        raise NetworkError(
            f"All {len(self.urls)} RPC endpoint(s) failed",
            details={"errors": errors},
        )

    def _require_client(self):
        if self._client is None:
            raise NetworkError("Sui client is not connected; call connect() first")
        return self._client

    @staticmethod
    async def _close_client(client) -> None:
        close = getattr(client, "close", None)
        if close is not None:
            await close()

    async def close(self) -> None:
        if self._client is not None:
            await self._close_client(self._client)
            self._client = None

    # === READ ===

    async def get_object_fields(self, object_id: str) -> dict:
        """Move struct fields of ``object_id``; empty if it has no content."""
        result = await self._require_client().get_object(ObjectID(object_id))
        data = _unwrap(result, "get_object", self.url)
        return _field(_field(data, "content"), "fields", {}) or {}

    # === WRITE ===

    def new_transaction(self) -> SuiTransaction:
        """Programmable transaction with this client's signer as sender."""
        return SuiTransaction(client=self._require_client())

    async def execute(self, tx, gas_budget: int) -> Any:
        """
        Sign and submit ``tx`` (pysui waits for local execution).

        Raises:
            TransactionExecutionFailed: If the effects status is not ``success``
        """
        result = await tx.execute(gas_budget=str(gas_budget))
        data = _unwrap(result, "execute", self.url)
        self._check_status(data)
        return data

    async def sign_and_execute(self, tx_bytes: Union[bytes, str]) -> Any:
        """Sign externally built ``TransactionData`` bytes and submit them."""
        client = self._require_client()
        result = await client.sign_and_submit(
            client.config.active_address, _encode_tx_bytes(tx_bytes)
        )
        return _unwrap(result, "sign_and_submit", self.url)

    async def dry_run(self, tx_bytes: Union[bytes, str]) -> Any:
        result = await self._require_client().dry_run(_encode_tx_bytes(tx_bytes))
        return _unwrap(result, "dry_run", self.url)

    @staticmethod
    def _check_status(data: Any) -> None:
        status = execution_status(data)
        if status != "success":
            digest = transaction_digest(data)
            error = execution_error(data)
            raise TransactionExecutionFailed(
                f"Transaction {digest} failed: {error or status}",
                digest=digest,
                status=status,
                details={"error": error},
            )
