"""Shared submit path for the flash-loan flows."""

from typing import Any

from ..sui.client import SuiClient, transaction_digest

EXPLORER_TX_URL = "https://explorer.sui.io/txblock/{digest}?network={network}"
CLOCK_OBJECT_ID = "0x6"


def explorer_url(digest: str, network: str) -> str:
    return EXPLORER_TX_URL.format(digest=digest, network=network)


async def execute_transaction(client: SuiClient, tx, gas_budget: int, logger) -> Any:
    """
    Sign and submit ``tx``, waiting for local execution.

    Raises:
        TransactionExecutionFailed: If the effects status is not ``success``
    """
    logger.info("Building and executing transaction...")
    result = await client.execute(tx, gas_budget)
    logger.info(f"Transaction executed successfully! digest={transaction_digest(result)}")
    return result
