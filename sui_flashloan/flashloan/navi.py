"""
Navi Protocol flash loan.

Borrows from a Navi lending pool with ``lending::flash_loan_with_ctx``,
leaves room for an action on the borrowed balance, then repays with
``lending::flash_repay_with_ctx``. Any balance left after repayment is
turned back into a coin and sent to the sender so nothing is dropped.
"""

from typing import Any, Optional

from pysui.sui.sui_types.scalars import ObjectID, SuiU64

from ..config_schema import NaviSettings, SuiSettings
from ..sui.client import SuiClient, transaction_digest
from ..utils import get_logger
from .common import CLOCK_OBJECT_ID, execute_transaction, explorer_url

USDC_DECIMALS = 6


class NaviFlashLoan:
    """Builds and runs a borrow-then-repay transaction against one Navi pool."""

    def __init__(
        self,
        client: SuiClient,
        navi: NaviSettings,
        sui: SuiSettings,
        logger=None,
    ):
        self.client = client
        self.navi = navi
        self.sui = sui
        self.logger = logger or get_logger(__name__, context="NaviFlashloanExample")

    async def add_flash_loan(self, tx, amount: int):
        """Append the borrow call; returns ``(balance, receipt)`` results."""
        balance, receipt = await tx.move_call(
            target=f"{self.navi.package_id}::lending::flash_loan_with_ctx",
            arguments=[
                ObjectID(self.navi.flashloan_config_id),
                ObjectID(self.navi.usdc_pool_id),
                SuiU64(amount),
            ],
            type_arguments=[self.navi.usdc_coin_type],
        )
        return balance, receipt

    async def add_repay(self, tx, receipt, balance):
        """Append the repay call; returns the leftover balance result."""
        return await tx.move_call(
            target=f"{self.navi.package_id}::lending::flash_repay_with_ctx",
            arguments=[
                ObjectID(CLOCK_OBJECT_ID),
                ObjectID(self.navi.storage_id),
                ObjectID(self.navi.usdc_pool_id),
                receipt,
                balance,
            ],
            type_arguments=[self.navi.usdc_coin_type],
        )

    async def build_transaction(self, amount: Optional[int] = None):
        amount = amount or self.navi.borrow_amount
        tx = self.client.new_transaction()

        self.logger.info(
            f"Executing flashloan to borrow {amount / 10 ** USDC_DECIMALS} USDC ({amount} base units)..."
        )
        balance, receipt = await self.add_flash_loan(tx, amount)
        self.logger.info("Flashloan borrow operation added to transaction block.")

        # The borrowed balance is available here for swaps or other actions
        self.logger.info(
            "In a real scenario, you would perform operations with the borrowed funds here."
        )

        self.logger.info("Adding flashloan repayment operation...")
        leftover = await self.add_repay(tx, receipt, balance)
        coin = await tx.move_call(
            target="0x2::coin::from_balance",
            arguments=[leftover],
            type_arguments=[self.navi.usdc_coin_type],
        )
        await tx.transfer_objects(transfers=[coin], recipient=self.client.address)
        self.logger.info("Flashloan repayment operation added to transaction block.")
        return tx

    async def execute(self, amount: Optional[int] = None) -> Any:
        self.logger.info("=== Starting Navi Protocol Flashloan Example ===")
        self.logger.info(f"Target Network: {self.sui.network}")
        self.logger.info(f"Using Navi Protocol package ID: {self.navi.package_id}")
        self.logger.info(f"Using sender address: {self.client.address}")

        try:
            tx = await self.build_transaction(amount)
            result = await execute_transaction(self.client, tx, self.sui.gas_budget, self.logger)
        except Exception as e:
            self.logger.error(f"Error executing Navi flashloan: {e}")
            raise

        self.logger.info(
            f"View transaction in explorer: {explorer_url(transaction_digest(result), self.sui.network)}"
        )
        self.logger.info("=== Navi Protocol Flashloan Example Completed ===")
        return result
