"""
SuiLend flash loan.

Creates a throwaway obligation, borrows from the reserve matching the
configured coin type and repays in the same transaction. The obligation
owner cap is returned to the sender at the end.
"""

from typing import Any, Dict, Optional

from pysui.sui.sui_types.scalars import ObjectID, SuiU64

from ..config_schema import SuiSettings, SuilendSettings
from ..exceptions import ValidationError
from ..sui.client import SuiClient, transaction_digest
from ..tokens import normalize_coin_type
from ..utils import get_logger
from .common import CLOCK_OBJECT_ID, execute_transaction, explorer_url


def _reserve_coin_type(reserve: Dict[str, Any]) -> Optional[str]:
    fields = reserve.get("fields", reserve)
    coin_type = fields.get("coin_type")
    if isinstance(coin_type, dict):
        coin_type = (coin_type.get("fields") or {}).get("name")
    return coin_type


class SuilendFlashLoan:
    """Borrow-then-repay against a SuiLend lending market."""

    def __init__(
        self,
        client: SuiClient,
        suilend: SuilendSettings,
        sui: SuiSettings,
        logger=None,
    ):
        self.client = client
        self.suilend = suilend
        self.sui = sui
        self.logger = logger or get_logger(__name__, context="SuilendFlashloanExample")
        self._reserves = None

    async def load_market(self) -> None:
        """Fetch the market object and cache its reserve list."""
        fields = await self.client.get_object_fields(self.suilend.lending_market_id)
        if not fields:
            raise ValidationError(
                f"Lending market {self.suilend.lending_market_id} not found"
            )
        self._reserves = fields.get("reserves") or []
        self.logger.info(f"SuiLend market loaded with {len(self._reserves)} reserve(s)")

    def find_reserve_array_index(self, coin_type: str) -> int:
        """Index of the reserve for ``coin_type`` in the market, or -1."""
        if self._reserves is None:
            raise ValidationError("Lending market not loaded; call load_market() first")
        target = normalize_coin_type(coin_type)
        for index, reserve in enumerate(self._reserves):
            reserve_type = _reserve_coin_type(reserve)
            if reserve_type and normalize_coin_type(reserve_type) == target:
                return index
        return -1

    async def build_transaction(self, reserve_index: int, amount: Optional[int] = None):
        amount = amount or self.suilend.borrow_amount
        market_id = self.suilend.lending_market_id
        market_type = self.suilend.lending_market_type
        package = self.suilend.package_id
        coin_type = self.suilend.coin_type

        tx = self.client.new_transaction()

        self.logger.info("Creating temporary obligation for flashloan...")
        obligation_cap = await tx.move_call(
            target=f"{package}::lending_market::create_obligation",
            arguments=[ObjectID(market_id)],
            type_arguments=[market_type],
        )

        self.logger.info(f"Executing flashloan to borrow {amount} base units...")
        borrowed = await tx.move_call(
            target=f"{package}::lending_market::borrow",
            arguments=[
                ObjectID(market_id),
                SuiU64(reserve_index),
                obligation_cap,
                SuiU64(amount),
                ObjectID(CLOCK_OBJECT_ID),
            ],
            type_arguments=[market_type, coin_type],
        )

        # The borrowed coin is available here for swaps or other actions
        self.logger.info(
            "In a real scenario, you would perform operations with the borrowed funds here."
        )

        self.logger.info("Adding flashloan repayment operation...")
        await tx.move_call(
            target=f"{package}::lending_market::repay",
            arguments=[
                ObjectID(market_id),
                SuiU64(reserve_index),
                obligation_cap,
                borrowed,
                SuiU64(amount),
                ObjectID(CLOCK_OBJECT_ID),
            ],
            type_arguments=[market_type, coin_type],
        )
        await tx.transfer_objects(transfers=[obligation_cap], recipient=self.client.address)
        return tx

    async def execute(self, amount: Optional[int] = None) -> Optional[Any]:
        """
        Run the flow. Returns None (after logging) if the market has no
        reserve for the configured coin type.
        """
        self.logger.info("=== Starting SuiLend Protocol Flashloan Example ===")
        self.logger.info(f"Using SuiLend lending market ID: {self.suilend.lending_market_id}")
        self.logger.info(f"Using SuiLend lending market type: {self.suilend.lending_market_type}")
        self.logger.info(f"Using sender address: {self.client.address}")

        try:
            await self.load_market()
            reserve_index = self.find_reserve_array_index(self.suilend.coin_type)
            if reserve_index == -1:
                self.logger.error(
                    f"Error: Reserve for {self.suilend.coin_type} not found in the lending market."
                )
                return None
            self.logger.info(f"Found reserve at index: {reserve_index}")

            tx = await self.build_transaction(reserve_index, amount)
            result = await execute_transaction(self.client, tx, self.sui.gas_budget, self.logger)
        except Exception as e:
            self.logger.error(f"Error executing SuiLend flashloan: {e}")
            raise

        self.logger.info(
            f"View transaction in explorer: {explorer_url(transaction_digest(result), self.sui.network)}"
        )
        self.logger.info("=== SuiLend Protocol Flashloan Example Completed ===")
        return result
